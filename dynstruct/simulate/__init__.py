from ._geno import temporal_admix_geno

__all__ = ["temporal_admix_geno"]
