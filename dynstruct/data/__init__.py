"""
dynstruct.data holds the genotype data provider consumed by the inference engine.

These functions should not depend on the inference engine, but rather can be used
on their own alone.
"""

from ._snp_data import SnpData, select_holdout, MISSING

__all__ = ["SnpData", "select_holdout", "MISSING"]
