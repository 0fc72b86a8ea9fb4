from ._plot import admixture, freq_trajectory


__all__ = ["admixture", "freq_trajectory"]
