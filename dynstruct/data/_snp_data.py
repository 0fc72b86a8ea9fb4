import numpy as np
from typing import Dict, List, Optional, Sequence, Tuple

# genotype code for a missing or unknown call
MISSING = 9


class SnpData(object):
    """
    Genotype calls grouped by sampling time.

    Individuals sampled at the same generation are stored together in one
    (n_indiv_t, n_loci) int8 matrix, so the number of rows differs between
    time steps. Entries are 0, 1, 2 (copies of the reference allele) or
    `MISSING`.
    """

    def __init__(
        self,
        geno: List[np.ndarray],
        generations: Sequence[int],
        sample_map: Optional[Dict[int, Tuple[int, int]]] = None,
    ):
        """Initialize

        Parameters
        ----------
        geno : List[np.ndarray]
            one (n_indiv_t, n_loci) matrix per time step
        generations : Sequence[int]
            sampled generation of each time step, strictly increasing
        sample_map : Dict[int, Tuple[int, int]], optional
            map from the column of a sample in the genotype file to its
            (time step, individual) index. Defaults to the order of `geno`.
        """
        assert len(geno) == len(generations), (
            "`geno` and `generations` must have the same number of time steps"
        )
        assert len(geno) > 0, "at least one time step is required"
        self._geno = [np.asarray(g, dtype=np.int8) for g in geno]
        assert all(g.ndim == 2 for g in self._geno), "each matrix must be 2-dimensional"

        n_loci = self._geno[0].shape[1]
        assert all(
            g.shape[1] == n_loci for g in self._geno
        ), "all time steps must have the same number of loci"
        assert all(
            np.isin(g, [0, 1, 2, MISSING]).all() for g in self._geno
        ), f"genotypes must be 0, 1, 2 or {MISSING}"

        self._generations = np.asarray(generations, dtype=int)
        assert np.all(
            np.diff(self._generations) > 0
        ), "generations must be strictly increasing"

        if sample_map is None:
            sample_map = {}
            for t, g in enumerate(self._geno):
                for d in range(g.shape[0]):
                    sample_map[len(sample_map)] = (t, d)
        assert len(sample_map) == self.n_indiv(), "`sample_map` must cover all samples"
        self._sample_map = sample_map
        self._n_loci = n_loci

    def __repr__(self) -> str:
        return (
            f"dynstruct.SnpData object with {self.n_indiv()} individuals "
            f"at {self.n_step} time steps x {self.n_loci} loci"
        )

    @property
    def n_step(self) -> int:
        """Number of sampled time steps."""
        return len(self._geno)

    @property
    def n_loci(self) -> int:
        """Number of loci."""
        return self._n_loci

    @property
    def generations(self) -> np.ndarray:
        """Sampled generation of each time step."""
        return self._generations

    @property
    def geno(self) -> List[np.ndarray]:
        """Per-time-step genotype matrices."""
        return self._geno

    @property
    def sample_map(self) -> Dict[int, Tuple[int, int]]:
        """Original sample column -> (time step, individual)."""
        return self._sample_map

    def n_indiv(self, t: int = None) -> int:
        """Number of individuals at time step `t`, or in total if `t` is None."""
        if t is None:
            return sum(g.shape[0] for g in self._geno)
        return self._geno[t].shape[0]

    def max_indiv(self) -> int:
        """Largest number of individuals sampled at a single time step."""
        return max(g.shape[0] for g in self._geno)

    def get(self, t: int, d: int, l: int) -> int:
        """Genotype call of individual `d` at time step `t` and locus `l`."""
        return int(self._geno[t][d, l])

    def allele_freq(self, mask: List[np.ndarray] = None) -> np.ndarray:
        """
        Pooled reference allele frequency of each locus across time steps.

        Parameters
        ----------
        mask : List[np.ndarray], optional
            per-time-step boolean masks of entries to use; non-missing entries
            are used when None

        Returns
        -------
        np.ndarray
            (n_loci, ) frequencies with a pseudo-count of one allele of each
            type, so loci without data get 0.5
        """
        n_alt = np.zeros(self.n_loci)
        n_obs = np.zeros(self.n_loci)
        for t, g in enumerate(self._geno):
            observed = g != MISSING
            if mask is not None:
                observed &= mask[t]
            n_alt += np.where(observed, g, 0).sum(axis=0)
            n_obs += observed.sum(axis=0)
        return (n_alt + 1) / (2 * n_obs + 2)


def select_holdout(
    snp_data: SnpData, fraction: float, rng: np.random.Generator
) -> List[np.ndarray]:
    """Select genotype entries to hold out from training

    Every non-missing entry is held out independently with probability
    `fraction`.

    Parameters
    ----------
    snp_data : SnpData
        genotype data
    fraction : float
        probability of holding out an entry, in [0, 1)
    rng : np.random.Generator
        random source dedicated to the hold out selection

    Returns
    -------
    List[np.ndarray]
        per-time-step (n_indiv_t, n_loci) boolean masks
    """
    assert 0 <= fraction < 1, "`fraction` must be in [0, 1)"
    holdout = []
    for g in snp_data.geno:
        holdout.append((rng.random(g.shape) < fraction) & (g != MISSING))
    return holdout
