import numpy as np
from typing import Dict, Sequence, Tuple, Union
from tqdm import tqdm
from ..data import SnpData


def temporal_admix_geno(
    n_pop: int,
    generations: Sequence[int],
    n_indiv: Union[int, Sequence[int]],
    n_loci: int,
    pop_size: int = 1000,
    mixture_prior: Sequence[float] = None,
    af_low: float = 0.1,
    af_high: float = 0.9,
    seed: int = None,
) -> Tuple[SnpData, Dict[str, np.ndarray]]:
    """Simulate genotypes of admixed individuals sampled at several generations

    The generative model is:

    - for each population, frequencies at generation 0 are drawn uniformly
        from [af_low, af_high]
    - frequencies drift by Wright-Fisher sampling of 2 * pop_size alleles every
        generation, independently for each population
    - for each individual, mixture proportions are drawn from
        Dirichlet(mixture_prior)
    - each allele copy picks a population from the mixture proportions and an
        allele from that population's frequency at the sampled generation

    Parameters
    ----------
    n_pop : int
        Number of populations
    generations : Sequence[int]
        Strictly increasing sampled generations
    n_indiv : int or Sequence[int]
        Number of individuals sampled at each generation
    n_loci : int
        Number of loci
    pop_size : int
        Effective population size of every population
    mixture_prior : Sequence[float]
        Dirichlet parameters of the mixture proportions, 1 / n_pop each by default
    af_low, af_high : float
        Range of the frequencies at generation 0
    seed : int
        Random seed

    Returns
    -------
    snp_data : SnpData
        Simulated genotypes
    truth : Dict[str, np.ndarray]
        "theta": per-time-step (n_indiv_t, n_pop) mixture proportions,
        "freqs": (n_step, n_pop, n_loci) allele frequencies,
        "initial_freq": (n_pop, n_loci) frequencies at generation 0
    """
    rng = np.random.default_rng(seed)
    generations = np.asarray(generations, dtype=int)
    assert np.all(generations >= 0), "generations must be non-negative"
    assert np.all(np.diff(generations) > 0), "generations must be strictly increasing"
    n_step = len(generations)
    if np.isscalar(n_indiv):
        n_indiv = [int(n_indiv)] * n_step
    assert len(n_indiv) == n_step, "`n_indiv` must have one entry per generation"
    if mixture_prior is None:
        mixture_prior = np.full(n_pop, 1.0 / n_pop)
    mixture_prior = np.asarray(mixture_prior, dtype=float)
    assert mixture_prior.shape == (n_pop,)

    initial_freq = rng.uniform(low=af_low, high=af_high, size=(n_pop, n_loci))
    freqs = np.zeros((n_step, n_pop, n_loci))
    f = initial_freq.copy()
    n_allele = 2 * pop_size
    current_gen = 0
    for t in tqdm(range(n_step), desc="temporal_admix_geno"):
        for _ in range(generations[t] - current_gen):
            f = rng.binomial(n_allele, f) / n_allele
        current_gen = generations[t]
        freqs[t] = f

    geno = []
    theta = []
    for t in range(n_step):
        t_theta = rng.dirichlet(mixture_prior, size=n_indiv[t])
        # probability that one allele copy is the reference allele
        p = t_theta @ freqs[t]
        geno.append(rng.binomial(2, p).astype(np.int8))
        theta.append(t_theta)

    snp_data = SnpData(geno=geno, generations=generations)
    return snp_data, {"theta": theta, "freqs": freqs, "initial_freq": initial_freq}
