import numpy as np
from scipy.special import digamma
from typing import Tuple

# frequency means are kept inside [EPS, 1 - EPS]
EPS = 1e-6
# floor for every variance
MIN_VAR = 1e-10
# auxiliary parameters changing less than this are considered unchanged
AUX_TOL = 1e-6
# starting point when the population size is estimated
DEFAULT_POP_SIZE = 10000.0


def expected_log_dirichlet(theta: np.ndarray) -> np.ndarray:
    """E[log theta_k] under Dirichlet(theta), along the last axis."""
    return digamma(theta) - digamma(theta.sum(axis=-1, keepdims=True))


def expected_log_freq(
    mean: np.ndarray, var: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """Approximate E[log beta] and E[log(1 - beta)] for beta with given mean and variance

    Uses the second order expansion of the logarithm around the mean. The
    variance is capped at mean * (1 - mean), the largest variance of a
    distribution on [0, 1].

    Parameters
    ----------
    mean : np.ndarray
        mean of the frequency
    var : np.ndarray
        variance of the frequency

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        E[log beta], E[log(1 - beta)]
    """
    m = np.clip(mean, EPS, 1 - EPS)
    v = np.clip(var, 0, m * (1 - m))
    return np.log(m) - v / (2 * m ** 2), np.log1p(-m) - v / (2 * (1 - m) ** 2)


def drift_variance(
    p0: np.ndarray, dt: np.ndarray, pop_size: float
) -> np.ndarray:
    """Variance of allele frequency change under the diffusion approximation of drift

    Parameters
    ----------
    p0 : np.ndarray
        reference frequency, shape (...)
    dt : np.ndarray
        number of generations, shape (n_step, )
    pop_size : float
        effective population size

    Returns
    -------
    np.ndarray
        variance of shape (..., n_step)
    """
    p0 = np.clip(p0, EPS, 1 - EPS)
    var = (p0 * (1 - p0))[..., None] * np.asarray(dt)[None, :] / (2 * pop_size)
    return np.maximum(var, MIN_VAR)


def normalize(theta: np.ndarray) -> np.ndarray:
    """Expected mixture proportions of Dirichlet parameters, along the last axis."""
    return theta / theta.sum(axis=-1, keepdims=True)
