import numpy as np


class RobbinsMonro(object):
    """Step size rho = (tau0 + n_visit) ** (-kappa)

    With 0.5 < kappa <= 1 the steps satisfy sum rho = inf and sum rho^2 < inf.

    Parameters
    ----------
    tau0 : float
        delay, down-weights the first visits when large
    kappa : float
        forgetting rate
    """

    def __init__(self, tau0: float = 1.0, kappa: float = 0.6):
        assert tau0 >= 1, "`tau0` must be at least 1 so that rho <= 1"
        assert 0.5 < kappa <= 1, "`kappa` must be in (0.5, 1]"
        self.tau0 = tau0
        self.kappa = kappa

    def __repr__(self) -> str:
        return f"RobbinsMonro(tau0={self.tau0}, kappa={self.kappa})"

    def __call__(self, n_visit: np.ndarray) -> np.ndarray:
        return (self.tau0 + np.asarray(n_visit, dtype=float)) ** (-self.kappa)


def mixture_target(
    prior: np.ndarray,
    geno: np.ndarray,
    log_phi: np.ndarray,
    log_zeta: np.ndarray,
    n_observed: np.ndarray,
) -> np.ndarray:
    """Optimal Dirichlet parameters if every observed locus looked like this one

    Parameters
    ----------
    prior : np.ndarray
        (n_pop, ) Dirichlet prior
    geno : np.ndarray
        (n_indiv, ) observed genotypes
    log_phi : np.ndarray
        (n_indiv, n_pop) log auxiliary parameters for reference alleles
    log_zeta : np.ndarray
        (n_indiv, n_pop) log auxiliary parameters for the other alleles
    n_observed : np.ndarray
        (n_indiv, ) number of loci each individual is observed at, i.e. the
        number of loci this locus stands in for

    Returns
    -------
    np.ndarray
        (n_indiv, n_pop) target parameters
    """
    g = geno.astype(float)[:, None]
    evidence = g * np.exp(log_phi) + (2 - g) * np.exp(log_zeta)
    return prior[None, :] + np.asarray(n_observed, dtype=float)[:, None] * evidence


def natural_gradient_step(
    theta: np.ndarray, target: np.ndarray, rho: np.ndarray
) -> np.ndarray:
    """Move each row of `theta` towards `target` by its step size in `rho`."""
    rho = rho[:, None]
    return (1 - rho) * theta + rho * target
