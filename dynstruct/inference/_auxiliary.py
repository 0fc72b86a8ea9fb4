import numpy as np
from scipy.special import logsumexp
from typing import Tuple


def auxiliary_update(
    e_log_theta: np.ndarray, e_log_freq: np.ndarray, e_log_1mfreq: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """Closed form update of the auxiliary parameters

    phi_k is proportional to exp(E[log theta_k] + E[log beta_k]) and bounds the
    log-likelihood of a reference allele; zeta_k is proportional to
    exp(E[log theta_k] + E[log(1 - beta_k)]) and bounds the other allele. Both
    are normalized over populations (last axis) in log space.

    Parameters
    ----------
    e_log_theta : np.ndarray
        (..., n_pop) expected log mixture proportions
    e_log_freq : np.ndarray
        (..., n_pop) expected log allele frequencies, broadcast against
        `e_log_theta`
    e_log_1mfreq : np.ndarray
        (..., n_pop) expected log of one minus the allele frequencies

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        log phi, log zeta
    """
    log_phi = e_log_theta + e_log_freq
    log_phi = log_phi - logsumexp(log_phi, axis=-1, keepdims=True)
    log_zeta = e_log_theta + e_log_1mfreq
    log_zeta = log_zeta - logsumexp(log_zeta, axis=-1, keepdims=True)
    return log_phi, log_zeta


def max_change(old_log: np.ndarray, new_log: np.ndarray) -> float:
    """Largest absolute change of auxiliary parameters given in log space."""
    if old_log.size == 0:
        return 0.0
    return float(np.max(np.abs(np.exp(new_log) - np.exp(old_log))))
