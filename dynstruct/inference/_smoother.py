import numpy as np
from typing import Tuple
from ._utils import EPS, MIN_VAR


def pseudo_observation(
    geno: np.ndarray, observed: np.ndarray, log_phi: np.ndarray, log_zeta: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """Pseudo observation of each population's frequency at one locus and time step

    The auxiliary parameters split every observed allele between populations:
    a = sum_d g_d phi_dk reference alleles and b = sum_d (2 - g_d) zeta_dk other
    alleles. a log(beta) + b log(1 - beta) is replaced by its Laplace
    approximation, a Gaussian observation of beta with mean
    y = (a + 0.5) / (a + b + 1) and variance y (1 - y) / (a + b + 1).

    Parameters
    ----------
    geno : np.ndarray
        (n_indiv, ) genotypes
    observed : np.ndarray
        (n_indiv, ) boolean, entries used for training
    log_phi : np.ndarray
        (n_indiv, n_pop) log auxiliary parameters for reference alleles
    log_zeta : np.ndarray
        (n_indiv, n_pop) log auxiliary parameters for the other alleles

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        (n_pop, ) observation and observation variance. Without any observed
        individual a = b = 0, giving 0.5 and 0.25; such steps carry no
        information and must be flagged as unobserved for the smoother.
    """
    g = geno[observed].astype(float)
    a = g @ np.exp(log_phi[observed])
    b = (2 - g) @ np.exp(log_zeta[observed])
    n = a + b + 1
    y = (a + 0.5) / n
    return y, y * (1 - y) / n


def smooth_trajectories(
    obs: np.ndarray,
    obs_var: np.ndarray,
    prior_mean: np.ndarray,
    process_var: np.ndarray,
    observed: np.ndarray = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Kalman filter and Rauch-Tung-Striebel smoother for independent random walks

    Each trajectory x follows x_0 ~ N(prior_mean, process_var[:, 0]) and
    x_t ~ N(x_{t-1}, process_var[:, t]), observed as obs_t ~ N(x_t, obs_var_t).
    Steps flagged as unobserved, or with an infinite observation variance,
    contribute no observation.

    Parameters
    ----------
    obs : np.ndarray
        (n_traj, n_step) observations
    obs_var : np.ndarray
        (n_traj, n_step) observation variances
    prior_mean : np.ndarray
        (n_traj, ) mean before the first step
    process_var : np.ndarray
        (n_traj, n_step) variance of the step into each time point
    observed : np.ndarray, optional
        (n_traj, n_step) boolean, whether each step is observed. Defaults to
        the steps with a finite observation variance.

    Returns
    -------
    mean : np.ndarray
        (n_traj, n_step) smoothed means, clamped to [EPS, 1 - EPS]
    var : np.ndarray
        (n_traj, n_step) smoothed variances, at least MIN_VAR
    lag_cov : np.ndarray
        (n_traj, n_step - 1) smoothed covariance between consecutive steps
    """
    n_traj, n_step = obs.shape
    if observed is None:
        observed = np.isfinite(obs_var)
    pred_mean = np.zeros((n_traj, n_step))
    pred_var = np.zeros((n_traj, n_step))
    filt_mean = np.zeros((n_traj, n_step))
    filt_var = np.zeros((n_traj, n_step))

    # forward pass
    for t in range(n_step):
        if t == 0:
            pred_mean[:, t] = prior_mean
            pred_var[:, t] = process_var[:, 0]
        else:
            pred_mean[:, t] = filt_mean[:, t - 1]
            pred_var[:, t] = filt_var[:, t - 1] + process_var[:, t]

        has_obs = observed[:, t] & np.isfinite(obs_var[:, t])
        r = np.where(has_obs, obs_var[:, t], 1.0)
        gain = np.where(has_obs, pred_var[:, t] / (pred_var[:, t] + r), 0.0)
        innov = np.where(has_obs, obs[:, t] - pred_mean[:, t], 0.0)
        filt_mean[:, t] = pred_mean[:, t] + gain * innov
        filt_var[:, t] = (1 - gain) * pred_var[:, t]

    # backward pass
    mean = filt_mean.copy()
    var = filt_var.copy()
    lag_cov = np.zeros((n_traj, max(n_step - 1, 0)))
    for t in range(n_step - 2, -1, -1):
        J = filt_var[:, t] / np.maximum(pred_var[:, t + 1], MIN_VAR)
        mean[:, t] = filt_mean[:, t] + J * (mean[:, t + 1] - pred_mean[:, t + 1])
        var[:, t] = filt_var[:, t] + J ** 2 * (var[:, t + 1] - pred_var[:, t + 1])
        lag_cov[:, t] = J * var[:, t + 1]

    return np.clip(mean, EPS, 1 - EPS), np.maximum(var, MIN_VAR), lag_cov
