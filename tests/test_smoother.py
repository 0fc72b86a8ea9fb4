import numpy as np
from dynstruct.inference import smooth_trajectories, pseudo_observation, EPS, MIN_VAR


def test_smoother_idempotent():
    rng = np.random.default_rng(0)
    obs = rng.uniform(0.2, 0.8, size=(3, 5))
    obs_var = rng.uniform(0.001, 0.01, size=(3, 5))
    prior_mean = np.array([0.3, 0.5, 0.7])
    process_var = np.full((3, 5), 0.002)

    mean1, var1, lag1 = smooth_trajectories(obs, obs_var, prior_mean, process_var)
    mean2, var2, lag2 = smooth_trajectories(obs, obs_var, prior_mean, process_var)
    assert np.allclose(mean1, mean2)
    assert np.allclose(var1, var2)
    assert np.allclose(lag1, lag2)
    assert mean1.shape == (3, 5) and lag1.shape == (3, 4)


def test_smoother_constant_trajectory():
    # precise observations of a constant trajectory are reproduced
    obs = np.full((2, 4), 0.4)
    obs_var = np.full((2, 4), 1e-8)
    mean, var, _ = smooth_trajectories(
        obs, obs_var, np.array([0.4, 0.4]), np.full((2, 4), 1e-3)
    )
    assert np.allclose(mean, 0.4)
    assert np.all(var < 1e-7)


def test_smoother_without_observation():
    # without observations the trajectory stays at the prior and uncertainty grows
    obs = np.full((1, 3), 0.5)
    obs_var = np.full((1, 3), np.inf)
    process_var = np.array([[0.01, 0.02, 0.03]])
    mean, var, _ = smooth_trajectories(obs, obs_var, np.array([0.2]), process_var)
    assert np.allclose(mean, 0.2)
    assert np.allclose(var, [[0.01, 0.03, 0.06]])


def test_smoother_observation_pulls_mean():
    obs = np.array([[0.9, 0.5]])
    obs_var = np.array([[0.001, np.inf]])
    process_var = np.array([[0.01, 0.01]])
    mean, var, _ = smooth_trajectories(obs, obs_var, np.array([0.5]), process_var)
    assert 0.5 < mean[0, 0] < 0.9
    # posterior variance is smaller than the prior variance
    assert var[0, 0] < process_var[0, 0]
    # the unobserved step follows the observed one
    assert np.isclose(mean[0, 1], mean[0, 0])


def test_smoother_clamps():
    obs = np.array([[1.5, -0.5]])
    obs_var = np.array([[1e-12, 1e-12]])
    mean, var, _ = smooth_trajectories(
        obs, obs_var, np.array([0.5]), np.array([[1.0, 1.0]])
    )
    assert np.all(mean >= EPS) and np.all(mean <= 1 - EPS)
    assert np.all(var >= MIN_VAR)


def test_pseudo_observation():
    geno = np.array([2, 2, 0, 1])
    observed = np.array([True, True, True, False])
    # all evidence assigned to population 0
    log_phi = np.log(np.tile([1.0 - 1e-12, 1e-12], (4, 1)))
    log_zeta = np.log(np.tile([1.0 - 1e-12, 1e-12], (4, 1)))
    y, r = pseudo_observation(geno, observed, log_phi, log_zeta)
    # 4 reference alleles and 2 other alleles in population 0
    assert np.isclose(y[0], 4.5 / 7)
    assert np.isclose(r[0], y[0] * (1 - y[0]) / 7)
    # population 1 gets no evidence and falls back to 0.5 with large variance
    assert np.isclose(y[1], 0.5)
    assert r[1] > r[0]

    # no observed individual: finite placeholder, flagged unobserved by the caller
    y, r = pseudo_observation(geno, np.zeros(4, dtype=bool), log_phi, log_zeta)
    assert np.allclose(y, 0.5)
    assert np.allclose(r, 0.25)


def test_smoother_observed_mask():
    # finite placeholders at unobserved steps are ignored
    obs = np.array([[0.9, 0.5, 0.5]])
    obs_var = np.array([[0.001, 0.25, 0.25]])
    process_var = np.full((1, 3), 0.01)
    observed = np.array([[True, False, False]])
    mean, var, _ = smooth_trajectories(
        obs, obs_var, np.array([0.5]), process_var, observed=observed
    )
    ref_mean, ref_var, _ = smooth_trajectories(
        obs, np.array([[0.001, np.inf, np.inf]]), np.array([0.5]), process_var
    )
    assert np.allclose(mean, ref_mean)
    assert np.allclose(var, ref_var)
    assert np.allclose(mean[0, 1:], mean[0, 0])
