import numpy as np
from scipy.special import logsumexp
from tqdm import tqdm
from typing import Dict, List, NamedTuple, Optional, Sequence
import dynstruct
from ..data import SnpData, MISSING
from ._auxiliary import auxiliary_update, max_change
from ._smoother import pseudo_observation, smooth_trajectories
from ._mixture import RobbinsMonro, mixture_target, natural_gradient_step
from ._utils import (
    AUX_TOL,
    DEFAULT_POP_SIZE,
    EPS,
    drift_variance,
    expected_log_dirichlet,
    expected_log_freq,
    normalize,
)

# log C(2, g) for g = 0, 1, 2
LOG_BINOM = np.log([1.0, 2.0, 1.0])


class ThetaConvergence(NamedTuple):
    converged: bool
    change: float


class Cavi(object):
    """Coordinate ascent variational inference for temporally sampled genotypes

    Fits population allele frequency trajectories over time together with the
    mixture proportions of each individual. Loci are visited one at a time;
    for each locus the auxiliary parameters, the frequency trajectories and the
    mixture proportions are updated in turn.

    Parameters
    ----------
    npops : int
        number of populations
    mixture_prior : Sequence[float]
        (npops, ) Dirichlet prior of the mixture proportions
    pop_size : float
        effective population size. If None, it is estimated along with the
        variational parameters.
    snp_data : SnpData
        genotype data, read only
    rng : np.random.Generator
        random source, only used by `initialize_variational_parameters`
    nloci : int
        number of loci to use, the first `nloci` loci of `snp_data`
    labels : List[np.ndarray], optional
        per-time-step population labels, negative for unknown
    using_labels : bool
        whether labeled individuals are fixed to their population
    holdout : List[np.ndarray], optional
        per-time-step (n_indiv_t, n_loci) masks of genotype entries excluded
        from training and used by `compute_ho_log_likelihood`
    max_epochs : int
        maximum number of passes over all loci
    tol : float
        convergence tolerance of `check_theta_convergence`
    step_size : RobbinsMonro, optional
        step size schedule of the mixture updates
    skip_unchanged : bool
        skip the frequency and mixture updates of a locus whose auxiliary
        parameters did not change

    Attributes
    ----------
    freqs : np.ndarray
        (nsteps, npops, nloci, 2) mean and variance of the allele frequencies
    pseudo_outputs : np.ndarray
        (npops, nloci, nsteps, 2) pseudo observation and its variance. Time is
        the innermost axis, unlike the other parameters, since the smoother
        sweeps over time for a fixed population and locus. Time steps without
        training entries at a locus hold 0.5 and 0.25 and are skipped by the
        smoother.
    theta : List[np.ndarray]
        per-time-step (n_indiv_t, npops) Dirichlet parameters
    phi, zeta : List[np.ndarray]
        per-time-step (n_indiv_t, nloci, npops) log auxiliary parameters
    sample_iter : List[np.ndarray]
        per-time-step (n_indiv_t, ) number of mixture updates of each individual
    initial_freq : np.ndarray
        (npops, nloci) frequencies before the first time step
    """

    def __init__(
        self,
        npops: int,
        mixture_prior: Sequence[float],
        pop_size: Optional[float],
        snp_data: SnpData,
        rng: np.random.Generator,
        nloci: int,
        labels: List[np.ndarray] = None,
        using_labels: bool = False,
        holdout: List[np.ndarray] = None,
        max_epochs: int = 50,
        tol: float = 1e-4,
        step_size: RobbinsMonro = None,
        skip_unchanged: bool = False,
    ):
        assert npops > 0, "`npops` must be positive"
        mixture_prior = np.asarray(mixture_prior, dtype=float)
        assert mixture_prior.shape == (npops,), "`mixture_prior` must have `npops` entries"
        assert np.all(mixture_prior > 0), "`mixture_prior` must be positive"
        assert 0 < nloci <= snp_data.n_loci, f"`nloci` must be in [1, {snp_data.n_loci}]"
        assert max_epochs > 0 and tol > 0

        self.npops = npops
        self.nloci = nloci
        self.nsteps = snp_data.n_step
        self.mixture_prior = mixture_prior
        self.snp_data = snp_data
        self.rng = rng
        self.fixed_pop_size = pop_size is not None
        self.pop_size = float(pop_size) if pop_size is not None else DEFAULT_POP_SIZE
        assert self.pop_size > 0, "`pop_size` must be positive"
        self.max_epochs = max_epochs
        self.tol = tol
        self.step_size = step_size if step_size is not None else RobbinsMonro()
        self.skip_unchanged = skip_unchanged

        n_indiv = [snp_data.n_indiv(t) for t in range(self.nsteps)]
        self._geno = [g[:, :nloci] for g in snp_data.geno]

        if holdout is None:
            holdout = [np.zeros((n, nloci), dtype=bool) for n in n_indiv]
        else:
            assert len(holdout) == self.nsteps, "`holdout` must have one mask per time step"
            holdout = [np.asarray(h, dtype=bool)[:, :nloci] for h in holdout]
            assert all(h.shape == (n, nloci) for h, n in zip(holdout, n_indiv))
        self.holdout = [h & (g != MISSING) for h, g in zip(holdout, self._geno)]
        self._observed = [(g != MISSING) & ~h for g, h in zip(self._geno, self.holdout)]
        # number of training loci of each individual, the evidence scale of its mixture
        self._n_observed = [obs.sum(axis=1) for obs in self._observed]
        # (nloci, nsteps) whether any individual is observed at a locus and time step
        self._step_observed = np.column_stack(
            [obs.any(axis=0) for obs in self._observed]
        )

        self.using_labels = using_labels
        self.labels = labels
        if using_labels:
            assert labels is not None, "`labels` must be given when `using_labels`"
            assert len(labels) == self.nsteps
            assert all(len(lab) == n for lab, n in zip(labels, n_indiv))
            assert all(np.all(np.asarray(lab) < npops) for lab in labels)
            self._labeled = [np.asarray(lab) >= 0 for lab in labels]
        else:
            self._labeled = [np.zeros(n, dtype=bool) for n in n_indiv]

        # generations between consecutive time steps, counted from generation 0
        gens = snp_data.generations
        self._dt = np.diff(gens, prepend=0).astype(float)
        self._dt[0] = max(gens[0], 1)

        self.initialize_variational_parameters()

    def __repr__(self) -> str:
        return (
            f"dynstruct.Cavi object with npops={self.npops}, nloci={self.nloci}, "
            f"nsteps={self.nsteps}, pop_size={self.pop_size:.4g}"
        )

    def initialize_variational_parameters(self) -> None:
        """Allocate and initialize every variational parameter.

        Initial frequencies are drawn around the pooled allele frequency of
        each locus, mixture parameters around the prior. Labeled individuals
        get the mass of all their observed alleles on their population.
        """
        K, L, T = self.npops, self.nloci, self.nsteps
        rng = self.rng

        p = self.snp_data.allele_freq(mask=self._observed_full())[:L]
        self.initial_freq = np.clip(
            rng.beta(10 * p + 0.5, 10 * (1 - p) + 0.5, size=(K, L)), EPS, 1 - EPS
        )
        self._process_var = drift_variance(self.initial_freq, self._dt, self.pop_size)

        self.freqs = np.zeros((T, K, L, 2))
        self.freqs[..., 0] = self.initial_freq[None, :, :]
        self.freqs[..., 1] = np.moveaxis(np.cumsum(self._process_var, axis=2), 2, 0)

        self.pseudo_outputs = np.zeros((K, L, T, 2))
        self.pseudo_outputs[..., 0] = 0.5
        self.pseudo_outputs[..., 1] = 0.25
        self._lag_cov = np.zeros((K, L, max(T - 1, 0)))

        self.theta = []
        self.sample_iter = []
        for t in range(T):
            n = self.snp_data.n_indiv(t)
            theta = self.mixture_prior[None, :] + rng.gamma(100.0, 0.01, size=(n, K))
            if np.any(self._labeled[t]):
                lab = np.asarray(self.labels[t])[self._labeled[t]]
                n_obs = self._n_observed[t][self._labeled[t]]
                theta[self._labeled[t]] = (
                    self.mixture_prior[None, :] + 2 * n_obs[:, None] * np.eye(K)[lab]
                )
            self.theta.append(theta)
            self.sample_iter.append(np.zeros(n, dtype=np.int64))

        self.phi = []
        self.zeta = []
        for t in range(T):
            e_log_theta = expected_log_dirichlet(self.theta[t])
            e_log_f, e_log_1mf = expected_log_freq(self.freqs[t, :, :, 0], self.freqs[t, :, :, 1])
            log_phi, log_zeta = auxiliary_update(
                e_log_theta[:, None, :], e_log_f.T[None, :, :], e_log_1mf.T[None, :, :]
            )
            self.phi.append(log_phi)
            self.zeta.append(log_zeta)

        self.history: Dict[str, List[float]] = {"change": [], "ho_loglik": [], "pop_size": []}

    def _observed_full(self) -> List[np.ndarray]:
        # training masks padded to all loci of `snp_data`
        masks = []
        for obs in self._observed:
            full = np.zeros((obs.shape[0], self.snp_data.n_loci), dtype=bool)
            full[:, : self.nloci] = obs
            masks.append(full)
        return masks

    def update_auxiliary_local(self, t: int, d: int, l: int) -> None:
        """Update phi[t][d, l] and zeta[t][d, l] from the current theta and freqs."""
        e_log_theta = expected_log_dirichlet(self.theta[t][d])
        e_log_f, e_log_1mf = expected_log_freq(self.freqs[t, :, l, 0], self.freqs[t, :, l, 1])
        self.phi[t][d, l], self.zeta[t][d, l] = auxiliary_update(
            e_log_theta, e_log_f, e_log_1mf
        )

    def update_auxiliary_parameters(self, locus: int) -> bool:
        """Update the auxiliary parameters of every individual at `locus`

        Same as calling `update_auxiliary_local` for every (t, d), vectorized
        over individuals.

        Returns
        -------
        bool
            whether any auxiliary parameter changed by more than AUX_TOL
        """
        changed = False
        for t in range(self.nsteps):
            e_log_theta = expected_log_dirichlet(self.theta[t])
            e_log_f, e_log_1mf = expected_log_freq(
                self.freqs[t, :, locus, 0], self.freqs[t, :, locus, 1]
            )
            log_phi, log_zeta = auxiliary_update(e_log_theta, e_log_f, e_log_1mf)
            delta = max(
                max_change(self.phi[t][:, locus], log_phi),
                max_change(self.zeta[t][:, locus], log_zeta),
            )
            changed = changed or delta > AUX_TOL
            self.phi[t][:, locus] = log_phi
            self.zeta[t][:, locus] = log_zeta
        return changed

    def update_allele_frequencies(self, locus: int) -> None:
        """Refresh the pseudo outputs at `locus` and smooth the frequency trajectories."""
        for t in range(self.nsteps):
            y, r = pseudo_observation(
                self._geno[t][:, locus],
                self._observed[t][:, locus],
                self.phi[t][:, locus],
                self.zeta[t][:, locus],
            )
            self.pseudo_outputs[:, locus, t, 0] = y
            self.pseudo_outputs[:, locus, t, 1] = r

        mean, var, lag_cov = smooth_trajectories(
            self.pseudo_outputs[:, locus, :, 0],
            self.pseudo_outputs[:, locus, :, 1],
            self.initial_freq[:, locus],
            self._process_var[:, locus, :],
            observed=np.broadcast_to(
                self._step_observed[locus], (self.npops, self.nsteps)
            ),
        )
        self.freqs[:, :, locus, 0] = mean.T
        self.freqs[:, :, locus, 1] = var.T
        self._lag_cov[:, locus, :] = lag_cov

    def update_mixture_proportions(self, locus: int) -> None:
        """Stochastic natural gradient step on theta using the evidence at `locus`

        Only individuals observed at `locus` are updated; labeled individuals
        are kept fixed when `using_labels`.
        """
        for t in range(self.nsteps):
            update = self._observed[t][:, locus] & ~self._labeled[t]
            if not np.any(update):
                continue
            target = mixture_target(
                self.mixture_prior,
                self._geno[t][update, locus],
                self.phi[t][update, locus],
                self.zeta[t][update, locus],
                self._n_observed[t][update],
            )
            rho = self.step_size(self.sample_iter[t][update])
            self.theta[t][update] = natural_gradient_step(self.theta[t][update], target, rho)
            self.sample_iter[t][update] += 1

    def _update_pop_size(self) -> None:
        """Set the population size to the maximizer of the expected log transition density."""
        mean = np.moveaxis(self.freqs[..., 0], 0, 2)
        var = np.moveaxis(self.freqs[..., 1], 0, 2)
        prev_mean = np.concatenate([self.initial_freq[:, :, None], mean[:, :, :-1]], axis=2)
        prev_var = np.concatenate([np.zeros(self.initial_freq.shape + (1,)), var[:, :, :-1]], axis=2)
        prev_cov = np.concatenate([np.zeros(self.initial_freq.shape + (1,)), self._lag_cov], axis=2)

        sq_change = (mean - prev_mean) ** 2 + var + prev_var - 2 * prev_cov
        p0 = self.initial_freq
        scale = (p0 * (1 - p0))[:, :, None] * self._dt[None, None, :]
        rate = np.mean(np.maximum(sq_change, 0) / scale)

        self.pop_size = 1.0 / (2 * max(rate, 1e-12))
        self._process_var = drift_variance(self.initial_freq, self._dt, self.pop_size)

    def check_theta_convergence(self, previous: List[np.ndarray]) -> ThetaConvergence:
        """Compare theta with a previous snapshot

        Parameters
        ----------
        previous : List[np.ndarray]
            per-time-step Dirichlet parameters, e.g. taken at the start of an epoch

        Returns
        -------
        ThetaConvergence
            `change` is the mean absolute difference of the expected mixture
            proportions, `converged` whether it is below `tol`
        """
        assert len(previous) == self.nsteps
        diff = [
            np.abs(normalize(cur) - normalize(prev)).ravel()
            for cur, prev in zip(self.theta, previous)
        ]
        diff = np.concatenate(diff)
        change = float(diff.mean()) if diff.size > 0 else 0.0
        return ThetaConvergence(converged=change < self.tol, change=change)

    def run_stochastic(self, verbose: bool = True) -> Dict[str, List[float]]:
        """Sweep over all loci until theta converges or `max_epochs` is reached

        Returns
        -------
        Dict[str, List[float]]
            per-epoch history of `change`, `ho_loglik` and `pop_size`
        """
        has_holdout = any(np.any(h) for h in self.holdout)
        for epoch in tqdm(range(self.max_epochs), desc="epoch", disable=not verbose):
            prev_theta = [theta.copy() for theta in self.theta]
            for locus in range(self.nloci):
                changed = self.update_auxiliary_parameters(locus)
                if self.skip_unchanged and epoch > 0 and not changed:
                    continue
                self.update_allele_frequencies(locus)
                self.update_mixture_proportions(locus)

            if not self.fixed_pop_size:
                self._update_pop_size()

            convergence = self.check_theta_convergence(prev_theta)
            self.history["change"].append(convergence.change)
            self.history["pop_size"].append(self.pop_size)
            msg = f"epoch {epoch + 1}: theta change={convergence.change:.4g}"
            if has_holdout:
                ho_loglik = self.compute_ho_log_likelihood()
                self.history["ho_loglik"].append(ho_loglik)
                msg += f", hold out log likelihood={ho_loglik:.6g}"
            if not self.fixed_pop_size:
                msg += f", pop_size={self.pop_size:.4g}"
            if verbose:
                dynstruct.logger.info(msg)

            if convergence.converged:
                dynstruct.logger.info(f"Converged after {epoch + 1} epochs")
                break
        else:
            dynstruct.logger.warning(
                f"Reached {self.max_epochs} epochs without convergence"
            )
        return self.history

    def compute_ho_log_likelihood(self) -> float:
        """Lower bound on the log likelihood of the hold out genotypes

        Returns
        -------
        float
            sum over held out entries of log C(2, g) + g E[log sum_k theta_k beta_k]
            + (2 - g) E[log sum_k theta_k (1 - beta_k)], each expectation bounded
            with Jensen's inequality; 0 without hold out entries
        """
        total = 0.0
        for t in range(self.nsteps):
            d_idx, l_idx = np.nonzero(self.holdout[t])
            if len(d_idx) == 0:
                continue
            g = self._geno[t][d_idx, l_idx].astype(int)
            e_log_theta = expected_log_dirichlet(self.theta[t])[d_idx]
            e_log_f, e_log_1mf = expected_log_freq(
                self.freqs[t][:, l_idx, 0].T, self.freqs[t][:, l_idx, 1].T
            )
            log_ref = logsumexp(e_log_theta + e_log_f, axis=1)
            log_other = logsumexp(e_log_theta + e_log_1mf, axis=1)
            total += float(np.sum(LOG_BINOM[g] + g * log_ref + (2 - g) * log_other))
        return total

    def expected_theta(self) -> List[np.ndarray]:
        """Per-time-step expected mixture proportions."""
        return [normalize(theta) for theta in self.theta]

    def write_results(self, out_prefix: str) -> None:
        """Write <out_prefix>.theta.tsv and <out_prefix>.freqs.tsv"""
        dynstruct.io.write_results(out_prefix, self)
