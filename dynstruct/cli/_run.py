import sys
import numpy as np
import dynstruct
from ._utils import log_params


def run(
    input: str,
    generation_times: str,
    output: str,
    npops: int,
    nloci: int = None,
    pop_size: float = None,
    seed: int = None,
    hold_out_fraction: float = 0.0,
    hold_out_seed: int = None,
    epochs: int = 50,
    tol: float = 1e-4,
    step_size_power: float = 0.6,
    labels: str = None,
    mixture_prior: float = None,
):
    """Fit population allele frequency trajectories and mixture proportions

    Parameters
    ----------
    input : str
        Path to the genotype file, one line per locus, one entry per sample
        with 0, 1, 2 or 9 (missing)
    generation_times : str
        Path to the generation file, one generation time per sample
    output : str
        Prefix of the output files, <output>.theta.tsv and <output>.freqs.tsv
        will be created
    npops : int
        Number of populations
    nloci : int
        Number of loci to use (default: all loci in `input`)
    pop_size : float
        Effective population size. Estimated when not given.
    seed : int
        Random seed of the initialization
    hold_out_fraction : float
        Fraction of genotype entries held out to evaluate the fit
    hold_out_seed : int
        Random seed of the hold out selection, use the same seed to compare
        fits with different `npops` on the same hold out set
    epochs : int
        Maximum number of passes over all loci
    tol : float
        Convergence tolerance on the change of mixture proportions
    step_size_power : float
        Forgetting rate of the step size, in (0.5, 1]
    labels : str
        Path to the population label file, one label per individual ordered by
        generation, negative for unknown. Labeled individuals are fixed.
    mixture_prior : float
        Dirichlet prior of each population (default: 1 / npops)
    """
    log_params("run", locals())

    try:
        snp_data = dynstruct.io.read_snp_matrix(input, generation_times, nloci=nloci)
        if labels is not None:
            pop_labels = dynstruct.io.read_pop_labels(labels, snp_data, npops=npops)
        else:
            pop_labels = None
    except dynstruct.io.InputError as e:
        dynstruct.logger.error(str(e))
        sys.exit(1)

    if hold_out_fraction > 0:
        holdout = dynstruct.data.select_holdout(
            snp_data, hold_out_fraction, np.random.default_rng(hold_out_seed)
        )
    else:
        holdout = None

    if mixture_prior is None:
        mixture_prior = 1.0 / npops

    model = dynstruct.Cavi(
        npops=npops,
        mixture_prior=np.full(npops, mixture_prior),
        pop_size=pop_size,
        snp_data=snp_data,
        rng=np.random.default_rng(seed),
        nloci=snp_data.n_loci,
        labels=pop_labels,
        using_labels=pop_labels is not None,
        holdout=holdout,
        max_epochs=epochs,
        tol=tol,
        step_size=dynstruct.inference.RobbinsMonro(kappa=step_size_power),
    )
    model.run_stochastic()

    if holdout is not None:
        dynstruct.logger.info(
            f"Hold out log likelihood: {model.compute_ho_log_likelihood():.6g}"
        )
    model.write_results(output)


def check_input(input: str, generation_times: str, nloci: int = None):
    """Validate the genotype and generation files without fitting

    Parameters
    ----------
    input : str
        Path to the genotype file
    generation_times : str
        Path to the generation file
    nloci : int
        Expected number of loci
    """
    log_params("check-input", locals())
    try:
        generations, gen_sampled = dynstruct.io.read_generations(generation_times)
        n_found = dynstruct.io.check_genotype_file(input, nloci, len(generations))
    except dynstruct.io.InputError as e:
        dynstruct.logger.error(str(e))
        sys.exit(1)
    dynstruct.logger.info(
        f"{input}: {n_found} loci, {len(generations)} samples "
        f"at {len(gen_sampled)} time points"
    )
