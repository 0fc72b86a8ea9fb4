import matplotlib.pyplot as plt
import numpy as np
from typing import Sequence


def admixture(a: np.ndarray, groups: Sequence = None, ax=None) -> None:
    """
    Stacked bar plot of mixture proportions, one bar per individual.

    Parameters
    ----------
    a: np.ndarray
        (n_indiv, n_pop) mixture proportions
    groups: Sequence
        group of each individual, e.g. the sampled generation. Individuals are
        sorted by group, groups are separated by vertical lines and named on
        the x axis.
    ax: matplotlib.Axes
        A matplotlib axes object to plot on. If None, will create a new one.
    """
    a = np.asarray(a)
    n_indiv, n_pop = a.shape
    if ax is None:
        ax = plt.gca()

    if groups is not None:
        groups = np.asarray(groups)
        order = np.argsort(groups, kind="stable")
        a, groups = a[order], groups[order]

    cmap = plt.get_cmap("tab10")
    x = np.arange(n_indiv)
    bottom = np.cumsum(a, axis=1) - a
    for i_pop in range(n_pop):
        ax.bar(
            x,
            height=a[:, i_pop],
            width=1,
            bottom=bottom[:, i_pop],
            color=cmap(i_pop),
            label=f"POP{i_pop + 1}",
        )

    if groups is not None:
        names, start = np.unique(groups, return_index=True)
        stop = np.append(start[1:], n_indiv)
        for s in start[1:]:
            ax.axvline(s - 0.5, color="black", lw=1)
        ax.set_xticks((start + stop - 1) / 2)
        ax.set_xticklabels([str(name) for name in names])
    else:
        ax.set_xticks([])
    ax.tick_params(axis="y", left=False, labelleft=False)
    ax.set_xlim(-0.5, n_indiv - 0.5)
    ax.set_ylim(0, 1)


def freq_trajectory(
    freqs: np.ndarray,
    generations: Sequence[int],
    locus: int,
    n_sd: float = 2.0,
    ax=None,
) -> None:
    """
    Plot the estimated allele frequency of each population over time at one locus.

    Parameters
    ----------
    freqs: np.ndarray
        (n_step, n_pop, n_loci, 2) means and variances, as in `Cavi.freqs`
    generations: Sequence[int]
        sampled generation of each time step
    locus: int
        locus to plot
    n_sd: float
        width of the shaded band in posterior standard deviations
    ax: matplotlib.Axes
        A matplotlib axes object to plot on. If None, will create a new one.
    """
    if ax is None:
        ax = plt.gca()
    cmap = plt.get_cmap("tab10")
    n_pop = freqs.shape[1]
    for i_pop in range(n_pop):
        mean = freqs[:, i_pop, locus, 0]
        sd = np.sqrt(freqs[:, i_pop, locus, 1])
        ax.plot(generations, mean, "-o", color=cmap(i_pop), label=f"POP{i_pop + 1}")
        ax.fill_between(
            generations,
            np.clip(mean - n_sd * sd, 0, 1),
            np.clip(mean + n_sd * sd, 0, 1),
            color=cmap(i_pop),
            alpha=0.2,
        )
    ax.set_xlabel("Generation")
    ax.set_ylabel("Allele frequency")
    ax.set_ylim(0, 1)
    ax.legend()
