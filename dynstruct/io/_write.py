import numpy as np
import pandas as pd
import dynstruct
from ..data import SnpData


def write_theta(path: str, cavi) -> None:
    """
    Write the per-sample mixture parameters.

    Parameters
    ----------
    path : str
        The path to the file to write.
    cavi : dynstruct.Cavi
        The fitted model. Rows follow the sample order of the genotype file;
        POP columns hold expected mixture proportions and ALPHA columns the
        Dirichlet variational parameters.
    """
    snp_data = cavi.snp_data
    expected = cavi.expected_theta()
    rows = []
    for i, (t, d) in sorted(snp_data.sample_map.items()):
        rows.append([i, snp_data.generations[t], *expected[t][d], *cavi.theta[t][d]])

    pop_cols = [f"POP{k + 1}" for k in range(cavi.npops)]
    alpha_cols = [f"ALPHA{k + 1}" for k in range(cavi.npops)]
    df = pd.DataFrame(rows, columns=["SAMPLE", "GEN"] + pop_cols + alpha_cols)
    df.set_index("SAMPLE").to_csv(path, sep="\t", float_format="%.6g")


def write_freqs(path: str, cavi) -> None:
    """
    Write the allele frequency estimates, one row per (generation, population, locus).

    Parameters
    ----------
    path : str
        The path to the file to write.
    cavi : dynstruct.Cavi
        The fitted model.
    """
    n_step, n_pop, n_loci = cavi.freqs.shape[0:3]
    t_idx, k_idx, l_idx = np.meshgrid(
        np.arange(n_step), np.arange(n_pop), np.arange(n_loci), indexing="ij"
    )
    df = pd.DataFrame(
        {
            "GEN": cavi.snp_data.generations[t_idx.ravel()],
            "POP": k_idx.ravel() + 1,
            "LOCUS": l_idx.ravel() + 1,
            "MEAN": cavi.freqs[..., 0].ravel(),
            "VAR": cavi.freqs[..., 1].ravel(),
        }
    )
    df.to_csv(path, sep="\t", index=False, float_format="%.6g")


def write_results(out_prefix: str, cavi) -> None:
    """
    Write <out_prefix>.theta.tsv and <out_prefix>.freqs.tsv

    Parameters
    ----------
    out_prefix : str
        The prefix of the files to write.
    cavi : dynstruct.Cavi
        The fitted model.
    """
    write_theta(f"{out_prefix}.theta.tsv", cavi)
    write_freqs(f"{out_prefix}.freqs.tsv", cavi)
    dynstruct.logger.info(
        f"{out_prefix}.theta.tsv, {out_prefix}.freqs.tsv are created"
    )


def write_genotype_file(path: str, snp_data: SnpData) -> None:
    """
    Write genotypes in the input format: one line per locus, one
    whitespace-separated digit per sample in original sample order.

    Parameters
    ----------
    path : str
        The path to the file to write.
    snp_data : SnpData
        genotype data
    """
    order = [snp_data.sample_map[i] for i in range(snp_data.n_indiv())]
    mat = np.column_stack([snp_data.geno[t][d, :] for t, d in order])
    np.savetxt(path, mat, fmt="%d", delimiter=" ")


def write_generations(path: str, snp_data: SnpData) -> None:
    """
    Write the generation file matching `write_genotype_file`.

    Parameters
    ----------
    path : str
        The path to the file to write.
    snp_data : SnpData
        genotype data
    """
    gens = [
        snp_data.generations[snp_data.sample_map[i][0]]
        for i in range(snp_data.n_indiv())
    ]
    np.savetxt(path, np.array(gens), fmt="%d")
