import dynstruct
import numpy as np
import pandas as pd
from ._utils import log_params, parse_int_list


def simulate(
    out_prefix: str,
    npops: int,
    generations: str,
    n_indiv: int,
    nloci: int,
    pop_size: int = 1000,
    seed: int = None,
):
    """
    Simulate temporally sampled admixed genotypes.

    Parameters
    ----------
    out_prefix : str
        prefix to the output files, <out_prefix>.geno, <out_prefix>.gen,
        <out_prefix>.labels and <out_prefix>.true_theta.tsv will be created
    npops : int
        Number of populations
    generations : str
        Comma separated sampled generations, e.g. 0,10,20
    n_indiv : int
        Number of individuals sampled at each generation
    nloci : int
        Number of loci
    pop_size : int
        Effective population size
    seed : int
        Random seed
    """
    log_params("simulate", locals())
    snp_data, truth = dynstruct.simulate.temporal_admix_geno(
        n_pop=npops,
        generations=parse_int_list(generations),
        n_indiv=n_indiv,
        n_loci=nloci,
        pop_size=pop_size,
        seed=seed,
    )
    dynstruct.io.write_genotype_file(f"{out_prefix}.geno", snp_data)
    dynstruct.io.write_generations(f"{out_prefix}.gen", snp_data)

    # labels follow the (generation, individual) order of the label file format
    labels = np.concatenate([np.argmax(theta, axis=1) for theta in truth["theta"]])
    np.savetxt(f"{out_prefix}.labels", labels, fmt="%d")

    rows = []
    for i, (t, d) in sorted(snp_data.sample_map.items()):
        rows.append([i, snp_data.generations[t], *truth["theta"][t][d]])
    df_theta = pd.DataFrame(
        rows, columns=["SAMPLE", "GEN"] + [f"POP{k + 1}" for k in range(npops)]
    ).set_index("SAMPLE")
    df_theta.to_csv(f"{out_prefix}.true_theta.tsv", sep="\t", float_format="%.6g")

    dynstruct.logger.info(
        f"results written to {out_prefix}.[geno|gen|labels|true_theta.tsv]"
    )
