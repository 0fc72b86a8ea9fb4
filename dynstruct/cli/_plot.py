import dynstruct
from ._utils import log_params


def plot(theta: str, out: str):
    """Plot mixture proportions to a file

    Parameters
    ----------
    theta : str
        path to the <output>.theta.tsv file written by `dynstruct run`
    out : str
        path to the output figure
    """
    log_params("plot", locals())

    import matplotlib.pyplot as plt

    df_theta = dynstruct.io.read_theta(theta)
    pop_cols = [col for col in df_theta.columns if col.startswith("POP")]

    fig, ax = plt.subplots(figsize=(max(4, 0.05 * len(df_theta)), 2), dpi=150)
    dynstruct.plot.admixture(
        df_theta[pop_cols].values, groups=df_theta["GEN"].values, ax=ax
    )
    ax.set_xlabel("Generation")
    plt.savefig(out, bbox_inches="tight")
    plt.close(fig)
    dynstruct.logger.info(f"Admixture plot saved to {out}")
