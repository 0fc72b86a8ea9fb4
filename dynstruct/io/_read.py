import numpy as np
import pandas as pd
from typing import List, Tuple
import dynstruct
from ..data import SnpData, MISSING

VALID_GENOTYPES = "0129"


class InputError(ValueError):
    """Unrecoverable problem with an input file."""


def _open(path: str):
    try:
        return open(path)
    except OSError as e:
        raise InputError(f"cannot open {path}") from e


def read_generations(path: str) -> Tuple[List[int], List[int]]:
    """Read the generation file

    The generation file contains one integer generation time per line, one line
    per sample, in the column order of the genotype file.

    Parameters
    ----------
    path : str
        path to the generation file

    Returns
    -------
    generations : List[int]
        generation time of each sample, in file order
    gen_sampled : List[int]
        sorted unique generation times, i.e. the time steps
    """
    generations = []
    with _open(path) as f:
        for line_i, line in enumerate(f, start=1):
            tokens = line.split()
            if len(tokens) == 0:
                continue
            if len(tokens) > 1:
                raise InputError(
                    f"{path}: line {line_i} has more than one generation time"
                )
            try:
                generations.append(int(tokens[0]))
            except ValueError:
                raise InputError(
                    f"{path}: line {line_i} has an invalid generation time '{tokens[0]}'"
                )

    # remove duplicate sample times so samples can be aggregated by generation
    gen_sampled = sorted(set(generations))
    return generations, gen_sampled


def check_genotype_file(path: str, nloci: int, n_columns: int) -> int:
    """Validate the genotype file

    Each line holds one locus; every non-whitespace character is the genotype
    of one sample. Blank lines are skipped.

    Parameters
    ----------
    path : str
        path to the genotype file
    nloci : int
        expected number of loci, a mismatch is only reported as a warning.
        No check is done if None.
    n_columns : int
        number of samples in the generation file

    Returns
    -------
    int
        number of loci found

    Raises
    ------
    InputError
        when an entry is not one of 0, 1, 2, 9 or when a line does not have
        `n_columns` entries
    """
    n_found = 0
    with _open(path) as f:
        for line_i, line in enumerate(f, start=1):
            entries = "".join(line.split())
            if len(entries) == 0:
                continue
            n_found += 1

            for col_i, c in enumerate(entries, start=1):
                if c not in VALID_GENOTYPES:
                    raise InputError(
                        f"{path}: line {line_i} column {col_i} has an invalid entry "
                        f"'{c}'. Genotypes must be 0, 1, or 2 if known, "
                        f"{MISSING} if missing or unknown."
                    )

            if len(entries) != n_columns:
                raise InputError(
                    f"{path}: line {line_i} has {len(entries)} samples, "
                    f"but generation file has {n_columns}."
                )

            nonmissing = len(entries) - entries.count(str(MISSING))
            if nonmissing == 0:
                dynstruct.logger.warning(
                    f"{path}: line {line_i} has no nonmissing entries"
                )
            elif nonmissing == 1:
                dynstruct.logger.warning(
                    f"{path}: line {line_i} only has 1 nonmissing entry"
                )

    if nloci is not None and nloci != n_found:
        dynstruct.logger.warning(
            f"{path}: {nloci} loci were specified, but {n_found} were found"
        )
    return n_found


def read_snp_matrix(path: str, gen_path: str, nloci: int = None) -> SnpData:
    """Read the genotype matrix

    Parameters
    ----------
    path : str
        path to the genotype file (one line per locus)
    gen_path : str
        path to the generation file (one line per sample)
    nloci : int, optional
        number of loci to read, all loci are read when None

    Returns
    -------
    SnpData
        genotypes grouped by sampled generation
    """
    dynstruct.logger.info(f"Checking input file {path}")
    generations, gen_sampled = read_generations(gen_path)
    if len(generations) == 0:
        raise InputError(f"{gen_path}: no generation times found")
    n_found = check_genotype_file(path, nloci, len(generations))
    if n_found == 0:
        raise InputError(f"{path}: no loci found")
    if nloci is None or nloci > n_found:
        nloci = n_found

    dynstruct.logger.info(
        f"Found {len(generations)} samples at {len(gen_sampled)} time points"
    )
    dynstruct.logger.info(f"Using {nloci} loci")

    mat = np.zeros((nloci, len(generations)), dtype=np.int8)
    l = 0
    with _open(path) as f:
        for line in f:
            if l == nloci:
                break
            entries = "".join(line.split())
            if len(entries) == 0:
                continue
            mat[l, :] = np.frombuffer(entries.encode(), dtype=np.uint8) - ord("0")
            l += 1

    generations = np.array(generations)
    geno = [mat[:, generations == gen].T.copy() for gen in gen_sampled]

    # map from original sample index to (time step, row) in the genotype matrices
    sample_map = dict()
    gen_to_nsamples = {gen: 0 for gen in gen_sampled}
    for i, gen in enumerate(generations):
        sample_map[i] = (gen_sampled.index(gen), gen_to_nsamples[gen])
        gen_to_nsamples[gen] += 1

    return SnpData(geno=geno, generations=gen_sampled, sample_map=sample_map)


def read_pop_labels(
    path: str, snp_data: SnpData, npops: int = None
) -> List[np.ndarray]:
    """Read population labels

    One integer per line, ordered by time step and then by individual within a
    time step. A label in [0, npops) is a known population, a negative label
    marks an individual of unknown population.

    Parameters
    ----------
    path : str
        path to the label file
    snp_data : SnpData
        genotype data the labels refer to
    npops : int, optional
        number of populations, labels must be smaller. No check is done if None.

    Returns
    -------
    List[np.ndarray]
        per-time-step (n_indiv_t, ) integer labels
    """
    values = []
    with _open(path) as f:
        for line_i, line in enumerate(f, start=1):
            tokens = line.split()
            if len(tokens) == 0:
                continue
            if len(tokens) > 1:
                raise InputError(f"{path}: line {line_i} has more than one label")
            try:
                label = int(tokens[0])
            except ValueError:
                raise InputError(f"{path}: line {line_i} has an invalid label")
            if npops is not None and label >= npops:
                raise InputError(
                    f"{path}: line {line_i} has label {label}, but there are only "
                    f"{npops} populations (labels 0 to {npops - 1}, negative if unknown)"
                )
            values.append(label)

    n_indiv = snp_data.n_indiv()
    if len(values) != n_indiv:
        raise InputError(
            f"{path}: found {len(values)} labels, but data has {n_indiv} individuals"
        )

    labels = []
    start = 0
    for t in range(snp_data.n_step):
        stop = start + snp_data.n_indiv(t)
        labels.append(np.array(values[start:stop], dtype=int))
        start = stop
    return labels


def read_theta(path: str) -> pd.DataFrame:
    """Read the mixture proportions written by `write_results`

    Parameters
    ----------
    path : str
        path to <out>.theta.tsv

    Returns
    -------
    pd.DataFrame
        one row per sample, indexed by sample
    """
    return pd.read_csv(path, sep="\t", index_col=0)
