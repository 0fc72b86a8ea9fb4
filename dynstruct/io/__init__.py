from ._read import (
    InputError,
    read_generations,
    check_genotype_file,
    read_snp_matrix,
    read_pop_labels,
    read_theta,
)
from ._write import (
    write_results,
    write_theta,
    write_freqs,
    write_genotype_file,
    write_generations,
)
