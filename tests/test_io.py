import os
import tempfile
import numpy as np
import pytest
import structlog
import dynstruct
from dynstruct.io import InputError
from dynstruct.utils import cd


def _write(path, lines):
    with open(path, "w") as f:
        f.write("\n".join(lines) + "\n")


def test_read_generations():
    with tempfile.TemporaryDirectory() as tmp_dir:
        with cd(tmp_dir):
            _write("toy.gen", ["3", "1", "3", "2"])
            generations, gen_sampled = dynstruct.io.read_generations("toy.gen")
            assert generations == [3, 1, 3, 2]
            assert gen_sampled == [1, 2, 3]

            _write("bad.gen", ["3", "1 2"])
            with pytest.raises(InputError, match="line 2"):
                dynstruct.io.read_generations("bad.gen")

    with pytest.raises(InputError, match="cannot open"):
        dynstruct.io.read_generations("/nonexistent/toy.gen")


def test_check_genotype_file():
    with tempfile.TemporaryDirectory() as tmp_dir:
        with cd(tmp_dir):
            _write("toy.geno", ["0 1 2 9", "2 2 1 0"])
            assert dynstruct.io.check_genotype_file("toy.geno", 2, 4) == 2

            # entries without delimiter are read the same way
            _write("nodelim.geno", ["0129", "2210"])
            assert dynstruct.io.check_genotype_file("nodelim.geno", 2, 4) == 2

            _write("invalid.geno", ["0 1 2 9", "2 2 5 0"])
            with pytest.raises(InputError, match="line 2 column 3"):
                dynstruct.io.check_genotype_file("invalid.geno", 2, 4)

            _write("short.geno", ["0 1 2 9", "2 2 1"])
            with pytest.raises(InputError, match="line 2 has 3 samples"):
                dynstruct.io.check_genotype_file("short.geno", 2, 4)


def test_check_genotype_file_warnings():
    with tempfile.TemporaryDirectory() as tmp_dir:
        with cd(tmp_dir):
            _write("toy.geno", ["9 9 9", "9 1 9", "0 1 2"])
            with structlog.testing.capture_logs() as logs:
                n_found = dynstruct.io.check_genotype_file("toy.geno", 5, 3)
    assert n_found == 3
    warnings = [log["event"] for log in logs if log["log_level"] == "warning"]
    assert any("line 1 has no nonmissing entries" in w for w in warnings)
    assert any("line 2 only has 1 nonmissing entry" in w for w in warnings)
    assert any("5 loci were specified, but 3 were found" in w for w in warnings)


def test_read_snp_matrix():
    with tempfile.TemporaryDirectory() as tmp_dir:
        with cd(tmp_dir):
            _write("toy.gen", ["3", "1", "3", "2"])
            _write("toy.geno", ["0 1 2 9", "2 2 1 0", "1 1 1 1"])
            snp_data = dynstruct.io.read_snp_matrix("toy.geno", "toy.gen", nloci=2)

    assert snp_data.n_step == 3
    assert snp_data.n_loci == 2
    assert np.all(snp_data.generations == [1, 2, 3])
    assert [snp_data.n_indiv(t) for t in range(3)] == [1, 1, 2]
    assert snp_data.n_indiv() == 4
    assert snp_data.max_indiv() == 2
    assert snp_data.sample_map == {0: (2, 0), 1: (0, 0), 2: (2, 1), 3: (1, 0)}
    # sample 0 was sampled at generation 3
    assert np.all(snp_data.geno[2][0] == [0, 2])
    assert np.all(snp_data.geno[2][1] == [2, 1])
    assert snp_data.get(0, 0, 0) == 1
    assert snp_data.get(1, 0, 0) == dynstruct.data.MISSING


def test_read_pop_labels():
    snp_data = dynstruct.SnpData(
        geno=[np.zeros((2, 3)), np.zeros((1, 3))], generations=[0, 10]
    )
    with tempfile.TemporaryDirectory() as tmp_dir:
        with cd(tmp_dir):
            _write("toy.labels", ["1", "-1", "0"])
            labels = dynstruct.io.read_pop_labels("toy.labels", snp_data)
            assert np.all(labels[0] == [1, -1])
            assert np.all(labels[1] == [0])

            _write("short.labels", ["1", "0"])
            with pytest.raises(InputError, match="found 2 labels"):
                dynstruct.io.read_pop_labels("short.labels", snp_data)

            _write("long.labels", ["1", "0", "0", "1"])
            with pytest.raises(InputError, match="found 4 labels"):
                dynstruct.io.read_pop_labels("long.labels", snp_data)

            _write("range.labels", ["1", "5", "0"])
            with pytest.raises(InputError, match="line 2 has label 5"):
                dynstruct.io.read_pop_labels("range.labels", snp_data, npops=2)


def test_write_input_files():
    snp_data, _ = dynstruct.simulate.temporal_admix_geno(
        n_pop=2, generations=[0, 5, 10], n_indiv=[3, 2, 4], n_loci=20, seed=1
    )
    with tempfile.TemporaryDirectory() as tmp_dir:
        with cd(tmp_dir):
            dynstruct.io.write_genotype_file("sim.geno", snp_data)
            dynstruct.io.write_generations("sim.gen", snp_data)
            assert os.path.exists("sim.geno")
            snp_data2 = dynstruct.io.read_snp_matrix("sim.geno", "sim.gen")

    assert snp_data2.n_loci == 20
    assert np.all(snp_data2.generations == [0, 5, 10])
    for g, g2 in zip(snp_data.geno, snp_data2.geno):
        assert np.all(g == g2)


def test_read_snp_matrix_empty():
    with tempfile.TemporaryDirectory() as tmp_dir:
        with cd(tmp_dir):
            _write("toy.gen", ["0", "5"])
            _write("toy.geno", ["0 1", "2 2"])
            _write("empty.gen", [""])
            _write("empty.geno", ["", ""])
            with pytest.raises(InputError, match="no generation times"):
                dynstruct.io.read_snp_matrix("toy.geno", "empty.gen")
            with pytest.raises(InputError, match="no loci"):
                dynstruct.io.read_snp_matrix("empty.geno", "toy.gen")
