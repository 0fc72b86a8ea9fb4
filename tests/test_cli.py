"""
End-to-end tests for the dynstruct command line interfaces.
"""
import os
import subprocess
import tempfile
import numpy as np
import pandas as pd
import pytest
import dynstruct
from dynstruct.utils import cd


def test_simulate_run():
    """
    dynstruct simulate --out_prefix sim ...
    dynstruct run --input sim.geno --generation_times sim.gen ...
    """
    with tempfile.TemporaryDirectory() as tmp_dir:
        with cd(tmp_dir):
            cmds = [
                "dynstruct simulate",
                "--out_prefix sim",
                "--npops 2",
                "--generations 0,10,20",
                "--n_indiv 4",
                "--nloci 30",
                "--seed 1",
            ]
            subprocess.check_call(" ".join(cmds), shell=True)
            for suffix in ["geno", "gen", "labels", "true_theta.tsv"]:
                assert os.path.exists(f"sim.{suffix}")

            cmds = [
                "dynstruct run",
                "--input sim.geno",
                "--generation_times sim.gen",
                "--output sim",
                "--npops 2",
                "--pop_size 1000",
                "--seed 0",
                "--hold_out_fraction 0.1",
                "--hold_out_seed 1",
                "--epochs 3",
            ]
            subprocess.check_call(" ".join(cmds), shell=True)

            df_theta = dynstruct.io.read_theta("sim.theta.tsv")
            assert len(df_theta) == 12
            assert list(df_theta.columns) == [
                "GEN",
                "POP1",
                "POP2",
                "ALPHA1",
                "ALPHA2",
            ]
            assert np.allclose(df_theta[["POP1", "POP2"]].sum(axis=1), 1.0)
            assert np.all(df_theta["GEN"].values == np.repeat([0, 10, 20], 4))

            df_freqs = pd.read_csv("sim.freqs.tsv", sep="\t")
            assert len(df_freqs) == 3 * 2 * 30
            assert list(df_freqs.columns) == ["GEN", "POP", "LOCUS", "MEAN", "VAR"]
            assert df_freqs["LOCUS"].min() == 1 and df_freqs["LOCUS"].max() == 30
            assert np.all(df_freqs["MEAN"].between(0, 1))

            subprocess.check_call(
                "dynstruct plot --theta sim.theta.tsv --out sim.png", shell=True
            )
            assert os.path.exists("sim.png")


def test_run_labels():
    with tempfile.TemporaryDirectory() as tmp_dir:
        with cd(tmp_dir):
            dynstruct.cli.simulate(
                out_prefix="sim",
                npops=2,
                generations="0,5",
                n_indiv=3,
                nloci=20,
                seed=3,
            )
            labels = np.loadtxt("sim.labels", dtype=int)
            labels[1::2] = -1
            np.savetxt("partial.labels", labels, fmt="%d")
            dynstruct.cli.run(
                input="sim.geno",
                generation_times="sim.gen",
                output="sim",
                npops=2,
                seed=0,
                epochs=2,
                labels="partial.labels",
            )
            df_theta = dynstruct.io.read_theta("sim.theta.tsv")
            # labeled individuals are fixed to their population
            for i in range(0, 6, 2):
                assert df_theta[f"POP{labels[i] + 1}"].iloc[i] > 0.9


def test_check_input():
    with tempfile.TemporaryDirectory() as tmp_dir:
        with cd(tmp_dir):
            with open("toy.gen", "w") as f:
                f.write("0\n0\n10\n")
            with open("toy.geno", "w") as f:
                f.write("0 1 2\n2 9 1\n")
            dynstruct.cli.check_input(
                input="toy.geno", generation_times="toy.gen", nloci=2
            )

            with open("bad.geno", "w") as f:
                f.write("0 1 2\n2 3 1\n")
            with pytest.raises(SystemExit):
                dynstruct.cli.check_input(input="bad.geno", generation_times="toy.gen")
            with open("bad.labels", "w") as f:
                f.write("0\n5\n-1\n")
            with pytest.raises(SystemExit):
                dynstruct.cli.run(
                    input="toy.geno",
                    generation_times="toy.gen",
                    output="out",
                    npops=2,
                    labels="bad.labels",
                )
            with pytest.raises(SystemExit):
                dynstruct.cli.run(
                    input="missing.geno",
                    generation_times="toy.gen",
                    output="out",
                    npops=2,
                )
