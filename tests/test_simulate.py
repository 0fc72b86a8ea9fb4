import numpy as np
import dynstruct


def test_temporal_admix_geno():
    snp_data, truth = dynstruct.simulate.temporal_admix_geno(
        n_pop=3, generations=[0, 10, 25], n_indiv=[4, 5, 6], n_loci=50, seed=0
    )
    assert snp_data.n_step == 3
    assert snp_data.n_loci == 50
    assert [snp_data.n_indiv(t) for t in range(3)] == [4, 5, 6]
    for g in snp_data.geno:
        assert np.all(np.isin(g, [0, 1, 2]))

    assert truth["freqs"].shape == (3, 3, 50)
    assert truth["initial_freq"].shape == (3, 50)
    assert np.all((truth["freqs"] >= 0) & (truth["freqs"] <= 1))
    # frequencies at generation 0 have not drifted
    assert np.allclose(truth["freqs"][0], truth["initial_freq"])
    for t, theta in enumerate(truth["theta"]):
        assert theta.shape == (snp_data.n_indiv(t), 3)
        assert np.allclose(theta.sum(axis=1), 1.0)


def test_seed():
    kwargs = dict(n_pop=2, generations=[5, 10], n_indiv=3, n_loci=10, seed=42)
    snp_data1, truth1 = dynstruct.simulate.temporal_admix_geno(**kwargs)
    snp_data2, truth2 = dynstruct.simulate.temporal_admix_geno(**kwargs)
    assert all(np.all(g1 == g2) for g1, g2 in zip(snp_data1.geno, snp_data2.geno))
    assert np.allclose(truth1["freqs"], truth2["freqs"])
