import math
import numpy as np
import pytest
from minins.utils import (EvidenceAccumulator, integrate_step,
                          compute_integrals, quantile, parameter_summary,
                          mean_and_cov, resample_equal, get_neff_from_logwt)
from utils import get_rstate


def initial_acc():
    return EvidenceAccumulator(logz=-1.e300,
                               logzvar=0.,
                               h=0.,
                               logvol=0.,
                               loglstar=-1.e300)


def test_integrate_matches_compute_integrals():
    rstate = get_rstate()
    nlive = 50
    logl = np.sort(rstate.normal(size=300))
    acc = initial_acc()
    logvols, logzs, logwts = [], [], []
    for ll in logl:
        acc, logwt, clamped = integrate_step(acc, ll,
                                             math.log((nlive + 1.) / nlive))
        assert not clamped
        logvols.append(acc.logvol)
        logzs.append(acc.logz)
        logwts.append(logwt)
    logwt, logz, logzvar, h = compute_integrals(logl=logl, logvol=logvols)
    assert np.allclose(logwt, logwts)
    assert np.allclose(logz, logzs)
    assert np.all(logzvar >= 0)
    assert np.isclose(h[-1], acc.h, rtol=1e-6, atol=1e-8)


@pytest.mark.parametrize('dlogvol', [0., -1., np.nan])
def test_integrate_clamps(dlogvol):
    acc = initial_acc()._replace(logz=-2., logvol=-3.)
    acc2, logwt, clamped = integrate_step(acc, 1., dlogvol)
    assert clamped
    assert np.isneginf(acc2.logvol)
    assert np.isneginf(logwt)
    assert acc2.logz == acc.logz
    assert acc2.loglstar == 1.


def test_integrate_no_volume_left():
    acc = initial_acc()._replace(logz=-2., logvol=-np.inf)
    acc2, logwt, clamped = integrate_step(acc, 1., 0.1)
    assert not clamped
    assert np.isneginf(logwt)
    assert acc2.logz == -2.


def test_quantile():
    x = np.arange(101.)
    assert np.allclose(quantile(x, [0.1, 0.5]), [10, 50])
    w = np.ones(101)
    assert np.isclose(quantile(x, 0.5, weights=w)[0], 50, atol=1)
    with pytest.raises(ValueError):
        quantile(x, 1.5)
    with pytest.raises(ValueError):
        quantile(x, 0.5, weights=w[:-1])


def test_parameter_summary():
    rstate = get_rstate()
    samples = rstate.normal(size=(20000, 3)) + np.array([1, 2, 3])
    weights = np.ones(len(samples)) / len(samples)
    summary = parameter_summary(samples, weights, credible_level=68.3)
    assert summary.shape == (3, 7)
    # mean, median and mode of a unit normal
    assert np.allclose(summary[:, 0], [1, 2, 3], atol=0.05)
    assert np.allclose(summary[:, 1], [1, 2, 3], atol=0.05)
    assert np.allclose(summary[:, 2], [1, 2, 3], atol=0.5)
    assert np.allclose(summary[:, 3], np.array([1, 2, 3])**2 + 1, atol=0.2)
    assert np.allclose(summary[:, 5] - summary[:, 4], 2, atol=0.1)
    assert np.all(summary[:, 6] == 68.3)
    with pytest.raises(ValueError):
        parameter_summary(samples, weights, credible_level=100)


def test_mean_cov_resample():
    rstate = get_rstate()
    samples = rstate.normal(size=(5000, 2))
    weights = np.ones(len(samples)) / len(samples)
    mean, cov = mean_and_cov(samples, weights)
    assert np.allclose(mean, 0, atol=0.1)
    assert np.allclose(cov, np.eye(2), atol=0.1)
    eq = resample_equal(samples, weights, rstate=rstate)
    assert eq.shape == samples.shape
    assert np.isclose(get_neff_from_logwt(np.zeros(10)), 10)
