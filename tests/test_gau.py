import numpy as np
from numpy import linalg
import numpy.testing as npt
from utils import get_rstate, get_printing

import minins  # noqa
from minins import utils as mfunc  # noqa
"""
Run a series of basic tests to check whether anything huge is broken.

"""

nlive = 500
printing = get_printing()


def bootstrap_tol(results, rstate):
    """ Compute the uncertainty of means/covs by doing bootstrapping """
    n = len(results['logz'])
    niter = 50
    pos = results.samples
    wts = results.importance_weights()
    means = []
    covs = []

    for i in range(niter):
        sub = rstate.uniform(size=n) < wts / wts.max()
        ind0 = np.nonzero(sub)[0]
        ind1 = rstate.choice(ind0, size=len(ind0), replace=True)
        mean = pos[ind1].mean(axis=0)
        cov = np.cov(pos[ind1].T)
        means.append(mean)
        covs.append(cov)
    return np.std(means, axis=0), np.std(covs, axis=0)


def check_results(results,
                  mean_truth,
                  cov_truth,
                  logz_truth,
                  mean_tol,
                  cov_tol,
                  logz_tol,
                  sig=4):
    """ Check if means and covariances match match expectations
    within the tolerances

    """
    results.summary()
    pos = results.samples
    wts = np.exp(results['logwt'] - results['logz'][-1])
    assert np.allclose(results.importance_weights(), wts / wts.sum())
    mean, cov = mfunc.mean_and_cov(pos, wts)
    logz = results['logz'][-1]
    logzerr = results['logzerr'][-1]
    assert logzerr < 10  # check that it is not too large
    npt.assert_array_less(np.abs(mean - mean_truth), sig * mean_tol)
    npt.assert_array_less(np.abs(cov - cov_truth), sig * cov_tol)
    npt.assert_array_less(np.abs((logz_truth - logz)), sig * logz_tol)


# GAUSSIAN TEST


class Gaussian:

    def __init__(self, corr=.5, prior_win=10):
        self.ndim = 3
        self.mean = np.linspace(-1, 1, self.ndim)
        self.cov = np.identity(self.ndim)  # set covariance to identity matrix
        self.cov[self.cov ==
                 0] = corr  # set off-diagonal terms
        self.cov_inv = linalg.inv(self.cov)  # precision matrix
        self.lnorm = -0.5 * (np.log(2 * np.pi) * self.ndim +
                             np.log(linalg.det(self.cov)))
        self.prior_win = prior_win  # +/- on both sides
        self.logz_truth = self.ndim * (-np.log(2 * self.prior_win))
        self.prior = minins.UniformPrior(-np.ones(self.ndim) * prior_win,
                                         np.ones(self.ndim) * prior_win)

    # 3-D correlated multivariate normal log-likelihood
    def loglikelihood(self, x):
        """Multivariate normal log-likelihood."""

        return -0.5 * np.dot(
            (x - self.mean), np.dot(self.cov_inv,
                                    (x - self.mean))) + self.lnorm


def check_results_gau(results, g, rstate, sig=4, logz_tol=None):
    if logz_tol is None:
        logz_tol = results['logzerr'][-1]
    mean_tol, cov_tol = bootstrap_tol(results, rstate)
    # just check that resample_equal works
    mfunc.resample_equal(results.samples, results.importance_weights())
    results.samples_equal()
    check_results(results,
                  g.mean,
                  g.cov,
                  g.logz_truth,
                  mean_tol,
                  cov_tol,
                  logz_tol,
                  sig=sig)


def test_gaussian():
    sig = 4
    rstate = get_rstate()
    g = Gaussian()
    sampler = minins.NestedSampler(g.loglikelihood,
                                   g.prior,
                                   nlive=nlive,
                                   min_nlive=100,
                                   rstate=rstate)
    sampler.run_nested(print_progress=printing)
    results = sampler.results
    assert results.status == 'converged'
    check_results_gau(results, g, rstate, sig=sig)
    # the number of live points was reduced towards the end of the run
    assert results.samples_n.min() < nlive
    assert results.samples_n.min() >= 1
    # check summary
    results.summary()


def test_generator():
    # Test that we can use the sampler as a generator
    rstate = get_rstate()
    g = Gaussian()
    sampler = minins.NestedSampler(g.loglikelihood,
                                   g.prior,
                                   nlive=nlive,
                                   rstate=rstate)
    for it in sampler.sample():
        pass
    for it in sampler.add_live_points():
        pass
    res = sampler.results
    check_results_gau(res, g, rstate)
