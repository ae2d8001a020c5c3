#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
A collection of useful functions: run bookkeeping, evidence integration,
random number generation and posterior summaries.

"""

import math
import logging
from collections import namedtuple
from functools import partial
import warnings
import numpy as np
from scipy.special import logsumexp

try:
    import tqdm
except ImportError:
    tqdm = None

from .results import print_fn

__all__ = [
    "RunRecord", "IteratorResult", "EvidenceAccumulator", "integrate_step",
    "progress_integration", "compute_integrals", "get_random_generator",
    "get_print_func", "get_neff_from_logwt",
    "mean_and_cov", "quantile", "resample_equal", "parameter_summary"
]

logger = logging.getLogger(__name__)

SQRTEPS = math.sqrt(float(np.finfo(np.float64).eps))

# Placeholder log-likelihood for points with logl = -inf.
_LOWL_VAL = -1e300

IteratorResult = namedtuple('IteratorResult', [
    'worst', 'vstar', 'loglstar', 'logvol', 'logwt', 'logz', 'logzvar', 'h',
    'nc', 'worst_it', 'nlive', 'nclusters', 'enlarge', 'eff', 'delta_logz'
])

# State of the evidence integral after a given dead point.
EvidenceAccumulator = namedtuple(
    'EvidenceAccumulator', ['logz', 'logzvar', 'h', 'logvol', 'loglstar'])


class RunRecord:
    """
    This is the class that saves the results of the nested
    run so it is basically a collection of various lists of
    quantities
    """

    def __init__(self):
        D = {}
        keys = [
            'id',  # live point labels
            'v',  # parameter samples
            'logl',  # loglikelihoods of samples
            'logvol',  # expected ln(volume)
            'logwt',  # ln(weights)
            'logz',  # cumulative ln(evidence)
            'logzvar',  # cumulative error on ln(evidence)
            'h',  # cumulative information
            'nc',  # number of calls at each iteration
            'it',  # iteration the live (now dead) point was proposed
            'n',  # number of live points interior to dead point
            'cluster',  # cluster the dead point belonged to
            'nclusters',  # number of clusters at a specific iteration
            'enlarge'  # enlargement fraction at each iteration
        ]
        for k in keys:
            D[k] = []
        self.D = D

    def append(self, newD):
        """
        append new information to the RunRecord in the form a dictionary
        i.e. run.append(dict(logl=3., nc=44))
        """
        for k in newD.keys():
            self.D[k].append(newD[k])

    def __getitem__(self, k):
        return self.D[k]

    def __setitem__(self, k, v):
        self.D[k] = v

    def __len__(self):
        return len(self.D['logl'])


def get_print_func(print_func, print_progress):
    pbar = None
    if print_func is None:
        if tqdm is None or not print_progress:
            print_func = print_fn
        else:
            pbar = tqdm.tqdm()
            print_func = partial(print_fn, pbar=pbar)
    return pbar, print_func


def get_random_generator(seed=None):
    """
    Return a random generator (using the seed provided if available)
    """
    return np.random.Generator(np.random.PCG64(seed))


def get_neff_from_logwt(logwt):
    """
    Compute the number of effective samples from an array of unnormalized
    log-weights. We use Kish Effective Sample Size (ESS)  formula.

    Parameters:
    logwt: numpy array
        Array of unnormalized weights

    Returns:
    neff: int
        The effective number of samples
    """

    W = np.exp(logwt - logwt.max())
    return W.sum()**2 / (W**2).sum()


def progress_integration(loglstar, loglstar_new, logz, logzvar, logvol,
                         dlogvol, h):
    """
    This is the calculation of weights and logz/var estimates one step at the
    time.
    Importantly the calculation of H is somewhat different from
    compute_integrals as incomplete integrals of H() of require knowing Z

    Return logwt, logz, logzvar, h
    """
    # Compute relative contribution to results.
    logdvol = logsumexp(a=[logvol + dlogvol, logvol], b=[0.5, -0.5])
    logwt = np.logaddexp(loglstar_new, loglstar) + logdvol  # weight
    logz_new = np.logaddexp(logz, logwt)  # ln(evidence)
    lzterm = (math.exp(loglstar - logz_new + logdvol) * loglstar +
              math.exp(loglstar_new - logz_new + logdvol) * loglstar_new)
    h_new = (lzterm + math.exp(logz - logz_new) * (h + logz) - logz_new
             )  # information
    dh = h_new - h

    logzvar_new = logzvar + dh * dlogvol
    # var[ln(evidence)] estimate
    return logwt, logz_new, logzvar_new, h_new


def integrate_step(acc, loglstar_new, dlogvol):
    """
    Fold one dead point into the evidence integral.

    Parameters
    ----------
    acc : :class:`EvidenceAccumulator`
        State of the integral before the dead point.

    loglstar_new : float
        Log-likelihood of the dead point.

    dlogvol : float
        Expected shrinkage of ln(prior volume) caused by removing the point.
        Must be positive.

    Returns
    -------
    acc : :class:`EvidenceAccumulator`
        State of the integral including the dead point.

    logwt : float
        Ln(posterior weight) of the dead point.

    clamped : bool
        Whether the remaining prior volume had to be clamped to zero.

    """
    clamped = False
    logvol = acc.logvol - dlogvol
    if np.isnan(logvol) or not (logvol < acc.logvol or
                                np.isneginf(acc.logvol)):
        logger.warning(
            'Remaining prior volume became invalid (logvol=%s after %s); '
            'clamping it to zero', logvol, acc.logvol)
        logvol = -np.inf
        clamped = True
    if np.isneginf(logvol):
        # No prior mass left: the point carries no weight.
        logwt = -np.inf
        return (EvidenceAccumulator(logz=acc.logz,
                                    logzvar=acc.logzvar,
                                    h=acc.h,
                                    logvol=logvol,
                                    loglstar=loglstar_new), logwt, clamped)
    logwt, logz, logzvar, h = progress_integration(acc.loglstar,
                                                   loglstar_new, acc.logz,
                                                   acc.logzvar, logvol,
                                                   dlogvol, acc.h)
    return (EvidenceAccumulator(logz=logz,
                                logzvar=logzvar,
                                h=h,
                                logvol=logvol,
                                loglstar=loglstar_new), logwt, clamped)


def compute_integrals(logl=None, logvol=None):
    """
    Compute weights, logzs and variances using quadratic estimator.
    Returns logwt, logz, logzvar, h

    Parameters:
    -----------
    logl: array
        array of log likelihoods
    logvol: array
        array of log volumes
    """
    # pylint: disable=invalid-unary-operand-type
    assert logl is not None
    assert logvol is not None
    logl = np.asarray(logl)
    logvol = np.asarray(logvol)

    loglstar_pad = np.concatenate([[-1.e300], logl])

    # we want log(exp(logvol_i)-exp(logvol_(i+1)))
    # assuming that logvol0 = 0
    # log(exp(LV_{i})-exp(LV_{i+1})) =
    # = LV{i} + log(1-exp(LV_{i+1}-LV{i}))
    # = LV_{i+1} - (LV_{i+1} -LV_i) + log(1-exp(LV_{i+1}-LV{i}))
    dlogvol = np.diff(logvol, prepend=0)
    logdvol = logvol - dlogvol + np.log1p(-np.exp(dlogvol))

    # logdvol is log(delta(volumes)) i.e. log (X_i-X_{i-1})
    logdvol2 = logdvol + math.log(0.5)
    # These are log(1/2(X_(i+1)-X_i))

    dlogvol = -np.diff(logvol, prepend=0)
    # this are delta(log(volumes)) of the run

    # These are log((L_i+L_{i_1})*(X_i+1-X_i)/2)
    saved_logwt = np.logaddexp(loglstar_pad[1:], loglstar_pad[:-1]) + logdvol2
    saved_logz = np.logaddexp.accumulate(saved_logwt)

    logzmax = saved_logz[-1]
    # we'll need that to just normalize likelihoods to avoid overflows

    # H is defined as
    # H = 1/z int( L * ln(L) dX,X=0..1) - ln(z)
    # incomplete H can be defined as
    # H = int( L/Z * ln(L) dX,X=0..x) - z_x/Z * ln(Z)
    h_part1 = np.cumsum(
        (np.exp(loglstar_pad[1:] - logzmax + logdvol2) * loglstar_pad[1:] +
         np.exp(loglstar_pad[:-1] - logzmax + logdvol2) * loglstar_pad[:-1]))
    saved_h = h_part1 - logzmax * np.exp(saved_logz - logzmax)
    # changes in h in each step
    dh = np.diff(saved_h, prepend=0)

    # partial H integrals can be negative
    saved_logzvar = np.abs(np.cumsum(dh * dlogvol))
    return saved_logwt, saved_logz, saved_logzvar, saved_h


def mean_and_cov(samples, weights):
    """
    Compute the weighted mean and covariance of the samples.

    Parameters
    ----------
    samples : `~numpy.ndarray` with shape (nsamples, ndim)
        2-D array containing data samples. This ordering is equivalent to
        using `rowvar=False` in `~numpy.cov`.

    weights : `~numpy.ndarray` with shape (nsamples,)
        1-D array of sample weights.

    Returns
    -------
    mean : `~numpy.ndarray` with shape (ndim,)
        Weighted sample mean vector.

    cov : `~numpy.ndarray` with shape (ndim, ndim)
        Weighted sample covariance matrix.

    """

    # Compute the weighted mean.
    mean = np.average(samples, weights=weights, axis=0)

    # Compute the weighted covariance.
    dx = samples - mean
    wsum = np.sum(weights)
    w2sum = np.sum(weights**2)
    cov = wsum / (wsum**2 - w2sum) * np.einsum('i,ij,ik', weights, dx, dx)

    return mean, cov


def resample_equal(samples, weights, rstate=None):
    """
    Resample a new set of points from the weighted set of inputs
    such that they all have equal weight.

    Each input sample appears in the output array either
    `floor(weights[i] * nsamples)` or `ceil(weights[i] * nsamples)` times,
    with `floor` or `ceil` randomly selected (weighted by proximity).

    Parameters
    ----------
    samples : `~numpy.ndarray` with shape (nsamples,)
        Set of unequally weighted samples.

    weights : `~numpy.ndarray` with shape (nsamples,)
        Corresponding weight of each sample.

    rstate : `~numpy.random.Generator`, optional
        `~numpy.random.Generator` instance.

    Returns
    -------
    equal_weight_samples : `~numpy.ndarray` with shape (nsamples,)
        New set of samples with equal weights.

    Notes
    -----
    Implements the systematic resampling method described in `Hol, Schon, and
    Gustafsson (2006) <doi:10.1109/NSSPW.2006.4378824>`_.
   """

    if rstate is None:
        rstate = get_random_generator()

    cumulative_sum = np.cumsum(weights)
    if abs(cumulative_sum[-1] - 1.) > SQRTEPS:
        # same tol as in numpy's random.choice.
        warnings.warn("Weights do not sum to 1 and have been renormalized.")
    cumulative_sum /= cumulative_sum[-1]
    # this ensures that the last element is strictly == 1

    # Make N subdivisions and choose positions with a consistent random offset.
    nsamples = len(weights)
    positions = (rstate.random() + np.arange(nsamples)) / nsamples

    # Resample the data.
    idx = np.zeros(nsamples, dtype=int)
    i, j = 0, 0
    while i < nsamples:
        if positions[i] < cumulative_sum[j]:
            idx[i] = j
            i += 1
        else:
            j += 1

    return samples[idx]


def quantile(x, q, weights=None):
    """
    Compute (weighted) quantiles from an input set of samples.

    Parameters
    ----------
    x : `~numpy.ndarray` with shape (nsamps,)
        Input samples.

    q : `~numpy.ndarray` with shape (nquantiles,)
       The list of quantiles to compute from `[0., 1.]`.

    weights : `~numpy.ndarray` with shape (nsamps,), optional
        The associated weight from each sample.

    Returns
    -------
    quantiles : `~numpy.ndarray` with shape (nquantiles,)
        The weighted sample quantiles computed at `q`.

    """

    # Initial check.
    x = np.atleast_1d(x)
    q = np.atleast_1d(q)

    # Quantile check.
    if np.any(q < 0.0) or np.any(q > 1.0):
        raise ValueError("Quantiles must be between 0. and 1.")

    if weights is None:
        # If no weights provided, this simply calls `np.percentile`.
        return np.percentile(x, list(100.0 * q))
    else:
        # If weights are provided, compute the weighted quantiles.
        weights = np.atleast_1d(weights)
        if len(x) != len(weights):
            raise ValueError("Dimension mismatch: len(weights) != len(x).")
        idx = np.argsort(x)  # sort samples
        sw = weights[idx]  # sort weights
        cdf = np.cumsum(sw)[:-1]  # compute CDF
        cdf /= cdf[-1]  # normalize CDF
        cdf = np.append(0, cdf)  # ensure proper span
        quantiles = np.interp(q, cdf, x[idx]).tolist()
        return quantiles


def parameter_summary(samples, weights, credible_level=68.3):
    """
    Summarize the marginal posterior of every parameter.

    Parameters
    ----------
    samples : `~numpy.ndarray` with shape (nsamples, ndim)
        Posterior samples.

    weights : `~numpy.ndarray` with shape (nsamples,)
        Normalized posterior weights.

    credible_level : float, optional
        Credible level (in percent) of the reported interval centered on
        the median. Default is `68.3`.

    Returns
    -------
    summary : `~numpy.ndarray` with shape (ndim, 7)
        For each parameter: mean, median, mode, second moment, lower and
        upper credible limits, and the credible level.

    """
    if credible_level <= 0 or credible_level >= 100:
        raise ValueError("The credible level must be in (0, 100).")
    samples = np.atleast_2d(np.asarray(samples).T).T
    weights = np.asarray(weights)
    frac = credible_level / 100.
    neff = get_neff_from_logwt(np.log(np.maximum(weights, 1e-300)))
    nbins = int(np.clip(np.sqrt(neff), 10, 100))
    summary = np.zeros((samples.shape[1], 7))
    for i, x in enumerate(samples.T):
        mean = np.average(x, weights=weights)
        second = np.average(x**2, weights=weights)
        low, median, high = quantile(x, [0.5 - frac / 2, 0.5, 0.5 + frac / 2],
                                     weights=weights)
        hist, edges = np.histogram(x, bins=nbins, weights=weights)
        imax = np.argmax(hist)
        mode = 0.5 * (edges[imax] + edges[imax + 1])
        summary[i] = [mean, median, mode, second, low, high, credible_level]
    return summary
