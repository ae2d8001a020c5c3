#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Bounding classes used when proposing new live points, along with a number of
useful helper functions. Bounding objects include:

    Ellipsoid:
        Bounding ellipsoid of a cluster of live points.

    MultiEllipsoid:
        A set of (possibly overlapping) bounding ellipsoids.

"""

import math
import numpy as np
from numpy import linalg
from numpy import cov as mle_cov
from scipy import linalg as lalg
from scipy.special import logsumexp, gammaln

__all__ = [
    "Ellipsoid", "MultiEllipsoid", "logvol_prefactor", "randsphere",
    "rand_choice", "floor_eigenvalues", "bounding_ellipsoid",
    "ellipsoids_overlap"
]

SQRTEPS = math.sqrt(float(np.finfo(np.float64).eps))

# Largest ratio between the largest and the smallest eigenvalue of the
# covariance of a cluster. Smaller eigenvalues are floored.
MAX_CONDITION_NUMBER = 1e8

# Smallest eigenvalue allowed for an ellipsoid whose points all coincide.
ABS_MIN_EIGVAL = 1e-250


class Ellipsoid:
    """
    An N-dimensional ellipsoid defined by::

        (x - v)^T A (x - v) = 1

    where the vector `v` is the center of the ellipsoid and `A` is a
    symmetric, positive-definite `N x N` matrix.

    Parameters
    ----------
    ctr : `~numpy.ndarray` with shape (N,)
        Coordinates of ellipsoid center.

    cov : `~numpy.ndarray` with shape (N, N)
        Covariance matrix describing the axes.

    """

    def __init__(self, ctr, cov):
        self.n = len(ctr)  # dimension
        self.ctr = np.asarray(ctr, dtype=float)  # center coordinates
        self.cov = np.atleast_2d(np.asarray(cov, dtype=float))

        # The eigenvalues (l) of `cov` are (a^2, b^2, ...) where
        # (a, b, ...) are the lengths of principle axes.
        # The eigenvectors (v) are the normalized principle axes.
        l, v = lalg.eigh(self.cov)
        if not np.all((l > 0.) & (np.isfinite(l))):
            raise ValueError("The input covariance matrix defining the "
                             "ellipsoid {0} is apparently singular with "
                             "l={1} and v={2}.".format(self.cov, l, v))
        self._set_axes(l, v)

        # Enlargement fraction applied to each axis after initialization.
        self.enlarge = 0.
        # Whether the covariance had to be regularized.
        self.degenerate = False

    def _set_axes(self, l, v):
        self.axlens = np.sqrt(l)
        # Volume of ellipsoid is the volume of an n-sphere
        # times the product of the axis lengths
        self.logvol = logvol_prefactor(self.n) + 0.5 * np.log(l).sum()
        # precision matrix (inverse of covariance)
        self.am = v @ np.diag(1. / l) @ v.T
        # Scaled eigenvectors are the principle axes, where `paxes[:,i]` is
        # the i-th axis. Multiplying this matrix by a vector will transform a
        # point in the unit n-sphere to a point in the ellipsoid.
        self.paxes = np.dot(v, np.diag(self.axlens))
        # Cholesky factor of the covariance, used to map the unit n-sphere
        # onto the ellipsoid when sampling.
        self.axes = lalg.cholesky(self.cov, lower=True, check_finite=False)
        self._evals, self._evecs = l, v

    def enlarge_by(self, fraction):
        """Enlarge each axis of the ellipsoid by a factor
        `1 + fraction`."""

        if fraction < 0:
            raise ValueError("The enlargement fraction must be >= 0")
        f = 1. + fraction
        self.cov = self.cov * f**2
        self._set_axes(self._evals * f**2, self._evecs)
        self.enlarge = (1. + self.enlarge) * f - 1.

    def distance(self, x):
        """Compute the normalized distance to `x` from the center of the
        ellipsoid."""

        d = x - self.ctr

        return np.sqrt(np.dot(np.dot(d, self.am), d))

    def distance_many(self, x):
        """Compute the normalized distance to `x` from the center of the
        ellipsoid."""

        d = x - self.ctr[None, :]

        return np.sqrt(np.einsum('ij,jk,ik->i', d, self.am, d))

    def contains(self, x):
        """Checks if ellipsoid contains `x`."""

        return self.distance(x) <= 1.0

    def sample(self, rstate=None):
        """
        Draw a sample uniformly distributed within the ellipsoid.

        Returns
        -------
        x : `~numpy.ndarray` with shape (ndim,)
            A coordinate within the ellipsoid.

        """

        return self.ctr + np.dot(self.axes, randsphere(self.n, rstate=rstate))

    def samples(self, nsamples, rstate=None):
        """
        Draw `nsamples` samples uniformly distributed within the ellipsoid.

        Returns
        -------
        x : `~numpy.ndarray` with shape (nsamples, ndim)
            A collection of coordinates within the ellipsoid.

        """

        xs = np.array([self.sample(rstate=rstate) for i in range(nsamples)])

        return xs


class MultiEllipsoid:
    """
    A collection of M N-dimensional ellipsoids.

    Parameters
    ----------
    ells : list of `Ellipsoid` objects with length M
        A set of `Ellipsoid` objects that make up the collection of
        N-ellipsoids.

    labels : list of int, optional
        Cluster index associated with each ellipsoid. Defaults to the
        position of the ellipsoid in `ells`.

    """

    def __init__(self, ells, labels=None):
        if len(ells) == 0:
            raise ValueError("At least one ellipsoid is required.")
        self.nells = len(ells)
        self.ells = list(ells)
        if labels is None:
            labels = np.arange(self.nells)
        self.labels = np.asarray(labels, dtype=int)
        self.ctrs = np.array([ell.ctr for ell in self.ells])
        self.ams = np.array([ell.am for ell in self.ells])
        self.logvols = np.array([ell.logvol for ell in self.ells])
        self.logvol_tot = logsumexp(self.logvols)

        # Pairs of ellipsoids that intersect. Only those are checked when
        # correcting the sampling density for overlapping regions.
        self.overlaps = [[] for i in range(self.nells)]
        for i in range(self.nells):
            for j in range(i + 1, self.nells):
                if ellipsoids_overlap(self.ells[i], self.ells[j]):
                    self.overlaps[i].append(j)
                    self.overlaps[j].append(i)
        self.overlaps = [np.array(o, dtype=int) for o in self.overlaps]

    def within(self, x, j=None):
        """Checks which ellipsoid(s) `x` falls within, skipping the `j`-th
        ellipsoid if need be."""

        delt = x[None, :] - self.ctrs
        mask = np.einsum('ai,aij,aj->a', delt, self.ams, delt) <= 1
        if j is not None:
            mask[j] = False
        return np.nonzero(mask)[0]

    def overlap(self, x, j=None):
        """Checks how many ellipsoid(s) `x` falls within, skipping the `j`-th
        ellipsoid."""

        q = len(self.within(x, j=j))

        return q

    def contains(self, x):
        """Checks if the set of ellipsoids contains `x`."""
        delt = x[None, :] - self.ctrs
        return np.any(np.einsum('ai,aij,aj->a', delt, self.ams, delt) <= 1)

    def _ncovering(self, x, idx):
        """Number of ellipsoids containing `x`, which was drawn from the
        `idx`-th ellipsoid."""

        neighbours = self.overlaps[idx]
        if len(neighbours) == 0:
            return 1
        delts = x[None, :] - self.ctrs[neighbours]
        return 1 + (np.einsum('ai,aij,aj->a', delts, self.ams[neighbours],
                              delts) <= 1).sum()

    def sample(self, rstate=None, return_q=False):
        """
        Sample a point uniformly distributed within the *union* of ellipsoids.

        Returns
        -------
        x : `~numpy.ndarray` with shape (ndim,)
            A coordinate within the set of ellipsoids.

        idx : int
            The index of the ellipsoid `x` was sampled from.

        q : int, optional
            The number of ellipsoids `x` falls within.

        """

        # If there is only one ellipsoid, sample from it.
        if self.nells == 1:
            x = self.ells[0].sample(rstate=rstate)
            idx = 0
            q = 1
            if return_q:
                return x, idx, q
            else:
                return x, idx

        probs = np.exp(self.logvols - self.logvol_tot)
        while True:
            # Select an ellipsoid at random proportional to its volume.
            idx = rand_choice(probs, rstate)

            # Select a point from the chosen ellipsoid.
            x = self.ells[idx].sample(rstate=rstate)

            # Check how many ellipsoids the point lies within
            q = self._ncovering(x, idx)

            if return_q:
                # If `q` is being returned, assume the user wants to
                # explicitly apply the `1. / q` acceptance criterion to
                # properly sample from the union of ellipsoids.
                return x, idx, q
            else:
                # If `q` is not being returned, assume the user wants this
                # done internally so we repeat the loop if needed
                if q == 1 or rstate.uniform() < (1. / q):
                    return x, idx

    def samples(self, nsamples, rstate=None):
        """
        Draw `nsamples` samples uniformly distributed within the *union* of
        ellipsoids.

        Returns
        -------
        xs : `~numpy.ndarray` with shape (nsamples, ndim)
            A collection of coordinates within the set of ellipsoids.

        """

        xs = np.array([self.sample(rstate=rstate)[0] for i in range(nsamples)])

        return xs

    def monte_carlo_logvol(self, ndraws=10000, rstate=None):
        """Using `ndraws` Monte Carlo draws, estimate the log volume of the
        *union* of ellipsoids."""

        # Estimate volume using Monte Carlo integration.
        samples = [
            self.sample(rstate=rstate, return_q=True) for i in range(ndraws)
        ]
        qsum = sum([1. / q for (x, idx, q) in samples])
        logvol = np.log(qsum / ndraws) + self.logvol_tot

        return logvol


##################
# HELPER FUNCTIONS
##################


def logvol_prefactor(n, p=2.):
    """
    Returns the ln(volume constant) for an `n`-dimensional sphere with an
    :math:`L^p` norm. The constant is defined as::

        lnf = n * ln(2.) + n * LogGamma(1./p + 1) - LogGamma(n/p + 1.)

    By default the `p=2.` norm is used (i.e. the standard Euclidean norm).

    """

    p *= 1.  # convert to float in case user inputs an integer
    lnf = (n * np.log(2.) + n * gammaln(1. / p + 1.) - gammaln(n / p + 1))

    return lnf


def randsphere(n, rstate=None):
    """Draw a point uniformly within an `n`-dimensional unit sphere."""

    z = rstate.standard_normal(size=n)  # initial n-dim vector
    xhat = z * (rstate.uniform()**(1. / n) / lalg.norm(z, check_finite=False)
                )  # scale
    return xhat


def rand_choice(pb, rstate):
    """ Optimized version of numpy's random.choice
    Return an index of a point selected with the probability pb
    The pb must sum to 1
    """
    p1 = np.cumsum(pb)
    xr = rstate.uniform()
    return min(np.searchsorted(p1, xr), len(pb) - 1)


def floor_eigenvalues(covar, min_eigval=None):
    """
    Regularize a covariance matrix by flooring its eigenvalues.

    The floor is the largest eigenvalue divided by
    :data:`MAX_CONDITION_NUMBER`, and never less than `min_eigval`.

    Returns
    -------
    covar : `~numpy.ndarray` with shape (ndim, ndim)
        The regularized covariance matrix.

    eigval, eigvec : `~numpy.ndarray`
        Its eigendecomposition.

    floored : bool
        Whether any eigenvalue had to be raised.

    """
    covar = 0.5 * (covar + covar.T)
    eigval, eigvec = lalg.eigh(covar, check_finite=False)
    if not np.all(np.isfinite(eigval)):
        raise ValueError(f"Non-finite covariance matrix {covar}")
    floor = max(eigval.max(), 0) / MAX_CONDITION_NUMBER
    if min_eigval is not None:
        floor = max(floor, min_eigval)
    floor = max(floor, ABS_MIN_EIGVAL)
    floored = bool(np.any(eigval < floor))
    if floored:
        eigval = np.maximum(eigval, floor)
        covar = eigvec @ np.diag(eigval) @ eigvec.T
    return covar, eigval, eigvec, floored


def bounding_ellipsoid(points, enlarge=0., min_eigval=None):
    """
    Calculate the bounding ellipsoid containing a collection of points.

    The ellipsoid has the shape of the empirical covariance of the points,
    regularized with :func:`floor_eigenvalues` when it is (nearly) singular,
    and is scaled so that the outermost point lies on its surface before
    every axis is enlarged by `1 + enlarge`.

    Parameters
    ----------
    points : `~numpy.ndarray` with shape (npoints, ndim)
        A set of coordinates.

    enlarge : float, optional
        Enlargement fraction of each axis. Default is `0`.

    min_eigval : float, optional
        Lower bound for the eigenvalues of the covariance. Used to give a
        size to clusters made of one point or of coincident points.

    Returns
    -------
    ellipsoid : :class:`Ellipsoid`
        The bounding :class:`Ellipsoid` object.

    """

    points = np.asarray(points, dtype=float)
    npoints, ndim = points.shape

    # Calculate covariance of points.
    ctr = np.mean(points, axis=0)
    if npoints > 1:
        covar = mle_cov(points, rowvar=False)
    else:
        covar = np.zeros((ndim, ndim))

    # When ndim = 1, `np.cov` returns a 0-d array. Make it a 1x1 2-d array.
    covar = np.atleast_2d(covar)

    covar, eigval, eigvec, floored = floor_eigenvalues(covar,
                                                       min_eigval=min_eigval)
    # A point cloud with fewer points than dimensions cannot be full rank.
    floored = floored or npoints <= ndim

    # Calculate expansion factor necessary to bound each point.
    # Points should obey `(x-v)^T A (x-v) <= 1`, so we calculate this for
    # each point and then scale A up or down to make the
    # "outermost" point obey `(x-v)^T A (x-v) = 1`.
    delta = points - ctr
    am = eigvec @ np.diag(1. / eigval) @ eigvec.T
    fmax = np.einsum('ij,jk,ik->i', delta, am, delta).max()
    if fmax > 0:
        # Due to round-off errors, we actually scale the ellipsoid so the
        # outermost point obeys `(x-v)^T A (x-v) < 1`.
        covar = covar * fmax * (1. + SQRTEPS)

    ell = Ellipsoid(ctr, covar)
    ell.degenerate = floored
    if enlarge > 0:
        ell.enlarge_by(enlarge)

    return ell


def _quadric(ell):
    """Homogeneous (N+1)x(N+1) matrix `M` of an ellipsoid such that points
    `X = (x, 1)` inside it obey `X^T M X < 0`."""

    n = ell.n
    m = np.zeros((n + 1, n + 1))
    amc = ell.am @ ell.ctr
    m[:n, :n] = ell.am
    m[:n, n] = -amc
    m[n, :n] = -amc
    m[n, n] = ell.ctr @ amc - 1.
    return m


def ellipsoids_overlap(ell1, ell2):
    """
    Check whether two ellipsoids intersect.

    Spheres bounding each ellipsoid and the centers of the ellipsoids give
    quick answers. Otherwise the algebraic condition of Alfano & Greer
    (2003) is used: the ellipsoids are separated if and only if the
    characteristic polynomial `det(lambda * A - B)` of their quadric
    matrices has two distinct negative real roots.

    Returns
    -------
    overlap : bool

    """

    d = linalg.norm(ell1.ctr - ell2.ctr)
    if d > ell1.axlens.max() + ell2.axlens.max():
        return False
    if ell1.contains(ell2.ctr) or ell2.contains(ell1.ctr):
        return True
    if d <= ell1.axlens.min() + ell2.axlens.min():
        return True

    a = _quadric(ell1)
    b = _quadric(ell2)
    roots = linalg.eigvals(linalg.solve(a, b))
    scale = np.abs(roots).max()
    tol = SQRTEPS * max(scale, 1.)
    real = roots.real[np.abs(roots.imag) <= tol]
    negative = np.sort(real[real < 0])
    if len(negative) >= 2 and np.abs(np.diff(negative)).max() > tol:
        return False
    return True
