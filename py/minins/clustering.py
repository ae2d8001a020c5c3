#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Partitioning of the live points into clusters.

:class:`KmeansClusterer` runs K-means for every number of clusters between
a minimum and a maximum and keeps the partition with the lowest Bayesian
information criterion (X-means, Pelleg & Moore 2000). The criterion is
computed for a spherical Gaussian mixture whose means are the K-means
centroids, whose weights are the cluster fractions and whose variance is
the pooled within-cluster variance. Membership is soft, so splitting a
single compact group into several pieces is penalized by the overlap of
the resulting components.

"""

import math
import numpy as np
from scipy.special import logsumexp

from .config import check_clustering_config
from .metric import EuclideanMetric
from .utils import get_random_generator

__all__ = ["KmeansClusterer", "kmeans", "mixture_bic"]


def _kmeans_plusplus(points, k, metric, rstate):
    """Choose `k` initial centers with the k-means++ seeding."""

    npoints = len(points)
    centers = [points[rstate.integers(npoints)]]
    for _ in range(1, k):
        d2 = metric.pairwise(points, np.array(centers)).min(axis=1)**2
        tot = d2.sum()
        if not tot > 0:
            # All the points coincide with the current centers.
            return None
        centers.append(points[rstate.choice(npoints, p=d2 / tot)])
    return np.array(centers)


def kmeans(points, k, metric=None, rstate=None, rel_tol=0.01, maxiter=100):
    """
    Cluster `points` into `k` groups with Lloyd's algorithm.

    Parameters
    ----------
    points : `~numpy.ndarray` with shape (npoints, ndim)
        The set of points to cluster.

    k : int
        The number of clusters.

    metric : :class:`~minins.metric.Metric`, optional
        Distance used to assign points to centers. Default is Euclidean.

    rstate : `~numpy.random.Generator`, optional
        `~numpy.random.Generator` instance.

    rel_tol : float, optional
        Iterations stop once the largest centroid displacement is below
        `rel_tol` times the mean distance of the points to their centroid.

    maxiter : int, optional
        Maximum number of Lloyd iterations.

    Returns
    -------
    labels : `~numpy.ndarray` with shape (npoints,)
        Cluster index of each point.

    centers : `~numpy.ndarray` with shape (k, ndim)
        Cluster centroids.

    inertia : float
        Sum of the squared distances of the points to their centroid.

    Returns `None` if a cluster ends up empty.

    """
    if metric is None:
        metric = EuclideanMetric()
    if rstate is None:
        rstate = get_random_generator()
    points = np.asarray(points)
    npoints = len(points)
    if k > npoints:
        return None
    centers = _kmeans_plusplus(points, k, metric, rstate)
    if centers is None:
        return None
    scale = metric.pairwise(points, points.mean(axis=0)).mean()
    ind = np.arange(npoints)

    for it in range(maxiter):
        dists = metric.pairwise(points, centers)
        labels = np.argmin(dists, axis=1)
        counts = np.bincount(labels, minlength=k)
        if np.any(counts == 0):
            return None
        new_centers = np.array(
            [points[labels == j].mean(axis=0) for j in range(k)])
        shift = max(
            metric.distance(c0, c1) for c0, c1 in zip(centers, new_centers))
        centers = new_centers
        if shift <= rel_tol * scale:
            break

    dists = metric.pairwise(points, centers)
    labels = np.argmin(dists, axis=1)
    if np.any(np.bincount(labels, minlength=k) == 0):
        return None
    inertia = np.sum(dists[ind, labels]**2)
    return labels, centers, inertia


def mixture_bic(points, labels, centers, metric=None):
    """
    Bayesian information criterion of the spherical Gaussian mixture
    defined by a partition. Lower is better.

    """
    if metric is None:
        metric = EuclideanMetric()
    npoints, ndim = points.shape
    k = len(centers)
    dist2 = metric.pairwise(points, centers)**2
    inertia = dist2[np.arange(npoints), labels].sum()
    var = inertia / (ndim * max(npoints - k, 1))
    var = max(var, np.finfo(float).tiny)
    counts = np.bincount(labels, minlength=k)
    logw = np.log(counts / npoints)
    logp = (logw[None, :] - 0.5 * ndim * math.log(2 * math.pi * var) -
            0.5 * dist2 / var)
    loglike = logsumexp(logp, axis=1).sum()
    # means, one shared variance and the mixture weights
    nparams = k * ndim + 1 + (k - 1)
    return -2 * loglike + nparams * math.log(npoints)


class KmeansClusterer:
    """
    X-means style clusterer: K-means with the number of clusters selected
    by the Bayesian information criterion.

    Parameters
    ----------
    metric : :class:`~minins.metric.Metric`, optional
        Distance over parameter space. Default is Euclidean.

    min_nclusters : int, optional
        Minimum number of clusters. Default is `1`.

    max_nclusters : int, optional
        Maximum number of clusters. Default is `6`.

    ntrials : int, optional
        Number of K-means restarts for each number of clusters.
        Default is `10`.

    rel_tol : float, optional
        Relative tolerance on the centroid displacement that stops the
        K-means iterations. Default is `0.01`.

    maxiter : int, optional
        Maximum number of K-means iterations per trial. Default is `100`.

    """

    def __init__(self,
                 metric=None,
                 min_nclusters=1,
                 max_nclusters=6,
                 ntrials=10,
                 rel_tol=0.01,
                 maxiter=100):
        config = check_clustering_config(min_nclusters=min_nclusters,
                                         max_nclusters=max_nclusters,
                                         ntrials=ntrials,
                                         rel_tol=rel_tol)
        self.metric = metric or EuclideanMetric()
        self.min_nclusters = config.min_nclusters
        self.max_nclusters = config.max_nclusters
        self.ntrials = config.ntrials
        self.rel_tol = config.rel_tol
        self.maxiter = maxiter

    def __repr__(self):
        return (f"KmeansClusterer(metric={self.metric!r}, "
                f"min_nclusters={self.min_nclusters}, "
                f"max_nclusters={self.max_nclusters}, "
                f"ntrials={self.ntrials}, rel_tol={self.rel_tol})")

    def _best_trial(self, points, k, rstate):
        """Lowest-inertia partition among the non-degenerate trials."""

        if k == 1:
            return (np.zeros(len(points), dtype=int),
                    points.mean(axis=0)[None, :])
        best = None
        for trial in range(self.ntrials):
            res = kmeans(points,
                         k,
                         metric=self.metric,
                         rstate=rstate,
                         rel_tol=self.rel_tol,
                         maxiter=self.maxiter)
            if res is not None and (best is None or res[2] < best[2]):
                best = res
        if best is None:
            return None
        return best[0], best[1]

    def partition(self, points, rstate=None):
        """
        Partition a set of points.

        Parameters
        ----------
        points : `~numpy.ndarray` with shape (npoints, ndim)
            The set of points to cluster.

        rstate : `~numpy.random.Generator`, optional
            `~numpy.random.Generator` instance.

        Returns
        -------
        labels : `~numpy.ndarray` with shape (npoints,)
            Cluster index (from `0` to `nclusters - 1`) of each point.

        nclusters : int
            Selected number of clusters.

        """
        if rstate is None:
            rstate = get_random_generator()
        points = np.asarray(points, dtype=float)
        if points.ndim == 1:
            points = points[:, None]
        npoints = len(points)
        single = np.zeros(npoints, dtype=int), 1
        if npoints < max(self.min_nclusters, 2):
            return single

        best_bic, best = np.inf, None
        for k in range(self.min_nclusters,
                       min(self.max_nclusters, npoints) + 1):
            res = self._best_trial(points, k, rstate)
            if res is None:
                continue
            labels, centers = res
            bic = mixture_bic(points, labels, centers, metric=self.metric)
            # strict inequality: ties go to the smaller number of clusters
            if bic < best_bic:
                best_bic, best = bic, (labels, k)
        if best is None:
            return single
        return best
