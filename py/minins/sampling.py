#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Proposal of new live points used by :class:`~minins.sampler.NestedSampler`.

New points are drawn uniformly within the union of the ellipsoids bounding
the clusters of live points until one satisfies the likelihood constraint.

"""

from collections import namedtuple
import math
import logging
import warnings
import numpy as np
from scipy import linalg as lalg

from .bounding import MultiEllipsoid, bounding_ellipsoid
from .clustering import KmeansClusterer

__all__ = ["EllipsoidSampler", "DrawResult", "DrawExhaustedError"]

logger = logging.getLogger(__name__)

DrawResult = namedtuple('DrawResult', ['v', 'logl', 'nc', 'label'])

# Number of consecutive candidates rejected by the prior after which a
# warning is issued.
_PRIOR_REJECTION_WARNING = 10000


class DrawExhaustedError(RuntimeError):
    """
    Raised when no point satisfying the likelihood constraint was found
    within the maximum number of attempts.

    """

    def __init__(self, nattempts, loglstar):
        self.nattempts = nattempts
        self.loglstar = loglstar
        super().__init__(f"No point with log-likelihood > {loglstar} was "
                         f"found in {nattempts} attempts")


class EllipsoidSampler:
    """
    Uniform sampling within ellipsoids bounding clusters of live points.

    Parameters
    ----------
    clusterer : :class:`~minins.clustering.KmeansClusterer`, optional
        Clusterer partitioning the live points. Default is a
        :class:`~minins.clustering.KmeansClusterer` with its defaults.

    n_initial_iterations_without_clustering : int, optional
        Number of initial iterations during which all the live points are
        bounded by a single ellipsoid. Default is `0`.

    n_iterations_with_same_clustering : int, optional
        Number of iterations during which the same partition of the live
        points is kept. Default is `1`.

    max_draw_attempts : int, optional
        Maximum number of likelihood evaluations spent on a single draw.
        Default is `50000`.

    """

    def __init__(self,
                 clusterer=None,
                 n_initial_iterations_without_clustering=0,
                 n_iterations_with_same_clustering=1,
                 max_draw_attempts=50000):
        if clusterer is None:
            clusterer = KmeansClusterer()
        self.clusterer = clusterer
        self.n_initial_iterations_without_clustering = \
            n_initial_iterations_without_clustering
        self.n_iterations_with_same_clustering = \
            n_iterations_with_same_clustering
        self.max_draw_attempts = max_draw_attempts

        self.bound = None
        self.labels = None
        self.nclusters = 1
        self.enlarge = 0.
        self.last_clustering_it = None

        self.nreclusterings = 0
        self.ndegenerate = 0
        self.nexhausted = 0

    @property
    def counters(self):
        """Counters of the clusterings, of the regularized ellipsoids and of
        the exhausted draws."""
        return {
            'reclusterings': self.nreclusterings,
            'degenerate_ellipsoids': self.ndegenerate,
            'draw_exhausted': self.nexhausted
        }

    def _needs_clustering(self, it, nlive):
        if self.labels is None or len(self.labels) != nlive:
            return True
        if self.last_clustering_it is None:
            return True
        return (it - self.last_clustering_it >=
                self.n_iterations_with_same_clustering)

    def update_bound(self, live_v, it, enlarge, rstate, labels=None):
        """
        Update the ellipsoids bounding the live points.

        Parameters
        ----------
        live_v : `~numpy.ndarray` with shape (nlive, ndim)
            Current live points.

        it : int
            Current iteration.

        enlarge : float
            Enlargement fraction of the axes for a cluster holding all the
            live points. A cluster holding `n` of the `nlive` points is
            enlarged by `enlarge * sqrt(nlive / n)`.

        rstate : `~numpy.random.Generator`
            `~numpy.random.Generator` instance.

        labels : `~numpy.ndarray` with shape (nlive,), optional
            Current cluster of each live point. Used when the partition is
            not recomputed at this iteration.

        Returns
        -------
        labels : `~numpy.ndarray` with shape (nlive,)
            Cluster (from `0` to `nclusters - 1`) of each live point.

        """
        live_v = np.asarray(live_v, dtype=float)
        nlive, ndim = live_v.shape
        if labels is not None:
            self.labels = np.asarray(labels, dtype=int)

        if it < self.n_initial_iterations_without_clustering:
            labels = np.zeros(nlive, dtype=int)
        elif self._needs_clustering(it, nlive):
            labels, nclusters = self.clusterer.partition(live_v, rstate=rstate)
            self.last_clustering_it = it
            self.nreclusterings += 1
            logger.debug('Iteration %d: %d clusters found', it, nclusters)
        else:
            labels = self.labels
        # clusters may have been emptied since the last partition
        _, labels = np.unique(labels, return_inverse=True)
        labels = labels.reshape(-1)
        self.labels = labels
        self.nclusters = labels.max() + 1
        self.enlarge = enlarge

        # Floor for the covariance of clusters too small to define one.
        if nlive > 1:
            global_cov = np.atleast_2d(np.cov(live_v, rowvar=False))
            global_eigval = lalg.eigvalsh(global_cov, check_finite=False)
            min_eigval = max(global_eigval.min(), 0) / nlive
        else:
            min_eigval = 0.

        ells = []
        for k in range(self.nclusters):
            points = live_v[labels == k]
            ell = bounding_ellipsoid(points,
                                     enlarge=enlarge *
                                     math.sqrt(nlive / len(points)),
                                     min_eigval=min_eigval or None)
            if ell.degenerate:
                self.ndegenerate += 1
            ells.append(ell)
        self.bound = MultiEllipsoid(ells)

        return labels

    def draw(self, loglstar, loglikelihood, prior, rstate):
        """
        Draw a new point uniformly within the ellipsoids whose
        log-likelihood exceeds `loglstar`.

        Parameters
        ----------
        loglstar : float
            Ln(likelihood) bound.

        loglikelihood : function
            Function returning ln(likelihood) given parameters as a 1-d
            `~numpy` array of length `ndim`.

        prior : :class:`~minins.priors.Prior`
            Candidates rejected by the prior are redrawn without using an
            attempt.

        rstate : `~numpy.random.Generator`
            `~numpy.random.Generator` instance.

        Returns
        -------
        result : :class:`DrawResult`
            The new point, its log-likelihood, the number of likelihood
            calls and the cluster of the ellipsoid it was drawn from.

        Raises
        ------
        DrawExhaustedError
            If `max_draw_attempts` likelihood evaluations were made
            without satisfying the constraint.

        """
        if self.bound is None:
            raise RuntimeError("update_bound() must be called before draw()")
        nc = 0
        nrejected = 0
        warned = False
        while nc < self.max_draw_attempts:
            v, idx = self.bound.sample(rstate=rstate)
            if prior.is_rejected(v, rstate):
                nrejected += 1
                if nrejected > _PRIOR_REJECTION_WARNING and not warned:
                    warnings.warn(
                        "Ellipsoid sampling is extremely inefficient: most "
                        "candidates fall outside the prior",
                        category=RuntimeWarning)
                    warned = True
                continue
            nrejected = 0
            logl = loglikelihood(v)
            nc += 1
            if np.isnan(logl) or np.isposinf(logl):
                raise ValueError(f"The log-likelihood ({logl}) of the point "
                                 f"{v} is invalid.")
            if logl > loglstar:
                return DrawResult(v=v,
                                  logl=logl,
                                  nc=nc,
                                  label=self.bound.labels[idx])
        self.nexhausted += 1
        raise DrawExhaustedError(nc, loglstar)
