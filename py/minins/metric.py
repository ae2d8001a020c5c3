#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Distance functions over parameter space used by the clusterer:

    EuclideanMetric:
        The L2 norm (default).

    ManhattanMetric:
        The L1 norm.

"""

import numpy as np
from scipy.spatial import distance

__all__ = ["Metric", "EuclideanMetric", "ManhattanMetric"]


class Metric:
    """
    A distance over parameter space. Subclasses set `name` to one of the
    metrics understood by `scipy.spatial.distance.cdist`.

    """

    name = None

    def distance(self, x, y):
        """Distance between the points `x` and `y`."""

        return self.pairwise(np.atleast_2d(x), np.atleast_2d(y))[0, 0]

    def pairwise(self, X, Y):
        """
        Distances between every point of `X` and every point of `Y`.

        Parameters
        ----------
        X : `~numpy.ndarray` with shape (n, ndim)

        Y : `~numpy.ndarray` with shape (m, ndim)

        Returns
        -------
        d : `~numpy.ndarray` with shape (n, m)

        """

        return distance.cdist(np.atleast_2d(X), np.atleast_2d(Y),
                              metric=self.name)

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class EuclideanMetric(Metric):
    """The Euclidean distance."""

    name = 'euclidean'


class ManhattanMetric(Metric):
    """The Manhattan (city block) distance."""

    name = 'cityblock'
