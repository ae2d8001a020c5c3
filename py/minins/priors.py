#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Prior distributions of the free parameters. Every prior exposes the same
capabilities (`ndim`, `draw`, `logpdf`, `pdf`, `contains`, `is_rejected`,
`hyperparameters`):

    UniformPrior:
        Independent uniform distributions on `[minimum, maximum]`.

    NormalPrior:
        Independent normal distributions.

    JointPrior:
        Concatenation of several priors over disjoint sets of parameters.

"""

import math
import numpy as np

from .config import ConfigurationError

__all__ = ["Prior", "UniformPrior", "NormalPrior", "JointPrior"]


def _as_vector(name, values):
    values = np.atleast_1d(np.asarray(values, dtype=float))
    if values.ndim != 1 or len(values) == 0:
        raise ConfigurationError(f"`{name}` must be a non-empty vector")
    if not np.all(np.isfinite(values)):
        raise ConfigurationError(f"`{name}` must be finite, not {values}")
    return values


class Prior:
    """
    Base class of the priors. Subclasses implement `draw`, `logpdf` and
    `hyperparameters`.

    """

    ndim = None

    def draw(self, nsamples, rstate):
        """Draw `nsamples` points, returned with shape (nsamples, ndim)."""
        raise NotImplementedError

    def logpdf(self, x):
        """Ln(prior density) at `x`."""
        raise NotImplementedError

    def pdf(self, x):
        """Prior density at `x`."""
        return math.exp(self.logpdf(x))

    def contains(self, x):
        """Whether `x` lies in the support of the prior."""
        return np.isfinite(self.logpdf(x))

    def is_rejected(self, x, rstate):
        """
        Whether a point drawn uniformly within a bound must be rejected so
        that accepted points follow the prior within the bound.

        """
        return not self.contains(x)

    def hyperparameters(self):
        """Array of the hyper-parameters, one row per dimension."""
        raise NotImplementedError


class UniformPrior(Prior):
    """
    Uniform prior within an axis-aligned box.

    Parameters
    ----------
    minima : `~numpy.ndarray` with shape (ndim,)
        Lower bounds of the parameters.

    maxima : `~numpy.ndarray` with shape (ndim,)
        Upper bounds of the parameters.

    """

    def __init__(self, minima, maxima):
        self.minima = _as_vector('minima', minima)
        self.maxima = _as_vector('maxima', maxima)
        if len(self.minima) != len(self.maxima):
            raise ConfigurationError(
                "Minima and maxima of the uniform prior have different "
                f"lengths ({len(self.minima)} != {len(self.maxima)})")
        if np.any(self.maxima <= self.minima):
            raise ConfigurationError(
                "Maxima of the uniform prior must be larger than the minima")
        self.ndim = len(self.minima)
        self._logpdf = -np.log(self.maxima - self.minima).sum()

    def __repr__(self):
        return (f"UniformPrior(minima={self.minima.tolist()}, "
                f"maxima={self.maxima.tolist()})")

    def draw(self, nsamples, rstate):
        return rstate.uniform(self.minima,
                              self.maxima,
                              size=(nsamples, self.ndim))

    def contains(self, x):
        x = np.asarray(x)
        return bool(np.all((x >= self.minima) & (x <= self.maxima)))

    def logpdf(self, x):
        if self.contains(x):
            return self._logpdf
        return -np.inf

    def hyperparameters(self):
        return np.column_stack([self.minima, self.maxima])


class NormalPrior(Prior):
    """
    Independent normal priors.

    Parameters
    ----------
    means : `~numpy.ndarray` with shape (ndim,)

    sigmas : `~numpy.ndarray` with shape (ndim,)
        Standard deviations, all positive.

    """

    def __init__(self, means, sigmas):
        self.means = _as_vector('means', means)
        self.sigmas = _as_vector('sigmas', sigmas)
        if len(self.means) != len(self.sigmas):
            raise ConfigurationError(
                "Means and standard deviations of the normal prior have "
                f"different lengths ({len(self.means)} != "
                f"{len(self.sigmas)})")
        if np.any(self.sigmas <= 0):
            raise ConfigurationError(
                "Standard deviations of the normal prior must be positive")
        self.ndim = len(self.means)
        self._lognorm = -(0.5 * self.ndim * math.log(2 * math.pi) +
                          np.log(self.sigmas).sum())

    def __repr__(self):
        return (f"NormalPrior(means={self.means.tolist()}, "
                f"sigmas={self.sigmas.tolist()})")

    def draw(self, nsamples, rstate):
        return rstate.normal(self.means,
                             self.sigmas,
                             size=(nsamples, self.ndim))

    def _chi2(self, x):
        return (((np.asarray(x) - self.means) / self.sigmas)**2).sum()

    def logpdf(self, x):
        return self._lognorm - 0.5 * self._chi2(x)

    def contains(self, x):
        return True

    def is_rejected(self, x, rstate):
        # accept with probability pdf(x) / max(pdf)
        return rstate.uniform() > math.exp(-0.5 * self._chi2(x))

    def hyperparameters(self):
        return np.column_stack([self.means, self.sigmas])


class JointPrior(Prior):
    """
    Product of independent priors over consecutive blocks of parameters.

    Parameters
    ----------
    priors : list of :class:`Prior`

    """

    def __init__(self, priors):
        self.priors = list(priors)
        if len(self.priors) == 0:
            raise ConfigurationError("At least one prior is required")
        self.ndim = sum(p.ndim for p in self.priors)
        self._bounds = np.cumsum([0] + [p.ndim for p in self.priors])

    def __repr__(self):
        return f"JointPrior({self.priors!r})"

    def _split(self, x):
        x = np.asarray(x)
        return [
            x[..., lo:hi] for lo, hi in zip(self._bounds[:-1], self._bounds[1:])
        ]

    def draw(self, nsamples, rstate):
        return np.hstack([p.draw(nsamples, rstate) for p in self.priors])

    def logpdf(self, x):
        return sum(p.logpdf(xi) for p, xi in zip(self.priors, self._split(x)))

    def contains(self, x):
        return all(
            p.contains(xi) for p, xi in zip(self.priors, self._split(x)))

    def is_rejected(self, x, rstate):
        return any(
            p.is_rejected(xi, rstate)
            for p, xi in zip(self.priors, self._split(x)))

    def hyperparameters(self):
        return np.vstack([p.hyperparameters() for p in self.priors])
