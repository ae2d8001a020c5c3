#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Likelihood functions of the observed data given a forward model. A
likelihood is a callable returning the ln(likelihood) of a parameter
vector.

"""

import math
import numpy as np

from .config import ConfigurationError

__all__ = ["NormalLikelihood", "ExponentialLikelihood"]


class Likelihood:
    """
    Base class of the likelihoods.

    Parameters
    ----------
    observations : `~numpy.ndarray` with shape (npoints,)

    model : :class:`~minins.models.Model`
        Forward model with a `predict(params)` method.

    """

    def __init__(self, observations, model):
        self.observations = np.atleast_1d(
            np.asarray(observations, dtype=float))
        self.model = model
        ncov = len(getattr(model, 'covariates', self.observations))
        if ncov != len(self.observations):
            raise ConfigurationError(
                f"The model has {ncov} covariates but there are "
                f"{len(self.observations)} observations")

    def __call__(self, params):
        return self.logl(params)

    def predictions(self, params):
        predictions = np.atleast_1d(self.model.predict(params))
        if len(predictions) != len(self.observations):
            raise ConfigurationError(
                f"The model returned {len(predictions)} predictions for "
                f"{len(self.observations)} observations")
        return predictions

    def logl(self, params):
        raise NotImplementedError


class NormalLikelihood(Likelihood):
    """
    Independent Gaussian errors with known standard deviations.

    Parameters
    ----------
    observations : `~numpy.ndarray` with shape (npoints,)

    uncertainties : `~numpy.ndarray` with shape (npoints,)
        Standard deviation of each observation.

    model : :class:`~minins.models.Model`

    """

    def __init__(self, observations, uncertainties, model):
        super().__init__(observations, model)
        self.uncertainties = np.atleast_1d(
            np.asarray(uncertainties, dtype=float))
        if len(self.uncertainties) != len(self.observations):
            raise ConfigurationError(
                f"There are {len(self.uncertainties)} uncertainties for "
                f"{len(self.observations)} observations")
        if not np.all(self.uncertainties > 0):
            raise ConfigurationError("Uncertainties must be positive")
        self._lognorm = -(0.5 * len(self.observations) * math.log(2 * math.pi)
                          + np.log(self.uncertainties).sum())

    def logl(self, params):
        resid = (self.observations - self.predictions(params)) / \
            self.uncertainties
        return self._lognorm - 0.5 * np.dot(resid, resid)


class ExponentialLikelihood(Likelihood):
    """
    Exponentially distributed observations whose means are the model
    predictions.

    """

    def logl(self, params):
        predictions = self.predictions(params)
        if np.any(predictions <= 0) or np.any(self.observations < 0):
            return -np.inf
        return -(np.log(predictions) +
                 self.observations / predictions).sum()
