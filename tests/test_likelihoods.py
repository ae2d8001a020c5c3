import numpy as np
import scipy.stats
import pytest
from minins.likelihoods import NormalLikelihood, ExponentialLikelihood
from minins.models import LinearModel, Model
from minins.config import ConfigurationError


class WrongLengthModel(Model):

    def predict(self, params):
        return np.zeros(len(self.covariates) + 1)


def test_normal():
    x = np.linspace(0, 1, 5)
    y = np.array([1., 2., 3., 4., 5.])
    err = np.array([1., 1., 2., 2., 3.])
    like = NormalLikelihood(y, err, LinearModel(x))
    params = np.array([2., 1.])
    pred = 2 * x + 1
    assert np.isclose(like(params),
                      scipy.stats.norm(pred, err).logpdf(y).sum())
    # maximal at the observations
    assert like(params) < NormalLikelihood(pred, err, LinearModel(x))(params)


def test_exponential():
    x = np.linspace(1, 2, 4)
    y = np.array([0.5, 1., 2., 3.])
    like = ExponentialLikelihood(y, LinearModel(x))
    params = np.array([1., 0.5])
    pred = x + 0.5
    assert np.isclose(like(params),
                      scipy.stats.expon(scale=pred).logpdf(y).sum())
    assert like(np.array([-10., 0.])) == -np.inf


def test_mismatch():
    x = np.linspace(0, 1, 5)
    with pytest.raises(ConfigurationError):
        NormalLikelihood(np.zeros(5), np.ones(4), LinearModel(x))
    with pytest.raises(ConfigurationError):
        NormalLikelihood(np.zeros(4), np.ones(4), LinearModel(x))
    with pytest.raises(ConfigurationError):
        NormalLikelihood(np.zeros(5), np.zeros(5), LinearModel(x))
    like = NormalLikelihood(np.zeros(5), np.ones(5), WrongLengthModel(x))
    with pytest.raises(ConfigurationError):
        like(np.array([1., 1.]))
