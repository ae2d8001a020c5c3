import numpy as np
import pytest
from minins.metric import EuclideanMetric, ManhattanMetric
from utils import get_rstate


@pytest.mark.parametrize("metric", [EuclideanMetric(), ManhattanMetric()])
def test_axioms(metric):
    rstate = get_rstate()
    X = rstate.normal(size=(20, 3))
    Y = rstate.normal(size=(10, 3))
    D = metric.pairwise(X, Y)
    assert D.shape == (20, 10)
    assert np.all(D > 0)
    assert np.allclose(D, metric.pairwise(Y, X).T)
    assert np.allclose(np.diag(metric.pairwise(X, X)), 0)
    assert metric.distance(X[0], X[0]) == 0
    assert np.isclose(metric.distance(X[0], Y[1]), D[0, 1])


def test_values():
    x = np.array([0., 0.])
    y = np.array([3., 4.])
    assert np.isclose(EuclideanMetric().distance(x, y), 5)
    assert np.isclose(ManhattanMetric().distance(x, y), 7)
    assert repr(EuclideanMetric()) == 'EuclideanMetric()'
