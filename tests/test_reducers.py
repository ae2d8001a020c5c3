import warnings
import numpy as np
import pytest
from minins.reducers import PowerlawReducer
from minins.config import ConfigurationError


def test_ratio():
    red = PowerlawReducer()
    assert red.remaining_ratio(0., np.log(0.5)) == pytest.approx(0.5)
    assert red.remaining_ratio(0., -np.inf) == 0
    assert red.remaining_ratio(-np.inf, 0.) == np.inf


def test_stop():
    red = PowerlawReducer(termination_factor=0.01)
    assert not red.should_stop(0., np.log(0.5))
    assert red.should_stop(0., np.log(0.005))
    # no remaining prior mass
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert red.should_stop(0., -np.inf)
        assert red.update_nlive(100, 10, 0., -np.inf) == 10


def test_update_nlive():
    red = PowerlawReducer(tolerance=100, exponent=0.4, termination_factor=0.01)
    # above tolerance * termination_factor nothing is removed
    assert red.update_nlive(500, 50, 0., np.log(2.)) == 500
    # ratio 0.1 -> (1 / 0.1) ** 0.4 = 2.51 -> 2 points
    assert red.update_nlive(500, 50, 0., np.log(0.1)) == 498
    # ratio 0.02 -> 50 ** 0.4 = 4.78 -> 4 points
    assert red.update_nlive(500, 50, 0., np.log(0.02)) == 496
    # never below the minimum
    assert red.update_nlive(51, 50, 0., np.log(0.02)) == 50
    assert red.update_nlive(50, 50, 0., np.log(0.02)) == 50
    # the removal grows as the ratio decreases
    counts = [
        500 - red.update_nlive(500, 1, 0., np.log(r))
        for r in [0.9, 0.5, 0.1, 0.01]
    ]
    assert counts == sorted(counts)


@pytest.mark.parametrize("kwargs", [
    dict(tolerance=0.5),
    dict(exponent=-1),
    dict(termination_factor=0),
])
def test_invalid(kwargs):
    with pytest.raises(ConfigurationError):
        PowerlawReducer(**kwargs)
