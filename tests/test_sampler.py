import warnings
import numpy as np
import pytest
import minins
from minins.config import ConfigurationError
from minins.sampler import LivePointFloorError
from utils import get_rstate, get_printing

printing = get_printing()
ndim = 2
prior = minins.UniformPrior([-10, -10], [10, 10])


def loglike(x):
    return -0.5 * np.sum(x**2)


class SwitchableLike:
    """Gaussian log-likelihood that can be switched to always return
    -inf, so every draw fails."""

    def __init__(self):
        self.fail = False
        self.ncalls = 0

    def __call__(self, x):
        self.ncalls += 1
        if self.fail:
            return -np.inf
        return loglike(x)


def test_invariants():
    rstate = get_rstate()
    sampler = minins.NestedSampler(loglike,
                                   prior,
                                   nlive=100,
                                   min_nlive=20,
                                   rstate=rstate)
    logvol_prev = 0
    loglstar_prev = -np.inf
    for res in sampler.sample():
        # the dead point had the lowest likelihood of the live points
        assert np.all(sampler.live_logl >= res.loglstar)
        assert res.loglstar >= loglstar_prev
        # the remaining prior volume strictly decreases
        assert res.logvol < logvol_prev
        logvol_prev = res.logvol
        loglstar_prev = res.loglstar
        assert res.nlive == len(sampler.live_logl)
        assert res.nlive >= 20
    assert sampler.status == 'converged'
    for res in sampler.add_live_points():
        assert res.logvol < logvol_prev
        logvol_prev = res.logvol
    results = sampler.results
    assert np.all(np.diff(results.logvol) < 0)
    assert np.all(np.diff(results.logl) >= 0)
    assert np.isclose(results.importance_weights().sum(), 1)
    assert len(results.samples) == len(results.logl)
    assert results.ncall.sum() <= sampler.ncall
    with pytest.raises(ValueError):
        list(sampler.add_live_points())


def test_evidence():
    rstate = get_rstate()
    sampler = minins.NestedSampler(loglike,
                                   prior,
                                   nlive=200,
                                   min_nlive=50,
                                   rstate=rstate)
    sampler.run_nested(print_progress=printing)
    res = sampler.results
    # normalized gaussian within the prior
    logz_truth = np.log(2 * np.pi) - np.log(400)
    assert np.abs(res.logz[-1] - logz_truth) < 4 * res.logzerr[-1] + 0.1
    assert res.status == 'converged'
    assert set(res.counters) >= {
        'draw_exhausted', 'degenerate_ellipsoids', 'clamped_logvol',
        'reclusterings'
    }
    assert res.config['nlive'] == 200
    assert res.config['min_nlive'] == 50
    assert res.nclusters.min() >= 1
    assert np.all(res.enlarge >= 0)


def test_reproducible():
    logzs = []
    for i in range(2):
        sampler = minins.NestedSampler(loglike,
                                       prior,
                                       nlive=50,
                                       rstate=get_rstate())
        sampler.run_nested(print_progress=False)
        logzs.append(sampler.results.logz[-1])
    assert logzs[0] == logzs[1]


def test_exhaustion_retires_points():
    rstate = get_rstate()
    like = SwitchableLike()
    sampler = minins.NestedSampler(like,
                                   prior,
                                   nlive=50,
                                   min_nlive=45,
                                   max_draw_attempts=10,
                                   rstate=rstate)
    like.fail = True
    gen = sampler.sample()
    with pytest.warns(RuntimeWarning):
        for i in range(5):
            res = next(gen)
            assert res.nlive == 49 - i
            assert res.nc == 10
    assert sampler.counters['draw_exhausted'] == 5
    assert sampler.counters['retired_without_replacement'] == 5
    # the next failure would go below the minimum
    with pytest.raises(LivePointFloorError):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            next(gen)
    assert sampler.status == 'floor_reached'


def test_floor_run_nested():
    rstate = get_rstate()
    like = SwitchableLike()
    sampler = minins.NestedSampler(like,
                                   prior,
                                   nlive=30,
                                   max_draw_attempts=5,
                                   rstate=rstate)
    like.fail = True
    with pytest.raises(LivePointFloorError):
        sampler.run_nested(print_progress=False)
    res = sampler.results
    assert res.status == 'floor_reached'
    # only the final live points were added
    assert len(res.logl) == 30
    assert np.isfinite(res.logz[-1])


def test_maxiter():
    rstate = get_rstate()
    sampler = minins.NestedSampler(loglike, prior, nlive=50, rstate=rstate)
    with pytest.warns(UserWarning):
        sampler.run_nested(maxiter=20, print_progress=False)
    res = sampler.results
    assert res.status == 'maxiter'
    assert res.niter == 20
    assert len(res.logl) == 20 + 50


def test_config_checked_before_sampling():
    like = SwitchableLike()
    for kwargs in [
            dict(shrinking_rate=2),
            dict(min_nlive=200, nlive=100),
            dict(initial_enlarge=-1),
            dict(nlive=1),
            dict(termination_factor=0),
            dict(max_draw_attempts=0),
    ]:
        with pytest.raises(ConfigurationError):
            minins.NestedSampler(like, prior, **kwargs)
    assert like.ncalls == 0
    with pytest.raises(ConfigurationError):
        minins.NestedSampler(None, prior)


def test_invalid_loglike():
    rstate = get_rstate()
    with pytest.raises(ValueError):
        minins.NestedSampler(lambda x: np.nan, prior, nlive=20, rstate=rstate)


def test_plateau():
    rstate = get_rstate()
    with pytest.warns(RuntimeWarning):
        sampler = minins.NestedSampler(lambda x: 0.,
                                       prior,
                                       nlive=20,
                                       rstate=rstate)
    with pytest.warns(UserWarning):
        sampler.run_nested(print_progress=False)
    assert sampler.results.status == 'plateau'


def test_pool():

    class SerialPool:

        def __init__(self):
            self.nmap = 0

        def map(self, func, iterable):
            self.nmap += 1
            return list(map(func, iterable))

    pool = SerialPool()
    sampler = minins.NestedSampler(loglike,
                                   prior,
                                   nlive=50,
                                   pool=pool,
                                   rstate=get_rstate())
    assert pool.nmap >= 1
    sampler.run_nested(print_progress=False, maxiter=10)
