import numpy as np
import pytest
import minins
import minins.utils
from minins.results import print_fn
from minins.utils import IteratorResult
from utils import get_rstate
"""
Run a series of basic tests testing printing output
"""

nlive = 100
printing = True
prior = minins.UniformPrior([-10, -10], [10, 10])


def loglike(x):
    return -0.5 * np.sum(x**2)


@pytest.mark.parametrize('withtqdm', [False, True])
def test_printing(withtqdm):
    tqdm = minins.utils.tqdm
    if not withtqdm:
        minins.utils.tqdm = None
    try:
        rstate = get_rstate()
        sampler = minins.NestedSampler(loglike,
                                       prior,
                                       nlive=nlive,
                                       rstate=rstate)
        sampler.run_nested(print_progress=printing, maxiter=300)
    finally:
        minins.utils.tqdm = tqdm


def test_print_large(capsys):
    # very large and invalid values are printed without failing
    res = IteratorResult(worst=0,
                         vstar=np.zeros(2),
                         loglstar=-1e300,
                         logvol=-1.,
                         logwt=-np.inf,
                         logz=-1e300,
                         logzvar=-1.,
                         h=0.,
                         nc=3,
                         worst_it=0,
                         nlive=10,
                         nclusters=2,
                         enlarge=0.5,
                         eff=10.,
                         delta_logz=1e10)
    print_fn(res, 5, 100, stop_val=0.01)
    print_fn(res, 5, 100, add_live_it=3)
    err = capsys.readouterr().err
    assert 'nclust: 2' in err
    assert '+3' in err


def test_custom_print_func():
    calls = []

    def print_func(results, niter, ncall, add_live_it=None, stop_val=None):
        calls.append((niter, add_live_it))

    sampler = minins.NestedSampler(loglike,
                                   prior,
                                   nlive=20,
                                   rstate=get_rstate())
    sampler.run_nested(print_func=print_func)
    niter = sampler.results.niter
    assert len(calls) == niter + len(sampler.live_logl)
    assert calls[niter][1] == 1
