import numpy as np
import os
'''
Here we setup a common seed for all the tests
But we also allow to set the seed through MININS_TEST_RANDOMSEED
environment variable.
That allows to run long tests by looping over seed value to catch
potentially rare behaviour
'''


def get_rstate(seed=None):
    if seed is None:
        kw = 'MININS_TEST_RANDOMSEED'
        if kw in os.environ:
            seed = int(os.environ[kw])
        else:
            seed = 56432
    return np.random.default_rng(seed)


def get_printing():
    kw = 'MININS_TEST_PRINTING'
    if kw in os.environ:
        return int(os.environ[kw])
    else:
        return False


def linear_data(slope=1.5, offset=10., npoints=40, sigma=0.5, seed=1):
    """Noisy straight line used by the end-to-end tests."""
    rstate = np.random.default_rng(seed)
    x = np.linspace(0, 10, npoints)
    err = np.full(npoints, sigma)
    y = slope * x + offset + rstate.normal(0, sigma, npoints)
    return x, y, err
