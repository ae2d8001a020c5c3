#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Utilities for handling results.

"""

import sys
import copy
import shutil
from collections import namedtuple
import numpy as np

__all__ = ["Results", "print_fn"]

PrintFnArgs = namedtuple('PrintFnArgs',
                         ['niter', 'short_str', 'mid_str', 'long_str'])


def print_fn(results,
             niter,
             ncall,
             add_live_it=None,
             stop_val=None,
             pbar=None):
    """
    The default function used to print out results in real time.

    Parameters
    ----------

    results : tuple
        Collection of variables output from the current state of the sampler
        (an :class:`~minins.utils.IteratorResult`).

    niter : int
        The current iteration of the sampler.

    ncall : int
        The total number of function calls at the current iteration.

    add_live_it : int, optional
        If the last set of live points are being added explicitly, this
        quantity tracks the sorted index of the current live point being added.

    stop_val : float, optional
        The ratio of remaining to current evidence at which the run stops.

    """
    fn_args = get_print_fn_args(results,
                                niter,
                                ncall,
                                add_live_it=add_live_it,
                                stop_val=stop_val)
    if pbar is None:
        print_fn_fallback(fn_args)
    else:
        pbar.set_postfix_str(" | ".join(fn_args.long_str), refresh=False)
        pbar.update(fn_args.niter - pbar.n)


def get_print_fn_args(results, niter, ncall, add_live_it=None, stop_val=None):
    # Extract results at the current iteration.
    loglstar = results.loglstar
    logz = results.logz
    logzvar = results.logzvar
    delta_logz = results.delta_logz

    # Adjusting outputs for printing.
    if delta_logz > 1e6:
        delta_logz = np.inf
    if logzvar >= 0. and logzvar <= 1e6:
        logzerr = np.sqrt(logzvar)
    else:
        logzerr = np.nan
    if logz <= -1e6:
        logz = -np.inf
    if loglstar <= -1e6:
        loglstar = -np.inf

    # Constructing output.
    long_str = []
    if add_live_it is not None:
        long_str.append("+{:d}".format(add_live_it))
    short_str = list(long_str)
    long_str.append("nlive: {:d}".format(results.nlive))
    long_str.append("nclust: {:d}".format(results.nclusters))
    long_str.append("nc: {:d}".format(results.nc))
    long_str.append("ncall: {:d}".format(ncall))
    long_str.append("eff(%): {:6.3f}".format(results.eff))
    short_str.append(long_str[-1])
    long_str.append("loglstar: {:6.3f}".format(loglstar))
    short_str.append("logl*: {:6.1f}".format(loglstar))
    long_str.append("logz: {:6.3f} +/- {:6.3f}".format(logz, logzerr))
    short_str.append("logz: {:6.1f}+/-{:.1f}".format(logz, logzerr))
    mid_str = list(short_str)
    if stop_val is not None:
        long_str.append("dlogz: {:6.3f} > {:6.3f}".format(
            delta_logz, np.log1p(stop_val)))
        mid_str.append("dlogz: {:6.1f}>{:6.1f}".format(
            delta_logz, np.log1p(stop_val)))
    else:
        long_str.append("dlogz: {:6.3f}".format(delta_logz))
        mid_str.append("dlogz: {:6.1f}".format(delta_logz))

    return PrintFnArgs(niter=niter,
                       short_str=short_str,
                       mid_str=mid_str,
                       long_str=long_str)


def print_fn_fallback(fn_args):
    niter, short_str, mid_str, long_str = (fn_args.niter, fn_args.short_str,
                                           fn_args.mid_str, fn_args.long_str)

    long_str = ["iter: {:d}".format(niter)] + long_str

    # Printing.
    long_str = ' | '.join(long_str)
    mid_str = ' | '.join(mid_str)
    short_str = '|'.join(short_str)
    if sys.stderr.isatty() and hasattr(shutil, 'get_terminal_size'):
        columns = shutil.get_terminal_size(fallback=(80, 25))[0]
    else:
        columns = 200
    if columns > len(long_str):
        sys.stderr.write("\r" + long_str + ' ' * (columns - len(long_str) - 2))
    elif columns > len(mid_str):
        sys.stderr.write("\r" + mid_str + ' ' * (columns - len(mid_str) - 2))
    else:
        sys.stderr.write("\r" + short_str + ' ' *
                         (columns - len(short_str) - 2))
    sys.stderr.flush()


# List of results attributes as
# Name, type, description, shape (if array)
_RESULTS_STRUCTURE = [
    ('logl', 'array[float]', 'Log likelihood', 'niter'),
    ('samples', 'array[float]', 'The location of dead and final live points',
     'niter,ndim'),
    ('samples_it', 'array[int]',
     "the sampling iteration when the sample was proposed "
     "(e.g., iteration 570)", 'niter'),
    ('samples_id', 'array[int]',
     'The index of the sample within the live points', 'niter'),
    ('samples_n', 'array[int]',
     'The number of live points at the point when the sample was removed',
     'niter'),
    ('samples_cluster', 'array[int]',
     'The cluster the sample belonged to when it was removed', 'niter'),
    ('nlive', 'int', 'Initial number of live points', None),
    ('niter', 'int', 'number of iterations', None),
    ('ncall', 'array[int]', 'Number of likelihood calls per dead point',
     'niter'),
    ('eff', 'float', 'Sampling efficiency (in percent)', None),
    ('logz', 'array', 'Array of cumulative log(Z) integrals', 'niter'),
    ('logzerr', 'array', 'Array of uncertainty of log(Z)', 'niter'),
    ('logwt', 'array', 'Array of log-posterior weights', 'niter'),
    ('logvol', 'array[float]', 'Logvolumes of dead points', 'niter'),
    ('information', 'array[float]', 'Information Integral H', 'niter'),
    ('nclusters', 'array[int]', 'Number of clusters at each iteration',
     'niter'),
    ('enlarge', 'array[float]', 'Enlargement fraction at each iteration',
     'niter'),
    ('status', 'str',
     "How the run ended: 'converged', 'maxiter', 'maxcall', 'plateau' or "
     "'floor_reached'", None),
    ('counters', 'dict', 'Counters of recovered run conditions', None),
    ('config', 'dict', 'Configuration of the run', None)
]


class Results:
    """
    Contains the full output of a run along with a set of helper
    functions for summarizing the output.
    The object is meant to be unchangeable record of the nested run.

    Results attributes (name, type, description, array size):
    """

    _ALLOWED = set([_[0] for _ in _RESULTS_STRUCTURE])

    def __init__(self, key_values):
        """
        Initialize the results using the list of key value pairs
        or a dictionary
        Results([('logl', [1, 2, 3]), ('samples',[[1],[2],[3]])])
        Results(dict(logl=[1, 2, 3], samples=[[1],[2],[3]]))
        """
        self._keys = []
        self._initialized = False
        if isinstance(key_values, dict):
            key_values_list = key_values.items()
        else:
            key_values_list = key_values
        for k, v in key_values_list:
            assert (k not in self._keys)  # ensure no duplicates
            assert k in Results._ALLOWED, k
            self._keys.append(k)
            setattr(self, k, copy.copy(v))
        required_keys = ['samples', 'logl', 'logwt', 'logz']
        for k in required_keys:
            if k not in self._keys:
                raise ValueError('Key %s must be provided' % k)
        self._initialized = True

    def __copy__(self):
        # this will be a deep copy
        return Results(self.asdict().items())

    def copy(self):
        '''
        return a copy of the object
        all numpy arrays will be copied too
        '''
        return self.__copy__()

    def __setattr__(self, name, value):
        if name[0] != '_' and self._initialized:
            raise RuntimeError("Cannot set attributes directly")
        super().__setattr__(name, value)

    def __getitem__(self, name):
        if name in self._keys:
            return getattr(self, name)
        else:
            raise KeyError(name)

    def __repr__(self):
        m = max(list(map(len, list(self._keys)))) + 1
        return '\n'.join(
            [k.rjust(m) + ': ' + repr(getattr(self, k)) for k in self._keys])

    def __contains__(self, key):
        return key in self._keys

    def keys(self):
        """ Return the list of attributes/keys stored in Results """
        return self._keys

    def items(self):
        """
Return the list of items in the results object as list of key,value pairs
        """
        return ((k, getattr(self, k)) for k in self._keys)

    def asdict(self):
        """
        Return contents of the Results object as dictionary
        """
        # importantly here we copy attribute values
        return dict((k, copy.copy(getattr(self, k))) for k in self._keys)

    def importance_weights(self):
        """
        Return the importance weights for the each sample.
        """
        logwt = self['logwt'] - self['logz'][-1]
        wt = np.exp(logwt)
        wt = wt / wt.sum()
        return wt

    def samples_equal(self, rstate=None):
        """
        Return the equally weighted samples in random order.
        """
        from .utils import resample_equal, get_random_generator
        if rstate is None:
            rstate = get_random_generator()
        return rstate.permutation(
            resample_equal(self['samples'], self.importance_weights(),
                           rstate=rstate))

    def summary(self):
        """Return a formatted string giving a quick summary
        of the results."""

        res = ("nlive: {:d}\n"
               "niter: {:d}\n"
               "ncall: {:d}\n"
               "eff(%): {:6.3f}\n"
               "logz: {:6.3f} +/- {:6.3f}".format(self.nlive, self.niter,
                                                  int(sum(self.ncall)),
                                                  self.eff, self.logz[-1],
                                                  self.logzerr[-1]))

        print('Summary\n=======\n' + res)


Results.__doc__ += '\n\n' + str('\n'.join(
    ['| ' + str(_) for _ in _RESULTS_STRUCTURE])) + '\n'
