#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Configuration of a nested sampling run.

The sampler and the clusterer are configured with plain keyword arguments
that are validated here before any likelihood call is made. The loaders
read the plain-text configuration files used by the command line driver:
one value per row, `#` comments allowed.

"""

import logging
import numbers
from collections import namedtuple
import numpy as np

__all__ = [
    "ConfigurationError", "SamplerConfig", "ClusteringConfig",
    "check_sampler_config", "check_clustering_config", "load_sampler_config",
    "load_clustering_config", "load_data"
]

logger = logging.getLogger(__name__)

SamplerConfig = namedtuple('SamplerConfig', [
    'nlive', 'min_nlive', 'max_draw_attempts',
    'n_initial_iterations_without_clustering',
    'n_iterations_with_same_clustering', 'initial_enlarge', 'shrinking_rate',
    'termination_factor'
])

ClusteringConfig = namedtuple(
    'ClusteringConfig',
    ['min_nclusters', 'max_nclusters', 'ntrials', 'rel_tol'])

# Defaults of the configuration file-less entry points.
DEFAULT_NTRIALS = 10
DEFAULT_REL_TOL = 0.01


class ConfigurationError(ValueError):
    """Raised when the configuration of a run is invalid."""
    pass


def _check_count(name, value, minimum=1):
    """Return `value` as an int if it is an integer count >= `minimum`."""
    if isinstance(value, (bool, np.bool_)):
        raise ConfigurationError(f"`{name}` must be an integer, not {value}")
    if isinstance(value, numbers.Integral):
        ivalue = int(value)
    elif isinstance(value, numbers.Real) and float(value).is_integer():
        ivalue = int(value)
    else:
        raise ConfigurationError(f"`{name}` must be an integer, not {value}")
    if ivalue < minimum:
        raise ConfigurationError(f"`{name}` must be >= {minimum}, "
                                 f"not {ivalue}")
    return ivalue


def _check_real(name, value):
    if isinstance(value, (bool, np.bool_)) or not isinstance(
            value, numbers.Real) or not np.isfinite(value):
        raise ConfigurationError(f"`{name}` must be a finite number, "
                                 f"not {value}")
    return float(value)


def check_sampler_config(nlive=500,
                         min_nlive=None,
                         max_draw_attempts=50000,
                         n_initial_iterations_without_clustering=None,
                         n_iterations_with_same_clustering=None,
                         initial_enlarge=1.,
                         shrinking_rate=0.5,
                         termination_factor=0.01):
    """
    Validate the configuration of the nested sampler.

    Parameters
    ----------
    nlive : int
        Initial number of live points.

    min_nlive : int, optional
        Minimum number of live points. Defaults to `nlive`.

    max_draw_attempts : int
        Maximum number of likelihood evaluations allowed when drawing a
        single replacement point.

    n_initial_iterations_without_clustering : int, optional
        Number of initial iterations during which all live points are
        bounded by one ellipsoid. Defaults to `nlive`.

    n_iterations_with_same_clustering : int, optional
        Number of iterations between two clusterings of the live points.
        Defaults to `max(1, nlive // 10)`.

    initial_enlarge : float
        Initial enlargement fraction of the ellipsoid axes (>= 0).

    shrinking_rate : float
        Exponent of the remaining prior mass in the enlargement fraction,
        in `[0, 1]`.

    termination_factor : float
        The run stops when the ratio of remaining to current evidence
        falls below this value (> 0).

    Returns
    -------
    config : :class:`SamplerConfig`

    Raises
    ------
    ConfigurationError
        If any value is out of range.

    """
    nlive = _check_count('nlive', nlive, minimum=2)
    if min_nlive is None:
        min_nlive = nlive
    min_nlive = _check_count('min_nlive', min_nlive)
    if min_nlive > nlive:
        raise ConfigurationError(
            f"`min_nlive` ({min_nlive}) cannot be larger than "
            f"`nlive` ({nlive})")
    max_draw_attempts = _check_count('max_draw_attempts', max_draw_attempts)
    if n_initial_iterations_without_clustering is None:
        n_initial_iterations_without_clustering = nlive
    n_initial_iterations_without_clustering = _check_count(
        'n_initial_iterations_without_clustering',
        n_initial_iterations_without_clustering,
        minimum=0)
    if n_iterations_with_same_clustering is None:
        n_iterations_with_same_clustering = max(1, nlive // 10)
    n_iterations_with_same_clustering = _check_count(
        'n_iterations_with_same_clustering', n_iterations_with_same_clustering)
    initial_enlarge = _check_real('initial_enlarge', initial_enlarge)
    if initial_enlarge < 0:
        raise ConfigurationError("`initial_enlarge` must be >= 0, "
                                 f"not {initial_enlarge}")
    shrinking_rate = _check_real('shrinking_rate', shrinking_rate)
    if shrinking_rate < 0 or shrinking_rate > 1:
        raise ConfigurationError("Shrinking rate for ellipsoids must be in "
                                 f"the range [0, 1], not {shrinking_rate}")
    termination_factor = _check_real('termination_factor',
                                     termination_factor)
    if termination_factor <= 0:
        raise ConfigurationError("`termination_factor` must be > 0, "
                                 f"not {termination_factor}")
    if nlive <= 10:
        logger.warning('Only %d live points were requested', nlive)
    return SamplerConfig(
        nlive=nlive,
        min_nlive=min_nlive,
        max_draw_attempts=max_draw_attempts,
        n_initial_iterations_without_clustering=(
            n_initial_iterations_without_clustering),
        n_iterations_with_same_clustering=n_iterations_with_same_clustering,
        initial_enlarge=initial_enlarge,
        shrinking_rate=shrinking_rate,
        termination_factor=termination_factor)


def check_clustering_config(min_nclusters=1,
                            max_nclusters=6,
                            ntrials=DEFAULT_NTRIALS,
                            rel_tol=DEFAULT_REL_TOL):
    """
    Validate the configuration of the K-means clusterer.

    Raises
    ------
    ConfigurationError
        If the cluster counts are not positive integers, if
        `min_nclusters > max_nclusters`, if `ntrials < 1` or if
        `rel_tol <= 0`.

    """
    try:
        min_nclusters = _check_count('min_nclusters', min_nclusters)
        max_nclusters = _check_count('max_nclusters', max_nclusters)
    except ConfigurationError as exc:
        raise ConfigurationError(
            "Minimum or maximum number of clusters cannot be <= 0: "
            f"{exc}") from exc
    if max_nclusters < min_nclusters:
        raise ConfigurationError(
            "Minimum number of clusters cannot be larger than maximum "
            f"number of clusters ({min_nclusters} > {max_nclusters})")
    ntrials = _check_count('ntrials', ntrials)
    rel_tol = _check_real('rel_tol', rel_tol)
    if rel_tol <= 0:
        raise ConfigurationError(f"`rel_tol` must be > 0, not {rel_tol}")
    return ClusteringConfig(min_nclusters=min_nclusters,
                            max_nclusters=max_nclusters,
                            ntrials=ntrials,
                            rel_tol=rel_tol)


def _load_values(fname, nvalues, what):
    try:
        values = np.atleast_1d(np.loadtxt(fname, comments='#', ndmin=1))
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read the {what} configuration file {fname}: "
            f"{exc}") from exc
    except ValueError as exc:
        raise ConfigurationError(
            f"Malformed {what} configuration file {fname}: {exc}") from exc
    values = values.ravel()
    if len(values) != nvalues:
        raise ConfigurationError(
            f"Wrong number of input parameters for {what} in {fname}: "
            f"expected {nvalues}, got {len(values)}")
    logger.info('Loaded %s configuration from %s', what, fname)
    return values


def load_sampler_config(fname):
    """
    Read the nested sampler configuration file. Its eight rows are:
    initial number of live points, minimum number of live points, maximum
    number of draw attempts, number of initial iterations without
    clustering, number of iterations with the same clustering, initial
    enlargement fraction, shrinking rate and termination factor.

    Returns
    -------
    config : :class:`SamplerConfig`

    """
    values = _load_values(fname, 8, 'the nested sampler')
    return check_sampler_config(
        nlive=values[0],
        min_nlive=values[1],
        max_draw_attempts=values[2],
        n_initial_iterations_without_clustering=values[3],
        n_iterations_with_same_clustering=values[4],
        initial_enlarge=values[5],
        shrinking_rate=values[6],
        termination_factor=values[7])


def load_clustering_config(fname,
                           ntrials=DEFAULT_NTRIALS,
                           rel_tol=DEFAULT_REL_TOL):
    """
    Read the clustering configuration file holding the minimum and maximum
    number of clusters.

    Returns
    -------
    config : :class:`ClusteringConfig`

    """
    values = _load_values(fname, 2, 'X-means')
    return check_clustering_config(min_nclusters=values[0],
                                   max_nclusters=values[1],
                                   ntrials=ntrials,
                                   rel_tol=rel_tol)


def load_data(fname):
    """
    Read a data file with three columns: covariates, observations and
    uncertainties.

    Returns
    -------
    covariates, observations, uncertainties : `~numpy.ndarray`

    """
    try:
        data = np.loadtxt(fname, comments='#', ndmin=2)
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read the data file {fname}: {exc}") from exc
    except ValueError as exc:
        raise ConfigurationError(
            f"Malformed data file {fname}: {exc}") from exc
    if data.shape[1] != 3:
        raise ConfigurationError(
            f"The data file {fname} must have 3 columns "
            f"(covariates, observations, uncertainties), "
            f"found {data.shape[1]}")
    logger.info('Loaded %d data points from %s', len(data), fname)
    return data[:, 0], data[:, 1], data[:, 2]
