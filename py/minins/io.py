#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Writing the outcome of a run to plain text files.

All the files of a run share a common prefix (e.g. `Inference_`), and
hold one value per row with `#` comment headers so they can be read back
with `numpy.loadtxt`.

"""

import os
import logging
import numpy as np

from .utils import parameter_summary

__all__ = [
    "write_results", "write_prior_hyperparameters", "write_configuration"
]

logger = logging.getLogger(__name__)

_SUMMARY_HEADER = ("Summary of the marginal posteriors, one row per "
                   "parameter\n"
                   "Columns: mean, median, mode, second moment, "
                   "lower credible limit, upper credible limit, "
                   "credible level (%)")


def _path(prefix, name):
    return os.fspath(prefix) + name


def _savetxt(fname, values, header, **kwargs):
    np.savetxt(fname, values, header=header, **kwargs)
    logger.debug('Wrote %s', fname)
    return fname


def write_results(results,
                  prefix,
                  credible_level=68.3,
                  write_marginals=True):
    """
    Write the samples, the weights and the evidence of a run.

    Parameters
    ----------
    results : :class:`~minins.results.Results`
        Results of the run.

    prefix : str
        Prefix of the file names, which can include a directory.

    credible_level : float, optional
        Credible level (in percent) of the intervals of the parameter
        summary. Default is `68.3`.

    write_marginals : bool, optional
        Whether to write the weighted histogram of each parameter.
        Default is `True`.

    Returns
    -------
    fnames : list of str
        Names of the files written.

    """
    samples = np.asarray(results['samples'])
    ndim = samples.shape[1]
    weights = results.importance_weights()
    fnames = []

    for i in range(ndim):
        fnames.append(
            _savetxt(_path(prefix, f'parameter{i:03d}.txt'),
                     samples[:, i],
                     header=f'Posterior sample of parameter {i}'))
    fnames.append(
        _savetxt(_path(prefix, 'logLikelihood.txt'),
                 results['logl'],
                 header='Log-likelihood of the posterior samples'))
    fnames.append(
        _savetxt(_path(prefix, 'logWeights.txt'),
                 results['logwt'],
                 header='Log-weights of the posterior samples'))
    evidence = np.array([
        results['logz'][-1], results['logzerr'][-1],
        results['information'][-1]
    ])
    fnames.append(
        _savetxt(_path(prefix, 'evidenceInformation.txt'),
                 evidence,
                 header=('Row #1: log(evidence)\n'
                         'Row #2: error on log(evidence)\n'
                         'Row #3: information gain (nats)')))
    fnames.append(
        _savetxt(_path(prefix, 'posteriorDistribution.txt'),
                 weights,
                 header='Posterior probability of the samples'))
    summary = parameter_summary(samples,
                                weights,
                                credible_level=credible_level)
    fnames.append(
        _savetxt(_path(prefix, 'parameterSummary.txt'),
                 summary,
                 header=_SUMMARY_HEADER))

    if write_marginals:
        for i in range(ndim):
            hist, edges = np.histogram(samples[:, i],
                                       bins=int(np.clip(
                                           np.sqrt(len(samples)), 10, 100)),
                                       weights=weights,
                                       density=True)
            centers = 0.5 * (edges[1:] + edges[:-1])
            fnames.append(
                _savetxt(_path(prefix, f'marginalDistribution{i:03d}.txt'),
                         np.column_stack([centers, hist]),
                         header=(f'Marginal posterior of parameter {i}\n'
                                 'Columns: bin center, density')))
    logger.info('Wrote %d result files with prefix %s', len(fnames), prefix)
    return fnames


def write_prior_hyperparameters(prior, fname):
    """
    Write the hyper-parameters of a prior, one row per parameter.

    """
    return _savetxt(fname,
                    prior.hyperparameters(),
                    header=f'Hyper-parameters of {prior!r}')


def write_configuration(results, fname, clustering_config=None):
    """
    Write the configuration of a run.

    Parameters
    ----------
    results : :class:`~minins.results.Results`
        Results of the run, holding the sampler configuration.

    fname : str
        Output file.

    clustering_config : :class:`~minins.config.ClusteringConfig`, optional
        Configuration of the clusterer, written first if provided.

    """
    rows = []
    if clustering_config is not None:
        rows.extend(clustering_config._asdict().items())
    config = results['config'] if 'config' in results else {}
    rows.extend((k, v) for k, v in config.items()
                if isinstance(v, (int, float, np.number)))
    rows.append(('status', results['status'] if 'status' in results else None))
    with open(fname, 'w') as fp:
        fp.write('# List of configuring parameters of the run\n')
        for i, (k, v) in enumerate(rows):
            fp.write(f'# Row #{i + 1}: {k}\n')
        for k, v in rows:
            fp.write(f'{v}\n')
    logger.debug('Wrote %s', fname)
    return fname
