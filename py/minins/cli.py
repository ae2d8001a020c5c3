#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Command line driver fitting a forward model to a data file with the nested
sampler and writing the results as text files.

"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

from . import __version__
from .clustering import KmeansClusterer
from .config import (ConfigurationError, load_clustering_config,
                     load_data, load_sampler_config)
from .io import (write_configuration, write_prior_hyperparameters,
                 write_results)
from .likelihoods import NormalLikelihood
from .metric import EuclideanMetric
from .models import LinearModel, RemoteSpectrumModel, PSG_URL
from .priors import UniformPrior
from .reducers import PowerlawReducer
from .sampler import NestedSampler, LivePointFloorError
from .utils import get_random_generator

__all__ = ["main", "setup_logging"]

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_CONFIGURATION_ERROR = 2
EXIT_FLOOR_REACHED = 3


def setup_logging(level="INFO", format_string=None, stream=None):
    """
    Configure logging for the command line driver.

    Parameters
    ----------
    level : str
        Logging level: 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'

    format_string : str, optional
        Custom format string. If None, uses default format.

    stream : file-like object, optional
        Stream to write logs to. If None, uses sys.stderr.

    """
    if format_string is None:
        format_string = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
    if stream is None:
        stream = sys.stderr
    logging.basicConfig(level=getattr(logging, level.upper()),
                        format=format_string,
                        stream=stream,
                        datefmt="%Y-%m-%d %H:%M:%S",
                        force=True)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="minins",
        description="Nested sampling inference of the parameters of a "
        "forward model with multi-ellipsoidal sampling.")
    parser.add_argument("--version",
                        action="version",
                        version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        default="INFO",
                        help="Set logging level (default: INFO)")
    parser.add_argument("--data",
                        default="input_data.txt",
                        help="Three-column data file: covariates, "
                        "observations, uncertainties")
    parser.add_argument("--xmeans-config",
                        default="Xmeans_configuringParameters.txt",
                        help="File with the minimum and maximum number of "
                        "clusters")
    parser.add_argument("--nsmc-config",
                        default="NSMC_configuringParameters.txt",
                        help="File with the eight nested sampler settings")
    parser.add_argument("--prefix",
                        default="Inference_",
                        help="Prefix of the output files")
    parser.add_argument("--minima",
                        type=float,
                        nargs="+",
                        default=[0.5, 2.0],
                        help="Lower bounds of the uniform prior")
    parser.add_argument("--maxima",
                        type=float,
                        nargs="+",
                        default=[3.0, 20.0],
                        help="Upper bounds of the uniform prior")
    parser.add_argument("--model",
                        choices=["linear", "remote"],
                        default="linear",
                        help="Forward model (default: linear)")
    parser.add_argument("--remote-template",
                        default=None,
                        help="Configuration template of the remote model")
    parser.add_argument("--parameter-names",
                        nargs="+",
                        default=None,
                        help="Template fields of the remote model")
    parser.add_argument("--remote-url",
                        default=PSG_URL,
                        help="Address of the remote model service")
    parser.add_argument("--ntrials",
                        type=int,
                        default=10,
                        help="K-means restarts per number of clusters")
    parser.add_argument("--rel-tol",
                        type=float,
                        default=0.01,
                        help="Relative tolerance of the K-means iterations")
    parser.add_argument("--tolerance",
                        type=float,
                        default=1e2,
                        help="Tolerance of the live point reducer")
    parser.add_argument("--exponent",
                        type=float,
                        default=0.4,
                        help="Exponent of the live point reducer")
    parser.add_argument("--credible-level",
                        type=float,
                        default=68.3,
                        help="Credible level (%%) of the parameter summary")
    parser.add_argument("--seed",
                        type=int,
                        default=None,
                        help="Seed of the random number generator")
    parser.add_argument("--no-progress",
                        action="store_true",
                        help="Do not print the progress of the run")
    return parser


def build_model(args, covariates, ndim):
    if args.model == "linear":
        if ndim != LinearModel.ndim:
            raise ConfigurationError(
                f"The linear model has {LinearModel.ndim} parameters but the "
                f"prior has {ndim} dimensions")
        return LinearModel(covariates)
    if args.remote_template is None or args.parameter_names is None:
        raise ConfigurationError("The remote model requires "
                                 "--remote-template and --parameter-names")
    if len(args.parameter_names) != ndim:
        raise ConfigurationError(
            f"{len(args.parameter_names)} parameter names were given for "
            f"{ndim} prior dimensions")
    try:
        template = Path(args.remote_template).read_text()
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read the remote model template: {exc}") from exc
    return RemoteSpectrumModel(covariates,
                               template,
                               args.parameter_names,
                               url=args.remote_url)


def run(args):
    """Run the inference described by the parsed arguments and return the
    exit status."""
    covariates, observations, uncertainties = load_data(args.data)
    prior = UniformPrior(args.minima, args.maxima)
    write_prior_hyperparameters(prior,
                                args.prefix + "hyperParametersUniform.txt")
    model = build_model(args, covariates, prior.ndim)
    likelihood = NormalLikelihood(observations, uncertainties, model)

    clustering_config = load_clustering_config(args.xmeans_config,
                                               ntrials=args.ntrials,
                                               rel_tol=args.rel_tol)
    clusterer = KmeansClusterer(
        metric=EuclideanMetric(),
        min_nclusters=clustering_config.min_nclusters,
        max_nclusters=clustering_config.max_nclusters,
        ntrials=clustering_config.ntrials,
        rel_tol=clustering_config.rel_tol)
    config = load_sampler_config(args.nsmc_config)
    reducer = PowerlawReducer(tolerance=args.tolerance,
                              exponent=args.exponent,
                              termination_factor=config.termination_factor)

    sampler = NestedSampler(likelihood,
                            prior,
                            clusterer=clusterer,
                            reducer=reducer,
                            rstate=get_random_generator(args.seed),
                            **config._asdict())
    logger.info("Starting the nested sampling with %d live points",
                sampler.nlive)
    status = EXIT_SUCCESS
    try:
        sampler.run_nested(print_progress=not args.no_progress)
    except LivePointFloorError as exc:
        logger.error("%s", exc)
        status = EXIT_FLOOR_REACHED
    if not args.no_progress:
        sys.stderr.write("\n")
    results = sampler.results
    write_configuration(results,
                        args.prefix + "configuringParameters.txt",
                        clustering_config=clustering_config)
    write_results(results, args.prefix, credible_level=args.credible_level)
    logger.info("log(Z) = %.3f +/- %.3f after %d iterations (%s)",
                results.logz[-1], results.logzerr[-1], results.niter,
                results.status)
    mean = np.average(results.samples,
                      weights=results.importance_weights(),
                      axis=0)
    logger.info("Posterior mean: %s", mean)
    return status


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)
    try:
        return run(args)
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_CONFIGURATION_ERROR


if __name__ == "__main__":
    sys.exit(main())
