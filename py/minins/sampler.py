#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
The :class:`NestedSampler` class running the nested sampling loop over
ellipsoidal bounds of clustered live points.

"""

import sys
import math
import warnings
import numpy as np

from .config import ConfigurationError, check_sampler_config
from .clustering import KmeansClusterer
from .reducers import PowerlawReducer
from .results import Results
from .sampling import EllipsoidSampler, DrawExhaustedError
from .utils import (get_print_func, integrate_step, compute_integrals,
                    IteratorResult, RunRecord, EvidenceAccumulator,
                    get_neff_from_logwt, get_random_generator, _LOWL_VAL)

__all__ = ["NestedSampler", "LivePointFloorError"]


class LivePointFloorError(RuntimeError):
    """
    Raised when a replacement point cannot be drawn and retiring the worst
    live point would leave fewer live points than the allowed minimum.

    """

    def __init__(self, nlive, min_nlive):
        self.nlive = nlive
        self.min_nlive = min_nlive
        super().__init__(f"Could not draw a new live point and removing one "
                         f"of the {nlive} live points would go below the "
                         f"minimum of {min_nlive}")


def _initialize_live_points(prior,
                            loglikelihood,
                            mapper,
                            nlive=None,
                            rstate=None,
                            n_attempts=100):
    """
    Initialize the first set of live points before starting the sampling

    Parameters
    ----------
    prior : :class:`~minins.priors.Prior`

    loglikelihood : function

    mapper : function
        The function supporting parallel calls like mapper(func, list)

    nlive : int
        Number of live-points

    rstate : :class: numpy.random.RandomGenerator

    Returns
    -------
    (live_v, live_logl), logvol_init, ncalls : tuple
        live_v Coordinates of the points.
        live_logl log-likelihood values of points
        The other arguments are
        logvol_init Log(volume) associated with returned points.
               It will be zero, if all the log(l) values were finite
        ncalls Integer number of function calls
    """
    ndim = prior.ndim
    ncalls = 0
    # the minimum number points we want with finite logl
    min_npoints = min(nlive, max(ndim + 1, min(nlive - 20, 100)))
    live_v = np.zeros((nlive, ndim))
    live_logl = np.zeros(nlive)
    ngoods = 0
    for iattempt in range(1, n_attempts + 1):
        cur_live_v = np.asarray(prior.draw(nlive, rstate))
        cur_live_logl = np.array(list(mapper(loglikelihood, cur_live_v)),
                                 dtype=float)
        ncalls += nlive

        # Convert all `-np.inf` log-likelihoods to finite large
        # numbers. Necessary to keep estimators in our sampler from
        # breaking.
        finite = np.isfinite(cur_live_logl)
        not_finite = ~finite
        if np.any(not_finite & ~np.isneginf(cur_live_logl)):
            raise ValueError("The log-likelihood of live "
                             "point is invalid.")
        cur_live_logl[not_finite] = _LOWL_VAL

        nextra = min(nlive - ngoods, finite.sum())
        cur_ind = np.nonzero(finite)[0][:nextra]
        live_logl[ngoods:ngoods + nextra] = cur_live_logl[cur_ind]
        live_v[ngoods:ngoods + nextra] = cur_live_v[cur_ind]
        ngoods += nextra

        if ngoods >= min_npoints:
            # fill the rest with points with non finite logl
            nextra = nlive - ngoods
            if nextra > 0:
                cur_ind = np.nonzero(not_finite)[0][:nextra]
                live_logl[ngoods:] = cur_live_logl[cur_ind]
                live_v[ngoods:] = cur_live_v[cur_ind]
            # With N attempts of n points the points share a volume of 1/N
            logvol_init = -math.log(iattempt)
            break
    else:
        raise RuntimeError(f"After {n_attempts} attempts, we could not "
                           f"find {min_npoints} points that have a valid "
                           "log-likelihood! Please check your prior and/or "
                           "log-likelihood.")
    if np.ptp(live_logl) == 0:
        warnings.warn(
            'All the initial likelihood values are the same. '
            'You likely have a plateau in the likelihood. '
            'Nested sampling may not be the best sampler in this case.',
            RuntimeWarning)
    return (live_v, live_logl), logvol_init, ncalls


class NestedSampler:
    """
    Nested sampler drawing new live points within ellipsoids bounding
    clusters of live points.

    Parameters
    ----------
    loglikelihood : function
        Function returning ln(likelihood) given parameters as a 1-d `~numpy`
        array of length `ndim`.

    prior : :class:`~minins.priors.Prior`
        Prior of the parameters.

    nlive : int, optional
        Initial number of live points. Default is `500`.

    min_nlive : int, optional
        Minimum number of live points. Default is `nlive`.

    clusterer : :class:`~minins.clustering.KmeansClusterer`, optional
        Clusterer of the live points. Default is a
        :class:`~minins.clustering.KmeansClusterer` with its defaults.

    reducer : :class:`~minins.reducers.PowerlawReducer`, optional
        Stopping rule and live point reduction. Default is a
        :class:`~minins.reducers.PowerlawReducer` with the
        `termination_factor` given here.

    max_draw_attempts : int, optional
        Maximum number of likelihood calls spent drawing one new point.
        Default is `50000`.

    n_initial_iterations_without_clustering : int, optional
        Number of initial iterations using a single ellipsoid. Default is
        `nlive`.

    n_iterations_with_same_clustering : int, optional
        Number of iterations between two partitions of the live points.
        Default is `max(1, nlive // 10)`.

    initial_enlarge : float, optional
        Enlargement fraction of the ellipsoid axes at the start of the run.
        Default is `1.`.

    shrinking_rate : float, optional
        The enlargement fraction is
        `initial_enlarge * exp(shrinking_rate * logvol)`. Default is `0.5`.

    termination_factor : float, optional
        Used by the default reducer. Default is `0.01`.

    rstate : `~numpy.random.Generator`, optional
        `~numpy.random.Generator` instance.

    pool : user-provided pool, optional
        Object with a `map` method used to evaluate the likelihood of the
        initial live points.

    """

    def __init__(self,
                 loglikelihood,
                 prior,
                 nlive=500,
                 min_nlive=None,
                 clusterer=None,
                 reducer=None,
                 max_draw_attempts=50000,
                 n_initial_iterations_without_clustering=None,
                 n_iterations_with_same_clustering=None,
                 initial_enlarge=1.,
                 shrinking_rate=0.5,
                 termination_factor=0.01,
                 rstate=None,
                 pool=None):
        if not callable(loglikelihood):
            raise ConfigurationError("The log-likelihood must be callable")
        if getattr(prior, 'ndim', None) is None:
            raise ConfigurationError("The prior must define `ndim`")
        self.config = check_sampler_config(
            nlive=nlive,
            min_nlive=min_nlive,
            max_draw_attempts=max_draw_attempts,
            n_initial_iterations_without_clustering=(
                n_initial_iterations_without_clustering),
            n_iterations_with_same_clustering=n_iterations_with_same_clustering,
            initial_enlarge=initial_enlarge,
            shrinking_rate=shrinking_rate,
            termination_factor=termination_factor)
        if reducer is None:
            reducer = PowerlawReducer(
                termination_factor=self.config.termination_factor)
        if clusterer is None:
            clusterer = KmeansClusterer()

        self.loglikelihood = loglikelihood
        self.prior = prior
        self.ndim = prior.ndim
        self.nlive = self.config.nlive
        self.min_nlive = self.config.min_nlive
        self.initial_enlarge = self.config.initial_enlarge
        self.shrinking_rate = self.config.shrinking_rate
        self.reducer = reducer
        self.internal_sampler = EllipsoidSampler(
            clusterer=clusterer,
            n_initial_iterations_without_clustering=(
                self.config.n_initial_iterations_without_clustering),
            n_iterations_with_same_clustering=(
                self.config.n_iterations_with_same_clustering),
            max_draw_attempts=self.config.max_draw_attempts)

        self.rstate = rstate if rstate is not None else get_random_generator()
        self.pool = pool
        if pool is None:
            self.mapper = map
        else:
            self.mapper = pool.map

        (self.live_v,
         self.live_logl), self.logvol_init, self.ncall = \
            _initialize_live_points(prior,
                                    loglikelihood,
                                    self.mapper,
                                    nlive=self.nlive,
                                    rstate=self.rstate)
        self.live_it = np.zeros(self.nlive, dtype=int)
        self.live_id = np.arange(self.nlive)
        self.live_cluster = np.zeros(self.nlive, dtype=int)
        self.next_id = self.nlive

        self.it = 1
        self.eff = 0.
        self.added_live = False
        self.status = None
        self.nremove = 0
        self.nclamped = 0
        self.nretired = 0
        self.saved_run = RunRecord()
        self.acc = EvidenceAccumulator(logz=-1.e300,
                                       logzvar=0.,
                                       h=0.,
                                       logvol=self.logvol_init,
                                       loglstar=-1.e300)

    def __repr__(self):
        return (f"NestedSampler(ndim={self.ndim}, nlive={self.nlive}, "
                f"min_nlive={self.min_nlive}, prior={self.prior!r}, "
                f"reducer={self.reducer!r})")

    @property
    def counters(self):
        """Counters of the recovered run conditions."""
        counters = dict(self.internal_sampler.counters)
        counters['clamped_logvol'] = self.nclamped
        counters['retired_without_replacement'] = self.nretired
        return counters

    @property
    def results(self):
        """Saved results from the nested sampling run."""

        d = {}
        for k in [
                'nc', 'v', 'id', 'it', 'n', 'cluster', 'logwt', 'logl',
                'logvol', 'logz', 'logzvar', 'h', 'nclusters', 'enlarge'
        ]:
            d[k] = np.array(self.saved_run[k])
        d['v'] = d['v'].reshape(-1, self.ndim)

        config = self.config._asdict()
        config['clusterer'] = repr(self.internal_sampler.clusterer)
        config['reducer'] = repr(self.reducer)
        config['prior'] = repr(self.prior)

        # Add all saved samples to the results.
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            results = [('nlive', self.nlive), ('niter', self.it - 1),
                       ('ncall', d['nc']), ('eff', self.eff),
                       ('samples', d['v'])]
            for k in ['id', 'it', 'n', 'cluster']:
                results.append(('samples_' + k, d[k]))
            for k in ['logwt', 'logl', 'logvol', 'logz']:
                results.append((k, d[k]))
            results.append(('logzerr', np.sqrt(d['logzvar'])))
            results.append(('information', d['h']))
            results.append(('nclusters', d['nclusters']))
            results.append(('enlarge', d['enlarge']))
            results.append(('status', self.status))
            results.append(('counters', self.counters))
            results.append(('config', config))

        return Results(results)

    @property
    def n_effective(self):
        """
        Estimate the effective number of posterior samples using the Kish
        Effective Sample Size (ESS) where `ESS = sum(wts)^2 / sum(wts^2)`.

        """
        logwt = self.saved_run['logwt']
        if len(logwt) == 0 or np.isneginf(np.max(logwt)):
            return 0
        else:
            return get_neff_from_logwt(np.asarray(logwt))

    def _remove_live_point(self, idx):
        self.live_v = np.delete(self.live_v, idx, axis=0)
        for k in ['live_logl', 'live_it', 'live_id', 'live_cluster']:
            setattr(self, k, np.delete(getattr(self, k), idx))

    def add_live_points(self):
        """Add the remaining set of live points to the current set of dead
        points. Instantiates a generator that will be called by
        the user. Returns the same outputs as :meth:`sample`."""

        # Check if the remaining live points have already been added
        # to the output set of samples.
        if self.added_live:
            raise ValueError("The remaining live points have already "
                             "been added to the list of samples!")
        else:
            self.added_live = True

        # The remaining points are distributed uniformly within the
        # remaining volume so that the expected volume enclosed by the
        # `i`-th worst likelihood is `X * (nlive + 1 - i) / (nlive + 1)`.
        nlive = len(self.live_logl)
        logvols = np.log(1. - (np.arange(nlive) + 1.) / (nlive + 1.))
        dlvs = -np.diff(logvols, prepend=0)
        lsort_idx = np.argsort(self.live_logl)
        loglmax = max(self.live_logl)
        nclusters = self.internal_sampler.nclusters
        enlarge = self.internal_sampler.enlarge

        # Add contributions from the remaining live points in order
        # from the lowest to the highest log-likelihoods.
        for i in range(nlive):
            idx = lsort_idx[i]
            vstar = self.live_v[idx].copy()
            loglstar_new = self.live_logl[idx]
            point_it = self.live_it[idx]

            self.acc, logwt, clamped = integrate_step(self.acc, loglstar_new,
                                                      dlvs[i])
            self.nclamped += clamped
            acc = self.acc
            delta_logz = np.logaddexp(0, loglmax + acc.logvol - acc.logz)

            self.saved_run.append(
                dict(
                    id=self.live_id[idx],
                    v=vstar,
                    logl=loglstar_new,
                    logvol=acc.logvol,
                    logwt=logwt,
                    logz=acc.logz,
                    logzvar=acc.logzvar,
                    h=acc.h,
                    nc=1,  # no call was made, keeps sum(nc) == ncall
                    it=point_it,
                    n=nlive - i,
                    cluster=self.live_cluster[idx],
                    nclusters=nclusters,
                    enlarge=enlarge))
            self.eff = 100. * (self.it + i) / self.ncall  # efficiency

            # Return our new "dead" point and ancillary quantities.
            yield IteratorResult(worst=idx,
                                 vstar=vstar,
                                 loglstar=loglstar_new,
                                 logvol=acc.logvol,
                                 logwt=logwt,
                                 logz=acc.logz,
                                 logzvar=acc.logzvar,
                                 h=acc.h,
                                 nc=1,
                                 worst_it=point_it,
                                 nlive=nlive - i,
                                 nclusters=nclusters,
                                 enlarge=enlarge,
                                 eff=self.eff,
                                 delta_logz=delta_logz)

    def sample(self, maxiter=None, maxcall=None):
        """
        **The main nested sampling loop.** Iteratively replace the worst live
        point with a sample drawn uniformly within the ellipsoids bounding
        the live points until the stopping rule is satisfied. Instantiates
        a generator that will be called by the user.

        Parameters
        ----------
        maxiter : int, optional
            Maximum number of iterations. Default is `sys.maxsize`
            (no limit).

        maxcall : int, optional
            Maximum number of likelihood evaluations. Default is
            `sys.maxsize` (no limit).

        Returns
        -------
        worst : int
            Index of the live point with the worst likelihood. This is our
            new dead point sample.

        vstar : `~numpy.ndarray` with shape (ndim,)
            Position of the sample.

        loglstar : float
            Ln(likelihood) of the sample.

        logvol : float
            Ln(prior volume) within the sample.

        logwt : float
            Ln(weight) of the sample.

        logz : float
            Cumulative ln(evidence) up to the sample (inclusive).

        logzvar : float
            Estimated cumulative variance on `logz` (inclusive).

        h : float
            Cumulative information up to the sample (inclusive).

        nc : int
            Number of likelihood calls performed before the new
            live point was accepted.

        worst_it : int
            Iteration when the live (now dead) point was originally proposed.

        nlive : int
            Number of live points after the iteration.

        nclusters : int
            Number of clusters of live points.

        enlarge : float
            Enlargement fraction of the ellipsoids.

        eff : float
            The cumulative sampling efficiency (in percent).

        delta_logz : float
            The estimated remaining evidence expressed as the ln(ratio) of the
            current evidence.

        Raises
        ------
        LivePointFloorError
            If no new point could be drawn with only `min_nlive` live points
            left.

        """

        if self.added_live:
            raise ValueError("The final live points were already added; "
                             "the run cannot be continued")
        if maxcall is None:
            maxcall = sys.maxsize
        if maxiter is None:
            maxiter = sys.maxsize
        ncall = 0
        self.status = 'running'

        # The main nested sampling loop.
        for it in range(sys.maxsize):
            acc = self.acc
            nlive = len(self.live_logl)
            logz_remain = np.max(self.live_logl) + acc.logvol
            delta_logz = np.logaddexp(0, logz_remain - acc.logz)

            # Stopping criterion 1: the remaining evidence is negligible.
            if self.reducer.should_stop(acc.logz, logz_remain):
                self.status = 'converged'
                break

            # Stopping criterion 2: current number of iterations
            # exceeds `maxiter`.
            # Stopping criterion 3: current number of `loglikelihood`
            # calls exceeds `maxcall`.
            if it >= maxiter or ncall >= maxcall:
                self.status = 'maxiter' if it >= maxiter else 'maxcall'
                warnings.warn('The sampling was stopped short due to'
                              ' maxiter/maxcall limit; the evidence is not'
                              ' converged and the posterior may be poorly'
                              ' sampled')
                break

            if nlive > 1 and np.ptp(self.live_logl) == 0:
                warnings.warn(
                    'We have reached the plateau in the likelihood we are'
                    ' stopping sampling')
                self.status = 'plateau'
                break

            # Number of live points to retire without replacement.
            if self.nremove == 0:
                self.nremove = nlive - self.reducer.update_nlive(
                    nlive, self.min_nlive, acc.logz, logz_remain)

            # Locate the "live" point with the lowest `logl`.
            worst = np.argmin(self.live_logl)
            worst_it = self.live_it[worst]
            vstar = self.live_v[worst].copy()
            loglstar_new = self.live_logl[worst]
            cluster = self.live_cluster[worst]
            # Expected ln(volume) shrinkage.
            dlogvol = math.log((nlive + 1.) / nlive)
            enlarge = self.initial_enlarge * math.exp(
                self.shrinking_rate * (acc.logvol - dlogvol))

            new_point = None
            nc = 0
            if self.nremove > 0:
                self.nremove -= 1
            else:
                self.live_cluster = self.internal_sampler.update_bound(
                    self.live_v,
                    self.it,
                    enlarge,
                    self.rstate,
                    labels=self.live_cluster)
                cluster = self.live_cluster[worst]
                try:
                    new_point = self.internal_sampler.draw(
                        loglstar_new, self.loglikelihood, self.prior,
                        self.rstate)
                    nc = new_point.nc
                except DrawExhaustedError as exc:
                    nc = exc.nattempts
                    ncall += nc
                    self.ncall += nc
                    if nlive - 1 < self.min_nlive:
                        self.status = 'floor_reached'
                        raise LivePointFloorError(nlive,
                                                  self.min_nlive) from exc
                    warnings.warn(
                        f"{exc}; the worst live point is removed without "
                        f"replacement ({nlive - 1} live points left)",
                        RuntimeWarning)
                    self.nretired += 1
                else:
                    ncall += nc
                    self.ncall += nc

            self.acc, logwt, clamped = integrate_step(acc, loglstar_new,
                                                      dlogvol)
            self.nclamped += clamped
            acc = self.acc
            nclusters = self.internal_sampler.nclusters

            # Save the worst live point. It is now a "dead" point.
            self.saved_run.append(
                dict(id=self.live_id[worst],
                     v=vstar,
                     logl=loglstar_new,
                     logvol=acc.logvol,
                     logwt=logwt,
                     logz=acc.logz,
                     logzvar=acc.logzvar,
                     h=acc.h,
                     nc=nc,
                     it=worst_it,
                     n=nlive,
                     cluster=cluster,
                     nclusters=nclusters,
                     enlarge=enlarge))

            if new_point is not None:
                # Update the live point (previously our "worst" point).
                self.live_v[worst] = new_point.v
                self.live_logl[worst] = new_point.logl
                self.live_it[worst] = self.it
                self.live_id[worst] = self.next_id
                self.live_cluster[worst] = new_point.label
                self.next_id += 1
            else:
                self._remove_live_point(worst)

            # Compute our sampling efficiency.
            self.eff = 100. * self.it / self.ncall

            # Increment total number of iterations.
            self.it += 1

            # Return dead point and ancillary quantities.
            yield IteratorResult(worst=worst,
                                 vstar=vstar,
                                 loglstar=loglstar_new,
                                 logvol=acc.logvol,
                                 logwt=logwt,
                                 logz=acc.logz,
                                 logzvar=acc.logzvar,
                                 h=acc.h,
                                 nc=nc,
                                 worst_it=worst_it,
                                 nlive=len(self.live_logl),
                                 nclusters=nclusters,
                                 enlarge=enlarge,
                                 eff=self.eff,
                                 delta_logz=delta_logz)

    def _finalize(self, add_live, print_progress, print_func, ncall):
        # Add remaining live points to samples.
        if add_live:
            it = self.it - 1
            for i, results in enumerate(self.add_live_points()):
                ncall += results.nc
                if print_progress:
                    print_func(results, it, ncall, add_live_it=i + 1)

        # Here we recompute the integrals using the full run
        if len(self.saved_run) > 0:
            new_logwt, new_logz, new_logzvar, new_h = compute_integrals(
                logl=self.saved_run['logl'], logvol=self.saved_run['logvol'])
            self.saved_run['logwt'] = new_logwt.tolist()
            self.saved_run['logz'] = new_logz.tolist()
            self.saved_run['logzvar'] = new_logzvar.tolist()
            self.saved_run['h'] = new_h.tolist()

    def run_nested(self,
                   maxiter=None,
                   maxcall=None,
                   add_live=True,
                   print_progress=True,
                   print_func=None):
        """
        **A wrapper that executes the main nested sampling loop.**
        Iteratively replace the worst live point with a sample drawn
        within the ellipsoids bounding the live points until the
        stopping rule is satisfied.

        Parameters
        ----------
        maxiter : int, optional
            Maximum number of iterations. Default is `sys.maxsize`
            (no limit).

        maxcall : int, optional
            Maximum number of likelihood evaluations. Default is
            `sys.maxsize` (no limit).

        add_live : bool, optional
            Whether or not to add the remaining set of live points to
            the list of samples at the end of each run. Default is `True`.

        print_progress : bool, optional
            Whether or not to output a simple summary of the current run that
            updates with each iteration. Default is `True`.

        print_func : function, optional
            A function that prints out the current state of the sampler.
            If not provided, the default :meth:`results.print_fn` is used.

        Raises
        ------
        LivePointFloorError
            If the minimum number of live points was breached. The final
            live points are added and the integrals recomputed first, so
            that :attr:`results` holds the run up to that point.

        """

        pbar, print_func = get_print_func(print_func, print_progress)
        stop_val = self.reducer.termination_factor
        ncall = self.ncall
        try:
            try:
                for results in self.sample(maxiter=maxiter, maxcall=maxcall):
                    ncall += results.nc

                    # Print progress.
                    if print_progress:
                        i = self.it - 1
                        print_func(results, i, ncall, stop_val=stop_val)
            except LivePointFloorError:
                self._finalize(add_live, print_progress, print_func, ncall)
                raise
            self._finalize(add_live, print_progress, print_func, ncall)
        finally:
            if pbar is not None:
                pbar.close()
