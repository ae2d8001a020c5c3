#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Stopping rule of the nested sampler and reduction of the number of live
points as the run converges.

"""

import math
import numpy as np

from .config import ConfigurationError

__all__ = ["PowerlawReducer"]


class PowerlawReducer:
    """
    Reduce the number of live points following a power law of the ratio of
    the remaining evidence to the current evidence.

    The remaining evidence is estimated as the largest likelihood of the
    live points times the remaining prior volume. The run stops once the
    ratio falls below `termination_factor`. Once the ratio falls below
    `tolerance * termination_factor`, each iteration removes::

        int((tolerance * termination_factor / ratio) ** exponent)

    live points (without replacing them), never going below the minimum
    number of live points.

    Parameters
    ----------
    tolerance : float, optional
        Default is `100`.

    exponent : float, optional
        Default is `0.4`.

    termination_factor : float, optional
        Default is `0.01`.

    """

    def __init__(self, tolerance=1e2, exponent=0.4, termination_factor=0.01):
        if not tolerance >= 1:
            raise ConfigurationError(f"`tolerance` must be >= 1, "
                                     f"not {tolerance}")
        if not exponent >= 0:
            raise ConfigurationError(f"`exponent` must be >= 0, "
                                     f"not {exponent}")
        if not termination_factor > 0:
            raise ConfigurationError("`termination_factor` must be > 0, "
                                     f"not {termination_factor}")
        self.tolerance = float(tolerance)
        self.exponent = float(exponent)
        self.termination_factor = float(termination_factor)

    def __repr__(self):
        return (f"PowerlawReducer(tolerance={self.tolerance}, "
                f"exponent={self.exponent}, "
                f"termination_factor={self.termination_factor})")

    @staticmethod
    def remaining_ratio(logz, logz_remain):
        """Ratio of the remaining evidence to the current evidence."""
        if np.isneginf(logz_remain):
            return 0.
        if np.isneginf(logz):
            return np.inf
        return math.exp(min(logz_remain - logz, 700.))

    def should_stop(self, logz, logz_remain):
        """Whether the remaining evidence is negligible."""
        return self.remaining_ratio(logz, logz_remain) < \
            self.termination_factor

    def update_nlive(self, nlive, min_nlive, logz, logz_remain):
        """
        New number of live points.

        Parameters
        ----------
        nlive : int
            Current number of live points.

        min_nlive : int
            Minimum number of live points.

        logz : float
            Current ln(evidence).

        logz_remain : float
            Estimate of the ln(remaining evidence).

        """
        ratio = self.remaining_ratio(logz, logz_remain)
        threshold = self.tolerance * self.termination_factor
        if ratio >= threshold:
            return nlive
        if ratio <= 0:
            return min(nlive, min_nlive)
        nremove = int((threshold / ratio)**self.exponent)
        return max(min(nlive, min_nlive), nlive - nremove)
