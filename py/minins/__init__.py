#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
minins is a nested sampling package drawing new live points within
ellipsoids bounding clusters of live points.
The main functionality of minins is performed by the
minins.NestedSampler class
"""

__version__ = "0.1.0"

from .sampler import NestedSampler, LivePointFloorError
from .sampling import EllipsoidSampler, DrawExhaustedError
from .clustering import KmeansClusterer
from .config import ConfigurationError
from .priors import UniformPrior, NormalPrior, JointPrior
from .likelihoods import NormalLikelihood, ExponentialLikelihood
from .models import LinearModel, RemoteSpectrumModel
from .reducers import PowerlawReducer
from .metric import EuclideanMetric, ManhattanMetric
from . import bounding
from . import utils
