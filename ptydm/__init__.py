# -*- coding: utf-8 -*-
from .version import short_version, version, release

__doc__ = \
"""
PTYDM(v%(short)s): Difference-Map phase retrieval for ptychography.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
    :version: %(version)s
    :status: %(devrel)s
""" % {'version': version, 'devrel': 'release' if release else 'development', 'short': short_version}

del short_version, release

try:
    import cupy
except ImportError as ie:
    __has_cupy__ = False
else:
    __has_cupy__ = True
    del cupy

# Logging
from .utils import verbose

if not __has_cupy__:
    __cupy_msg = 'CuPy not found. Accelerator residency disabled, all arrays stay on host.\n\
    Install it with `pip install cupy-cuda12x` (or the wheel matching your CUDA version)'
    verbose.logger.info(__cupy_msg)

# Start a parameter tree
from .utils.descriptor import EvalDescriptor
defaults_tree = EvalDescriptor('root')
del EvalDescriptor

# Import core modules
from . import utils
from . import core
from . import accelerate
from . import engines
from . import simulations
