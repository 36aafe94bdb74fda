"""
Core data model of the difference-map iteration: blocks, exit-wave
state, object and probe modes, views and propagators.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
from .blocks import *
from .exit_waves import *
from .views import *
from .propagation import *
from .state import *
from .data import *
from .cache import *
