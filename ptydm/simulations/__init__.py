"""
Simulation of ptychographic datasets for testing and demonstration.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
from .simscan import *
