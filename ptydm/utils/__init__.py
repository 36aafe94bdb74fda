# -*- coding: utf-8 -*-
"""
Util sub-package

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
from .math_utils import *
from .array_utils import *
from .parameters import *
from .verbose import *
from . import descriptor
