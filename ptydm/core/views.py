# -*- coding: utf-8 -*-
"""
Views: rectangular windows of the object at the scan positions.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
from ..accelerate.base.mem_utils import get_array_module

__all__ = ['view_indices', 'get_views', 'add_views']


def view_indices(positions, shape, xp):
    """
    Row and column index arrays, each of shape (n, H, W), addressing the
    `shape` windows whose top-left pixels are `positions` (n, 2).
    """
    positions = xp.asarray(positions)
    rows = positions[:, 0, None, None] + xp.arange(shape[0])[None, :, None]
    cols = positions[:, 1, None, None] + xp.arange(shape[1])[None, None, :]
    return rows, cols


def get_views(obj, positions, shape):
    """
    Stack (n, H, W) of the object windows at `positions`.
    """
    xp = get_array_module(obj)
    rows, cols = view_indices(positions, shape, xp)
    return obj[rows, cols]


def add_views(target, patches, positions):
    """
    Add every frame of `patches` (n, H, W) into `target` at its position.
    Overlapping windows accumulate.
    """
    xp = get_array_module(target)
    rows, cols = view_indices(positions, patches.shape[-2:], xp)
    xp.add.at(target, (rows, cols), patches)
    return target
