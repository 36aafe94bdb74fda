# -*- coding: utf-8 -*-
"""
Precomputed per-reconstruction cache: blocks, view positions and
illumination statistics.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
import numpy as np

from .. import utils as u
from ..accelerate.base import FLOAT_TYPE
from .blocks import BlockDescriptor, probe_index, mode_at, mode_index
from .views import add_views

__all__ = ['BlockCache']


class BlockCache(object):
    """
    Blocks of scan positions, top-left pixel of every view in the object
    frame and the maximum illumination per object mode.
    """

    def __init__(self, blocks, positions, object_shape, frame_shape):
        self.blocks = blocks
        self.positions = np.asarray(positions, dtype=int)
        self.object_shape = tuple(object_shape)
        self.frame_shape = tuple(frame_shape)

        if self.positions.shape != (blocks.npos, 2):
            raise ValueError('Expected (%d, 2) positions, got %s'
                             % (blocks.npos, str(self.positions.shape)))
        if np.any(self.positions < 0) or np.any(
                self.positions + np.asarray(self.frame_shape) > np.asarray(self.object_shape)):
            raise ValueError('Views at the given positions exceed the object frame %s'
                             % str(self.object_shape))

        self.max_illum = None

    @classmethod
    def from_positions(cls, positions, object_shape, frame_shape, block_size=None, scan_ids=None):
        """
        Build a cache with consecutive blocks of at most `block_size`
        positions (all positions in one block if None).
        """
        positions = np.asarray(positions, dtype=int)
        npos = len(positions)
        block_size = npos if block_size is None else block_size
        blocks = BlockDescriptor.contiguous(npos, block_size, scan_ids)
        return cls(blocks, positions, object_shape, frame_shape)

    @property
    def nblocks(self):
        return len(self.blocks)

    def block_positions(self, jj):
        return self.positions[self.blocks.indices[jj]]

    @property
    def object_roi(self):
        """
        Slices of the object region covered by at least one view.
        """
        lo = self.positions.min(0)
        hi = self.positions.max(0) + np.asarray(self.frame_shape)
        return (slice(lo[0], hi[0]), slice(lo[1], hi[1]))

    def update_illumination(self, probes, n_object_modes, share_probe=True):
        """
        Recompute the maximum illumination of every object mode from the
        (host) probe modes `probes`.

        Mode `ll` of ``max(n_object_modes, len(probes))`` illuminates object
        mode ``mode_index(ll, n_object_modes)``, so surplus probe modes add
        to the last object mode.
        """
        illums = [np.zeros(self.object_shape, dtype=FLOAT_TYPE) for _ in range(n_object_modes)]
        for ll in range(max(n_object_modes, len(probes))):
            illum = illums[mode_index(ll, n_object_modes)]
            probe = mode_at(probes, ll)
            for ind, sid in self.blocks:
                frames = probe_index(sid, ll, share_probe).select(u.abs2(probe))
                frames = np.broadcast_to(frames, (len(ind),) + self.frame_shape)
                add_views(illum, frames, self.positions[ind])
        max_illum = [float(illum.max()) for illum in illums]
        self.max_illum = max_illum
        return max_illum
