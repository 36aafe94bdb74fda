# -*- coding: utf-8 -*-
"""
Block descriptors and probe-instance selection.

A block is a precomputed group of scan positions processed together. For
every block and every mode, a probe-index policy tells which probe
instance(s) illuminate the positions of the block.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
import numpy as np

__all__ = ['BlockDescriptor', 'SharedInstance', 'PerGroupInstance',
           'probe_index', 'mode_at', 'mode_index']


def mode_index(ll, n):
    """
    Clamp mode index `ll` to the last of `n` available modes.
    """
    return min(ll, n - 1)


def mode_at(sequence, ll):
    """
    Mode `ll` of `sequence`; modes beyond the last one reuse the last one.
    """
    return sequence[mode_index(ll, len(sequence))]


class BlockDescriptor(object):
    """
    Ordered groups of scan-position indices and the probe-instance id
    (scan / group id) of every position in each group.

    Every scan position appears in exactly one block.
    """

    def __init__(self, indices, scan_ids, npos=None):
        """
        Parameters
        ----------
        indices : sequence of int arrays
            Scan-position indices of each block.
        scan_ids : sequence of int arrays
            Probe-instance id of each position, same layout as `indices`.
        npos : int, optional
            Total number of scan positions. If given, the blocks must
            partition ``range(npos)``.
        """
        self.indices = [np.asarray(ind, dtype=int) for ind in indices]
        self.scan_ids = [np.asarray(sid, dtype=int) for sid in scan_ids]

        if len(self.indices) != len(self.scan_ids):
            raise ValueError('Got %d index groups but %d scan-id groups'
                             % (len(self.indices), len(self.scan_ids)))
        for ind, sid in zip(self.indices, self.scan_ids):
            if ind.shape != sid.shape or ind.ndim != 1:
                raise ValueError('Block indices and scan ids must be 1D arrays of equal length')

        allind = np.concatenate(self.indices) if self.indices else np.zeros((0,), dtype=int)
        if len(np.unique(allind)) != len(allind):
            raise ValueError('A scan position appears in more than one block')
        if npos is not None and not np.array_equal(np.sort(allind), np.arange(npos)):
            raise ValueError('Blocks do not cover all %d scan positions' % npos)

        self.npos = len(allind)

    def __len__(self):
        return len(self.indices)

    def __iter__(self):
        return iter(zip(self.indices, self.scan_ids))

    @classmethod
    def contiguous(cls, npos, block_size, scan_ids=None):
        """
        Split ``range(npos)`` into consecutive blocks of at most `block_size`.
        """
        if block_size < 1:
            raise ValueError('block_size must be positive')
        scan_ids = np.zeros((npos,), dtype=int) if scan_ids is None else np.asarray(scan_ids, dtype=int)
        if scan_ids.shape != (npos,):
            raise ValueError('Expected %d scan ids, got %s' % (npos, str(scan_ids.shape)))
        starts = range(0, npos, block_size)
        indices = [np.arange(s, min(s + block_size, npos)) for s in starts]
        return cls(indices, [scan_ids[ind] for ind in indices], npos=npos)


class SharedInstance(object):
    """
    All positions of the block use the single probe instance `index`.
    """
    __slots__ = ('index',)

    def __init__(self, index=0):
        self.index = int(index)

    def select(self, probe):
        """
        Probe frame (H, W) of this instance out of an (N, H, W) stack.
        """
        return probe[self.index]

    def __eq__(self, other):
        return isinstance(other, SharedInstance) and other.index == self.index

    def __repr__(self):
        return 'SharedInstance(%d)' % self.index


class PerGroupInstance(object):
    """
    Every position of the block uses its own group's probe instance.
    """
    __slots__ = ('indices',)

    def __init__(self, indices):
        self.indices = np.asarray(indices, dtype=int)

    def select(self, probe):
        """
        Probe frames (n, H, W) for the n positions of the block.
        """
        return probe[self.indices]

    def __eq__(self, other):
        return isinstance(other, PerGroupInstance) and np.array_equal(other.indices, self.indices)

    def __repr__(self):
        return 'PerGroupInstance(%s)' % str(self.indices.tolist())


def probe_index(scan_ids, ll, share_probe):
    """
    Probe-instance policy for mode `ll` of a block with ids `scan_ids`.

    Incoherent modes beyond the first one, and all modes when probes are
    shared, use instance 0. Otherwise a block whose positions all belong
    to one group uses that group's instance, and a mixed block selects
    one instance per position.
    """
    if share_probe or ll > 0:
        return SharedInstance(0)
    scan_ids = np.asarray(scan_ids)
    if np.all(scan_ids == scan_ids[0]):
        return SharedInstance(scan_ids[0])
    return PerGroupInstance(scan_ids)
