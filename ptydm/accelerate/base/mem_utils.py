"""
Array residency: which memory (host or accelerator) arrays live in and
how they move between the two.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
from math import floor

import numpy as np

from ... import __has_cupy__
from ...utils.verbose import log, headerline

if __has_cupy__:
    import cupy as cp
else:
    cp = None

__all__ = ['get_array_module', 'to_host', 'Residency', 'calculate_safe_block_size']


def get_array_module(*arrays):
    """
    numpy, or cupy if any of `arrays` lives on the device.
    """
    if cp is None:
        return np
    return cp.get_array_module(*arrays)


def to_host(a):
    """
    Host copy of `a` if it lives on the device, `a` itself otherwise.
    """
    if cp is not None and isinstance(a, cp.ndarray):
        return a.get()
    return a


class Residency(object):
    """
    Moves arrays to the accelerator and back.

    Inactive (all transfers are no-ops) when the device was not requested
    or cupy is not available.
    """

    def __init__(self, use_device=False):
        if use_device and cp is None:
            log(2, 'Device residency requested but cupy is not available, arrays stay on the host')
        self.active = bool(use_device) and cp is not None

    def push(self, a):
        if not self.active or a is None:
            return a
        return cp.asarray(a)

    def pull(self, a):
        if not self.active or a is None:
            return a
        return to_host(a)

    @property
    def xp(self):
        return cp if self.active else np

    def log_memory_stats(self, level=4, heading='Device Memory Stats'):
        if not self.active:
            return
        mempool = cp.get_default_memory_pool()
        log(level, '\n' + headerline(heading))
        log(level, f'Device id             : {cp.cuda.Device().id}')
        log(level, f'Total device mem      : {cp.cuda.runtime.memGetInfo()[1]/1024/1024} MB')
        log(level, f'Free device mem       : {cp.cuda.runtime.memGetInfo()[0]/1024/1024} MB')
        log(level, f'MemoryPool used       : {mempool.used_bytes()/1024/1024} MB')


def calculate_safe_block_size(mem_avail, mem_per_frame, nblk=3):
    """Return a safe number of positions per block from memory information.

    Parameters
    ----------
    mem_avail : int
        the available memory in bytes
    mem_per_frame : int
        the memory required for a single scan position
    nblk : int, optional
        the number of blocks that must fit at the same time.
        Default to 3.

    """
    if mem_per_frame <= 0 or mem_avail < 0:
        msg = "Memory should be a positive number."
        raise ValueError(msg)

    return max(1, floor((mem_avail / nblk) / mem_per_frame))
