# -*- coding: utf-8 -*-
"""
Reconstruction state: object modes, probe modes and per-mode descriptors.

Layout conventions

- an object mode is a 2D complex array (Ny, Nx);
- a probe mode is a complex stack (N, H, W) of N probe instances;
- a block of exit waves is a complex stack (n, H, W), one frame per position.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
import numpy as np

from .. import utils as u
from ..accelerate.base import COMPLEX_TYPE

__all__ = ['Mode', 'ReconstructionState', 'circular_support']


def circular_support(shape, fraction):
    """
    Circular real-space support of a probe frame: ``True`` inside a disc
    covering `fraction` of the frame area.
    """
    sh = tuple(shape[-2:])
    xx, yy = u.grids(sh, FFTlike=False)
    return (np.pi * (xx**2 + yy**2)) < fraction * sh[0] * sh[1]


class Mode(object):
    """
    Per-mode descriptor: the propagator between exit-wave and detector
    planes and an optional probe support.
    """

    def __init__(self, propagator, support=None):
        self.propagator = propagator
        self.support = None if support is None else np.asarray(support)
        self._device_support = None

    def apply_probe_support(self, probe):
        """
        Constrain `probe` (N, H, W) to the support. Without support the
        probe is returned unchanged.
        """
        if self.support is None:
            return probe
        support = self.support
        if not isinstance(probe, np.ndarray):
            if self._device_support is None:
                from ..accelerate.base.mem_utils import get_array_module
                self._device_support = get_array_module(probe).asarray(self.support)
            support = self._device_support
        return probe * support


class ReconstructionState(object):
    """
    Object modes, probe modes and mode descriptors of a reconstruction.

    The number of modes processed per iteration is the larger of the
    object and probe mode counts; missing modes reuse the last one.
    """

    def __init__(self, objects, probes, modes):
        self.object = [np.asarray(o, dtype=COMPLEX_TYPE) for o in objects]
        self.probe = [np.asarray(p, dtype=COMPLEX_TYPE) for p in probes]
        self.modes = list(modes)

        if not self.object or not self.probe or not self.modes:
            raise ValueError('At least one object mode, probe mode and mode descriptor are required')
        for o in self.object:
            if o.ndim != 2:
                raise ValueError('Object modes must be 2D arrays, got shape %s' % str(o.shape))
        for p in self.probe:
            if p.ndim != 3:
                raise ValueError('Probe modes must be (N, H, W) stacks, got shape %s' % str(p.shape))
            if p.shape[-2:] != self.probe[0].shape[-2:]:
                raise ValueError('All probe modes must share the frame shape')

    @property
    def n_object_modes(self):
        return len(self.object)

    @property
    def n_probe_modes(self):
        return len(self.probe)

    @property
    def n_modes(self):
        return max(self.n_object_modes, self.n_probe_modes)

    @property
    def frame_shape(self):
        return self.probe[0].shape[-2:]

    def transfer(self, move):
        """
        Apply residency transfer `move` to all object and probe modes.
        """
        self.object = [move(o) for o in self.object]
        self.probe = [move(p) for p in self.probe]

    def copy(self):
        return ReconstructionState([o.copy() for o in self.object],
                                   [p.copy() for p in self.probe],
                                   self.modes)
