# -*- coding: utf-8 -*-
"""
Simulation of a far-field ptychographic raster scan.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
import numpy as np
from scipy import ndimage

from .. import utils as u
from .. import defaults_tree
from ..core.cache import BlockCache
from ..core.data import DiffractionData
from ..core.propagation import FarfieldPropagator
from ..core.state import Mode, ReconstructionState, circular_support
from ..core.views import get_views

logger = u.verbose.logger

__all__ = ['SimScan', 'simulate_scan', 'raster_positions']


def raster_positions(object_shape, frame_shape, step):
    """
    Top-left pixels (N, 2) of a raster of views with spacing `step` that
    fit in `object_shape`. The second axis is the fast axis.
    """
    ny = (object_shape[0] - frame_shape[0]) // step + 1
    nx = (object_shape[1] - frame_shape[1]) // step + 1
    iiy, iix = np.indices((ny, nx))
    return np.stack([iiy.ravel() * step, iix.ravel() * step], axis=1)


@defaults_tree.parse_doc('scandata.SimScan')
class SimScan(object):
    """
    Simulates a ptychographic scan of a smooth random object with a
    focused probe and builds the inputs of a reconstruction.

    Defaults:

    [frame_shape]
    default = (32, 32)
    type = tuple, list
    help = Detector frame (and probe) shape

    [step]
    default = 6
    type = int
    lowlim = 1
    help = Raster step in pixels

    [nsteps]
    default = (4, 4)
    type = tuple, list
    help = Number of raster steps along each axis

    [probe_support]
    default = 0.3
    type = float
    lowlim = 0.0
    help = Area of the probe aperture as fraction of the frame

    [photons]
    default = 1e6
    type = float
    lowlim = 0.0
    help = Integrated intensity of one diffraction pattern

    [noise]
    default = False
    type = bool
    help = Add Poisson noise to the intensities

    [mask_fraction]
    default = 0.0
    type = float
    lowlim = 0.0
    uplim = 1.0
    help = Fraction of randomly invalidated detector pixels

    [block_size]
    default = None
    type = int, None
    lowlim = 1
    help = Scan positions per block, all in one block if None

    [seed]
    default = 1
    type = int
    help = Seed of the random generator

    """

    def __init__(self, pars=None, **kwargs):
        p = self.DEFAULT.copy()
        if pars is not None:
            p.update(pars)
        p.update(kwargs)
        self._descriptor().validate(p)
        self.p = p
        self.rng = np.random.default_rng(p.seed)

    def make_probe(self):
        sh = tuple(self.p.frame_shape)
        amp = ndimage.gaussian_filter(circular_support(sh, self.p.probe_support).astype(float), 1)
        yy, xx = u.grids(sh, FFTlike=False)
        probe = amp * np.exp(-1j * np.pi * 0.01 * (xx**2 + yy**2))
        return probe * np.sqrt(self.p.photons / u.norm2(probe))

    def make_object(self, shape):
        def smooth_noise():
            return ndimage.gaussian_filter(self.rng.standard_normal(shape), 3)
        amp = smooth_noise()
        amp = 0.7 + 0.3 * (amp - amp.min()) / (np.ptp(amp) + 1e-12)
        phs = smooth_noise()
        phs = np.pi / 2 * phs / (np.abs(phs).max() + 1e-12)
        return amp * np.exp(1j * phs)

    def simulate(self):
        """
        Returns
        -------
        out : Param
            ``state`` (initial guess), ``data``, ``cache`` and the true
            ``object`` and ``probe``.
        """
        p = self.p
        fsh = tuple(p.frame_shape)
        osh = tuple(fsh[i] + (p.nsteps[i] - 1) * p.step for i in range(2))
        positions = raster_positions(osh, fsh, p.step)

        probe = self.make_probe()
        obj = self.make_object(osh)
        prop = FarfieldPropagator(fsh)

        exit_waves = get_views(obj, positions, fsh) * probe
        intensities = u.abs2(prop.fw(exit_waves))
        if p.noise:
            intensities = self.rng.poisson(intensities).astype(float)

        mask = None
        if p.mask_fraction > 0:
            mask = (self.rng.random(fsh) >= p.mask_fraction).astype(float)

        logger.info('Simulated %d diffraction patterns of shape %s' % (len(positions), str(fsh)))

        # Initial guess: flat object, aperture probe of the wrong intensity
        init_probe = circular_support(fsh, p.probe_support).astype(complex)[None]
        state = ReconstructionState([np.ones(osh, dtype=complex)], [init_probe], [Mode(prop)])
        data = DiffractionData(intensities, mask)
        cache = BlockCache.from_positions(positions, osh, fsh, block_size=p.block_size)
        return u.Param(state=state, data=data, cache=cache, object=obj, probe=probe)


def simulate_scan(pars=None, **kwargs):
    """
    Shortcut for ``SimScan(pars, **kwargs).simulate()``.
    """
    return SimScan(pars, **kwargs).simulate()
