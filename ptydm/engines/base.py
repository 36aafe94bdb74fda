# -*- coding: utf-8 -*-
"""
Base engine. Used to define reconstruction parameters that are shared
by all engines.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
import time

import numpy as np

from .. import utils as u
from ..utils.verbose import logger, headerline, log
from ..core.state import circular_support
from ..accelerate.base.mem_utils import Residency

__all__ = ['BaseEngine', 'DEFAULT_iter_info']

DEFAULT_iter_info = u.Param(
    iteration=0,
    iterations=0,
    numiter=0,
    engine='None',
    duration=0.,
    error=np.nan
)


class BaseEngine(object):
    """
    Base reconstruction engine.
    In child classes, overwrite the following methods for custom behavior :
    engine_initialize
    engine_prepare
    engine_iterate
    engine_finalize

    Defaults:

    [numiter]
    default = 20
    type = int
    lowlim = 1
    help = Index of the last iteration
    doc = Iteration 0 calibrates the probe amplitude, iterations 1 to numiter refine object and probe.

    [probe_support]
    default = None
    type = float, None
    lowlim = 0.0
    help = Valid probe area as fraction of the probe frame
    doc = Defines a circular area centered on the probe frame, in which the probe is allowed to be nonzero. Only used for modes without an explicit support.

    [use_device]
    default = False
    type = bool
    help = Process blocks on the accelerator (requires cupy)

    """

    def __init__(self, state, data, cache, pars=None):
        """
        Base reconstruction engine.

        Parameters
        ----------
        state : ReconstructionState
            Object modes, probe modes and mode descriptors.
        data : DiffractionData
            Measured intensities and validity mask.
        cache : BlockCache
            Blocks, view positions and illumination statistics.
        pars: Param or dict
            Initialization parameters
        """
        self.state = state
        self.data = data
        self.cache = cache

        p = self.DEFAULT.copy()
        if pars is not None:
            p.update(pars)
        self._descriptor().validate(p)
        self.p = p

        self.finished = False
        self.numiter = self.p.numiter

        # Instance attributes
        self.curiter = 0
        self.alliter = 0
        self.iter_info = []
        self.error = None
        self.t = None

        self.residency = Residency(self.p.use_device)

    def initialize(self):
        """
        Prepare for reconstruction.
        """
        logger.info('\n' + headerline('Starting %s-algorithm.' % str(self.p.name), 'l', '=') + '\n')
        logger.info('Parameter set:')
        logger.info(u.verbose.report(self.p, noheader=True).strip())
        logger.info(headerline('', 'l', '='))

        self.curiter = 0
        self.alliter = 0
        self.finished = False

        # Call engine specific initialization
        self.engine_initialize()

    def prepare(self):
        """
        Last-minute preparation before iterating.
        """
        supp = self.p.probe_support
        if supp is not None:
            for mode in self.state.modes:
                if mode.support is None:
                    mode.support = circular_support(self.state.frame_shape, supp)
        self.residency.log_memory_stats()

        # Call engine specific preparation
        self.engine_prepare()

    def iterate(self, num=None):
        """
        Compute one or several iterations.

        num : None, int number of iterations.
            If None or num<1, a single iteration is performed.
        """
        niter = 1 if num is None or num < 1 else num

        if self.finished:
            return

        # For benchmarking
        self.t = time.time()

        it = self.curiter

        # Call engine specific iteration routine
        # and collect the per-view error.
        self.error = self.engine_iterate(niter)

        # Check if engine did things right.
        if it >= self.curiter:
            logger.warning("""Engine %s did not increase iteration counter
            `self.curiter` internally.""" % self.p.name)
            self.curiter += niter

        self.alliter += self.curiter - it

        if self.curiter > self.numiter:
            self.finished = True

        # Prepare runtime
        self._fill_runtime()

    def _fill_runtime(self):
        error = self.error
        if error is None or np.all(np.isnan(error)):
            error = np.nan
        else:
            error = float(np.nanmean(error))
        info = u.Param(DEFAULT_iter_info)
        info.update(
            iteration=self.curiter,
            iterations=self.alliter,
            numiter=self.numiter,
            engine=self.p.name,
            duration=time.time() - self.t,
            error=error
        )
        self.iter_info.append(info)
        log(3, 'Iteration #%d of %s :: Time %.2f \t Error %.2e'
            % (info.iteration, info.engine, info.duration, info.error))

    def run(self):
        """
        Initialize, prepare, iterate until finished and finalize.
        """
        self.initialize()
        self.prepare()
        while not self.finished:
            self.iterate()
        self.finalize()
        return self

    def finalize(self):
        """
        Clean up after iterations are done.
        """
        self.engine_finalize()

    def engine_initialize(self):
        """
        Engine-specific initialization.
        Called at the end of self.initialize().
        """
        raise NotImplementedError()

    def engine_prepare(self):
        """
        Engine-specific preparation.
        Last-minute initialization providing up-to-date information for
        reconstruction. Called at the end of self.prepare()
        """
        raise NotImplementedError()

    def engine_iterate(self, num):
        """
        Engine single-step iteration.
        All book-keeping is done in self.iterate(), so this routine only needs
        to implement the "core" actions.
        """
        raise NotImplementedError()

    def engine_finalize(self):
        """
        Engine-specific finalization.
        Used to wrap-up engine-specific stuff. Called at the end of
        self.finalize()
        """
        raise NotImplementedError()
