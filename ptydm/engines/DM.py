# -*- coding: utf-8 -*-
"""
Difference Map reconstruction engine.

One call to :py:meth:`DM.step` performs one outer iteration:

- iteration 0 only calibrates the probe amplitude against the data;
- later iterations run the difference-map update of the exit waves
  (mixing, propagation, modulus constraint, back-propagation) for every
  block, then solve the overlap constraint for object and probe.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
from enum import Enum

import numpy as np

from .. import utils as u
from ..utils.verbose import log, LogTime
from ..core.blocks import probe_index, mode_at, mode_index
from ..core.exit_waves import ExitWaveState
from ..core.views import get_views
from ..accelerate.base.kernels import (AuxiliaryWaveKernel, FourierUpdateKernel,
                                       PoUpdateKernel, ProbeAccumulator, ObjectAccumulator)
from ..accelerate.base.mem_utils import to_host
from . import register
from .base import BaseEngine

__all__ = ['DM', 'Phase', 'CalibrationError', 'error_due']


class Phase(Enum):
    CALIBRATE = 'calibrate'
    DM_UPDATE = 'dm_update'
    OVERLAP_SOLVE = 'overlap_solve'


class CalibrationError(ValueError):
    """
    Raised when the probe amplitude cannot be calibrated because the
    predicted (or measured) intensity is zero or not finite.
    """
    pass


def error_due(iteration, numiter, get_error=True):
    """
    True if the Fourier error is recorded at `iteration`: every iteration
    below 20, then at a cadence growing with the iteration number (at most
    every 20th), and always at the last iteration.
    """
    if iteration <= 0:
        return False
    if iteration == numiter:
        return True
    if not get_error:
        return False
    cadence = min(20, 2 ** int(np.floor(2 + iteration / 50.)))
    return iteration % cadence == 0 or iteration < 20


@register()
class DM(BaseEngine):
    """
    Difference Map engine working on blocks of scan positions.

    Defaults:

    [name]
    default = DM
    type = str
    help =
    doc =

    [share_probe]
    default = True
    type = bool
    help = All scan positions share probe instance 0
    doc = If False, every position uses the probe instance of its scan (group) id for the first probe mode. Incoherent modes beyond the first one are always shared.

    [pfft_relaxation]
    default = 0.05
    type = float
    lowlim = 0.0
    uplim = 1.0
    help = Relaxation of the modulus constraint on valid detector pixels
    doc = 0 replaces the predicted amplitude by the measured one, 1 keeps the predicted amplitude.

    [probe_inertia]
    default = 0.3
    type = float
    lowlim = 0.0
    uplim = 1.0
    help = Weight of the current probe estimate in the update

    [object_inertia]
    default = 0.3
    type = float
    lowlim = 0.0
    uplim = 1.0
    help = Weight of the current object estimate in the update

    [probe_change_start]
    default = 1
    type = int
    lowlim = 0
    help = Iteration from which on the probe is updated

    [object_change_start]
    default = 1
    type = int
    lowlim = 0
    help = Iteration from which on the object is updated

    [keep_on_device]
    default = False
    type = bool
    help = Keep exit waves resident on the accelerator between blocks
    doc = Only meaningful together with use_device. Saves transfers at the cost of device memory.

    [get_error]
    default = True
    type = bool
    help = Record the Fourier error at the regular cadence
    doc = If False, the error is only recorded at the last iteration.

    [overlap_min_repetitions]
    default = None
    type = int, None
    lowlim = 1
    help = Overlap repetitions completed before the solver may stop early
    doc = If None, 1 (or 2 with keep_on_device).

    [overlap_measure_first]
    default = False
    type = bool
    help = Measure and log the probe change before overlap_min_repetitions is reached

    """

    OVERLAP_MAX_ITERATIONS = 10
    OVERLAP_CONVERGE_FACTOR = 0.01
    GAMMA = 1.
    BETA = 1.
    RELAX_MASK = 1.
    PROBE_EPSILON = 1e-6
    OBJECT_DELTA_FACTOR = 1e-4

    def __init__(self, state, data, cache, pars=None):
        """
        Difference map reconstruction engine.
        """
        super(DM, self).__init__(state, data, cache, pars)

        # Instance attributes
        self.psi_dash = None
        self.fourier_error = None
        self.phase = None
        self.probe_amp_corr = None
        self.benchmark = u.Param()

        self.AWK = AuxiliaryWaveKernel()
        self.FUK = FourierUpdateKernel()
        self.POK = PoUpdateKernel(self.PROBE_EPSILON)

    def _reset_benchmarks(self):
        self.benchmark.A_Calibrate = 0.
        self.benchmark.B_Fourier_update = 0.
        self.benchmark.C_Overlap_solve = 0.
        self.benchmark.calls_fourier = 0
        self.benchmark.calls_overlap = 0
        self.benchmark.overlap_repetitions = 0

    def engine_initialize(self):
        """
        Allocate exit-wave state and error history.
        """
        self.psi_dash = ExitWaveState(self.state.n_modes, self.cache.nblocks)
        self.fourier_error = np.full((self.numiter + 1, self.data.npos), np.nan)
        self._reset_benchmarks()

    def engine_prepare(self):
        """
        Refresh illumination statistics from the current probe.
        """
        self.cache.update_illumination(self.state.probe, self.state.n_object_modes, self.p.share_probe)

    def engine_iterate(self, num=1):
        """
        Compute `num` iterations, stopping after the last one.
        """
        for n in range(num):
            self.step(self.curiter)
            it = self.curiter
            self.curiter += 1
            if self.curiter > self.numiter:
                break
        return self.fourier_error[it]

    def engine_finalize(self):
        """
        Log benchmarks.
        """
        b = self.benchmark
        log(4, u.verbose.headerline('Benchmarks', 'l'))
        if b.calls_fourier:
            log(4, '%20s : %1.3f ms per iteration' % ('B_Fourier_update', b.B_Fourier_update / b.calls_fourier * 1000))
        if b.calls_overlap:
            log(4, '%20s : %1.3f ms per iteration. %d repetitions' % (
                'C_Overlap_solve', b.C_Overlap_solve / b.calls_overlap * 1000, b.overlap_repetitions))
        log(4, '%20s : %1.3f ms' % ('A_Calibrate', b.A_Calibrate * 1000))

    def step(self, iteration):
        """
        One outer DM iteration on the engine's state, cache and exit waves.
        """
        if self.psi_dash is None:
            self.engine_initialize()
        if self.cache.max_illum is None:
            self.engine_prepare()

        self.state.transfer(self.residency.push)
        if self.p.keep_on_device:
            for jj in range(self.cache.nblocks):
                self.psi_dash.transfer(jj, self.residency.push)
        try:
            if iteration == 0:
                self.phase = Phase.CALIBRATE
                with LogTime(True) as t:
                    self.calibrate()
                self.benchmark.A_Calibrate += t.duration
            else:
                self.phase = Phase.DM_UPDATE
                with LogTime(True) as t:
                    self.dm_update(iteration)
                self.benchmark.B_Fourier_update += t.duration
                self.benchmark.calls_fourier += 1

                self.phase = Phase.OVERLAP_SOLVE
                with LogTime(True) as t:
                    self.benchmark.overlap_repetitions += self.overlap_solve(iteration)
                self.benchmark.C_Overlap_solve += t.duration
                self.benchmark.calls_overlap += 1
        finally:
            self.state.transfer(self.residency.pull)

        if self.phase is Phase.OVERLAP_SOLVE and u.verbose.enabled(5):
            self.count_residues()

    def _block_probes(self, jj):
        """
        Probe-index policy and selected probe frames of every mode of block `jj`.
        """
        sid = self.cache.blocks.scan_ids[jj]
        p_ind = [probe_index(sid, ll, self.p.share_probe) for ll in range(self.state.n_modes)]
        probes = [p_ind[ll].select(mode_at(self.state.probe, ll)) for ll in range(self.state.n_modes)]
        return p_ind, probes

    def _object_views(self, jj):
        pos = self.residency.push(self.cache.block_positions(jj))
        sh = self.state.frame_shape
        return [get_views(ob, pos, sh) for ob in self.state.object], pos

    def _propagate_block(self, jj):
        """
        Exit waves psi of block `jj` and the propagated DM mixtures Psi,
        one per mode.
        """
        p_ind, probes = self._block_probes(jj)
        obj_proj, pos = self._object_views(jj)
        psi = []
        Psi = []
        for ll in range(self.state.n_modes):
            psi.append(self.AWK.exit_wave(mode_at(obj_proj, ll), probes[ll]))
            psi_dash = self.psi_dash.resolve(ll, jj, psi[ll])
            mix = self.AWK.dm_mix(psi[ll], psi_dash, self.GAMMA)
            Psi.append(mode_at(self.state.modes, ll).propagator.fw(mix))
        return psi, Psi

    def _block_data(self, jj):
        ind = self.cache.blocks.indices[jj]
        return self.residency.push(self.data.modulus(ind)), self.residency.push(self.data.mask(ind))

    def calibrate(self):
        """
        Rescale all probe modes so that the total predicted intensity
        matches the total measured intensity, then clear the exit waves.
        """
        sum_mag = 0.
        sum_model = 0.
        for jj in range(self.cache.nblocks):
            psi, Psi = self._propagate_block(jj)
            modF, mask = self._block_data(jj)
            aPsi = self.FUK.reciprocal_model(Psi)
            sum_mag += u.norm2(modF)
            sum_model += u.norm2(aPsi)
            self.psi_dash.clear_block(jj)

        if not (np.isfinite(sum_mag) and np.isfinite(sum_model)) or sum_model <= 0. or sum_mag <= 0.:
            raise CalibrationError('Cannot calibrate probe amplitude: measured intensity %.3g, predicted intensity %.3g'
                                   % (sum_mag, sum_model))

        scale = np.sqrt(sum_mag / sum_model)
        self.state.probe = [pr * scale for pr in self.state.probe]
        self.psi_dash.clear()
        self.probe_amp_corr = scale
        self.cache.update_illumination([to_host(pr) for pr in self.state.probe],
                                       self.state.n_object_modes, self.p.share_probe)
        log(3, 'Probe amplitude corrected by %.3g' % scale)
        return scale

    def dm_update(self, iteration):
        """
        Difference-map update of the exit waves of every block.
        """
        record = error_due(iteration, self.numiter, self.p.get_error) and iteration < len(self.fourier_error)
        for jj in range(self.cache.nblocks):
            if not self.p.keep_on_device:
                self.psi_dash.transfer(jj, self.residency.push)

            psi, Psi = self._propagate_block(jj)
            modF, mask = self._block_data(jj)
            aPsi = self.FUK.reciprocal_model(Psi)

            if record:
                err = self.FUK.fourier_error(modF, aPsi, mask)
                self.fourier_error[iteration, self.cache.blocks.indices[jj]] = to_host(err)

            relax = self.FUK.relaxation_mask(mask, self.p.pfft_relaxation, self.RELAX_MASK)
            Psi = self.FUK.modulus_constraint(modF, aPsi, Psi, relax)

            for ll in range(self.state.n_modes):
                psi_back = mode_at(self.state.modes, ll).propagator.bw(Psi[ll])
                self.psi_dash[ll, jj] = self.AWK.dm_update(self.psi_dash[ll, jj], self.BETA, psi_back, psi[ll])

            if not self.p.keep_on_device:
                self.psi_dash.transfer(jj, self.residency.pull)

    def _accumulate_block(self, jj, probe_acc, obj_acc):
        """
        Fold the contributions of block `jj` into the accumulators. A None
        accumulator list skips that update.
        """
        if not self.p.keep_on_device:
            self.psi_dash.transfer(jj, self.residency.push)

        p_ind, probes = self._block_probes(jj)
        obj_proj, pos = self._object_views(jj)

        if probe_acc is not None:
            for ll in range(self.state.n_probe_modes):
                probe_acc[ll].fold(self.POK.probe_contribution(
                    self.psi_dash[ll, jj], mode_at(obj_proj, ll), p_ind[ll]))

        if obj_acc is not None:
            for ll in range(self.state.n_modes):
                obj_acc[mode_index(ll, self.state.n_object_modes)].fold(
                    self.POK.object_contribution(self.psi_dash[ll, jj], probes[ll], pos))

        if not self.p.keep_on_device:
            self.psi_dash.transfer(jj, self.residency.pull)

    def probe_change(self, probe_0):
        """
        Largest relative change of the first probe mode's instances with
        respect to `probe_0`. Instances with zero norm in `probe_0` are
        skipped; if all are zero, the change is 0.
        """
        xp = self.residency.xp
        pr = self.state.probe[0]
        diff = xp.sqrt(u.abs2(pr - probe_0).sum(-1).sum(-1))
        ref = xp.sqrt(u.abs2(probe_0).sum(-1).sum(-1))
        valid = ref > 0
        if not bool(valid.any()):
            return 0.
        return float(to_host((diff[valid] / ref[valid]).max()))

    def overlap_solve(self, iteration):
        """
        Alternately re-estimate object and probe from the exit waves.

        Returns the number of repetitions done.
        """
        do_probe = iteration >= self.p.probe_change_start
        do_object = iteration >= self.p.object_change_start
        min_rep = self.p.overlap_min_repetitions
        if min_rep is None:
            min_rep = 1 + int(self.p.keep_on_device)

        kk = 0
        for inner in range(self.OVERLAP_MAX_ITERATIONS):
            kk = inner + 1
            pre_str = 'Iteration (Overlap) #%02d:  ' % inner

            probe_acc = [ProbeAccumulator.zeros_like(pr) for pr in self.state.probe] if do_probe else None
            obj_acc = [ObjectAccumulator.zeros_like(ob) for ob in self.state.object] if do_object else None
            probe_0 = self.state.probe[0].copy()

            for jj in range(self.cache.nblocks):
                self._accumulate_block(jj, probe_acc, obj_acc)

            for ll in range(self.state.n_modes):
                if do_probe and ll < self.state.n_probe_modes:
                    support = self.state.modes[0].apply_probe_support if ll == 0 else None
                    self.state.probe[ll] = self.POK.apply_probe(
                        self.state.probe[ll], probe_acc[ll], self.p.probe_inertia, support)
                if do_object and ll < self.state.n_object_modes:
                    self.state.object[ll] = self.POK.apply_object(
                        self.state.object[ll], obj_acc[ll], self.p.object_inertia,
                        self.cache.max_illum[ll] * self.OBJECT_DELTA_FACTOR)

            if iteration > self.p.probe_change_start:
                if kk >= min_rep or self.p.overlap_measure_first:
                    change = self.probe_change(probe_0)
                    log(4, pre_str + 'change in probe is %.2f%%' % (change * 100))
                    if kk >= min_rep and change < self.OVERLAP_CONVERGE_FACTOR:
                        break

        return kk

    def count_residues(self):
        """
        Log the number of phase residues in the scanned region of every
        object mode.
        """
        roi = self.cache.object_roi
        counts = []
        for ll, ob in enumerate(self.state.object):
            nresid = int((u.find_residues(to_host(ob)[roi]) > 0.1).sum())
            if nresid > 0:
                log(2, 'Number of residua in object %d: %d' % (ll, nresid))
            counts.append(nresid)
        return counts
