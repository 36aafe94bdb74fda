"""
Array kernels of the difference map.

Each kernel works on whole blocks (n, H, W) at once and accepts host
(numpy) or device (cupy) arrays.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
from ...utils import abs2
from ...core.blocks import SharedInstance
from ...core.views import add_views
from .mem_utils import get_array_module


class BaseKernel(object):
    """
    Base of the block kernels. `kernels` names the operations a kernel
    provides.
    """

    def __init__(self):
        self.kernels = []


class AuxiliaryWaveKernel(BaseKernel):
    """
    Exit waves and their difference-map mixing and update.
    """

    def __init__(self):
        super(AuxiliaryWaveKernel, self).__init__()
        self.kernels = [
            'exit_wave',
            'dm_mix',
            'dm_update',
        ]

    def exit_wave(self, obj_proj, probe):
        """
        Exit waves psi = O * P of a block; `probe` is one frame (H, W)
        or one frame per position.
        """
        return obj_proj * probe

    def dm_mix(self, psi, psi_dash, gamma=1.):
        """
        Wave to propagate: (1 + gamma) * psi - gamma * psi_dash.
        """
        return (1 + gamma) * psi - gamma * psi_dash

    def dm_update(self, psi_dash, beta, psi_back, psi):
        """
        New estimate: psi_dash + beta * (psi_back - psi).
        """
        return psi_dash + beta * (psi_back - psi)


class FourierUpdateKernel(BaseKernel):
    """
    Reciprocal-space model, error and modulus constraint.
    """

    def __init__(self, denom=1e-7):
        super(FourierUpdateKernel, self).__init__()
        self.denom = denom
        self.kernels = [
            'reciprocal_model',
            'fourier_error',
            'relaxation_mask',
            'modulus_constraint',
        ]

    def reciprocal_model(self, fields):
        """
        Predicted amplitude of a block: square root of the incoherent sum
        of the squared magnitudes of all mode fields.
        """
        intensity = abs2(fields[0])
        for f in fields[1:]:
            intensity = intensity + abs2(f)
        xp = get_array_module(intensity)
        return xp.sqrt(intensity)

    def fourier_error(self, mag, af, mask=None):
        """
        Per-position mean squared deviation of the predicted amplitude
        `af` from the measured modulus `mag`, over valid pixels.
        """
        ferr = abs2(af - mag)
        if mask is None:
            return ferr.mean(-1).mean(-1)
        xp = get_array_module(ferr)
        mask_sum = xp.maximum(mask.sum(-1).sum(-1), 1)
        return (mask * ferr).sum(-1).sum(-1) / mask_sum

    def relaxation_mask(self, mask, pfft_relaxation, relax_mask=1.):
        """
        Per-pixel relaxation of the modulus constraint.

        Valid pixels get the relaxation `pfft_relaxation` (capped at the
        baseline `relax_mask`), invalid ones keep the baseline, i.e. the
        predicted amplitude. Without a mask every pixel gets
        `pfft_relaxation`.
        """
        if mask is None:
            return pfft_relaxation
        return relax_mask + (min(relax_mask, pfft_relaxation) - relax_mask) * mask

    def modulus_constraint(self, mag, af, fields, relax):
        """
        Rescale every mode field towards the measured modulus:
        ``f * (relax + (1 - relax) * mag / af)``.
        """
        fm = relax + (1 - relax) * mag / (af + self.denom)
        return [f * fm for f in fields]


class ProbeContribution(object):
    """
    One block's contribution to a probe mode: numerator and
    normalization frames per position and the probe-instance policy.
    """
    __slots__ = ('update', 'illum', 'index')

    def __init__(self, update, illum, index):
        self.update = update
        self.illum = illum
        self.index = index


class ObjectContribution(object):
    """
    One block's contribution to an object mode: numerator and
    normalization patches and the view positions they belong to.
    """
    __slots__ = ('update', 'illum', 'positions')

    def __init__(self, update, illum, positions):
        self.update = update
        self.illum = illum
        self.positions = positions


class ProbeAccumulator(object):
    """
    Numerator (N, H, W) and normalization of one probe mode, summed
    over blocks.
    """

    def __init__(self, update, illum):
        self.update = update
        self.illum = illum

    @classmethod
    def zeros_like(cls, probe):
        xp = get_array_module(probe)
        return cls(xp.zeros_like(probe), xp.zeros(probe.shape, dtype=probe.real.dtype))

    def fold(self, contribution):
        c = contribution
        if self.update.shape[0] == 1 or isinstance(c.index, SharedInstance):
            ii = 0 if self.update.shape[0] == 1 else c.index.index
            self.update[ii] += c.update.sum(0)
            self.illum[ii] += c.illum.sum(0)
        else:
            xp = get_array_module(self.update)
            idx = xp.asarray(c.index.indices)
            xp.add.at(self.update, idx, c.update)
            xp.add.at(self.illum, idx, c.illum)
        return self

    def __add__(self, other):
        return ProbeAccumulator(self.update + other.update, self.illum + other.illum)


class ObjectAccumulator(object):
    """
    Numerator (Ny, Nx) and normalization of one object mode, summed
    over blocks.
    """

    def __init__(self, update, illum):
        self.update = update
        self.illum = illum

    @classmethod
    def zeros_like(cls, obj):
        xp = get_array_module(obj)
        return cls(xp.zeros_like(obj), xp.zeros(obj.shape, dtype=obj.real.dtype))

    def fold(self, contribution):
        c = contribution
        add_views(self.update, c.update, c.positions)
        add_views(self.illum, c.illum, c.positions)
        return self

    def __add__(self, other):
        return ObjectAccumulator(self.update + other.update, self.illum + other.illum)


class PoUpdateKernel(BaseKernel):
    """
    Probe and object contributions of a block and the normalized,
    inertia-blended updates built from their sums.
    """

    def __init__(self, probe_epsilon=1e-6):
        super(PoUpdateKernel, self).__init__()
        self.probe_epsilon = probe_epsilon
        self.kernels = [
            'probe_contribution',
            'object_contribution',
            'apply_probe',
            'apply_object',
        ]

    def probe_contribution(self, psi, obj_proj, index):
        return ProbeContribution(psi * obj_proj.conj(), abs2(obj_proj), index)

    def object_contribution(self, psi, probe, positions):
        """
        `probe` is one frame (H, W) or one frame per position; the
        normalization is expanded to one frame per position.
        """
        xp = get_array_module(psi)
        illum = xp.broadcast_to(abs2(probe), psi.shape)
        return ObjectContribution(psi * probe.conj(), illum, positions)

    def apply_probe(self, probe, acc, inertia, support=None):
        """
        inertia * probe + (1 - inertia) * new probe, where the new probe is
        the normalized accumulated update, optionally constrained by `support`.
        """
        probe_new = acc.update / (acc.illum + self.probe_epsilon)
        if support is not None:
            probe_new = support(probe_new)
        return inertia * probe + (1 - inertia) * probe_new

    def apply_object(self, obj, acc, inertia, delta):
        """
        inertia * obj + (1 - inertia) * new object, where the new object is
        the accumulated update regularized by `delta`.
        """
        obj_new = acc.update / (acc.illum + delta)
        return inertia * obj + (1 - inertia) * obj_new
