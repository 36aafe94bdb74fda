# -*- coding: utf-8 -*-
"""
Propagators between the exit-wave plane and the detector plane.

Every propagator acts on the last two axes, so a whole block of exit
waves (n, H, W) is propagated at once. Arrays living on the accelerator
are transformed with cupy's FFT.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
import numpy as np
from scipy import fft as scipy_fft

from .. import utils as u
from ..accelerate.base.mem_utils import get_array_module

__all__ = ['FFTchooser', 'FarfieldPropagator', 'NearfieldPropagator']

AXES = (-2, -1)


class FFTchooser(object):
    """
    Chooses the desired FFT algo, and assigns scaling.
    """
    def __init__(self, ffttype='scipy'):
        """
        Parameters
        ----------
        ffttype : str or tuple
            Type of FFT implementation for host arrays. One of:

            - 'numpy' for numpy.fft.fft2
            - 'scipy' for scipy.fft.fft2
            - 2-tuple of (forward_fft2(), inverse_fft2())

            Device arrays always use cupy.fft.
        """
        self.ffttype = ffttype

    def _scipy_fft(self):
        self._host_fft = lambda x: scipy_fft.fft2(x, axes=AXES)
        self._host_ifft = lambda x: scipy_fft.ifft2(x, axes=AXES)

    def _numpy_fft(self):
        self._host_fft = lambda x: np.fft.fft2(x, axes=AXES)
        self._host_ifft = lambda x: np.fft.ifft2(x, axes=AXES)

    def assign_scaling(self, shape):
        self.sc = 1.0 / np.sqrt(np.prod(shape))
        self.isc = 1.0 / self.sc
        return (self.sc, self.isc)

    def assign_fft(self):
        if str(self.ffttype) == 'scipy':
            self._scipy_fft()
        elif str(self.ffttype) == 'numpy':
            self._numpy_fft()
        elif isinstance(self.ffttype, tuple):
            self._host_fft, self._host_ifft = self.ffttype[:2]
        else:
            raise ValueError('Unknown fft type %s' % str(self.ffttype))

        def fft(x):
            xp = get_array_module(x)
            if xp is np:
                return self._host_fft(x).astype(x.dtype, copy=False)
            return xp.fft.fft2(x, axes=AXES).astype(x.dtype, copy=False)

        def ifft(x):
            xp = get_array_module(x)
            if xp is np:
                return self._host_ifft(x).astype(x.dtype, copy=False)
            return xp.fft.ifft2(x, axes=AXES).astype(x.dtype, copy=False)

        self.fft = fft
        self.ifft = ifft
        return (self.fft, self.ifft)


class FarfieldPropagator(object):
    """
    Single step Farfield Propagator: unitary, centered 2D Fourier transform.
    """

    def __init__(self, shape, ffttype='scipy'):
        self.sh = tuple(int(s) for s in shape[-2:])
        self.FFTch = FFTchooser(ffttype)
        self.fft, self.ifft = self.FFTch.assign_fft()
        self.sc, self.isc = self.FFTch.assign_scaling(self.sh)

    def fw(self, W):
        """
        Computes forward propagated wavefront of input wavefront W.
        """
        xp = get_array_module(W)
        return xp.fft.fftshift(self.fft(xp.fft.ifftshift(W, axes=AXES)), axes=AXES) * self.sc

    def bw(self, W):
        """
        Computes backward propagated wavefront of input wavefront W.
        """
        xp = get_array_module(W)
        return xp.fft.fftshift(self.ifft(xp.fft.ifftshift(W, axes=AXES)), axes=AXES) * self.isc


class NearfieldPropagator(object):
    """
    Basic two step (i.e. two ffts) Nearfield Propagator.
    """

    def __init__(self, shape, lam, distance, resolution, ffttype='scipy', dtype=np.complex128):
        """
        Parameters
        ----------
        shape : tuple
            Frame shape (H, W).
        lam : float
            Wavelength in meters.
        distance : float
            Propagation distance in meters.
        resolution : float or tuple
            Pixel size in the sample plane in meters.
        """
        self.sh = np.asarray(shape[-2:])
        self.FFTch = FFTchooser(ffttype)
        self.fft, self.ifft = self.FFTch.assign_fft()

        psize_fspace = lam / self.sh / np.asarray(resolution, dtype=float)
        [V, W] = u.grids(self.sh, psize_fspace, 'fft')
        a2 = (V**2 + W**2)

        self.kernel = np.exp(
            2j * np.pi * (distance / lam) * (np.sqrt(1 - a2 + 0j) - 1)).astype(dtype)
        self.ikernel = self.kernel.conj()
        self._device_kernels = None

    def _kernels(self, W):
        xp = get_array_module(W)
        if xp is np:
            return self.kernel, self.ikernel
        if self._device_kernels is None:
            self._device_kernels = (xp.asarray(self.kernel), xp.asarray(self.ikernel))
        return self._device_kernels

    def fw(self, W):
        """
        Computes forward propagated wavefront of input wavefront W.
        """
        return self.ifft(self.fft(W) * self._kernels(W)[0])

    def bw(self, W):
        """
        Computes backward propagated wavefront of input wavefront W.
        """
        return self.ifft(self.fft(W) * self._kernels(W)[1])
