# -*- coding: utf-8 -*-
"""
Coordinate grids of probe frames and propagation kernels.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""

import numpy as np

__all__ = ['grids']


def _origin(sh, center):
    if not isinstance(center, str):
        return np.asarray(center, dtype=float) % sh
    if center == 'geometric':
        return sh / 2.0 - 0.5
    if center == 'fftshift':
        return sh // 2.0
    if center == 'fft':
        return np.zeros(len(sh))
    raise TypeError('Input %s not understood for center' % str(center))


def grids(sh, psize=None, center='geometric', FFTlike=True):
    """\
    Pixel coordinates ``q0, q1, ...`` of an array of shape `sh`, relative
    to `center` ('geometric', 'fftshift', 'fft' or a pixel tuple).

    With `FFTlike`, coordinates wrap into ``[-sh//2, sh//2[`` as the
    frequencies of an unshifted FFT do. `psize` (scalar or one value per
    axis) scales the result to physical units.
    """
    sh = np.asarray(sh)
    bcast = (len(sh),) + len(sh) * (1,)

    grid = np.indices(sh).astype(float) - _origin(sh, center).reshape(bcast)
    if FFTlike:
        m = sh.reshape(bcast)
        grid = (grid + m // 2.0) % m - m // 2.0

    if psize is None:
        return grid
    return grid * np.broadcast_to(np.asarray(psize, dtype=float), (len(sh),)).reshape(bcast)
