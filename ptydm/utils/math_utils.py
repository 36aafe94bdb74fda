# -*- coding: utf-8 -*-
"""
Numerical util functions.

All functions accept host (numpy) or device (cupy) arrays.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
import numpy as np

__all__ = ['abs2', 'cabs2', 'norm2', 'norm', 'find_residues']


def cabs2(A):
    """
    Squared absolute value for an array `A`.
    If `A` is complex, the returned value is complex as well, with the
    imaginary part of zero.
    """
    return A * A.conj()


def abs2(A):
    """
    Squared absolute value for an array `A`.
    """
    return cabs2(A).real


def norm2(A):
    """
    Squared norm
    """
    return float(abs2(A).sum())


def norm(A):
    """
    Norm.
    """
    return np.sqrt(norm2(A))


def find_residues(A):
    """
    Phase residues of a 2D complex array.

    The phase difference is wrapped to [-pi, pi) along each edge of every
    2x2 pixel loop and summed; the result is the winding number of the loop,
    i.e. an integer map of shape ``(ny-1, nx-1)``.
    """
    def _wrap(d):
        return (d + np.pi) % (2 * np.pi) - np.pi

    phase = np.angle(np.asarray(A))
    loop = (_wrap(phase[:-1, 1:] - phase[:-1, :-1])
            + _wrap(phase[1:, 1:] - phase[:-1, 1:])
            + _wrap(phase[1:, :-1] - phase[1:, 1:])
            + _wrap(phase[:-1, :-1] - phase[1:, :-1]))
    return np.round(loop / (2 * np.pi)).astype(int)
