# -*- coding: utf-8 -*-
"""
Measured diffraction data.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
import numpy as np

from ..accelerate.base import FLOAT_TYPE

__all__ = ['DiffractionData']


class DiffractionData(object):
    """
    Measured intensities (npos, H, W) and optional validity mask.

    The mask is 1 for valid detector pixels and 0 for invalid ones. It
    is either one frame (H, W) shared by all positions or one frame per
    position.
    """

    def __init__(self, intensities, mask=None):
        self.intensities = np.asarray(intensities, dtype=FLOAT_TYPE)
        if self.intensities.ndim != 3:
            raise ValueError('Intensities must be a (npos, H, W) stack')
        if np.any(self.intensities < 0):
            raise ValueError('Intensities must be non-negative')
        self.amplitudes = np.sqrt(self.intensities)

        if mask is not None:
            mask = np.asarray(mask, dtype=FLOAT_TYPE)
            if mask.shape != self.intensities.shape and mask.shape != self.intensities.shape[-2:]:
                raise ValueError('Mask shape %s does not match data shape %s'
                                 % (str(mask.shape), str(self.intensities.shape)))
        self._mask = mask

    @property
    def npos(self):
        return self.intensities.shape[0]

    @property
    def shape(self):
        return self.intensities.shape[-2:]

    @property
    def has_mask(self):
        return self._mask is not None

    def modulus(self, indices):
        """
        Measured moduli of the positions `indices`.
        """
        return self.amplitudes[indices]

    def mask(self, indices):
        """
        Validity mask of the positions `indices`, None without a mask.
        """
        if self._mask is None:
            return None
        if self._mask.ndim == 2:
            return np.broadcast_to(self._mask, (len(indices),) + self._mask.shape)
        return self._mask[indices]
