"""
Tests for the propagators.

This file is part of the PTYDM package.
    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
import unittest
import numpy as np
from ptydm import utils as u
from ptydm.core.propagation import FFTchooser, FarfieldPropagator, NearfieldPropagator


class FarfieldPropagatorTest(unittest.TestCase):

    def setUp(self):
        rng = np.random.default_rng(0)
        self.stack = rng.standard_normal((3, 8, 8)) + 1j * rng.standard_normal((3, 8, 8))

    def test_centered_delta(self):
        prop = FarfieldPropagator((8, 8))
        W = np.zeros((8, 8), dtype=complex)
        W[4, 4] = 1.
        np.testing.assert_allclose(np.abs(prop.fw(W)), np.ones((8, 8)) / 8.)

    def test_unitary(self):
        prop = FarfieldPropagator((8, 8))
        F = prop.fw(self.stack)
        self.assertEqual(F.dtype, self.stack.dtype)
        self.assertAlmostEqual(u.norm2(F), u.norm2(self.stack))
        np.testing.assert_allclose(prop.bw(F), self.stack, atol=1e-12)

    def test_stack_equals_frames(self):
        prop = FarfieldPropagator((8, 8))
        F = prop.fw(self.stack)
        for i in range(3):
            np.testing.assert_allclose(F[i], prop.fw(self.stack[i]), atol=1e-12)

    def test_numpy_and_scipy_agree(self):
        a = FarfieldPropagator((8, 8), ffttype='numpy').fw(self.stack)
        b = FarfieldPropagator((8, 8), ffttype='scipy').fw(self.stack)
        np.testing.assert_allclose(a, b, atol=1e-12)

    def test_unknown_ffttype(self):
        self.assertRaises(ValueError, FFTchooser('fftw').assign_fft)


class NearfieldPropagatorTest(unittest.TestCase):

    def test_zero_distance(self):
        prop = NearfieldPropagator((8, 8), lam=1e-10, distance=0., resolution=1e-7)
        W = np.exp(1j * np.arange(64).reshape(8, 8) / 10.)
        np.testing.assert_allclose(prop.fw(W), W, atol=1e-12)

    def test_back_and_forth(self):
        prop = NearfieldPropagator((8, 8), lam=1e-10, distance=1e-3, resolution=1e-7)
        W = np.exp(1j * np.arange(64).reshape(8, 8) / 10.)[None]
        F = prop.fw(W)
        self.assertAlmostEqual(u.norm2(F), u.norm2(W))
        np.testing.assert_allclose(prop.bw(F), W, atol=1e-10)


if __name__ == '__main__':
    unittest.main()
