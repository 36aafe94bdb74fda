'''
Tests for probe and object contributions, accumulators and updates.
'''

import unittest
import numpy as np
from ptydm.accelerate.base.kernels import (PoUpdateKernel, ProbeAccumulator, ObjectAccumulator)
from ptydm.core.blocks import SharedInstance, PerGroupInstance

COMPLEX_TYPE = np.complex128
FLOAT_TYPE = np.float64


class PoUpdateKernelTest(unittest.TestCase):

    def setUp(self):
        self.POUK = PoUpdateKernel()
        rng = np.random.default_rng(7)
        self.psi = (rng.standard_normal((3, 4, 4)) + 1j * rng.standard_normal((3, 4, 4))).astype(COMPLEX_TYPE)
        self.obj_proj = (rng.standard_normal((3, 4, 4)) + 1j * rng.standard_normal((3, 4, 4))).astype(COMPLEX_TYPE)
        self.probe = (rng.standard_normal((4, 4)) + 1j * rng.standard_normal((4, 4))).astype(COMPLEX_TYPE)
        self.positions = np.array([[0, 0], [1, 1], [2, 0]])

    def test_init(self):
        np.testing.assert_equal(self.POUK.kernels,
                                ['probe_contribution', 'object_contribution', 'apply_probe', 'apply_object'],
                                err_msg='PoUpdateKernel does not have the correct functions registered.')

    def test_probe_contribution(self):
        c = self.POUK.probe_contribution(self.psi, self.obj_proj, SharedInstance(0))
        np.testing.assert_allclose(c.update, self.psi * self.obj_proj.conj())
        np.testing.assert_allclose(c.illum, np.abs(self.obj_proj) ** 2)
        self.assertEqual(c.illum.dtype, FLOAT_TYPE)

    def test_object_contribution(self):
        c = self.POUK.object_contribution(self.psi, self.probe, self.positions)
        np.testing.assert_allclose(c.update, self.psi * self.probe.conj())
        self.assertEqual(c.illum.shape, (3, 4, 4))
        np.testing.assert_allclose(c.illum[2], np.abs(self.probe) ** 2)

    def test_fold_single_instance(self):
        acc = ProbeAccumulator.zeros_like(np.zeros((1, 4, 4), dtype=COMPLEX_TYPE))
        acc.fold(self.POUK.probe_contribution(self.psi, self.obj_proj, PerGroupInstance([0, 3, 5])))
        np.testing.assert_allclose(acc.update[0], (self.psi * self.obj_proj.conj()).sum(0))

    def test_fold_shared_instance(self):
        acc = ProbeAccumulator.zeros_like(np.zeros((3, 4, 4), dtype=COMPLEX_TYPE))
        acc.fold(self.POUK.probe_contribution(self.psi, self.obj_proj, SharedInstance(1)))
        np.testing.assert_allclose(acc.illum[1], (np.abs(self.obj_proj) ** 2).sum(0))
        np.testing.assert_array_equal(acc.illum[0], np.zeros((4, 4)))
        np.testing.assert_array_equal(acc.illum[2], np.zeros((4, 4)))

    def test_fold_per_group(self):
        acc = ProbeAccumulator.zeros_like(np.zeros((3, 4, 4), dtype=COMPLEX_TYPE))
        acc.fold(self.POUK.probe_contribution(self.psi, self.obj_proj, PerGroupInstance([0, 0, 2])))
        illum = np.abs(self.obj_proj) ** 2
        np.testing.assert_allclose(acc.illum[0], illum[0] + illum[1])
        np.testing.assert_array_equal(acc.illum[1], np.zeros((4, 4)))
        np.testing.assert_allclose(acc.illum[2], illum[2])

    def test_object_accumulation_is_order_independent(self):
        obj = np.zeros((8, 8), dtype=COMPLEX_TYPE)
        c1 = self.POUK.object_contribution(self.psi, self.probe, self.positions)
        c2 = self.POUK.object_contribution(self.psi[::-1] * 2, self.probe, self.positions + 1)

        forward = ObjectAccumulator.zeros_like(obj).fold(c1).fold(c2)
        reverse = ObjectAccumulator.zeros_like(obj).fold(c2).fold(c1)
        np.testing.assert_allclose(forward.update, reverse.update, rtol=1e-12)
        np.testing.assert_allclose(forward.illum, reverse.illum, rtol=1e-12)

        combined = ObjectAccumulator.zeros_like(obj).fold(c2) + ObjectAccumulator.zeros_like(obj).fold(c1)
        np.testing.assert_allclose(combined.update, forward.update, rtol=1e-12)
        self.assertTrue(np.all(forward.illum >= 0))

    def test_apply_probe_inertia(self):
        old = self.probe[None]
        acc = ProbeAccumulator(2 * np.ones((1, 4, 4), dtype=COMPLEX_TYPE), np.ones((1, 4, 4)))
        out = self.POUK.apply_probe(old, acc, 0.)
        np.testing.assert_array_equal(out, acc.update / (acc.illum + 1e-6))
        out = self.POUK.apply_probe(old, acc, 1.)
        np.testing.assert_array_equal(out, old)
        out = self.POUK.apply_probe(old, acc, 0.5)
        np.testing.assert_allclose(out, 0.5 * old + 0.5 * acc.update / (acc.illum + 1e-6))

    def test_apply_probe_support(self):
        old = np.zeros((1, 4, 4), dtype=COMPLEX_TYPE)
        acc = ProbeAccumulator(np.ones((1, 4, 4), dtype=COMPLEX_TYPE), np.ones((1, 4, 4)))
        supp = np.zeros((4, 4))
        supp[1:3, 1:3] = 1
        out = self.POUK.apply_probe(old, acc, 0., support=lambda p: p * supp)
        self.assertEqual(np.count_nonzero(out), 4)

    def test_apply_object_inertia(self):
        old = np.ones((4, 4), dtype=COMPLEX_TYPE)
        acc = ObjectAccumulator(3 * np.ones((4, 4), dtype=COMPLEX_TYPE), np.zeros((4, 4)))
        out = self.POUK.apply_object(old, acc, 0., 0.5)
        np.testing.assert_array_equal(out, 6 * np.ones((4, 4)))
        out = self.POUK.apply_object(old, acc, 1., 0.5)
        np.testing.assert_array_equal(out, old)


if __name__ == '__main__':
    unittest.main()
