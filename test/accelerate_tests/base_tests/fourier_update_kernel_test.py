'''
Tests for the reciprocal model, Fourier error and modulus constraint.
'''

import unittest
import numpy as np
from ptydm.accelerate.base.kernels import FourierUpdateKernel

COMPLEX_TYPE = np.complex128
FLOAT_TYPE = np.float64


class FourierUpdateKernelTest(unittest.TestCase):

    def setUp(self):
        self.FUK = FourierUpdateKernel()
        rng = np.random.default_rng(1)
        sh = (3, 4, 4)
        self.fields = [(rng.standard_normal(sh) + 1j * rng.standard_normal(sh)).astype(COMPLEX_TYPE)
                       for _ in range(2)]
        self.mag = rng.random(sh).astype(FLOAT_TYPE) + 0.5

    def test_init(self):
        np.testing.assert_equal(self.FUK.kernels,
                                ['reciprocal_model', 'fourier_error', 'relaxation_mask', 'modulus_constraint'],
                                err_msg='FourierUpdateKernel does not have the correct functions registered.')

    def test_reciprocal_model(self):
        fields = [3 * np.ones((1, 2, 2), dtype=COMPLEX_TYPE), 4j * np.ones((1, 2, 2), dtype=COMPLEX_TYPE)]
        np.testing.assert_allclose(self.FUK.reciprocal_model(fields), 5 * np.ones((1, 2, 2)))

    def test_fourier_error(self):
        af = self.mag + 1.
        np.testing.assert_allclose(self.FUK.fourier_error(self.mag, af), np.ones(3))

        mask = np.zeros((3, 4, 4))
        mask[:, :2] = 1.
        af = self.mag.copy()
        af[:, 2:] += 10.
        af[:, :2] += 2.
        np.testing.assert_allclose(self.FUK.fourier_error(self.mag, af, mask), 4 * np.ones(3))

    def test_fourier_error_fully_masked(self):
        err = self.FUK.fourier_error(self.mag, self.mag + 1., np.zeros((3, 4, 4)))
        np.testing.assert_array_equal(err, np.zeros(3))

    def test_relaxation_mask_without_mask(self):
        relax = self.FUK.relaxation_mask(None, 0.05)
        np.testing.assert_array_equal(np.full((4, 4), relax), np.full((4, 4), 0.05))

    def test_relaxation_mask(self):
        mask = np.array([[1., 0.], [1., 1.]])
        relax = self.FUK.relaxation_mask(mask, 0.05)
        np.testing.assert_allclose(relax, [[0.05, 1.], [0.05, 0.05]])
        relax = self.FUK.relaxation_mask(mask, 1.5)
        np.testing.assert_array_equal(relax, np.ones((2, 2)))

    def test_modulus_constraint_full_projection(self):
        af = self.FUK.reciprocal_model(self.fields)
        out = self.FUK.modulus_constraint(self.mag, af, self.fields, 0.)
        np.testing.assert_allclose(self.FUK.reciprocal_model(out), self.mag, rtol=1e-5)
        # phases are kept
        np.testing.assert_allclose(np.angle(out[0]), np.angle(self.fields[0]), atol=1e-12)

    def test_modulus_constraint_no_projection(self):
        af = self.FUK.reciprocal_model(self.fields)
        out = self.FUK.modulus_constraint(self.mag, af, self.fields, 1.)
        for o, f in zip(out, self.fields):
            np.testing.assert_array_equal(o, f)

    def test_modulus_constraint_masked_pixels_kept(self):
        mask = np.ones((4, 4))
        mask[0, 0] = 0.
        relax = self.FUK.relaxation_mask(mask, 0.)
        af = self.FUK.reciprocal_model(self.fields)
        out = self.FUK.modulus_constraint(self.mag, af, self.fields, relax)
        np.testing.assert_array_equal(out[0][:, 0, 0], self.fields[0][:, 0, 0])
        np.testing.assert_allclose(self.FUK.reciprocal_model(out)[:, 1:, 1:], self.mag[:, 1:, 1:], rtol=1e-5)


if __name__ == '__main__':
    unittest.main()
