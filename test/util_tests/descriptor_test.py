"""
Tests for parameter descriptions parsed from docstrings.

This file is part of the PTYDM package.
    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
import unittest
from ptydm import utils as u
from ptydm.utils.descriptor import EvalDescriptor


def make_dummy(root):

    @root.parse_doc('engine.Dummy')
    class Dummy(object):
        """
        Dummy engine.

        Defaults:

        [alpha]
        default = 0.5
        type = float
        lowlim = 0.0
        uplim = 1.0
        help = A factor

        [count]
        default = None
        type = int, None
        lowlim = 1
        help = A count

        [label]
        default = 'dummy'
        type = str
        help = A label
        """
        pass

    return Dummy


class EvalDescriptorTest(unittest.TestCase):

    def setUp(self):
        self.root = EvalDescriptor('root')
        self.Dummy = make_dummy(self.root)
        self.desc = self.root['engine.Dummy']

    def test_defaults(self):
        self.assertEqual(self.Dummy.DEFAULT, u.Param(alpha=0.5, count=None, label='dummy'))
        self.assertIs(self.Dummy._descriptor(), self.desc)
        self.assertEqual(self.desc['alpha'].limits, (0.0, 1.0))
        self.assertEqual(self.desc['count'].limits, (1, None))
        self.assertEqual(self.desc['alpha'].path, 'engine.Dummy.alpha')

    def test_validate_passes(self):
        self.desc.validate(u.Param(alpha=1, count=3, label='x'))
        self.desc.validate(self.Dummy.DEFAULT)

    def test_validate_limits(self):
        self.assertRaises(RuntimeError, self.desc.validate, u.Param(alpha=2., count=None, label='x'))
        self.assertRaises(RuntimeError, self.desc.validate, u.Param(alpha=0.5, count=0, label='x'))

    def test_validate_type(self):
        self.assertRaises(RuntimeError, self.desc.validate, u.Param(alpha=0.5, count='a', label='x'))
        self.assertRaises(RuntimeError, self.desc.validate, u.Param(alpha=True, count=None, label='x'))

    def test_validate_unknown(self):
        p = self.Dummy.DEFAULT.copy()
        p.beta = 1.
        self.assertRaises(RuntimeError, self.desc.validate, p)

    def test_inherited_defaults(self):

        @self.root.parse_doc('engine.Child')
        class Child(self.Dummy):
            """
            Defaults:

            [alpha]
            default = 0.25

            [extra]
            default = True
            type = bool
            """
            pass

        self.assertEqual(Child.DEFAULT.alpha, 0.25)
        self.assertIs(Child.DEFAULT.extra, True)
        self.assertEqual(Child.DEFAULT.label, 'dummy')


if __name__ == '__main__':
    unittest.main()
