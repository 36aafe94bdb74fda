"""
Tests for verbosity levels and logging helpers.

This file is part of the PTYDM package.
    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
import unittest
import numpy as np
from ptydm import utils as u
from ptydm.utils import verbose


class VerboseTest(unittest.TestCase):

    def setUp(self):
        self.level = verbose.get_level()

    def tearDown(self):
        verbose.set_level(self.level)

    def test_set_level(self):
        verbose.set_level(3)
        self.assertEqual(verbose.get_level(), 3)
        self.assertTrue(verbose.enabled(3))
        self.assertFalse(verbose.enabled(4))
        verbose.set_level('debug')
        self.assertEqual(verbose.get_level(), 5)
        self.assertTrue(verbose.enabled(4))

    def test_bad_levels(self):
        self.assertRaises(KeyError, verbose.set_level, 'chatty')
        self.assertRaises(TypeError, verbose.set_level, 3.5)
        self.assertRaises(TypeError, verbose.log, None, 'message')

    def test_headerline(self):
        line = verbose.headerline('DM', 'l', '=')
        self.assertEqual(len(line), verbose.LINEMAX)
        self.assertTrue(line.startswith('==== DM '))

    def test_report(self):
        out = u.verbose.report(u.Param(a=1, b=np.zeros((3, 4))), noheader=True)
        self.assertIn('3x4', out)
        self.assertIn('a', out)

    def test_logtime(self):
        with verbose.LogTime(True) as t:
            pass
        self.assertGreaterEqual(t.duration, 0.)
        self.assertTrue(t.readout.endswith('seconds'))
        with verbose.LogTime(False) as t:
            pass
        self.assertEqual(t.readout, '')


if __name__ == '__main__':
    unittest.main()
