"""
Tests for blocks and the probe-instance policy.

This file is part of the PTYDM package.
    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
import unittest
import numpy as np
from ptydm.core.blocks import (BlockDescriptor, SharedInstance, PerGroupInstance,
                               probe_index, mode_at, mode_index)


class ModeAtTest(unittest.TestCase):

    def test_clamps_to_last(self):
        seq = ['a', 'b']
        self.assertEqual(mode_at(seq, 0), 'a')
        self.assertEqual(mode_at(seq, 1), 'b')
        self.assertEqual(mode_at(seq, 5), 'b')
        self.assertEqual(mode_index(3, 1), 0)


class ProbeIndexTest(unittest.TestCase):

    def test_shared(self):
        self.assertEqual(probe_index([0, 1, 2], 0, True), SharedInstance(0))
        self.assertEqual(probe_index([2, 2], 0, True), SharedInstance(0))

    def test_incoherent_modes_are_shared(self):
        self.assertEqual(probe_index([0, 1, 2], 1, False), SharedInstance(0))

    def test_uniform_group(self):
        self.assertEqual(probe_index([2, 2, 2], 0, False), SharedInstance(2))

    def test_mixed_group(self):
        ind = probe_index([0, 1, 1], 0, False)
        self.assertIsInstance(ind, PerGroupInstance)
        np.testing.assert_array_equal(ind.indices, [0, 1, 1])

    def test_select(self):
        probe = np.arange(3)[:, None, None] * np.ones((3, 2, 2))
        np.testing.assert_array_equal(SharedInstance(2).select(probe), 2 * np.ones((2, 2)))
        sel = PerGroupInstance([0, 2]).select(probe)
        self.assertEqual(sel.shape, (2, 2, 2))
        np.testing.assert_array_equal(sel[1], probe[2])


class BlockDescriptorTest(unittest.TestCase):

    def test_contiguous(self):
        blocks = BlockDescriptor.contiguous(5, 2, scan_ids=[0, 0, 1, 1, 1])
        self.assertEqual(len(blocks), 3)
        self.assertEqual(blocks.npos, 5)
        np.testing.assert_array_equal(blocks.indices[2], [4])
        np.testing.assert_array_equal(blocks.scan_ids[1], [1, 1])
        ids = [list(ind) for ind, sid in blocks]
        self.assertEqual(ids, [[0, 1], [2, 3], [4]])

    def test_position_in_two_blocks(self):
        self.assertRaises(ValueError, BlockDescriptor, [[0, 1], [1, 2]], [[0, 0], [0, 0]])

    def test_incomplete_cover(self):
        self.assertRaises(ValueError, BlockDescriptor, [[0, 1]], [[0, 0]], 3)

    def test_mismatched_ids(self):
        self.assertRaises(ValueError, BlockDescriptor, [[0, 1]], [[0]])
        self.assertRaises(ValueError, BlockDescriptor.contiguous, 3, 0)


if __name__ == '__main__':
    unittest.main()
