"""
Test for the engine registry.

This file is part of the PTYDM package.
    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""

import unittest
from ptydm import engines, defaults_tree


class EngineRegistryTest(unittest.TestCase):

    def test_by_name(self):
        self.assertIs(engines.by_name('DM'), engines.DM)
        self.assertRaises(RuntimeError, engines.by_name, 'ePIE')

    def test_defaults_in_tree(self):
        desc = defaults_tree['engine.DM']
        self.assertIs(engines.DM._descriptor(), desc)
        self.assertIn('numiter', desc.children)
        self.assertIn('pfft_relaxation', desc.children)

    def test_register(self):

        @engines.register('Dummy')
        class Dummy(engines.BaseEngine):
            """
            Defaults:

            [name]
            default = Dummy
            type = str
            """
            pass

        self.assertIs(engines.by_name('Dummy'), Dummy)
        self.assertEqual(Dummy.DEFAULT.numiter, 20)
        del engines.ENGINES['Dummy']


if __name__ == '__main__':
    unittest.main()
