"""
Unit tests for gravity constants and solver parameters
"""

import unittest
from fastgravity.constants import GravityConstants, SolverParameters


class TestGravityConstants(unittest.TestCase):
    """Test fixed solver constants"""

    def setUp(self):
        self.const = GravityConstants()

    def test_gravitational_constant_attractive(self):
        """G should be negative so potentials of positive masses are negative"""
        self.assertEqual(self.const.G, -1.0)
        self.assertLess(self.const.G, 0)

    def test_default_accuracy(self):
        """Default opening angle should be 0.3"""
        self.assertEqual(self.const.DEFAULT_ACCURACY, 0.3)

    def test_max_depth_reasonable(self):
        """Depth limit must stay below Python's default recursion limit"""
        self.assertGreater(self.const.MAX_TREE_DEPTH, 64)
        self.assertLess(self.const.MAX_TREE_DEPTH, 900)


class TestSolverParameters(unittest.TestCase):
    """Test SolverParameters defaults and validation"""

    def test_defaults(self):
        """Defaults should match GravityConstants"""
        params = SolverParameters()
        self.assertEqual(params.accuracy, GravityConstants.DEFAULT_ACCURACY)
        self.assertTrue(params.use_quadrupole)
        self.assertEqual(params.backend, 'python')
        self.assertEqual(params.G, GravityConstants.G)
        self.assertFalse(params.verbose)

    def test_custom_values(self):
        """Custom values should be stored"""
        params = SolverParameters(accuracy=0.7, use_quadrupole=False, backend='numba', G=-2.0)
        self.assertEqual(params.accuracy, 0.7)
        self.assertFalse(params.use_quadrupole)
        self.assertEqual(params.backend, 'numba')
        self.assertEqual(params.G, -2.0)

    def test_unknown_backend_rejected(self):
        """Unknown backend names should raise ValueError"""
        with self.assertRaises(ValueError):
            SolverParameters(backend='gpu')

    def test_str_summary(self):
        """String form should mention θ and backend"""
        text = str(SolverParameters(accuracy=0.5, use_quadrupole=False))
        self.assertIn("θ = 0.5", text)
        self.assertIn("Quadrupole = off", text)
        self.assertIn("Backend = python", text)


if __name__ == '__main__':
    unittest.main()
