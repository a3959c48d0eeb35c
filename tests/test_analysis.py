"""
Unit tests for fastgravity.analysis module

Tests shared analysis functions for:
- Random body generation and query grids
- Relative error statistics
- Comparison against direct summation
- Theta sweeps
"""

import unittest
import numpy as np
from fastgravity.analysis import (
    accuracy_sweep,
    compare_to_direct,
    error_statistics,
    query_grid,
    random_bodies,
    relative_errors
)
from fastgravity.system import GravitySystem


class TestRandomBodies(unittest.TestCase):
    """Test random body generation"""

    def test_shapes_and_box(self):
        positions, masses = random_bodies(200, seed=1, box_size=4.0)
        self.assertEqual(positions.shape, (200, 2))
        self.assertEqual(masses.shape, (200,))
        self.assertTrue(np.all(np.abs(positions) <= 2.0))

    def test_total_mass_default(self):
        """Total mass defaults to one unit per body"""
        _, masses = random_bodies(50)
        self.assertAlmostEqual(np.sum(masses), 50.0, places=10)
        _, masses = random_bodies(50, total_mass=2.0)
        self.assertAlmostEqual(np.sum(masses), 2.0, places=12)

    def test_equal_masses(self):
        _, masses = random_bodies(10, mass_randomize=0.0)
        np.testing.assert_allclose(masses, np.ones(10))

    def test_masses_positive(self):
        _, masses = random_bodies(500, mass_randomize=0.9)
        self.assertTrue(np.all(masses > 0))

    def test_reproducible(self):
        p1, m1 = random_bodies(30, seed=7)
        p2, m2 = random_bodies(30, seed=7)
        np.testing.assert_array_equal(p1, p2)
        np.testing.assert_array_equal(m1, m2)
        p3, _ = random_bodies(30, seed=8)
        self.assertFalse(np.array_equal(p1, p3))


class TestQueryGrid(unittest.TestCase):

    def test_grid_layout(self):
        points, X, Y = query_grid((-1.0, 1.0), (0.0, 4.0), resolution=5)
        self.assertEqual(points.shape, (25, 2))
        self.assertEqual(X.shape, (5, 5))
        np.testing.assert_array_equal(points[:, 0], X.ravel())
        np.testing.assert_array_equal(points[:, 1], Y.ravel())
        self.assertEqual(points[0].tolist(), [-1.0, 0.0])
        self.assertEqual(points[-1].tolist(), [1.0, 4.0])


class TestErrorStatistics(unittest.TestCase):
    """Test relative error helpers"""

    def test_relative_errors_scalar(self):
        errors = relative_errors(np.array([1.1, -2.0]), np.array([1.0, -2.5]))
        np.testing.assert_allclose(errors, [0.1, 0.2])

    def test_relative_errors_vector(self):
        approx = np.array([[3.0, 4.0], [0.0, 1.0]])
        exact = np.array([[3.0, 4.5], [0.0, 2.0]])
        np.testing.assert_allclose(relative_errors(approx, exact), [0.5 / np.hypot(3.0, 4.5), 0.5])

    def test_zero_exact_skipped(self):
        errors = relative_errors(np.array([1.0, 0.5]), np.array([0.0, 1.0]))
        np.testing.assert_allclose(errors, [0.5])

    def test_statistics(self):
        stats = error_statistics(np.array([0.1, 0.2, 0.3, 0.4]))
        self.assertAlmostEqual(stats['mean_error'], 0.25)
        self.assertAlmostEqual(stats['median_error'], 0.25)
        self.assertAlmostEqual(stats['rms_error'], np.sqrt(0.075))
        self.assertAlmostEqual(stats['max_error'], 0.4)

    def test_statistics_empty(self):
        stats = error_statistics(np.array([]))
        self.assertEqual(stats['max_error'], 0.0)


class TestCompareToDirect(unittest.TestCase):
    """Test comparison against brute-force summation"""

    def setUp(self):
        positions, masses = random_bodies(60, seed=3)
        self.system = GravitySystem(positions, masses)
        self.query, _, _ = query_grid((-7.0, 7.0), (-7.0, 7.0), resolution=6)

    def test_exact_at_theta_zero(self):
        for quantity in ('gravity', 'potential'):
            result = compare_to_direct(self.system, self.query, 0.0, quantity=quantity)
            self.assertLess(result['max_error'], 1e-10)
            self.assertEqual(result['quantity'], quantity)

    def test_result_contents(self):
        result = compare_to_direct(self.system, self.query, 0.5)
        self.assertEqual(result['exact'].shape, (36, 2))
        self.assertEqual(result['approx'].shape, (36, 2))
        self.assertEqual(len(result['errors']), 36)
        self.assertGreater(result['t_direct'], 0.0)
        self.assertGreater(result['speedup'], 0.0)
        self.assertGreater(result['max_error'], 0.0)
        self.assertLessEqual(result['rms_error'], result['max_error'])

    def test_invalid_quantity(self):
        with self.assertRaises(ValueError):
            compare_to_direct(self.system, self.query, 0.3, quantity='tidal')


class TestAccuracySweep(unittest.TestCase):

    def test_sweep_shapes(self):
        positions, masses = random_bodies(40, seed=5)
        system = GravitySystem(positions, masses)
        query, _, _ = query_grid((-6.0, 6.0), (-6.0, 6.0), resolution=5)
        thetas = [0.0, 0.5, 1.0]
        sweep = accuracy_sweep(system, query, thetas)

        for key in ('rms_mono', 'max_mono', 'rms_quad', 'max_quad'):
            self.assertEqual(sweep[key].shape, (3,))
        np.testing.assert_array_equal(sweep['theta'], thetas)
        self.assertLess(sweep['max_mono'][0], 1e-10)
        self.assertLess(sweep['max_quad'][0], 1e-10)
        self.assertGreater(sweep['rms_mono'][2], sweep['rms_mono'][0])


if __name__ == '__main__':
    unittest.main()
