"""
Unit tests for CLI argument parsing module.
"""

import io
import os
import tempfile
import unittest
import argparse
from contextlib import redirect_stdout
from unittest.mock import patch
import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from fastgravity.cli import (
    add_common_arguments,
    args_to_solver_params,
    bodies_from_args,
    load_bodies,
    main,
    padded_extent,
    parse_arguments
)
from fastgravity.constants import GravityConstants, SolverParameters


class TestAddCommonArguments(unittest.TestCase):
    """Test add_common_arguments function"""

    def test_adds_all_expected_arguments(self):
        """All common arguments should be added to parser"""
        parser = argparse.ArgumentParser()
        add_common_arguments(parser)
        args = parser.parse_args([])

        for name in ('bodies', 'seed', 'box_size', 'mass_randomize', 'input',
                     'accuracy', 'no_quadrupole', 'backend', 'resolution', 'verbose'):
            self.assertTrue(hasattr(args, name), name)

    def test_default_values(self):
        """Default values should match expected"""
        parser = argparse.ArgumentParser()
        add_common_arguments(parser)
        args = parser.parse_args([])

        self.assertEqual(args.bodies, 500)
        self.assertEqual(args.seed, 42)
        self.assertEqual(args.box_size, 10.0)
        self.assertEqual(args.mass_randomize, 0.5)
        self.assertIsNone(args.input)
        self.assertEqual(args.accuracy, GravityConstants.DEFAULT_ACCURACY)
        self.assertFalse(args.no_quadrupole)
        self.assertEqual(args.backend, 'python')
        self.assertEqual(args.resolution, 50)
        self.assertFalse(args.verbose)

    def test_custom_values_override_defaults(self):
        parser = argparse.ArgumentParser()
        add_common_arguments(parser)
        args = parser.parse_args(['--bodies', '20', '--accuracy', '0.7',
                                  '--no-quadrupole', '--backend', 'numba'])
        self.assertEqual(args.bodies, 20)
        self.assertEqual(args.accuracy, 0.7)
        self.assertTrue(args.no_quadrupole)
        self.assertEqual(args.backend, 'numba')

    def test_invalid_backend_rejected(self):
        parser = argparse.ArgumentParser()
        add_common_arguments(parser)
        with patch('sys.stderr', new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                parser.parse_args(['--backend', 'gpu'])


class TestArgsToSolverParams(unittest.TestCase):
    """Test args_to_solver_params function"""

    def test_converts_args(self):
        args = parse_arguments(argv=['--accuracy', '0.5', '--no-quadrupole',
                                     '--backend', 'direct', '--verbose'])
        params = args_to_solver_params(args)
        self.assertIsInstance(params, SolverParameters)
        self.assertEqual(params.accuracy, 0.5)
        self.assertFalse(params.use_quadrupole)
        self.assertEqual(params.backend, 'direct')
        self.assertTrue(params.verbose)
        self.assertEqual(params.G, GravityConstants.G)

    def test_quadrupole_on_by_default(self):
        params = args_to_solver_params(parse_arguments(argv=[]))
        self.assertTrue(params.use_quadrupole)


class TestParseArguments(unittest.TestCase):
    """Test parse_arguments function"""

    def test_with_output_dir(self):
        args = parse_arguments(add_output_dir=True, argv=[])
        self.assertEqual(args.output_dir, './results')

    def test_without_output_dir(self):
        args = parse_arguments(add_output_dir=False, argv=[])
        self.assertFalse(hasattr(args, 'output_dir'))

    def test_reads_sys_argv(self):
        with patch('sys.argv', ['run_field.py', '--bodies', '12', '--sweep']):
            args = parse_arguments()
        self.assertEqual(args.bodies, 12)
        self.assertTrue(args.sweep)
        self.assertFalse(args.compare)


class TestLoadBodies(unittest.TestCase):
    """Test reading bodies from disk"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.data = np.array([[0.0, 1.0, 2.0], [3.0, -1.0, 0.5], [1.5, 1.5, 1.0]])

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_csv(self):
        path = os.path.join(self.tmpdir.name, 'bodies.csv')
        with open(path, 'w') as f:
            f.write("# x,y,mass\n")
            for row in self.data:
                f.write(",".join(str(v) for v in row) + "\n")
        positions, masses = load_bodies(path)
        np.testing.assert_array_equal(positions, self.data[:, :2])
        np.testing.assert_array_equal(masses, self.data[:, 2])

    def test_whitespace_text(self):
        path = os.path.join(self.tmpdir.name, 'bodies.txt')
        np.savetxt(path, self.data)
        positions, masses = load_bodies(path)
        np.testing.assert_array_equal(masses, self.data[:, 2])

    def test_npy(self):
        path = os.path.join(self.tmpdir.name, 'bodies.npy')
        np.save(path, self.data)
        positions, masses = load_bodies(path)
        np.testing.assert_array_equal(positions, self.data[:, :2])

    def test_wrong_columns(self):
        path = os.path.join(self.tmpdir.name, 'bad.npy')
        np.save(path, self.data[:, :2])
        with self.assertRaises(ValueError):
            load_bodies(path)

    def test_input_overrides_bodies(self):
        path = os.path.join(self.tmpdir.name, 'bodies.npy')
        np.save(path, self.data)
        args = parse_arguments(argv=['--input', path, '--bodies', '100'])
        positions, masses = bodies_from_args(args)
        self.assertEqual(len(masses), 3)


class TestPaddedExtent(unittest.TestCase):

    def test_padding(self):
        positions = np.array([[0.0, 0.0], [4.0, 2.0]])
        extent_x, extent_y = padded_extent(positions, pad_fraction=0.25)
        self.assertEqual(extent_x, (-1.0, 5.0))
        self.assertEqual(extent_y, (-1.0, 3.0))

    def test_single_point_padded(self):
        extent_x, _ = padded_extent(np.array([[2.0, 2.0]]))
        self.assertEqual(extent_x, (1.75, 2.25))


class TestMain(unittest.TestCase):
    """Test the run_field entry point end to end on a small system"""

    def test_compare_run(self):
        buf = io.StringIO()
        with redirect_stdout(buf):
            status = main(['--bodies', '30', '--resolution', '6', '--compare'])
        self.assertEqual(status, 0)
        out = buf.getvalue()
        self.assertIn("N=30 bodies", out)
        self.assertIn("Evaluated 36 grid points", out)
        self.assertIn("Accuracy vs direct summation", out)

    def test_plot_run(self):
        """Plots are written and their figures closed"""
        open_before = plt.get_fignums()
        with tempfile.TemporaryDirectory() as tmpdir:
            with redirect_stdout(io.StringIO()):
                status = main(['--bodies', '20', '--resolution', '5', '--sweep', '--plot',
                               '--backend', 'numba', '--output-dir', tmpdir])
            self.assertEqual(status, 0)
            files = sorted(os.listdir(tmpdir))
            self.assertEqual(files, [
                'gravity_20b_theta0.3_quad_numba.png',
                'potential_20b_theta0.3_quad_numba.png',
                'sweep_20b_theta0.3_quad_numba.png',
            ])
        self.assertEqual(plt.get_fignums(), open_before)


if __name__ == '__main__':
    unittest.main()
