"""
Command-line interface for evaluating Barnes-Hut gravity fields.
Provides shared argument parsing for run_field.py and scripts/compare_methods.py.
"""

import argparse
import os
from typing import List, Optional, Tuple

import numpy as np

from .analysis import accuracy_sweep, compare_to_direct, query_grid, random_bodies
from .constants import GravityConstants, SolverParameters
from .system import GravitySystem


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """
    Add arguments shared across all CLI scripts.

    Arguments added:
    - --bodies: Number of random bodies
    - --seed: Random seed
    - --box-size: Side length of the body box
    - --mass-randomize: Mass spread (0 = equal masses)
    - --input: Load bodies from a file instead of generating them
    - --accuracy: Opening angle θ
    - --no-quadrupole: Monopole-only far field
    - --backend: Evaluation backend
    - --resolution: Query grid points per axis
    - --verbose: Print build/evaluation timings
    """
    # Bodies
    parser.add_argument('--bodies', type=int, default=500,
                        help='Number of randomly placed bodies')
    parser.add_argument('--seed', type=int, default=42,
                        help='Random seed for reproducibility')
    parser.add_argument('--box-size', type=float, default=10.0,
                        help='Side length of the square box the bodies are placed in')
    parser.add_argument('--mass-randomize', type=float, default=0.5,
                        help='Body mass randomization (0.0=equal, 1.0=0 to 2x mean)')
    parser.add_argument('--input', type=str, default=None,
                        help='Text (.csv/.txt, columns x,y,mass) or .npy file with bodies. '
                             'Overrides --bodies.')

    # Solver
    parser.add_argument('--accuracy', type=float, default=GravityConstants.DEFAULT_ACCURACY,
                        help='Opening angle θ (smaller = more exact)')
    parser.add_argument('--no-quadrupole', action='store_true',
                        help='Use only the monopole term for far nodes')
    parser.add_argument('--backend', type=str, default='python',
                        choices=SolverParameters.BACKENDS,
                        help='Field evaluation backend')

    # Output
    parser.add_argument('--resolution', type=int, default=50,
                        help='Number of query grid points along each axis')
    parser.add_argument('--verbose', action='store_true',
                        help='Print tree build and evaluation timings')


def build_parser(description: str = 'Evaluate a Barnes-Hut gravity field',
                 add_output_dir: bool = True) -> argparse.ArgumentParser:
    """
    Create parser with common arguments plus the run_field options.

    Args:
        description: Help text description for the parser
        add_output_dir: If True, adds --output-dir argument
    """
    parser = argparse.ArgumentParser(
        description=description,
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    if add_output_dir:
        parser.add_argument('--output-dir', type=str, default='./results',
                            help='Output directory for plots')

    add_common_arguments(parser)

    parser.add_argument('--compare', action='store_true',
                        help='Compare against direct summation and report errors')
    parser.add_argument('--sweep', action='store_true',
                        help='Run an accuracy sweep over θ (implies --compare)')
    parser.add_argument('--plot', action='store_true',
                        help='Save potential/gravity (and sweep) plots')
    return parser


def parse_arguments(description: str = 'Evaluate a Barnes-Hut gravity field',
                    add_output_dir: bool = True,
                    argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Create parser with common arguments and parse command line.

    Args:
        description: Help text description for the parser
        add_output_dir: If True, adds --output-dir argument
        argv: Arguments to parse (default: sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    return build_parser(description, add_output_dir).parse_args(argv)


def args_to_solver_params(args: argparse.Namespace) -> SolverParameters:
    """
    Convert parsed arguments to SolverParameters object.

    Args:
        args: Parsed argument namespace from argparse

    Returns:
        SolverParameters configured from CLI args
    """
    return SolverParameters(
        accuracy=args.accuracy,
        use_quadrupole=not args.no_quadrupole,
        backend=args.backend,
        verbose=args.verbose
    )


def load_bodies(path: str) -> Tuple[np.ndarray, np.ndarray]:
    """
    Read bodies from disk.

    .npy files hold an (N, 3) array; anything else is parsed as
    comma/whitespace separated text with columns x, y, mass ('#' comments).
    """
    if path.endswith('.npy'):
        data = np.load(path)
    else:
        delimiter = ',' if path.endswith('.csv') else None
        data = np.loadtxt(path, delimiter=delimiter, ndmin=2)
    if data.ndim != 2 or data.shape[1] != 3:
        raise ValueError(f"Body file must have 3 columns (x, y, mass), got shape {data.shape}")
    return data[:, :2], data[:, 2]


def bodies_from_args(args: argparse.Namespace) -> Tuple[np.ndarray, np.ndarray]:
    if args.input:
        return load_bodies(args.input)
    return random_bodies(args.bodies, seed=args.seed, box_size=args.box_size,
                         mass_randomize=args.mass_randomize)


def padded_extent(positions: np.ndarray, pad_fraction: float = 0.25):
    """Bounding box of the bodies grown by pad_fraction of its larger side."""
    lo = positions.min(axis=0)
    hi = positions.max(axis=0)
    pad = pad_fraction * max(float(np.max(hi - lo)), 1.0)
    return (lo[0] - pad, hi[0] + pad), (lo[1] - pad, hi[1] + pad)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv=argv)
    params = args_to_solver_params(args)

    positions, masses = bodies_from_args(args)

    print(f"\n{'='*70}")
    print(f"Barnes-Hut field: N={len(masses)} bodies")
    print(f"{'='*70}")
    print(params)

    system = GravitySystem.from_params(positions, masses, params)
    print(f"  Total mass = {system.total_mass:.6g}")
    print(f"  Center of mass = ({system.center_of_mass.x:.6g}, {system.center_of_mass.y:.6g})")
    print(f"  Tree: {system.root.count_nodes()} nodes, depth {system.root.depth()}")

    extent_x, extent_y = padded_extent(positions)
    query, X, Y = query_grid(extent_x, extent_y, args.resolution)

    potential = system.evaluate_potential(query, use_quad=params.use_quadrupole,
                                          accuracy=params.accuracy)
    gravity = system.evaluate_gravity(query, use_quad=params.use_quadrupole,
                                      accuracy=params.accuracy)
    print(f"\nEvaluated {len(query)} grid points")
    print(f"  Potential range: [{np.min(potential):.6g}, {np.max(potential):.6g}]")
    print(f"  Max |a|: {np.max(np.linalg.norm(gravity, axis=1)):.6g}")

    if args.compare or args.sweep:
        print("\nAccuracy vs direct summation:")
        for quantity in ('potential', 'gravity'):
            stats = compare_to_direct(system, query, params.accuracy,
                                      use_quad=params.use_quadrupole, quantity=quantity)
            print(f"  {quantity:>9}: RMS {stats['rms_error']:.3e}, max {stats['max_error']:.3e}, "
                  f"speedup {stats['speedup']:.1f}x")

    sweep = None
    if args.sweep:
        thetas = np.linspace(0.1, 1.0, 10)
        sweep = accuracy_sweep(system, query, thetas, progress=True)
        print(f"\n  {'θ':>5} {'RMS mono':>12} {'RMS quad':>12}")
        for theta, mono, quad in zip(sweep['theta'], sweep['rms_mono'], sweep['rms_quad']):
            print(f"  {theta:5.2f} {mono:12.3e} {quad:12.3e}")

    if args.plot:
        from .visualization import (
            generate_output_filename,
            plot_accuracy_sweep,
            plot_gravity_field,
            plot_potential_map
        )
        os.makedirs(args.output_dir, exist_ok=True)
        n = len(masses)
        plot_potential_map(X, Y, potential, positions, masses,
                           save_path=generate_output_filename('potential', params, n, output_dir=args.output_dir))
        plot_gravity_field(X, Y, gravity, positions,
                           save_path=generate_output_filename('gravity', params, n, output_dir=args.output_dir))
        if sweep is not None:
            plot_accuracy_sweep(sweep,
                                save_path=generate_output_filename('sweep', params, n, output_dir=args.output_dir))

    return 0
