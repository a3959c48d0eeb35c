"""
Accuracy Analysis Utilities

Shared functions for:
- Generating random body configurations and query grids
- Comparing Barnes-Hut fields against direct summation
- Sweeping the opening angle theta
"""

import time
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from fastgravity.direct import direct_gravity, direct_potential
from fastgravity.system import GravitySystem


def random_bodies(n_bodies: int, seed: int = 42, box_size: float = 10.0,
                  mass_randomize: float = 0.5, total_mass: Optional[float] = None
                  ) -> Tuple[np.ndarray, np.ndarray]:
    """
    Uniformly distributed bodies in a square box centred on the origin.

    Args:
        n_bodies: Number of bodies
        seed: Random seed
        box_size: Side length of the box
        mass_randomize: 0.0 = equal masses, 1.0 = masses from 0 to 2x mean
        total_mass: Total mass (default: n_bodies)

    Returns:
        (positions (N, 2), masses (N,))
    """
    rng = np.random.default_rng(seed)
    positions = rng.uniform(-box_size / 2, box_size / 2, size=(n_bodies, 2))

    mass_randomize = float(np.clip(mass_randomize, 0.0, 1.0))
    weights = 1.0 + mass_randomize * rng.uniform(-1.0, 1.0, size=n_bodies)
    if total_mass is None:
        total_mass = float(n_bodies)
    masses = weights / np.sum(weights) * total_mass
    return positions, masses


def query_grid(extent_x: Tuple[float, float], extent_y: Tuple[float, float],
               resolution: int = 50) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Regular grid of query points.

    Returns:
        (points (res*res, 2), X (res, res), Y (res, res)) where X, Y are meshgrid arrays
    """
    xs = np.linspace(extent_x[0], extent_x[1], resolution)
    ys = np.linspace(extent_y[0], extent_y[1], resolution)
    X, Y = np.meshgrid(xs, ys)
    points = np.column_stack([X.ravel(), Y.ravel()])
    return points, X, Y


def relative_errors(approx: np.ndarray, exact: np.ndarray, floor: float = 1e-300) -> np.ndarray:
    """
    Per-point relative error |approx - exact| / |exact|.

    Works for potentials (M,) and accelerations (M, 2). Points where the
    exact magnitude is at most floor are skipped.
    """
    approx = np.asarray(approx, dtype=np.float64)
    exact = np.asarray(exact, dtype=np.float64)
    if exact.ndim == 1:
        diff = np.abs(approx - exact)
        mag = np.abs(exact)
    else:
        diff = np.linalg.norm(approx - exact, axis=1)
        mag = np.linalg.norm(exact, axis=1)
    mask = mag > floor
    return diff[mask] / mag[mask]


def error_statistics(errors: np.ndarray) -> Dict[str, float]:
    """Mean, median, RMS and max of an error array (all zero if empty)."""
    if len(errors) == 0:
        return {'mean_error': 0.0, 'median_error': 0.0, 'rms_error': 0.0, 'max_error': 0.0}
    return {
        'mean_error': float(np.mean(errors)),
        'median_error': float(np.median(errors)),
        'rms_error': float(np.sqrt(np.mean(errors**2))),
        'max_error': float(np.max(errors)),
    }


def compare_to_direct(system: GravitySystem, query: np.ndarray, accuracy: float,
                      use_quad: bool = True, quantity: str = 'gravity') -> Dict:
    """
    Compare a Barnes-Hut field with exact pairwise summation.

    Args:
        system: Built GravitySystem
        query: (M, 2) query points
        accuracy: Opening angle theta
        use_quad: Include quadrupole correction
        quantity: 'gravity' or 'potential'

    Returns:
        Dictionary with error statistics, timings and the raw arrays
    """
    if quantity not in ('gravity', 'potential'):
        raise ValueError(f"quantity must be 'gravity' or 'potential', got '{quantity}'")
    query = np.asarray(query, dtype=np.float64)

    t0 = time.perf_counter()
    if quantity == 'gravity':
        exact = direct_gravity(system.positions, system.masses, query, system.G)
    else:
        exact = direct_potential(system.positions, system.masses, query, system.G)
    t_direct = time.perf_counter() - t0

    t0 = time.perf_counter()
    if quantity == 'gravity':
        approx = system.evaluate_gravity(query, use_quad=use_quad, accuracy=accuracy)
    else:
        approx = system.evaluate_potential(query, use_quad=use_quad, accuracy=accuracy)
    t_tree = time.perf_counter() - t0

    errors = relative_errors(approx, exact)
    result = {
        'quantity': quantity,
        'theta': accuracy,
        'use_quad': use_quad,
        'errors': errors,
        'exact': exact,
        'approx': approx,
        't_direct': t_direct,
        't_tree': t_tree,
        'speedup': t_direct / t_tree if t_tree > 0 else float('inf'),
    }
    result.update(error_statistics(errors))
    return result


def accuracy_sweep(system: GravitySystem, query: np.ndarray, thetas: Sequence[float],
                   quantity: str = 'gravity', progress: bool = False) -> Dict[str, np.ndarray]:
    """
    RMS and max relative error versus theta, with and without quadrupole.

    Returns:
        Dictionary of arrays keyed 'theta', 'rms_mono', 'max_mono',
        'rms_quad', 'max_quad'
    """
    thetas = np.asarray(thetas, dtype=np.float64)
    rms_mono = np.zeros(len(thetas))
    max_mono = np.zeros(len(thetas))
    rms_quad = np.zeros(len(thetas))
    max_quad = np.zeros(len(thetas))

    for i, theta in enumerate(tqdm(thetas, desc="θ sweep", disable=not progress)):
        mono = compare_to_direct(system, query, theta, use_quad=False, quantity=quantity)
        quad = compare_to_direct(system, query, theta, use_quad=True, quantity=quantity)
        rms_mono[i] = mono['rms_error']
        max_mono[i] = mono['max_error']
        rms_quad[i] = quad['rms_error']
        max_quad[i] = quad['max_error']

    return {
        'theta': thetas,
        'rms_mono': rms_mono,
        'max_mono': max_mono,
        'rms_quad': rms_quad,
        'max_quad': max_quad,
    }
