"""
Conversions between numpy arrays and the Vec2 sequences used by the tree.
"""

from typing import Iterable, List, Tuple

import numpy as np

from fastgravity.vec2 import Vec2


def check_pos_array(arr) -> List[Vec2]:
    """
    Validate an (n, 2) position array and convert it to vectors.

    Raises:
        ValueError: if the array is not two-dimensional with two columns
    """
    arr = np.asarray(arr, dtype=np.float64)
    shape = arr.shape
    if arr.ndim != 2:
        raise ValueError(f"Array must be two-dimensional but was of shape {shape}")
    if shape[1] != 2:
        raise ValueError(f"Array must be of shape (n,2) but was {shape}")
    return [Vec2(x, y) for x, y in arr.tolist()]


def check_mass_array(masses, n: int) -> np.ndarray:
    """
    Validate a 1D mass array of length n.

    Raises:
        ValueError: on wrong dimensionality or length
    """
    masses = np.asarray(masses, dtype=np.float64)
    if masses.shape != (n,):
        raise ValueError(f"The masses array should be 1d, got shape {masses.shape}.")
    return masses


def check_body_arrays(positions, masses) -> Tuple[np.ndarray, np.ndarray, List[Vec2]]:
    """
    Validate and copy a body set given as positions and masses.

    Returns:
        (positions (N, 2), masses (N,), positions as vectors)

    Raises:
        ValueError: on mismatched lengths, zero bodies or bad shapes
    """
    positions = np.array(positions, dtype=np.float64)
    masses = np.array(masses, dtype=np.float64)
    n = positions.shape[0] if positions.ndim > 0 else 0
    n_masses = masses.shape[0] if masses.ndim > 0 else 0
    if n != n_masses:
        raise ValueError(
            f"The sizes of the positions and masses arrays should be equal; were {n} and {masses.size}")
    if n == 0:
        raise ValueError("The number of points can't be zero.")
    masses = check_mass_array(masses, n)
    vecs = check_pos_array(positions)
    return positions, masses, vecs


def to_pos_array(positions: Iterable[Vec2]) -> np.ndarray:
    """Stack vectors into an (n, 2) float64 array."""
    arr = np.array([v.as_tuple() for v in positions], dtype=np.float64)
    return arr.reshape(-1, 2)
