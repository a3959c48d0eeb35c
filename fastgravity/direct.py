"""
Direct O(N·M) field evaluation by exact pairwise summation.

Reference solver for validating the Barnes-Hut approximation. Query points
that coincide with a body get no contribution from that body.
"""

import numpy as np
from numba import jit, prange, float64

from fastgravity.constants import GravityConstants
from fastgravity.utils import check_body_arrays


def direct_potential(positions: np.ndarray, masses: np.ndarray, query: np.ndarray,
                     G: float = GravityConstants.G) -> np.ndarray:
    """
    Vectorized exact potential.

    Args:
        positions: (N, 2) body positions
        masses: (N,) body masses
        query: (M, 2) evaluation points
        G: gravitational constant

    Returns:
        (M,) potentials
    """
    # r_vec[i, j] = query[i] - positions[j], shape (M, N, 2)
    r_vec = query[:, np.newaxis, :] - positions[np.newaxis, :, :]
    r = np.sqrt(np.sum(r_vec**2, axis=2))

    with np.errstate(divide='ignore'):
        inv_r = np.where(r > 0, 1.0 / r, 0.0)

    return G * np.sum(masses[np.newaxis, :] * inv_r, axis=1)


def direct_gravity(positions: np.ndarray, masses: np.ndarray, query: np.ndarray,
                   G: float = GravityConstants.G) -> np.ndarray:
    """
    Vectorized exact acceleration.

    Returns:
        (M, 2) accelerations
    """
    r_vec = query[:, np.newaxis, :] - positions[np.newaxis, :, :]
    r = np.sqrt(np.sum(r_vec**2, axis=2))

    with np.errstate(divide='ignore'):
        inv_r3 = np.where(r > 0, 1.0 / r**3, 0.0)

    # a = G m r_vec / r³, summed over bodies
    weights = G * masses[np.newaxis, :] * inv_r3
    return np.sum(weights[:, :, np.newaxis] * r_vec, axis=1)


@jit(nopython=True, parallel=True, cache=True)
def direct_potential_numba(positions, masses, query, G):
    """JIT-compiled exact potential, same contract as direct_potential()."""
    M = query.shape[0]
    N = positions.shape[0]
    result = np.zeros(M, dtype=float64)

    for i in prange(M):
        total = 0.0
        for j in range(N):
            dx = query[i, 0] - positions[j, 0]
            dy = query[i, 1] - positions[j, 1]
            r = np.sqrt(dx * dx + dy * dy)
            if r > 0.0:
                total += G * masses[j] / r
        result[i] = total

    return result


@jit(nopython=True, parallel=True, cache=True)
def direct_gravity_numba(positions, masses, query, G):
    """JIT-compiled exact acceleration, same contract as direct_gravity()."""
    M = query.shape[0]
    N = positions.shape[0]
    result = np.zeros((M, 2), dtype=float64)

    for i in prange(M):
        ax = 0.0
        ay = 0.0
        for j in range(N):
            dx = query[i, 0] - positions[j, 0]
            dy = query[i, 1] - positions[j, 1]
            r = np.sqrt(dx * dx + dy * dy)
            if r > 0.0:
                f = G * masses[j] / (r * r * r)
                ax += f * dx
                ay += f * dy
        result[i, 0] = ax
        result[i, 1] = ay

    return result


class DirectSolver:
    """
    Exact pairwise solver with the same interface as the tree solvers.

    use_quad and accuracy are accepted and ignored.
    """

    def __init__(self, G: float = GravityConstants.G, use_numba: bool = False):
        self.G = G
        self.use_numba = use_numba
        self.positions = None
        self.masses = None

    def build_tree(self, positions: np.ndarray, masses: np.ndarray) -> None:
        """
        Store positions and masses (API compatible with tree solvers).

        Raises:
            ValueError: on mismatched lengths, zero bodies or bad shapes
        """
        positions, masses, _ = check_body_arrays(positions, masses)
        self.positions = np.ascontiguousarray(positions)
        self.masses = np.ascontiguousarray(masses)

    def evaluate_potential(self, query: np.ndarray, use_quad: bool = True,
                           accuracy: float = GravityConstants.DEFAULT_ACCURACY) -> np.ndarray:
        query = np.ascontiguousarray(query, dtype=np.float64).reshape(-1, 2)
        if self.use_numba:
            return direct_potential_numba(self.positions, self.masses, query, float(self.G))
        return direct_potential(self.positions, self.masses, query, self.G)

    def evaluate_gravity(self, query: np.ndarray, use_quad: bool = True,
                         accuracy: float = GravityConstants.DEFAULT_ACCURACY) -> np.ndarray:
        query = np.ascontiguousarray(query, dtype=np.float64).reshape(-1, 2)
        if self.use_numba:
            return direct_gravity_numba(self.positions, self.masses, query, float(self.G))
        return direct_gravity(self.positions, self.masses, query, self.G)
