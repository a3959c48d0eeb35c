"""
GravitySystem: build a quadtree once, evaluate potential and gravity fields many times.

Usage:
    system = GravitySystem(positions, masses)
    phi = system.evaluate_potential(query_points)
    acc = system.evaluate_gravity(query_points, use_quad=True, accuracy=0.3)
"""

import time
from typing import Optional

import numpy as np

from fastgravity.constants import GravityConstants, SolverParameters
from fastgravity.direct import DirectSolver
from fastgravity.quadtree import Body, QuadNode, tree_from_points
from fastgravity.quadtree_numba import NumbaQuadTree
from fastgravity.utils import check_body_arrays, check_pos_array, to_pos_array
from fastgravity.mat2 import Mat2
from fastgravity.vec2 import Vec2


class GravitySystem:
    """
    Gravitational field of a fixed set of planar point masses.

    The tree is built in the constructor and never modified, so a single
    system can serve any number of evaluation calls.

    Attributes:
        root: Root QuadNode (always built, used by the 'python' backend)
        backend: Requested backend ('python', 'numba', 'direct' or 'auto')
        G: Gravitational constant (negative = attractive)
    """

    def __init__(self, positions, masses, backend: str = 'python',
                 G: float = GravityConstants.G, verbose: bool = False,
                 max_depth: int = GravityConstants.MAX_TREE_DEPTH):
        """
        Build the tree over the given bodies.

        Args:
            positions: (N, 2) array-like of body positions
            masses: (N,) array-like of body masses
            backend: Evaluation backend, see SolverParameters.BACKENDS
            G: Gravitational constant
            verbose: Print build and evaluation summaries
            max_depth: Maximum quadtree depth before construction fails

        Raises:
            ValueError: on mismatched lengths, zero bodies, bad shapes or
                an unknown backend
            TreeConstructionError: if a subtree has exactly zero mass or
                the bodies cannot be separated within max_depth levels.
                Distinct bodies closer than about 2**-max_depth times the
                bounding box size are rejected this way, e.g.
                (0, 0), (1, 0), (1e-100, 0) with the default depth.
        """
        if backend not in SolverParameters.BACKENDS:
            raise ValueError(
                f"Unknown backend '{backend}', expected one of {SolverParameters.BACKENDS}")

        positions, masses, vecs = check_body_arrays(positions, masses)
        n = len(vecs)

        self.backend = backend
        self.G = G
        self.verbose = verbose
        self.positions = positions
        self.masses = masses

        t0 = time.perf_counter()
        bodies = [Body(pos, m) for pos, m in zip(vecs, masses.tolist())]
        self.root: QuadNode = tree_from_points(bodies, G, max_depth)
        build_s = time.perf_counter() - t0

        self._numba: Optional[NumbaQuadTree] = None
        self._direct: Optional[DirectSolver] = None

        if self.verbose:
            print(f"[GravitySystem] Built quadtree: {n} bodies, "
                  f"{self.root.count_nodes()} nodes, depth {self.root.depth()} "
                  f"in {build_s * 1e3:.1f} ms")
            print(f"[GravitySystem] Total mass: {self.total_mass:.4g}, "
                  f"COM: ({self.center_of_mass.x:.4g}, {self.center_of_mass.y:.4g})")

    @classmethod
    def from_params(cls, positions, masses, params: SolverParameters) -> 'GravitySystem':
        """Create a system whose backend, G and verbosity come from SolverParameters."""
        return cls(positions, masses, backend=params.backend, G=params.G, verbose=params.verbose)

    @property
    def n_bodies(self) -> int:
        return len(self.masses)

    @property
    def total_mass(self) -> float:
        return self.root.com()[0]

    @property
    def center_of_mass(self) -> Vec2:
        return self.root.com()[1]

    @property
    def quadrupole(self) -> Mat2:
        return self.root.quadrupole()

    def _select_backend(self, n_queries: int) -> str:
        if self.backend != 'auto':
            return self.backend
        if (self.n_bodies >= GravityConstants.AUTO_NUMBA_MIN_BODIES
                or n_queries >= GravityConstants.AUTO_NUMBA_MIN_QUERIES):
            return 'numba'
        return 'python'

    def _solver(self, backend: str):
        """Flattened/direct solvers are created lazily from the stored bodies."""
        if backend == 'numba':
            if self._numba is None:
                self._numba = NumbaQuadTree.from_root(self.root, G=self.G)
            return self._numba
        if self._direct is None:
            self._direct = DirectSolver(G=self.G)
            self._direct.build_tree(self.positions, self.masses)
        return self._direct

    def evaluate_potential(self, at_pos, use_quad: bool = True,
                           accuracy: float = GravityConstants.DEFAULT_ACCURACY) -> np.ndarray:
        """
        Potential at each query point.

        Args:
            at_pos: (M, 2) array-like of query points
            use_quad: Include the quadrupole correction
            accuracy: Opening angle θ (<= 0 forces exact recursion)

        Returns:
            (M,) array in the same order as at_pos
        """
        vecs = check_pos_array(at_pos)
        backend = self._select_backend(len(vecs))
        t0 = time.perf_counter()

        if backend == 'python':
            result = np.array([self.root.potential_at(v, use_quad, accuracy) for v in vecs],
                              dtype=np.float64)
        else:
            result = self._solver(backend).evaluate_potential(
                to_pos_array(vecs), use_quad, accuracy)

        if self.verbose:
            print(f"[GravitySystem] Potential at {len(vecs)} points ({backend}, θ={accuracy}) "
                  f"in {(time.perf_counter() - t0) * 1e3:.1f} ms")
        return result

    def evaluate_gravity(self, at_pos, use_quad: bool = True,
                         accuracy: float = GravityConstants.DEFAULT_ACCURACY) -> np.ndarray:
        """
        Gravitational acceleration at each query point.

        Args:
            at_pos: (M, 2) array-like of query points
            use_quad: Include the quadrupole correction
            accuracy: Opening angle θ (<= 0 forces exact recursion)

        Returns:
            (M, 2) array in the same order as at_pos
        """
        vecs = check_pos_array(at_pos)
        backend = self._select_backend(len(vecs))
        t0 = time.perf_counter()

        if backend == 'python':
            result = to_pos_array(self.root.gravity_at(v, use_quad, accuracy) for v in vecs)
        else:
            result = self._solver(backend).evaluate_gravity(
                to_pos_array(vecs), use_quad, accuracy)

        if self.verbose:
            print(f"[GravitySystem] Gravity at {len(vecs)} points ({backend}, θ={accuracy}) "
                  f"in {(time.perf_counter() - t0) * 1e3:.1f} ms")
        return result
