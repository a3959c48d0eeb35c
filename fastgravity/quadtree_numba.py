"""
Numba JIT-compiled Barnes-Hut evaluation over a flattened quadtree.

The recursive object tree from fastgravity.quadtree is copied into flat
per-node arrays (an index arena, root at index 0, children as indices with
-1 for an empty quadrant). Query points are then evaluated in parallel with
prange; each query walks the read-only arrays with its own explicit stack,
applying the same per-node rules as the recursive evaluator.

Results agree with the recursive evaluator up to floating-point summation
order.
"""

from typing import NamedTuple

import numpy as np
from numba import jit, prange, float64, int64

from fastgravity.constants import GravityConstants
from fastgravity.quadtree import Body, QuadInterior, QuadNode, tree_from_points
from fastgravity.utils import check_body_arrays


class FlatQuadTree(NamedTuple):
    """
    Quadtree stored as parallel arrays.

    Attributes:
        node_mass: (n,) total mass (body mass for leaves)
        node_com: (n, 2) center of mass (body position for leaves)
        node_quad: (n, 4) quadrupole components xx, xy, yx, yy (zero for leaves)
        node_width: (n,) box diagonal (zero for leaves)
        node_is_leaf: (n,) True for single-body nodes
        node_children: (n, 4) child indices sw, se, nw, ne (-1 if absent)
        depth: depth of the deepest leaf
    """
    node_mass: np.ndarray
    node_com: np.ndarray
    node_quad: np.ndarray
    node_width: np.ndarray
    node_is_leaf: np.ndarray
    node_children: np.ndarray
    depth: int

    @property
    def n_nodes(self) -> int:
        return len(self.node_mass)

    @property
    def stack_size(self) -> int:
        # A pop pushes at most 4 children, so the stack never exceeds 3 per level + 1
        return 3 * self.depth + 4


def flatten_tree(root: QuadNode) -> FlatQuadTree:
    """Copy a recursive quadtree into a FlatQuadTree (pre-order numbering)."""
    n_nodes = root.count_nodes()

    node_mass = np.zeros(n_nodes, dtype=np.float64)
    node_com = np.zeros((n_nodes, 2), dtype=np.float64)
    node_quad = np.zeros((n_nodes, 4), dtype=np.float64)
    node_width = np.zeros(n_nodes, dtype=np.float64)
    node_is_leaf = np.zeros(n_nodes, dtype=np.bool_)
    node_children = np.full((n_nodes, 4), -1, dtype=np.int64)

    max_depth = 0
    next_idx = 1
    pending = [(root, 0, 0)]  # (node, index, depth)
    while pending:
        node, idx, depth = pending.pop()
        max_depth = max(max_depth, depth)

        mass, com = node.com()
        node_mass[idx] = mass
        node_com[idx] = com.as_tuple()

        if isinstance(node, QuadInterior):
            node_quad[idx] = node.quadrupole().as_tuple()
            node_width[idx] = node.width()
            for slot, child in enumerate(node.children):
                if child is None:
                    continue
                node_children[idx, slot] = next_idx
                pending.append((child, next_idx, depth + 1))
                next_idx += 1
        else:
            node_is_leaf[idx] = True

    return FlatQuadTree(node_mass, node_com, node_quad, node_width,
                        node_is_leaf, node_children, max_depth)


@jit(nopython=True, parallel=True, cache=True)
def potential_flat(query, use_quad, accuracy, G,
                   node_mass, node_com, node_quad, node_width,
                   node_is_leaf, node_children, stack_size):
    """
    Potential at each query point by Barnes-Hut traversal.

    Args:
        query: (M, 2) evaluation points
        use_quad: include quadrupole correction for accepted nodes
        accuracy: opening angle theta
        G: gravitational constant
        node_*: arrays from flatten_tree()
        stack_size: traversal stack capacity (FlatQuadTree.stack_size)

    Returns:
        (M,) potentials
    """
    M = query.shape[0]
    result = np.zeros(M, dtype=float64)

    for i in prange(M):
        px = query[i, 0]
        py = query[i, 1]
        stack = np.empty(stack_size, dtype=int64)
        stack[0] = 0
        top = 1
        total = 0.0

        while top > 0:
            top -= 1
            node = stack[top]

            rx = px - node_com[node, 0]
            ry = py - node_com[node, 1]
            dist = np.sqrt(rx * rx + ry * ry)

            if node_is_leaf[node]:
                if dist > 0.0:
                    total += G * node_mass[node] / dist
            elif dist > 0.0 and node_width[node] / dist < accuracy:
                term = node_mass[node] / dist
                if use_quad:
                    ex = rx / dist
                    ey = ry / dist
                    qform = (node_quad[node, 0] * ex * ex + node_quad[node, 3] * ey * ey
                             + (node_quad[node, 1] + node_quad[node, 2]) * ex * ey)
                    term += qform / (2.0 * dist * dist * dist)
                total += G * term
            else:
                for c in range(4):
                    child = node_children[node, c]
                    if child >= 0:
                        stack[top] = child
                        top += 1

        result[i] = total

    return result


@jit(nopython=True, parallel=True, cache=True)
def gravity_flat(query, use_quad, accuracy, G,
                 node_mass, node_com, node_quad, node_width,
                 node_is_leaf, node_children, stack_size):
    """
    Gravitational acceleration at each query point by Barnes-Hut traversal.

    Same arguments as potential_flat().

    Returns:
        (M, 2) accelerations
    """
    M = query.shape[0]
    result = np.zeros((M, 2), dtype=float64)

    for i in prange(M):
        px = query[i, 0]
        py = query[i, 1]
        stack = np.empty(stack_size, dtype=int64)
        stack[0] = 0
        top = 1
        ax = 0.0
        ay = 0.0

        while top > 0:
            top -= 1
            node = stack[top]

            rx = px - node_com[node, 0]
            ry = py - node_com[node, 1]
            dist = np.sqrt(rx * rx + ry * ry)

            if node_is_leaf[node]:
                if dist > 0.0:
                    f = G * node_mass[node] / (dist * dist * dist)
                    ax += f * rx
                    ay += f * ry
            elif dist > 0.0 and node_width[node] / dist < accuracy:
                ex = rx / dist
                ey = ry / dist
                mono = node_mass[node] / (dist * dist)
                gx = ex * mono
                gy = ey * mono
                if use_quad:
                    qxx = node_quad[node, 0]
                    qxy = node_quad[node, 1]
                    qyx = node_quad[node, 2]
                    qyy = node_quad[node, 3]
                    dist4 = dist * dist * dist * dist
                    qform = qxx * ex * ex + qyy * ey * ey + (qxy + qyx) * ex * ey
                    gx += ex * (qform * 2.5 / dist4) - (qxx * ex + qxy * ey) / dist4
                    gy += ey * (qform * 2.5 / dist4) - (qyx * ex + qyy * ey) / dist4
                ax += G * gx
                ay += G * gy
            else:
                for c in range(4):
                    child = node_children[node, c]
                    if child >= 0:
                        stack[top] = child
                        top += 1

        result[i, 0] = ax
        result[i, 1] = ay

    return result


class NumbaQuadTree:
    """
    Barnes-Hut quadtree solver evaluated with Numba JIT kernels.

    Construction reuses the recursive builder, then flattens the result.
    Query batches are spread across threads with prange.
    """

    def __init__(self, G: float = GravityConstants.G,
                 max_depth: int = GravityConstants.MAX_TREE_DEPTH):
        self.G = G
        self.max_depth = max_depth
        self.root = None
        self._tree = None

    def build_tree(self, positions: np.ndarray, masses: np.ndarray) -> None:
        """
        Build the quadtree from (N, 2) positions and (N,) masses.

        Raises:
            ValueError: on mismatched lengths, zero bodies or bad shapes
        """
        _, masses, vecs = check_body_arrays(positions, masses)
        bodies = [Body(v, m) for v, m in zip(vecs, masses.tolist())]
        self.root = tree_from_points(bodies, self.G, self.max_depth)
        self._tree = flatten_tree(self.root)

    @classmethod
    def from_root(cls, root: QuadNode, G: float = GravityConstants.G) -> "NumbaQuadTree":
        """Wrap an already built recursive tree."""
        tree = cls(G=G)
        tree.root = root
        tree._tree = flatten_tree(root)
        return tree

    @property
    def flat(self) -> FlatQuadTree:
        if self._tree is None:
            raise RuntimeError("build_tree() must be called before evaluating")
        return self._tree

    def _kernel_args(self):
        t = self.flat
        return (t.node_mass, t.node_com, t.node_quad, t.node_width,
                t.node_is_leaf, t.node_children, t.stack_size)

    def evaluate_potential(self, query: np.ndarray, use_quad: bool = True,
                           accuracy: float = GravityConstants.DEFAULT_ACCURACY) -> np.ndarray:
        """Potential at (M, 2) query points, shape (M,)."""
        query = np.ascontiguousarray(query, dtype=np.float64).reshape(-1, 2)
        return potential_flat(query, bool(use_quad), float(accuracy), float(self.G),
                              *self._kernel_args())

    def evaluate_gravity(self, query: np.ndarray, use_quad: bool = True,
                         accuracy: float = GravityConstants.DEFAULT_ACCURACY) -> np.ndarray:
        """Acceleration at (M, 2) query points, shape (M, 2)."""
        query = np.ascontiguousarray(query, dtype=np.float64).reshape(-1, 2)
        return gravity_flat(query, bool(use_quad), float(accuracy), float(self.G),
                            *self._kernel_args())
