"""
Barnes-Hut quadtree with quadrupole moments for planar gravity.

The tree is built once from the full body set by recursively splitting the
bounding box at its midpoint. Each interior node stores the total mass,
center of mass and quadrupole tensor of its subtree. Evaluation walks the
tree from the root: a node whose width divided by its distance to the query
point is below the opening angle theta is replaced by its multipole
expansion, otherwise its children are summed exactly.

Key idea: far from a cluster, the cluster looks like a single mass at its
center of mass plus a small second-order shape correction (the quadrupole).
"""

import math
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from fastgravity.constants import GravityConstants
from fastgravity.mat2 import Mat2, quadrupole_tensor
from fastgravity.vec2 import Vec2

Extent = Tuple[float, float]


class TreeConstructionError(RuntimeError):
    """Raised when the body set cannot be turned into a valid quadtree."""


class Body:
    """A point mass. Never mutated after construction."""

    __slots__ = ('pos', 'mass')

    def __init__(self, pos: Vec2, mass: float):
        self.pos = pos
        self.mass = float(mass)

    def __repr__(self):
        return f"Body(pos={self.pos!r}, mass={self.mass!r})"


class QuadLeaf:
    """Tree node holding exactly one body."""

    __slots__ = ('body', 'G')

    def __init__(self, body: Body, G: float = GravityConstants.G):
        self.body = body
        self.G = G

    def com(self) -> Tuple[float, Vec2]:
        return self.body.mass, self.body.pos

    def quadrupole(self) -> Mat2:
        return Mat2()

    def potential_at(self, pos: Vec2, use_quad: bool, accuracy: float) -> float:
        dist = (pos - self.body.pos).norm()
        if dist == 0.0:
            return 0.0
        return self.G * self.body.mass / dist

    def gravity_at(self, pos: Vec2, use_quad: bool, accuracy: float) -> Vec2:
        r = pos - self.body.pos
        dist = r.norm()
        if dist == 0.0:
            return Vec2.zero()
        e = r / dist
        return e * (self.G * self.body.mass / (dist * dist))

    def depth(self) -> int:
        return 0

    def count_nodes(self) -> int:
        return 1

    def iter_bodies(self) -> Iterator[Body]:
        yield self.body


class QuadInterior:
    """
    Tree node aggregating up to four child quadrants.

    Attributes:
        children: [sw, se, nw, ne], None where the quadrant holds no body
        total_mass: Sum of descendant masses (never exactly zero)
        center_of_mass: Mass-weighted mean position of descendants
        quadrupole_moment: Traceless symmetric tensor about center_of_mass
        extent_x, extent_y: (min, max) of this node's box on each axis
    """

    __slots__ = ('children', 'total_mass', 'center_of_mass', 'quadrupole_moment',
                 'extent_x', 'extent_y', 'G', '_width')

    def __init__(self, sw: Optional['QuadNode'], se: Optional['QuadNode'],
                 nw: Optional['QuadNode'], ne: Optional['QuadNode'],
                 extent_x: Extent, extent_y: Extent, G: float = GravityConstants.G):
        self.children: List[Optional[QuadNode]] = [sw, se, nw, ne]
        self.extent_x = extent_x
        self.extent_y = extent_y
        self.G = G

        present = [c for c in self.children if c is not None]

        mass = 0.0
        weighted = Vec2.zero()
        for child in present:
            child_m, child_com = child.com()
            mass += child_m
            weighted = weighted + child_com * child_m
        if mass == 0.0:
            raise TreeConstructionError(
                f"Total mass of the bodies in x={extent_x}, y={extent_y} is exactly zero")
        com = weighted / mass

        # Parallel-axis shift of each child's moment to this node's COM
        quadrupole = Mat2()
        for child in present:
            child_m, child_com = child.com()
            quadrupole = quadrupole + child.quadrupole() + quadrupole_tensor(com - child_com) * child_m

        self.total_mass = mass
        self.center_of_mass = com
        self.quadrupole_moment = quadrupole
        self._width = math.hypot(extent_x[1] - extent_x[0], extent_y[1] - extent_y[0])

    def com(self) -> Tuple[float, Vec2]:
        return self.total_mass, self.center_of_mass

    def quadrupole(self) -> Mat2:
        return self.quadrupole_moment

    def width(self) -> float:
        """Diagonal of the node's box, used as its size in the opening test."""
        return self._width

    def some_children(self) -> Iterator['QuadNode']:
        return (c for c in self.children if c is not None)

    def potential_at(self, pos: Vec2, use_quad: bool, accuracy: float) -> float:
        mass, com = self.com()
        r = pos - com
        dist = r.norm()
        if dist > 0.0 and self.width() / dist < accuracy:
            total = mass / dist
            if use_quad:
                e = r / dist
                total += self.quadrupole_moment.eval_quadratic(e) / (2.0 * dist * dist * dist)
            return self.G * total

        # exact calculation
        return sum(c.potential_at(pos, use_quad, accuracy) for c in self.some_children())

    def gravity_at(self, pos: Vec2, use_quad: bool, accuracy: float) -> Vec2:
        mass, com = self.com()
        r = pos - com
        dist = r.norm()
        if dist > 0.0 and self.width() / dist < accuracy:
            e = r / dist
            total = e * (mass / (dist * dist))
            if use_quad:
                dist4 = dist * dist * dist * dist
                q = self.quadrupole_moment
                total = total + e * (q.eval_quadratic(e) * 2.5 / dist4) - q.matmul(e) / dist4
            return total * self.G

        # exact calculation
        return Vec2.sum(c.gravity_at(pos, use_quad, accuracy) for c in self.some_children())

    def depth(self) -> int:
        return 1 + max(c.depth() for c in self.some_children())

    def count_nodes(self) -> int:
        return 1 + sum(c.count_nodes() for c in self.some_children())

    def iter_bodies(self) -> Iterator[Body]:
        for child in self.some_children():
            yield from child.iter_bodies()


QuadNode = Union[QuadLeaf, QuadInterior]


def make_node(pts: Sequence[Body], extent_x: Extent, extent_y: Extent,
              G: float = GravityConstants.G, depth: int = 0,
              max_depth: int = GravityConstants.MAX_TREE_DEPTH) -> Optional[QuadNode]:
    """
    Recursively build the subtree for the bodies inside a box.

    Each child covers exactly one quadrant of this box, wherever its bodies
    actually lie.

    Args:
        pts: Bodies inside the box
        extent_x: (left, right) of the box
        extent_y: (bottom, top) of the box
        G: Gravitational constant stored on every node
        depth: Current recursion depth
        max_depth: Depth at which construction gives up

    Returns:
        None for no bodies, a QuadLeaf for one, otherwise a QuadInterior
    """
    if not pts:
        return None
    if len(pts) == 1:
        return QuadLeaf(pts[0], G)
    if depth >= max_depth:
        raise TreeConstructionError(
            f"Quadtree depth exceeded {max_depth} with {len(pts)} bodies left in "
            f"x={extent_x}, y={extent_y}; bodies are too close to separate")

    l, r = extent_x
    b, t = extent_y
    div_x = (l + r) / 2.0
    div_y = (b + t) / 2.0

    quadrants: Dict[Tuple[bool, bool], List[Body]] = {
        (False, False): [], (True, False): [], (False, True): [], (True, True): []
    }
    for body in pts:
        quadrants[(body.pos.x >= div_x, body.pos.y >= div_y)].append(body)

    def child(east: bool, north: bool) -> Optional[QuadNode]:
        cx = (div_x, r) if east else (l, div_x)
        cy = (div_y, t) if north else (b, div_y)
        return make_node(quadrants[(east, north)], cx, cy, G, depth + 1, max_depth)

    return QuadInterior(
        child(False, False), child(True, False), child(False, True), child(True, True),
        extent_x, extent_y, G
    )


def merge_coincident_bodies(pts: Sequence[Body]) -> List[Body]:
    """
    Combine bodies at exactly the same position into one body.

    Subdivision can never separate coincident bodies, and the field of
    several masses at one point equals that of their summed mass, so the
    merged set gives the same field everywhere. First-seen order is kept.
    """
    merged: Dict[Tuple[float, float], float] = {}
    for body in pts:
        key = body.pos.as_tuple()
        merged[key] = merged.get(key, 0.0) + body.mass
    if len(merged) == len(pts):
        return list(pts)
    return [Body(Vec2(x, y), m) for (x, y), m in merged.items()]


def tree_from_points(pts: Sequence[Body], G: float = GravityConstants.G,
                     max_depth: int = GravityConstants.MAX_TREE_DEPTH) -> QuadNode:
    """
    Build the quadtree over a non-empty body set.

    The root box is the min/max bounding box of the bodies.

    Raises:
        ValueError: if pts is empty
        TreeConstructionError: if some subtree has zero total mass or the
            bodies cannot be separated within max_depth levels
    """
    if len(pts) == 0:
        raise ValueError("Cannot build a quadtree from zero bodies")

    pts = merge_coincident_bodies(pts)
    xs = [p.pos.x for p in pts]
    ys = [p.pos.y for p in pts]
    extent_x = (min(xs), max(xs))
    extent_y = (min(ys), max(ys))
    return make_node(pts, extent_x, extent_y, G, 0, max_depth)
