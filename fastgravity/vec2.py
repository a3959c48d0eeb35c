"""
Planar vector type used for positions, displacements and accelerations.

Arithmetic follows IEEE semantics: dividing by zero yields inf/nan rather
than raising, so normalizing a zero vector gives a non-finite result that the
caller is expected to guard against.
"""

import math
from typing import Iterable, Tuple


def _ieee_div(a: float, b: float) -> float:
    """a / b with inf/nan on zero divisor instead of ZeroDivisionError."""
    if b != 0.0:
        return a / b
    if a == 0.0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a) * math.copysign(1.0, b)


class Vec2:
    """Immutable 2D vector"""

    __slots__ = ('x', 'y')

    def __init__(self, x: float, y: float):
        object.__setattr__(self, 'x', float(x))
        object.__setattr__(self, 'y', float(y))

    def __setattr__(self, name, value):
        raise AttributeError("Vec2 is immutable")

    @classmethod
    def zero(cls) -> 'Vec2':
        return cls(0.0, 0.0)

    @classmethod
    def sum(cls, vectors: Iterable['Vec2']) -> 'Vec2':
        """Sum an iterable of vectors (zero vector when empty)."""
        sx = 0.0
        sy = 0.0
        for v in vectors:
            sx += v.x
            sy += v.y
        return cls(sx, sy)

    def __add__(self, other: 'Vec2') -> 'Vec2':
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Vec2') -> 'Vec2':
        return Vec2(self.x - other.x, self.y - other.y)

    def __neg__(self) -> 'Vec2':
        return Vec2(-self.x, -self.y)

    def __mul__(self, s: float) -> 'Vec2':
        return Vec2(self.x * s, self.y * s)

    __rmul__ = __mul__

    def __truediv__(self, s: float) -> 'Vec2':
        return Vec2(_ieee_div(self.x, s), _ieee_div(self.y, s))

    def __eq__(self, other):
        if not isinstance(other, Vec2):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __hash__(self):
        return hash((self.x, self.y))

    def __iter__(self):
        yield self.x
        yield self.y

    def __repr__(self):
        return f"Vec2({self.x!r}, {self.y!r})"

    def dot(self, other: 'Vec2') -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: 'Vec2') -> float:
        """z-component of the 3D cross product."""
        return self.x * other.y - self.y * other.x

    def sq_len(self) -> float:
        """Squared length"""
        return self.x * self.x + self.y * self.y

    def norm(self) -> float:
        """Vector length (Euclidean norm)."""
        return math.sqrt(self.sq_len())

    def normalized(self) -> 'Vec2':
        """Normalize vector by dividing by the norm."""
        return self / self.norm()

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def angle_of(self) -> float:
        """Angle from the positive x axis, counterclockwise. From -pi to pi."""
        return math.atan2(self.y, self.x)

    def angle_to(self, other: 'Vec2') -> float:
        """Counterclockwise from self to other. From -pi to pi."""
        mult = self.norm() * other.norm()
        cos = _ieee_div(self.dot(other), mult)
        sin = _ieee_div(self.cross(other), mult)
        return math.atan2(sin, cos)

    def rotate(self, angle: float) -> 'Vec2':
        """Rotate counterclockwise by an angle in radians."""
        cos = math.cos(angle)
        sin = math.sin(angle)
        return Vec2(self.x * cos - self.y * sin, self.y * cos + self.x * sin)
