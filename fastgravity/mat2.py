"""
2x2 tensors for quadrupole moments.

Every quadrupole built here is symmetric and traceless: it is assembled from
quadrupole_tensor() contributions and sums/scalings of those.
"""

from fastgravity.vec2 import Vec2


class Mat2:
    """2x2 matrix with components xx, xy, yx, yy"""

    __slots__ = ('xx', 'xy', 'yx', 'yy')

    def __init__(self, xx: float = 0.0, xy: float = 0.0, yx: float = 0.0, yy: float = 0.0):
        self.xx = xx
        self.xy = xy
        self.yx = yx
        self.yy = yy

    def __mul__(self, s: float) -> 'Mat2':
        return Mat2(self.xx * s, self.xy * s, self.yx * s, self.yy * s)

    __rmul__ = __mul__

    def __add__(self, other: 'Mat2') -> 'Mat2':
        return Mat2(self.xx + other.xx, self.xy + other.xy,
                    self.yx + other.yx, self.yy + other.yy)

    def __eq__(self, other):
        if not isinstance(other, Mat2):
            return NotImplemented
        return (self.xx, self.xy, self.yx, self.yy) == (other.xx, other.xy, other.yx, other.yy)

    def __repr__(self):
        return f"Mat2(xx={self.xx!r}, xy={self.xy!r}, yx={self.yx!r}, yy={self.yy!r})"

    def eval_quadratic(self, v: Vec2) -> float:
        """Evaluates v^T @ self @ v"""
        x, y = v.x, v.y
        return self.xx * x * x + self.yy * y * y + (self.xy + self.yx) * x * y

    def matmul(self, v: Vec2) -> Vec2:
        x, y = v.x, v.y
        return Vec2(self.xx * x + self.xy * y, self.yx * x + self.yy * y)

    def trace(self) -> float:
        return self.xx + self.yy

    def as_tuple(self):
        return (self.xx, self.xy, self.yx, self.yy)


def quadrupole_tensor(r: Vec2) -> Mat2:
    """
    Computes Q_ab = 2 r_a r_b - δ_ab r².

    Traceless and symmetric, so only two independent components.
    """
    diag = r.x * r.x - r.y * r.y
    cross = 2.0 * r.x * r.y
    return Mat2(xx=diag, xy=cross, yx=cross, yy=-diag)
