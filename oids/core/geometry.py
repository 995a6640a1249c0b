"""
core/geometry.py

Every body begins as an outline.

Shapes are pure functions of their parameters: the same ball, box or star
always yields the same ordered ring of points. Vertices are expressed in
local coordinates, measured clockwise from +y, so vertex 0 is "up".

Inspired by:
- Superformula / asteroid-curve star outlines
- Regular polygons with edge-midpoint anchors
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
import numpy as np


def rotation(angle: float) -> np.ndarray:
    """2x2 counter-clockwise rotation matrix."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s], [s, c]])


def rotate(vector: np.ndarray, angle: float) -> np.ndarray:
    """Rotate a 2D vector by angle (radians)."""
    return rotation(angle) @ np.asarray(vector, dtype=np.float64)


def perp_dot(u: np.ndarray, v: np.ndarray) -> float:
    """2D cross product u.x*v.y - u.y*v.x."""
    return float(u[0] * v[1] - u[1] * v[0])


def origin() -> np.ndarray:
    return np.zeros(2)


@dataclass
class Transform:
    """Where a rigid part is, and which way it faces."""
    position: np.ndarray = field(default_factory=origin)
    angle: float = 0.0

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64)
        self.angle = float(self.angle)

    def copy(self) -> Transform:
        return Transform(self.position.copy(), self.angle)


class Winding(Enum):
    """Vertex ordering used when a mesh is drawn."""
    CW = "cw"
    CCW = "ccw"


# ==================== Shapes ====================

class Shape(ABC):
    """
    A geometric primitive.

    Every shape has a nominal `radius` (the farthest vertex sits at that
    distance) and can produce its outline. Invalid parameters are a
    programming error and raise ValueError at construction time.
    """

    radius: float

    @abstractmethod
    def vertices(self) -> np.ndarray:
        """Ordered (n, 2) array of boundary points."""
        pass

    @property
    def length(self) -> int:
        """Number of vertices (attachment points)."""
        return len(self.vertices())

    @property
    def mid(self) -> int:
        """Index of the vertex opposite vertex 0."""
        return self.length // 2


def _require_positive(name: str, value: float) -> None:
    if not value > 0:
        raise ValueError(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class Ball(Shape):
    """
    A disc.

    Its outline is a single representative point at (0, radius), a
    silhouette proxy rather than a tessellated circle.
    """
    radius: float

    def __post_init__(self):
        _require_positive("radius", self.radius)

    def vertices(self) -> np.ndarray:
        return np.array([[0.0, self.radius]])


@dataclass(frozen=True)
class Box(Shape):
    """An axis-aligned rectangle centered at the origin."""
    width: float
    height: float

    def __post_init__(self):
        _require_positive("width", self.width)
        _require_positive("height", self.height)

    @property
    def radius(self) -> float:
        return max(self.width, self.height) / 2

    def vertices(self) -> np.ndarray:
        w2 = self.width / 2
        h2 = self.height / 2
        # Starts at the top midpoint and walks clockwise; the last edge
        # closes back onto the first point.
        return np.array([
            [0.0, h2],
            [w2, h2],
            [w2, -h2],
            [-w2, -h2],
            [-w2, h2],
        ])


@dataclass(frozen=True)
class Star(Shape):
    """
    An n-lobed star.

    2n vertices alternate between lobe tips and notches. The radial
    profile is a smooth function of the angle, parameterized by the lobe
    count and the curvature constants a, b (c scales the lobe height and
    ratio sets the size of the inner core). The profile is normalized by
    its maximum, so the lobe tips land exactly on the nominal radius.

    Requires 0 < a < sqrt(ln 2); the defaults give a notch depth of ~0.78.
    """
    radius: float
    lobes: int
    a: float = 0.83255
    b: float = 0.14
    c: float = 1.0
    ratio: float = 0.5

    def __post_init__(self):
        _require_positive("radius", self.radius)
        if self.lobes < 2:
            raise ValueError(f"star needs at least 2 lobes, got {self.lobes}")
        _require_positive("b", self.b)
        _require_positive("c", self.c)
        if self.ratio < 0:
            raise ValueError(f"ratio must be non-negative, got {self.ratio}")
        base = 2 * np.exp(-self.a * self.a) - 1
        if not 0 < base < 1:
            raise ValueError(f"a must lie in (0, sqrt(ln 2)), got {self.a}")

    def vertices(self) -> np.ndarray:
        a, b, c, n = self.a, self.b, self.c, self.lobes
        depth = -np.log(2 * np.exp(-a * a) - 1)
        xmax = np.sqrt(depth) / b
        r0 = self.ratio * xmax
        rmax = r0 + (1 / c) * np.sqrt(depth)

        p = np.arange(2 * n) * (np.pi / n)
        s = np.sin(p * (n / 2))
        inner = -np.log(2 * np.exp(-a * a) - np.exp(-b * b * xmax * xmax * s * s))
        # Lobe tips evaluate to ln(1); rounding can push that a hair negative.
        r = (r0 + (1 / c) * np.sqrt(np.maximum(inner, 0.0))) / rmax

        return self.radius * np.column_stack([r * np.sin(p), r * np.cos(p)])


@dataclass(frozen=True)
class Triangle(Shape):
    """Three points on a circle at angles 0, alpha1 and alpha2."""
    radius: float
    alpha1: float
    alpha2: float

    def __post_init__(self):
        _require_positive("radius", self.radius)

    def vertices(self) -> np.ndarray:
        angles = np.array([0.0, self.alpha1, self.alpha2])
        return self.radius * np.column_stack([np.sin(angles), np.cos(angles)])


@dataclass(frozen=True)
class Poly(Shape):
    """
    A regular polygon.

    Carries 2n vertices, corners interleaved with edge midpoints, so that
    every side offers an attachment point. Upside down, vertex 0 is an
    edge midpoint instead of a corner.
    """
    radius: float
    sides: int
    upside_down: bool = False

    def __post_init__(self):
        _require_positive("radius", self.radius)
        if self.sides < 3:
            raise ValueError(f"polygon needs at least 3 sides, got {self.sides}")

    def vertices(self) -> np.ndarray:
        n = self.sides
        p = np.arange(2 * n) * (np.pi / n)
        apothem = np.cos(np.pi / n)
        corner = np.arange(2 * n) % 2 == (1 if self.upside_down else 0)
        r = np.where(corner, 1.0, apothem) * self.radius
        return np.column_stack([r * np.sin(p), r * np.cos(p)])


# ==================== Meshes ====================

@dataclass(frozen=True, eq=False)
class Mesh:
    """
    A shape's outline plus a winding order.

    `vertices` always keeps the shape's own order, which is what
    attachment geometry indexes into. Winding only matters to whoever
    draws the mesh, via `outline()`.
    """
    shape: Shape
    vertices: np.ndarray
    winding: Winding = Winding.CW

    @classmethod
    def from_shape(cls, shape: Shape, winding: Winding = Winding.CW) -> Mesh:
        vertices = shape.vertices()
        vertices.setflags(write=False)
        return cls(shape=shape, vertices=vertices, winding=winding)

    def outline(self) -> np.ndarray:
        """Vertices in drawing order."""
        if self.winding is Winding.CCW and len(self.vertices) > 1:
            return np.concatenate([self.vertices[:1], self.vertices[:0:-1]])
        return self.vertices.copy()

    def __len__(self) -> int:
        return len(self.vertices)
