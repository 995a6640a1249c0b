"""
core/segment.py

One rigid body part.

A segment is a shape placed in the world, with a material, a color and a
charge. Its role in the body (sensor, limb, thruster...) is a set of
flags, queried by membership, never by subclassing.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Flag
from typing import Optional, Tuple
import numpy as np

from .charge import ChargeState, Intent, IntentKind
from .geometry import Mesh, Transform


class Flags(Flag):
    """Role tags of a segment."""
    NONE = 0
    SENSOR = 0x1
    JOINT = 0x4
    MOUTH = 0x8
    HEAD = 0x10
    LEG = 0x20
    ARM = 0x40
    TORSO = 0x100
    BELLY = 0x200
    TAIL = 0x400
    LEFT = 0x1000
    RIGHT = 0x2000
    MIDDLE = 0x4000
    THRUSTER = 0x10000
    RUDDER = 0x20000
    BRAKE = 0x40000
    ACTUATOR = 0x80000


@dataclass(frozen=True)
class Attachment:
    """Back-reference from a child to a vertex of its parent's mesh."""
    index: int                # Parent segment index
    attachment_point: int     # Vertex index on the parent's mesh


@dataclass(frozen=True)
class Material:
    density: float = 1.0
    restitution: float = 0.2
    friction: float = 0.3


@dataclass(frozen=True)
class Livery:
    albedo: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)


@dataclass(eq=False)
class Segment:
    """A rigid body part, owned by exactly one agent."""
    transform: Transform
    index: int
    mesh: Mesh
    material: Material
    livery: Livery
    state: ChargeState
    flags: Flags = Flags.NONE
    attached_to: Optional[Attachment] = None

    def new_attachment(self, attachment_point: int) -> Attachment:
        """
        Attachment to one of this segment's vertices.

        Out-of-range vertex indices are clamped to the last vertex.
        """
        count = len(self.mesh.vertices)
        point = attachment_point if attachment_point < count else count - 1
        return Attachment(index=self.index, attachment_point=point)

    def color(self) -> Tuple[float, float, float, float]:
        """Albedo brightened by charge; alpha follows density."""
        r, g, b, a = self.livery.albedo
        c = 5.0 * ((self.state.charge * 0.99) + 0.01)
        return (r * c, g * c, b * c, a * self.material.density)

    @property
    def position(self) -> np.ndarray:
        return self.transform.position

    @property
    def angle(self) -> float:
        return self.transform.angle

    @property
    def radius(self) -> float:
        return self.mesh.shape.radius

    def __repr__(self) -> str:
        return (
            f"Segment(index={self.index}, flags={self.flags}, "
            f"pos=[{self.position[0]:.2f}, {self.position[1]:.2f}], "
            f"charge={self.state.charge:.2f})"
        )
