"""
core/agent.py

A creature is a tree of parts.

The builder grows the tree one segment at a time. Every child hangs off
a vertex of a parent that already exists, so indices are topologically
ordered and the tree can never loop back on itself. Once built, the
body plan is frozen: segments change state, never number.

Inspired by:
- L-systems and procedural creature generators
- Karl Sims' evolved virtual creatures
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple
import numpy as np

from .charge import ChargeState
from .geometry import Mesh, Shape, Transform, Winding, rotate
from .personality import Personality
from .segment import Flags, Livery, Material, Segment


class AgentType(Enum):
    """Category of an agent; each category lives in its own flock."""
    MINION = "minion"
    RESOURCE = "resource"
    PLAYER = "player"
    ENEMY = "enemy"
    PROP = "prop"


@dataclass(frozen=True)
class AgentRef:
    """
    A handle to an agent (and optionally one of its segments).

    Identities are only unique within a flock, so the type travels with
    the id.
    """
    agent_type: AgentType
    agent_id: int
    segment_index: Optional[int] = None


@dataclass
class AgentState:
    """
    Agent-level state that is not part of any one segment.

    target is the id of the resource being chased, if any;
    target_position is where the agent is heading either way.
    """
    target_position: np.ndarray
    target: Optional[int] = None
    active: bool = True
    age_seconds: float = 0.0

    def __post_init__(self):
        self.target_position = np.asarray(self.target_position, dtype=np.float64)

    def retarget(self, target: Optional[int], position: np.ndarray) -> None:
        self.target = target
        self.target_position = np.asarray(position, dtype=np.float64).copy()

    def is_active(self) -> bool:
        return self.active


class Agent:
    """
    An identity plus an ordered, fixed-size tuple of segments.

    Segment 0 is the structural root; the agent's transform is the root's.
    """

    def __init__(
        self,
        agent_id: int,
        segments: Tuple[Segment, ...],
        agent_type: AgentType = AgentType.MINION,
        personality: Optional[Personality] = None,
        state: Optional[AgentState] = None,
    ):
        if not segments:
            raise ValueError("an agent needs at least one segment")
        self.id = agent_id
        self.agent_type = agent_type
        self._segments = tuple(segments)
        self.personality = personality
        self.state = state or AgentState(target_position=self._segments[0].position.copy())

    @property
    def segments(self) -> Tuple[Segment, ...]:
        return self._segments

    def segment(self, index: int) -> Optional[Segment]:
        if 0 <= index < len(self._segments):
            return self._segments[index]
        return None

    def first_segment(self, flags: Flags) -> Optional[Segment]:
        """First segment carrying all of `flags`."""
        for segment in self._segments:
            if flags in segment.flags:
                return segment
        return None

    @property
    def transform(self) -> Transform:
        return self._segments[0].transform

    @property
    def position(self) -> np.ndarray:
        return self._segments[0].position

    @property
    def ref(self) -> AgentRef:
        return AgentRef(self.agent_type, self.id)

    def update(self, dt: float) -> None:
        """Integrate every segment's charge."""
        self.state.age_seconds += dt
        for segment in self._segments:
            segment.state.update(dt)

    def __len__(self) -> int:
        return len(self._segments)

    def __repr__(self) -> str:
        return (
            f"Agent(id={self.id}, type={self.agent_type.value}, "
            f"segments={len(self._segments)}, "
            f"pos=[{self.position[0]:.2f}, {self.position[1]:.2f}])"
        )


class AgentBuilder:
    """
    Grows a segment tree, then freezes it into an Agent.

    Calls chain: builder.start(...).add(...).add_left(...).build().
    `index()` returns the last segment appended, so a branch can be
    attached to it later.
    """

    def __init__(
        self,
        agent_id: int,
        material: Optional[Material] = None,
        livery: Optional[Livery] = None,
        state: Optional[ChargeState] = None,
        agent_type: AgentType = AgentType.MINION,
        personality: Optional[Personality] = None,
    ):
        self.agent_id = agent_id
        self.material = material or Material()
        self.livery = livery or Livery()
        self.state = state or ChargeState()
        self.agent_type = agent_type
        self.personality = personality
        self.segments: List[Segment] = []

    # ==================== Structure ====================

    def start(self, position: np.ndarray, angle: float, shape: Shape) -> AgentBuilder:
        """Discard anything built so far and place the root segment."""
        self.segments.clear()
        root = self._new_segment(
            shape, Winding.CW, np.asarray(position, dtype=np.float64), angle, None,
            Flags.TORSO | Flags.MIDDLE,
        )
        self.segments.append(root)
        return self

    def add(self, parent_index: int, offset: int, shape: Shape, flags: Flags = Flags.NONE) -> AgentBuilder:
        return self.add_with_winding(parent_index, offset, shape, Winding.CW, flags | Flags.MIDDLE)

    def add_left(self, parent_index: int, offset: int, shape: Shape, flags: Flags = Flags.NONE) -> AgentBuilder:
        return self.add_with_winding(parent_index, offset, shape, Winding.CCW, flags | Flags.LEFT)

    def add_right(self, parent_index: int, offset: int, shape: Shape, flags: Flags = Flags.NONE) -> AgentBuilder:
        return self.add_with_winding(parent_index, offset, shape, Winding.CW, flags | Flags.RIGHT)

    def add_with_winding(
        self,
        parent_index: int,
        offset: int,
        shape: Shape,
        winding: Winding,
        flags: Flags = Flags.NONE,
    ) -> AgentBuilder:
        """
        Attach a new segment to a vertex of `parent_index`.

        The vertex is `offset` modulo the parent's vertex count, so negative
        offsets count backward and mirror positive ones. The child sits
        edge-to-edge with its parent along the vertex's outward direction
        and faces perpendicular to it.
        """
        if not self.segments:
            raise IndexError("start() must be called before adding segments")
        if not 0 <= parent_index < len(self.segments):
            raise IndexError(f"no segment {parent_index} to attach to")

        parent = self.segments[parent_index]
        count = len(parent.mesh.vertices)
        vertex_index = (offset + count) % count

        p0 = rotate(parent.mesh.vertices[vertex_index], parent.angle)
        distance = float(np.linalg.norm(p0))
        if distance > 0:
            position = parent.position + p0 / distance * (distance + shape.radius)
        else:
            # A vertex at the parent's center has no outward direction
            position = parent.position.copy()
        angle = np.pi / 2 + np.arctan2(p0[1], p0[0])

        segment = self._new_segment(
            shape, winding, position, angle, parent.new_attachment(vertex_index), flags,
        )
        self.segments.append(segment)
        return self

    def index(self) -> int:
        """Index of the most recently added segment."""
        return max(len(self.segments) - 1, 0)

    def build(self) -> Agent:
        """Freeze the current tree into an Agent."""
        if not self.segments:
            raise IndexError("start() must be called before build()")
        return Agent(
            self.agent_id,
            tuple(self._clone(s) for s in self.segments),
            agent_type=self.agent_type,
            personality=self.personality,
        )

    # ==================== Internals ====================

    def _new_segment(self, shape, winding, position, angle, attachment, flags) -> Segment:
        return Segment(
            transform=Transform(position, angle),
            index=len(self.segments),
            mesh=Mesh.from_shape(shape, winding),
            material=self.material,
            livery=self.livery,
            state=self.state.copy(),
            flags=flags,
            attached_to=attachment,
        )

    @staticmethod
    def _clone(segment: Segment) -> Segment:
        # Built agents must not share mutable state with the builder
        return Segment(
            transform=segment.transform.copy(),
            index=segment.index,
            mesh=segment.mesh,
            material=segment.material,
            livery=segment.livery,
            state=segment.state.copy(),
            flags=segment.flags,
            attached_to=segment.attached_to,
        )
