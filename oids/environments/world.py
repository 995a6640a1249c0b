"""
environments/world.py

The arena: flocks, beacons, and a clock.

A tick is strictly ordered:
1. AI snapshot (read the world)
2. AI decisions (write intents and charge targets)
3. Charge integration for every segment

Physics is somebody else's job; it would sit between 2 and 3, turning
intents into impulses and reporting contacts through `touch`.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Dict, List, Optional, Tuple
import numpy as np

from oids.core.agent import Agent, AgentRef, AgentType
from oids.core.charge import ChargeConfig
from oids.environments.flock import Flock, PersonalityFactory
from oids.systems.ai import AiSystem

logger = logging.getLogger(__name__)


@dataclass
class WorldConfig:
    """Configuration for the world."""
    extent: Tuple[float, float] = (-550.0, 550.0)   # Square world bounds
    fence_radius: float = 500.0                      # Radius of the play area
    minion_charge: float = 0.3                       # Target charge minions spawn with
    resource_charge: float = 0.3                     # Charge resources spawn with
    seed: Optional[int] = None                       # RNG seed, None for entropy


@dataclass
class Emitter:
    """A fixed beacon."""
    id: int
    position: np.ndarray

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64)


class World:
    """
    Owns one flock per agent type and the fixed beacons.

    Minions and resources spawn through the world so they land in the
    right flock with the configured charge.
    """

    def __init__(
        self,
        config: Optional[WorldConfig] = None,
        charge_config: Optional[ChargeConfig] = None,
        personality_factory: Optional[PersonalityFactory] = None,
    ):
        self.config = config or WorldConfig()
        self.rng = np.random.default_rng(self.config.seed)
        self.flocks: Dict[AgentType, Flock] = {
            agent_type: Flock(
                agent_type,
                rng=self.rng,
                personality_factory=personality_factory,
                charge_config=charge_config,
            )
            for agent_type in AgentType
        }
        self.emitters: List[Emitter] = []
        self.ai = AiSystem()
        self.ticks = 0
        self.time = 0.0

    # ==================== Population ====================

    def agents(self, agent_type: AgentType) -> Dict[int, Agent]:
        return self.flocks[agent_type].agents

    @property
    def minions(self) -> Flock:
        return self.flocks[AgentType.MINION]

    @property
    def resources(self) -> Flock:
        return self.flocks[AgentType.RESOURCE]

    def new_minion(self, position: np.ndarray) -> int:
        return self.minions.new_minion(position, self.config.minion_charge)

    def new_resource(self, position: np.ndarray) -> int:
        return self.resources.new_resource(position, self.config.resource_charge)

    def new_emitter(self, position: np.ndarray) -> int:
        emitter = Emitter(len(self.emitters) + 1, position)
        self.emitters.append(emitter)
        return emitter.id

    def emitter_positions(self) -> List[np.ndarray]:
        return [e.position for e in self.emitters]

    def find(self, ref: AgentRef) -> Optional[Agent]:
        return self.flocks[ref.agent_type].get(ref.agent_id)

    def consume(self, resource_id: int) -> bool:
        """Mark a resource as eaten; it disappears from the next snapshot."""
        resource = self.resources.get(resource_id)
        if resource is None or not resource.state.is_active():
            return False
        resource.state.active = False
        logger.debug(f"resource {resource_id} consumed")
        return True

    def touch(self, a: AgentRef, b: AgentRef) -> None:
        """
        Record a contact between two segments.

        Each side remembers who touched it. Refs without a segment index,
        or pointing at agents that no longer exist, are ignored.
        """
        for this, other in ((a, b), (b, a)):
            agent = self.find(this)
            if agent is None or this.segment_index is None:
                continue
            segment = agent.segment(this.segment_index)
            if segment is not None:
                segment.state.last_touched = other

    # ==================== Simulation ====================

    def step(self, dt: float) -> None:
        """Advance the world by dt seconds."""
        self.ticks += 1
        self.time += dt

        self.ai.from_world(self)
        self.ai.to_world(self)

        for flock in self.flocks.values():
            for agent in flock:
                agent.update(dt)

        if self.ticks % 100 == 0:
            logger.debug(
                f"tick {self.ticks}: {len(self.minions)} minions, "
                f"{len(self.ai.targets)} live resources"
            )

    def __repr__(self) -> str:
        return (
            f"World(minions={len(self.minions)}, "
            f"resources={len(self.resources)}, "
            f"emitters={len(self.emitters)}, "
            f"time={self.time:.2f})"
        )
