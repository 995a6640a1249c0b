"""
environments/flock.py

A flock owns its agents.

Identities come from a counter that only ever goes up; the flock maps
each identity to the one Agent it names. Everything outside the flock
refers to agents by id, so removing one can never leave a dangling
reference behind, only a failed lookup.

Spawn recipes live here too: a resource is a lone ball, a minion is a
randomized body plan with a head that senses, fins that steer, legs that
push and a tail that brakes.
"""

from __future__ import annotations
import colorsys
import logging
from typing import Callable, Dict, Iterator, Optional
import numpy as np

from oids.core.agent import Agent, AgentBuilder, AgentType
from oids.core.charge import ChargeConfig, ChargeState
from oids.core.geometry import Ball, Box, Poly, Shape, Star, Triangle
from oids.core.personality import Personality, default_personality
from oids.core.segment import Flags, Livery, Material

logger = logging.getLogger(__name__)

PersonalityFactory = Callable[[np.random.Generator], Personality]


class Randomizer:
    """Random shape parameters for spawn recipes."""

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng or np.random.default_rng()

    def frand(self, low: float, high: float) -> float:
        return float(self.rng.uniform(low, high))

    def irand(self, low: int, high: int) -> int:
        """Integer in [low, high], both ends included."""
        return int(self.rng.integers(low, high + 1))

    def random_ball(self) -> Shape:
        return Ball(self.frand(1.0, 2.0))

    def random_box(self) -> Shape:
        radius = self.frand(1.0, 2.0)
        ratio = self.frand(1.0, 2.0)
        return Box(width=2 * radius, height=2 * radius / ratio)

    def random_vbar(self) -> Shape:
        radius = self.frand(1.0, 2.0)
        ratio = self.frand(0.1, 0.2)
        return Box(width=2 * radius * ratio, height=2 * radius)

    def random_triangle(self) -> Shape:
        radius = self.frand(0.5, 1.0)
        alpha1 = self.frand(np.pi * 0.5, np.pi * 0.9)
        alpha2 = np.pi * 1.5 - self.frand(0.0, np.pi)
        return Triangle(radius, alpha1, alpha2)

    def random_iso_triangle(self) -> Shape:
        radius = self.frand(0.5, 1.0)
        alpha1 = self.frand(np.pi * 0.5, np.pi * 0.9)
        alpha2 = np.pi * 2 - alpha1
        return Triangle(radius, alpha1, alpha2)

    def random_eq_triangle(self) -> Shape:
        radius = self.frand(0.5, 1.0)
        alpha1 = np.pi * 2 / 3
        alpha2 = np.pi * 2 - alpha1
        return Triangle(radius, alpha1, alpha2)

    def random_star(self) -> Shape:
        radius = self.frand(1.0, 2.0)
        lobes = self.irand(3, 8)
        ratio = self.frand(0.2, 1.0)
        return Star(radius, lobes, ratio=ratio)

    def random_poly(self, upside_down: bool = False) -> Shape:
        return self.random_npoly(self.irand(3, 8), upside_down)

    def random_npoly(self, sides: int, upside_down: bool = False) -> Shape:
        return Poly(self.frand(1.0, 2.0), sides, upside_down)

    def random_albedo(self) -> tuple:
        r, g, b = colorsys.hls_to_rgb(self.frand(0.0, 1.0), 0.5, 0.5)
        return (r, g, b, 1.0)


class Flock:
    """
    Identity-keyed registry for one category of agents.

    Ids start at 1 and are never reused, even after a kill.
    """

    def __init__(
        self,
        agent_type: AgentType = AgentType.MINION,
        rng: Optional[np.random.Generator] = None,
        personality_factory: Optional[PersonalityFactory] = None,
        charge_config: Optional[ChargeConfig] = None,
    ):
        self.agent_type = agent_type
        self.rng = rng or np.random.default_rng()
        self.rnd = Randomizer(self.rng)
        self.personality_factory = personality_factory or default_personality
        self.charge_config = charge_config or ChargeConfig()
        self.seq = 0
        self.agents: Dict[int, Agent] = {}

    # ==================== Registry ====================

    def next_id(self) -> int:
        self.seq += 1
        return self.seq

    def get(self, agent_id: int) -> Optional[Agent]:
        return self.agents.get(agent_id)

    def get_mut(self, agent_id: int) -> Optional[Agent]:
        """Same lookup as `get`; agents are handed out by reference."""
        return self.agents.get(agent_id)

    def insert(self, agent: Agent) -> int:
        self.agents[agent.id] = agent
        logger.debug(f"{self.agent_type.value} {agent.id} spawned with {len(agent)} segments")
        return agent.id

    def spawn(self, builder: AgentBuilder) -> int:
        """Build the builder's tree and register the result."""
        return self.insert(builder.build())

    def builder(
        self,
        material: Material,
        livery: Livery,
        state: ChargeState,
        personality: Optional[Personality] = None,
    ) -> AgentBuilder:
        """A builder stamped with a fresh id and this flock's type."""
        return AgentBuilder(
            self.next_id(),
            material=material,
            livery=livery,
            state=state,
            agent_type=self.agent_type,
            personality=personality,
        )

    def kill(self, agent_id: int) -> Optional[Agent]:
        agent = self.agents.pop(agent_id, None)
        if agent is not None:
            logger.debug(f"{self.agent_type.value} {agent_id} removed")
        return agent

    def __iter__(self) -> Iterator[Agent]:
        return iter(list(self.agents.values()))

    def __len__(self) -> int:
        return len(self.agents)

    def __contains__(self, agent_id: int) -> bool:
        return agent_id in self.agents

    # ==================== Recipes ====================

    def new_resource(self, position: np.ndarray, charge: float) -> int:
        """A single ball that slowly gives up its charge."""
        builder = self.builder(
            Material(density=1.0),
            Livery(albedo=self.rnd.random_albedo()),
            ChargeState.with_charge(charge, 0.0, charge, self.charge_config),
        )
        return self.spawn(builder.start(position, 0.0, self.rnd.random_ball()))

    def new_minion(self, position: np.ndarray, charge: float) -> int:
        """
        A randomized creature.

        Torso with a pair of rudder arms, a sensing head with two rudder
        fins, a chain of 0-4 belly segments (some with extra arms), and at
        the far end two thruster legs and a braking tail.
        """
        position = np.asarray(position, dtype=np.float64)
        builder = self.builder(
            Material(density=0.2),
            Livery(albedo=self.rnd.random_albedo()),
            ChargeState.with_charge(0.0, charge, charge, self.charge_config),
            personality=self.personality_factory(self.rng),
        )
        arm_shape = self.rnd.random_star()
        leg_shape = self.rnd.random_star()
        torso_shape = self.rnd.random_npoly(5, upside_down=True)
        head_shape = self.rnd.random_iso_triangle()
        tail_shape = self.rnd.random_vbar()
        initial_angle = np.pi / 2 + np.arctan2(position[1], position[0])

        rudder_arm = Flags.ARM | Flags.ACTUATOR | Flags.RUDDER
        torso = builder.start(position, initial_angle, torso_shape).index()
        builder.add_right(torso, 2, arm_shape, rudder_arm | Flags.JOINT) \
               .add_left(torso, -2, arm_shape, rudder_arm | Flags.JOINT)

        fin = Flags.HEAD | Flags.ACTUATOR | Flags.RUDDER
        head = builder.add(torso, 0, head_shape, Flags.HEAD | Flags.SENSOR).index()
        builder.add_right(head, 1, head_shape, fin) \
               .add_left(head, 2, head_shape, fin)

        belly = torso
        belly_mid = torso_shape.mid
        for _ in range(self.rnd.irand(0, 4)):
            belly_shape = self.rnd.random_poly(upside_down=True)
            belly = builder.add(belly, belly_mid, belly_shape, Flags.BELLY | Flags.JOINT).index()
            belly_mid = belly_shape.mid
            if self.rnd.irand(0, 4) == 0:
                builder.add_right(belly, 2, arm_shape, rudder_arm) \
                       .add_left(belly, -2, arm_shape, rudder_arm)

        leg = Flags.LEG | Flags.ACTUATOR | Flags.THRUSTER
        builder.add_right(belly, belly_mid - 1, leg_shape, leg) \
               .add_left(belly, -(belly_mid - 1), leg_shape, leg) \
               .add(belly, belly_mid, tail_shape, Flags.TAIL | Flags.ACTUATOR | Flags.BRAKE)

        return self.spawn(builder)

    def __repr__(self) -> str:
        return f"Flock(type={self.agent_type.value}, agents={len(self.agents)}, seq={self.seq})"
