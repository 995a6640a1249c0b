"""
systems/ai.py

Reflexes, not plans.

Each tick the AI reads a frozen picture of the world (where the beacons
are, where the live resources are), then lets every minion decide on its
own: pick or keep a target, look at it through the head, ask the
personality how it feels about that, and turn each actuator on or off.

Two phases, never interleaved:
1. from_world: snapshot (read only)
2. to_world: decide and apply (writes only to each minion's own segments)

No decision can observe another minion's decision from the same tick.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple
import numpy as np

from oids.core.agent import Agent, AgentType
from oids.core.geometry import perp_dot, rotate
from oids.core.personality import Personality
from oids.core.segment import Flags, Intent, IntentKind, Segment

if TYPE_CHECKING:
    from oids.environments.world import World

logger = logging.getLogger(__name__)

RADAR_SCALE = 10.0      # Radar range in sensor radii
POWER_BOOST = 100.0     # Force per unit charge per unit area

UP = np.array([0.0, 1.0])
DOWN = np.array([0.0, -1.0])


def nearest_beacon(beacons: Sequence[np.ndarray], p: np.ndarray) -> np.ndarray:
    """Closest beacon to p (first one wins ties), or p itself if there are none."""
    best = None
    best_d2 = np.inf
    for beacon in beacons:
        d2 = float(np.sum((p - beacon) ** 2))
        if d2 < best_d2:
            best, best_d2 = beacon, d2
    return p if best is None else best


def decide(
    segment: Segment,
    response: Sequence[float],
    personality: Personality,
) -> Intent:
    """
    Actuation decision for a single actuator segment.

    Checked in priority order; the first that applies wins. Any contact
    overrides the response: a resource makes the segment rest, anything
    else makes it run away.
    """
    flags = segment.flags
    power = segment.state.get_charge() * segment.radius ** 2 * POWER_BOOST
    f = rotate(UP, segment.angle) * power

    touched = segment.state.last_touched
    if touched is not None:
        if touched.agent_type is AgentType.RESOURCE:
            return Intent.idle()
        return Intent.run_away(f * personality.fear)
    if (Flags.RUDDER | Flags.LEFT) in flags and response[0] > personality.hunger:
        return Intent.move(-f)
    # NOTE: same sign as the left rudder; the right rudder may be meant to
    # push the other way, but this is the established steering behavior.
    if (Flags.RUDDER | Flags.RIGHT) in flags and response[1] > personality.hunger:
        return Intent.move(-f)
    if Flags.THRUSTER in flags and response[2] > personality.haste:
        return Intent.move(f)
    if Flags.BRAKE in flags and response[3] > personality.prudence:
        return Intent.brake(-f)
    return Intent.idle()


def apply_intent(segment: Segment, intent: Intent, personality: Personality) -> None:
    """Record the intent and steer the segment's charge accordingly."""
    if intent.kind is IntentKind.IDLE:
        segment.state.set_target_charge(personality.rest)
    elif intent.kind is IntentKind.RUN_AWAY:
        # Evasion cannot wait for the charge to ramp up
        segment.state.set_charge(personality.thrust)
    else:
        segment.state.set_target_charge(personality.thrust)
    segment.state.intent = intent


class AiSystem:
    """
    Behavior and targeting for minions.

    Holds nothing between ticks except the last snapshot, which
    `from_world` rebuilds from scratch every time.
    """

    def __init__(self):
        self.beacons: List[np.ndarray] = []
        self.targets: Dict[int, np.ndarray] = {}

    # ==================== Phase 1: Snapshot ====================

    def from_world(self, world: World) -> None:
        self.beacons = [np.array(p, dtype=np.float64) for p in world.emitter_positions()]
        self.targets = {
            agent.id: agent.position.copy()
            for agent in world.agents(AgentType.RESOURCE).values()
            if agent.state.is_active()
        }

    # ==================== Phase 2: Decide + apply ====================

    def to_world(self, world: World) -> None:
        self.update_minions(world.agents(AgentType.MINION).values())

    def update_minions(self, minions: Iterable[Agent]) -> None:
        for agent in minions:
            self.update_minion(agent)

    def update_minion(self, agent: Agent) -> None:
        sensor = agent.first_segment(Flags.SENSOR)
        if sensor is None or agent.personality is None:
            logger.debug(f"agent {agent.id} has no sensor or personality, skipped")
            return
        personality = agent.personality

        radar_range = sensor.radius * RADAR_SCALE
        self.resolve_target(agent, sensor.position, radar_range)

        features = self.sense(agent, sensor, radar_range)
        response = personality.response(features)

        for segment in agent.segments:
            if Flags.ACTUATOR not in segment.flags:
                continue
            apply_intent(segment, decide(segment, response, personality), personality)

    def resolve_target(self, agent: Agent, origin: np.ndarray, radar_range: float) -> None:
        """
        Keep, acquire or drop the agent's target.

        A fresh agent takes the first live resource inside radar range. A
        target that vanished from the snapshot is dropped. Without a target
        the agent heads for the beacon nearest to where it was last going.
        """
        current = agent.state.target
        found: Optional[Tuple[int, np.ndarray]] = None

        if current is None:
            for target_id, position in self.targets.items():
                if np.linalg.norm(np.asarray(position) - origin) < radar_range:
                    found = (target_id, position)
                    break
        elif current in self.targets:
            found = (current, self.targets[current])

        if found is None:
            if current is not None:
                logger.debug(f"agent {agent.id} lost target {current}")
            beacon = nearest_beacon(self.beacons, agent.state.target_position)
            agent.state.retarget(None, beacon)
        else:
            if current is None:
                logger.debug(f"agent {agent.id} acquired target {found[0]}")
            agent.state.retarget(found[0], found[1])

    def sense(self, agent: Agent, sensor: Segment, radar_range: float) -> np.ndarray:
        """
        Feature vector seen from the sensor.

        [neck angle, target along heading, target across heading, 0]
        """
        t0 = agent.state.target_position - sensor.position
        length = float(np.linalg.norm(t0))
        if length > 0:
            t = t0 * (min(length, radar_range) / length)
        else:
            t = np.zeros(2)

        heading = rotate(DOWN, sensor.angle)

        core = agent.first_segment(Flags.TORSO)
        core_angle = core.angle if core is not None else sensor.angle
        neck_angle = np.pi + sensor.angle - core_angle

        return np.array([neck_angle, float(t @ heading), perp_dot(t, heading), 0.0])

    def __repr__(self) -> str:
        return f"AiSystem(beacons={len(self.beacons)}, targets={len(self.targets)})"
