"""
Study 01: Foraging Observation

Run: python -m oids.studies.01_foraging.observe

Scatter minions and resources, put a beacon in the middle, and watch.
There is no physics here: bodies stay put, so what we observe is pure
decision making. Who locks on, who loses a target, which parts fire.
"""

import argparse
import logging
from collections import Counter
from typing import Dict, Optional

import numpy as np

from oids.config import SimulationConfig, load_config
from oids.core.agent import AgentType
from oids.core.segment import Flags
from oids.environments.world import World

logger = logging.getLogger(__name__)


def populate(world: World, config: SimulationConfig) -> None:
    """Beacons on a ring, minions and resources scattered inside the fence."""
    spread = world.config.fence_radius * 0.5
    for i in range(config.emitters):
        angle = 2 * np.pi * i / max(config.emitters, 1)
        radius = 0.0 if config.emitters == 1 else spread
        world.new_emitter(radius * np.array([np.cos(angle), np.sin(angle)]))
    for _ in range(config.minions):
        world.new_minion(world.rng.uniform(-spread, spread, size=2))
    for _ in range(config.resources):
        world.new_resource(world.rng.uniform(-spread, spread, size=2))


def feed(world: World) -> int:
    """Minions whose head reaches their target eat it. Returns meals this tick."""
    meals = 0
    for minion in world.agents(AgentType.MINION).values():
        target = minion.state.target
        sensor = minion.first_segment(Flags.SENSOR)
        if target is None or sensor is None:
            continue
        resource = world.resources.get(target)
        if resource is None:
            continue
        reach = sensor.radius + resource.segments[0].radius
        if np.linalg.norm(resource.position - sensor.position) < reach and world.consume(target):
            meals += 1
    return meals


def run_study(config: Optional[SimulationConfig] = None) -> Dict[str, object]:
    """
    Run one foraging world and collect statistics.

    Watch:
    - Intent mix across all actuators
    - How many minions hold a target at the end
    - Mean actuator charge
    """
    config = config or SimulationConfig()
    world = World(
        config.world,
        charge_config=config.charge,
        personality_factory=config.personality_factory(),
    )
    populate(world, config)
    logger.info(f"World created: {world}")

    intents: Counter = Counter()
    meals = 0
    for step in range(config.steps):
        world.step(config.dt)
        meals += feed(world)

        for minion in world.minions:
            for segment in minion.segments:
                if Flags.ACTUATOR in segment.flags:
                    intents[segment.state.intent.kind.value] += 1

        if step % 100 == 0:
            logger.info(f"Step {step}: {len(world.ai.targets)} live resources, {meals} eaten")

    locked = sum(1 for m in world.minions if m.state.target is not None)
    charges = [
        s.state.charge
        for m in world.minions
        for s in m.segments
        if Flags.ACTUATOR in s.flags
    ]
    return {
        "steps": config.steps,
        "minions": len(world.minions),
        "locked": locked,
        "meals": meals,
        "intents": dict(intents),
        "mean_charge": float(np.mean(charges)) if charges else 0.0,
    }


def main():
    parser = argparse.ArgumentParser(description="Foraging Observation Study")
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    parser.add_argument("--steps", type=int, default=None, help="Simulation steps")
    parser.add_argument("--minions", type=int, default=None, help="Number of minions")
    parser.add_argument("--resources", type=int, default=None, help="Number of resources")
    parser.add_argument("--dt", type=float, default=None, help="Timestep in seconds")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    config = load_config(args.config) if args.config else SimulationConfig()
    if args.steps is not None:
        config.steps = args.steps
    if args.minions is not None:
        config.minions = args.minions
    if args.resources is not None:
        config.resources = args.resources
    if args.dt is not None:
        config.dt = args.dt
    if args.seed is not None:
        config.world.seed = args.seed

    print("=" * 50)
    print("Study 01: Foraging Observation")
    print("=" * 50)

    stats = run_study(config)

    print(f"\nMinions: {stats['minions']}, holding a target: {stats['locked']}")
    print(f"Resources eaten: {stats['meals']}")
    print(f"Mean actuator charge: {stats['mean_charge']:.3f}")
    print("\nIntent mix:")
    total = sum(stats["intents"].values()) or 1
    for kind, count in sorted(stats["intents"].items()):
        print(f"  {kind:>9}: {count:7d} ({100 * count / total:.1f}%)")

    print("\n" + "=" * 50)
    print("Study complete. What did you observe?")
    print("=" * 50)


if __name__ == "__main__":
    main()
