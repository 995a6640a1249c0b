"""
oids/config.py

Simulation configuration.

Defaults live on the dataclasses; a YAML file only needs to name what it
changes. Unknown keys are rejected.

Example:

    world:
      seed: 7
      minion_charge: 0.4
    charge:
      tau: 1.5
    steps: 1000
    personality:
      type: ConstantPersonality
      responses: [1.0, 0.0, 1.0, 0.0]
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from oids.core.charge import ChargeConfig
from oids.core.personality import personality_from_dict
from oids.environments.world import WorldConfig


@dataclass
class SimulationConfig:
    """Everything a run needs."""
    world: WorldConfig = field(default_factory=WorldConfig)
    charge: ChargeConfig = field(default_factory=ChargeConfig)
    steps: int = 500                       # Ticks to run
    dt: float = 1.0 / 60.0                 # Fixed timestep (seconds)
    minions: int = 10                      # Minions spawned at start
    resources: int = 20                    # Resources spawned at start
    emitters: int = 1                      # Beacons, evenly spread on a circle
    personality: Optional[Dict[str, Any]] = None  # Shared personality, None for random

    def personality_factory(self):
        """Factory for the flock, or None to let it draw random ones."""
        if self.personality is None:
            return None
        data = self.personality
        return lambda rng: personality_from_dict(data)


def _build(cls, data: Optional[Dict[str, Any]], section: str):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ValueError(f"Section '{section}' must be a mapping")
    known = {f.name for f in fields(cls)}
    for key in data:
        if key not in known:
            raise ValueError(f"Unknown key '{key}' in section '{section}'")
    return cls(**data)


def config_from_dict(data: Optional[Dict[str, Any]]) -> SimulationConfig:
    data = dict(data or {})
    world = data.pop("world", None)
    charge = data.pop("charge", None)

    world_config = _build(WorldConfig, world, "world")
    if isinstance(world_config.extent, list):
        world_config.extent = tuple(world_config.extent)

    config = _build(SimulationConfig, data, "simulation")
    config.world = world_config
    config.charge = _build(ChargeConfig, charge, "charge")

    if config.personality is not None:
        # Fail on a bad personality now, not on the first spawn
        personality_from_dict(config.personality)
    return config


def load_config(path: Union[str, Path]) -> SimulationConfig:
    """Load a SimulationConfig from a YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f)
    return config_from_dict(data)
