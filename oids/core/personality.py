"""
core/personality.py

What an agent wants, and how badly.

A personality maps four sensed features to four response scalars, and
carries the thresholds that decide when a response is strong enough to
act on. Different personalities are different variants of one
interface, chosen per agent at spawn time.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence
import numpy as np

FEATURES = 4
RESPONSES = 4


@dataclass
class Traits:
    """
    Named scalar traits.

    hunger, haste, prudence are response thresholds; fear scales evasive
    force; rest and thrust are the charge targets for idle and active
    actuators.
    """
    hunger: float = 0.5
    haste: float = 0.5
    prudence: float = 0.5
    fear: float = 1.0
    rest: float = 0.1
    thrust: float = 1.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "hunger": self.hunger,
            "haste": self.haste,
            "prudence": self.prudence,
            "fear": self.fear,
            "rest": self.rest,
            "thrust": self.thrust,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Traits:
        return cls(
            hunger=data.get("hunger", 0.5),
            haste=data.get("haste", 0.5),
            prudence=data.get("prudence", 0.5),
            fear=data.get("fear", 1.0),
            rest=data.get("rest", 0.1),
            thrust=data.get("thrust", 1.0),
        )

    @classmethod
    def random(cls, rng: np.random.Generator) -> Traits:
        return cls(
            hunger=rng.uniform(0.0, 0.8),
            haste=rng.uniform(0.0, 0.8),
            prudence=rng.uniform(0.2, 1.0),
            fear=rng.uniform(0.5, 2.0),
            rest=rng.uniform(0.0, 0.2),
            thrust=rng.uniform(0.5, 1.0),
        )


class Personality(ABC):
    """
    Behavior capability of an agent.

    Subclasses implement `response`; the trait accessors are shared.
    """

    traits: Traits

    @abstractmethod
    def response(self, features: Sequence[float]) -> np.ndarray:
        """Map 4 features to 4 response scalars."""
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        pass

    @property
    def hunger(self) -> float:
        return self.traits.hunger

    @property
    def haste(self) -> float:
        return self.traits.haste

    @property
    def prudence(self) -> float:
        return self.traits.prudence

    @property
    def fear(self) -> float:
        return self.traits.fear

    @property
    def rest(self) -> float:
        return self.traits.rest

    @property
    def thrust(self) -> float:
        return self.traits.thrust


@dataclass
class LinearPersonality(Personality):
    """
    A single dense layer: tanh(W @ features + bias).

    The simplest thing that reacts to where the target is.
    """
    weights: np.ndarray = field(default_factory=lambda: np.zeros((RESPONSES, FEATURES)))
    bias: np.ndarray = field(default_factory=lambda: np.zeros(RESPONSES))
    traits: Traits = field(default_factory=Traits)

    def __post_init__(self):
        self.weights = np.asarray(self.weights, dtype=np.float64).reshape(RESPONSES, FEATURES)
        self.bias = np.asarray(self.bias, dtype=np.float64).reshape(RESPONSES)

    def response(self, features: Sequence[float]) -> np.ndarray:
        x = np.asarray(features, dtype=np.float64)
        return np.tanh(self.weights @ x + self.bias)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "LinearPersonality",
            "weights": self.weights.tolist(),
            "bias": self.bias.tolist(),
            "traits": self.traits.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LinearPersonality:
        return cls(
            weights=data.get("weights", np.zeros((RESPONSES, FEATURES))),
            bias=data.get("bias", np.zeros(RESPONSES)),
            traits=Traits.from_dict(data.get("traits", {})),
        )

    @classmethod
    def random(cls, rng: np.random.Generator) -> LinearPersonality:
        return cls(
            weights=rng.normal(0.0, 1.0, size=(RESPONSES, FEATURES)),
            bias=rng.normal(0.0, 0.1, size=RESPONSES),
            traits=Traits.random(rng),
        )


@dataclass
class ConstantPersonality(Personality):
    """Ignores the world and always answers the same. Handy for scripted agents."""
    responses: np.ndarray = field(default_factory=lambda: np.zeros(RESPONSES))
    traits: Traits = field(default_factory=Traits)

    def __post_init__(self):
        self.responses = np.asarray(self.responses, dtype=np.float64).reshape(RESPONSES)

    def response(self, features: Sequence[float]) -> np.ndarray:
        return self.responses.copy()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "ConstantPersonality",
            "responses": self.responses.tolist(),
            "traits": self.traits.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ConstantPersonality:
        return cls(
            responses=data.get("responses", np.zeros(RESPONSES)),
            traits=Traits.from_dict(data.get("traits", {})),
        )


PERSONALITIES = {
    "LinearPersonality": LinearPersonality,
    "ConstantPersonality": ConstantPersonality,
}


def personality_from_dict(data: Dict[str, Any]) -> Personality:
    """Rebuild a personality from its `to_dict` form."""
    kind = data.get("type", "LinearPersonality")
    if kind not in PERSONALITIES:
        raise ValueError(f"Unknown personality type: {kind}")
    return PERSONALITIES[kind].from_dict(data)


def default_personality(rng: Optional[np.random.Generator] = None) -> Personality:
    """Random linear personality, the flock default."""
    return LinearPersonality.random(rng or np.random.default_rng())
