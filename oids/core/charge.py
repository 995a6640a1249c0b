"""
core/charge.py

Every segment holds a little energy.

Charge drifts toward a target along an exponential curve. When it
arrives, the segment has "fired": on the next tick it snaps back to its
recharge level and the approach starts over. Build up, discharge,
recharge.

This is not a discrete state machine. The regimes (charging, fired,
forced) are regions of the (charge, target_charge) plane.

Inspired by:
- Neuron membrane potential and refractory reset
- Capacitor charge curves
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional
import numpy as np

if TYPE_CHECKING:
    from .agent import AgentRef


@dataclass
class ChargeConfig:
    """Charge dynamics shared by every segment of a flock."""
    tau: float = 2.0             # Time constant of the exponential approach (seconds)
    epsilon: float = 0.001       # Distance to target that counts as "fired"


class Exponential:
    """
    First-order exponential smoothing filter.

    alpha = 1 - exp(-dt / tau), frame-rate independent.
    """

    def __init__(self, value: float, tau: float):
        if not tau > 0:
            raise ValueError(f"tau must be positive, got {tau}")
        self.value = float(value)
        self.tau = float(tau)

    def smooth(self, target: float, dt: float) -> float:
        alpha = 1.0 - np.exp(-dt / self.tau)
        self.value = float(target * alpha + self.value * (1.0 - alpha))
        return self.value

    def reset(self, value: float) -> None:
        self.value = float(value)


class IntentKind(Enum):
    IDLE = "idle"
    MOVE = "move"
    BRAKE = "brake"
    RUN_AWAY = "run_away"


@dataclass(frozen=True, eq=False)
class Intent:
    """
    The actuation decision for one segment this tick.

    Everything but IDLE carries the force vector the physics stage
    should turn into an impulse.
    """
    kind: IntentKind
    vector: Optional[np.ndarray] = None

    @classmethod
    def idle(cls) -> Intent:
        return cls(IntentKind.IDLE)

    @classmethod
    def move(cls, vector: np.ndarray) -> Intent:
        return cls(IntentKind.MOVE, np.asarray(vector, dtype=np.float64))

    @classmethod
    def brake(cls, vector: np.ndarray) -> Intent:
        return cls(IntentKind.BRAKE, np.asarray(vector, dtype=np.float64))

    @classmethod
    def run_away(cls, vector: np.ndarray) -> Intent:
        return cls(IntentKind.RUN_AWAY, np.asarray(vector, dtype=np.float64))

    def __repr__(self) -> str:
        if self.vector is None:
            return f"Intent({self.kind.value})"
        return f"Intent({self.kind.value}, [{self.vector[0]:.2f}, {self.vector[1]:.2f}])"


class ChargeState:
    """
    Per-segment charge, plus what the segment intends to do with it.

    `target_charge` is written by the behavior system each tick; `update`
    integrates toward it. `set_charge` bypasses the filter entirely, for
    events that must land this very tick.
    """

    def __init__(
        self,
        charge: float = 1.0,
        target_charge: float = 0.0,
        recharge: float = 1.0,
        config: Optional[ChargeConfig] = None,
    ):
        self.config = config or ChargeConfig()
        self.charge = float(charge)
        self.target_charge = float(target_charge)
        self.recharge = float(recharge)
        self.smooth = Exponential(self.charge, self.config.tau)

        self.age_seconds = 0.0
        self.age_frames = 0

        # Written by the behavior system, read by the physics stage
        self.intent = Intent.idle()
        # Who bumped into this segment last, if anyone
        self.last_touched: Optional[AgentRef] = None

    @classmethod
    def with_charge(
        cls,
        initial: float,
        target: float,
        recharge: float,
        config: Optional[ChargeConfig] = None,
    ) -> ChargeState:
        return cls(charge=initial, target_charge=target, recharge=recharge, config=config)

    @property
    def tau(self) -> float:
        return self.smooth.tau

    def get_charge(self) -> float:
        return self.charge

    def set_charge(self, charge: float) -> None:
        """Force the charge, dragging the filter along with it."""
        self.charge = float(charge)
        self.smooth.reset(self.charge)

    def set_target_charge(self, target_charge: float) -> None:
        self.target_charge = float(target_charge)

    def is_discharged(self) -> bool:
        """True once charge has reached its target."""
        return abs(self.charge - self.target_charge) < self.config.epsilon

    def update(self, dt: float) -> None:
        """
        Advance one tick.

        A segment that reached its target on the previous tick recharges
        now instead of integrating; otherwise charge moves toward target.
        """
        self.age_seconds += dt
        self.age_frames += 1

        if self.is_discharged():
            self.set_charge(self.recharge)
            return

        self.charge = self.smooth.smooth(self.target_charge, dt)

    def copy(self) -> ChargeState:
        """Fresh state with the same charge settings (idle, no contacts)."""
        return ChargeState(
            charge=self.charge,
            target_charge=self.target_charge,
            recharge=self.recharge,
            config=self.config,
        )

    def __repr__(self) -> str:
        return (
            f"ChargeState(charge={self.charge:.3f}, "
            f"target={self.target_charge:.3f}, "
            f"recharge={self.recharge:.3f})"
        )
