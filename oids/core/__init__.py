"""
Core components of oids.

- geometry: Shapes, meshes, transforms
- charge: Per-segment charge dynamics
- segment: Rigid body parts and their role flags
- personality: Behavior capability (responses + traits)
- agent: Agents and the builder that grows them
"""

from .agent import Agent, AgentBuilder, AgentRef, AgentState, AgentType
from .charge import ChargeConfig, ChargeState
from .geometry import Ball, Box, Mesh, Poly, Shape, Star, Transform, Triangle, Winding
from .personality import ConstantPersonality, LinearPersonality, Personality, Traits
from .segment import Attachment, Flags, Intent, IntentKind, Livery, Material, Segment

__all__ = [
    "Agent", "AgentBuilder", "AgentRef", "AgentState", "AgentType",
    "ChargeConfig", "ChargeState",
    "Ball", "Box", "Mesh", "Poly", "Shape", "Star", "Transform", "Triangle", "Winding",
    "ConstantPersonality", "LinearPersonality", "Personality", "Traits",
    "Attachment", "Flags", "Intent", "IntentKind", "Livery", "Material", "Segment",
]
