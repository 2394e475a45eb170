from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pygame.math import Vector2


class Role(str, Enum):
    STANDARD = "Standard"
    PREDATOR = "Predator"


@dataclass(slots=True)
class Agent:
    id: int
    position: Vector2
    velocity: Vector2
    role: Role = Role.STANDARD
    orientation: float = 0.0
    last_delta: Vector2 = field(default_factory=Vector2)
