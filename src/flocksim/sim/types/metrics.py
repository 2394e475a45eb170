from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    predators: int
    neighbor_checks: int
    average_speed: float
    max_speed: float
    outside_boundary: int
    tick_duration_ms: float = 0.0
