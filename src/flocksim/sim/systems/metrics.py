from __future__ import annotations

import math
from typing import Sequence

from ..core.agent import Agent, Role
from ..core.config import Boundary
from ..types.metrics import TickMetrics


def create_metrics(
    tick: int,
    agents: Sequence[Agent],
    boundary: Boundary,
    neighbor_checks: int,
    duration_ms: float,
) -> TickMetrics:
    predators = 0
    speed_sum = 0.0
    max_speed = 0.0
    outside = 0
    for agent in agents:
        if agent.role is Role.PREDATOR:
            predators += 1
        speed = math.hypot(agent.velocity.x, agent.velocity.y)
        speed_sum += speed
        if speed > max_speed:
            max_speed = speed
        if abs(agent.position.x) > boundary.half_width or abs(agent.position.y) > boundary.half_height:
            outside += 1
    population = len(agents)
    return TickMetrics(
        tick=tick,
        population=population,
        predators=predators,
        neighbor_checks=neighbor_checks,
        average_speed=speed_sum / population if population else 0.0,
        max_speed=max_speed,
        outside_boundary=outside,
        tick_duration_ms=duration_ms,
    )
