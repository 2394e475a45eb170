from __future__ import annotations

from ..core.agent import Agent
from ..core.config import Boundary
from ..utils.math2d import _clamp_length_xy_f, facing_angle, wrap_coordinate


def integrate(
    agent: Agent,
    delta_vx: float,
    delta_vy: float,
    dt: float,
    max_speed: float,
    boundary: Boundary,
) -> None:
    """
    Advance one agent by `dt`.

    Wraparound is applied to the position *before* this tick's displacement is added, so an
    agent may end the tick up to |velocity| * dt past the edge and is wrapped on the next one.
    """

    vx, vy = _clamp_length_xy_f(agent.velocity.x + delta_vx, agent.velocity.y + delta_vy, max_speed)
    agent.velocity.update(vx, vy)
    agent.last_delta.update(delta_vx, delta_vy)

    pos_x = wrap_coordinate(agent.position.x, boundary.half_width)
    pos_y = wrap_coordinate(agent.position.y, boundary.half_height)
    agent.position.update(pos_x + vx * dt, pos_y + vy * dt)

    agent.orientation = facing_angle(vx, vy)
