from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from pygame.math import Vector2

from ..core.agent import Agent, Role
from ..core.config import FlockingConfig, PredatorConfig
from ..utils.math2d import _clamp_length_xy_f, _safe_normalize_xy, facing_angle, point_in_arc

# Pairs closer than this (squared) are treated as coincident and never repel.
SEPARATION_EPSILON_SQ = 1e-5


@dataclass(slots=True)
class SteeringForces:
    separation: Vector2 = field(default_factory=Vector2)
    alignment: Vector2 = field(default_factory=Vector2)
    cohesion: Vector2 = field(default_factory=Vector2)
    acceleration: Vector2 = field(default_factory=Vector2)
    alignment_count: int = 0
    cohesion_count: int = 0


def cohesion(
    center_x: float,
    center_y: float,
    position: Vector2,
    velocity: Vector2,
    max_speed: float,
    max_force: float,
) -> Vector2:
    """Steer toward the average neighbor position at full speed, limited to `max_force`."""

    dir_x, dir_y = _safe_normalize_xy(center_x - position.x, center_y - position.y)
    steer_x = dir_x * max_speed - velocity.x
    steer_y = dir_y * max_speed - velocity.y
    return Vector2(_clamp_length_xy_f(steer_x, steer_y, max_force))


def alignment(
    avg_vx: float,
    avg_vy: float,
    velocity: Vector2,
    max_speed: float,
    max_force: float,
) -> Vector2:
    """Steer toward the average neighbor heading at full speed, limited to `max_force`."""

    dir_x, dir_y = _safe_normalize_xy(avg_vx, avg_vy)
    steer_x = dir_x * max_speed - velocity.x
    steer_y = dir_y * max_speed - velocity.y
    return Vector2(_clamp_length_xy_f(steer_x, steer_y, max_force))


def separation(repulsion_x: float, repulsion_y: float, strength: float) -> Vector2:
    dir_x, dir_y = _safe_normalize_xy(repulsion_x, repulsion_y)
    return Vector2(dir_x * strength, dir_y * strength)


def repulsion_from(
    agent: Agent,
    agents: Sequence[Agent],
    candidates: Sequence[int],
    radius: float,
    arc_span: float,
    heading: float,
) -> tuple[float, float]:
    """
    Sum (p_i - p_j) / |p_i - p_j|^2 over candidates inside the forward arc.

    The numerator is not normalized, so each term falls off with the inverse of the distance
    and the raw sum is dominated by the closest neighbors.
    """

    pos = agent.position
    pos_x = pos.x
    pos_y = pos.y
    rep_x = 0.0
    rep_y = 0.0
    for index in candidates:
        other = agents[index]
        if other is agent:
            continue
        other_pos = other.position
        offset_x = pos_x - other_pos.x
        offset_y = pos_y - other_pos.y
        dist_sq = offset_x * offset_x + offset_y * offset_y
        if dist_sq <= SEPARATION_EPSILON_SQ:
            continue
        if point_in_arc(pos, radius, heading, arc_span, other_pos):
            rep_x += offset_x / dist_sq
            rep_y += offset_y / dist_sq
    return rep_x, rep_y


def compute_flocking_forces(
    agent: Agent,
    agents: Sequence[Agent],
    candidates: Sequence[int],
    params: FlockingConfig,
) -> SteeringForces:
    pos = agent.position
    vel = agent.velocity
    pos_x = pos.x
    pos_y = pos.y
    heading = facing_angle(vel.x, vel.y)
    alignment_radius_sq = params.alignment_radius * params.alignment_radius
    cohesion_radius_sq = params.cohesion_radius * params.cohesion_radius

    sum_vx = 0.0
    sum_vy = 0.0
    alignment_count = 0
    sum_px = 0.0
    sum_py = 0.0
    cohesion_count = 0

    for index in candidates:
        other = agents[index]
        if other is agent:
            continue
        other_pos = other.position
        offset_x = pos_x - other_pos.x
        offset_y = pos_y - other_pos.y
        dist_sq = offset_x * offset_x + offset_y * offset_y

        if dist_sq < alignment_radius_sq:
            sum_vx += other.velocity.x
            sum_vy += other.velocity.y
            alignment_count += 1
        if dist_sq < cohesion_radius_sq:
            sum_px += other_pos.x
            sum_py += other_pos.y
            cohesion_count += 1

    rep_x, rep_y = repulsion_from(
        agent, agents, candidates, params.separation_radius, params.separation_angle, heading
    )

    forces = SteeringForces(alignment_count=alignment_count, cohesion_count=cohesion_count)
    if alignment_count > 0:
        forces.alignment = alignment(
            sum_vx / alignment_count,
            sum_vy / alignment_count,
            vel,
            params.max_speed,
            params.max_steering_force,
        )
    if cohesion_count > 0:
        forces.cohesion = cohesion(
            sum_px / cohesion_count,
            sum_py / cohesion_count,
            pos,
            vel,
            params.max_speed,
            params.max_steering_force,
        )
    forces.separation = separation(rep_x, rep_y, params.max_steering_force)
    forces.acceleration = (
        forces.alignment * params.alignment_strength
        + forces.separation * params.separation_strength
        + forces.cohesion * params.cohesion_strength
    )
    return forces


def compute_flocking_acceleration(
    agent: Agent,
    agents: Sequence[Agent],
    candidates: Sequence[int],
    params: FlockingConfig,
) -> Vector2:
    return compute_flocking_forces(agent, agents, candidates, params).acceleration


def compute_avoidance_delta(
    agent: Agent,
    agents: Sequence[Agent],
    candidates: Sequence[int],
    params: PredatorConfig,
) -> Vector2:
    """
    Velocity change for a predator: pushed away from the standard agents in its forward arc.

    The result is not limited by a steering force and is applied to velocity as is.
    """

    visible: List[int] = [index for index in candidates if agents[index].role is Role.STANDARD]
    heading = facing_angle(agent.velocity.x, agent.velocity.y)
    rep_x, rep_y = repulsion_from(agent, agents, visible, params.fov_radius, params.fov_angle, heading)
    return separation(rep_x, rep_y, params.avoidance_strength)
