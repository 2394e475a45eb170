from __future__ import annotations

import math

from pygame.math import Vector2

TAU = 2.0 * math.pi
# Visual forward axis points up (+y), so headings are rotated back by a quarter turn.
FORWARD_OFFSET = math.pi / 2.0


def distance_squared(a: Vector2, b: Vector2) -> float:
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def point_in_arc(center: Vector2, radius: float, start_angle: float, span: float, point: Vector2) -> bool:
    """
    Return True when `point` lies within `radius` of `center` and its bearing falls inside
    the counter-clockwise interval [start_angle, start_angle + span].

    The arc starts at `start_angle` and only extends forward from it; it is not centered on it.
    Both the bearing and the start angle are normalized into [0, 2pi) before comparing, and an
    interval running past 2pi wraps around through zero.
    """

    dx = point.x - center.x
    dy = point.y - center.y
    dist_sq = dx * dx + dy * dy
    if dist_sq > radius * radius:
        return False
    if dist_sq == 0.0 or span >= TAU:
        return True

    bearing = math.atan2(dy, dx) % TAU
    start = start_angle % TAU
    end = start + span
    if end <= TAU:
        return start <= bearing <= end
    return bearing >= start or bearing <= end % TAU


def facing_angle(vx: float, vy: float) -> float:
    return math.atan2(vy, vx) - FORWARD_OFFSET


def wrap_coordinate(value: float, half: float) -> float:
    if value > half:
        return -half
    if value < -half:
        return half
    return value


def _safe_normalize_xy(x: float, y: float) -> tuple[float, float]:
    magnitude_sq = x * x + y * y
    if magnitude_sq < 1e-18:
        return 0.0, 0.0
    inv = 1.0 / math.sqrt(magnitude_sq)
    return x * inv, y * inv


def _clamp_length_xy_f(x: float, y: float, max_length: float) -> tuple[float, float]:
    if max_length <= 0.0:
        return 0.0, 0.0
    magnitude_sq = x * x + y * y
    max_sq = max_length * max_length
    if magnitude_sq <= max_sq:
        return x, y
    if magnitude_sq <= 1e-18:
        return 0.0, 0.0
    inv = max_length / math.sqrt(magnitude_sq)
    return x * inv, y * inv
