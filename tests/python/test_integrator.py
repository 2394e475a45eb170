from __future__ import annotations

import math

from pygame.math import Vector2
from pytest import approx

from flocksim.sim.core.agent import Agent
from flocksim.sim.core.config import Boundary
from flocksim.sim.systems.integrator import integrate


def _agent(x: float, y: float, vx: float, vy: float) -> Agent:
    return Agent(id=0, position=Vector2(x, y), velocity=Vector2(vx, vy))


def test_single_agent_moves_by_velocity():
    agent = _agent(0.0, 0.0, 100.0, 0.0)
    integrate(agent, 0.0, 0.0, 1.0, 150.0, Boundary(400.0, 400.0))
    assert agent.position.x == approx(100.0)
    assert agent.position.y == approx(0.0)
    assert agent.velocity == Vector2(100.0, 0.0)


def test_wraparound_is_applied_before_displacement():
    agent = _agent(405.0, 0.0, 50.0, 0.0)
    integrate(agent, 0.0, 0.0, 1.0, 150.0, Boundary(400.0, 400.0))
    assert agent.position.x == approx(-350.0)


def test_overshoot_is_kept_until_next_tick():
    boundary = Boundary(400.0, 300.0)
    agent = _agent(390.0, -295.0, 100.0, -100.0)
    integrate(agent, 0.0, 0.0, 0.5, 150.0, boundary)
    # Past the edge after this tick; corrected at the start of the next one.
    assert agent.position.x == approx(440.0)
    assert agent.position.y == approx(-345.0)
    integrate(agent, 0.0, 0.0, 0.5, 150.0, boundary)
    assert agent.position.x == approx(-400.0 + agent.velocity.x * 0.5)
    assert agent.position.y == approx(300.0 + agent.velocity.y * 0.5)


def test_velocity_is_clamped_uniformly():
    agent = _agent(0.0, 0.0, 150.0, 150.0)
    integrate(agent, 0.0, 0.0, 1.0, 150.0, Boundary(1000.0, 1000.0))
    assert agent.velocity.length() == approx(150.0)
    assert agent.velocity.x == approx(agent.velocity.y)


def test_velocity_delta_is_added_before_clamp():
    agent = _agent(0.0, 0.0, 10.0, 0.0)
    integrate(agent, 5.0, -2.0, 0.1, 150.0, Boundary(100.0, 100.0))
    assert agent.velocity.x == approx(15.0)
    assert agent.velocity.y == approx(-2.0)
    assert agent.position.x == approx(1.5)
    assert agent.position.y == approx(-0.2)
    assert agent.last_delta == Vector2(5.0, -2.0)


def test_orientation_follows_velocity_with_forward_offset():
    agent = _agent(0.0, 0.0, 0.0, 0.0)
    integrate(agent, 0.0, 20.0, 1.0, 150.0, Boundary(100.0, 100.0))
    assert agent.orientation == approx(0.0)
    integrate(agent, -40.0, -20.0, 1.0, 150.0, Boundary(100.0, 100.0))
    assert agent.orientation == approx(math.pi / 2)
