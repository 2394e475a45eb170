from __future__ import annotations

import logging
from time import perf_counter
from typing import Dict, List, Sequence

from pygame.math import Vector2

from .agent import Agent, Role
from .config import Boundary, SimulationConfig
from .rng import DeterministicRng
from .spatial_grid import build_neighbor_query
from ..systems import integrator, metrics as metrics_system, steering
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import facing_angle

logger = logging.getLogger(__name__)


def initialize_agents(
    count: int,
    role: Role,
    boundary: Boundary,
    rng: DeterministicRng,
    base_speed: float,
    start_id: int = 0,
) -> List[Agent]:
    agents: List[Agent] = []
    for offset in range(count):
        position = Vector2(
            rng.next_range(-boundary.half_width, boundary.half_width),
            rng.next_range(-boundary.half_height, boundary.half_height),
        )
        velocity = Vector2(base_speed * rng.next_sign(), base_speed * rng.next_sign())
        agents.append(
            Agent(
                id=start_id + offset,
                position=position,
                velocity=velocity,
                role=role,
                orientation=facing_angle(velocity.x, velocity.y),
            )
        )
    return agents


def tick(agents: Sequence[Agent], config: SimulationConfig, dt: float, boundary: Boundary) -> int:
    """
    Advance every agent by `dt` and return the number of neighbor candidates examined.

    Every velocity change is computed from the pre-tick state before any agent is moved.
    Standard agents only see other standard agents; predators only react to standard agents.
    """

    positions = [agent.position for agent in agents]
    flock_indices = [index for index, agent in enumerate(agents) if agent.role is Role.STANDARD]
    flock_query = build_neighbor_query(config.flock_neighbor_query, positions, flock_indices, config.cell_size)
    if config.predator_neighbor_query == config.flock_neighbor_query:
        predator_query = flock_query
    else:
        predator_query = build_neighbor_query(
            config.predator_neighbor_query, positions, flock_indices, config.cell_size
        )

    deltas: List[tuple[float, float]] = []
    neighbor_checks = 0
    for agent in agents:
        if agent.role is Role.PREDATOR:
            candidates = predator_query.query_neighbors(agent.position)
            delta = steering.compute_avoidance_delta(agent, agents, candidates, config.predator)
            deltas.append((delta.x, delta.y))
        else:
            candidates = flock_query.query_neighbors(agent.position)
            acceleration = steering.compute_flocking_acceleration(agent, agents, candidates, config.flock)
            deltas.append((acceleration.x * dt, acceleration.y * dt))
        neighbor_checks += len(candidates)

    for agent, (delta_vx, delta_vy) in zip(agents, deltas):
        max_speed = config.predator.max_speed if agent.role is Role.PREDATOR else config.flock.max_speed
        integrator.integrate(agent, delta_vx, delta_vy, dt, max_speed, boundary)
    return neighbor_checks


class World:
    def __init__(self, config: SimulationConfig, boundary: Boundary | None = None):
        config.validate()
        self._config = config
        self._rng = DeterministicRng(config.seed)
        self._boundary = boundary if boundary is not None else config.boundary()
        self._initial_boundary = self._boundary
        self._agents: List[Agent] = []
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()
        logger.info(
            "World created with %d agents and %d predators in %.1fx%.1f (seed=%d)",
            config.initial_population,
            config.predator_count,
            self._boundary.half_width * 2.0,
            self._boundary.half_height * 2.0,
            config.seed,
        )

    @property
    def agents(self) -> List[Agent]:
        return self._agents

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def boundary(self) -> Boundary:
        return self._boundary

    @property
    def config(self) -> SimulationConfig:
        return self._config

    def reset(self) -> None:
        self._agents.clear()
        self._rng.reset()
        self._boundary = self._initial_boundary
        self._metrics = None
        self._bootstrap_population()

    def resize(self, width: float, height: float) -> None:
        if width <= 0.0 or height <= 0.0:
            raise ValueError(f"World dimensions must be positive, got {width!r}x{height!r}")
        self._boundary = Boundary.from_size(width, height)
        logger.info("World resized to %.1fx%.1f", width, height)

    def step(self, tick_index: int, dt: float | None = None) -> TickMetrics:
        start = perf_counter()
        dt = self._config.time_step if dt is None else dt
        neighbor_checks = tick(self._agents, self._config, dt, self._boundary)
        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(
            tick_index, self._agents, self._boundary, neighbor_checks, duration_ms
        )
        return self._metrics

    def snapshot(self, tick_index: int) -> Snapshot:
        metadata = SnapshotMetadata(
            sim_dt=self._config.time_step,
            tick_rate=0.0 if self._config.time_step <= 0 else 1.0 / self._config.time_step,
            seed=self._config.seed,
            config_version=self._config.config_version,
        )
        return Snapshot(
            tick=tick_index,
            metrics=self._metrics,
            agents=[self._agent_snapshot(agent) for agent in self._agents],
            world=SnapshotWorld(half_width=self._boundary.half_width, half_height=self._boundary.half_height),
            metadata=metadata,
        )

    def _bootstrap_population(self) -> None:
        config = self._config
        self._agents.extend(
            initialize_agents(config.initial_population, Role.STANDARD, self._boundary, self._rng, config.base_speed)
        )
        self._agents.extend(
            initialize_agents(
                config.predator_count,
                Role.PREDATOR,
                self._boundary,
                self._rng,
                config.base_speed,
                start_id=len(self._agents),
            )
        )

    @staticmethod
    def _agent_snapshot(agent: Agent) -> Dict[str, object]:
        velocity = agent.velocity
        return {
            "id": agent.id,
            "role": agent.role.value,
            "x": agent.position.x,
            "y": agent.position.y,
            "vx": velocity.x,
            "vy": velocity.y,
            "speed": velocity.length(),
            "orientation": agent.orientation,
            "dvx": agent.last_delta.x,
            "dvy": agent.last_delta.y,
        }
