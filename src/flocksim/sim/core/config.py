from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

NEIGHBOR_QUERIES = ("grid", "brute_force")


@dataclass(frozen=True)
class Boundary:
    half_width: float
    half_height: float

    @staticmethod
    def from_size(width: float, height: float) -> "Boundary":
        return Boundary(width / 2.0, height / 2.0)


@dataclass
class FlockingConfig:
    separation_radius: float = 30.0
    # Arc measured counter-clockwise from the heading, not centered on it.
    separation_angle: float = math.pi
    alignment_radius: float = 60.0
    cohesion_radius: float = 80.0
    max_steering_force: float = 120.0
    max_speed: float = 150.0
    separation_strength: float = 1.5
    alignment_strength: float = 1.0
    cohesion_strength: float = 1.0

    def max_radius(self) -> float:
        return max(self.separation_radius, self.alignment_radius, self.cohesion_radius)


@dataclass
class PredatorConfig:
    fov_radius: float = 100.0
    fov_angle: float = math.pi / 2.0
    avoidance_strength: float = 150.0
    max_speed: float = 150.0


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    world_width: float = 800.0
    world_height: float = 800.0
    initial_population: int = 80
    predator_count: int = 4
    base_speed: float = 150.0
    cell_size: float = 100.0
    flock_neighbor_query: str = "grid"
    predator_neighbor_query: str = "brute_force"
    seed: int = 42
    config_version: str = "v1"
    flock: FlockingConfig = field(default_factory=FlockingConfig)
    predator: PredatorConfig = field(default_factory=PredatorConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        logger.debug("Loading simulation config from %s", path)
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)

    def boundary(self) -> Boundary:
        return Boundary.from_size(self.world_width, self.world_height)

    def validate(self) -> None:
        """
        Reject parameters that would make the simulation meaningless or non-finite.

        A cell size smaller than an interaction radius is allowed, since the 3x3 sweep is an
        accepted approximation, but it is reported because neighbors may be missed.
        """

        positive = {
            "time_step": self.time_step,
            "world_width": self.world_width,
            "world_height": self.world_height,
            "cell_size": self.cell_size,
            "flock.max_speed": self.flock.max_speed,
            "predator.max_speed": self.predator.max_speed,
        }
        for name, value in positive.items():
            if not value > 0.0:
                raise ValueError(f"{name} must be positive, got {value!r}")

        non_negative = {
            "initial_population": self.initial_population,
            "predator_count": self.predator_count,
            "base_speed": self.base_speed,
            "flock.separation_radius": self.flock.separation_radius,
            "flock.separation_angle": self.flock.separation_angle,
            "flock.alignment_radius": self.flock.alignment_radius,
            "flock.cohesion_radius": self.flock.cohesion_radius,
            "flock.max_steering_force": self.flock.max_steering_force,
            "flock.separation_strength": self.flock.separation_strength,
            "flock.alignment_strength": self.flock.alignment_strength,
            "flock.cohesion_strength": self.flock.cohesion_strength,
            "predator.fov_radius": self.predator.fov_radius,
            "predator.fov_angle": self.predator.fov_angle,
            "predator.avoidance_strength": self.predator.avoidance_strength,
        }
        for name, value in non_negative.items():
            if not value >= 0.0:
                raise ValueError(f"{name} must be non-negative, got {value!r}")

        for name in ("flock_neighbor_query", "predator_neighbor_query"):
            value = getattr(self, name)
            if value not in NEIGHBOR_QUERIES:
                raise ValueError(f"{name} must be one of {NEIGHBOR_QUERIES}, got {value!r}")

        if self.flock_neighbor_query == "grid" and self.cell_size < self.flock.max_radius():
            logger.warning(
                "cell_size %.2f is smaller than the largest flocking radius %.2f; "
                "the 3x3 neighbor sweep may miss neighbors",
                self.cell_size,
                self.flock.max_radius(),
            )
        if self.predator_neighbor_query == "grid" and self.cell_size < self.predator.fov_radius:
            logger.warning(
                "cell_size %.2f is smaller than the predator FOV radius %.2f; "
                "the 3x3 neighbor sweep may miss neighbors",
                self.cell_size,
                self.predator.fov_radius,
            )


def load_config(raw: dict) -> SimulationConfig:
    flock = FlockingConfig(**(raw.get("flock") or {}))
    predator = PredatorConfig(**(raw.get("predator") or {}))
    sim_values = {k: v for k, v in raw.items() if k not in {"flock", "predator"}}
    return SimulationConfig(flock=flock, predator=predator, **sim_values)
