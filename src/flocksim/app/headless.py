from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.agent import Role
from ..sim.core.config import SimulationConfig
from ..sim.core.spatial_grid import SpatialGrid
from ..sim.core.world import World
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "population",
    "predators",
    "neighbor_checks",
    "avg_speed",
    "tick_ms",
]

_DETAILED_HEADER = [
    "tick",
    "population",
    "predators",
    "neighbor_checks",
    "avg_speed",
    "tick_ms",
    "max_speed",
    "outside_boundary",
    "neighbor_checks_per_agent",
    "tick_ms_per_agent",
    "occupied_cells",
    "avg_agents_per_cell",
    "max_cell_occupancy",
    "population_density",
]


def _format_basic_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.predators,
        metrics.neighbor_checks,
        f"{metrics.average_speed:.4f}",
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(world: World, metrics: TickMetrics, tick_ms: float) -> list[object]:
    population = metrics.population
    if population <= 0:
        neighbor_checks_per_agent = 0.0
        tick_ms_per_agent = 0.0
        occupied_cells = 0
        avg_agents_per_cell = 0.0
        max_cell_occupancy = 0
        population_density = 0.0
    else:
        neighbor_checks_per_agent = metrics.neighbor_checks / population
        tick_ms_per_agent = tick_ms / population

        # Occupancy of the grid the flock is queried through; predators are not indexed.
        agents = world.agents
        flock_indices = [i for i, agent in enumerate(agents) if agent.role is Role.STANDARD]
        cell_counts = SpatialGrid.build(
            [agent.position for agent in agents], world.config.cell_size, flock_indices
        ).cell_counts()

        occupied_cells = len(cell_counts)
        avg_agents_per_cell = len(flock_indices) / occupied_cells if occupied_cells else 0.0
        max_cell_occupancy = max(cell_counts.values(), default=0)

        boundary = world.boundary
        world_area = 4.0 * boundary.half_width * boundary.half_height
        population_density = population / world_area if world_area > 0 else 0.0

    return [
        *_format_basic_row(metrics, tick_ms),
        f"{metrics.max_speed:.4f}",
        metrics.outside_boundary,
        f"{neighbor_checks_per_agent:.4f}",
        f"{tick_ms_per_agent:.4f}",
        occupied_cells,
        f"{avg_agents_per_cell:.4f}",
        max_cell_occupancy,
        f"{population_density:.6f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p95": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p95": _percentile(sorted_values, 0.95),
        "p99": _percentile(sorted_values, 0.99),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 5000,
    config_path: Optional[Path] = None,
) -> World:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed

    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    world = World(config)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    tick_ms_series: list[float] = []
    neighbor_checks_series: list[float] = []
    avg_speed_series: list[float] = []
    max_tick_ms = (-1.0, -1)
    max_neighbor_checks = (-1, -1)

    try:
        for tick in range(steps):
            metrics = world.step(tick)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms

            if summary_path:
                tick_ms_series.append(tick_ms)
                neighbor_checks_series.append(float(metrics.neighbor_checks))
                avg_speed_series.append(metrics.average_speed)
                if tick_ms > max_tick_ms[0]:
                    max_tick_ms = (tick_ms, tick)
                if metrics.neighbor_checks > max_neighbor_checks[0]:
                    max_neighbor_checks = (metrics.neighbor_checks, tick)

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(world, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    logger.info("Headless run finished after %d steps", steps)

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "population": len(world.agents),
            "tick_ms": _summary_stats(tick_ms_series),
            "neighbor_checks": _summary_stats(neighbor_checks_series),
            "avg_speed": _summary_stats(avg_speed_series),
            "peaks": {
                "tick_ms": {"value": float(max_tick_ms[0]), "tick": max_tick_ms[1]},
                "neighbor_checks": {"value": max_neighbor_checks[0], "tick": max_neighbor_checks[1]},
            },
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "neighbor_checks": _summary_stats(neighbor_checks_series[tail_slice]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless flocking simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file overriding the default configuration")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--summary-window",
        type=int,
        default=5000,
        help="Tail window size (ticks) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO", help="Python logging level")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config_path=args.config,
    )


if __name__ == "__main__":
    main()
