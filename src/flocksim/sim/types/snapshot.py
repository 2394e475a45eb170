from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics | None
    agents: List[Dict[str, Any]]
    world: "SnapshotWorld"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotWorld:
    half_width: float
    half_height: float


@dataclass(slots=True)
class SnapshotMetadata:
    sim_dt: float
    tick_rate: float
    seed: int
    config_version: str
