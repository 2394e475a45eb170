from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from pygame.math import Vector2

# 3x3 block of cells around the query cell.
_NEIGHBOR_CELL_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    (dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1)
)


class NeighborQuery(Protocol):
    def query_neighbors(self, position: Vector2) -> List[int]:
        ...


class SpatialGrid:
    """
    Uniform grid mapping cell keys to the indices of the agents inside them.

    A grid is built once per tick from the current positions and dropped afterwards.
    Queries only visit the 3x3 block around the query cell, so they are complete only for
    radii no larger than `cell_size`.
    """

    def __init__(self, cell_size: float) -> None:
        if cell_size <= 0.0:
            raise ValueError(f"cell_size must be positive, got {cell_size!r}")
        self._cell_size = cell_size
        self._cells: Dict[Tuple[int, int], List[int]] = {}

    @classmethod
    def build(
        cls,
        positions: Sequence[Vector2],
        cell_size: float,
        indices: Optional[Iterable[int]] = None,
    ) -> "SpatialGrid":
        grid = cls(cell_size)
        if indices is None:
            indices = range(len(positions))
        for index in indices:
            grid.insert(index, positions[index])
        return grid

    def insert(self, index: int, position: Vector2) -> None:
        key = self._cell_key(position)
        bucket = self._cells.get(key)
        if bucket is None:
            bucket = []
            self._cells[key] = bucket
        bucket.append(index)

    def query_neighbors(self, position: Vector2) -> List[int]:
        base_x, base_y = self._cell_key(position)
        cells = self._cells
        found: List[int] = []
        for dx, dy in _NEIGHBOR_CELL_OFFSETS:
            bucket = cells.get((base_x + dx, base_y + dy))
            if bucket:
                found.extend(bucket)
        return found

    def cell_counts(self) -> Dict[Tuple[int, int], int]:
        return {key: len(bucket) for key, bucket in self._cells.items() if bucket}

    def _cell_key(self, position: Vector2) -> Tuple[int, int]:
        return (int(position.x // self._cell_size), int(position.y // self._cell_size))


class BruteForceNeighbors:
    """Unindexed strategy: every candidate is returned and exact filtering happens in steering."""

    def __init__(self, indices: Iterable[int]) -> None:
        self._indices = list(indices)

    def query_neighbors(self, position: Vector2) -> List[int]:
        return list(self._indices)


def build_neighbor_query(
    strategy: str,
    positions: Sequence[Vector2],
    indices: Sequence[int],
    cell_size: float,
) -> NeighborQuery:
    if strategy == "grid":
        return SpatialGrid.build(positions, cell_size, indices)
    if strategy == "brute_force":
        return BruteForceNeighbors(indices)
    raise ValueError(f"Unknown neighbor query strategy: {strategy}")
