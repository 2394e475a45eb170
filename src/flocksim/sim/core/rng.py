from __future__ import annotations

import random


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_sign(self) -> float:
        return 1.0 if self._random.random() < 0.5 else -1.0
