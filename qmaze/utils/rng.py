"""Random number generation utilities for reproducible training runs."""

import random
from typing import Optional


class SeededRNG:
    """
    Explicit random source handle.

    Every operation that samples takes one of these, so a run is fully
    determined by its seed and the order in which generation and training
    consume numbers.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._random = random.Random(seed)

    def random(self) -> float:
        """Generate random float in [0, 1)."""
        return self._random.random()

    def randint(self, a: int, b: int) -> int:
        """Generate random integer in [a, b]."""
        return self._random.randint(a, b)

    def randrange(self, stop: int) -> int:
        """Generate random integer in [0, stop)."""
        return self._random.randrange(stop)
