"""Random number generation utilities for reproducible training runs."""

import random
from typing import MutableSequence, Optional


class SeededRNG:
    """Seeded random number generator for reproducible results.

    Every randomized component (operators, policies, the operator picker) owns
    its own instance, so the random stream of one component never depends on
    how often another one was used.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._random = random.Random(seed)

    def random(self) -> float:
        """Generate random float in [0, 1)."""
        return self._random.random()

    def next_int(self, bound: int) -> int:
        """Generate random integer in [0, bound)."""
        if bound <= 0:
            raise ValueError(f"Bound must be positive, got {bound}")
        return self._random.randrange(bound)

    def shuffle(self, seq: MutableSequence) -> None:
        """Shuffle sequence in place."""
        self._random.shuffle(seq)

    def __repr__(self) -> str:
        return f"SeededRNG(seed={self.seed})"
