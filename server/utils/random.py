# server/utils/random.py
"""Seeded random numbers matching the browser client bit for bit."""

import math
import time
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_DAY_MS = 1000 * 60 * 60 * 24


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply, keeping the low 32 bits."""
    return (a * b) & _MASK32


class SeededRandom:
    """
    Mulberry32 generator.

    Every client builds the forest from the same seed, so the output must be
    identical to the JavaScript implementation. All state is kept as an
    unsigned 32-bit integer; signedness only matters for the final division,
    which the client performs on the unsigned value as well.
    """

    def __init__(self, seed: int):
        self._state = seed & _MASK32

    def _next(self) -> float:
        self._state = (self._state + 0x6D2B79F5) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return (t ^ (t >> 14)) / 4294967296

    def float(self) -> float:
        """Uniform value in [0, 1)."""
        return self._next()

    def range(self, min_value: float, max_value: float) -> float:
        """Uniform value in [min_value, max_value)."""
        return min_value + self._next() * (max_value - min_value)

    def int(self, min_value: int, max_value: int) -> int:
        """Uniform integer in [min_value, max_value], both ends inclusive."""
        return math.floor(min_value + self._next() * (max_value - min_value + 1))

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """Return a shuffled copy of items; the input is left untouched."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = math.floor(self._next() * (i + 1))
            result[i], result[j] = result[j], result[i]
        return result


def forest_seed(now_ms: Optional[float] = None) -> int:
    """Seed shared by all clients for the current day's forest."""
    if now_ms is None:
        now_ms = time.time() * 1000
    return math.floor(now_ms / _DAY_MS)
