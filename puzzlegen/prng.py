"""Deterministic Park-Miller generator used by every generation stage, plus date-derived seeds.

The recurrence is integer-only so that a seed reproduces the same stream in the
browser fallback and in this offline batch generator.
"""

from __future__ import annotations

from datetime import date
from typing import MutableSequence, TypeVar

MODULUS = 2147483647  # 2**31 - 1
MULTIPLIER = 16807

T = TypeVar("T")


def normalize_seed(seed: int) -> int:
    """Fold any integer into the valid state range [1, MODULUS - 1].

    Uses a truncated remainder (sign follows the dividend) to match the
    JavaScript `%` operator of the client generator.
    """
    seed = int(seed)
    state = abs(seed) % MODULUS
    if seed < 0:
        state = -state
    if state <= 0:
        state += MODULUS - 1
    if state <= 0:
        state = 1
    return state


def derive_seed(seed: int, salt: int) -> int:
    """Deterministic perturbation of `seed` for retry attempts."""
    return normalize_seed(seed) + 104729 * int(salt)


class SeededRNG:
    def __init__(self, seed: int) -> None:
        self.seed = normalize_seed(seed)
        self.state = self.seed

    def next(self) -> int:
        self.state = (self.state * MULTIPLIER) % MODULUS
        return self.state

    def uniform(self) -> float:
        return (self.next() - 1) / (MODULUS - 1)

    def range_int(self, lo: int, hi: int) -> int:
        """Uniform integer in [lo, hi] (both inclusive)."""
        if hi < lo:
            raise ValueError(f"empty range [{lo}, {hi}]")
        return int(self.uniform() * (hi - lo + 1)) + lo

    def chance(self, p: float) -> bool:
        return self.uniform() < p

    def shuffle(self, items: MutableSequence[T]) -> MutableSequence[T]:
        """Fisher-Yates from the end, in place; returns `items` for chaining."""
        for i in range(len(items) - 1, 0, -1):
            j = self.range_int(0, i)
            items[i], items[j] = items[j], items[i]
        return items


def daily_seed(day: date) -> int:
    """YYYYMMDD as an integer, e.g. 2026-01-18 -> 20260118."""
    return day.year * 10000 + day.month * 100 + day.day
