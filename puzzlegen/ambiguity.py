"""Sequence ambiguity: how many board locations a number sequence can be walked from."""

from __future__ import annotations

from typing import Sequence

from types_puzzle import Grid

from .cellmask import NEIGHBOR_INDICES
from .grid_core import CELL_COUNT, flatten, validate_board


def _walk(values: Sequence[int], numbers: Sequence[int], index: int, cell: int,
          visited: int, blocked: int, limit: int) -> int:
    if index >= len(numbers):
        return 1
    want = numbers[index]
    found = 0
    for n in NEIGHBOR_INDICES[cell]:
        bit = 1 << n
        if visited & bit or blocked & bit or values[n] != want:
            continue
        found += _walk(values, numbers, index + 1, n, visited | bit, blocked, limit - found)
        if found >= limit:
            break
    return found


def count_occurrences(values: Sequence[int], numbers: Sequence[int], *,
                      limit: int = 2, blocked: int = 0) -> int:
    """Count walks matching `numbers` over a flattened board, stopping at `limit`.

    A walk starts on any cell holding `numbers[0]` and steps orthogonally to
    unvisited cells holding the next number. Cells in the `blocked` mask are
    never entered.
    """
    if not numbers:
        return 0
    first = numbers[0]
    total = 0
    for i in range(CELL_COUNT):
        if values[i] != first or blocked & (1 << i):
            continue
        total += _walk(values, numbers, 1, i, 1 << i, blocked, limit - total)
        if total >= limit:
            break
    return total


def count_sequence_occurrences(board: Grid, numbers: Sequence[int], limit: int = 2) -> int:
    """Grid-level entry point; validates the board first."""
    return count_occurrences(flatten(validate_board(board)), numbers, limit=limit)


class AmbiguityChecker:
    """Caches the uniqueness verdict per sequence for one board."""

    def __init__(self, values: Sequence[int], blocked: int = 0) -> None:
        self.values = list(values)
        self.blocked = blocked
        self._cache: dict[tuple[int, ...], bool] = {}
        self.lookups = 0

    def is_unique(self, numbers: Sequence[int]) -> bool:
        self.lookups += 1
        key = tuple(numbers)
        verdict = self._cache.get(key)
        if verdict is None:
            verdict = count_occurrences(self.values, key, limit=2, blocked=self.blocked) == 1
            self._cache[key] = verdict
        return verdict
