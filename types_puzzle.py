# types_puzzle.py
from __future__ import annotations

from typing import Literal, TypedDict

Grid = list[list[int]]
"""A 9x9 board as rows of integers (0 = hole)."""

Cell = tuple[int, int]
"""A (row, col) coordinate, 0-based."""

ExtremumKind = Literal["peak", "valley"]


class CellDict(TypedDict):
    """Wire form of a cell inside the daily artifact."""

    r: int
    c: int


class ExtremumDict(TypedDict):
    r: int
    c: int
    type: ExtremumKind


class SearchTargetDict(TypedDict):
    """A number-search target ("snake") as the client consumes it."""

    path: list[CellDict]  # 3..6 orthogonally adjacent cells
    numbers: list[int]  # board values along the path
    id: int  # commit order inside one generation run
