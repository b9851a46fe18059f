"""Peaks and valleys: cells strictly above (peak) or below (valley) every orthogonal neighbour."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from types_puzzle import Cell, ExtremumDict, ExtremumKind, Grid

from .cellmask import mask_from_cells
from .grid_core import validate_board


@dataclass(frozen=True)
class ExtremaSet:
    peaks: frozenset[Cell]
    valleys: frozenset[Cell]

    @property
    def cells(self) -> frozenset[Cell]:
        return self.peaks | self.valleys

    @property
    def peak_count(self) -> int:
        return len(self.peaks)

    @property
    def valley_count(self) -> int:
        return len(self.valleys)

    def __len__(self) -> int:
        return len(self.peaks) + len(self.valleys)

    def __contains__(self, cell: object) -> bool:
        return cell in self.peaks or cell in self.valleys

    def kind(self, r: int, c: int) -> ExtremumKind | None:
        if (r, c) in self.peaks:
            return "peak"
        if (r, c) in self.valleys:
            return "valley"
        return None

    def to_mask(self) -> int:
        return mask_from_cells(self.cells)

    def to_list(self) -> list[ExtremumDict]:
        out: list[ExtremumDict] = []
        for r, c in sorted(self.cells):
            out.append({"r": r, "c": c, "type": self.kind(r, c)})
        return out


def _shifted(padded: np.ndarray) -> list[np.ndarray]:
    # up, down, left, right neighbours of every interior cell
    return [padded[:-2, 1:-1], padded[2:, 1:-1], padded[1:-1, :-2], padded[1:-1, 2:]]


def locate_extrema(board: Grid, *, exclude_values: Iterable[int] = ()) -> ExtremaSet:
    """Classify every cell of a solved board.

    Out-of-bounds neighbours never disqualify a cell: the board is padded with
    0 for the peak test and 10 for the valley test. Cells whose value is in
    `exclude_values` are never classified.
    """
    arr = np.array(validate_board(board), dtype=np.int16)

    low = np.pad(arr, 1, mode="constant", constant_values=0)
    high = np.pad(arr, 1, mode="constant", constant_values=10)
    is_peak = np.logical_and.reduce([arr > n for n in _shifted(low)])
    is_valley = np.logical_and.reduce([arr < n for n in _shifted(high)])

    excluded = list(exclude_values)
    if excluded:
        keep = ~np.isin(arr, excluded)
        is_peak &= keep
        is_valley &= keep

    peaks = frozenset((int(r), int(c)) for r, c in zip(*np.nonzero(is_peak)))
    valleys = frozenset((int(r), int(c)) for r, c in zip(*np.nonzero(is_valley)))
    return ExtremaSet(peaks=peaks, valleys=valleys)
