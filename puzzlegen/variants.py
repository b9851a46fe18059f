"""Jigsaw layouts the client recognises: the solved chunks with outer stacks and/or bands swapped."""

from __future__ import annotations

from types_puzzle import Grid

from .grid_core import BOX, SIZE, clone_grid

# slot -> chunk index for each recognised arrangement
VARIANT_LAYOUTS: dict[str, list[int]] = {
    "0": [0, 1, 2, 3, 4, 5, 6, 7, 8],
    "LR": [2, 1, 0, 5, 4, 3, 8, 7, 6],
    "TB": [6, 7, 8, 3, 4, 5, 0, 1, 2],
    "HV": [8, 7, 6, 5, 4, 3, 2, 1, 0],
}


def swap_stacks(board: Grid) -> Grid:
    """Exchange the left and right column stacks."""
    out = clone_grid(board)
    for r in range(SIZE):
        for c in range(BOX):
            out[r][c], out[r][c + 2 * BOX] = out[r][c + 2 * BOX], out[r][c]
    return out


def swap_bands(board: Grid) -> Grid:
    """Exchange the top and bottom row bands."""
    out = clone_grid(board)
    for r in range(BOX):
        out[r], out[r + 2 * BOX] = out[r + 2 * BOX], out[r]
    return out


def apply_variant(board: Grid, key: str) -> Grid:
    if key == "0":
        return clone_grid(board)
    if key == "LR":
        return swap_stacks(board)
    if key == "TB":
        return swap_bands(board)
    if key == "HV":
        return swap_bands(swap_stacks(board))
    raise KeyError(f"unknown variant {key!r}; expected one of {sorted(VARIANT_LAYOUTS)}")
