"""Core grid utilities used by every stage: coordinate keys and packing, orthogonal neighbours, unit values, board validation and chunking."""

# Grid is 9x9 list of lists of ints (0..9). 0 = hole.
# Cells are 0-based (row, col) tuples; packed index = row * 9 + col.

from __future__ import annotations

import numpy as np

from types_puzzle import Cell, Grid

from .errors import BoardValidationError

SIZE = 9
BOX = 3
CELL_COUNT = SIZE * SIZE

# up, down, left, right
DIRECTIONS = ((-1, 0), (1, 0), (0, -1), (0, 1))


def in_bounds(r: int, c: int) -> bool:
    return 0 <= r < SIZE and 0 <= c < SIZE


def rc_to_key(r: int, c: int) -> str:
    return f"{r},{c}"


def key_to_rc(key: str) -> Cell:
    r, c = key.split(",")
    return (int(r), int(c))


def rc_to_index(r: int, c: int) -> int:
    return r * SIZE + c


def index_to_rc(index: int) -> Cell:
    return divmod(index, SIZE)


def clone_grid(grid: Grid) -> Grid:
    return [row[:] for row in grid]


def flatten(grid: Grid) -> list[int]:
    return [v for row in grid for v in row]


def which_box(r: int, c: int) -> int:
    return BOX * (r // BOX) + (c // BOX)


def unit_cells_box(b: int) -> list[Cell]:
    r0 = BOX * (b // BOX)
    c0 = BOX * (b % BOX)
    return [(r0 + i, c0 + j) for i in range(BOX) for j in range(BOX)]


def orthogonal_neighbors(r: int, c: int) -> list[Cell]:
    """In-bounds 4-neighbours in a fixed order (up, down, left, right)."""
    out = []
    for dr, dc in DIRECTIONS:
        nr, nc = r + dr, c + dc
        if in_bounds(nr, nc):
            out.append((nr, nc))
    return out


def validate_board(board, *, allow_holes: bool = False) -> Grid:
    """Check shape, dtype and value range; return a plain list-of-lists copy.

    Accepts nested sequences or numpy arrays. Raises BoardValidationError on
    anything that is not 9x9 integers in 1..9 (0..9 with `allow_holes`).
    """
    try:
        arr = np.asarray(board)
    except ValueError as exc:  # ragged rows
        raise BoardValidationError(f"board is not rectangular: {exc}") from exc
    if arr.shape != (SIZE, SIZE):
        raise BoardValidationError(f"board must be {SIZE}x{SIZE}, got shape {arr.shape}")
    if not np.issubdtype(arr.dtype, np.integer):
        raise BoardValidationError(f"board values must be integers, got dtype {arr.dtype}")
    lo = 0 if allow_holes else 1
    if arr.min() < lo or arr.max() > SIZE:
        raise BoardValidationError(f"board values must lie in {lo}..{SIZE}")
    return [[int(v) for v in row] for row in arr.tolist()]


def find_conflicts(grid: Grid) -> set[str]:
    """Keys of every cell that repeats a digit inside its row, column or box."""
    conflicts: set[str] = set()

    def mark(cells: list[Cell]) -> None:
        seen: dict[int, list[Cell]] = {}
        for r, c in cells:
            v = grid[r][c]
            if v == 0:
                continue
            seen.setdefault(v, []).append((r, c))
        for where in seen.values():
            if len(where) > 1:
                conflicts.update(rc_to_key(r, c) for r, c in where)

    for r in range(SIZE):
        mark([(r, c) for c in range(SIZE)])
    for c in range(SIZE):
        mark([(r, c) for r in range(SIZE)])
    for b in range(SIZE):
        mark(unit_cells_box(b))
    return conflicts


def is_valid_solution(grid: Grid) -> bool:
    if any(0 in row for row in grid):
        return False
    return not find_conflicts(grid)


def get_chunks(grid: Grid) -> list[Grid]:
    """The nine 3x3 blocks in row-major block order."""
    chunks = []
    for b in range(SIZE):
        r0 = BOX * (b // BOX)
        c0 = BOX * (b % BOX)
        chunks.append([grid[r0 + i][c0:c0 + BOX] for i in range(BOX)])
    return chunks
