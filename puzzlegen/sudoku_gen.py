"""Sudoku board generation: randomized backtracking fill, capped solution counting, and uniqueness-preserving hole punching."""

from __future__ import annotations

from dataclasses import dataclass

from types_puzzle import Grid

from .errors import GenerationError, UniquenessError
from .grid_core import SIZE, clone_grid, get_chunks, which_box
from .prng import SeededRNG

ALL_DIGITS = 0b1111111110  # bits 1..9
DEFAULT_HOLES = 45


@dataclass
class SudokuGame:
    seed: int
    solution: Grid
    puzzle: Grid
    removed: int

    @property
    def chunks(self) -> list[Grid]:
        return get_chunks(self.solution)

    @property
    def puzzle_chunks(self) -> list[Grid]:
        return get_chunks(self.puzzle)


class _Units:
    """Row/column/box digit masks kept in sync with a working grid."""

    def __init__(self, grid: Grid) -> None:
        self.rows = [0] * SIZE
        self.cols = [0] * SIZE
        self.boxes = [0] * SIZE
        self.consistent = True
        for r in range(SIZE):
            for c in range(SIZE):
                d = grid[r][c]
                if d == 0:
                    continue
                bit = 1 << d
                b = which_box(r, c)
                if (self.rows[r] | self.cols[c] | self.boxes[b]) & bit:
                    self.consistent = False
                self.place(r, c, d)

    def options(self, r: int, c: int) -> int:
        return ALL_DIGITS & ~(self.rows[r] | self.cols[c] | self.boxes[which_box(r, c)])

    def place(self, r: int, c: int, d: int) -> None:
        bit = 1 << d
        self.rows[r] |= bit
        self.cols[c] |= bit
        self.boxes[which_box(r, c)] |= bit

    def clear(self, r: int, c: int, d: int) -> None:
        bit = ~(1 << d)
        self.rows[r] &= bit
        self.cols[c] &= bit
        self.boxes[which_box(r, c)] &= bit


class _FillBudget:
    def __init__(self, cap: int) -> None:
        self.cap = cap
        self.nodes = 0

    def spend(self) -> bool:
        self.nodes += 1
        return self.nodes <= self.cap


def _fill_from(grid: Grid, units: _Units, pos: int, rng: SeededRNG, budget: _FillBudget) -> bool:
    if pos == SIZE * SIZE:
        return True
    if not budget.spend():
        return False
    r, c = divmod(pos, SIZE)
    allowed = units.options(r, c)
    digits = rng.shuffle(list(range(1, SIZE + 1)))
    for d in digits:
        if not allowed & (1 << d):
            continue
        grid[r][c] = d
        units.place(r, c, d)
        if _fill_from(grid, units, pos + 1, rng, budget):
            return True
        units.clear(r, c, d)
        grid[r][c] = 0
        if budget.nodes > budget.cap:
            return False
    return False


def generate_solution(rng: SeededRNG, *, max_restarts: int = 20, node_cap: int = 50_000) -> Grid:
    """Fill an empty grid cell by cell, trying digits in seed-shuffled order.

    A try that exceeds `node_cap` visits is abandoned and restarted with the
    generator's advanced state (a fresh shuffle).
    """
    for _ in range(max_restarts):
        grid = [[0] * SIZE for _ in range(SIZE)]
        if _fill_from(grid, _Units(grid), 0, rng, _FillBudget(node_cap)):
            return grid
    raise GenerationError(f"could not fill a solution grid in {max_restarts} restarts")


def _count_from(grid: Grid, units: _Units, limit: int) -> int:
    # most constrained empty cell first
    best = None
    best_opts = 0
    best_n = SIZE + 1
    for r in range(SIZE):
        for c in range(SIZE):
            if grid[r][c] != 0:
                continue
            opts = units.options(r, c)
            n = bin(opts).count("1")
            if n == 0:
                return 0
            if n < best_n:
                best, best_opts, best_n = (r, c), opts, n
                if n == 1:
                    break
        if best_n == 1:
            break
    if best is None:
        return 1

    r, c = best
    total = 0
    for d in range(1, SIZE + 1):
        if not best_opts & (1 << d):
            continue
        grid[r][c] = d
        units.place(r, c, d)
        total += _count_from(grid, units, limit - total)
        units.clear(r, c, d)
        grid[r][c] = 0
        if total >= limit:
            break
    return total


def count_solutions(grid: Grid, limit: int = 2) -> int:
    """Number of completions of `grid`, capped at `limit` (never enumerates past it)."""
    work = clone_grid(grid)
    units = _Units(work)
    if not units.consistent:
        return 0
    return _count_from(work, units, limit)


def punch_holes(solution: Grid, rng: SeededRNG, target: int = DEFAULT_HOLES) -> tuple[Grid, int]:
    """Clear cells in seed-shuffled order while the puzzle keeps a unique solution."""
    puzzle = clone_grid(solution)
    cells = [(r, c) for r in range(SIZE) for c in range(SIZE)]
    rng.shuffle(cells)
    removed = 0
    for r, c in cells:
        if removed >= target:
            break
        backup = puzzle[r][c]
        puzzle[r][c] = 0
        if count_solutions(puzzle, limit=2) == 1:
            removed += 1
        else:
            puzzle[r][c] = backup
    return puzzle, removed


def generate_sudoku(seed: int, *, holes: int = DEFAULT_HOLES, max_restarts: int = 20) -> SudokuGame:
    rng = SeededRNG(seed)
    solution = generate_solution(rng, max_restarts=max_restarts)
    puzzle, removed = punch_holes(solution, rng, target=holes)
    if count_solutions(puzzle, limit=2) != 1:
        raise UniquenessError(f"seed {seed}: punched puzzle is not uniquely solvable")
    return SudokuGame(seed=seed, solution=solution, puzzle=puzzle, removed=removed)

