"""Daily pipeline: sudoku -> block ambiguity retries -> extrema -> search targets -> Simon code."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path

from types_puzzle import Cell, Grid

from .artifact import build_artifact, write_artifact
from .blocks import is_block_ambiguous
from .config import DailyConfig
from .errors import BlockAmbiguityError, CoverageError
from .logs import log, warn
from .peaks import ExtremaSet, locate_extrema
from .prng import SeededRNG
from .search_gen import Clock, SearchResult, generate_search_targets, root_is_feasible
from .sudoku_gen import SudokuGame, generate_sudoku
from .variants import VARIANT_LAYOUTS, apply_variant


@dataclass
class VariantSearch:
    key: str
    layout: list[int]
    board: Grid
    extrema: ExtremaSet
    search: SearchResult

    @property
    def simon_cells(self) -> list[Cell]:
        return list(self.search.holes)

    @property
    def simon_values(self) -> list[int]:
        return [self.board[r][c] for r, c in self.search.holes]


@dataclass
class DailyPuzzle:
    date_label: str
    base_seed: int
    effective_seed: int
    game: SudokuGame
    extrema: ExtremaSet
    search: SearchResult
    code_sequence: list[int]
    variants: dict[str, VariantSearch] = field(default_factory=dict)
    block_attempts: int = 1
    coverage_attempts: int = 1

    @property
    def simon_cells(self) -> list[Cell]:
        return list(self.search.holes)

    @property
    def simon_values(self) -> list[int]:
        return [self.game.solution[r][c] for r, c in self.search.holes]

    @property
    def complete(self) -> bool:
        return self.search.success and all(v.search.success for v in self.variants.values())


def build_code_sequence(values: list[int], rng: SeededRNG, length: int = 5) -> list[int]:
    """Every distinct value at least once, the rest drawn from `values`, then shuffled.

    With more distinct values than slots (an incomplete search), a seeded
    subset of them is used.
    """
    if not values or length < 1:
        return []
    pool = list(dict.fromkeys(values))
    if len(pool) > length:
        pool = list(rng.shuffle(pool))[:length]
    while len(pool) < length:
        pool.append(values[rng.range_int(0, len(values) - 1)])
    return list(rng.shuffle(pool))


def _rank(puzzle: DailyPuzzle) -> tuple[int, int, int]:
    results = [puzzle.search] + [v.search for v in puzzle.variants.values()]
    return (
        sum(not r.success for r in results),
        sum(r.holes_left for r in results),
        sum(r.adjacency for r in results),
    )


def _search_board(board: Grid, seed: int, cfg: DailyConfig, clock: Clock,
                  quiet: bool) -> tuple[ExtremaSet, SearchResult]:
    extrema = locate_extrema(board, exclude_values=cfg.exclude_values)
    result = generate_search_targets(
        board, seed, cfg.max_ms, extrema=extrema, config=cfg.search, clock=clock, quiet=quiet,
    )
    return extrema, result


def _coverable(game: SudokuGame, cfg: DailyConfig) -> bool:
    boards = [game.solution] + [apply_variant(game.solution, key) for key in cfg.variants if key != "0"]
    for board in boards:
        extrema = locate_extrema(board, exclude_values=cfg.exclude_values)
        if not root_is_feasible(extrema, cfg.search):
            return False
    return True


def _build_candidate(game: SudokuGame, base_seed: int, seed: int, label: str, cfg: DailyConfig,
                     clock: Clock, quiet: bool) -> DailyPuzzle:
    extrema, search = _search_board(game.solution, seed, cfg, clock, quiet)
    variants: dict[str, VariantSearch] = {}
    for key in cfg.variants:
        if key == "0":
            continue
        board = apply_variant(game.solution, key)
        v_extrema, v_search = _search_board(board, seed, cfg, clock, quiet)
        variants[key] = VariantSearch(key, VARIANT_LAYOUTS[key], board, v_extrema, v_search)

    holes_values = [game.solution[r][c] for r, c in search.holes]
    code = build_code_sequence(holes_values, SeededRNG(seed), cfg.code_length)
    return DailyPuzzle(
        date_label=label,
        base_seed=base_seed,
        effective_seed=seed,
        game=game,
        extrema=extrema,
        search=search,
        code_sequence=code,
        variants=variants,
    )


def generate_daily(
    base_seed: int,
    *,
    date_label: str | None = None,
    config: DailyConfig | None = None,
    clock: Clock = time.monotonic,
    quiet: bool = False,
) -> DailyPuzzle:
    """Run the whole pipeline for one day.

    Attempt seeds are `base_seed * 1000 + attempt`. A seed whose solution has
    an ambiguous block layout is skipped, and so is one whose extrema already
    strand more free cells than the residue allows (no search is run for it).
    A seed whose search misses the residue target counts against
    `coverage_retries`. Strict configs raise CoverageError when no try
    succeeded, lenient ones return the best try (its `complete` is False).
    """
    cfg = config or DailyConfig()
    label = date_label or f"custom-{base_seed}"
    for key in cfg.variants:
        if key not in VARIANT_LAYOUTS:
            raise ValueError(f"unknown variant {key!r}; expected one of {sorted(VARIANT_LAYOUTS)}")

    best: DailyPuzzle | None = None
    stranded_game: SudokuGame | None = None
    stranded_seed = 0
    block_attempts = 0
    coverage_attempts = 0
    for attempt in range(1, cfg.block_retries + 1):
        seed = base_seed * 1000 + attempt
        block_attempts += 1
        game = generate_sudoku(seed, holes=cfg.sudoku.holes, max_restarts=cfg.sudoku.max_restarts)
        if is_block_ambiguous(game.solution):
            if attempt % 10 == 1:
                log(f"[info] attempt {attempt}: ambiguous block layout, reseeding", quiet=quiet)
            continue

        if not _coverable(game, cfg):
            if stranded_game is None:
                stranded_game, stranded_seed = game, seed
            continue

        coverage_attempts += 1
        candidate = _build_candidate(game, base_seed, seed, label, cfg, clock, quiet)
        candidate.block_attempts = block_attempts
        candidate.coverage_attempts = coverage_attempts
        if best is None or _rank(candidate) < _rank(best):
            best = candidate
        if candidate.complete:
            log(f"[ok] {label}: seed {seed} covers {candidate.search.covered}/{candidate.search.available} cells",
                quiet=quiet)
            return candidate

        warn(f"{label}: seed {seed} left {candidate.search.holes_left} holes "
             f"with {candidate.search.adjacency} adjacent pairs", quiet=quiet)
        if coverage_attempts > cfg.coverage_retries:
            break

    if best is None and stranded_game is not None:
        if cfg.strict:
            raise CoverageError(
                f"{label}: every unambiguous solution in {cfg.block_retries} attempts strands too many cells")
        best = _build_candidate(stranded_game, base_seed, stranded_seed, label, cfg, clock, quiet)
        best.block_attempts = block_attempts
    if best is None:
        raise BlockAmbiguityError(
            f"{label}: every solution in {cfg.block_retries} attempts had an ambiguous block layout")
    if cfg.strict:
        raise CoverageError(
            f"{label}: search missed the residue target in {coverage_attempts} tries "
            f"(best: {best.search.holes_left} holes, {best.search.adjacency} adjacent pairs)")
    warn(f"{label}: publishing incomplete puzzle from seed {best.effective_seed}", quiet=quiet)
    return best


def run_daily(
    base_seed: int,
    out_dir: str | Path,
    *,
    date_label: str | None = None,
    config: DailyConfig | None = None,
    clock: Clock = time.monotonic,
    quiet: bool = False,
) -> Path:
    """Generate one day and write `daily-<label>.json` into `out_dir`."""
    puzzle = generate_daily(base_seed, date_label=date_label, config=config, clock=clock, quiet=quiet)
    path = write_artifact(build_artifact(puzzle), out_dir)
    log(f"[ok] wrote {path}", quiet=quiet)
    return path
