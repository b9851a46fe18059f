"""Search target ("snake") generation: cover the non-extrema cells with disjoint, unambiguous orthogonal paths.

Anytime search. Each attempt runs a bounded backtracking search over 81-bit
cell masks, falls back to a greedy panic fill when it stalls, and is scored by
(holes left, adjacent hole pairs). The best candidate across attempts is
returned; only the absence of any candidate is an error.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from types_puzzle import Cell, Grid, SearchTargetDict

from .ambiguity import AmbiguityChecker
from .cellmask import (
    FULL_MASK,
    adjacency_count,
    cells_from_mask,
    degree,
    enumerate_paths,
    iter_bits,
    mask_of,
    paths_through,
    popcount,
    small_islands,
)
from .errors import SearchGenerationError
from .grid_core import flatten, index_to_rc, validate_board
from .logs import log, warn
from .peaks import ExtremaSet, locate_extrema
from .prng import SeededRNG, derive_seed

Clock = Callable[[], float]
Path = tuple[int, ...]


@dataclass
class SearchConfig:
    residue: int = 3  # cells left uncovered on success, pairwise non-adjacent
    min_length: int = 3
    max_length: int = 6
    max_attempts: int = 20
    node_cap: int = 200_000  # recursive visits per attempt
    max_start_candidates: int = 0  # 0 = try every start cell; N > 0 keeps only the N most constrained
    epsilon: float = 0.3  # chance of re-shuffling the top starts on retry attempts
    epsilon_top: int = 3
    length_jitter: float = 0.25  # chance of swapping two neighbouring lengths
    panic_stagnant_rounds: int = 3
    panic_holes_per_round: int = 6
    block_extrema_in_walks: bool = False  # ambiguity walks may not enter extrema cells

    def __post_init__(self) -> None:
        if self.min_length < 2 or self.max_length < self.min_length:
            raise ValueError(f"bad path lengths {self.min_length}..{self.max_length}")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.residue = max(0, self.residue)


@dataclass
class SearchTarget:
    path: list[Cell]
    numbers: list[int]
    id: int

    def to_dict(self) -> SearchTargetDict:
        return {
            "path": [{"r": r, "c": c} for r, c in self.path],
            "numbers": list(self.numbers),
            "id": self.id,
        }

    @classmethod
    def from_dict(cls, data: SearchTargetDict) -> SearchTarget:
        return cls(
            path=[(int(p["r"]), int(p["c"])) for p in data["path"]],
            numbers=[int(n) for n in data["numbers"]],
            id=int(data["id"]),
        )


@dataclass
class SearchResult:
    targets: list[SearchTarget]
    holes: list[Cell]  # available cells no target covers
    available: int
    covered: int
    adjacency: int
    attempts: int
    nodes: int
    success: bool
    timed_out: bool
    residue: int
    elapsed_ms: float = 0.0

    @property
    def holes_left(self) -> int:
        return self.available - self.covered

    def to_list(self) -> list[SearchTargetDict]:
        return [t.to_dict() for t in self.targets]


class Deadline:
    """Wall-clock budget measured with an injectable clock (seconds)."""

    def __init__(self, budget_ms: float, clock: Clock = time.monotonic) -> None:
        self.clock = clock
        self.budget_ms = max(0.0, float(budget_ms))
        self.start = clock()

    def elapsed_ms(self) -> float:
        return (self.clock() - self.start) * 1000.0

    def remaining_ms(self) -> float:
        return max(0.0, self.budget_ms - self.elapsed_ms())

    def expired(self) -> bool:
        return self.elapsed_ms() >= self.budget_ms

    def child(self, budget_ms: float) -> Deadline:
        """A sub-budget that never outlives this one."""
        return Deadline(min(budget_ms, self.remaining_ms()), self.clock)


@dataclass
class _Candidate:
    paths: tuple[Path, ...]
    used: int
    holes_left: int
    adjacency: int

    @property
    def rank(self) -> tuple[int, int]:
        return (self.holes_left, self.adjacency)


class _BestEffort:
    """Deepest state seen during one backtracking run (max used, then min adjacency)."""

    def __init__(self, available: int) -> None:
        self.available = available
        self.used_count = -1
        self.adjacency = 0
        self.used = 0
        self.paths: tuple[Path, ...] = ()

    def offer(self, used: int, paths: tuple[Path, ...], used_count: int) -> None:
        if used_count < self.used_count:
            return
        adjacency = adjacency_count(self.available & ~used)
        if used_count == self.used_count and adjacency >= self.adjacency:
            return
        self.used_count = used_count
        self.adjacency = adjacency
        self.used = used
        self.paths = paths


@dataclass
class _SearchContext:
    values: list[int]
    available: int
    target: int
    residue: int
    config: SearchConfig
    checker: AmbiguityChecker
    rng: SeededRNG
    deadline: Deadline
    perturb: bool = False
    nodes: int = 0
    aborted: str | None = None  # "nodes" or "time"
    best: _BestEffort = field(init=False)

    def __post_init__(self) -> None:
        self.best = _BestEffort(self.available)

    def numbers(self, path: Path) -> list[int]:
        return [self.values[i] for i in path]


def root_is_feasible(extrema: ExtremaSet, config: SearchConfig | None = None) -> bool:
    """Whether the free region left by the extrema can still meet the residue target.

    False when components too small for a path already strand more than
    `residue` cells, or strand two touching cells.
    """
    cfg = config or SearchConfig()
    free = FULL_MASK & ~extrema.to_mask()
    stranded, touching = small_islands(free, cfg.min_length)
    return not touching and stranded <= cfg.residue


def _order_starts(ctx: _SearchContext, free: int) -> list[int]:
    starts = [i for i in iter_bits(free) if degree(i, free) > 0]
    ctx.rng.shuffle(starts)
    starts.sort(key=lambda i: degree(i, free))
    if ctx.perturb and len(starts) > 1 and ctx.rng.chance(ctx.config.epsilon):
        top = min(ctx.config.epsilon_top, len(starts))
        head = starts[:top]
        ctx.rng.shuffle(head)
        starts[:top] = head
    cap = ctx.config.max_start_candidates
    if cap > 0:
        starts = starts[:cap]
    return starts


def _order_lengths(ctx: _SearchContext) -> list[int]:
    lengths = list(range(ctx.config.max_length, ctx.config.min_length - 1, -1))
    for i in range(len(lengths) - 1):
        if ctx.rng.chance(ctx.config.length_jitter):
            lengths[i], lengths[i + 1] = lengths[i + 1], lengths[i]
    return lengths


def _backtrack(ctx: _SearchContext, used: int, paths: tuple[Path, ...], used_count: int) -> _Candidate | None:
    ctx.best.offer(used, paths, used_count)
    ctx.nodes += 1
    if ctx.nodes > ctx.config.node_cap:
        ctx.aborted = "nodes"
        return None
    if ctx.deadline.expired():
        ctx.aborted = "time"
        return None

    free = ctx.available & ~used
    if used_count == ctx.target:
        if adjacency_count(free) == 0:
            return _Candidate(paths, used, popcount(free), 0)
        return None

    remaining = ctx.target - used_count
    if remaining < ctx.config.min_length:
        return None
    stranded, touching = small_islands(free, ctx.config.min_length)
    if touching or stranded > ctx.residue:
        return None

    for start in _order_starts(ctx, free):
        for length in _order_lengths(ctx):
            if length > remaining:
                continue
            options = enumerate_paths(start, length, free)
            ctx.rng.shuffle(options)
            for path in options:
                if not ctx.checker.is_unique(ctx.numbers(path)):
                    continue
                found = _backtrack(ctx, used | mask_of(path), paths + (path,), used_count + length)
                if found is not None:
                    return found
                if ctx.aborted:
                    return None
    return None


def _panic_fill(ctx: _SearchContext, used: int, paths: tuple[Path, ...]) -> tuple[int, tuple[Path, ...]]:
    """Greedily drop unambiguous paths through the most boxed-in holes."""
    cfg = ctx.config
    stagnant = 0
    while stagnant < cfg.panic_stagnant_rounds and not ctx.deadline.expired():
        free = ctx.available & ~used
        # never cover past the residue
        room = min(cfg.max_length, popcount(free) - ctx.residue)
        if room < cfg.min_length:
            break
        holes = [i for i in iter_bits(free) if degree(i, free) > 0]
        if not holes:
            break
        ctx.rng.shuffle(holes)
        holes.sort(key=lambda i: -degree(i, free))
        # a stagnant round moves on to the next window of holes
        lo = stagnant * cfg.panic_holes_per_round
        window = holes[lo:lo + cfg.panic_holes_per_round]
        if not window:
            break

        placed = None
        for hole in window:
            for length in range(room, cfg.min_length - 1, -1):
                for path in paths_through(hole, length, free):
                    if ctx.checker.is_unique(ctx.numbers(path)):
                        placed = path
                        break
                if placed:
                    break
            if placed:
                break

        if placed is None:
            stagnant += 1
            continue
        used |= mask_of(placed)
        paths = paths + (placed,)
        stagnant = 0
    return used, paths


def _score(ctx: _SearchContext, used: int, paths: tuple[Path, ...]) -> _Candidate:
    free = ctx.available & ~used
    return _Candidate(paths, used, popcount(free), adjacency_count(free))


def _is_success(cand: _Candidate, residue: int) -> bool:
    return cand.holes_left <= residue and cand.adjacency == 0


def _to_targets(values: list[int], paths: tuple[Path, ...]) -> list[SearchTarget]:
    return [
        SearchTarget(path=[index_to_rc(i) for i in path], numbers=[values[i] for i in path], id=k)
        for k, path in enumerate(paths)
    ]


def generate_search_targets(
    board: Grid,
    seed: int,
    max_duration_ms: float,
    *,
    extrema: ExtremaSet | None = None,
    config: SearchConfig | None = None,
    clock: Clock = time.monotonic,
    quiet: bool = True,
) -> SearchResult:
    """Cover all but `config.residue` non-extrema cells with unambiguous paths.

    The board is validated before the clock is read. Same board, seed and
    config give the same targets as long as no attempt is cut short by time.
    """
    grid = validate_board(board)
    cfg = config or SearchConfig()
    if extrema is None:
        extrema = locate_extrema(grid)
    values = flatten(grid)

    extrema_mask = extrema.to_mask()
    available = FULL_MASK & ~extrema_mask
    available_count = popcount(available)
    target = max(0, available_count - cfg.residue)
    checker = AmbiguityChecker(values, blocked=extrema_mask if cfg.block_extrema_in_walks else 0)

    deadline = Deadline(max_duration_ms, clock)
    log(f"[info] search seed={seed} available={available_count} target={target} budget={max_duration_ms}ms",
        quiet=quiet)

    best: _Candidate | None = None
    attempts = 0
    nodes = 0
    timed_out = False
    for attempt in range(cfg.max_attempts):
        if attempt > 0 and deadline.expired():
            timed_out = True
            break
        attempts += 1
        budget = deadline.remaining_ms() / (cfg.max_attempts - attempt)
        ctx = _SearchContext(
            values=values,
            available=available,
            target=target,
            residue=cfg.residue,
            config=cfg,
            checker=checker,
            rng=SeededRNG(derive_seed(seed, attempt)),
            deadline=deadline.child(budget),
            perturb=attempt > 0,
        )
        found = _backtrack(ctx, 0, (), 0)
        nodes += ctx.nodes
        if ctx.aborted == "time":
            timed_out = True

        if found is not None:
            cand = found
        else:
            used, paths = _panic_fill(ctx, ctx.best.used, ctx.best.paths)
            cand = _score(ctx, used, paths)

        log(f"[info] attempt {attempt}: holes={cand.holes_left} adjacency={cand.adjacency} "
            f"nodes={ctx.nodes}{' (' + ctx.aborted + ' cap)' if ctx.aborted else ''}", quiet=quiet)
        if best is None or cand.rank < best.rank:
            best = cand
        if _is_success(cand, cfg.residue):
            break

    if best is None:
        raise SearchGenerationError(f"seed {seed}: search produced no candidate")

    success = _is_success(best, cfg.residue)
    if not success:
        warn(f"seed {seed}: best candidate leaves {best.holes_left} holes "
             f"(residue {cfg.residue}) with {best.adjacency} adjacent pairs", quiet=quiet)

    return SearchResult(
        targets=_to_targets(values, best.paths),
        holes=cells_from_mask(available & ~best.used),
        available=available_count,
        covered=popcount(best.used),
        adjacency=best.adjacency,
        attempts=attempts,
        nodes=nodes,
        success=success,
        timed_out=timed_out,
        residue=cfg.residue,
        elapsed_ms=deadline.elapsed_ms(),
    )
