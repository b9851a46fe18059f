# tests/test_daily.py
import pytest

import puzzlegen.daily as daily_mod
from puzzlegen.artifact import read_artifact
from puzzlegen.config import DailyConfig
from puzzlegen.daily import build_code_sequence, generate_daily, run_daily
from puzzlegen.errors import BlockAmbiguityError, CoverageError
from puzzlegen.grid_core import is_valid_solution
from puzzlegen.prng import SeededRNG
from puzzlegen.search_gen import SearchConfig, SearchResult, SearchTarget
from puzzlegen.sudoku_gen import SudokuGame


def test_code_sequence_uses_every_value():
    code = build_code_sequence([3, 7, 9], SeededRNG(1))
    assert len(code) == 5
    assert set(code) == {3, 7, 9}
    assert code == build_code_sequence([3, 7, 9], SeededRNG(1))
    assert build_code_sequence([], SeededRNG(1)) == []


def test_code_sequence_with_too_many_values():
    code = build_code_sequence([1, 2, 3, 4, 5, 6], SeededRNG(2), length=3)
    assert len(code) == 3
    assert len(set(code)) == 3
    assert set(code) <= {1, 2, 3, 4, 5, 6}


class FakePipeline:
    """Stands in for the sudoku generator, the block check and the search."""

    def __init__(self, solved, ambiguous=0, search_ok=True, stranded=0):
        self.solved = solved
        self.ambiguous = ambiguous
        self.stranded = stranded
        self.search_ok = search_ok
        self.sudoku_seeds = []
        self.search_seeds = []

    def generate_sudoku(self, seed, holes=45, max_restarts=20):
        self.sudoku_seeds.append(seed)
        puzzle = [row[:] for row in self.solved]
        puzzle[4][4] = 0
        return SudokuGame(seed=seed, solution=[row[:] for row in self.solved], puzzle=puzzle, removed=1)

    def is_block_ambiguous(self, solution):
        if self.ambiguous:
            self.ambiguous -= 1
            return True
        return False

    def root_is_feasible(self, extrema, config):
        if self.stranded:
            self.stranded -= 1
            return False
        return True

    def generate_search_targets(self, board, seed, max_ms, *, extrema, config, clock, quiet):
        self.search_seeds.append(seed)
        return SearchResult(
            targets=[SearchTarget(path=[(0, 0), (0, 1), (0, 2)], numbers=board[0][:3], id=0)],
            holes=[(8, 8), (6, 6), (8, 6)] if self.search_ok else [(8, 8), (8, 7), (6, 6), (8, 6)],
            available=60,
            covered=57 if self.search_ok else 56,
            adjacency=0 if self.search_ok else 1,
            attempts=1,
            nodes=1,
            success=self.search_ok,
            timed_out=False,
            residue=3,
        )

    def install(self, monkeypatch):
        monkeypatch.setattr(daily_mod, "generate_sudoku", self.generate_sudoku)
        monkeypatch.setattr(daily_mod, "is_block_ambiguous", self.is_block_ambiguous)
        monkeypatch.setattr(daily_mod, "generate_search_targets", self.generate_search_targets)
        monkeypatch.setattr(daily_mod, "root_is_feasible", self.root_is_feasible)
        return self


def test_block_retries_reseed(monkeypatch, solved):
    fake = FakePipeline(solved, ambiguous=2).install(monkeypatch)
    puzzle = generate_daily(20260118, date_label="2026-01-18", quiet=True)
    assert fake.sudoku_seeds == [20260118001, 20260118002, 20260118003]
    assert puzzle.effective_seed == 20260118003
    assert puzzle.block_attempts == 3
    assert puzzle.complete
    assert puzzle.simon_values == [solved[8][8], solved[6][6], solved[8][6]]
    assert set(puzzle.code_sequence) == set(puzzle.simon_values)


def test_stranded_seeds_are_skipped_without_searching(monkeypatch, solved):
    fake = FakePipeline(solved, stranded=2).install(monkeypatch)
    puzzle = generate_daily(7, quiet=True)
    assert fake.sudoku_seeds == [7001, 7002, 7003]
    assert fake.search_seeds == [7003]
    assert puzzle.effective_seed == 7003
    assert puzzle.block_attempts == 3
    assert puzzle.coverage_attempts == 1
    assert puzzle.complete


def test_every_seed_stranded(monkeypatch, solved):
    fake = FakePipeline(solved, search_ok=False, stranded=100).install(monkeypatch)
    with pytest.raises(CoverageError):
        generate_daily(7, config=DailyConfig(block_retries=3, strict=True), quiet=True)
    assert fake.search_seeds == []

    fake = FakePipeline(solved, search_ok=False, stranded=100).install(monkeypatch)
    puzzle = generate_daily(7, config=DailyConfig(block_retries=3), quiet=True)
    assert fake.search_seeds == [7001]
    assert puzzle.effective_seed == 7001
    assert not puzzle.complete


def test_default_retries_keep_reseeding():
    cfg = DailyConfig()
    assert cfg.coverage_retries >= 100
    assert cfg.search.max_start_candidates == 0


def test_real_stranded_board_is_not_coverable(solved, open_board):
    game = SudokuGame(seed=1, solution=solved, puzzle=solved, removed=0)
    assert not daily_mod._coverable(game, DailyConfig())
    game = SudokuGame(seed=1, solution=open_board, puzzle=open_board, removed=0)
    assert daily_mod._coverable(game, DailyConfig())


def test_persistent_block_ambiguity_is_fatal(monkeypatch, solved):
    FakePipeline(solved, ambiguous=10).install(monkeypatch)
    with pytest.raises(BlockAmbiguityError):
        generate_daily(7, config=DailyConfig(block_retries=3), quiet=True)


def test_strict_mode_raises_on_under_coverage(monkeypatch, solved):
    fake = FakePipeline(solved, search_ok=False).install(monkeypatch)
    with pytest.raises(CoverageError):
        generate_daily(7, config=DailyConfig(strict=True, coverage_retries=2), quiet=True)
    assert len(fake.search_seeds) == 3


def test_lenient_mode_publishes_incomplete(monkeypatch, solved):
    FakePipeline(solved, search_ok=False).install(monkeypatch)
    puzzle = generate_daily(7, config=DailyConfig(coverage_retries=1), quiet=True)
    assert not puzzle.complete
    assert puzzle.coverage_attempts == 1  # first try ranks best, later equal tries do not replace it
    assert puzzle.date_label == "custom-7"
    assert len(puzzle.code_sequence) == 5


def test_variant_searches(monkeypatch, solved):
    fake = FakePipeline(solved).install(monkeypatch)
    puzzle = generate_daily(7, config=DailyConfig(variants=["0", "LR", "HV"]), quiet=True)
    assert sorted(puzzle.variants) == ["HV", "LR"]
    assert len(fake.search_seeds) == 3
    assert puzzle.variants["LR"].board[0][:3] == solved[0][6:]
    with pytest.raises(ValueError):
        generate_daily(7, config=DailyConfig(variants=["XX"]), quiet=True)


def test_run_daily_writes_artifact(monkeypatch, solved, tmp_path):
    FakePipeline(solved).install(monkeypatch)
    path = run_daily(20260118, tmp_path, date_label="2026-01-18", quiet=True)
    assert path == tmp_path / "daily-2026-01-18.json"
    art = read_artifact(path)
    assert art.meta.seed == 20260118
    assert art.meta.complete
    assert art.data.solution == solved


@pytest.mark.slow
def test_real_pipeline_small_budget(tmp_path):
    cfg = DailyConfig(max_ms=2000, coverage_retries=0, search=SearchConfig(max_attempts=3))
    puzzle = generate_daily(20260118, date_label="2026-01-18", config=cfg, quiet=True)
    again = generate_daily(20260118, date_label="2026-01-18", config=cfg, quiet=True)
    assert puzzle.game.solution == again.game.solution
    assert puzzle.game.puzzle == again.game.puzzle
    assert puzzle.extrema == again.extrema
    assert is_valid_solution(puzzle.game.solution)
    assert puzzle.effective_seed // 1000 == 20260118
