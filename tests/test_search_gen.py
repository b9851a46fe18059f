# tests/test_search_gen.py
import itertools

import pytest

from puzzlegen.ambiguity import count_sequence_occurrences
from puzzlegen.errors import BoardValidationError
from puzzlegen.peaks import ExtremaSet, locate_extrema
from puzzlegen.cellmask import FULL_MASK, small_islands
from puzzlegen.search_gen import Deadline, SearchConfig, SearchTarget, generate_search_targets, root_is_feasible

ROW0 = [(0, c) for c in range(9)]
EVERYTHING_BUT_ROW0 = ExtremaSet(
    peaks=frozenset((r, c) for r in range(1, 9) for c in range(9)),
    valleys=frozenset(),
)


def _check_invariants(board, result, extrema):
    covered = set()
    for k, t in enumerate(result.targets):
        assert t.id == k
        assert 3 <= len(t.path) <= 6
        assert len(set(t.path)) == len(t.path)
        for (ra, ca), (rb, cb) in zip(t.path, t.path[1:]):
            assert abs(ra - rb) + abs(ca - cb) == 1
        assert t.numbers == [board[r][c] for r, c in t.path]
        assert not set(t.path) & extrema.cells
        assert not set(t.path) & covered
        covered |= set(t.path)
    assert result.covered == len(covered)
    available = {(r, c) for r in range(9) for c in range(9)} - extrema.cells
    assert result.available == len(available)
    assert set(result.holes) == available - covered
    assert result.holes_left == len(result.holes)
    return covered


def test_deadline_with_fake_clock():
    now = [10.0]
    d = Deadline(500, clock=lambda: now[0])
    assert not d.expired() and d.remaining_ms() == 500
    now[0] += 0.2
    assert d.elapsed_ms() == pytest.approx(200)
    child = d.child(1000)
    assert child.budget_ms == pytest.approx(300)
    now[0] += 0.4
    assert d.expired() and child.expired()


def test_search_config_rejects_bad_lengths():
    with pytest.raises(ValueError):
        SearchConfig(min_length=4, max_length=3)
    with pytest.raises(ValueError):
        SearchConfig(max_attempts=0)
    assert SearchConfig(residue=-2).residue == 0


def test_row_strip_has_exactly_one_cover(solved, frozen_clock):
    cfg = SearchConfig(block_extrema_in_walks=True)
    result = generate_search_targets(solved, 7, 1000, extrema=EVERYTHING_BUT_ROW0, config=cfg,
                                     clock=frozen_clock)
    _check_invariants(solved, result, EVERYTHING_BUT_ROW0)
    assert result.success
    assert result.attempts == 1
    assert sorted(result.holes) == [(0, 0), (0, 4), (0, 8)]
    assert result.covered == 6 and result.adjacency == 0
    assert sorted(len(t.path) for t in result.targets) == [3, 3]


def test_unreachable_target_returns_best_effort(solved, frozen_clock):
    extrema = ExtremaSet(
        peaks=frozenset(cell for cell in itertools.product(range(9), range(9)) if cell not in {(0, 0), (0, 1)}),
        valleys=frozenset(),
    )
    cfg = SearchConfig(residue=0, max_attempts=2)
    result = generate_search_targets(solved, 7, 1000, extrema=extrema, config=cfg, clock=frozen_clock)
    assert not result.success
    assert result.targets == []
    assert result.attempts == 2
    assert sorted(result.holes) == [(0, 0), (0, 1)]
    assert result.adjacency == 1


def test_full_board_invariants_and_determinism(open_board, frozen_clock):
    cfg = SearchConfig(node_cap=1500, max_attempts=2)
    extrema = locate_extrema(open_board)
    a = generate_search_targets(open_board, 20260118, 1000, config=cfg, clock=frozen_clock)
    b = generate_search_targets(open_board, 20260118, 1000, config=cfg, clock=frozen_clock)
    assert a.to_list() == b.to_list()
    assert a.holes == b.holes
    assert a.targets
    _check_invariants(open_board, a, extrema)
    for t in a.targets:
        assert count_sequence_occurrences(open_board, t.numbers) == 1
    assert a.nodes <= (cfg.node_cap + 1) * a.attempts
    assert a.holes_left >= cfg.residue


def test_board_is_validated_before_the_clock_is_read(solved):
    def clock():
        raise AssertionError("clock read before validation")

    with pytest.raises(BoardValidationError):
        generate_search_targets(solved[:8], 1, 1000, clock=clock)
    with pytest.raises(BoardValidationError):
        generate_search_targets([row[:8] for row in solved], 1, 1000, clock=clock)


def test_expired_budget_stops_after_first_attempt(solved):
    now = [0.0]

    def jumping_clock():
        now[0] += 0.01
        return now[0]

    result = generate_search_targets(solved, 1, 5, clock=jumping_clock)
    assert result.timed_out
    assert result.attempts == 1
    assert result.targets == []
    assert not result.success


def test_tiny_real_budget_returns_valid_result(solved):
    result = generate_search_targets(solved, 20260118, 5)
    _check_invariants(solved, result, locate_extrema(solved))
    assert result.attempts >= 1


def test_target_dict_round_trip():
    t = SearchTarget(path=[(0, 0), (0, 1), (1, 1)], numbers=[2, 6, 1], id=4)
    d = t.to_dict()
    assert d == {"path": [{"r": 0, "c": 0}, {"r": 0, "c": 1}, {"r": 1, "c": 1}], "numbers": [2, 6, 1], "id": 4}
    assert SearchTarget.from_dict(d) == t


def test_stranded_board_is_pruned_at_the_root(solved, frozen_clock):
    extrema = locate_extrema(solved)
    stranded, touching = small_islands(FULL_MASK & ~extrema.to_mask())
    assert touching and stranded > 3
    assert not root_is_feasible(extrema)
    cfg = SearchConfig(max_attempts=3)
    result = generate_search_targets(solved, 20260118, 1000, extrema=extrema, config=cfg, clock=frozen_clock)
    assert result.nodes == result.attempts == 3
    assert not result.success


def test_open_board_passes_the_root_check(open_board):
    assert root_is_feasible(locate_extrema(open_board))


@pytest.mark.slow
def test_long_budget_reaches_three_separated_holes(open_board):
    extrema = locate_extrema(open_board)
    result = generate_search_targets(open_board, 20260118, 60_000, extrema=extrema)
    _check_invariants(open_board, result, extrema)
    assert result.success
    assert result.covered == 81 - len(extrema) - 3
    assert result.holes_left == 3
    assert result.adjacency == 0
    for (ra, ca), (rb, cb) in itertools.combinations(result.holes, 2):
        assert abs(ra - rb) + abs(ca - cb) != 1
    for t in result.targets:
        assert count_sequence_occurrences(open_board, t.numbers) == 1
