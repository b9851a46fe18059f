# tests/conftest.py
import sys
from pathlib import Path

import pytest

# Add project root to sys.path so "puzzlegen", "apps" and "types_puzzle" can be imported in tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

SOLVED = [
    [2, 6, 4, 3, 8, 9, 5, 1, 7],
    [5, 1, 7, 6, 4, 2, 9, 8, 3],
    [3, 8, 9, 7, 5, 1, 4, 6, 2],
    [4, 2, 6, 5, 1, 7, 3, 9, 8],
    [9, 3, 8, 2, 6, 4, 1, 7, 5],
    [1, 7, 5, 8, 9, 3, 6, 2, 4],
    [6, 4, 2, 1, 3, 8, 7, 5, 9],
    [7, 5, 3, 9, 2, 6, 8, 4, 1],
    [8, 9, 1, 4, 7, 5, 2, 3, 6],
]

# Shifted-row base pattern: every chunk is a shift of its neighbours, so the
# blocks can be reassembled in many conflict-free ways.
PATTERN = [[(3 * (r % 3) + r // 3 + c) % 9 + 1 for c in range(9)] for r in range(9)]


@pytest.fixture
def solved():
    return [row[:] for row in SOLVED]


@pytest.fixture
def pattern():
    return [row[:] for row in PATTERN]


@pytest.fixture
def frozen_clock():
    return lambda: 0.0


@pytest.fixture(scope="session")
def open_board():
    # a seeded solution whose extrema leave no stranded cells beyond the residue
    from puzzlegen.prng import SeededRNG
    from puzzlegen.sudoku_gen import generate_solution

    return generate_solution(SeededRNG(108))
