"""Block ambiguity: reject solutions whose 3x3 chunks can be assembled in ways the jigsaw stage cannot tell apart."""

# The jigsaw stage locks the centre chunk and accepts any conflict-free
# assembly, then maps it onto one of the four layouts in VARIANT_LAYOUTS.
# A solution is ambiguous if more assemblies exist than those four, or if two
# chunks are rotations/reflections of each other.

from __future__ import annotations

from types_puzzle import Grid

from .grid_core import BOX, SIZE, get_chunks
from .variants import VARIANT_LAYOUTS

CENTER_SLOT = 4


def _rotate(chunk: Grid) -> Grid:
    return [list(row) for row in zip(*chunk[::-1])]


def _mirror(chunk: Grid) -> Grid:
    return [row[::-1] for row in chunk]


def symmetry_images(chunk: Grid) -> list[Grid]:
    """The 8 images of a chunk under the dihedral group (rotations and reflections)."""
    images = []
    cur = [row[:] for row in chunk]
    for _ in range(4):
        images.append(cur)
        images.append(_mirror(cur))
        cur = _rotate(cur)
    return images


def find_symmetric_twins(chunks: list[Grid]) -> list[tuple[int, int]]:
    """Pairs (i, j), i < j, where chunk j equals some rotation/reflection of chunk i."""
    twins = []
    for i, a in enumerate(chunks):
        images = symmetry_images(a)
        for j in range(i + 1, len(chunks)):
            if any(img == chunks[j] for img in images):
                twins.append((i, j))
    return twins


def _digit_mask(values) -> int:
    m = 0
    for v in values:
        m |= 1 << v
    return m


def _place(slot: int, chunks_rows, chunks_cols, used: list[bool], rows: list[int],
           cols: list[int], locked: dict[int, int], limit: int | None) -> int:
    if slot == SIZE:
        return 1
    band, stack = divmod(slot, BOX)
    candidates = [locked[slot]] if slot in locked else [k for k in range(SIZE) if not used[k]]
    total = 0
    for k in candidates:
        if used[k] and slot not in locked:
            continue
        if any(chunks_rows[k][i] & rows[band * BOX + i] for i in range(BOX)):
            continue
        if any(chunks_cols[k][j] & cols[stack * BOX + j] for j in range(BOX)):
            continue
        used[k] = True
        for i in range(BOX):
            rows[band * BOX + i] |= chunks_rows[k][i]
            cols[stack * BOX + i] |= chunks_cols[k][i]
        total += _place(slot + 1, chunks_rows, chunks_cols, used, rows, cols, locked,
                        None if limit is None else limit - total)
        for i in range(BOX):
            rows[band * BOX + i] &= ~chunks_rows[k][i]
            cols[stack * BOX + i] &= ~chunks_cols[k][i]
        used[k] = slot in locked
        if limit is not None and total >= limit:
            break
    return total


def count_block_arrangements(solution: Grid, *, locked_slot: int | None = CENTER_SLOT,
                             limit: int | None = None) -> int:
    """Conflict-free assemblies of the solution's chunks, stopping at `limit`.

    `locked_slot` keeps its own chunk (the jigsaw centre); pass None to let
    every slot take any chunk.
    """
    chunks = get_chunks(solution)
    chunks_rows = [[_digit_mask(row) for row in ch] for ch in chunks]
    chunks_cols = [[_digit_mask(ch[i][j] for i in range(BOX)) for j in range(BOX)] for ch in chunks]
    used = [False] * SIZE
    locked = {}
    if locked_slot is not None:
        locked[locked_slot] = locked_slot
        used[locked_slot] = True
    return _place(0, chunks_rows, chunks_cols, used, [0] * SIZE, [0] * SIZE, locked, limit)


def is_block_ambiguous(solution: Grid) -> bool:
    if find_symmetric_twins(get_chunks(solution)):
        return True
    allowed = len(VARIANT_LAYOUTS)
    return count_block_arrangements(solution, limit=allowed + 1) > allowed
