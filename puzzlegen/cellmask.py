"""81-bit cell masks for the search: neighbour tables, flood-fill islands, adjacency counting and simple-path enumeration.

A mask is a plain Python int; bit `r * 9 + c` set means the cell is in the set.
Ints are immutable, so search states can be passed down the recursion without
copy/undo bookkeeping.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from types_puzzle import Cell

from .grid_core import CELL_COUNT, index_to_rc, orthogonal_neighbors, rc_to_index

FULL_MASK = (1 << CELL_COUNT) - 1

NEIGHBOR_INDICES: tuple[tuple[int, ...], ...] = tuple(
    tuple(rc_to_index(nr, nc) for nr, nc in orthogonal_neighbors(*index_to_rc(i)))
    for i in range(CELL_COUNT)
)
NEIGHBOR_MASKS: tuple[int, ...] = tuple(sum(1 << n for n in ns) for ns in NEIGHBOR_INDICES)
# right and down neighbours only, so each adjacent pair is seen once
FORWARD_MASKS: tuple[int, ...] = tuple(
    sum(1 << n for n in NEIGHBOR_INDICES[i] if n > i) for i in range(CELL_COUNT)
)


def popcount(mask: int) -> int:
    return bin(mask).count("1")


def iter_bits(mask: int) -> Iterator[int]:
    """Indices of set bits, ascending."""
    while mask:
        low = mask & -mask
        yield low.bit_length() - 1
        mask ^= low


def mask_of(indices: Iterable[int]) -> int:
    m = 0
    for i in indices:
        m |= 1 << i
    return m


def mask_from_cells(cells: Iterable[Cell]) -> int:
    return mask_of(rc_to_index(r, c) for r, c in cells)


def cells_from_mask(mask: int) -> list[Cell]:
    return [index_to_rc(i) for i in iter_bits(mask)]


def degree(index: int, free: int) -> int:
    """Number of orthogonal neighbours of `index` that are still free."""
    return popcount(NEIGHBOR_MASKS[index] & free)


def components(free: int) -> list[int]:
    """Connected components of `free` under orthogonal adjacency, as masks."""
    out = []
    rest = free
    while rest:
        comp = frontier = rest & -rest
        while frontier:
            grow = 0
            for i in iter_bits(frontier):
                grow |= NEIGHBOR_MASKS[i]
            grow &= rest & ~comp
            comp |= grow
            frontier = grow
        out.append(comp)
        rest &= ~comp
    return out


def small_islands(free: int, min_size: int = 3) -> tuple[int, bool]:
    """Total size of components smaller than `min_size`, and whether one of them has touching cells."""
    total = 0
    touching = False
    for comp in components(free):
        size = popcount(comp)
        if size < min_size:
            total += size
            if size > 1:
                touching = True
    return total, touching


def adjacency_count(free: int) -> int:
    """Orthogonally adjacent pairs inside `free`."""
    pairs = 0
    for i in iter_bits(free):
        pairs += popcount(FORWARD_MASKS[i] & free)
    return pairs


def _extend(path: list[int], visited: int, length: int, free: int, out: list[tuple[int, ...]]) -> None:
    if len(path) == length:
        out.append(tuple(path))
        return
    for n in NEIGHBOR_INDICES[path[-1]]:
        bit = 1 << n
        if free & bit and not visited & bit:
            path.append(n)
            _extend(path, visited | bit, length, free, out)
            path.pop()


def enumerate_paths(start: int, length: int, free: int) -> list[tuple[int, ...]]:
    """All simple orthogonal paths of exactly `length` cells from `start` through `free` cells."""
    if not free & (1 << start):
        return []
    out: list[tuple[int, ...]] = []
    _extend([start], 1 << start, length, free, out)
    return out


def paths_through(cell: int, length: int, free: int) -> list[tuple[int, ...]]:
    """Simple paths of `length` free cells that visit `cell`; paths starting at `cell` come first."""
    if not free & (1 << cell):
        return []
    r0, c0 = index_to_rc(cell)
    out = enumerate_paths(cell, length, free)
    for i in iter_bits(free):
        if i == cell:
            continue
        r, c = index_to_rc(i)
        if abs(r - r0) + abs(c - c0) >= length:
            continue
        out.extend(p for p in enumerate_paths(i, length, free) if cell in p)
    return out
