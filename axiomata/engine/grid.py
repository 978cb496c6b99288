"""Grid representation helpers.

Grids are plain ``list`` of ``list`` so the solver can mutate a single
working copy in place; everything here is bounds-checked.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..core.constants import ORTHOGONAL_STEPS, Bounds, LineDirection, TileState
from ..core.models import Grid, Position


def create_empty_grid(size: int) -> Grid:
    return [[None] * size for _ in range(size)]


def copy_grid(grid: Grid) -> Grid:
    return [list(row) for row in grid]


def apply_givens(grid: Grid, givens: Mapping[Position, TileState]) -> Grid:
    """Return a copy of ``grid`` with the givens written in.

    Givens that fall outside the grid are ignored.
    """

    result = copy_grid(grid)
    bounds = Bounds(len(result))
    for (row, col), state in givens.items():
        if bounds.contains(row, col):
            result[row][col] = state
    return result


def all_positions(size: int) -> List[Position]:
    return [Position(row, col) for row in range(size) for col in range(size)]


def is_complete(grid: Grid) -> bool:
    return all(cell is not None for row in grid for cell in row)


def filled_count(grid: Grid) -> int:
    return sum(1 for row in grid for cell in row if cell is not None and cell.is_piece)


def fill_ratio(grid: Grid) -> float:
    total = sum(len(row) for row in grid)
    return filled_count(grid) / total if total else 0.0


def empty_count(grid: Grid) -> int:
    return sum(1 for row in grid for cell in row if cell == TileState.EMPTY)


def neighbors(size: int, row: int, col: int,
              steps: Sequence[Tuple[int, int]] = ORTHOGONAL_STEPS) -> Iterator[Position]:
    bounds = Bounds(size)
    for dr, dc in steps:
        nr, nc = row + dr, col + dc
        if bounds.contains(nr, nc):
            yield Position(nr, nc)


def line_cells(size: int, direction: LineDirection, index: int) -> List[Position]:
    """Cells of one row, column, or down-right diagonal (``col - row == index``)."""

    if direction == LineDirection.ROW:
        if not 0 <= index < size:
            return []
        return [Position(index, col) for col in range(size)]
    if direction == LineDirection.COL:
        if not 0 <= index < size:
            return []
        return [Position(row, index) for row in range(size)]
    return [Position(row, row + index) for row in range(size) if 0 <= row + index < size]


def all_diagonals(size: int) -> List[List[Position]]:
    """Every down-right diagonal with at least two cells."""

    return [line_cells(size, LineDirection.DIAGONAL, offset)
            for offset in range(-(size - 2), size - 1)]


def tiles_at(grid: Grid, cells: Iterable[Position]) -> List[Optional[TileState]]:
    """States at ``cells``; out-of-range cells are skipped."""

    bounds = Bounds(len(grid))
    return [grid[row][col] for row, col in cells if bounds.contains(row, col)]
