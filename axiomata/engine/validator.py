"""Constraint evaluation against complete or partially filled grids.

Each constraint kind has exactly one evaluator returning a
:class:`ConstraintEvaluation`. The validator reports ``not violated`` as the
per-constraint status; the solver additionally prunes on
``still_satisfiable``. Unset cells (``None``) are unknown, never failures.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from ..core.constants import (DIAGONAL_STEPS, ORTHOGONAL_STEPS, Bounds, LineDirection,
                              TileState)
from ..core.models import (SATISFIED, STUCK, VIOLATED, AdjacencyConstraint,
                           BalanceConstraint, Constraint, ConstraintEvaluation,
                           CountConstraint, DiagonalAdjacencyConstraint, Grid,
                           PairConstraint, PatternConstraint, Position, RegionConstraint,
                           ValidationResult)
from .grid import all_diagonals, all_positions, line_cells, tiles_at


Evaluator = Callable[..., ConstraintEvaluation]


# ----------------------------------------------------------------------
# Per-kind evaluators
# ----------------------------------------------------------------------
def _evaluate_touching(
    tile_type: TileState,
    cannot_touch: bool,
    grid: Grid,
    size: int,
    focus: Optional[Position],
    steps: Sequence,
) -> ConstraintEvaluation:
    if not cannot_touch:
        return SATISFIED
    bounds = Bounds(size)
    cells = [focus] if focus is not None else all_positions(size)
    for row, col in cells:
        if not bounds.contains(row, col) or grid[row][col] != tile_type:
            continue
        for dr, dc in steps:
            nr, nc = row + dr, col + dc
            if bounds.contains(nr, nc) and grid[nr][nc] == tile_type:
                return VIOLATED
    return SATISFIED


def _evaluate_adjacency(constraint: AdjacencyConstraint, grid: Grid, size: int,
                        focus: Optional[Position] = None) -> ConstraintEvaluation:
    return _evaluate_touching(constraint.tile_type, constraint.cannot_touch,
                              grid, size, focus, ORTHOGONAL_STEPS)


def _evaluate_diagonal_adjacency(constraint: DiagonalAdjacencyConstraint, grid: Grid, size: int,
                                 focus: Optional[Position] = None) -> ConstraintEvaluation:
    return _evaluate_touching(constraint.tile_type, constraint.cannot_touch,
                              grid, size, focus, DIAGONAL_STEPS)


def _evaluate_tally(expected: Dict[TileState, int],
                    tiles: Sequence[Optional[TileState]]) -> ConstraintEvaluation:
    """Exact tally check where undeclared states are expected zero times."""

    actual = dict.fromkeys(expected, 0)
    unknown = 0
    for tile in tiles:
        if tile is None:
            unknown += 1
            continue
        if tile not in actual:
            return VIOLATED
        actual[tile] += 1
        if actual[tile] > expected[tile]:
            return VIOLATED

    deficit = sum(expected[state] - actual[state] for state in expected)
    if unknown == 0:
        return SATISFIED if deficit == 0 else VIOLATED
    return SATISFIED if deficit == unknown else STUCK


def _evaluate_count(constraint: CountConstraint, grid: Grid, size: int,
                    focus: Optional[Position] = None) -> ConstraintEvaluation:
    cells = line_cells(size, constraint.direction, constraint.index)
    if not cells:
        return SATISFIED
    return _evaluate_tally(constraint.counts_map(), tiles_at(grid, cells))


def _evaluate_region(constraint: RegionConstraint, grid: Grid, size: int,
                     focus: Optional[Position] = None) -> ConstraintEvaluation:
    tiles = tiles_at(grid, constraint.cells)
    if not tiles:
        return SATISFIED
    return _evaluate_tally(constraint.counts_map(), tiles)


def _evaluate_pair(constraint: PairConstraint, grid: Grid, size: int,
                   focus: Optional[Position] = None) -> ConstraintEvaluation:
    bounds = Bounds(size)
    first, second = constraint.cell1, constraint.cell2
    if not bounds.contains(*first) or not bounds.contains(*second):
        return SATISFIED
    tile1 = grid[first.row][first.col]
    tile2 = grid[second.row][second.col]
    if tile1 is None or tile2 is None:
        return SATISFIED
    if (tile1 == tile2) == constraint.must_be_same:
        return SATISFIED
    return VIOLATED


def _pattern_lines(constraint: PatternConstraint, size: int,
                   focus: Optional[Position]) -> List[List[Position]]:
    if constraint.direction != LineDirection.DIAGONAL or constraint.index is not None:
        return [line_cells(size, constraint.direction, constraint.index)]
    if focus is not None:
        return [line_cells(size, LineDirection.DIAGONAL, focus.col - focus.row)]
    return all_diagonals(size)


def _evaluate_pattern(constraint: PatternConstraint, grid: Grid, size: int,
                      focus: Optional[Position] = None) -> ConstraintEvaluation:
    limit = constraint.max_in_a_row
    for cells in _pattern_lines(constraint, size, focus):
        run = 0
        last: Optional[TileState] = None
        for tile in tiles_at(grid, cells):
            if (tile is None or tile == TileState.EMPTY
                    or (constraint.tile_type is not None and tile != constraint.tile_type)):
                run = 0
                last = None
                continue
            if tile == last:
                run += 1
            else:
                run = 1
                last = tile
            if run > limit:
                return VIOLATED
    return SATISFIED


def _evaluate_balance(constraint: BalanceConstraint, grid: Grid, size: int,
                      focus: Optional[Position] = None) -> ConstraintEvaluation:
    if not constraint.must_be_equal or len(set(constraint.tile_types)) < 2:
        return SATISFIED
    counts = dict.fromkeys(constraint.tile_types, 0)
    unknown = 0
    for tile in tiles_at(grid, line_cells(size, constraint.direction, constraint.index)):
        if tile is None:
            unknown += 1
        elif tile in counts:
            counts[tile] += 1

    top = max(counts.values())
    gap = sum(top - value for value in counts.values())
    if unknown == 0:
        return SATISFIED if gap == 0 else VIOLATED
    return SATISFIED if gap <= unknown else STUCK


_EVALUATORS: Dict[type, Evaluator] = {
    AdjacencyConstraint: _evaluate_adjacency,
    DiagonalAdjacencyConstraint: _evaluate_diagonal_adjacency,
    CountConstraint: _evaluate_count,
    RegionConstraint: _evaluate_region,
    PairConstraint: _evaluate_pair,
    PatternConstraint: _evaluate_pattern,
    BalanceConstraint: _evaluate_balance,
}


# ----------------------------------------------------------------------
# Scopes
# ----------------------------------------------------------------------
def constraint_scope(constraint: Constraint, size: int) -> Optional[List[Position]]:
    """Cells a constraint reads, or ``None`` when it spans the whole grid."""

    if isinstance(constraint, (AdjacencyConstraint, DiagonalAdjacencyConstraint)):
        return None
    if isinstance(constraint, (CountConstraint, BalanceConstraint)):
        return line_cells(size, constraint.direction, constraint.index)
    if isinstance(constraint, RegionConstraint):
        bounds = Bounds(size)
        return [cell for cell in constraint.cells if bounds.contains(*cell)]
    if isinstance(constraint, PairConstraint):
        bounds = Bounds(size)
        return [cell for cell in (constraint.cell1, constraint.cell2) if bounds.contains(*cell)]
    if isinstance(constraint, PatternConstraint):
        if constraint.direction == LineDirection.DIAGONAL and constraint.index is None:
            return None
        return line_cells(size, constraint.direction, constraint.index)
    raise TypeError(f"Unsupported constraint kind: {type(constraint).__name__}")


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------
def evaluate_constraint(constraint: Constraint, grid: Grid, grid_size: Optional[int] = None,
                        focus: Optional[Position] = None) -> ConstraintEvaluation:
    """Partially evaluate one constraint.

    ``focus`` tells the evaluator that only that cell changed since the last
    clean evaluation, which lets grid-wide kinds inspect a single
    neighbourhood.
    """

    evaluator = _EVALUATORS.get(type(constraint))
    if evaluator is None:
        raise TypeError(f"Unsupported constraint kind: {type(constraint).__name__}")
    size = grid_size if grid_size is not None else len(grid)
    return evaluator(constraint, grid, size, focus)


def validate_constraint(constraint: Constraint, grid: Grid, grid_size: Optional[int] = None) -> bool:
    return not evaluate_constraint(constraint, grid, grid_size).violated


def validate_all(constraints: Sequence[Constraint], grid: Grid,
                 grid_size: Optional[int] = None) -> ValidationResult:
    """Evaluate every constraint; statuses are keyed by constraint index."""

    evaluations = [evaluate_constraint(constraint, grid, grid_size) for constraint in constraints]
    status = {index: not evaluation.violated for index, evaluation in enumerate(evaluations)}
    return ValidationResult(
        is_valid=all(status.values()),
        constraint_status=status,
        evaluations=evaluations,
    )
