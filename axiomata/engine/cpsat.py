"""CP-SAT encoding of a puzzle using OR-Tools.

An independent second solver for the same constraint union. It is used to
cross-check solvability and to prove uniqueness on grids where exhaustive
backtracking is too slow.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ortools.sat.python import cp_model

from ..core.constants import Bounds, LineDirection, TileState
from ..core.models import (AdjacencyConstraint, BalanceConstraint, Constraint,
                           CountConstraint, DiagonalAdjacencyConstraint, Grid,
                           PairConstraint, PatternConstraint, Position, Puzzle,
                           RegionConstraint)
from ..utils.logger import get_logger
from .grid import all_diagonals, all_positions, line_cells
from .solver import solver_alphabet

LOGGER = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0

CellVars = Dict[Tuple[int, int, TileState], "cp_model.IntVar"]


class PuzzleModel:
    """One boolean per (cell, state); exactly one state per cell."""

    def __init__(self, puzzle: Puzzle) -> None:
        self.puzzle = puzzle
        self.size = puzzle.grid_size
        self.alphabet = solver_alphabet(puzzle)
        self.pieces = [state for state in self.alphabet if state.is_piece]
        self.model = cp_model.CpModel()
        self.cells: CellVars = {}
        for row, col in all_positions(self.size):
            literals = []
            for state in self.alphabet:
                var = self.model.new_bool_var(f"x_{row}_{col}_{state.value}")
                self.cells[(row, col, state)] = var
                literals.append(var)
            self.model.add_exactly_one(literals)

        bounds = Bounds(self.size)
        for (row, col), state in puzzle.givens.items():
            if bounds.contains(row, col):
                self.model.add(self.cells[(row, col, state)] == 1)

        for constraint in puzzle.constraints:
            encoder = _ENCODERS.get(type(constraint))
            if encoder is None:
                raise TypeError(f"Unsupported constraint kind: {type(constraint).__name__}")
            encoder(self, constraint)

    def var(self, cell: Position, state: TileState):
        return self.cells[(cell[0], cell[1], state)]

    def forbid(self, grid: Grid) -> None:
        """Add a no-good cut excluding ``grid`` from future solutions."""

        chosen = [self.var(cell, grid[cell.row][cell.col]) for cell in all_positions(self.size)]
        self.model.add(sum(chosen) <= len(chosen) - 1)

    def solve(self, timeout: float = DEFAULT_TIMEOUT) -> Tuple[int, Optional[Grid]]:
        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = timeout
        solver.parameters.num_workers = 1

        status = solver.solve(self.model)
        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            LOGGER.debug("CP-SAT: no solution (status=%s)", solver.status_name(status))
            return status, None

        LOGGER.debug("CP-SAT: solution found in %.2fs", solver.wall_time)
        grid: Grid = [[None] * self.size for _ in range(self.size)]
        for (row, col, state), var in self.cells.items():
            if solver.value(var):
                grid[row][col] = state
        return status, grid


# ----------------------------------------------------------------------
# Encoders
# ----------------------------------------------------------------------
def _encode_touching(pm: PuzzleModel, tile_type: TileState, steps: Sequence[Tuple[int, int]]) -> None:
    if tile_type not in pm.alphabet:
        return
    bounds = Bounds(pm.size)
    for row, col in all_positions(pm.size):
        for dr, dc in steps:
            nr, nc = row + dr, col + dc
            if bounds.contains(nr, nc):
                pm.model.add(
                    pm.var((row, col), tile_type) + pm.var((nr, nc), tile_type) <= 1
                )


def _encode_adjacency(pm: PuzzleModel, constraint: AdjacencyConstraint) -> None:
    if constraint.cannot_touch:
        _encode_touching(pm, constraint.tile_type, ((0, 1), (1, 0)))


def _encode_diagonal_adjacency(pm: PuzzleModel, constraint: DiagonalAdjacencyConstraint) -> None:
    if constraint.cannot_touch:
        _encode_touching(pm, constraint.tile_type, ((1, 1), (1, -1)))


def _encode_tally(pm: PuzzleModel, cells: Sequence[Position], expected: Dict[TileState, int]) -> None:
    bounds = Bounds(pm.size)
    cells = [cell for cell in cells if bounds.contains(*cell)]
    if not cells:
        return
    for state in pm.alphabet:
        pm.model.add(sum(pm.var(cell, state) for cell in cells) == expected.get(state, 0))


def _encode_count(pm: PuzzleModel, constraint: CountConstraint) -> None:
    cells = line_cells(pm.size, constraint.direction, constraint.index)
    if cells:
        _encode_tally(pm, cells, constraint.counts_map())


def _encode_region(pm: PuzzleModel, constraint: RegionConstraint) -> None:
    _encode_tally(pm, constraint.cells, constraint.counts_map())


def _encode_pair(pm: PuzzleModel, constraint: PairConstraint) -> None:
    bounds = Bounds(pm.size)
    if not bounds.contains(*constraint.cell1) or not bounds.contains(*constraint.cell2):
        return
    for state in pm.alphabet:
        first = pm.var(constraint.cell1, state)
        second = pm.var(constraint.cell2, state)
        if constraint.must_be_same:
            pm.model.add(first == second)
        else:
            pm.model.add(first + second <= 1)


def _encode_pattern(pm: PuzzleModel, constraint: PatternConstraint) -> None:
    if constraint.direction == LineDirection.DIAGONAL and constraint.index is None:
        lines: List[List[Position]] = all_diagonals(pm.size)
    else:
        lines = [line_cells(pm.size, constraint.direction, constraint.index)]
    window = constraint.max_in_a_row + 1
    pieces = [constraint.tile_type] if constraint.tile_type is not None else pm.pieces
    for cells in lines:
        for start in range(len(cells) - window + 1):
            span = cells[start:start + window]
            for piece in pieces:
                if piece in pm.alphabet:
                    pm.model.add(sum(pm.var(cell, piece) for cell in span) <= constraint.max_in_a_row)


def _encode_balance(pm: PuzzleModel, constraint: BalanceConstraint) -> None:
    types = list(dict.fromkeys(constraint.tile_types))
    if not constraint.must_be_equal or len(types) < 2:
        return
    cells = line_cells(pm.size, constraint.direction, constraint.index)
    if not cells:
        return

    def total(state: TileState):
        if state not in pm.alphabet:
            return 0
        return sum(pm.var(cell, state) for cell in cells)

    first = total(types[0])
    for other in types[1:]:
        pm.model.add(total(other) == first)


_ENCODERS: Dict[type, Callable[[PuzzleModel, Constraint], None]] = {
    AdjacencyConstraint: _encode_adjacency,
    DiagonalAdjacencyConstraint: _encode_diagonal_adjacency,
    CountConstraint: _encode_count,
    RegionConstraint: _encode_region,
    PairConstraint: _encode_pair,
    PatternConstraint: _encode_pattern,
    BalanceConstraint: _encode_balance,
}


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------
def solve_with_cpsat(puzzle: Puzzle, timeout: float = DEFAULT_TIMEOUT) -> Optional[Grid]:
    """Solve ``puzzle`` with CP-SAT; ``None`` if infeasible or timed out."""

    _, grid = PuzzleModel(puzzle).solve(timeout)
    return grid


def has_unique_solution_cpsat(puzzle: Puzzle, timeout: float = DEFAULT_TIMEOUT) -> bool:
    """True only when CP-SAT proves there is no second solution."""

    pm = PuzzleModel(puzzle)
    _, first = pm.solve(timeout)
    if first is None:
        return False
    pm.forbid(first)
    status, second = pm.solve(timeout)
    if second is not None:
        return False
    return status == cp_model.INFEASIBLE
