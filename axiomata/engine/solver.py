"""Exact backtracking solver with forward pruning.

The search visits unset cells in an order fixed before the search starts
and tries tile states in a fixed order, so results are reproducible. After
every placement only the constraints that read the placed cell are
re-evaluated; a branch dies as soon as one of them is violated or can no
longer be satisfied. Every call is bounded by a node budget.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..core.constants import TileState
from ..core.difficulty import get_difficulty_config
from ..core.models import (BalanceConstraint, CountConstraint, Grid, PairConstraint,
                           PatternConstraint, Position, Puzzle, RegionConstraint)
from ..utils.logger import get_logger
from .grid import all_positions, apply_givens, copy_grid, create_empty_grid
from .validator import constraint_scope, evaluate_constraint, validate_all

LOGGER = get_logger(__name__)

DEFAULT_MAX_ITERATIONS = 50_000
DEFAULT_UNIQUENESS_ITERATIONS = 200_000

# Tighter constraints are visited first.
_VISIT_PRIORITY: Dict[type, int] = {
    CountConstraint: 0,
    RegionConstraint: 0,
    PairConstraint: 1,
    BalanceConstraint: 2,
    PatternConstraint: 3,
}


def solver_alphabet(puzzle: Puzzle) -> Tuple[TileState, ...]:
    """States the search may place: EMPTY, the difficulty's pieces, then any
    other state the puzzle mentions."""

    alphabet: List[TileState] = list(get_difficulty_config(puzzle.difficulty).alphabet)
    mentioned: Set[TileState] = set(puzzle.givens.values())
    for constraint in puzzle.constraints:
        tile_type = getattr(constraint, "tile_type", None)
        if tile_type is not None:
            mentioned.add(tile_type)
        mentioned.update(state for state, _ in getattr(constraint, "counts", ()))
        mentioned.update(getattr(constraint, "tile_types", ()))
    for state in TileState:
        if state in mentioned and state not in alphabet:
            alphabet.append(state)
    return tuple(alphabet)


class _Search:
    """One depth-first search over a working copy of the grid."""

    def __init__(self, puzzle: Puzzle, max_iterations: int, limit: int) -> None:
        self.puzzle = puzzle
        self.size = puzzle.grid_size
        self.constraints = puzzle.constraints
        self.max_iterations = max_iterations
        self.limit = limit
        self.alphabet = solver_alphabet(puzzle)
        self.grid: Grid = apply_givens(create_empty_grid(self.size), puzzle.givens)
        self.iterations = 0
        self.budget_exceeded = False
        self.solutions: List[Grid] = []

        self.watchers: Dict[Position, List[int]] = {pos: [] for pos in all_positions(self.size)}
        self.scopes: Dict[int, List[Position]] = {}
        for index, constraint in enumerate(self.constraints):
            scope = constraint_scope(constraint, self.size)
            if scope is None:
                for cell_watchers in self.watchers.values():
                    cell_watchers.append(index)
                continue
            self.scopes[index] = scope
            for cell in scope:
                self.watchers[cell].append(index)
        self.order = self._visiting_order()

    def _visiting_order(self) -> List[Position]:
        seen: Set[Position] = {
            Position(row, col)
            for row in range(self.size)
            for col in range(self.size)
            if self.grid[row][col] is not None
        }
        order: List[Position] = []
        ranked = sorted(
            self.scopes.items(),
            key=lambda item: (
                _VISIT_PRIORITY.get(type(self.constraints[item[0]]), len(_VISIT_PRIORITY)),
                len(item[1]),
                item[0],
            ),
        )
        for _, scope in ranked:
            for cell in sorted(scope):
                if cell not in seen:
                    seen.add(cell)
                    order.append(cell)
        for cell in all_positions(self.size):
            if cell not in seen:
                order.append(cell)
        return order

    def _consistent(self, cell: Position) -> bool:
        for index in self.watchers[cell]:
            evaluation = evaluate_constraint(self.constraints[index], self.grid, self.size, focus=cell)
            if evaluation.violated or not evaluation.still_satisfiable:
                return False
        return True

    def run(self) -> List[Grid]:
        initial = validate_all(self.constraints, self.grid, self.size)
        if not initial.is_valid or not initial.still_satisfiable:
            LOGGER.debug("Givens already break constraints %s", initial.failing() or "(capacity)")
            return []
        self._backtrack(0)
        LOGGER.debug(
            "Search finished: %d solution(s), %d nodes%s",
            len(self.solutions),
            self.iterations,
            " (budget exceeded)" if self.budget_exceeded else "",
        )
        return self.solutions

    def _backtrack(self, depth: int) -> bool:
        """Return True once the search should stop."""

        if depth == len(self.order):
            if validate_all(self.constraints, self.grid, self.size).is_valid:
                self.solutions.append(copy_grid(self.grid))
            return len(self.solutions) >= self.limit

        cell = self.order[depth]
        for state in self.alphabet:
            self.iterations += 1
            if self.iterations > self.max_iterations:
                self.budget_exceeded = True
                return True
            self.grid[cell.row][cell.col] = state
            if self._consistent(cell) and self._backtrack(depth + 1):
                return True
        self.grid[cell.row][cell.col] = None
        return False


def solve(puzzle: Puzzle, max_iterations: int = DEFAULT_MAX_ITERATIONS) -> Optional[Grid]:
    """Return the first complete valid grid agreeing with the givens.

    ``None`` means either that no solution exists or that the node budget
    ran out first.
    """

    search = _Search(puzzle, max_iterations, limit=1)
    solutions = search.run()
    return solutions[0] if solutions else None


def count_solutions(puzzle: Puzzle, limit: int = 2,
                    max_iterations: int = DEFAULT_UNIQUENESS_ITERATIONS) -> Optional[int]:
    """Count distinct solutions up to ``limit``.

    Returns ``None`` when the budget ran out before the count was settled.
    """

    search = _Search(puzzle, max_iterations, limit=limit)
    solutions = search.run()
    if search.budget_exceeded and len(solutions) < limit:
        return None
    return len(solutions)


def has_unique_solution(puzzle: Puzzle,
                        max_iterations: int = DEFAULT_UNIQUENESS_ITERATIONS) -> bool:
    """True only when exactly one solution is proven to exist."""

    return count_solutions(puzzle, limit=2, max_iterations=max_iterations) == 1


def solution_agrees_with_givens(grid: Sequence[Sequence[Optional[TileState]]],
                                puzzle: Puzzle) -> bool:
    size = len(grid)
    return all(
        grid[row][col] == state
        for (row, col), state in puzzle.givens.items()
        if 0 <= row < size and 0 <= col < size
    )
