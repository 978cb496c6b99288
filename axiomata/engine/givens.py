"""Choose which solved cells are revealed to the player."""

from __future__ import annotations

from typing import Dict, List, Sequence, Set

from ..core.constants import DIAGONAL_STEPS, ORTHOGONAL_STEPS, TileState
from ..core.models import (AdjacencyConstraint, Constraint, CountConstraint,
                           DiagonalAdjacencyConstraint, Grid, PairConstraint, Position,
                           RegionConstraint)
from ..core.rng import SeededRNG
from ..utils.logger import get_logger
from .grid import all_positions, neighbors
from .validator import constraint_scope

LOGGER = get_logger(__name__)


class GivensSelector:
    """Reveals cells in seeded order without trivialising the constraints.

    A cell is skipped when revealing it would put two same-piece givens in
    contact under a cannot-touch rule, would reveal every cell of a Count or
    Region constraint, or would reveal both cells of a Pair constraint.
    """

    def __init__(self, solution: Grid, constraints: Sequence[Constraint]) -> None:
        self.solution = solution
        self.size = len(solution)
        self.orthogonal: Set[TileState] = set()
        self.diagonal: Set[TileState] = set()
        self.tally_scopes: List[Set[Position]] = []
        self.partners: Dict[Position, List[Position]] = {}
        for constraint in constraints:
            if isinstance(constraint, AdjacencyConstraint) and constraint.cannot_touch:
                self.orthogonal.add(constraint.tile_type)
            elif isinstance(constraint, DiagonalAdjacencyConstraint) and constraint.cannot_touch:
                self.diagonal.add(constraint.tile_type)
            elif isinstance(constraint, (CountConstraint, RegionConstraint)):
                self.tally_scopes.append(set(constraint_scope(constraint, self.size) or ()))
            elif isinstance(constraint, PairConstraint):
                self.partners.setdefault(constraint.cell1, []).append(constraint.cell2)
                self.partners.setdefault(constraint.cell2, []).append(constraint.cell1)

    def select(self, rng: SeededRNG, target: int) -> Dict[Position, TileState]:
        order = rng.shuffle(all_positions(self.size))
        givens: Dict[Position, TileState] = {}
        # Pieces first; EMPTY cells only top up a short selection.
        for reveal_empty in (False, True):
            for cell in order:
                if len(givens) >= target:
                    return givens
                tile = self.solution[cell.row][cell.col]
                if tile is None or cell in givens or (tile == TileState.EMPTY) != reveal_empty:
                    continue
                if self._can_reveal(cell, tile, givens):
                    givens[cell] = tile
        if len(givens) < target:
            LOGGER.debug("Revealed %d/%d givens", len(givens), target)
        return givens

    def _can_reveal(self, cell: Position, tile: TileState,
                    givens: Dict[Position, TileState]) -> bool:
        if tile in self.orthogonal and self._touches(cell, tile, givens, ORTHOGONAL_STEPS):
            return False
        if tile in self.diagonal and self._touches(cell, tile, givens, DIAGONAL_STEPS):
            return False
        for scope in self.tally_scopes:
            if cell in scope and all(other in givens for other in scope if other != cell):
                return False
        return not any(partner in givens for partner in self.partners.get(cell, ()))

    def _touches(self, cell: Position, tile: TileState,
                 givens: Dict[Position, TileState], steps) -> bool:
        return any(givens.get(other) == tile for other in neighbors(self.size, cell.row, cell.col, steps))


def select_givens(solution: Grid, constraints: Sequence[Constraint], rng: SeededRNG,
                  target: int) -> Dict[Position, TileState]:
    return GivensSelector(solution, constraints).select(rng, target)
