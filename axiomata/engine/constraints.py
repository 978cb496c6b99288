"""Derive constraints from properties already true of a solution.

Every constraint emitted here is read off the synthesized grid, so the
solution satisfies it by construction.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..core.constants import DIAGONAL_STEPS, LineDirection, TileState
from ..core.difficulty import DifficultyConfig
from ..core.models import (BalanceConstraint, Constraint, Counts,
                           CountConstraint, DiagonalAdjacencyConstraint, Grid,
                           PairConstraint, PatternConstraint, Position, RegionConstraint)
from ..core.rng import SeededRNG
from ..utils.logger import get_logger
from .grid import all_diagonals, all_positions, line_cells, neighbors, tiles_at

LOGGER = get_logger(__name__)

PAIR_ATTEMPTS = 50
REGION_ATTEMPTS = 30
PATTERN_ATTEMPTS = 10
REGION_MIN_SIDE = 2
REGION_MAX_SIDE = 3

Line = Tuple[LineDirection, int]


def tally(tiles: Sequence[Optional[TileState]]) -> Counts:
    """Ordered per-state counts of the states present, in enum order."""

    present: Dict[TileState, int] = {}
    for tile in tiles:
        if tile is not None:
            present[tile] = present.get(tile, 0) + 1
    return tuple((state, present[state]) for state in TileState if state in present)


def longest_run(tiles: Sequence[Optional[TileState]]) -> int:
    best = run = 0
    last: Optional[TileState] = None
    for tile in tiles:
        if tile is None or tile == TileState.EMPTY:
            run, last = 0, None
            continue
        run = run + 1 if tile == last else 1
        last = tile
        best = max(best, run)
    return best


class ConstraintGenerator:
    """Reads a solution and emits constraint instances per difficulty quota."""

    def __init__(self, solution: Grid, rng: SeededRNG, config: DifficultyConfig) -> None:
        self.solution = solution
        self.rng = rng
        self.config = config
        self.size = len(solution)

    def generate(self, adjacency_rules: Sequence[Constraint]) -> List[Constraint]:
        quota = self.config.constraint_counts
        constraints: List[Constraint] = list(adjacency_rules)
        constraints.extend(self._diagonal_adjacency(quota.diagonal_adjacency))
        constraints.extend(self._counts(quota.count))
        constraints.extend(self._regions(quota.region))
        constraints.extend(self._pairs(quota.pair))
        constraints.extend(self._patterns(quota.pattern))
        constraints.extend(self._balances(quota.balance))
        LOGGER.debug("Derived %d constraints from solution", len(constraints))
        return constraints

    # ------------------------------------------------------------------
    # Diagonal adjacency
    # ------------------------------------------------------------------
    def _diagonal_adjacency(self, quota: int) -> List[DiagonalAdjacencyConstraint]:
        if quota <= 0:
            return []
        candidates = [
            piece for piece in self.config.available_pieces
            if not self._touches_diagonally(piece)
        ]
        chosen = self.rng.shuffle(candidates)[:quota]
        if len(chosen) < quota:
            LOGGER.debug("Only %d/%d diagonal rules hold in solution", len(chosen), quota)
        return [DiagonalAdjacencyConstraint(tile_type=piece) for piece in chosen]

    def _touches_diagonally(self, piece: TileState) -> bool:
        for row, col in all_positions(self.size):
            if self.solution[row][col] != piece:
                continue
            for nr, nc in neighbors(self.size, row, col, DIAGONAL_STEPS):
                if self.solution[nr][nc] == piece:
                    return True
        return False

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------
    def _counts(self, quota: int) -> List[CountConstraint]:
        emitted: List[CountConstraint] = []
        used: Set[Line] = set()
        for _ in range(quota):
            line = self._pick_count_line(used)
            if line is None:
                LOGGER.debug("Ran out of count lines after %d", len(emitted))
                break
            used.add(line)
            direction, index = line
            counts = tally(tiles_at(self.solution, line_cells(self.size, direction, index)))
            emitted.append(CountConstraint(direction=direction, index=index, counts=counts))
        return emitted

    def _pick_count_line(self, used: Set[Line]) -> Optional[Line]:
        """Pick an unused row or column.

        Every tally is read off the same solution, so the crossing cell of two
        perpendicular counts is always declared by both with a non-zero count.
        """

        preferred = LineDirection.ROW if self.rng.next() < 0.5 else LineDirection.COL
        other = LineDirection.COL if preferred == LineDirection.ROW else LineDirection.ROW
        for direction in (preferred, other):
            candidates = [
                (direction, index) for index in range(self.size)
                if (direction, index) not in used
            ]
            if candidates:
                return self.rng.choice(candidates)
        return None

    # ------------------------------------------------------------------
    # Regions
    # ------------------------------------------------------------------
    def _regions(self, quota: int) -> List[RegionConstraint]:
        emitted: List[RegionConstraint] = []
        taken: Set[Position] = set()
        for _ in range(quota):
            cells = self._pick_region(taken)
            if cells is None:
                LOGGER.debug("No free region left after %d", len(emitted))
                break
            taken.update(cells)
            emitted.append(RegionConstraint(cells=cells, counts=tally(tiles_at(self.solution, cells))))
        return emitted

    def _pick_region(self, taken: Set[Position]) -> Optional[List[Position]]:
        for _ in range(REGION_ATTEMPTS):
            height = self.rng.next_int(REGION_MIN_SIDE, REGION_MAX_SIDE)
            width = self.rng.next_int(REGION_MIN_SIDE, REGION_MAX_SIDE)
            top = self.rng.next_int(0, self.size - height)
            left = self.rng.next_int(0, self.size - width)
            cells = [
                Position(row, col)
                for row in range(top, top + height)
                for col in range(left, left + width)
            ]
            if not taken.intersection(cells):
                return cells
        return None

    # ------------------------------------------------------------------
    # Pairs
    # ------------------------------------------------------------------
    def _pairs(self, quota: int) -> List[PairConstraint]:
        emitted: List[PairConstraint] = []
        used: Set[Position] = set()
        positions = all_positions(self.size)
        for _ in range(quota):
            for _ in range(PAIR_ATTEMPTS):
                first = self.rng.choice(positions)
                second = self.rng.choice(positions)
                if first == second or first in used or second in used:
                    continue
                used.update((first, second))
                same = self.solution[first.row][first.col] == self.solution[second.row][second.col]
                emitted.append(PairConstraint(cell1=first, cell2=second, must_be_same=same))
                break
        return emitted

    # ------------------------------------------------------------------
    # Patterns
    # ------------------------------------------------------------------
    def _patterns(self, quota: int) -> List[PatternConstraint]:
        emitted: List[PatternConstraint] = []
        seen: Set[Tuple[LineDirection, Optional[int]]] = set()
        directions = [LineDirection.ROW, LineDirection.COL, LineDirection.DIAGONAL]
        for _ in range(quota):
            for _ in range(PATTERN_ATTEMPTS):
                direction = self.rng.choice(directions)
                index = None if direction == LineDirection.DIAGONAL else self.rng.next_int(0, self.size - 1)
                if (direction, index) in seen:
                    continue
                seen.add((direction, index))
                if index is None:
                    run = max(longest_run(tiles_at(self.solution, cells)) for cells in all_diagonals(self.size))
                else:
                    run = longest_run(tiles_at(self.solution, line_cells(self.size, direction, index)))
                emitted.append(PatternConstraint(direction=direction, index=index, max_in_a_row=max(1, run)))
                break
        return emitted

    # ------------------------------------------------------------------
    # Balance
    # ------------------------------------------------------------------
    def _balances(self, quota: int) -> List[BalanceConstraint]:
        candidates = self._balance_candidates()
        nonzero = [candidate for candidate in candidates if candidate[2] > 0]
        pool = nonzero if len(nonzero) >= quota else candidates
        emitted: List[BalanceConstraint] = []
        used: Set[Line] = set()
        for _ in range(quota):
            remaining = [candidate for candidate in pool if candidate[0] not in used]
            if not remaining:
                LOGGER.debug("No balanced line left after %d", len(emitted))
                break
            (direction, index), pieces, _ = self.rng.choice(remaining)
            used.add((direction, index))
            emitted.append(BalanceConstraint(direction=direction, index=index, tile_types=pieces))
        return emitted

    def _balance_candidates(self) -> List[Tuple[Line, Tuple[TileState, ...], int]]:
        candidates = []
        for direction in (LineDirection.ROW, LineDirection.COL):
            for index in range(self.size):
                counts = dict(tally(tiles_at(self.solution, line_cells(self.size, direction, index))))
                groups: Dict[int, List[TileState]] = {}
                for piece in self.config.available_pieces:
                    groups.setdefault(counts.get(piece, 0), []).append(piece)
                for amount, pieces in groups.items():
                    if len(pieces) >= 2:
                        candidates.append(((direction, index), tuple(pieces), amount))
        return candidates


def generate_constraints(solution: Grid, rng: SeededRNG, config: DifficultyConfig,
                         adjacency_rules: Sequence[Constraint] = ()) -> List[Constraint]:
    return ConstraintGenerator(solution, rng, config).generate(adjacency_rules)
