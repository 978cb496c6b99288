"""Random, adjacency-consistent solution grids."""

from __future__ import annotations

from typing import FrozenSet, List, Sequence, Tuple

from ..core.constants import (DIAGONAL_STEPS, ORTHOGONAL_STEPS, PRECEDING_DIAGONAL,
                              PRECEDING_ORTHOGONAL, Bounds, TileState)
from ..core.difficulty import DifficultyConfig
from ..core.models import (AdjacencyConstraint, Constraint, DiagonalAdjacencyConstraint,
                           Grid)
from ..core.rng import SeededRNG
from ..utils.logger import get_logger
from .grid import all_positions, create_empty_grid, empty_count, fill_ratio

LOGGER = get_logger(__name__)

DEFAULT_EMPTY_PROBABILITY = 0.08
DEFAULT_SYNTHESIS_ATTEMPTS = 20


def plan_adjacency_rules(
    rng: SeededRNG, config: DifficultyConfig
) -> Tuple[List[AdjacencyConstraint], List[DiagonalAdjacencyConstraint]]:
    """Pick the cannot-touch pieces before the solution exists."""

    quota = config.constraint_counts
    pieces = list(config.available_pieces)
    orthogonal = rng.shuffle(list(pieces))[: quota.adjacency]
    diagonal = rng.shuffle(list(pieces))[: quota.diagonal_adjacency]
    return (
        [AdjacencyConstraint(tile_type=piece) for piece in orthogonal],
        [DiagonalAdjacencyConstraint(tile_type=piece) for piece in diagonal],
    )


def _cannot_touch(rules: Sequence[Constraint]) -> Tuple[FrozenSet[TileState], FrozenSet[TileState]]:
    orthogonal = frozenset(
        rule.tile_type for rule in rules
        if isinstance(rule, AdjacencyConstraint) and rule.cannot_touch
    )
    diagonal = frozenset(
        rule.tile_type for rule in rules
        if isinstance(rule, DiagonalAdjacencyConstraint) and rule.cannot_touch
    )
    return orthogonal, diagonal


def _conflicts(grid: Grid, row: int, col: int, piece: TileState,
               orthogonal: FrozenSet[TileState], diagonal: FrozenSet[TileState],
               orthogonal_steps=PRECEDING_ORTHOGONAL,
               diagonal_steps=PRECEDING_DIAGONAL) -> bool:
    bounds = Bounds(len(grid))
    if piece in orthogonal:
        for dr, dc in orthogonal_steps:
            nr, nc = row + dr, col + dc
            if bounds.contains(nr, nc) and grid[nr][nc] == piece:
                return True
    if piece in diagonal:
        for dr, dc in diagonal_steps:
            nr, nc = row + dr, col + dc
            if bounds.contains(nr, nc) and grid[nr][nc] == piece:
                return True
    return False


def _fill(rng: SeededRNG, config: DifficultyConfig, orthogonal: FrozenSet[TileState],
          diagonal: FrozenSet[TileState], empty_probability: float) -> Grid:
    grid = create_empty_grid(config.grid_size)
    for row, col in all_positions(config.grid_size):
        candidates = [
            piece for piece in config.available_pieces
            if not _conflicts(grid, row, col, piece, orthogonal, diagonal)
        ]
        if not candidates or rng.next() < empty_probability:
            grid[row][col] = TileState.EMPTY
        else:
            grid[row][col] = rng.choice(candidates)
    return grid


def _dense_enough(grid: Grid, config: DifficultyConfig) -> bool:
    return (fill_ratio(grid) >= config.min_fill_percentage
            and empty_count(grid) <= config.max_empty_tiles)


def _biased_refill(grid: Grid, rng: SeededRNG, config: DifficultyConfig,
                   orthogonal: FrozenSet[TileState], diagonal: FrozenSet[TileState]) -> None:
    """Turn EMPTY cells into pieces that clash with none of their neighbours."""

    for row, col in all_positions(config.grid_size):
        if grid[row][col] != TileState.EMPTY:
            continue
        candidates = [
            piece for piece in config.available_pieces
            if not _conflicts(grid, row, col, piece, orthogonal, diagonal,
                              ORTHOGONAL_STEPS, DIAGONAL_STEPS)
        ]
        if candidates:
            grid[row][col] = rng.choice(candidates)


def synthesize_solution(
    rng: SeededRNG,
    config: DifficultyConfig,
    rules: Sequence[Constraint],
    empty_probability: float = DEFAULT_EMPTY_PROBABILITY,
    attempts: int = DEFAULT_SYNTHESIS_ATTEMPTS,
) -> Grid:
    """Fill a complete grid that honours every cannot-touch rule in ``rules``.

    The result is not guaranteed to meet the difficulty's fill ratio; the
    caller checks that.
    """

    orthogonal, diagonal = _cannot_touch(rules)
    best: Grid = []
    best_ratio = -1.0
    for attempt in range(1, max(1, attempts) + 1):
        grid = _fill(rng, config, orthogonal, diagonal, empty_probability)
        ratio = fill_ratio(grid)
        if _dense_enough(grid, config):
            LOGGER.debug("Solution synthesized on pass %d (fill %.2f)", attempt, ratio)
            return grid
        if ratio > best_ratio:
            best, best_ratio = grid, ratio

    LOGGER.debug("No pass met fill %.2f; refilling best grid", config.min_fill_percentage)
    _biased_refill(best, rng, config, orthogonal, diagonal)
    return best
