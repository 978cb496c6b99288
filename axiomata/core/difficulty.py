"""Difficulty table: grid size, alphabet and constraint quotas per level."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple, Union

from .constants import PIECES, Difficulty, TileState


@dataclass(frozen=True)
class ConstraintQuota:
    """How many constraints of each kind a puzzle carries."""

    adjacency: int = 0
    count: int = 0
    pair: int = 0
    region: int = 0
    diagonal_adjacency: int = 0
    pattern: int = 0
    balance: int = 0

    @property
    def total(self) -> int:
        return (
            self.adjacency
            + self.count
            + self.pair
            + self.region
            + self.diagonal_adjacency
            + self.pattern
            + self.balance
        )


@dataclass(frozen=True)
class DifficultyConfig:
    grid_size: int
    available_pieces: Tuple[TileState, ...]
    constraint_counts: ConstraintQuota
    given_count: int
    min_fill_percentage: float
    max_empty_tiles: int

    @property
    def alphabet(self) -> Tuple[TileState, ...]:
        """Every state a cell may take, EMPTY first."""

        return (TileState.EMPTY,) + self.available_pieces


_TABLE: Dict[Difficulty, DifficultyConfig] = {
    Difficulty.EASY: DifficultyConfig(
        grid_size=5,
        available_pieces=PIECES[:2],
        constraint_counts=ConstraintQuota(adjacency=1, count=2),
        given_count=8,
        min_fill_percentage=0.80,
        max_empty_tiles=5,
    ),
    Difficulty.MEDIUM: DifficultyConfig(
        grid_size=6,
        available_pieces=PIECES[:3],
        constraint_counts=ConstraintQuota(adjacency=2, count=3, pair=1, pattern=1),
        given_count=10,
        min_fill_percentage=0.85,
        max_empty_tiles=5,
    ),
    Difficulty.HARD: DifficultyConfig(
        grid_size=7,
        available_pieces=PIECES[:4],
        constraint_counts=ConstraintQuota(
            adjacency=2,
            count=4,
            pair=2,
            region=1,
            diagonal_adjacency=1,
            pattern=1,
            balance=1,
        ),
        given_count=12,
        min_fill_percentage=0.90,
        max_empty_tiles=5,
    ),
    Difficulty.EXPERT: DifficultyConfig(
        grid_size=8,
        available_pieces=PIECES[:5],
        constraint_counts=ConstraintQuota(
            adjacency=3,
            count=5,
            pair=3,
            region=2,
            diagonal_adjacency=2,
            pattern=2,
            balance=2,
        ),
        given_count=14,
        min_fill_percentage=0.95,
        max_empty_tiles=3,
    ),
}


def get_difficulty_config(difficulty: Union[Difficulty, str]) -> DifficultyConfig:
    return _TABLE[Difficulty(difficulty)]
