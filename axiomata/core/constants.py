"""Shared constants and enumerations for the puzzle engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Difficulty(str, Enum):
    """Puzzle difficulty levels."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class TileState(str, Enum):
    """Content of a single grid cell."""

    EMPTY = "EMPTY"
    SUN = "SUN"
    MOON = "MOON"
    STAR = "STAR"
    PLANET = "PLANET"
    COMET = "COMET"

    @property
    def is_piece(self) -> bool:
        return self is not TileState.EMPTY


class LineDirection(str, Enum):
    """Lines a constraint can be anchored to."""

    ROW = "row"
    COL = "col"
    DIAGONAL = "diagonal"


PIECES: Tuple[TileState, ...] = (
    TileState.SUN,
    TileState.MOON,
    TileState.STAR,
    TileState.PLANET,
    TileState.COMET,
)

ORTHOGONAL_STEPS: Tuple[Tuple[int, int], ...] = ((0, 1), (1, 0), (0, -1), (-1, 0))
DIAGONAL_STEPS: Tuple[Tuple[int, int], ...] = ((1, 1), (1, -1), (-1, 1), (-1, -1))

# Neighbours already placed when filling row-major.
PRECEDING_ORTHOGONAL: Tuple[Tuple[int, int], ...] = ((-1, 0), (0, -1))
PRECEDING_DIAGONAL: Tuple[Tuple[int, int], ...] = ((-1, -1), (-1, 1))


@dataclass(frozen=True)
class Bounds:
    """Square grid bounds helper."""

    size: int

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size
