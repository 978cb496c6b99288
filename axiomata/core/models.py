"""Data models supporting the puzzle engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import (ClassVar, Dict, Iterable, List, Mapping, NamedTuple, Optional,
                    Tuple, Union)

from .constants import Difficulty, LineDirection, TileState


Grid = List[List[Optional[TileState]]]
FrozenGrid = Tuple[Tuple[Optional[TileState], ...], ...]
Counts = Tuple[Tuple[TileState, int], ...]


class Position(NamedTuple):
    row: int
    col: int


def make_counts(counts: Union[Mapping, Iterable]) -> Counts:
    """Normalise a mapping or a sequence of pairs into ordered count pairs."""

    items = counts.items() if isinstance(counts, Mapping) else counts
    normalised: List[Tuple[TileState, int]] = []
    seen = set()
    for state, amount in items:
        tile = TileState(state)
        if tile in seen:
            raise ValueError(f"Duplicate count entry for {tile.value}")
        seen.add(tile)
        normalised.append((tile, int(amount)))
    return tuple(normalised)


def _set(instance, name: str, value) -> None:
    object.__setattr__(instance, name, value)


@dataclass(frozen=True)
class AdjacencyConstraint:
    """No two orthogonally adjacent cells may both hold ``tile_type``."""

    kind: ClassVar[str] = "adjacency"

    tile_type: TileState
    cannot_touch: bool = True

    def __post_init__(self) -> None:
        _set(self, "tile_type", TileState(self.tile_type))


@dataclass(frozen=True)
class DiagonalAdjacencyConstraint:
    """No two diagonally adjacent cells may both hold ``tile_type``."""

    kind: ClassVar[str] = "diagonalAdjacency"

    tile_type: TileState
    cannot_touch: bool = True

    def __post_init__(self) -> None:
        _set(self, "tile_type", TileState(self.tile_type))


@dataclass(frozen=True)
class CountConstraint:
    """Exact per-state tally along one row or column."""

    kind: ClassVar[str] = "count"

    direction: LineDirection
    index: int
    counts: Counts

    def __post_init__(self) -> None:
        direction = LineDirection(self.direction)
        if direction == LineDirection.DIAGONAL:
            raise ValueError("Count constraints apply to rows or columns only")
        _set(self, "direction", direction)
        _set(self, "counts", make_counts(self.counts))

    def counts_map(self) -> Dict[TileState, int]:
        return dict(self.counts)


@dataclass(frozen=True)
class RegionConstraint:
    """Exact per-state tally over an explicit set of cells."""

    kind: ClassVar[str] = "region"

    cells: Tuple[Position, ...]
    counts: Counts

    def __post_init__(self) -> None:
        _set(self, "cells", tuple(Position(int(r), int(c)) for r, c in self.cells))
        _set(self, "counts", make_counts(self.counts))

    def counts_map(self) -> Dict[TileState, int]:
        return dict(self.counts)


@dataclass(frozen=True)
class PairConstraint:
    """Two cells must hold equal (or different) states."""

    kind: ClassVar[str] = "pair"

    cell1: Position
    cell2: Position
    must_be_same: bool

    def __post_init__(self) -> None:
        _set(self, "cell1", Position(*self.cell1))
        _set(self, "cell2", Position(*self.cell2))


@dataclass(frozen=True)
class PatternConstraint:
    """Caps runs of identical pieces along a line.

    For ``DIAGONAL`` an ``index`` of ``None`` covers every down-right
    diagonal; otherwise it selects the diagonal where ``col - row == index``.
    """

    kind: ClassVar[str] = "pattern"

    direction: LineDirection
    max_in_a_row: int
    index: Optional[int] = None
    tile_type: Optional[TileState] = None

    def __post_init__(self) -> None:
        direction = LineDirection(self.direction)
        if direction != LineDirection.DIAGONAL and self.index is None:
            raise ValueError("Row and column patterns need an index")
        if self.max_in_a_row < 1:
            raise ValueError("max_in_a_row must be at least 1")
        _set(self, "direction", direction)
        if self.tile_type is not None:
            _set(self, "tile_type", TileState(self.tile_type))


@dataclass(frozen=True)
class BalanceConstraint:
    """Two or more states must appear equally often along a line."""

    kind: ClassVar[str] = "balance"

    direction: LineDirection
    index: int
    tile_types: Tuple[TileState, ...]
    must_be_equal: bool = True

    def __post_init__(self) -> None:
        direction = LineDirection(self.direction)
        if direction == LineDirection.DIAGONAL:
            raise ValueError("Balance constraints apply to rows or columns only")
        _set(self, "direction", direction)
        _set(self, "tile_types", tuple(TileState(t) for t in self.tile_types))


Constraint = Union[
    AdjacencyConstraint,
    DiagonalAdjacencyConstraint,
    CountConstraint,
    RegionConstraint,
    PairConstraint,
    PatternConstraint,
    BalanceConstraint,
]

CONSTRAINT_TYPES: Tuple[type, ...] = (
    AdjacencyConstraint,
    DiagonalAdjacencyConstraint,
    CountConstraint,
    RegionConstraint,
    PairConstraint,
    PatternConstraint,
    BalanceConstraint,
)


@dataclass(frozen=True)
class Puzzle:
    """A generated puzzle. Never mutated after construction.

    ``solution`` is stored as a tuple of tuples and ``givens`` as a read-only
    mapping, so neither can be changed in place.
    """

    solution: FrozenGrid
    givens: Mapping[Position, TileState]
    constraints: Tuple[Constraint, ...]
    difficulty: Difficulty
    daily_key: str
    grid_size: int
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        _set(self, "constraints", tuple(self.constraints))
        _set(self, "difficulty", Difficulty(self.difficulty))
        _set(self, "solution", tuple(
            tuple(None if tile is None else TileState(tile) for tile in row) for row in self.solution
        ))
        _set(self, "givens", MappingProxyType(
            {Position(*pos): TileState(v) for pos, v in self.givens.items()}
        ))


@dataclass(frozen=True)
class ConstraintEvaluation:
    """Outcome of evaluating one constraint against a possibly partial grid.

    ``violated`` means the known cells already break the rule.
    ``still_satisfiable`` means some completion of the unset cells can
    satisfy it; it is always false when ``violated`` is true.
    """

    violated: bool
    still_satisfiable: bool

    @property
    def ok(self) -> bool:
        return not self.violated


SATISFIED = ConstraintEvaluation(violated=False, still_satisfiable=True)
VIOLATED = ConstraintEvaluation(violated=True, still_satisfiable=False)
STUCK = ConstraintEvaluation(violated=False, still_satisfiable=False)


@dataclass
class ValidationResult:
    is_valid: bool
    constraint_status: Dict[int, bool] = field(default_factory=dict)
    evaluations: List[ConstraintEvaluation] = field(default_factory=list, repr=False)

    @property
    def still_satisfiable(self) -> bool:
        return all(evaluation.still_satisfiable for evaluation in self.evaluations)

    def failing(self) -> List[int]:
        return [index for index, ok in self.constraint_status.items() if not ok]
