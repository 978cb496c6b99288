"""JSON boundary for puzzles, constraints and grids.

Map-valued fields are flattened to ordered ``[key, value]`` pairs on the way
out so the payload round-trips through any JSON store without losing order.
Object-shaped counts written by older clients are still accepted on input.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

from ..core.constants import Difficulty, LineDirection, TileState
from ..core.exceptions import SerializationError
from ..core.models import (AdjacencyConstraint, BalanceConstraint,
                           Constraint, Counts, CountConstraint,
                           DiagonalAdjacencyConstraint, Grid, PairConstraint,
                           PatternConstraint, Position, Puzzle, RegionConstraint)

Payload = Dict[str, Any]


# ----------------------------------------------------------------------
# Leaf values
# ----------------------------------------------------------------------
def _counts_to_jsonable(counts: Counts) -> List[List[Any]]:
    return [[state.value, amount] for state, amount in counts]


def _counts_from_jsonable(raw: Any) -> List[List[Any]]:
    if isinstance(raw, Mapping):
        return [[state, amount] for state, amount in raw.items()]
    if isinstance(raw, list):
        pairs = []
        for entry in raw:
            if not isinstance(entry, (list, tuple)) or len(entry) != 2:
                raise SerializationError(f"Count entry must be a [state, n] pair: {entry!r}")
            pairs.append([entry[0], entry[1]])
        return pairs
    raise SerializationError(f"Counts must be a list of pairs or an object: {raw!r}")


def _cell_from_jsonable(raw: Any) -> Position:
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise SerializationError(f"Cell must be a [row, col] pair: {raw!r}")
    return Position(int(raw[0]), int(raw[1]))


def _tile_from_jsonable(raw: Any) -> Optional[TileState]:
    return None if raw is None else TileState(raw)


# ----------------------------------------------------------------------
# Constraints
# ----------------------------------------------------------------------
def constraint_to_jsonable(constraint: Constraint) -> Payload:
    if isinstance(constraint, (AdjacencyConstraint, DiagonalAdjacencyConstraint)):
        body: Payload = {
            "tileType": constraint.tile_type.value,
            "cannotTouch": constraint.cannot_touch,
        }
    elif isinstance(constraint, CountConstraint):
        body = {
            "direction": constraint.direction.value,
            "index": constraint.index,
            "counts": _counts_to_jsonable(constraint.counts),
        }
    elif isinstance(constraint, RegionConstraint):
        body = {
            "cells": [[cell.row, cell.col] for cell in constraint.cells],
            "counts": _counts_to_jsonable(constraint.counts),
        }
    elif isinstance(constraint, PairConstraint):
        body = {
            "cell1": list(constraint.cell1),
            "cell2": list(constraint.cell2),
            "mustBeSame": constraint.must_be_same,
        }
    elif isinstance(constraint, PatternConstraint):
        body = {
            "direction": constraint.direction.value,
            "index": constraint.index,
            "maxInARow": constraint.max_in_a_row,
            "tileType": constraint.tile_type.value if constraint.tile_type is not None else None,
        }
    elif isinstance(constraint, BalanceConstraint):
        body = {
            "direction": constraint.direction.value,
            "index": constraint.index,
            "tileTypes": [state.value for state in constraint.tile_types],
            "mustBeEqual": constraint.must_be_equal,
        }
    else:
        raise SerializationError(f"Unsupported constraint kind: {type(constraint).__name__}")
    return {"type": constraint.kind, **body}


def _adjacency(raw: Payload, cls) -> Constraint:
    return cls(tile_type=raw["tileType"], cannot_touch=bool(raw.get("cannotTouch", True)))


def _count(raw: Payload) -> Constraint:
    return CountConstraint(
        direction=LineDirection(raw["direction"]),
        index=int(raw["index"]),
        counts=_counts_from_jsonable(raw["counts"]),
    )


def _region(raw: Payload) -> Constraint:
    return RegionConstraint(
        cells=tuple(_cell_from_jsonable(cell) for cell in raw["cells"]),
        counts=_counts_from_jsonable(raw["counts"]),
    )


def _pair(raw: Payload) -> Constraint:
    return PairConstraint(
        cell1=_cell_from_jsonable(raw["cell1"]),
        cell2=_cell_from_jsonable(raw["cell2"]),
        must_be_same=bool(raw["mustBeSame"]),
    )


def _pattern(raw: Payload) -> Constraint:
    index = raw.get("index")
    return PatternConstraint(
        direction=LineDirection(raw["direction"]),
        max_in_a_row=int(raw["maxInARow"]),
        index=None if index is None else int(index),
        tile_type=_tile_from_jsonable(raw.get("tileType")),
    )


def _balance(raw: Payload) -> Constraint:
    return BalanceConstraint(
        direction=LineDirection(raw["direction"]),
        index=int(raw["index"]),
        tile_types=tuple(TileState(state) for state in raw["tileTypes"]),
        must_be_equal=bool(raw.get("mustBeEqual", True)),
    )


_DECODERS: Dict[str, Callable[[Payload], Constraint]] = {
    AdjacencyConstraint.kind: lambda raw: _adjacency(raw, AdjacencyConstraint),
    DiagonalAdjacencyConstraint.kind: lambda raw: _adjacency(raw, DiagonalAdjacencyConstraint),
    CountConstraint.kind: _count,
    RegionConstraint.kind: _region,
    PairConstraint.kind: _pair,
    PatternConstraint.kind: _pattern,
    BalanceConstraint.kind: _balance,
}


def constraint_from_jsonable(raw: Any) -> Constraint:
    if not isinstance(raw, Mapping):
        raise SerializationError(f"Constraint must be an object: {raw!r}")
    decoder = _DECODERS.get(raw.get("type"))
    if decoder is None:
        raise SerializationError(f"Unknown constraint type: {raw.get('type')!r}")
    try:
        return decoder(raw)
    except (KeyError, TypeError, ValueError) as exc:
        raise SerializationError(f"Malformed {raw['type']} constraint: {exc}") from exc


# ----------------------------------------------------------------------
# Grids and puzzles
# ----------------------------------------------------------------------
def grid_to_jsonable(grid: Grid) -> List[List[Optional[str]]]:
    return [[tile.value if tile is not None else None for tile in row] for row in grid]


def grid_from_jsonable(raw: Any) -> Grid:
    if not isinstance(raw, list) or not all(isinstance(row, list) for row in raw):
        raise SerializationError("Grid must be a list of rows")
    try:
        return [[_tile_from_jsonable(tile) for tile in row] for row in raw]
    except ValueError as exc:
        raise SerializationError(f"Unknown tile state in grid: {exc}") from exc


def puzzle_to_jsonable(puzzle: Puzzle) -> Payload:
    return {
        "dailyKey": puzzle.daily_key,
        "difficulty": puzzle.difficulty.value,
        "gridSize": puzzle.grid_size,
        "seed": puzzle.seed,
        "solution": grid_to_jsonable(puzzle.solution),
        "givens": [[pos.row, pos.col, state.value] for pos, state in puzzle.givens.items()],
        "constraints": [constraint_to_jsonable(constraint) for constraint in puzzle.constraints],
    }


def puzzle_from_jsonable(raw: Any) -> Puzzle:
    if not isinstance(raw, Mapping):
        raise SerializationError("Puzzle payload must be an object")
    try:
        givens_raw = raw["givens"]
        if isinstance(givens_raw, Mapping):
            # "row,col" -> state
            givens = {
                Position(*(int(part) for part in key.split(","))): TileState(state)
                for key, state in givens_raw.items()
            }
        else:
            givens = {
                Position(int(row), int(col)): TileState(state)
                for row, col, state in givens_raw
            }
        seed = raw.get("seed")
        return Puzzle(
            solution=grid_from_jsonable(raw["solution"]),
            givens=givens,
            constraints=tuple(constraint_from_jsonable(entry) for entry in raw["constraints"]),
            difficulty=Difficulty(raw["difficulty"]),
            daily_key=str(raw["dailyKey"]),
            grid_size=int(raw["gridSize"]),
            seed=None if seed is None else int(seed),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise SerializationError(f"Malformed puzzle payload: {exc}") from exc
