"""Pretty-print helpers for puzzle grids."""

from __future__ import annotations

import sys
from collections import Counter
from typing import Mapping, Optional

from ..core.constants import TileState
from ..core.models import Grid, Position, Puzzle


SYMBOLS = {
    TileState.EMPTY: "-",
    TileState.SUN: "S",
    TileState.MOON: "M",
    TileState.STAR: "*",
    TileState.PLANET: "P",
    TileState.COMET: "C",
}


def tile_symbol(tile: Optional[TileState]) -> str:
    if tile is None:
        return "."
    return SYMBOLS.get(tile, "?")


def format_grid(grid: Grid, givens: Optional[Mapping[Position, TileState]] = None) -> str:
    """Render a grid; givens are bracketed when ``givens`` is passed."""

    width = len(grid)
    header_cells = [f"{c:>3}" for c in range(width)]
    lines = ["    " + "".join(header_cells)]
    lines.append("    " + "-" * (3 * width))
    for r, row in enumerate(grid):
        rendered = []
        for c, tile in enumerate(row):
            symbol = tile_symbol(tile)
            if givens is not None and (r, c) in givens:
                symbol = f"[{symbol}]"
            rendered.append(f"{symbol:>3}")
        lines.append(f"{r:>2} |" + "".join(rendered))
    return "\n".join(lines)


def pretty_print_grid(grid: Grid, *, label: str | None = None, givens=None, stream=None) -> None:
    """Print the grid in a human-friendly format."""

    stream = stream or sys.stdout
    if label:
        print(label, file=stream)
    print(format_grid(grid, givens), file=stream)


def print_puzzle_stats(puzzle: Puzzle, *, stream=None) -> None:
    """Print the solution board plus constraint and fill statistics."""

    stream = stream or sys.stdout
    print(format_grid(puzzle.solution, puzzle.givens), file=stream)

    # --- Grid ---
    total_cells = puzzle.grid_size * puzzle.grid_size
    tiles = Counter(tile for row in puzzle.solution for tile in row if tile is not None)
    pieces = sum(amount for tile, amount in tiles.items() if tile.is_piece)

    print(file=stream)
    print("--- Grid ---", file=stream)
    print(f"  Size:          {puzzle.grid_size} x {puzzle.grid_size} ({total_cells} cells)", file=stream)
    print(f"  Pieces:        {pieces} ({pieces / total_cells * 100:.0f}%)", file=stream)
    print(f"  Empty:         {tiles.get(TileState.EMPTY, 0)}", file=stream)
    dist_parts = [f"{SYMBOLS[tile]}:{tiles[tile]}" for tile in TileState if tiles.get(tile)]
    print(f"  Distribution:  {' '.join(dist_parts)}", file=stream)

    # --- Constraints ---
    kinds = Counter(constraint.kind for constraint in puzzle.constraints)
    print(file=stream)
    print("--- Constraints ---", file=stream)
    print(f"  Total:         {len(puzzle.constraints)}", file=stream)
    for kind, amount in sorted(kinds.items()):
        print(f"  {kind + ':':<15}{amount}", file=stream)
    print(f"  Givens:        {len(puzzle.givens)}", file=stream)

    print(file=stream)
    print(f"Key: {puzzle.daily_key} ({puzzle.difficulty.value})", file=stream)
    if puzzle.seed is not None:
        print(f"Seed: {puzzle.seed}", file=stream)
