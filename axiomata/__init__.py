"""Deterministic daily logic-grid puzzle engine.

This package exposes the public API surface via:

- ``axiomata.engine.generator.generate_puzzle``: builds the puzzle for a daily key.
- ``axiomata.engine.solver``: backtracking ``solve`` and ``has_unique_solution``.
- ``axiomata.engine.validator.validate_all``: checks any grid against the rules.
"""

from .core.constants import Difficulty, TileState
from .core.exceptions import GenerationExhausted
from .core.models import Puzzle
from .engine.generator import GeneratorConfig, PuzzleGenerator, generate_puzzle
from .engine.solver import has_unique_solution, solve
from .engine.validator import validate_all

__all__ = [
    "Difficulty",
    "GenerationExhausted",
    "GeneratorConfig",
    "Puzzle",
    "PuzzleGenerator",
    "TileState",
    "generate_puzzle",
    "has_unique_solution",
    "solve",
    "validate_all",
]

__version__ = "0.1.0"
