"""Puzzle assembly.

Each attempt runs the whole pipeline from one seed:

  1. Plan cannot-touch rules and synthesize a solution that honours them.
  2. Derive constraints from the solution and pick the givens.
  3. Check fill ratio, constraint validity and solver-confirmed solvability.

A failed attempt reseeds as ``seed + attempt`` and starts over. The number
of attempts is bounded; running out raises :class:`GenerationExhausted`.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Optional, Union

from ..core.constants import Difficulty
from ..core.difficulty import DifficultyConfig, get_difficulty_config
from ..core.exceptions import (AmbiguousPuzzleError, AxiomataError, FillRatioError,
                               GenerationExhausted, UnsolvableError, ValidationError)
from ..core.models import Puzzle
from ..core.rng import MASK32, SeededRNG, seed_from_string
from ..utils.logger import get_logger
from .constraints import generate_constraints
from .givens import select_givens
from .grid import fill_ratio
from .solver import (DEFAULT_MAX_ITERATIONS, DEFAULT_UNIQUENESS_ITERATIONS,
                     has_unique_solution, solution_agrees_with_givens, solve)
from .synthesizer import (DEFAULT_EMPTY_PROBABILITY, DEFAULT_SYNTHESIS_ATTEMPTS,
                          plan_adjacency_rules, synthesize_solution)
from .validator import validate_all


LOGGER = get_logger(__name__)


@dataclass
class GeneratorConfig:
    max_attempts: int = 12
    solver_max_iterations: int = DEFAULT_MAX_ITERATIONS
    empty_probability: float = DEFAULT_EMPTY_PROBABILITY
    synthesis_attempts: int = DEFAULT_SYNTHESIS_ATTEMPTS
    require_unique: bool = False
    uniqueness_max_iterations: int = DEFAULT_UNIQUENESS_ITERATIONS

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.solver_max_iterations < 1:
            raise ValueError("solver_max_iterations must be at least 1")
        if not 0.0 <= self.empty_probability < 1.0:
            raise ValueError("empty_probability must be in [0, 1)")


class PuzzleGenerator:
    """Builds the puzzle for a daily key at one difficulty."""

    def __init__(
        self,
        difficulty: Union[Difficulty, str] = Difficulty.MEDIUM,
        config: Optional[GeneratorConfig] = None,
    ) -> None:
        self.difficulty = Difficulty(difficulty)
        self.difficulty_config: DifficultyConfig = get_difficulty_config(self.difficulty)
        self.config = config or GeneratorConfig()

    # ------------------------------------------------------------------
    # Public entrypoint
    # ------------------------------------------------------------------
    def generate(self, daily_key: str) -> Puzzle:
        base_seed = seed_from_string(daily_key)
        failures: Counter = Counter()
        for attempt in range(self.config.max_attempts):
            seed = (base_seed + attempt) & MASK32
            LOGGER.info(
                "Generation attempt %s/%s for %s (%s, seed=%s)",
                attempt + 1,
                self.config.max_attempts,
                daily_key,
                self.difficulty.value,
                seed,
            )
            try:
                puzzle = self._attempt(daily_key, seed)
            except AxiomataError as exc:
                failures[type(exc).__name__] += 1
                LOGGER.warning("Generation attempt failed: %s", exc)
                continue
            LOGGER.info(
                "Puzzle ready after %s attempt(s): %s constraints, %s givens",
                attempt + 1,
                len(puzzle.constraints),
                len(puzzle.givens),
            )
            return puzzle

        summary = ", ".join(f"{name}={count}" for name, count in sorted(failures.items()))
        message = (
            f"Failed to generate a solvable {self.difficulty.value} puzzle for "
            f"'{daily_key}' after {self.config.max_attempts} attempts ({summary})"
        )
        LOGGER.error(message)
        raise GenerationExhausted(message, attempts=self.config.max_attempts, failures=failures)

    # ------------------------------------------------------------------
    # Single attempt
    # ------------------------------------------------------------------
    def _attempt(self, daily_key: str, seed: int) -> Puzzle:
        rng = SeededRNG(seed)
        config = self.difficulty_config

        adjacency, diagonal = plan_adjacency_rules(rng, config)
        solution = synthesize_solution(
            rng,
            config,
            [*adjacency, *diagonal],
            empty_probability=self.config.empty_probability,
            attempts=self.config.synthesis_attempts,
        )
        ratio = fill_ratio(solution)
        if ratio < config.min_fill_percentage:
            raise FillRatioError(
                f"Solution fill {ratio:.2f} below {config.min_fill_percentage:.2f}"
            )

        constraints = generate_constraints(solution, rng, config, adjacency)
        validation = validate_all(constraints, solution, config.grid_size)
        if not validation.is_valid:
            raise ValidationError(f"Solution breaks constraints {validation.failing()}")

        givens = select_givens(solution, constraints, rng, config.given_count)
        puzzle = Puzzle(
            solution=solution,
            givens=givens,
            constraints=tuple(constraints),
            difficulty=self.difficulty,
            daily_key=daily_key,
            grid_size=config.grid_size,
            seed=seed,
        )
        if not solution_agrees_with_givens(solution, puzzle):
            raise ValidationError("Givens disagree with the solution")

        if solve(puzzle, self.config.solver_max_iterations) is None:
            raise UnsolvableError(
                f"Solver found no solution within {self.config.solver_max_iterations} nodes"
            )
        if self.config.require_unique and not has_unique_solution(
            puzzle, self.config.uniqueness_max_iterations
        ):
            raise AmbiguousPuzzleError("Puzzle solution is not provably unique")
        return puzzle


def generate_puzzle(
    daily_key: str,
    difficulty: Union[Difficulty, str] = Difficulty.MEDIUM,
    config: Optional[GeneratorConfig] = None,
) -> Puzzle:
    """Deterministically build the puzzle for ``(daily_key, difficulty)``."""

    return PuzzleGenerator(difficulty, config).generate(daily_key)
