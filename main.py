"""CLI entrypoint for the daily puzzle generator."""

from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict

from axiomata.core.constants import Difficulty
from axiomata.core.exceptions import GenerationExhausted
from axiomata.core.rng import SeededRNG, daily_key, practice_key
from axiomata.engine.cpsat import has_unique_solution_cpsat, solve_with_cpsat
from axiomata.engine.generator import GeneratorConfig, PuzzleGenerator
from axiomata.engine.solver import DEFAULT_MAX_ITERATIONS, has_unique_solution, solve
from axiomata.engine.validator import validate_all
from axiomata.io.serialization import grid_to_jsonable, puzzle_to_jsonable
from axiomata.utils.logger import configure_logging, get_logger
from axiomata.utils.pretty import pretty_print_grid, print_puzzle_stats

LOGGER = get_logger("axiomata.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate the deterministic daily logic-grid puzzle",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--date",
        type=date.fromisoformat,
        help="Calendar date of the puzzle (YYYY-MM-DD, default today)",
    )
    source.add_argument("--key", type=str, help="Explicit puzzle key")
    source.add_argument(
        "--practice",
        type=int,
        metavar="SALT",
        help="Generate an off-calendar practice puzzle derived from SALT",
    )
    parser.add_argument(
        "--difficulty",
        type=str,
        choices=[d.value for d in Difficulty],
        default=Difficulty.MEDIUM.value,
        help="Difficulty level",
    )
    parser.add_argument("--solve", action="store_true", help="Solve the puzzle from its givens")
    parser.add_argument(
        "--unique",
        action="store_true",
        help="Check whether the givens admit exactly one solution",
    )
    parser.add_argument(
        "--engine",
        choices=["backtrack", "cpsat"],
        default="backtrack",
        help="Solver used by --solve and --unique",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=DEFAULT_MAX_ITERATIONS,
        help="Node budget for the backtracking solver",
    )
    parser.add_argument("--pretty", action="store_true", help="Print a text board instead of JSON")
    parser.add_argument("--output", type=Path, help="Optional path to JSON output")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = getattr(logging, args.log_level.upper(), logging.INFO)
    configure_logging(level)

    if args.max_iterations < 1:
        parser.error("--max-iterations must be at least 1")

    if args.practice is not None:
        key = practice_key(args.practice, SeededRNG(args.practice))
    else:
        key = args.key or daily_key(args.date)
    config = GeneratorConfig(solver_max_iterations=args.max_iterations)
    try:
        puzzle = PuzzleGenerator(args.difficulty, config).generate(key)
    except GenerationExhausted as exc:
        LOGGER.error("%s", exc)
        return 1

    payload: Dict[str, Any] = puzzle_to_jsonable(puzzle)

    solved = None
    if args.solve:
        if args.engine == "cpsat":
            solved = solve_with_cpsat(puzzle)
        else:
            solved = solve(puzzle, args.max_iterations)
        payload["solved"] = grid_to_jsonable(solved) if solved is not None else None
        if solved is not None:
            payload["solvedValid"] = validate_all(puzzle.constraints, solved, puzzle.grid_size).is_valid

    if args.unique:
        if args.engine == "cpsat":
            payload["unique"] = has_unique_solution_cpsat(puzzle)
        else:
            payload["unique"] = has_unique_solution(puzzle)

    if args.pretty:
        print_puzzle_stats(puzzle)
        if solved is not None:
            print()
            pretty_print_grid(solved, label=f"Solved ({args.engine}):")
        if "unique" in payload:
            print(f"Unique: {payload['unique']}")

    output_text = json.dumps(payload, ensure_ascii=False, indent=2)
    if args.output:
        args.output.write_text(output_text, encoding="utf-8")
    elif not args.pretty:
        print(output_text)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
