import json
import os
import subprocess
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

from axiomata.core.constants import DIAGONAL_STEPS, ORTHOGONAL_STEPS, Difficulty, LineDirection
from axiomata.core.difficulty import get_difficulty_config
from axiomata.core.exceptions import (FillRatioError, GenerationExhausted, UnsolvableError,
                                      ValidationError)
from axiomata.core.models import (AdjacencyConstraint, CountConstraint,
                                  DiagonalAdjacencyConstraint, PairConstraint,
                                  RegionConstraint)
from axiomata.core.rng import MASK32, SeededRNG, seed_from_string
from axiomata.engine.constraints import generate_constraints, longest_run, tally
from axiomata.engine.generator import GeneratorConfig, PuzzleGenerator, generate_puzzle
from axiomata.engine.givens import select_givens
from axiomata.engine.grid import fill_ratio, is_complete, neighbors
from axiomata.engine.solver import solution_agrees_with_givens, solve
from axiomata.engine.synthesizer import plan_adjacency_rules, synthesize_solution
from axiomata.engine.validator import constraint_scope, validate_all
from axiomata.io.serialization import puzzle_to_jsonable

REPO_ROOT = Path(__file__).resolve().parents[1]

FRESH_PROCESS_SCRIPT = (
    "import json\n"
    "from axiomata.engine.generator import generate_puzzle\n"
    "from axiomata.io.serialization import puzzle_to_jsonable\n"
    "print(json.dumps(puzzle_to_jsonable(generate_puzzle('2024-01-01', 'easy'))))\n"
)


class GeneratePuzzleTests(unittest.TestCase):
    def test_easy_daily_puzzle(self) -> None:
        puzzle = generate_puzzle("2024-01-01", "easy")
        self.assertEqual(puzzle.grid_size, 5)
        self.assertGreater(len(puzzle.constraints), 0)
        solved = solve(puzzle)
        self.assertIsNotNone(solved)
        assert solved is not None
        self.assertTrue(validate_all(puzzle.constraints, solved, puzzle.grid_size).is_valid)

    def test_generation_is_deterministic(self) -> None:
        first = generate_puzzle("2024-01-01", Difficulty.MEDIUM)
        second = generate_puzzle("2024-01-01", Difficulty.MEDIUM)
        self.assertEqual(first.givens, second.givens)
        self.assertEqual(first.constraints, second.constraints)
        self.assertEqual(first.solution, second.solution)

    def test_different_keys_differ(self) -> None:
        first = generate_puzzle("2024-01-01", "easy")
        second = generate_puzzle("2024-01-02", "easy")
        self.assertNotEqual((first.solution, first.givens), (second.solution, second.givens))

    def test_properties_hold_for_every_difficulty(self) -> None:
        for difficulty in Difficulty:
            with self.subTest(difficulty=difficulty.value):
                config = get_difficulty_config(difficulty)
                puzzle = generate_puzzle("2024-03-15", difficulty)
                self.assertEqual(puzzle.grid_size, config.grid_size)
                self.assertIs(puzzle.difficulty, difficulty)
                self.assertTrue(validate_all(puzzle.constraints, puzzle.solution).is_valid)
                self.assertGreaterEqual(fill_ratio(puzzle.solution), config.min_fill_percentage)
                self.assertLessEqual(len(puzzle.givens), config.given_count)
                for (row, col), state in puzzle.givens.items():
                    self.assertEqual(puzzle.solution[row][col], state)
                solved = solve(puzzle)
                self.assertIsNotNone(solved)
                assert solved is not None
                self.assertTrue(solution_agrees_with_givens(solved, puzzle))

    def test_adjacency_rules_hold_in_solution(self) -> None:
        puzzle = generate_puzzle("2024-06-01", "hard")
        size = puzzle.grid_size
        for constraint in puzzle.constraints:
            if isinstance(constraint, AdjacencyConstraint):
                steps = ORTHOGONAL_STEPS
            elif isinstance(constraint, DiagonalAdjacencyConstraint):
                steps = DIAGONAL_STEPS
            else:
                continue
            for row in range(size):
                for col in range(size):
                    if puzzle.solution[row][col] != constraint.tile_type:
                        continue
                    for nr, nc in neighbors(size, row, col, steps):
                        self.assertNotEqual(puzzle.solution[nr][nc], constraint.tile_type)

    def test_perpendicular_counts_agree_on_crossing_cell(self) -> None:
        crossings = 0
        for difficulty in Difficulty:
            puzzle = generate_puzzle("2024-03-15", difficulty)
            counts = [c for c in puzzle.constraints if isinstance(c, CountConstraint)]
            rows = [c for c in counts if c.direction == LineDirection.ROW]
            cols = [c for c in counts if c.direction == LineDirection.COL]
            for row in rows:
                for col in cols:
                    with self.subTest(difficulty=difficulty.value, row=row.index, col=col.index):
                        state = puzzle.solution[row.index][col.index]
                        self.assertGreater(row.counts_map().get(state, 0), 0)
                        self.assertGreater(col.counts_map().get(state, 0), 0)
                    crossings += 1
        self.assertGreater(crossings, 0)

    def test_same_puzzle_in_a_fresh_interpreter(self) -> None:
        puzzle = generate_puzzle("2024-01-01", "easy")
        expected = json.loads(json.dumps(puzzle_to_jsonable(puzzle)))
        base = seed_from_string("2024-01-01")
        self.assertEqual(base, 1395918025)
        attempt_seeds = {(base + i) & MASK32 for i in range(GeneratorConfig().max_attempts)}
        self.assertIn(puzzle.seed, attempt_seeds)

        pythonpath = os.pathsep.join(filter(None, [str(REPO_ROOT), os.environ.get("PYTHONPATH")]))
        for hash_seed in ("0", "4242"):
            with self.subTest(hash_seed=hash_seed):
                result = subprocess.run(
                    [sys.executable, "-c", FRESH_PROCESS_SCRIPT],
                    cwd=REPO_ROOT,
                    env={**os.environ, "PYTHONHASHSEED": hash_seed, "PYTHONPATH": pythonpath},
                    capture_output=True,
                    text=True,
                    check=True,
                )
                self.assertEqual(json.loads(result.stdout), expected)


class RetryLoopTests(unittest.TestCase):
    def test_attempts_reseed_as_seed_plus_attempt(self) -> None:
        generator = PuzzleGenerator("easy")
        sentinel = object()
        with patch.object(
            PuzzleGenerator,
            "_attempt",
            side_effect=[UnsolvableError("no"), ValidationError("bad"), sentinel],
        ) as attempt:
            self.assertIs(generator.generate("2024-01-01"), sentinel)

        base = seed_from_string("2024-01-01")
        seeds = [call.args[1] for call in attempt.call_args_list]
        self.assertEqual(seeds, [base, (base + 1) & MASK32, (base + 2) & MASK32])

    def test_exhaustion_reports_causes(self) -> None:
        generator = PuzzleGenerator("easy", GeneratorConfig(max_attempts=3))
        with patch.object(
            PuzzleGenerator,
            "_attempt",
            side_effect=[FillRatioError("sparse"), UnsolvableError("no"), FillRatioError("sparse")],
        ):
            with self.assertRaises(GenerationExhausted) as ctx:
                generator.generate("2024-01-01")

        self.assertEqual(ctx.exception.attempts, 3)
        self.assertEqual(ctx.exception.failures, {"FillRatioError": 2, "UnsolvableError": 1})
        self.assertIn("2024-01-01", str(ctx.exception))
        self.assertIn("easy", str(ctx.exception))

    def test_unprovable_uniqueness_exhausts(self) -> None:
        config = GeneratorConfig(max_attempts=2, require_unique=True, uniqueness_max_iterations=1)
        with self.assertRaises(GenerationExhausted) as ctx:
            generate_puzzle("2024-01-01", "easy", config)
        self.assertEqual(sum(ctx.exception.failures.values()), 2)

    def test_config_rejects_bad_values(self) -> None:
        with self.assertRaises(ValueError):
            GeneratorConfig(max_attempts=0)
        with self.assertRaises(ValueError):
            GeneratorConfig(empty_probability=1.5)
        with self.assertRaises(ValueError):
            GeneratorConfig(solver_max_iterations=0)

    def test_failed_attempts_and_exhaustion_are_logged(self) -> None:
        generator = PuzzleGenerator("easy", GeneratorConfig(max_attempts=2))
        with patch.object(
            PuzzleGenerator,
            "_attempt",
            side_effect=[UnsolvableError("no solution"), FillRatioError("sparse")],
        ):
            with self.assertLogs("axiomata.engine.generator", "INFO") as logs:
                with self.assertRaises(GenerationExhausted):
                    generator.generate("2024-01-01")

        levels = [record.levelname for record in logs.records]
        self.assertEqual(levels.count("INFO"), 2)
        self.assertEqual(levels.count("WARNING"), 2)
        self.assertEqual(levels[-1], "ERROR")
        self.assertIn("seed=%d" % seed_from_string("2024-01-01"), logs.output[0])
        self.assertIn("no solution", logs.output[1])


class PipelineStageTests(unittest.TestCase):
    def setUp(self) -> None:
        self.config = get_difficulty_config(Difficulty.EXPERT)
        self.rng = SeededRNG(seed_from_string("stages"))
        self.adjacency, self.diagonal = plan_adjacency_rules(self.rng, self.config)
        self.solution = synthesize_solution(self.rng, self.config, [*self.adjacency, *self.diagonal])

    def test_planned_rule_counts_follow_quota(self) -> None:
        quota = self.config.constraint_counts
        self.assertEqual(len(self.adjacency), quota.adjacency)
        self.assertEqual(len(self.diagonal), quota.diagonal_adjacency)

    def test_refill_rescues_sparse_pass(self) -> None:
        for difficulty in Difficulty:
            with self.subTest(difficulty=difficulty.value):
                config = get_difficulty_config(difficulty)
                rng = SeededRNG(seed_from_string(f"refill-{difficulty.value}"))
                adjacency, diagonal = plan_adjacency_rules(rng, config)
                rules = [*adjacency, *diagonal]
                grid = synthesize_solution(rng, config, rules, empty_probability=0.9, attempts=1)
                self.assertTrue(is_complete(grid))
                self.assertGreaterEqual(fill_ratio(grid), config.min_fill_percentage)
                self.assertTrue(validate_all(rules, grid).is_valid)

    def test_synthesized_grid_is_complete(self) -> None:
        self.assertEqual(len(self.solution), self.config.grid_size)
        self.assertTrue(is_complete(self.solution))
        self.assertTrue(validate_all([*self.adjacency, *self.diagonal], self.solution).is_valid)

    def test_derived_constraints_hold_in_solution(self) -> None:
        constraints = generate_constraints(self.solution, self.rng, self.config, self.adjacency)
        self.assertTrue(validate_all(constraints, self.solution).is_valid)
        self.assertEqual(constraints[: len(self.adjacency)], self.adjacency)

    def test_givens_do_not_complete_tallies_or_pairs(self) -> None:
        constraints = generate_constraints(self.solution, self.rng, self.config, self.adjacency)
        givens = select_givens(self.solution, constraints, self.rng, self.config.given_count)
        self.assertLessEqual(len(givens), self.config.given_count)
        for cell, state in givens.items():
            self.assertEqual(self.solution[cell.row][cell.col], state)
        for constraint in constraints:
            if isinstance(constraint, (CountConstraint, RegionConstraint)):
                scope = constraint_scope(constraint, self.config.grid_size)
                self.assertFalse(all(cell in givens for cell in scope))
            elif isinstance(constraint, PairConstraint):
                self.assertFalse(constraint.cell1 in givens and constraint.cell2 in givens)


class HelperTests(unittest.TestCase):
    def test_tally_orders_states(self) -> None:
        from axiomata.core.constants import TileState as T

        self.assertEqual(
            tally([T.MOON, T.EMPTY, T.SUN, T.MOON, None]),
            ((T.EMPTY, 1), (T.SUN, 1), (T.MOON, 2)),
        )

    def test_longest_run_ignores_empty(self) -> None:
        from axiomata.core.constants import TileState as T

        self.assertEqual(longest_run([T.SUN, T.SUN, T.EMPTY, T.EMPTY, T.EMPTY, T.MOON]), 2)
        self.assertEqual(longest_run([]), 0)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
