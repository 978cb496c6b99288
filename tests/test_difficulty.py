import unittest

from axiomata.core.constants import PIECES, Difficulty, TileState
from axiomata.core.difficulty import get_difficulty_config


class DifficultyTableTests(unittest.TestCase):
    def test_grid_sizes(self) -> None:
        sizes = {level: get_difficulty_config(level).grid_size for level in Difficulty}
        self.assertEqual(
            sizes,
            {Difficulty.EASY: 5, Difficulty.MEDIUM: 6, Difficulty.HARD: 7, Difficulty.EXPERT: 8},
        )

    def test_alphabet_starts_with_empty(self) -> None:
        config = get_difficulty_config(Difficulty.MEDIUM)
        self.assertEqual(config.alphabet, (TileState.EMPTY,) + PIECES[:3])

    def test_levels_grow_monotonically(self) -> None:
        configs = [get_difficulty_config(level) for level in Difficulty]
        for easier, harder in zip(configs, configs[1:]):
            self.assertLess(easier.grid_size, harder.grid_size)
            self.assertLess(len(easier.available_pieces), len(harder.available_pieces))
            self.assertLessEqual(easier.constraint_counts.total, harder.constraint_counts.total)
            self.assertLessEqual(easier.min_fill_percentage, harder.min_fill_percentage)

    def test_expert_uses_every_constraint_kind(self) -> None:
        quota = get_difficulty_config("expert").constraint_counts
        self.assertEqual(quota.adjacency, 3)
        self.assertEqual(quota.count, 5)
        self.assertEqual(quota.pair, 3)
        self.assertEqual(quota.region, 2)
        self.assertEqual(quota.diagonal_adjacency, 2)
        self.assertEqual(quota.pattern, 2)
        self.assertEqual(quota.balance, 2)
        self.assertEqual(quota.total, 19)

    def test_difficulty_parsing_is_case_insensitive(self) -> None:
        self.assertIs(Difficulty("EASY"), Difficulty.EASY)
        self.assertIs(Difficulty(" Hard "), Difficulty.HARD)

    def test_unknown_difficulty_raises(self) -> None:
        with self.assertRaises(ValueError):
            get_difficulty_config("impossible")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
