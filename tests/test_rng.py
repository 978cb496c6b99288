import re
import unittest
from datetime import date

from axiomata.core.rng import SeededRNG, daily_key, practice_key, seed_from_string


class SeedHashTests(unittest.TestCase):
    def test_fnv1a_reference_values(self) -> None:
        self.assertEqual(seed_from_string(""), 0x811C9DC5)
        self.assertEqual(seed_from_string("a"), 0xE40C292C)

    def test_distinct_keys_give_distinct_seeds(self) -> None:
        self.assertNotEqual(seed_from_string("2024-01-01"), seed_from_string("2024-01-02"))

    def test_seed_fits_in_32_bits(self) -> None:
        for key in ("", "2024-01-01", "practice-7-123456", "ünïcødé"):
            seed = seed_from_string(key)
            self.assertGreaterEqual(seed, 0)
            self.assertLessEqual(seed, 0xFFFFFFFF)


class SeededRNGTests(unittest.TestCase):
    def test_same_seed_same_sequence(self) -> None:
        first = SeededRNG(1234)
        second = SeededRNG(1234)
        self.assertEqual([first.next() for _ in range(50)], [second.next() for _ in range(50)])

    def test_different_seeds_diverge(self) -> None:
        first = SeededRNG(1)
        second = SeededRNG(2)
        self.assertNotEqual([first.next() for _ in range(5)], [second.next() for _ in range(5)])

    def test_next_is_unit_interval(self) -> None:
        rng = SeededRNG(seed_from_string("2024-01-01"))
        for _ in range(1000):
            value = rng.next()
            self.assertGreaterEqual(value, 0.0)
            self.assertLess(value, 1.0)

    def test_next_int_is_inclusive(self) -> None:
        rng = SeededRNG(99)
        seen = {rng.next_int(2, 4) for _ in range(500)}
        self.assertEqual(seen, {2, 3, 4})
        self.assertEqual(rng.next_int(7, 7), 7)

    def test_next_int_rejects_empty_range(self) -> None:
        with self.assertRaises(ValueError):
            SeededRNG(1).next_int(3, 2)

    def test_choice_rejects_empty_sequence(self) -> None:
        with self.assertRaises(IndexError):
            SeededRNG(1).choice([])

    def test_shuffle_is_a_deterministic_permutation(self) -> None:
        items = list(range(20))
        shuffled = SeededRNG(5).shuffle(list(items))
        self.assertEqual(sorted(shuffled), items)
        self.assertEqual(shuffled, SeededRNG(5).shuffle(list(items)))

    def test_seed_is_masked(self) -> None:
        self.assertEqual(SeededRNG(2 ** 32 + 5).seed, 5)


class ReferenceValueTests(unittest.TestCase):
    """Pinned outputs so a platform or interpreter change cannot shift every puzzle."""

    def test_daily_seed(self) -> None:
        self.assertEqual(seed_from_string("2024-01-01"), 1395918025)

    def test_mulberry32_reference_sequence(self) -> None:
        rng = SeededRNG(0)
        self.assertEqual([int(rng.next() * 2 ** 32) for _ in range(3)], [1144304738, 1416247, 958946056])

    def test_daily_sequence(self) -> None:
        rng = SeededRNG(seed_from_string("2024-01-01"))
        self.assertEqual(
            [int(rng.next() * 2 ** 32) for _ in range(5)],
            [223890581, 3998385148, 3826490604, 1653933499, 4116337914],
        )

    def test_daily_next_int(self) -> None:
        rng = SeededRNG(seed_from_string("2024-01-01"))
        self.assertEqual([rng.next_int(0, 9) for _ in range(5)], [0, 9, 8, 3, 9])


class KeyTests(unittest.TestCase):
    def test_daily_key_is_iso_date(self) -> None:
        self.assertEqual(daily_key(date(2024, 1, 1)), "2024-01-01")

    def test_practice_key_format(self) -> None:
        key = practice_key(3, SeededRNG(10))
        self.assertRegex(key, re.compile(r"^practice-3-\d{1,6}$"))
        self.assertEqual(key, practice_key(3, SeededRNG(10)))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
