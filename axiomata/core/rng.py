"""Deterministic pseudo-random numbers derived from string keys.

All arithmetic is masked to 32 bits so a key yields the same sequence on
every platform and interpreter. Nothing here touches the OS entropy pool.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")

MASK32 = 0xFFFFFFFF
_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193


def seed_from_string(key: str) -> int:
    """32-bit FNV-1a hash of the UTF-8 encoded key."""

    value = _FNV_OFFSET
    for byte in key.encode("utf-8"):
        value ^= byte
        value = (value * _FNV_PRIME) & MASK32
    return value


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK32


class SeededRNG:
    """Mulberry32 generator."""

    def __init__(self, seed: int) -> None:
        self.seed = seed & MASK32
        self._state = self.seed

    def next(self) -> float:
        """Return a float in ``[0, 1)``."""

        self._state = (self._state + 0x6D2B79F5) & MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK32
        t &= MASK32
        return ((t ^ (t >> 14)) & MASK32) / 4294967296

    def next_int(self, lo: int, hi: int) -> int:
        """Return an integer in ``[lo, hi]``."""

        if hi < lo:
            raise ValueError(f"Empty range [{lo}, {hi}]")
        return lo + int(self.next() * (hi - lo + 1))

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("Cannot choose from an empty sequence")
        return items[self.next_int(0, len(items) - 1)]

    def shuffle(self, items: List[T]) -> List[T]:
        """Fisher-Yates shuffle in place; returns ``items`` for chaining."""

        for i in range(len(items) - 1, 0, -1):
            j = self.next_int(0, i)
            items[i], items[j] = items[j], items[i]
        return items


def daily_key(day: Optional[date] = None) -> str:
    """Key of the puzzle of the day, e.g. ``2024-01-01``."""

    return (day or date.today()).isoformat()


def practice_key(salt: int, rng: SeededRNG) -> str:
    """Key for an off-calendar practice puzzle."""

    return f"practice-{salt}-{rng.next_int(0, 999_999)}"
