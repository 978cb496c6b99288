"""Custom exception hierarchy for puzzle generation."""

from __future__ import annotations

from typing import Dict, Optional


class AxiomataError(Exception):
    """Base exception for engine failures."""


class ValidationError(AxiomataError):
    """Raised when a generated solution or its givens break the puzzle rules."""


class FillRatioError(AxiomataError):
    """Raised when a synthesized solution is too sparse for its difficulty."""


class UnsolvableError(AxiomataError):
    """Raised when the solver cannot confirm a puzzle within its node budget."""


class AmbiguousPuzzleError(AxiomataError):
    """Raised when a unique solution was required but not proven."""


class SerializationError(AxiomataError):
    """Raised when a puzzle payload cannot be decoded."""


class GenerationExhausted(AxiomataError):
    """Raised when every generation attempt failed.

    This signals a misconfigured difficulty table rather than a transient
    condition, so callers are not expected to retry.
    """

    def __init__(
        self,
        message: str,
        attempts: int = 0,
        failures: Optional[Dict[str, int]] = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.failures = dict(failures or {})
