"""Logging utilities tailored for puzzle generation."""

from __future__ import annotations

import logging
from typing import Optional


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logging with a sensible formatter.

    Levels used by the engine:

    - INFO: each generation attempt with its key, difficulty and seed, and the
      constraint and given counts of the accepted puzzle.
    - WARNING: an attempt that failed, with the error that ended it.
    - ERROR: a key whose attempts were all exhausted.
    - DEBUG: synthesis passes and refills, derived constraint and given
      counts, solver node counts, CP-SAT status.

    Callers can reconfigure before invoking :func:`axiomata.generate_puzzle`.
    """

    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a namespaced logger, configuring defaults if needed."""

    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name or "axiomata")
