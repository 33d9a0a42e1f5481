# File: routegen/utils.py
"""
RouteGen - Utility Functions & Helpers
========================================
String transformation, checksum, and timing helpers used throughout the
route generation pipeline.

Performance strategy:
- Name-conversion functions are decorated with ``@lru_cache(maxsize=None)``
  since the same model and field names are converted over and over while a
  route tree is built and materialized.
- No external dependencies beyond the Python standard library.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import time
from typing import List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("routegen.utils")


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def lower_first(name: str) -> str:
    """
    Lower-case only the first character of *name*.

    Examples:
        >>> lower_first("BlogPost")
        'blogPost'
        >>> lower_first("user")
        'user'
    """
    if not name:
        return ""
    return name[0].lower() + name[1:]


@functools.lru_cache(maxsize=None)
def upper_first(name: str) -> str:
    """
    Upper-case only the first character of *name*.

    Examples:
        >>> upper_first("id")
        'Id'
        >>> upper_first("orderNo")
        'OrderNo'
    """
    if not name:
        return ""
    return name[0].upper() + name[1:]


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string. O(n)."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string. O(n)."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("build routes") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug(
            "Timer [%s]: %.4f seconds",
            self.label,
            self.elapsed,
        )

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "lower_first",
    "upper_first",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("routegen.utils loaded — %d public symbols.", len(__all__))
