"""Rot score computation."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .collector import TrashEntry
    from .selector import SelectionTarget


def rot_score(last_accessed: float, size_factor: float, extension_factor: float) -> float:
    """Compute ``log10(last_accessed * size_factor * extension_factor)``.

    Returns -inf, the least urgent score, when any factor is zero, negative
    or not finite (pre-epoch access times, zero-byte files in byte mode).
    """
    factors = (last_accessed, size_factor, extension_factor)
    if any(not math.isfinite(f) or f <= 0 for f in factors):
        return -math.inf

    # Sum of logs: the product itself can overflow to inf
    return math.log10(last_accessed) + math.log10(size_factor) + math.log10(extension_factor)


class Scorer:
    """Scores trash entries; a higher score means delete sooner."""

    def __init__(self, *, by_bytes: bool) -> None:
        """Initialize the scorer.

        Args:
            by_bytes: Whether entry size weighs in, as in byte-budget runs.

        """
        self.by_bytes = by_bytes

    @classmethod
    def for_target(cls, target: SelectionTarget) -> Scorer:
        return cls(by_bytes=target.by_bytes)

    def score(self, entry: TrashEntry) -> float:
        size_factor = entry.size if self.by_bytes else 1
        return rot_score(entry.last_accessed, size_factor, entry.extension_factor)

    def score_all(self, entries: Iterable[TrashEntry]) -> list[TrashEntry]:
        """Return scored copies of the entries, in input order."""
        return [replace(entry, rot_score=self.score(entry)) for entry in entries]
