"""Rank scored entries and pick the ones to delete within a budget."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .collector import TrashEntry


class TargetKind(Enum):
    """What the budget counts."""

    COUNT = "count"  # Number of entries
    BYTES = "bytes"  # Total size in bytes


class Sense(Enum):
    """Whether the budget is the amount to delete or the amount to keep."""

    DELETE = "delete"
    KEEP = "keep"


@dataclass(frozen=True)
class SelectionTarget:
    """A deletion budget."""

    kind: TargetKind
    amount: int
    sense: Sense = Sense.DELETE

    def __post_init__(self) -> None:
        if self.amount < 0:
            msg = f"Target amount must be non-negative, got {self.amount}"
            raise ValueError(msg)

    @classmethod
    def count(cls, n: int, sense: Sense = Sense.DELETE) -> SelectionTarget:
        return cls(TargetKind.COUNT, n, sense)

    @classmethod
    def size(cls, n_bytes: int, sense: Sense = Sense.DELETE) -> SelectionTarget:
        return cls(TargetKind.BYTES, n_bytes, sense)

    @property
    def by_bytes(self) -> bool:
        return self.kind is TargetKind.BYTES

    def describe(self) -> str:
        unit = "bytes" if self.by_bytes else "entries"
        return f"{self.sense.value} {self.amount} {unit}"


@dataclass(frozen=True)
class Selection:
    """Outcome of a selection run."""

    ranked: tuple[TrashEntry, ...]
    to_delete: tuple[TrashEntry, ...]
    to_keep: tuple[TrashEntry, ...]
    total_size: int
    total_count: int
    resolved_target: int  # Entries or bytes to delete after resolving the target

    @property
    def deleted_size(self) -> int:
        return sum(entry.size for entry in self.to_delete)

    @property
    def kept_size(self) -> int:
        return self.total_size - self.deleted_size

    @property
    def nothing_to_delete(self) -> bool:
        return self.resolved_target == 0 or not self.to_delete


class Selector:
    """Selects the entries to delete for a given target."""

    def __init__(self, target: SelectionTarget) -> None:
        self.target = target

    @staticmethod
    def rank(entries: Iterable[TrashEntry]) -> list[TrashEntry]:
        """Sort entries by descending rot score.

        Equal scores keep their input order.

        Raises:
            ValueError: If an entry has not been scored.

        """
        entries = list(entries)
        if unscored := [entry.name for entry in entries if entry.rot_score is None]:
            msg = f"Entries must be scored before ranking: {', '.join(unscored)}"
            raise ValueError(msg)
        return sorted(entries, key=lambda entry: entry.rot_score, reverse=True)

    def resolve(self, total_count: int, total_size: int) -> int:
        """Return how many entries (count) or bytes (size) to delete."""
        total = total_size if self.target.by_bytes else total_count
        limit = min(self.target.amount, total)
        if self.target.sense is Sense.KEEP:
            return total - limit
        return limit

    @staticmethod
    def walk(
        ranked: Sequence[TrashEntry],
        *,
        max_count: int | None = None,
        max_bytes: int | None = None,
    ) -> tuple[list[TrashEntry], list[TrashEntry]]:
        """Split ranked entries into (to_delete, to_keep).

        Each budget given is a ceiling of its own; None means unlimited.
        An entry that would push the byte total past max_bytes is kept and
        the walk goes on with the next, possibly smaller, entries.
        """
        to_delete: list[TrashEntry] = []
        to_keep: list[TrashEntry] = []
        deleted_bytes = 0

        for entry in ranked:
            count_reached = max_count is not None and len(to_delete) >= max_count
            overshoots = max_bytes is not None and deleted_bytes + entry.size > max_bytes
            if count_reached or overshoots:
                to_keep.append(entry)
                continue

            to_delete.append(entry)
            deleted_bytes += entry.size

        return to_delete, to_keep

    def select(self, entries: Iterable[TrashEntry]) -> Selection:
        """Rank entries and split them according to the target.

        Args:
            entries: Scored entries.

        Returns:
            Selection partitioning every entry exactly once.

        """
        ranked = self.rank(entries)
        total_count = len(ranked)
        total_size = sum(entry.size for entry in ranked)
        resolved = self.resolve(total_count, total_size)

        if resolved == 0:
            to_delete: list[TrashEntry] = []
            to_keep = ranked
        elif self.target.by_bytes:
            to_delete, to_keep = self.walk(ranked, max_bytes=resolved)
        else:
            to_delete, to_keep = self.walk(ranked, max_count=resolved)

        return Selection(
            ranked=tuple(ranked),
            to_delete=tuple(to_delete),
            to_keep=tuple(to_keep),
            total_size=total_size,
            total_count=total_count,
            resolved_target=resolved,
        )
