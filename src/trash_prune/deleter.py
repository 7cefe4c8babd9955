"""Permanent removal of selected trash entries."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .collector import TrashEntry
    from .config import PruneConfig

TRASHINFO_SUFFIX = ".trashinfo"


@dataclass
class DeleteResult:
    """Result of deleting one entry."""

    entry: TrashEntry
    success: bool
    action: str  # "deleted", "skipped", "error"
    info_removed: bool = False
    error: str | None = None


class Deleter:
    """Deletes trash entries and their XDG trash metadata."""

    def __init__(self, config: PruneConfig, logger: logging.Logger) -> None:
        """Initialize the deleter.

        Args:
            config: Prune configuration.
            logger: Logger instance.

        """
        self.config = config
        self.logger = logger

    def trashinfo_path(self, entry: TrashEntry) -> Path | None:
        """Get the ``info/<name>.trashinfo`` file paired with an entry.

        Returns:
            The metadata path, or None when the trash directory is not an
            XDG ``files`` directory.

        """
        trash_dir = self.config.trash_dir
        if trash_dir.name != "files":
            return None
        return trash_dir.parent / "info" / f"{entry.name}{TRASHINFO_SUFFIX}"

    def delete(self, entry: TrashEntry) -> DeleteResult:
        """Permanently delete one entry.

        Args:
            entry: Entry to delete.

        Returns:
            DeleteResult with operation details.

        """
        path = entry.path

        if not path.exists() and not path.is_symlink():
            return DeleteResult(
                entry=entry,
                success=False,
                action="skipped",
                error="Entry no longer exists",
            )

        self.logger.info("Deleting: %s", entry.name)

        try:
            if entry.is_dir and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        except PermissionError as e:
            self.logger.error("Permission denied deleting %s: %s", path, e)
            return DeleteResult(
                entry=entry,
                success=False,
                action="error",
                error=f"Permission denied: {e}",
            )
        except OSError as e:
            self.logger.error("Error deleting %s: %s", path, e)
            return DeleteResult(
                entry=entry,
                success=False,
                action="error",
                error=str(e),
            )

        return DeleteResult(
            entry=entry,
            success=True,
            action="deleted",
            info_removed=self._remove_trashinfo(entry),
        )

    def _remove_trashinfo(self, entry: TrashEntry) -> bool:
        info = self.trashinfo_path(entry)
        if info is None or not info.is_file():
            return False

        try:
            info.unlink()
        except OSError as e:
            # Entry is already removed and still counts as deleted
            self.logger.warning("Could not remove trash info %s: %s", info, e)
            return False

        self.logger.debug("Removed trash info: %s", info.name)
        return True

    async def delete_all(self, entries: Iterable[TrashEntry]) -> list[DeleteResult]:
        """Delete entries concurrently.

        A failure on one entry does not stop the others.

        Returns:
            One result per entry, in input order.

        """
        return list(await asyncio.gather(*(asyncio.to_thread(self.delete, entry) for entry in entries)))
