"""Collect the entries of a trash directory."""

from __future__ import annotations

import asyncio
import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .rot import extension_of

if TYPE_CHECKING:
    from .config import PruneConfig
    from .rot import RotPolicy


@dataclass(frozen=True)
class TrashEntry:
    """A top-level item of the trash directory."""

    name: str
    path: Path
    is_dir: bool
    size: int
    last_accessed: float  # seconds since the epoch
    extension_factor: float = 1.0
    rot_score: float | None = None

    def __post_init__(self) -> None:
        if self.size < 0:
            msg = f"Entry size must be non-negative, got {self.size}"
            raise ValueError(msg)
        if self.extension_factor <= 0:
            msg = f"Extension factor must be positive, got {self.extension_factor}"
            raise ValueError(msg)

    @property
    def kind(self) -> str:
        return "dir" if self.is_dir else "file"


def _raise(error: OSError) -> None:
    raise error


def walk_directory(directory: Path) -> tuple[int, list[str]]:
    """Walk a directory tree without following symlinks.

    Args:
        directory: Directory to walk.

    Returns:
        Total size of the regular files found and the extension of each one.

    Raises:
        OSError: If any part of the tree cannot be read.

    """
    total = 0
    extensions: list[str] = []

    for root, _dirs, files in os.walk(directory, onerror=_raise):
        for filename in files:
            st = os.lstat(os.path.join(root, filename))
            if stat.S_ISREG(st.st_mode):
                total += st.st_size
                extensions.append(extension_of(filename))

    return total, extensions


class TrashCollector:
    """Builds TrashEntry records for every item in the trash directory."""

    def __init__(self, config: PruneConfig, policy: RotPolicy, logger: logging.Logger) -> None:
        """Initialize the collector.

        Args:
            config: Prune configuration.
            policy: Rot policy used to resolve extension factors.
            logger: Logger instance.

        """
        self.config = config
        self.policy = policy
        self.logger = logger
        self.skipped: list[str] = []

    def inspect(self, path: Path) -> TrashEntry:
        """Build the entry for a single item.

        Symlinks are not followed; a link is an entry of its own.

        Raises:
            OSError: If the item cannot be inspected.

        """
        st = path.lstat()
        is_dir = stat.S_ISDIR(st.st_mode)

        if is_dir:
            size, extensions = walk_directory(path)
            factor = self.policy.factor_for_directory(
                extensions,
                keep_empty_dirs=self.config.keep_empty_dirs,
            )
        else:
            size = st.st_size
            factor = self.policy.factor_for_file(path.name)

        return TrashEntry(
            name=path.name,
            path=path,
            is_dir=is_dir,
            size=size,
            last_accessed=st.st_atime,
            extension_factor=factor,
        )

    async def _collect_one(self, name: str, semaphore: asyncio.Semaphore) -> TrashEntry | None:
        path = self.config.trash_dir / name
        async with semaphore:
            try:
                return await asyncio.to_thread(self.inspect, path)
            except OSError as e:
                self.logger.warning("Skipping %s: %s", name, e)
                self.skipped.append(name)
                return None

    async def collect(self) -> list[TrashEntry]:
        """Collect every item of the trash directory, in name order.

        Items that fail to be inspected are logged and left out.

        Raises:
            OSError: If the trash directory itself cannot be listed.

        """
        self.skipped = []
        names = sorted(os.listdir(self.config.trash_dir))
        self.logger.debug("Found %d items in %s", len(names), self.config.trash_dir)

        semaphore = asyncio.Semaphore(max(1, self.config.collect_concurrency))
        entries = await asyncio.gather(*(self._collect_one(name, semaphore) for name in names))

        return [entry for entry in entries if entry is not None]
