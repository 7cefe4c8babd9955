"""Tests for full prune runs."""

from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from trash_prune.collector import TrashCollector, TrashEntry
from trash_prune.config import ConfigError, PruneConfig
from trash_prune.pruner import LOGGER_NAME, RunOutcome, TrashPruner

ATIME = 1_700_000_000


@pytest.fixture
def trash_dir(tmp_path: Path) -> Path:
    """Create a trash ``files`` directory with a few items."""
    files = tmp_path / "Trash" / "files"
    files.mkdir(parents=True)
    (tmp_path / "Trash" / "info").mkdir()

    for name, size in (("clip.mp4", 4000), ("notes.txt", 1000), ("paper.pdf", 2000)):
        path = files / name
        path.write_bytes(b"x" * size)
        os.utime(path, (ATIME, ATIME))
    return files


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=200, color_system=None)


def _pruner(trash_dir: Path, console: Console, **kwargs: object) -> TrashPruner:
    kwargs.setdefault("unattended", True)
    config = PruneConfig(trash_dir=trash_dir, **kwargs)  # type: ignore[arg-type]
    return TrashPruner(config, console=console)


def _remaining(trash_dir: Path) -> list[str]:
    return sorted(p.name for p in trash_dir.iterdir())


class TestPrunerInit:
    """Tests for pruner construction."""

    def test_both_targets_abort_before_collecting(self, trash_dir: Path, console: Console) -> None:
        """Test that a config error is raised before any entry is scored."""
        with patch.object(TrashCollector, "collect") as collect, pytest.raises(ConfigError):
            _pruner(trash_dir, console, number=1, gigabytes=1.0)

        collect.assert_not_called()

    def test_no_target_rejected(self, trash_dir: Path, console: Console) -> None:
        with pytest.raises(ConfigError):
            _pruner(trash_dir, console)

    def test_bad_rot_rejected(self, trash_dir: Path, console: Console) -> None:
        with pytest.raises(ConfigError):
            _pruner(trash_dir, console, number=1, rot=("x:mp4",))

    def test_logging_setup(self, trash_dir: Path, console: Console, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "prune.log"
        pruner = _pruner(trash_dir, console, number=1, log_file=log_file, debug=True)

        assert pruner.logger.name == LOGGER_NAME
        assert pruner.logger.level == logging.DEBUG
        assert len(pruner.logger.handlers) == 2
        assert log_file.parent.is_dir()

    def test_logging_not_duplicated(self, trash_dir: Path, console: Console) -> None:
        _pruner(trash_dir, console, number=1)
        pruner = _pruner(trash_dir, console, number=1)

        assert len(pruner.logger.handlers) == 1

    def test_silent_console_handler(self, trash_dir: Path) -> None:
        pruner = TrashPruner(PruneConfig(trash_dir=trash_dir, number=1, silent=True))

        assert pruner.console.quiet
        assert pruner.logger.handlers[0].level == logging.ERROR


class TestRun:
    """Tests for complete runs."""

    @pytest.mark.asyncio
    async def test_count_mode_deletes_most_rotten(self, trash_dir: Path, console: Console) -> None:
        """Test that the highest rot multiplier goes first in count mode."""
        report = await _pruner(trash_dir, console, number=1).run()

        assert report.outcome is RunOutcome.DELETED
        assert _remaining(trash_dir) == ["notes.txt", "paper.pdf"]
        assert report.stats.collected == 3
        assert report.stats.deleted == 1
        assert report.stats.bytes_freed == 4000

    @pytest.mark.asyncio
    async def test_keep_count(self, trash_dir: Path, console: Console) -> None:
        report = await _pruner(trash_dir, console, number=1, keep=True).run()

        assert report.stats.deleted == 2
        assert _remaining(trash_dir) == ["notes.txt"]

    @pytest.mark.asyncio
    async def test_byte_mode(self, trash_dir: Path, console: Console) -> None:
        """Test that a byte budget skips entries that do not fit."""
        # 2.5 kB: clip.mp4 (4 kB) cannot fit, paper.pdf (2 kB) can
        report = await _pruner(trash_dir, console, gigabytes=2500 / 2**30).run()

        assert report.selection is not None
        assert report.selection.resolved_target == 2500
        assert _remaining(trash_dir) == ["clip.mp4", "notes.txt"]

    @pytest.mark.asyncio
    async def test_trashinfo_removed(self, trash_dir: Path, console: Console) -> None:
        info = trash_dir.parent / "info" / "clip.mp4.trashinfo"
        info.write_text("[Trash Info]\n")

        report = await _pruner(trash_dir, console, number=1).run()

        assert report.results[0].info_removed
        assert not info.exists()

    @pytest.mark.asyncio
    async def test_nothing_to_delete(self, trash_dir: Path, console: Console) -> None:
        report = await _pruner(trash_dir, console, number=5, keep=True).run()

        assert report.outcome is RunOutcome.NOTHING_TO_DELETE
        assert report.results == []
        assert len(_remaining(trash_dir)) == 3
        assert "No file/directory to delete. Aborting." in console.file.getvalue()  # type: ignore[attr-defined]

    @pytest.mark.asyncio
    async def test_empty_trash(self, tmp_path: Path, console: Console) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()

        report = await _pruner(empty, console, number=5).run()

        assert report.outcome is RunOutcome.NOTHING_TO_DELETE

    @pytest.mark.asyncio
    async def test_user_declines(self, trash_dir: Path, console: Console) -> None:
        pruner = _pruner(trash_dir, console, number=2, unattended=False)

        with patch.object(pruner.reporter, "confirm", return_value=False) as confirm:
            report = await pruner.run()

        confirm.assert_called_once()
        assert report.outcome is RunOutcome.CANCELLED
        assert len(_remaining(trash_dir)) == 3

    @pytest.mark.asyncio
    async def test_user_confirms(self, trash_dir: Path, console: Console) -> None:
        pruner = _pruner(trash_dir, console, number=2, unattended=False)

        with patch.object(pruner.reporter, "confirm", return_value=True):
            report = await pruner.run()

        assert report.outcome is RunOutcome.DELETED
        assert len(_remaining(trash_dir)) == 1

    @pytest.mark.asyncio
    async def test_unattended_skips_confirmation(self, trash_dir: Path, console: Console) -> None:
        pruner = _pruner(trash_dir, console, number=1)

        with patch.object(pruner.reporter, "confirm") as confirm:
            await pruner.run()

        confirm.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_deletion(self, trash_dir: Path, console: Console) -> None:
        pruner = _pruner(trash_dir, console, number=3)

        with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            report = await pruner.run()

        assert report.outcome is RunOutcome.FAILED
        assert report.stats.failed == 3
        assert report.stats.deleted == 0

    @pytest.mark.asyncio
    async def test_collection_error_skips_entry(self, trash_dir: Path, console: Console) -> None:
        pruner = _pruner(trash_dir, console, number=3)
        real_inspect = pruner.collector.inspect

        def fake_inspect(path: Path) -> TrashEntry:
            if path.name == "paper.pdf":
                raise PermissionError("denied")
            return real_inspect(path)

        with patch.object(pruner.collector, "inspect", side_effect=fake_inspect):
            report = await pruner.run()

        assert report.stats.skipped == 1
        assert report.stats.deleted == 2
        assert _remaining(trash_dir) == ["paper.pdf"]

    @pytest.mark.asyncio
    async def test_missing_trash_dir(self, tmp_path: Path, console: Console) -> None:
        with pytest.raises(FileNotFoundError):
            await _pruner(tmp_path / "missing", console, number=1).run()
