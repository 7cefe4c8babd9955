"""One trash-prune run: collect, score, select, confirm, delete."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler

from .collector import TrashCollector
from .deleter import DeleteResult, Deleter
from .reporter import Reporter
from .scorer import Scorer
from .selector import Selection, Selector

if TYPE_CHECKING:
    from .config import PruneConfig

LOGGER_NAME = "trash-prune"


class RunOutcome(Enum):
    """How a run ended."""

    DELETED = "deleted"  # Every selected entry was deleted
    NOTHING_TO_DELETE = "nothing_to_delete"
    CANCELLED = "cancelled"  # User declined confirmation
    FAILED = "failed"  # At least one deletion failed


@dataclass
class RunStats:
    """Statistics for one run."""

    collected: int = 0
    skipped: int = 0
    selected: int = 0
    deleted: int = 0
    failed: int = 0
    bytes_freed: int = 0


@dataclass
class RunReport:
    """Everything a run produced."""

    outcome: RunOutcome
    selection: Selection | None = None
    results: list[DeleteResult] = field(default_factory=list)
    stats: RunStats = field(default_factory=RunStats)


class TrashPruner:
    """Prunes a trash directory down to the configured target."""

    def __init__(self, config: PruneConfig, console: Console | None = None) -> None:
        """Initialize the pruner.

        Args:
            config: Prune configuration.
            console: Console for the report. Quiet in silent mode if None.

        Raises:
            ConfigError: If the configuration is invalid.

        """
        self.config = config
        self.target, self.policy = config.validate()
        self.logger = self._setup_logging()
        self.console = console or Console(quiet=config.silent)

        self.collector = TrashCollector(config, self.policy, self.logger)
        self.scorer = Scorer.for_target(self.target)
        self.selector = Selector(self.target)
        self.reporter = Reporter(self.console)
        self.deleter = Deleter(config, self.logger)

    def _setup_logging(self) -> logging.Logger:
        """Set up logging for the run.

        Returns:
            Configured logger instance.

        """
        level = getattr(logging, self.config.effective_log_level)
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(level)

        # Clear existing handlers to avoid duplicates if the pruner is recreated
        if logger.handlers:
            logger.handlers.clear()

        console_handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
        )
        console_handler.setLevel(logging.ERROR if self.config.silent else level)
        logger.addHandler(console_handler)

        if self.config.log_file is not None:
            self.config.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.config.log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
            logger.addHandler(file_handler)

        return logger

    async def select(self) -> Selection:
        """Collect, score and select the trash entries.

        Raises:
            OSError: If the trash directory cannot be listed.

        """
        entries = await self.collector.collect()
        scored = self.scorer.score_all(entries)
        selection = self.selector.select(scored)

        self.logger.debug(
            "Target %s resolved to %d of %d entries / %d bytes",
            self.target.describe(),
            selection.resolved_target,
            selection.total_count,
            selection.total_size,
        )
        return selection

    async def run(self) -> RunReport:
        """Run a full prune pass.

        Returns:
            Report of the run.

        Raises:
            OSError: If the trash directory cannot be listed.

        """
        self.logger.debug("Pruning %s", self.config.trash_dir)
        selection = await self.select()
        stats = RunStats(
            collected=selection.total_count,
            skipped=len(self.collector.skipped),
            selected=len(selection.to_delete),
        )

        self.reporter.show_trash(selection)

        if selection.nothing_to_delete:
            self.reporter.abort("No file/directory to delete.")
            return RunReport(RunOutcome.NOTHING_TO_DELETE, selection, stats=stats)

        self.reporter.show_selection(selection)

        if self.config.interactive and not self.reporter.confirm():
            self.reporter.abort("You chose to cancel.")
            return RunReport(RunOutcome.CANCELLED, selection, stats=stats)

        results = await self.deleter.delete_all(selection.to_delete)
        stats.deleted = sum(1 for r in results if r.success)
        stats.failed = len(results) - stats.deleted
        stats.bytes_freed = sum(r.entry.size for r in results if r.success)

        self.reporter.show_results(results)
        self.logger.info(
            "Run finished: collected=%d, skipped=%d, deleted=%d, failed=%d, freed=%d bytes",
            stats.collected,
            stats.skipped,
            stats.deleted,
            stats.failed,
            stats.bytes_freed,
        )

        outcome = RunOutcome.FAILED if stats.failed else RunOutcome.DELETED
        return RunReport(outcome, selection, results, stats)
