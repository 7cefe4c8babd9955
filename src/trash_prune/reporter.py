"""Console output: selection table, summaries and confirmation."""

from __future__ import annotations

import math
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from rich.console import Console
from rich.filesize import decimal
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

if TYPE_CHECKING:
    from .collector import TrashEntry
    from .deleter import DeleteResult
    from .selector import Selection

_AGE_UNITS = (
    ("year", 365 * 86400),
    ("month", 30 * 86400),
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
)


def format_age(last_accessed: float, now: float | None = None) -> str:
    """Render the time elapsed since ``last_accessed`` as "N units ago"."""
    if now is None:
        now = time.time()
    elapsed = max(0.0, now - last_accessed)

    for unit, seconds in _AGE_UNITS:
        if elapsed >= seconds:
            count = int(elapsed // seconds)
            plural = "" if count == 1 else "s"
            return f"{count} {unit}{plural} ago"

    return "less than a minute ago"


def format_score(score: float | None) -> str:
    """Render a rot score with 3 significant digits."""
    if score is None:
        return "-"
    if math.isinf(score):
        return "-inf" if score < 0 else "inf"
    return f"{score:.3g}"


class Reporter:
    """Prints selection results and asks for confirmation."""

    def __init__(self, console: Console, now: float | None = None) -> None:
        """Initialize the reporter.

        Args:
            console: Rich console; quiet in silent mode.
            now: Reference time for ages. Uses the current time if None.

        """
        self.console = console
        self.now = now

    def build_table(self, entries: Sequence[TrashEntry]) -> Table:
        table = Table(title=f"Ready to delete {len(entries)} files/directories")
        table.add_column("Type", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Last accessed", justify="right")
        table.add_column("Size", justify="right", style="green")
        table.add_column("Rot (log10)", justify="right", style="magenta")

        for entry in entries:
            table.add_row(
                entry.kind,
                escape(entry.name),
                format_age(entry.last_accessed, self.now),
                decimal(entry.size),
                format_score(entry.rot_score),
            )

        return table

    def show_trash(self, selection: Selection) -> None:
        self.console.print(
            f"Trash size: {decimal(selection.total_size)} in {selection.total_count} files/directories."
        )

    def show_selection(self, selection: Selection) -> None:
        """Print the entries selected for deletion and the totals."""
        self.console.print(self.build_table(selection.to_delete))
        self.console.print(
            f"[bold]TOTAL:[/bold] {decimal(selection.deleted_size)} in "
            f"{len(selection.to_delete)} files/directories."
        )
        self.console.print(
            f"[dim](Keeping {len(selection.to_keep)} files/directories, {decimal(selection.kept_size)})[/dim]"
        )

    def abort(self, reason: str) -> None:
        self.console.print(f"[yellow]{reason} Aborting.[/yellow]")

    def confirm(self) -> bool:
        """Ask before deleting; no answer (EOF, Ctrl-C) means no."""
        try:
            return Confirm.ask("Delete these files?", console=self.console, default=False)
        except (EOFError, KeyboardInterrupt):
            self.console.print()
            return False

    def show_results(self, results: Sequence[DeleteResult]) -> None:
        """Print the final summary of a deletion pass."""
        deleted = [r for r in results if r.success]
        freed = sum(r.entry.size for r in deleted)
        self.console.print(f"[green]Deleted {len(deleted)} files/directories ({decimal(freed)}).[/green]")

        if failed := [r for r in results if not r.success]:
            self.console.print(f"[red]Failed to delete {len(failed)} files/directories:[/red]")
            for result in failed:
                self.console.print(f"  [red]{escape(result.entry.name)}[/red]: {escape(result.error or '')}")
