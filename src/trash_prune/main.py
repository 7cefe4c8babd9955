"""Main entry point for trash-prune."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .config import ConfigError, PruneConfig
from .pruner import RunOutcome, TrashPruner

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2

EPILOG = """\
examples:
  trash-prune -n 100                     delete 100 files
  trash-prune -kg 1                      keep 1 GB and delete the rest
  trash-prune -n 10 -r 0.01:sh,txt 100:htm,html,log
                                         set rot multipliers for specific extensions
                                         (put --rot last, it takes several values)

Go wild with your shell aliases, for example: alias tp='trash-prune -kg 1'
"""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments.

    """
    parser = argparse.ArgumentParser(
        prog="trash-prune",
        description="Permanently delete the most rotten files of the trash",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--gb",
        "-g",
        type=float,
        default=None,
        help="GB of files to delete, keeping smallest files",
    )
    parser.add_argument(
        "--number",
        "-n",
        type=int,
        default=None,
        help="Number of files to delete. Useful to clean the trash file list",
    )
    parser.add_argument(
        "--keep",
        "-k",
        action="store_true",
        help="Reverse the option: keep the specified amount of files or GB instead of deleting them",
    )
    parser.add_argument(
        "--unattended",
        "-u",
        action="store_true",
        help="Do not ask confirmation before deleting files",
    )
    parser.add_argument(
        "--silent",
        "-s",
        action="store_true",
        help="Silent mode (implies --unattended)",
    )
    parser.add_argument(
        "--debug",
        "-d",
        action="store_true",
        help="Debug mode",
    )
    parser.add_argument(
        "--trash-dir",
        "-t",
        type=Path,
        default=None,
        help="Trash directory path (default: ~/.local/share/Trash/files)",
    )
    parser.add_argument(
        "--rot",
        "-r",
        nargs="+",
        metavar="MULT:EXT,...",
        default=None,
        help="Rot multiplier for specific extensions. Files are deleted as if they were N times bigger (or older)",
    )
    parser.add_argument(
        "--keep-empty-dir",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Do not delete (recursively) empty directories (default: keep)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Create default configuration file and exit",
    )
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Show current configuration and exit",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> PruneConfig:
    """Load the config file and apply command line overrides.

    Raises:
        ConfigError: If the config file is invalid.

    """
    config = PruneConfig.load(args.config)
    return config.with_overrides(
        trash_dir=args.trash_dir,
        number=args.number,
        gigabytes=args.gb,
        keep=args.keep or None,
        unattended=args.unattended or None,
        silent=args.silent or None,
        debug=args.debug or None,
        rot=tuple(args.rot) if args.rot is not None else None,
        keep_empty_dirs=args.keep_empty_dir,
    )


def cmd_init_config(config: PruneConfig, args: argparse.Namespace) -> int:
    """Write the configuration file.

    Returns:
        Exit code.

    """
    console = Console()
    config_path = args.config or PruneConfig.get_config_path()
    if config_path.exists():
        console.print(f"[yellow]Config already exists: {config_path}[/yellow]")
        return EXIT_FAILED
    config.save(config_path)
    console.print(f"[green]Created config: {config_path}[/green]")
    return EXIT_OK


def cmd_show_config(config: PruneConfig) -> int:
    """Print the effective configuration.

    Returns:
        Exit code.

    """
    console = Console()
    table = Table(title="Current Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Trash directory", str(config.trash_dir))
    table.add_row("Rot multipliers", "\n".join(config.rot))
    table.add_row("Keep empty directories", str(config.keep_empty_dirs))
    table.add_row("Collect concurrency", str(config.collect_concurrency))
    table.add_row("Log file", str(config.log_file) if config.log_file else "-")
    table.add_row("Log level", config.effective_log_level)

    console.print(table)
    return EXIT_OK


def cmd_prune(config: PruneConfig) -> int:
    """Run a prune pass.

    Returns:
        Exit code.

    """
    pruner = TrashPruner(config)

    try:
        report = asyncio.run(pruner.run())
    except OSError as e:
        pruner.logger.error("Cannot read trash directory %s: %s", config.trash_dir, e)
        return EXIT_FAILED

    if report.outcome is RunOutcome.FAILED:
        return EXIT_FAILED
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code.

    """
    args = parse_args(argv)

    try:
        config = build_config(args)
        if args.init_config:
            return cmd_init_config(config, args)
        if args.show_config:
            return cmd_show_config(config)
        return cmd_prune(config)
    except ConfigError as e:
        Console(stderr=True).print(f"[red]Configuration error:[/red] {e}")
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
