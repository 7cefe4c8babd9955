"""Configuration management for trash-prune."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .rot import DEFAULT_ROT_SPECS, RotPolicy, RotSpecError, parse_rot_specs
from .selector import SelectionTarget, Sense

GIB = 2**30

_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})


class ConfigError(ValueError):
    """Raised for invalid configuration; always fatal before any deletion."""


def parse_bool(value: Any, default: bool) -> bool:
    """Parse a boolean from YAML or string input."""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _config_home() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    return Path(xdg) if xdg else Path.home() / ".config"


def default_trash_dir() -> Path:
    """Get the XDG trash ``files`` directory of the current user."""
    xdg = os.environ.get("XDG_DATA_HOME")
    data_home = Path(xdg) if xdg else Path.home() / ".local/share"
    return data_home / "Trash/files"


@dataclass(frozen=True)
class PruneConfig:
    """Configuration for one trash-prune run."""

    # Trash directory holding the trashed items
    trash_dir: Path = field(default_factory=default_trash_dir)

    # Target: exactly one of number / gigabytes
    number: int | None = None
    gigabytes: float | None = None
    keep: bool = False  # Keep the target amount, delete the rest

    # Interaction
    unattended: bool = False
    silent: bool = False  # Implies unattended

    # Rot multipliers, as "mult:ext,ext" specs
    rot: tuple[str, ...] = DEFAULT_ROT_SPECS
    keep_empty_dirs: bool = True

    # Max concurrent filesystem queries while collecting
    collect_concurrency: int = 8

    # Logging
    log_file: Path | None = None
    log_level: str = "INFO"
    debug: bool = False

    @property
    def interactive(self) -> bool:
        return not (self.unattended or self.silent)

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level.upper()

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the default configuration file path."""
        return _config_home() / "trash-prune/config.yaml"

    @classmethod
    def load(cls, config_path: Path | None = None) -> PruneConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to config file. Uses default if None.

        Returns:
            Loaded configuration; defaults when the file does not exist.

        Raises:
            ConfigError: If the file cannot be parsed.

        """
        if config_path is None:
            config_path = cls.get_config_path()

        if not config_path.exists():
            return cls()

        try:
            with config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            msg = f"Invalid YAML in {config_path}: {e}"
            raise ConfigError(msg) from e
        except OSError as e:
            msg = f"Cannot read config file {config_path}: {e}"
            raise ConfigError(msg) from e

        if not isinstance(data, dict):
            msg = f"Config file {config_path} must contain a mapping"
            raise ConfigError(msg)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> PruneConfig:
        """Create config from dictionary."""
        values: dict[str, Any] = {}

        try:
            if "trash_dir" in data:
                values["trash_dir"] = Path(os.path.expanduser(data["trash_dir"]))
            if "rot" in data:
                rot = data["rot"] or []
                values["rot"] = (rot,) if isinstance(rot, str) else tuple(str(spec) for spec in rot)
            if "keep_empty_dirs" in data:
                values["keep_empty_dirs"] = parse_bool(data["keep_empty_dirs"], True)
            if "collect_concurrency" in data:
                values["collect_concurrency"] = int(data["collect_concurrency"])

            if "logging" in data:
                logging_cfg = data["logging"] or {}
                if logging_cfg.get("file"):
                    values["log_file"] = Path(os.path.expanduser(logging_cfg["file"]))
                if "level" in logging_cfg:
                    values["log_level"] = str(logging_cfg["level"])
        except (TypeError, ValueError, AttributeError) as e:
            msg = f"Invalid configuration value: {e}"
            raise ConfigError(msg) from e

        return cls(**values)

    def with_overrides(self, **overrides: Any) -> PruneConfig:
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        if unknown := set(overrides) - known:
            msg = f"Unknown config fields: {', '.join(sorted(unknown))}"
            raise ConfigError(msg)
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def target(self) -> SelectionTarget:
        """Build the selection target from number / gigabytes.

        Raises:
            ConfigError: If both or neither are set, or a value is negative.

        """
        if self.number is not None and self.gigabytes is not None:
            msg = "Either --number or --gb should be specified, not both"
            raise ConfigError(msg)
        if self.number is None and self.gigabytes is None:
            msg = "One of --number or --gb is required"
            raise ConfigError(msg)

        sense = Sense.KEEP if self.keep else Sense.DELETE

        if self.number is not None:
            if self.number < 0:
                msg = f"--number must be non-negative, got {self.number}"
                raise ConfigError(msg)
            return SelectionTarget.count(self.number, sense)

        gigabytes = float(self.gigabytes or 0)
        if not math.isfinite(gigabytes) or gigabytes < 0:
            msg = f"--gb must be a non-negative number, got {self.gigabytes}"
            raise ConfigError(msg)
        return SelectionTarget.size(int(gigabytes * GIB), sense)

    def rot_policy(self) -> RotPolicy:
        """Parse the rot specs.

        Raises:
            ConfigError: If a spec is malformed.

        """
        try:
            return parse_rot_specs(self.rot)
        except RotSpecError as e:
            raise ConfigError(str(e)) from e

    def validate(self) -> tuple[SelectionTarget, RotPolicy]:
        """Check the whole configuration before any filesystem access.

        Returns:
            The selection target and the rot policy.

        Raises:
            ConfigError: On the first invalid setting.

        """
        target = self.target()
        policy = self.rot_policy()

        if not isinstance(logging.getLevelName(self.effective_log_level), int):
            msg = f"Invalid log_level: {self.log_level}"
            raise ConfigError(msg)
        if self.collect_concurrency < 1:
            msg = f"collect_concurrency must be at least 1, got {self.collect_concurrency}"
            raise ConfigError(msg)

        return target, policy

    def save(self, config_path: Path | None = None) -> None:
        """Save the persistent settings to a YAML file.

        Run targets and interaction flags are per-invocation and not saved.

        Args:
            config_path: Path to save config. Uses default if None.

        """
        if config_path is None:
            config_path = self.get_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "trash_dir": str(self.trash_dir),
            "rot": list(self.rot),
            "keep_empty_dirs": self.keep_empty_dirs,
            "collect_concurrency": self.collect_concurrency,
            "logging": {
                "file": str(self.log_file) if self.log_file else None,
                "level": self.log_level,
            },
        }

        with config_path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
