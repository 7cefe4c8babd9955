"""Rot multipliers: how fast each file type "rots" in the trash."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import PurePath
from types import MappingProxyType

# Factor given to directories without any regular file when empty
# directories are not preserved, so they rank first for deletion.
EMPTY_DIR_FACTOR: float = 10.0**10

DEFAULT_ROT_SPECS: tuple[str, ...] = (
    "0.1:js,ts,jsx,tsx,sh,rb,py,txt",
    "10:nfo,url,srt,avi,mp4,mkv,jpeg,jpg,png,bmp,zip,gzip,bzip,bzip2,tar,rar",
)


class RotSpecError(ValueError):
    """Raised when a rot multiplier spec cannot be parsed."""


def extension_of(name: str) -> str:
    """Return the extension of a file name without its leading dot.

    Dotfiles such as ``.bashrc`` have no extension.
    """
    return PurePath(name).suffix[1:]


@dataclass(frozen=True)
class RotPolicy:
    """Immutable mapping from file extension to rot multiplier."""

    multipliers: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for ext, mult in self.multipliers.items():
            if not math.isfinite(mult) or mult <= 0:
                msg = f"Rot multiplier for {ext!r} must be a positive number, got {mult!r}"
                raise RotSpecError(msg)
        object.__setattr__(self, "multipliers", MappingProxyType(dict(self.multipliers)))

    def resolve(self, extension: str) -> float:
        """Return the multiplier for an extension, 1 when unmapped."""
        return self.multipliers.get(extension, 1.0)

    def factor_for_file(self, name: str) -> float:
        """Return the multiplier for a single file name."""
        return self.resolve(extension_of(name))

    def factor_for_directory(self, extensions: Iterable[str], *, keep_empty_dirs: bool) -> float:
        """Return the mean multiplier over the files contained in a directory.

        Args:
            extensions: Extension of every regular file found recursively.
            keep_empty_dirs: Whether directories without files are preserved.

        Returns:
            Arithmetic mean of the file multipliers. Without any file, 1 when
            empty directories are preserved and EMPTY_DIR_FACTOR otherwise.

        """
        factors = [self.resolve(ext) for ext in extensions]
        if not factors:
            if keep_empty_dirs:
                return 1.0
            return EMPTY_DIR_FACTOR
        return math.fsum(factors) / len(factors)


def parse_rot_spec(spec: str) -> dict[str, float]:
    """Parse one ``multiplier:ext1,ext2`` spec into a mapping."""
    mult_str, sep, ext_str = spec.partition(":")
    if not sep:
        msg = f"Rot spec {spec!r} should look like '10:mp4,mkv' (missing ':')"
        raise RotSpecError(msg)

    try:
        mult = float(mult_str)
    except ValueError:
        msg = f"Rot spec {spec!r}: could not parse multiplier {mult_str!r}"
        raise RotSpecError(msg) from None
    if not math.isfinite(mult) or mult <= 0:
        msg = f"Rot spec {spec!r}: multiplier must be a positive number"
        raise RotSpecError(msg)

    extensions = [ext.strip().lstrip(".") for ext in ext_str.split(",")]
    if not ext_str.strip() or not all(extensions):
        msg = f"Rot spec {spec!r}: could not parse extensions list"
        raise RotSpecError(msg)

    return dict.fromkeys(extensions, mult)


def parse_rot_specs(specs: Iterable[str]) -> RotPolicy:
    """Build a RotPolicy from a list of specs; later specs win."""
    multipliers: dict[str, float] = {}
    for spec in specs:
        multipliers.update(parse_rot_spec(spec))
    return RotPolicy(multipliers)
