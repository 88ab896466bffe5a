"""Path resolution helpers for prefix-scoped creation."""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path


class PathBlockedError(Exception):
    """Raised when a prefix or entry path violates containment rules."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def resolve_prefix(prefix: str | os.PathLike[str] | None) -> Path:
    """Resolve the creation root; None means the current directory."""
    if prefix is None:
        return Path.cwd()
    candidate = Path(prefix)
    if not str(prefix):
        raise PathBlockedError(
            reason="Prefix is empty.",
            hint="Omit the prefix to create entries in the current directory.",
        )
    if not candidate.is_dir():
        raise PathBlockedError(
            reason=f"Directory must already exist: {prefix}",
            hint="Create the prefix directory before materializing a layout into it.",
        )
    return candidate


def _check_segment(segment: str) -> None:
    if not segment:
        raise PathBlockedError(
            reason="Entry name is empty.",
            hint="Give every layout entry a non-empty name.",
        )
    if segment in (".", ".."):
        raise PathBlockedError(
            reason=f"Entry name '{segment}' is not allowed.",
            hint="Entry names must not navigate; nest entries by indentation instead.",
        )
    separators = {"/", os.sep} | ({os.altsep} if os.altsep else set())
    if any(separator in segment for separator in separators):
        raise PathBlockedError(
            reason=f"Entry name '{segment}' contains a path separator.",
            hint="Nest entries by indentation instead of embedding separators.",
        )


def compose_entry_path(root: Path, segments: Sequence[str], name: str) -> Path:
    """Join root, directory segments and an entry name without escaping root."""
    for segment in segments:
        _check_segment(segment)
    _check_segment(name)
    return root.joinpath(*segments, name)
