"""Prefix and entry path safety primitives."""

from .paths import PathBlockedError, compose_entry_path, resolve_prefix

__all__ = [
    "PathBlockedError",
    "compose_entry_path",
    "resolve_prefix",
]
