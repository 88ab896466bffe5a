"""Typed models for parsed layouts."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


def _empty_fields() -> Mapping[str, object]:
    return MappingProxyType({})


@dataclass(slots=True, frozen=True)
class LayoutEntry:
    """One specification line of a layout."""

    name: str
    level: int
    source_line: int
    is_dir: bool = False
    symlink_target: str | None = None
    permission: int | None = None
    permission_text: str | None = None
    owner: str | None = None
    group: str | None = None
    content: str | None = None
    extra_fields: Mapping[str, object] = field(default_factory=_empty_fields, hash=False)

    @property
    def is_symlink(self) -> bool:
        """Return True when the entry describes a symlink."""
        return self.symlink_target is not None

    @property
    def has_ownership(self) -> bool:
        """Return True when owner or group must be applied."""
        return self.owner is not None or self.group is not None


@dataclass(slots=True, frozen=True)
class PermissionSpec:
    """Decoded `(OWNER,GROUP,MODE)` or `(MODE)` block."""

    mode: int
    text: str
    owner: str | None = None
    group: str | None = None


@dataclass(slots=True)
class IndentStack:
    """Known indentation widths, shallowest first."""

    widths: list[int] = field(default_factory=list)

    @property
    def level(self) -> int:
        """Return the nesting level of the deepest known width."""
        return max(len(self.widths) - 1, 0)

    @property
    def current(self) -> int | None:
        """Return the deepest known width, or None before the first line."""
        return self.widths[-1] if self.widths else None

    def push(self, width: int) -> None:
        """Open one level deeper."""
        self.widths.append(width)

    def truncate_to(self, width: int) -> bool:
        """Drop widths deeper than the deepest exact match; False when none matches."""
        for index in range(len(self.widths) - 1, -1, -1):
            if self.widths[index] == width:
                del self.widths[index + 1 :]
                return True
        return False
