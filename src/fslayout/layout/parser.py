"""Indentation-aware layout parser."""

from __future__ import annotations

from types import MappingProxyType
from typing import Final

from fslayout.layout.models import IndentStack, LayoutEntry, PermissionSpec
from fslayout.layout.scanner import (
    NAME_STOP_CHARS,
    TARGET_STOP_CHARS,
    TokenError,
    decode_extras,
    read_arrow,
    read_permission,
    read_token,
    split_extras,
)

_KNOWN_EXTRAS: Final[frozenset[str]] = frozenset({"content"})


class LayoutSyntaxError(Exception):
    """Raised when a layout line cannot be parsed."""

    def __init__(self, line: int, reason: str, source: str) -> None:
        super().__init__(f"(layout):{line}: {reason}: {source}")
        self.line = line
        self.reason = reason
        self.source = source


def _is_skippable(line: str) -> bool:
    stripped = line.lstrip()
    return not stripped or stripped.startswith("#")


def parse_layout(text: str, *, strict_extras: bool = False) -> list[LayoutEntry]:
    """Parse layout text into entries in document order."""
    entries: list[LayoutEntry] = []
    indents = IndentStack()
    prev_is_dir = False
    for line_number, line in enumerate(text.split("\n"), start=1):
        if _is_skippable(line):
            continue

        indent = line[: len(line) - len(line.lstrip())]
        if "\t" in indent:
            raise LayoutSyntaxError(line_number, "Tabs are not allowed", line)
        _apply_indent(indents, len(indent), prev_is_dir, line_number, line)

        try:
            entry = _parse_spec(
                line[len(indent) :],
                level=indents.level,
                line_number=line_number,
                strict_extras=strict_extras,
            )
        except TokenError as exc:
            raise LayoutSyntaxError(line_number, exc.reason, line) from exc
        entries.append(entry)
        prev_is_dir = entry.is_dir
    return entries


def _apply_indent(
    indents: IndentStack,
    width: int,
    prev_is_dir: bool,
    line_number: int,
    line: str,
) -> None:
    current = indents.current
    if current is None:
        indents.push(width)
        return
    if width > current:
        if not prev_is_dir:
            raise LayoutSyntaxError(
                line_number,
                "More indented than previous spec-line, "
                "but previous spec-line is not a directory",
                line,
            )
        indents.push(width)
    elif width < current and not indents.truncate_to(width):
        raise LayoutSyntaxError(
            line_number,
            "Invalid indent, must return to one of previous levels' indent",
            line,
        )


def _parse_spec(
    rest: str,
    *,
    level: int,
    line_number: int,
    strict_extras: bool,
) -> LayoutEntry:
    name, rest = read_token(rest, "filename", NAME_STOP_CHARS)
    if not name:
        raise TokenError("Filename cannot be empty")
    if "/" in name:
        raise TokenError("Filename cannot contain slashes")
    if name in (".", ".."):
        raise TokenError("Filename cannot be . or ..")

    is_dir = rest.startswith("/")
    if is_dir:
        rest = rest[1:]

    permission: PermissionSpec | None = None
    if rest.startswith("("):
        permission, rest = read_permission(rest)

    symlink_target: str | None = None
    after_arrow = read_arrow(rest)
    if after_arrow is not None:
        if is_dir:
            raise TokenError("Symlink cannot be a directory")
        symlink_target, rest = read_token(after_arrow, "symlink target", TARGET_STOP_CHARS)
        if not symlink_target:
            raise TokenError("Symlink target cannot be empty")

    content: str | None = None
    extra_fields: dict[str, object] = {}
    body, rest = split_extras(rest)
    if rest.strip():
        raise TokenError("Unexpected text after entry")
    if body is not None:
        extras = decode_extras(body)
        if "content" in extras and is_dir:
            raise TokenError("Directory must not have 'content'")
        raw_content = extras.get("content")
        if raw_content is not None and not isinstance(raw_content, str):
            raise TokenError("Extras 'content' must be a string")
        content = raw_content
        extra_fields = {key: value for key, value in extras.items() if key not in _KNOWN_EXTRAS}
        if strict_extras and extra_fields:
            unknown = ", ".join(sorted(extra_fields))
            raise TokenError(f"Unknown extras keys: {unknown}")

    return LayoutEntry(
        name=name,
        level=level,
        source_line=line_number,
        is_dir=is_dir,
        symlink_target=symlink_target,
        permission=permission.mode if permission is not None else None,
        permission_text=permission.text if permission is not None else None,
        owner=permission.owner if permission is not None else None,
        group=permission.group if permission is not None else None,
        content=content,
        extra_fields=MappingProxyType(extra_fields),
    )
