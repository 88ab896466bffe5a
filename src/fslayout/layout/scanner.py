"""Token readers for layout specification lines.

Every reader takes the unconsumed remainder of a line and returns the decoded
value together with the text left after it. Readers never look at
indentation; the parser strips it before scanning starts.
"""

from __future__ import annotations

import json
import re
from typing import Final

from fslayout.layout.models import PermissionSpec

NAME_STOP_CHARS: Final[str] = "(/"
TARGET_STOP_CHARS: Final[str] = ""

_PERMISSION_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\((?:([^,]*),([^,]*),)?([0-7]{3,4})\)"
)
_ARROW_PATTERN: Final[re.Pattern[str]] = re.compile(r"\s*->\s*")
_EXTRAS_PATTERN: Final[re.Pattern[str]] = re.compile(r"\s+(\S.*)", re.DOTALL)


class TokenError(ValueError):
    """Raised when a token cannot be read from a line remainder."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def read_quoted(text: str, label: str) -> tuple[str, str]:
    """Read a JSON double-quoted string starting at text[0]."""
    index = 1
    length = len(text)
    while index < length:
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == '"':
            literal = text[: index + 1]
            try:
                value = json.loads(literal)
            except json.JSONDecodeError as exc:
                raise TokenError(f"Invalid JSON string in {label}: {exc.msg}") from exc
            return value, text[index + 1 :]
        index += 1
    raise TokenError(f"Invalid quoted {label}")


def read_bare(text: str, stop_chars: str) -> tuple[str, str]:
    """Read the longest run free of whitespace and stop_chars."""
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if char.isspace() or char in stop_chars:
            break
        index += 1
    return text[:index], text[index:]


def read_token(text: str, label: str, stop_chars: str) -> tuple[str, str]:
    """Read a quoted or bare token, whichever form text starts with."""
    if text.startswith('"'):
        return read_quoted(text, label)
    return read_bare(text, stop_chars)


def read_permission(text: str) -> tuple[PermissionSpec, str]:
    """Read a `(OWNER,GROUP,MODE)` or `(MODE)` block."""
    match = _PERMISSION_PATTERN.match(text)
    if match is None:
        raise TokenError("Invalid syntax in permission/owner")
    owner, group, mode_text = match.groups()
    spec = PermissionSpec(
        mode=int(mode_text, 8),
        text=mode_text,
        owner=owner or None,
        group=group or None,
    )
    return spec, text[match.end() :]


def read_arrow(text: str) -> str | None:
    """Consume a `->` symlink arrow; return None when text has none."""
    match = _ARROW_PATTERN.match(text)
    if match is None:
        return None
    return text[match.end() :]


def split_extras(text: str) -> tuple[str | None, str]:
    """Split off a whitespace-prefixed extras body."""
    match = _EXTRAS_PATTERN.match(text)
    if match is None:
        return None, text
    return match.group(1), ""


def decode_extras(body: str) -> dict[str, object]:
    """Decode an unquoted JSON object body such as `"content":"hi"`."""
    try:
        payload = json.loads("{" + body + "}")
    except json.JSONDecodeError as exc:
        raise TokenError(f"Invalid unquoted JSON hash in extras: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise TokenError("Extras must be a JSON object body")
    return payload
