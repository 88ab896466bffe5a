"""Structured JSONL trace of filesystem operations."""

from __future__ import annotations

import json
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path


@dataclass(slots=True, frozen=True)
class TraceEvent:
    """Single filesystem operation performed while materializing a layout."""

    timestamp: str
    operation: str
    path: str
    ok: bool
    error: str | None = None
    metadata: dict[str, object] = field(default_factory=dict)


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_metadata(metadata: dict[str, object]) -> dict[str, object]:
    """Sanitize operation metadata so file content never reaches the log."""
    sanitized: dict[str, object] = {}
    for key in sorted(metadata.keys()):
        value = metadata[key]
        if key == "content":
            sanitized["content_present"] = value is not None
            if isinstance(value, (str, bytes)):
                sanitized["content_length"] = len(value)
            continue
        if key in {"mode", "level", "index"} and isinstance(value, int):
            sanitized[key] = value
            continue
        if isinstance(value, (str, int, float, bool)) or value is None:
            sanitized[key] = value
            continue
        sanitized[f"{key}_type"] = type(value).__name__
    return sanitized


class JsonlTraceLogger:
    """Trace observer that writes one JSON object per operation.

    The parent directory is created on the first recorded event, so building
    a logger never touches the filesystem.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def __call__(self, event: TraceEvent) -> None:
        """Record one event; OSError propagates to the materializer."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(asdict(event), sort_keys=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(f"{line}\n")

    def tail(self, limit: int = 20, *, failures_only: bool = False) -> list[dict[str, object]]:
        """Return the last recorded events, oldest first; unreadable lines are skipped."""
        if limit < 1 or not self._path.is_file():
            return []
        recent: deque[dict[str, object]] = deque(maxlen=limit)
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if not isinstance(record, dict):
                    continue
                if failures_only and record.get("ok") is not False:
                    continue
                recent.append(record)
        return list(recent)
