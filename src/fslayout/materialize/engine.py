"""Materialize parsed layout entries onto the filesystem.

Entries are created in document order. The engine never changes the process
working directory: it tracks the current location as a root path plus the
directory names recorded per nesting level, and hands fully composed paths
to the primitives. A failure stops the run at the offending entry and leaves
everything created so far on disk.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from fslayout.layout.models import LayoutEntry
from fslayout.logging import TraceEvent, sanitize_metadata, utc_timestamp
from fslayout.materialize.primitives import FilesystemPrimitives, OsFilesystem
from fslayout.security import PathBlockedError, compose_entry_path, resolve_prefix

logger = logging.getLogger(__name__)

TraceObserver = Callable[[TraceEvent], None]
_T = TypeVar("_T")


class MaterializeError(Exception):
    """Located failure while creating a layout."""

    def __init__(
        self,
        index: int,
        path: Path,
        operation: str,
        reason: str,
        message: str,
    ) -> None:
        super().__init__(message)
        self.index = index
        self.path = path
        self.operation = operation
        self.reason = reason
        self.message = message


class NavigationError(MaterializeError):
    """Raised when descending into or ascending out of a directory fails."""


class CreationError(MaterializeError):
    """Raised when a filesystem primitive fails."""


@dataclass(slots=True, frozen=True)
class MaterializeResult:
    """Paths created by a successful run, in creation order."""

    root: Path
    created: tuple[Path, ...]


@dataclass(slots=True)
class DirectoryCursor:
    """Current location expressed as a root plus per-level directory names."""

    root: Path
    records: list[str] = field(default_factory=list)
    depth: int = 0

    @property
    def segments(self) -> list[str]:
        return self.records[: self.depth]

    @property
    def location(self) -> Path:
        return self.root.joinpath(*self.segments)

    def descend_target(self) -> Path | None:
        """Return the most recently recorded directory one level down."""
        if len(self.records) <= self.depth:
            return None
        return self.location / self.records[self.depth]

    def parent_target(self) -> Path:
        return self.root.joinpath(*self.records[: self.depth - 1])

    def record_directory(self, level: int, name: str) -> None:
        """Record a new directory at level, dropping stale deeper records."""
        del self.records[level:]
        self.records.append(name)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    if isinstance(exc, LookupError) and exc.args:
        return str(exc.args[0])
    return str(exc)


class Materializer:
    """Stateful walk over layout entries."""

    def __init__(
        self,
        primitives: FilesystemPrimitives | None = None,
        observer: TraceObserver | None = None,
        content_encoding: str = "utf-8",
    ) -> None:
        self._fs: FilesystemPrimitives = primitives or OsFilesystem()
        self._observer = observer
        self._content_encoding = content_encoding

    def run(
        self,
        entries: Iterable[LayoutEntry],
        prefix: str | os.PathLike[str] | None = None,
    ) -> MaterializeResult:
        """Create every entry under prefix; raise at the first failure."""
        cursor = DirectoryCursor(root=resolve_prefix(prefix))
        created: list[Path] = []
        prev_level: int | None = None
        for index, entry in enumerate(entries):
            if prev_level is not None:
                self._navigate(cursor, index, prev_level, entry.level)
            try:
                path = compose_entry_path(cursor.root, cursor.segments, entry.name)
            except PathBlockedError as exc:
                location = cursor.location / entry.name
                raise CreationError(
                    index=index,
                    path=location,
                    operation="resolve",
                    reason=exc.reason,
                    message=f"Can't create {location}: {exc.reason}",
                ) from exc
            self._create(index, entry, path)
            if entry.is_dir:
                cursor.record_directory(entry.level, entry.name)
            if entry.has_ownership:
                self._perform(
                    CreationError,
                    index,
                    "chown",
                    path,
                    lambda: self._fs.change_owner(
                        path,
                        entry.owner,
                        entry.group,
                        dereference=not entry.is_symlink,
                    ),
                    f"Can't chown {path}",
                    {"owner": entry.owner, "group": entry.group},
                )
            created.append(path)
            prev_level = entry.level
        return MaterializeResult(root=cursor.root, created=tuple(created))

    def _navigate(
        self,
        cursor: DirectoryCursor,
        index: int,
        prev_level: int,
        level: int,
    ) -> None:
        while level > prev_level:
            target = cursor.descend_target()
            if target is None:
                location = cursor.location
                self._emit(
                    index, "enter", location, ok=False, error="No directory to descend into"
                )
                raise NavigationError(
                    index=index,
                    path=location,
                    operation="enter",
                    reason="No directory to descend into",
                    message=f"Can't descend from {location}: no directory was created there",
                )
            self._perform(
                NavigationError,
                index,
                "enter",
                target,
                lambda: self._fs.change_location(target),
                f"Can't enter directory {target}",
            )
            cursor.depth += 1
            prev_level += 1
        while level < prev_level:
            target = cursor.parent_target()
            self._perform(
                NavigationError,
                index,
                "leave",
                target,
                lambda: self._fs.change_location(target),
                f"Can't return to directory {target}",
            )
            cursor.depth -= 1
            prev_level -= 1

    def _create(self, index: int, entry: LayoutEntry, path: Path) -> None:
        if entry.is_dir:
            self._perform(
                CreationError,
                index,
                "mkdir",
                path,
                lambda: self._fs.create_directory(path, entry.permission),
                f"Can't create directory {path}",
                {"mode": entry.permission},
            )
            return
        if entry.symlink_target is not None:
            target = entry.symlink_target
            self._perform(
                CreationError,
                index,
                "symlink",
                path,
                lambda: self._fs.create_symlink(target, path),
                f"Can't create symlink {path} -> {target}",
                {"target": target},
            )
            return

        handle = self._perform(
            CreationError,
            index,
            "create",
            path,
            lambda: self._fs.create_file(path),
            f"Can't create file {path}",
            trace_success=False,
        )
        with handle:
            self._emit(index, "create", path, ok=True)
            if entry.content is not None:
                content = entry.content
                self._perform(
                    CreationError,
                    index,
                    "write",
                    path,
                    lambda: self._fs.write_content(
                        handle, content.encode(self._content_encoding)
                    ),
                    f"Can't write content to file {path}",
                    {"content": content},
                )
        if entry.permission is not None:
            mode = entry.permission
            self._perform(
                CreationError,
                index,
                "chmod",
                path,
                lambda: self._fs.set_permission(path, mode),
                f"Can't chmod file {path}",
                {"mode": mode},
            )

    def _perform(
        self,
        error_type: type[MaterializeError],
        index: int,
        operation: str,
        path: Path,
        action: Callable[[], _T],
        failure: str,
        metadata: dict[str, object] | None = None,
        *,
        trace_success: bool = True,
    ) -> _T:
        logger.debug("%s %s", operation, path)
        try:
            outcome = action()
        except (OSError, LookupError, UnicodeError) as exc:
            reason = _describe(exc)
            logger.debug("%s %s failed: %s", operation, path, reason)
            self._emit(index, operation, path, ok=False, error=reason, metadata=metadata)
            raise error_type(
                index=index,
                path=path,
                operation=operation,
                reason=reason,
                message=f"{failure}: {reason}",
            ) from exc
        if trace_success:
            self._emit(index, operation, path, ok=True, metadata=metadata)
        return outcome

    def _emit(
        self,
        index: int,
        operation: str,
        path: Path,
        *,
        ok: bool,
        error: str | None = None,
        metadata: dict[str, object] | None = None,
    ) -> None:
        if self._observer is None:
            return
        event = TraceEvent(
            timestamp=utc_timestamp(),
            operation=operation,
            path=str(path),
            ok=ok,
            error=error,
            metadata=sanitize_metadata(metadata or {}),
        )
        try:
            self._observer(event)
        except OSError as exc:
            reason = _describe(exc)
            raise CreationError(
                index=index,
                path=path,
                operation="trace",
                reason=reason,
                message=f"Can't record {operation} of {path} in trace: {reason}",
            ) from exc


def materialize_entries(
    entries: Iterable[LayoutEntry],
    prefix: str | os.PathLike[str] | None = None,
    *,
    primitives: FilesystemPrimitives | None = None,
    observer: TraceObserver | None = None,
    content_encoding: str = "utf-8",
) -> MaterializeResult:
    """Create entries under prefix in document order."""
    materializer = Materializer(
        primitives=primitives,
        observer=observer,
        content_encoding=content_encoding,
    )
    return materializer.run(entries, prefix)
