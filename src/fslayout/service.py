"""Public entry points and the `fslayout` command line."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from fslayout.config import CliOverrides, LayoutConfig, ParseConfig, load_effective_config
from fslayout.layout import LayoutSyntaxError, parse_layout
from fslayout.logging import JsonlTraceLogger
from fslayout.materialize import (
    CreationError,
    FilesystemPrimitives,
    MaterializeError,
    NavigationError,
    TraceObserver,
    materialize_entries,
)
from fslayout.security import PathBlockedError

logger = logging.getLogger(__name__)

ERROR_CODES = {
    "syntax": "LAYOUT_SYNTAX",
    "blocked": "PATH_BLOCKED",
    "navigation": "NAVIGATION_FAILED",
    "creation": "CREATION_FAILED",
}


@dataclass(slots=True, frozen=True)
class LayoutStatus:
    """Outcome of creating files from a layout."""

    ok: bool
    status: int
    message: str
    error_kind: str | None = None
    line: int | None = None
    path: str | None = None
    entry_index: int | None = None
    created: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        """Build the JSON response envelope."""
        envelope: dict[str, object] = {
            "ok": self.ok,
            "status": self.status,
            "message": self.message,
            "result": {"created": list(self.created)},
        }
        if self.error_kind is not None:
            error: dict[str, object] = {
                "code": ERROR_CODES[self.error_kind],
                "message": self.message,
            }
            if self.line is not None:
                error["line"] = self.line
            if self.path is not None:
                error["path"] = self.path
            if self.entry_index is not None:
                error["entry_index"] = self.entry_index
            envelope["error"] = error
        return envelope


@dataclass(slots=True, frozen=True)
class LayoutCheck:
    """Outcome of a parse-only layout check."""

    valid: bool
    error: str | None = None
    line: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {"valid": self.valid, "error": self.error, "line": self.line}


def _syntax_status(error: LayoutSyntaxError) -> LayoutStatus:
    return LayoutStatus(
        ok=False,
        status=400,
        message=f"Syntax error in layout: {error}",
        error_kind="syntax",
        line=error.line,
    )


def _materialize_status(error: MaterializeError) -> LayoutStatus:
    kind = "navigation" if isinstance(error, NavigationError) else "creation"
    return LayoutStatus(
        ok=False,
        status=500,
        message=error.message,
        error_kind=kind,
        path=str(error.path),
        entry_index=error.index,
    )


def create_files_using_layout(
    layout: str,
    prefix: str | os.PathLike[str] | None = None,
    *,
    config: LayoutConfig | None = None,
    primitives: FilesystemPrimitives | None = None,
    observer: TraceObserver | None = None,
) -> LayoutStatus:
    """Create files and directories described by layout under prefix.

    The prefix directory must already exist; when omitted, entries are
    created in the current directory. Problems with the layout or the
    filesystem are reported in the returned status rather than raised.
    Entries created before a failure are left in place.
    """
    parse_config = config.layout if config is not None else ParseConfig()

    try:
        entries = parse_layout(layout, strict_extras=parse_config.strict_extras)
    except LayoutSyntaxError as error:
        logger.debug("layout rejected: %s", error)
        return _syntax_status(error)

    if observer is None and config is not None and config.trace.enabled:
        observer = JsonlTraceLogger(config.trace.path)

    try:
        result = materialize_entries(
            entries,
            prefix,
            primitives=primitives,
            observer=observer,
            content_encoding=parse_config.content_encoding,
        )
    except PathBlockedError as error:
        return LayoutStatus(
            ok=False,
            status=400,
            message=f"{error.reason} {error.hint}",
            error_kind="blocked",
            path=str(prefix) if prefix is not None else None,
        )
    except (NavigationError, CreationError) as error:
        logger.debug("materialization stopped at entry %d: %s", error.index, error.message)
        return _materialize_status(error)

    return LayoutStatus(
        ok=True,
        status=200,
        message="OK",
        created=tuple(str(path) for path in result.created),
    )


def check_layout(layout: str, *, strict_extras: bool = False) -> LayoutCheck:
    """Check whether layout has syntax errors without touching the filesystem."""
    try:
        parse_layout(layout, strict_extras=strict_extras)
    except LayoutSyntaxError as error:
        return LayoutCheck(valid=False, error=str(error), line=error.line)
    return LayoutCheck(valid=True)


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for the command line."""
    parser = argparse.ArgumentParser(
        prog="fslayout",
        description="Create files/directories according to a layout.",
    )
    parser.add_argument("--config-root", required=False, default=".")
    parser.add_argument(
        "--strict-extras", action="store_const", const=True, required=False, default=None
    )
    parser.add_argument("--content-encoding", required=False, default=None)
    parser.add_argument("--trace-log", required=False, default=None)
    subcommands = parser.add_subparsers(dest="command", required=True)

    create = subcommands.add_parser("create", help="Create entries described by a layout.")
    create.add_argument("layout", help="Layout file path, or '-' for stdin.")
    create.add_argument("--prefix", required=False, default=None)

    check = subcommands.add_parser("check", help="Check a layout for syntax errors.")
    check.add_argument("layout", help="Layout file path, or '-' for stdin.")

    trace = subcommands.add_parser("trace", help="Show recent trace log events.")
    trace.add_argument("--limit", type=int, required=False, default=20)
    trace.add_argument("--failures", action="store_true", help="Only show failed operations.")
    return parser


def _read_layout(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the fslayout command."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    overrides = CliOverrides(
        strict_extras=args.strict_extras,
        content_encoding=args.content_encoding,
        trace_path=Path(args.trace_log) if args.trace_log is not None else None,
    )
    try:
        config = load_effective_config(Path(args.config_root), overrides)
    except ValueError as error:
        parser.error(str(error))

    if args.command == "trace":
        trace_log = JsonlTraceLogger(config.trace.path)
        events = trace_log.tail(args.limit, failures_only=args.failures)
        payload = {"path": str(trace_log.path), "events": events}
        sys.stdout.write(f"{json.dumps(payload, sort_keys=True)}\n")
        return 0

    try:
        layout = _read_layout(args.layout)
    except OSError as error:
        parser.error(f"cannot read layout {args.layout}: {error.strerror or error}")

    if args.command == "check":
        outcome = check_layout(layout, strict_extras=config.layout.strict_extras)
        sys.stdout.write(f"{json.dumps(outcome.to_dict(), sort_keys=True)}\n")
        return 0 if outcome.valid else 1

    status = create_files_using_layout(layout, args.prefix, config=config)
    sys.stdout.write(f"{json.dumps(status.to_dict(), sort_keys=True)}\n")
    return 0 if status.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
