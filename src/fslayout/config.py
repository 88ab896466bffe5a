"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import codecs
import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "fslayout.toml"
DEFAULT_CONTENT_ENCODING = "utf-8"
DEFAULT_TRACE_PATH = ".fslayout/trace.jsonl"


@dataclass(slots=True, frozen=True)
class ParseConfig:
    """Layout parsing and content settings."""

    strict_extras: bool = False
    content_encoding: str = DEFAULT_CONTENT_ENCODING


@dataclass(slots=True, frozen=True)
class TraceConfig:
    """JSONL trace settings."""

    enabled: bool
    path: Path


@dataclass(slots=True, frozen=True)
class LayoutConfig:
    """Fully merged configuration."""

    config_root: Path
    layout: ParseConfig
    trace: TraceConfig


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    strict_extras: bool | None = None
    content_encoding: str | None = None
    trace_path: Path | None = None


def default_config(config_root: Path) -> LayoutConfig:
    """Build default config for a given config root."""
    resolved_root = config_root.resolve()
    return LayoutConfig(
        config_root=resolved_root,
        layout=ParseConfig(),
        trace=TraceConfig(enabled=False, path=resolved_root / DEFAULT_TRACE_PATH),
    )


def load_config_file(config_root: Path) -> dict[str, object]:
    """Load optional fslayout.toml from the config root."""
    config_path = config_root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        return tomllib.load(handle)


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def _optional_encoding(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or not value:
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    try:
        codecs.lookup(value)
    except LookupError as exc:
        raise ValueError(f"Config field '{name}' names an unknown encoding: {value}") from exc
    return value


def merge_config(
    base: LayoutConfig, payload: dict[str, object], overrides: CliOverrides
) -> LayoutConfig:
    """Merge defaults, config file, then CLI/startup overrides."""
    layout_payload = _get_table(payload, "layout")
    trace_payload = _get_table(payload, "trace")

    strict_extras = _optional_bool(
        layout_payload.get("strict_extras"),
        "layout.strict_extras",
        base.layout.strict_extras,
    )
    content_encoding = _optional_encoding(
        layout_payload.get("content_encoding"),
        "layout.content_encoding",
        base.layout.content_encoding,
    )
    trace_enabled = _optional_bool(
        trace_payload.get("enabled"),
        "trace.enabled",
        base.trace.enabled,
    )
    trace_path = base.trace.path
    if "path" in trace_payload:
        raw_path = trace_payload["path"]
        if not isinstance(raw_path, str) or not raw_path:
            raise ValueError("Config field 'trace.path' must be a non-empty string.")
        trace_path = base.config_root / raw_path

    merged = LayoutConfig(
        config_root=base.config_root,
        layout=ParseConfig(strict_extras=strict_extras, content_encoding=content_encoding),
        trace=TraceConfig(enabled=trace_enabled, path=trace_path),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: LayoutConfig, overrides: CliOverrides) -> LayoutConfig:
    """Apply startup overrides at highest precedence."""
    strict_extras = (
        overrides.strict_extras
        if overrides.strict_extras is not None
        else config.layout.strict_extras
    )
    content_encoding = _optional_encoding(
        overrides.content_encoding,
        "overrides.content_encoding",
        config.layout.content_encoding,
    )
    trace = config.trace
    if overrides.trace_path is not None:
        trace = TraceConfig(enabled=True, path=overrides.trace_path.resolve())
    return LayoutConfig(
        config_root=config.config_root,
        layout=ParseConfig(strict_extras=strict_extras, content_encoding=content_encoding),
        trace=trace,
    )


def load_effective_config(
    config_root: Path, overrides: CliOverrides | None = None
) -> LayoutConfig:
    """Load effective config using merge order defaults -> file -> overrides."""
    resolved_root = config_root.resolve()
    base = default_config(resolved_root)
    payload = load_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())
