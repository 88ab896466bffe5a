"""Layout materialization onto the filesystem."""

from .engine import (
    CreationError,
    DirectoryCursor,
    MaterializeError,
    MaterializeResult,
    Materializer,
    NavigationError,
    TraceObserver,
    materialize_entries,
)
from .primitives import FilesystemPrimitives, OsFilesystem, resolve_gid, resolve_uid

__all__ = [
    "CreationError",
    "DirectoryCursor",
    "FilesystemPrimitives",
    "MaterializeError",
    "MaterializeResult",
    "Materializer",
    "NavigationError",
    "OsFilesystem",
    "TraceObserver",
    "materialize_entries",
    "resolve_gid",
    "resolve_uid",
]
