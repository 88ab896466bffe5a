"""Filesystem primitives the materializer drives."""

from __future__ import annotations

import errno
import grp
import os
import pwd
from pathlib import Path
from typing import BinaryIO, Protocol


class FilesystemPrimitives(Protocol):
    """Opaque filesystem operations; failures raise OSError or LookupError."""

    def change_location(self, path: Path) -> Path:
        """Validate that path is a directory that entries can be created in."""
        ...

    def create_directory(self, path: Path, mode: int | None) -> None:
        """Create one directory, failing when it exists."""
        ...

    def create_file(self, path: Path) -> BinaryIO:
        """Create a new regular file exclusively and return a writable handle."""
        ...

    def write_content(self, handle: BinaryIO, data: bytes) -> None:
        """Write data in full."""
        ...

    def set_permission(self, path: Path, mode: int) -> None:
        """Apply a numeric mode."""
        ...

    def create_symlink(self, target: str, path: Path) -> None:
        """Create path as a symlink pointing at target."""
        ...

    def change_owner(
        self,
        path: Path,
        owner: str | None,
        group: str | None,
        *,
        dereference: bool,
    ) -> None:
        """Change ownership; dereference=False acts on a symlink itself."""
        ...


def resolve_uid(owner: str | None) -> int:
    """Map a user name or numeric token to a uid; -1 leaves it unchanged."""
    if owner is None:
        return -1
    if owner.isdigit():
        return int(owner)
    try:
        return pwd.getpwnam(owner).pw_uid
    except KeyError as exc:
        raise LookupError(f"Unknown user: {owner}") from exc


def resolve_gid(group: str | None) -> int:
    """Map a group name or numeric token to a gid; -1 leaves it unchanged."""
    if group is None:
        return -1
    if group.isdigit():
        return int(group)
    try:
        return grp.getgrnam(group).gr_gid
    except KeyError as exc:
        raise LookupError(f"Unknown group: {group}") from exc


class OsFilesystem:
    """Primitives backed by the local operating system."""

    def change_location(self, path: Path) -> Path:
        if not path.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path))
        if not path.is_dir():
            raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), str(path))
        return path

    def create_directory(self, path: Path, mode: int | None) -> None:
        if mode is None:
            path.mkdir()
        else:
            path.mkdir(mode=mode)

    def create_file(self, path: Path) -> BinaryIO:
        return path.open("xb")

    def write_content(self, handle: BinaryIO, data: bytes) -> None:
        handle.write(data)
        handle.flush()

    def set_permission(self, path: Path, mode: int) -> None:
        path.chmod(mode)

    def create_symlink(self, target: str, path: Path) -> None:
        os.symlink(target, path)

    def change_owner(
        self,
        path: Path,
        owner: str | None,
        group: str | None,
        *,
        dereference: bool,
    ) -> None:
        uid = resolve_uid(owner)
        gid = resolve_gid(group)
        os.chown(path, uid, gid, follow_symlinks=dereference)
