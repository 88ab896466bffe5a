from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from fslayout.layout import parse_layout
from fslayout.materialize import OsFilesystem, materialize_entries, resolve_gid, resolve_uid


class _RecordingOwnerFilesystem(OsFilesystem):
    def __init__(self) -> None:
        self.calls: list[tuple[Path, str | None, str | None, bool]] = []

    def change_owner(
        self,
        path: Path,
        owner: str | None,
        group: str | None,
        *,
        dereference: bool,
    ) -> None:
        self.calls.append((path, owner, group, dereference))


def test_file_mode_is_applied_after_content(tmp_path: Path) -> None:
    materialize_entries(parse_layout('secret(0600) "content":"hidden"\n'), tmp_path)

    target = tmp_path / "secret"
    assert stat.S_IMODE(target.stat().st_mode) == 0o600
    assert target.read_text(encoding="utf-8") == "hidden"


def test_directory_mode_is_passed_to_mkdir(tmp_path: Path) -> None:
    materialize_entries(parse_layout("private/(0700)\n  inner\n"), tmp_path)

    target = tmp_path / "private"
    assert stat.S_IMODE(target.stat().st_mode) == 0o700
    assert (target / "inner").is_file()


def test_symlink_is_created_with_raw_target(tmp_path: Path) -> None:
    materialize_entries(parse_layout('data "content":"x"\nlink -> data\n'), tmp_path)

    link = tmp_path / "link"
    assert link.is_symlink()
    assert os.readlink(link) == "data"
    assert link.read_text(encoding="utf-8") == "x"


def test_ownership_changes_do_not_follow_symlinks(tmp_path: Path) -> None:
    fs = _RecordingOwnerFilesystem()
    layout = "\n".join(
        [
            "f(alice,staff,0644)",
            "l(bob,wheel,0777) -> f",
            "plain",
            "d/(carol,users,0755)",
        ]
    )

    materialize_entries(parse_layout(layout), tmp_path, primitives=fs)

    assert fs.calls == [
        (tmp_path / "f", "alice", "staff", True),
        (tmp_path / "l", "bob", "wheel", False),
        (tmp_path / "d", "carol", "users", True),
    ]


def test_content_encoding_is_configurable(tmp_path: Path) -> None:
    materialize_entries(
        parse_layout('latin "content":"caf\\u00e9"\n'),
        tmp_path,
        content_encoding="latin-1",
    )

    assert (tmp_path / "latin").read_bytes() == b"caf\xe9"


def test_numeric_and_missing_owner_tokens() -> None:
    assert resolve_uid(None) == -1
    assert resolve_gid(None) == -1
    assert resolve_uid("0") == 0
    assert resolve_gid("0") == 0


def test_unknown_owner_names_raise_lookup_error() -> None:
    with pytest.raises(LookupError, match="Unknown user"):
        resolve_uid("no-such-user-fslayout")
    with pytest.raises(LookupError, match="Unknown group"):
        resolve_gid("no-such-group-fslayout")
