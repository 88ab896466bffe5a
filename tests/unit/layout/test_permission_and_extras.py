from __future__ import annotations

import pytest

from fslayout.layout import LayoutSyntaxError, parse_layout


def test_mode_only_permission_block() -> None:
    (entry,) = parse_layout("file2(0600)")

    assert entry.permission == 0o600
    assert entry.permission == 384
    assert entry.permission_text == "0600"
    assert entry.owner is None
    assert entry.group is None


def test_three_digit_mode_is_octal() -> None:
    (entry,) = parse_layout("file.txt(644)")

    assert entry.permission == 0o644
    assert entry.permission_text == "644"


def test_owner_group_mode_block_on_directory() -> None:
    (entry,) = parse_layout("dir1/(ujang,admin,0700)")

    assert entry.is_dir is True
    assert entry.owner == "ujang"
    assert entry.group == "admin"
    assert entry.permission == 0o700
    assert entry.has_ownership is True


def test_empty_owner_token_means_unset() -> None:
    (entry,) = parse_layout("f(,admin,0640)")

    assert entry.owner is None
    assert entry.group == "admin"


@pytest.mark.parametrize("line", ["f(0800)", "f(06)", "f(a,0600)", "f(0600", "f(a,b,c,0600)"])
def test_malformed_permission_block_is_rejected(line: str) -> None:
    with pytest.raises(LayoutSyntaxError, match="Invalid syntax in permission/owner"):
        parse_layout(line)


def test_extras_content_is_decoded() -> None:
    (entry,) = parse_layout('file3.txt(0644) "content":"hello, world\\n"')

    assert entry.content == "hello, world\n"
    assert entry.permission == 0o644


def test_unknown_extras_keys_pass_through() -> None:
    (entry,) = parse_layout('file2.txt(0660)      "content":"secret","foo":"bar","mtime":1441853999')

    assert entry.content == "secret"
    assert dict(entry.extra_fields) == {"foo": "bar", "mtime": 1441853999}


def test_unknown_extras_keys_rejected_when_strict() -> None:
    with pytest.raises(LayoutSyntaxError, match="Unknown extras keys: foo, mtime"):
        parse_layout('f "content":"x","mtime":1,"foo":2', strict_extras=True)


def test_directory_with_content_is_rejected() -> None:
    with pytest.raises(LayoutSyntaxError, match="Directory must not have 'content'") as error:
        parse_layout('ok\nd/ "content":"x"\n')

    assert error.value.line == 2


def test_invalid_extras_json_is_rejected() -> None:
    with pytest.raises(LayoutSyntaxError, match="Invalid unquoted JSON hash in extras"):
        parse_layout("foo bar")


def test_non_string_content_is_rejected() -> None:
    with pytest.raises(LayoutSyntaxError, match="'content' must be a string"):
        parse_layout('f "content":1')


def test_null_content_on_file_means_empty_file() -> None:
    (entry,) = parse_layout('f "content":null')

    assert entry.content is None


def test_extras_after_symlink_target() -> None:
    (entry,) = parse_layout('link -> target "note":"kept"')

    assert entry.symlink_target == "target"
    assert dict(entry.extra_fields) == {"note": "kept"}
