from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from fslayout.service import main


def test_cli_create_from_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    layout_file = tmp_path / "tree.layout"
    layout_file.write_text('dir1/\n  inner.txt "content":"hi"\n', encoding="utf-8")
    target = tmp_path / "out"
    target.mkdir()

    exit_code = main(
        ["--config-root", str(tmp_path), "create", str(layout_file), "--prefix", str(target)]
    )

    response = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert response["ok"] is True
    assert response["status"] == 200
    assert (target / "dir1" / "inner.txt").read_text(encoding="utf-8") == "hi"


def test_cli_check_reads_stdin(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("a\n  b\n"))

    exit_code = main(["--config-root", str(tmp_path), "check", "-"])

    response = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert response["valid"] is False
    assert response["line"] == 2


def test_cli_create_failure_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    layout_file = tmp_path / "tree.layout"
    layout_file.write_text("tree.layout\n", encoding="utf-8")

    exit_code = main(
        ["--config-root", str(tmp_path), "create", str(layout_file), "--prefix", str(tmp_path)]
    )

    response = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert response["error"]["code"] == "CREATION_FAILED"
    assert response["error"]["entry_index"] == 0


def test_cli_trace_log_option(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    layout_file = tmp_path / "tree.layout"
    layout_file.write_text("f\n", encoding="utf-8")
    target = tmp_path / "out"
    target.mkdir()
    trace = tmp_path / "trace.jsonl"

    exit_code = main(
        [
            "--config-root",
            str(tmp_path),
            "--trace-log",
            str(trace),
            "create",
            str(layout_file),
            "--prefix",
            str(target),
        ]
    )

    capsys.readouterr()
    assert exit_code == 0
    (line,) = trace.read_text(encoding="utf-8").splitlines()
    assert json.loads(line)["operation"] == "create"


def test_cli_invalid_config_exits_with_usage_error(tmp_path: Path) -> None:
    (tmp_path / "fslayout.toml").write_text("[layout]\nstrict_extras = 1\n", encoding="utf-8")

    with pytest.raises(SystemExit) as error:
        main(["--config-root", str(tmp_path), "check", "-"])

    assert error.value.code == 2


def test_cli_missing_layout_file(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as error:
        main(["--config-root", str(tmp_path), "check", str(tmp_path / "missing.layout")])

    assert error.value.code == 2


def test_cli_trace_shows_recent_failures(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / "fslayout.toml").write_text(
        '[trace]\nenabled = true\npath = "logs/trace.jsonl"\n', encoding="utf-8"
    )
    layout_file = tmp_path / "tree.layout"
    layout_file.write_text("fresh\ntree.layout\n", encoding="utf-8")
    base = ["--config-root", str(tmp_path)]

    assert main([*base, "create", str(layout_file), "--prefix", str(tmp_path)]) == 1
    capsys.readouterr()

    exit_code = main([*base, "trace", "--failures"])

    response = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert response["path"] == str(tmp_path.resolve() / "logs" / "trace.jsonl")
    (event,) = response["events"]
    assert event["operation"] == "create"
    assert event["path"] == str(tmp_path / "tree.layout")
    assert event["error"] == "File exists"

    assert main([*base, "trace", "--limit", "1"]) == 0
    (latest,) = json.loads(capsys.readouterr().out)["events"]
    assert latest["ok"] is False
