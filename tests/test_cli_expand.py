import json
from pathlib import Path

from typer.testing import CliRunner

from wrash.cli import app


runner = CliRunner()


def test_cli_expand_text(monkeypatch):
    monkeypatch.setenv("WRASH_TEST_NAME", "value")
    r = runner.invoke(app, ["expand", "commit -m \"$WRASH_TEST_NAME here\" 'lit $X'"])
    assert r.exit_code == 0, r.stdout
    assert r.stdout.splitlines() == ["commit", "-m", "value here", "lit $X"]


def test_cli_expand_glob(tmp_path: Path, monkeypatch):
    (tmp_path / "a_file").write_text("", encoding="utf-8")
    (tmp_path / "another_file").write_text("", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    r = runner.invoke(app, ["expand", "add a*_file"])
    assert r.exit_code == 0
    assert r.stdout.splitlines() == ["add", "a_file", "another_file"]


def test_cli_expand_raw():
    r = runner.invoke(app, ["expand", "--raw", "i 'want'   $NUM  \"$ITEM's\""])
    assert r.exit_code == 0
    assert r.stdout.splitlines() == ["i", "'want'", "$NUM", "\"$ITEM's\""]


def test_cli_expand_json():
    r = runner.invoke(app, ["expand", "--format", "json", "status --short"])
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload == {
        "tool": "wrash",
        "command": "expand",
        "ok": True,
        "args": ["status", "--short"],
        "errors": [],
    }


def test_cli_expand_parse_error():
    r = runner.invoke(app, ["expand", "'abc"])
    assert r.exit_code == 1
    assert "E_UNEXPECTED_EOF" in (r.stdout + r.stderr)


def test_cli_expand_parse_error_json():
    r = runner.invoke(app, ["expand", "--format", "json", "$"])
    assert r.exit_code == 1
    payload = json.loads(r.stdout)
    assert payload["ok"] is False
    assert payload["errors"] == ["E_INVALID_IDENTIFIER: invalid identifier: ''"]


def test_cli_expand_empty_glob(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    r = runner.invoke(app, ["expand", "add no_*_matches"])
    assert r.exit_code == 2
    assert "E_EMPTY_GLOB" in (r.stdout + r.stderr)


def test_cli_expand_unknown_format():
    r = runner.invoke(app, ["expand", "--format", "xml", "status"])
    assert r.exit_code == 2
    assert "unknown format" in (r.stdout + r.stderr)
