import contextlib
import io
import os
from pathlib import Path

import pytest

from wrash.core.builtins import builtin_descriptions, is_builtin
from wrash.core.environ import Environment
from wrash.core.errors import WrashError
from wrash.core.history import History, HistoryEntry
from wrash.core.session import Session


def _session(**kwargs) -> tuple[Session, io.StringIO, io.StringIO]:
    out, err = io.StringIO(), io.StringIO()
    return Session("git", stdout=out, stderr=err, **kwargs), out, err


def test_is_builtin():
    assert is_builtin("!!cd")
    assert not is_builtin("!cd")
    assert not is_builtin("status")


def test_builtin_descriptions():
    descriptions = builtin_descriptions()
    assert sorted(descriptions) == ["cd", "env", "exit", "help", "history"]
    assert descriptions["cd"] == "change the working directory of the shell"


def test_cd(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "sub").mkdir()
    session, _, err = _session()
    session.execute("!!cd sub")
    assert Path(os.getcwd()) == (tmp_path / "sub").resolve()
    assert session.previous_exit_code == 0
    assert err.getvalue() == ""


def test_cd_home(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    (tmp_path / "home").mkdir()
    session, _, _ = _session()
    session.execute("!!cd")
    assert Path(os.getcwd()) == (tmp_path / "home").resolve()


def test_cd_uses_session_variables(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "target").mkdir()
    session, _, _ = _session(environment=Environment({"DEST": "target"}))
    session.execute("!!cd $DEST")
    assert Path(os.getcwd()) == (tmp_path / "target").resolve()


def test_cd_missing_directory(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    session, _, err = _session()
    session.execute("!!cd does-not-exist")
    assert session.previous_exit_code == 127
    assert "could not change directory" in err.getvalue()


def test_cd_too_many_arguments(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    session, _, err = _session()
    session.execute("!!cd a b")
    assert session.previous_exit_code == 127
    assert "unexpected extra argument" in err.getvalue()


def test_exit():
    session, _, _ = _session()
    session.execute("!!exit")
    assert session.exit_called
    assert session.previous_exit_code == 0


def test_exit_with_code():
    session, _, _ = _session()
    session.execute("!!exit 3")
    assert session.exit_called
    assert session.previous_exit_code == 3


def test_exit_invalid_code():
    session, _, err = _session()
    session.execute("!!exit abc")
    assert not session.exit_called
    assert session.previous_exit_code == 127
    assert err.getvalue()


def test_unknown_builtin():
    session, _, err = _session()
    session.execute("!!frobnicate")
    assert session.previous_exit_code == 127
    assert "frobnicate" in err.getvalue()


def test_help_lists_builtins():
    session, out, _ = _session()
    session.execute("!!help")
    text = out.getvalue()
    assert "Thanks for using wrash!" in text
    for name in ("cd", "env", "exit", "help", "history"):
        assert name in text


def test_history():
    history = History(
        "git",
        [
            HistoryEntry("git", "status"),
            HistoryEntry("docker", "ps"),
            HistoryEntry("git", "log --oneline"),
            HistoryEntry("git", "add -A"),
        ],
    )
    session, out, _ = _session(history=history)
    session.execute("!!history")
    assert out.getvalue().splitlines() == ["status", "log --oneline", "add -A"]


def test_history_pattern_number_and_show():
    history = History("git", [HistoryEntry("git", c) for c in ("log", "status", "log -p", "log --stat")])
    session, out, _ = _session(history=history)
    session.execute("!!history ^log -n 2 --show")
    assert out.getvalue().splitlines() == ["git log -p", "git log --stat"]


def test_history_bad_pattern():
    session, _, err = _session()
    session.execute("!!history '('")
    assert session.previous_exit_code == 127
    assert "could not compile pattern" in err.getvalue()


def test_env_set_show_and_unset():
    session, out, _ = _session(environment=Environment())
    session.execute("!!env set B 2")
    session.execute("!!env set A 'one value'")
    session.execute("!!env show")
    assert out.getvalue().splitlines() == ["A='one value'", "B='2'"]

    session.execute("!!env set B")
    assert "B" not in session.environment.as_dict()

    out.truncate(0)
    out.seek(0)
    session.execute("!!env")
    assert out.getvalue().splitlines() == ["A='one value'"]


def test_env_set_invalid_key():
    session, _, err = _session()
    session.execute("!!env set BAD-KEY 1")
    assert session.previous_exit_code == 127
    assert "invalid identifier" in err.getvalue()


def test_env_set_too_many_arguments():
    session, _, _ = _session()
    session.execute("!!env set A 1 2")
    assert session.previous_exit_code == 127
    assert "A" not in session.environment.as_dict()


def test_builtin_help_goes_to_session_stdout():
    session, out, _ = _session()
    session.execute("!!cd --help")
    assert "change the working directory of the shell" in out.getvalue()
    assert session.previous_exit_code == 0


def test_usage_errors_go_to_session_stderr():
    session, out, err = _session()
    session.execute("!!history -n")
    assert session.previous_exit_code == 127
    assert "-n" in err.getvalue()
    assert out.getvalue() == ""


def test_failing_builtins_never_escape_execute(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    session, _, _ = _session()
    for line in (
        "!!cd a b",
        "!!cd does-not-exist",
        "!!exit abc",
        "!!frobnicate",
        "!!history '('",
        "!!env set BAD-KEY 1",
        "!!env set A 1 2",
    ):
        session.previous_exit_code = 0
        session.execute(line)
        assert session.previous_exit_code == 127, line
    assert not session.exit_called


def test_wrash_error_passes_through_context_managers():
    @contextlib.contextmanager
    def passthrough():
        yield

    with pytest.raises(WrashError) as exc:
        with passthrough():
            raise WrashError(code="E_CD", message="could not change directory")
    assert exc.value.__traceback__ is not None
