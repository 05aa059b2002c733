from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

import typer

from wrash.core.environ import Environment, inherit_environment
from wrash.core.errors import ExpandError, HistoryLoadError, ParseError
from wrash.core.history import History, load_history
from wrash.core.parse.parse_line import parse_line
from wrash.core.session import Session
from wrash.core.suggest.suggestions import Suggestor, SuggestionConfigError, load_suggestions

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _default_history_file() -> str:
    return str(Path.home() / ".wrash_history.yaml")


def _default_completion_file(base: str) -> Path:
    return Path.home() / ".wrash" / "completions" / f"{base}.yaml"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback()
def _callback(
    log_level: str = typer.Option(
        "WARNING", "--log-level", envvar="WRASH_LOG_LEVEL", help="Logging level"
    ),
) -> None:
    """Interactive wrapper shell around a base command."""
    _configure_logging(log_level)


@app.command("run")
def run(
    base: str = typer.Argument(..., help="Base command to wrap (e.g. git)"),
    history_file: Optional[str] = typer.Option(
        None,
        "--history-file",
        envvar="WRASH_HISTORY_FILE",
        help="YAML history file (default: ~/.wrash_history.yaml)",
    ),
    completion_file: Optional[str] = typer.Option(
        None,
        "--completion-file",
        envvar="WRASH_COMPLETION_FILE",
        help="YAML completion tree (default: ~/.wrash/completions/<base>.yaml if present)",
    ),
    inherit_env: bool = typer.Option(
        True,
        "--inherit-env/--clean-env",
        help="Start the session with the current process environment",
    ),
) -> None:
    """Start an interactive shell where each line is a sub-command of BASE."""
    history_path = history_file or _default_history_file()
    try:
        entries = load_history(history_path)
    except HistoryLoadError as e:
        _print_errors([str(e)])
        raise typer.Exit(code=1)

    suggestor: Suggestor | None = None
    if completion_file is not None:
        completion_path = Path(completion_file)
        if not completion_path.exists():
            _print_errors([f"completion file not found: {completion_file}"])
            raise typer.Exit(code=1)
    else:
        completion_path = _default_completion_file(base)

    if completion_path.exists():
        try:
            suggestor = load_suggestions(completion_path)
        except SuggestionConfigError as e:
            _print_errors([f"invalid completion file {completion_path}: {e}"])
            raise typer.Exit(code=2)

    environment = Environment(inherit_environment() if inherit_env else {})
    session = Session(
        base,
        environment=environment,
        history=History(base, entries, path=history_path),
        suggestor=suggestor,
    )

    logger.debug("starting session for %s (history=%s)", base, history_path)
    code = session.run()
    if code:
        raise typer.Exit(code=code)


@app.command("expand")
def expand(
    line: str = typer.Argument(..., help="Line to parse, as typed at the wrash prompt"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    raw: bool = typer.Option(False, "--raw", help="Print the unexpanded args instead"),
) -> None:
    """Parse and expand one line against the current environment and directory."""
    if format not in ("text", "json"):
        _print_errors([f"unknown format: {format} (choose one of: text, json)"])
        raise typer.Exit(code=2)

    def _emit_json(ok: bool, *, exit_code: int, args: list[str], errors: list[str]) -> None:
        payload = {
            "tool": "wrash",
            "command": "expand",
            "ok": ok,
            "args": args,
            "errors": errors,
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        command = parse_line(line)
    except ParseError as e:
        if format == "json":
            _emit_json(False, exit_code=1, args=[], errors=[f"{e.code}: {e}"])
        _print_errors([f"{e.code}: {e}"])
        raise typer.Exit(code=1)

    if raw:
        args = command.render_args()
    else:
        try:
            args = command.expand(Environment(os.environ).lookup)
        except ExpandError as e:
            if format == "json":
                _emit_json(False, exit_code=2, args=[], errors=[str(e)])
            _print_errors([str(e)])
            raise typer.Exit(code=2)

    if format == "json":
        _emit_json(True, exit_code=0, args=args, errors=[])

    for arg in args:
        typer.echo(arg)


def _print_errors(errors: list[str]) -> None:
    for e in errors:
        typer.echo(e, err=True)


def main() -> None:
    app(prog_name="wrash")


if __name__ == "__main__":
    main()
