from __future__ import annotations

import contextlib
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.table import Table

from wrash.core.environ import IDENTIFIER_PATTERN
from wrash.core.errors import WrashError

if TYPE_CHECKING:
    from wrash.core.session import Session


BUILTIN_PREFIX = "!!"

HELP_TEXT = """Thanks for using wrash!

wrash is a minimal interactive wrapper shell around a base command. For
example if the base command was 'git', you could call 'add -A' rather than
'git add -A'.

Below is a list of supported builtins, pass '--help' to any of them for more information:"""


def is_builtin(line: str) -> bool:
    return line.startswith(BUILTIN_PREFIX)


app = typer.Typer(add_completion=False, no_args_is_help=True)
env_app = typer.Typer(add_completion=False)
app.add_typer(env_app, name="env", help="set or display environment variables for the current session")


@app.callback()
def _callback() -> None:
    """wrash builtins."""
    return


def _session(ctx: typer.Context) -> "Session":
    return ctx.obj


@app.command("cd")
def cd(
    target: Optional[str] = typer.Argument(None, help="Directory to enter (default: home)"),
) -> None:
    """change the working directory of the shell"""
    dest = target if target is not None else str(Path.home())
    try:
        os.chdir(dest)
    except OSError as e:
        raise WrashError(code="E_CD", message=f"could not change directory: {e}", path=dest) from e


@app.command("exit")
def exit_(
    ctx: typer.Context,
    code: Optional[int] = typer.Argument(None, help="Exit code of the shell"),
) -> None:
    """exit the shell"""
    session = _session(ctx)
    if code is not None:
        session.previous_exit_code = code
    session.exit_called = True


@app.command("help")
def help_(ctx: typer.Context) -> None:
    """view help text"""
    session = _session(ctx)

    table = Table(show_header=False, box=None, padding=(0, 4, 0, 3))
    for name, description in builtin_descriptions().items():
        table.add_row(name, description)

    console = Console(file=session.stdout)
    console.print(HELP_TEXT, markup=False, highlight=False)
    console.print(table)


@app.command("history")
def history_(
    ctx: typer.Context,
    pattern: Optional[str] = typer.Argument(
        None, help="Regular expression (should not include the base command)"
    ),
    number: int = typer.Option(
        0, "--number", "-n", help="Limit shown entries to N (0 shows all entries)"
    ),
    show: bool = typer.Option(False, "--show", "-s", help="Include the base command in the output"),
) -> None:
    """view the history of the shell"""
    session = _session(ctx)
    try:
        entries = session.history.entries_for(pattern)
    except re.error as e:
        raise WrashError(code="E_HISTORY_PATTERN", message=f"could not compile pattern: {e}") from e

    lines = [f"{e.base} {e.cmd}" if show else e.cmd for e in entries]
    if 0 < number < len(lines):
        lines = lines[-number:]

    for line in lines:
        typer.echo(line, file=session.stdout)


def _show_env(session: "Session") -> None:
    for key, value in session.environment.items():
        typer.echo(f"{key}='{value}'", file=session.stdout)


@env_app.callback(invoke_without_command=True)
def env_(ctx: typer.Context) -> None:
    """set or display environment variables for the current session"""
    if ctx.invoked_subcommand is None:
        _show_env(_session(ctx))


@env_app.command("set")
def env_set(
    ctx: typer.Context,
    key: Optional[str] = typer.Argument(None),
    value: Optional[str] = typer.Argument(None),
) -> None:
    """set environment variables for the current session (KEY alone unsets it)"""
    if key is None:
        return
    if not IDENTIFIER_PATTERN.match(key):
        raise WrashError(
            code="E_ENV_INVALID_KEY",
            message=f"invalid identifier '{key}', must match pattern {IDENTIFIER_PATTERN.pattern}",
        )

    environment = _session(ctx).environment
    if value is None:
        environment.unset(key)
    else:
        environment.set(key, value)


@env_app.command("show")
def env_show(ctx: typer.Context) -> None:
    """show environment variables for the current session"""
    _show_env(_session(ctx))


def builtin_descriptions() -> dict[str, str]:
    group = typer.main.get_command(app)
    commands = getattr(group, "commands", {})
    return {name: commands[name].get_short_help_str(limit=80) for name in sorted(commands)}


def run_builtin(session: "Session", args: list[str]) -> int:
    """Run a builtin and return its exit status; `args[0]` is the builtin name
    with the marker already stripped.

    Help and usage errors are printed to the session streams. Failures inside
    a builtin are raised as WrashError.
    """

    command = typer.main.get_command(app)
    with contextlib.redirect_stdout(session.stdout), contextlib.redirect_stderr(session.stderr):
        try:
            command.main(args=args, prog_name=BUILTIN_PREFIX, obj=session)
        except SystemExit as e:
            # standalone mode always ends here, usage errors with a non-zero code
            code = 0 if e.code is None else e.code
            return code if isinstance(code, int) else 1
    return 0
