from __future__ import annotations

import logging
import os
import subprocess
import sys
from typing import IO, Any, Iterable, Optional

import typer
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.filters import has_completions
from prompt_toolkit.key_binding import KeyBindings, KeyPressEvent

from wrash.core.builtins import BUILTIN_PREFIX, builtin_descriptions, is_builtin, run_builtin
from wrash.core.environ import Environment
from wrash.core.errors import ExpandError, ParseError, WrashError
from wrash.core.history import History
from wrash.core.parse.parse_line import parse_line
from wrash.core.suggest.suggestions import Suggestion, Suggestor

logger = logging.getLogger(__name__)


BOUNDARY_CHARS = "`~!@#$%^&*()-=+[{]}\\|;:'\",.<>/?_"


def _is_boundary(c: str) -> bool:
    return c in BOUNDARY_CHARS or c.isspace()


def next_boundary(text: str) -> int:
    """Distance to the end of the leading run of word (or punctuation/space) characters."""

    if not text:
        return 0
    start_is_boundary = _is_boundary(text[0])
    i = 0
    while i < len(text) and _is_boundary(text[i]) == start_is_boundary:
        i += 1
    return i


def previous_boundary(text_before_cursor: str) -> int:
    return next_boundary(text_before_cursor[::-1])


def _has_fileno(stream: Any) -> bool:
    try:
        stream.fileno()
    except (AttributeError, OSError, ValueError):
        return False
    return True


class Session:
    """Interactive wrapper around `base`: every line is run as `base <args>`."""

    def __init__(
        self,
        base: str,
        *,
        environment: Optional[Environment] = None,
        history: Optional[History] = None,
        suggestor: Optional[Suggestor] = None,
        stdin: Optional[IO[Any]] = None,
        stdout: Optional[IO[Any]] = None,
        stderr: Optional[IO[Any]] = None,
    ) -> None:
        self.base = base
        self.environment = environment if environment is not None else Environment()
        self.history = history if history is not None else History(base)
        self.suggestor = suggestor

        self.stdin = stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr

        self.exit_called = False
        self.previous_exit_code = 0

    def _report(self, message: str) -> None:
        typer.echo(message, file=self.stderr)

    def execute(self, line: str) -> None:
        """Parse, expand and run one submitted line. Failures are reported, never raised."""

        self.history.clear()
        if not line.strip():
            return
        self.history.add(line)

        try:
            args = parse_line(line).expand(self.environment.lookup)
        except ParseError as e:
            self._report(f"could not parse args: {e}")
            return
        except ExpandError as e:
            self._report(f"could not expand args: {e}")
            return

        self.previous_exit_code = 0
        if is_builtin(line):
            self._run_builtin([args[0][len(BUILTIN_PREFIX) :], *args[1:]])
        else:
            self._run_process([self.base, *args])

    def _run_builtin(self, args: list[str]) -> None:
        logger.debug("running builtin %s", args)
        try:
            code = run_builtin(self, args)
        except WrashError as e:
            self._report(f"could not run command: {e.message}")
            self.previous_exit_code = 127
            return
        if code != 0:
            # usage error, already printed by the builtin parser
            self.previous_exit_code = 127

    def _run_process(self, argv: list[str]) -> None:
        logger.debug("running %s", argv)
        # in-memory streams have no descriptor to hand to the child; pipe and forward
        pipe_out = not _has_fileno(self.stdout)
        pipe_err = not _has_fileno(self.stderr)
        try:
            proc = subprocess.run(
                argv,
                stdin=self.stdin,
                stdout=subprocess.PIPE if pipe_out else self.stdout,
                stderr=subprocess.PIPE if pipe_err else self.stderr,
                text=True,
            )
        except OSError as e:
            self._report(f"could not run command: {e}")
            self.previous_exit_code = 127
            return

        if pipe_out and proc.stdout:
            self.stdout.write(proc.stdout)
        if pipe_err and proc.stderr:
            self.stderr.write(proc.stderr)
        self.previous_exit_code = proc.returncode

    def live_prefix(self) -> str:
        return f"[{os.getenv('USER', '')} {os.getcwd()}] {self.base} > "

    def suggest(self, text_before_cursor: str) -> list[Suggestion]:
        if is_builtin(text_before_cursor):
            return [
                Suggestion(text=BUILTIN_PREFIX + name, description=description)
                for name, description in builtin_descriptions().items()
                if (BUILTIN_PREFIX + name).startswith(text_before_cursor)
            ]

        if self.suggestor is None:
            return []

        try:
            command = parse_line(text_before_cursor)
        except ParseError:
            return []

        complete_last = bool(text_before_cursor) and not text_before_cursor[-1].isspace()
        suggestions = self.suggestor.suggest(command.render_args(), complete_last)
        return sorted(suggestions, key=lambda s: s.text)

    def key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add("c-right")
        def _next_boundary(event: KeyPressEvent) -> None:
            buf = event.current_buffer
            buf.cursor_position += next_boundary(buf.document.text_after_cursor)

        @kb.add("c-left")
        def _previous_boundary(event: KeyPressEvent) -> None:
            buf = event.current_buffer
            buf.cursor_position -= previous_boundary(buf.document.text_before_cursor)

        @kb.add("up", filter=~has_completions)
        def _older(event: KeyPressEvent) -> None:
            buf = event.current_buffer
            text = self.history.older(buf.text)
            if text is not None:
                buf.document = Document(text, len(text))

        @kb.add("down", filter=~has_completions)
        def _newer(event: KeyPressEvent) -> None:
            buf = event.current_buffer
            text = self.history.newer(buf.text)
            if text is not None:
                buf.document = Document(text, len(text))

        return kb

    def run(self) -> int:
        """Read and execute lines until `!!exit` or EOF; returns the last exit code."""

        prompt: PromptSession[str] = PromptSession(
            completer=SessionCompleter(self),
            key_bindings=self.key_bindings(),
        )

        try:
            while not self.exit_called:
                try:
                    line = prompt.prompt(self.live_prefix)
                except KeyboardInterrupt:
                    continue
                except EOFError:
                    break
                self.execute(line)
        finally:
            try:
                self.history.sync()
            except OSError as e:
                self._report(f"could not sync history: {e}")

        return self.previous_exit_code


class SessionCompleter(Completer):
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_completions(
        self, document: Document, complete_event: CompleteEvent
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        if is_builtin(text):
            replace = len(text)
        else:
            replace = len(document.get_word_before_cursor(WORD=True))

        for s in self.session.suggest(text):
            yield Completion(s.text, start_position=-replace, display_meta=s.description or None)
