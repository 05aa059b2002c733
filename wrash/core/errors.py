from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Optional


@dataclass(eq=False)
class WrashError(Exception):
    """Base error envelope for session-level failures.

    Not frozen: contextlib assigns `__traceback__` when click re-raises it.
    """

    code: str
    message: str
    path: Optional[str] = None

    def __str__(self) -> str:
        loc = self.path if self.path else "<wrash>"
        return f"{loc}: {self.code}: {self.message}"


class HistoryLoadError(WrashError):
    pass


@dataclass(frozen=True)
class ParseError(Exception):
    """A line that cannot be tokenized. Parsing never recovers from these."""

    code: ClassVar[str] = "E_PARSE"

    def __str__(self) -> str:
        return "parse error"


@dataclass(frozen=True)
class UnterminatedSequence(ParseError):
    start: str
    end: str

    code: ClassVar[str] = "E_UNTERMINATED_SEQUENCE"

    def __str__(self) -> str:
        return f"unterminated sequence: {self.start} ... {self.end}"


@dataclass(frozen=True)
class UnexpectedEOF(ParseError):
    cause: Optional[ParseError] = None

    code: ClassVar[str] = "E_UNEXPECTED_EOF"

    def __str__(self) -> str:
        if self.cause is not None:
            return f"unexpected EOF: {self.cause}"
        return "unexpected EOF"


@dataclass(frozen=True)
class InvalidIdentifier(ParseError):
    identifier: str

    code: ClassVar[str] = "E_INVALID_IDENTIFIER"

    def __str__(self) -> str:
        return f"invalid identifier: '{self.identifier}'"


@dataclass(frozen=True)
class InvalidEscape(ParseError):
    value: str

    code: ClassVar[str] = "E_INVALID_ESCAPE"

    def __str__(self) -> str:
        return f"invalid escape: \\{self.value}"


@dataclass(frozen=True)
class UnexpectedToken(ParseError):
    found: str
    expected: tuple[str, ...] = field(default_factory=tuple)

    code: ClassVar[str] = "E_UNEXPECTED_TOKEN"

    def __str__(self) -> str:
        if not self.expected:
            return f"unexpected token: {self.found}"
        if len(self.expected) == 1:
            return f"unexpected token: expected {self.expected[0]} but found {self.found}"
        return f"unexpected token: expected one of {list(self.expected)} but found {self.found}"


@dataclass(frozen=True)
class ExpandError(Exception):
    """A line that parsed but cannot be resolved against the filesystem/environment."""

    code: str
    message: str
    word: Optional[str] = None

    def __str__(self) -> str:
        if self.word is not None:
            return f"{self.code}: {self.message} ({self.word})"
        return f"{self.code}: {self.message}"
