from __future__ import annotations

import logging

from wrash.core.errors import InvalidEscape, InvalidIdentifier, UnexpectedEOF, UnterminatedSequence
from wrash.core.model import Arg, Command, DoubleQuote, Node, SingleQuote, VariableExpansion, Word

logger = logging.getLogger(__name__)


def _is_identifier_char(c: str) -> bool:
    # digits end an identifier: "$VAR1" is $VAR followed by the word "1"
    return c.isalpha() or c == "_"


def _scan_identifier(s: str, i: int) -> tuple[str, int]:
    start = i
    while i < len(s) and _is_identifier_char(s[i]):
        i += 1
    if i == start:
        raise InvalidIdentifier(identifier=s[i] if i < len(s) else "")
    return s[start:i], i


def _scan_word(s: str, i: int) -> tuple[Word, int]:
    chars: list[str] = []
    while i < len(s):
        c = s[i]
        if c == "\\":
            if i + 1 >= len(s):
                raise InvalidEscape(value="")
            # kept raw, the expander decides what the escape means
            chars.append(s[i : i + 2])
            i += 2
            continue
        if c.isspace() or c in "'\"":
            break
        chars.append(c)
        i += 1
    return Word("".join(chars)), i


def _scan_single_quote(s: str, i: int) -> tuple[SingleQuote, int]:
    i += 1
    chars: list[str] = []
    while i < len(s):
        c = s[i]
        if c == "\\" and i + 1 < len(s):
            nxt = s[i + 1]
            if nxt != "'":
                chars.append("\\")
            chars.append(nxt)
            i += 2
            continue
        if c == "'":
            return SingleQuote("".join(chars)), i + 1
        chars.append(c)
        i += 1

    raise UnexpectedEOF(cause=UnterminatedSequence(start="'", end="'"))


def _scan_quoted_word(s: str, i: int) -> tuple[Word, int]:
    chars: list[str] = []
    while i < len(s):
        c = s[i]
        if c == "\\" and i + 1 < len(s):
            nxt = s[i + 1]
            if nxt not in "\"$":
                chars.append("\\")
            chars.append(nxt)
            i += 2
            continue
        if c in "\"$":
            break
        chars.append(c)
        i += 1
    return Word("".join(chars), is_quoted=True), i


def _scan_double_quote(s: str, i: int) -> tuple[DoubleQuote, int]:
    i += 1
    nodes: list[Word | VariableExpansion] = []
    while i < len(s):
        c = s[i]
        if c == '"':
            return DoubleQuote(tuple(nodes)), i + 1
        if c == "$":
            name, i = _scan_identifier(s, i + 1)
            nodes.append(VariableExpansion(name))
            continue
        word, i = _scan_quoted_word(s, i)
        nodes.append(word)

    raise UnexpectedEOF(cause=UnterminatedSequence(start='"', end='"'))


def parse_line(line: str) -> Command:
    """Split a raw input line into a Command.

    Pure function of `line`: no environment or filesystem access. Raises a
    ParseError subclass on unterminated quotes, a `$` without a name, or a
    trailing lone backslash.
    """

    args: list[Arg] = []
    nodes: list[Node] = []
    i = 0

    while i < len(line):
        c = line[i]
        if c.isspace():
            if nodes:
                args.append(Arg(tuple(nodes)))
                nodes = []
            i += 1
            continue

        node: Node
        if c == "$":
            name, i = _scan_identifier(line, i + 1)
            node = VariableExpansion(name)
        elif c == "'":
            node, i = _scan_single_quote(line, i)
        elif c == '"':
            node, i = _scan_double_quote(line, i)
        else:
            node, i = _scan_word(line, i)
        nodes.append(node)

    if nodes:
        args.append(Arg(tuple(nodes)))

    logger.debug("parsed %d args from %r", len(args), line)
    return Command(tuple(args))
