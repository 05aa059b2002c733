from __future__ import annotations

import glob
import logging
import os

from wrash.core.errors import ExpandError
from wrash.core.model import (
    Arg,
    Command,
    DoubleQuote,
    EnvLookup,
    Node,
    SingleQuote,
    VariableExpansion,
    Word,
)

logger = logging.getLogger(__name__)


GLOB_METACHARACTERS = "*+?["

# characters with lexical meaning in a bare word; other escapes stay verbatim
ESCAPABLE = GLOB_METACHARACTERS + "'\"$"


def _unescapes(c: str) -> bool:
    return c in ESCAPABLE or c.isspace()


def strip_escaped_wildcards(raw: str) -> tuple[str, bool]:
    """Return (stripped, found_unescaped).

    Backslashes in front of glob metacharacters, quotes, `$` and whitespace
    are removed; any other escape pair (including `\\\\`) is kept verbatim.
    When an unescaped metacharacter is found the stripped value is
    meaningless and returned empty.
    """

    out: list[str] = []
    i = 0
    while i < len(raw):
        c = raw[i]
        if c == "\\" and i + 1 < len(raw):
            nxt = raw[i + 1]
            out.append(nxt if _unescapes(nxt) else raw[i : i + 2])
            i += 2
            continue
        if c in GLOB_METACHARACTERS:
            return "", True
        out.append(c)
        i += 1
    return "".join(out), False


def _glob_pattern(raw: str) -> str:
    # glob has no backslash escapes; "\x" must match a literal x
    out: list[str] = []
    i = 0
    while i < len(raw):
        c = raw[i]
        if c == "\\" and i + 1 < len(raw):
            out.append(glob.escape(raw[i + 1]))
            i += 2
            continue
        out.append(c)
        i += 1
    return "".join(out)


def _expand_word(word: Word) -> list[str]:
    if word.is_quoted:
        return [word.value]

    stripped, found = strip_escaped_wildcards(word.value)
    if not found:
        return [stripped]

    # ordered level by level: "a/x" before "a-b/x"
    paths = sorted(glob.glob(_glob_pattern(word.value)), key=lambda p: p.split(os.sep))
    logger.debug("glob %r matched %d paths", word.value, len(paths))
    if not paths:
        raise ExpandError(
            code="E_EMPTY_GLOB",
            message="word expanded to empty value",
            word=word.value,
        )

    return [f"'{p}'" if " " in p else p for p in paths]


def expand_node(node: Node, env_lookup: EnvLookup) -> list[str]:
    """Expand one node into one or more strings."""

    if isinstance(node, Word):
        return _expand_word(node)
    if isinstance(node, SingleQuote):
        return [node.value]
    if isinstance(node, VariableExpansion):
        return [env_lookup(node.name)]
    if isinstance(node, DoubleQuote):
        # every child expands to exactly one string inside quotes
        return ["".join(expand_node(child, env_lookup)[0] for child in node.nodes)]
    raise TypeError(f"unsupported node: {type(node).__name__}")


def expand_arg(arg: Arg, env_lookup: EnvLookup) -> list[str]:
    out: list[str] = []
    for node in arg.nodes:
        out.extend(expand_node(node, env_lookup))
    return out


def expand_command(command: Command, env_lookup: EnvLookup) -> list[str]:
    """Flatten a Command into the argument vector handed to a builtin or process.

    Adjacent nodes of one Arg are not glued: `g'h'j` expands to three strings.
    Raises ExpandError on the first glob without matches.
    """

    out: list[str] = []
    for arg in command.args:
        out.extend(expand_arg(arg, env_lookup))
    return out
