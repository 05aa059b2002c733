from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Union


EnvLookup = Callable[[str], str]


@dataclass(frozen=True)
class Word:
    # raw value: backslash escapes are kept and resolved during expansion
    value: str
    is_quoted: bool = False


@dataclass(frozen=True)
class SingleQuote:
    value: str


@dataclass(frozen=True)
class VariableExpansion:
    name: str


@dataclass(frozen=True)
class DoubleQuote:
    nodes: tuple[Union[Word, VariableExpansion], ...] = field(default_factory=tuple)


Node = Union[Word, SingleQuote, DoubleQuote, VariableExpansion]


@dataclass(frozen=True)
class Arg:
    """One whitespace-delimited token; adjacent nodes are glued (e.g. g'h'j)."""

    nodes: tuple[Node, ...]


@dataclass(frozen=True)
class Command:
    args: tuple[Arg, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.args)

    def expand(self, env_lookup: EnvLookup) -> list[str]:
        from wrash.core.expand.expand_command import expand_command

        return expand_command(self, env_lookup)

    def render_args(self) -> list[str]:
        from wrash.core.render.render_args import render_args

        return render_args(self)

    def render(self) -> str:
        return " ".join(self.render_args())
