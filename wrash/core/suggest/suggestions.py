from __future__ import annotations

import glob
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Protocol

import yaml

logger = logging.getLogger(__name__)


ArgKind = Literal["", "value", "path", "none"]

ALLOWED_KINDS: set[str] = {"", "value", "path", "none"}


class SuggestionConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Suggestion:
    text: str
    description: str = ""


class Suggestor(Protocol):
    def suggest(self, args: list[str], complete_last: bool) -> list[Suggestion]: ...


@dataclass(frozen=True)
class ArgSpec:
    kind: ArgKind = ""
    choices: tuple[str, ...] = ()
    cmd: tuple[str, ...] = ()

    def suggest(self, prefix: str) -> list[Suggestion]:
        if self.cmd:
            try:
                proc = subprocess.run(list(self.cmd), capture_output=True, text=True, check=True)
            except (OSError, subprocess.CalledProcessError) as e:
                logger.debug("suggestion command %s failed: %s", self.cmd, e)
                return []
            return [
                Suggestion(text=line)
                for line in proc.stdout.splitlines()
                if line and line.startswith(prefix)
            ]

        if self.choices:
            return [Suggestion(text=c) for c in self.choices if c.startswith(prefix)]

        if self.kind == "path":
            return [Suggestion(text=p) for p in sorted(glob.glob(glob.escape(prefix) + "*"))]

        return []

    def expects_value(self) -> bool:
        if self.kind == "":
            return bool(self.choices or self.cmd)
        return self.kind != "none"


@dataclass(frozen=True)
class FlagSuggestion:
    description: str = ""
    args: ArgSpec = field(default_factory=ArgSpec)


@dataclass(frozen=True)
class CommandSuggestion:
    description: str = ""
    subcommands: dict[str, "CommandSuggestion"] = field(default_factory=dict)
    # only consulted to learn whether a flag takes a value, or when completing "-..."
    flags: dict[str, FlagSuggestion] = field(default_factory=dict)
    args: ArgSpec = field(default_factory=ArgSpec)

    def suggest(self, args: list[str], complete_last: bool) -> list[Suggestion]:
        """Suggestions for the next (or, with complete_last, the last) argument."""

        current: CommandSuggestion = self
        pending_flag: FlagSuggestion | None = None

        for arg in args:
            if arg in current.subcommands:
                current = current.subcommands[arg]
                pending_flag = None
            elif arg in current.flags:
                flag = current.flags[arg]
                pending_flag = flag if flag.args.expects_value() else None
            else:
                pending_flag = None

        if complete_last and args:
            last = args[-1]
            if last.startswith("-"):
                out = [
                    Suggestion(text=name, description=f.description)
                    for name, f in current.flags.items()
                    if name.startswith(last)
                ]
            else:
                out = [
                    Suggestion(text=name, description=sub.description)
                    for name, sub in current.subcommands.items()
                    if name.startswith(last)
                ]
        elif pending_flag is not None:
            out = pending_flag.args.suggest("")
        elif current.subcommands:
            out = [
                Suggestion(text=name, description=sub.description)
                for name, sub in current.subcommands.items()
            ]
        else:
            out = current.args.suggest("")

        return sorted(out, key=lambda s: s.text)


class EmptySuggestor:
    def suggest(self, args: list[str], complete_last: bool) -> list[Suggestion]:
        return []


def _str_field(raw: dict[str, Any], key: str, where: str) -> str:
    v = raw.get(key)
    if v is None:
        return ""
    if not isinstance(v, str):
        raise SuggestionConfigError(f"{where}.{key} must be a string")
    return v


def _str_list(raw: dict[str, Any], key: str, where: str) -> tuple[str, ...]:
    v = raw.get(key)
    if v is None:
        return ()
    if not isinstance(v, list) or not all(isinstance(x, str) for x in v):
        raise SuggestionConfigError(f"{where}.{key} must be a list of strings")
    return tuple(v)


def _mapping(raw: Any, where: str) -> dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SuggestionConfigError(f"{where} must be a mapping")
    return raw


def _build_arg(raw: Any, where: str) -> ArgSpec:
    raw = _mapping(raw, where)
    kind = _str_field(raw, "kind", where)
    if kind not in ALLOWED_KINDS:
        raise SuggestionConfigError(
            f"{where}.kind must be one of: value, path, none (got {kind!r})"
        )
    return ArgSpec(
        kind=kind,  # type: ignore[arg-type]
        choices=_str_list(raw, "choices", where),
        cmd=_str_list(raw, "cmd", where),
    )


def _build_command(raw: Any, where: str) -> CommandSuggestion:
    raw = _mapping(raw, where)

    subcommands: dict[str, CommandSuggestion] = {}
    for name, sub in _mapping(raw.get("subcommands"), f"{where}.subcommands").items():
        if not isinstance(name, str) or not name.strip():
            raise SuggestionConfigError(f"{where}.subcommands keys must be non-empty strings")
        subcommands[name] = _build_command(sub, f"{where}.subcommands.{name}")

    flags: dict[str, FlagSuggestion] = {}
    for name, flag in _mapping(raw.get("flags"), f"{where}.flags").items():
        if not isinstance(name, str) or not name.startswith("-"):
            raise SuggestionConfigError(f"{where}.flags keys must be strings starting with '-'")
        flag_where = f"{where}.flags.{name}"
        flag_raw = _mapping(flag, flag_where)
        flags[name] = FlagSuggestion(
            description=_str_field(flag_raw, "description", flag_where),
            args=_build_arg(flag_raw.get("args"), f"{flag_where}.args"),
        )

    return CommandSuggestion(
        description=_str_field(raw, "description", where),
        subcommands=subcommands,
        flags=flags,
        args=_build_arg(raw.get("args"), f"{where}.args"),
    )


def load_suggestions(path: str | Path) -> CommandSuggestion:
    """Load a completion tree from YAML.

    Format:
      description: str
      subcommands: {<name>: <tree>}
      flags: {<-flag>: {description: str, args: <args>}}
      args: {kind: value|path|none, choices: [str], cmd: [str]}
    """

    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise SuggestionConfigError(f"could not read {p}: {e}") from e
    except yaml.YAMLError as e:
        raise SuggestionConfigError(f"could not parse {p}: {e}") from e

    tree = _build_command(raw, "<root>")
    logger.debug("loaded %d top-level subcommands from %s", len(tree.subcommands), p)
    return tree
