from __future__ import annotations

import logging
import os
import re
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


def split_environ(s: str) -> tuple[str, str]:
    """Split 'KEY=VALUE' into (key, value).

    Raises ValueError when no '=' is present or the key is not a valid identifier.
    """

    key, sep, value = s.partition("=")
    if not sep:
        raise ValueError(f"no '=' found in environment variable '{s}'")
    if not IDENTIFIER_PATTERN.match(key):
        raise ValueError(
            f"invalid identifier '{key}', must match pattern {IDENTIFIER_PATTERN.pattern}"
        )
    return key, value


def inherit_environment(environ: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    source = os.environ if environ is None else environ
    out: dict[str, str] = {}
    for raw_key, raw_value in source.items():
        try:
            key, value = split_environ(f"{raw_key}={raw_value}")
        except ValueError as e:
            logger.warning("skipping environment variable: %s", e)
            continue
        out[key] = value
    return out


class Environment:
    """Variables visible to `$NAME` expansion within one session."""

    def __init__(self, values: Optional[Mapping[str, str]] = None) -> None:
        self._values: dict[str, str] = dict(values or {})

    def lookup(self, name: str) -> str:
        return self._values.get(name, "")

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def unset(self, key: str) -> None:
        self._values.pop(key, None)

    def items(self) -> list[tuple[str, str]]:
        return sorted(self._values.items())

    def as_dict(self) -> dict[str, str]:
        return dict(self._values)
