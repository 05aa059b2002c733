from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import yaml

from wrash.core.builtins import is_builtin
from wrash.core.errors import HistoryLoadError

logger = logging.getLogger(__name__)


@dataclass
class HistoryEntry:
    base: str
    cmd: str

    # unsaved edits made while browsing, never persisted
    changes: str = field(default="", compare=False, repr=False)


class History:
    """Submitted lines, oldest first, with a trailing blank slot for the line being edited.

    Entries recorded under another base command are skipped while browsing;
    builtin lines are stored with an empty base and always visible.
    """

    def __init__(
        self,
        base: str,
        entries: Iterable[HistoryEntry] = (),
        path: str | Path | None = None,
    ) -> None:
        self.base = base
        self.path = Path(path) if path else None
        self._entries = [HistoryEntry(e.base, e.cmd) for e in entries]
        self._entries.append(HistoryEntry(base, ""))
        self._current = len(self._entries) - 1

    @property
    def entries(self) -> list[HistoryEntry]:
        return list(self._entries[:-1])

    def add(self, *lines: str) -> None:
        self._entries.pop()
        for line in lines:
            last = self._entries[-1] if self._entries else None
            if not line or (last is not None and line == last.cmd):
                continue
            base = "" if is_builtin(line) else self.base
            self._entries.append(HistoryEntry(base, line))
        self._entries.append(HistoryEntry(self.base, ""))
        self._current = len(self._entries) - 1

    def clear(self) -> None:
        self._current = len(self._entries) - 1
        for entry in self._entries:
            entry.changes = ""

    def _visible(self, index: int) -> bool:
        entry = self._entries[index]
        return index == len(self._entries) - 1 or entry.base == self.base or is_builtin(entry.cmd)

    def _move(self, text: str, step: int) -> Optional[str]:
        target = self._current + step
        while 0 <= target < len(self._entries) and not self._visible(target):
            target += step
        if not 0 <= target < len(self._entries):
            return None

        leaving = self._entries[self._current]
        leaving.changes = "" if text == leaving.cmd else text

        self._current = target
        entry = self._entries[target]
        return entry.changes or entry.cmd

    def older(self, text: str) -> Optional[str]:
        """Step back to the previous visible entry; None when already at the oldest."""
        return self._move(text, -1)

    def newer(self, text: str) -> Optional[str]:
        return self._move(text, 1)

    def entries_for(self, pattern: str | None = None) -> list[HistoryEntry]:
        """Entries of this base command whose text matches `pattern` (re.search)."""

        regex = re.compile(pattern) if pattern else None
        return [
            e
            for e in self._entries[:-1]
            if e.base == self.base and (regex is None or regex.search(e.cmd))
        ]

    def sync(self) -> None:
        if self.path is None:
            return
        if str(self.path.parent) not in (".", ""):
            self.path.parent.mkdir(parents=True, exist_ok=True)

        data = [{"base": e.base, "cmd": e.cmd} for e in self._entries[:-1]]
        self.path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        logger.debug("wrote %d history entries to %s", len(data), self.path)


def load_history(path: str | Path) -> list[HistoryEntry]:
    """Read history entries from a YAML file. A missing file is an empty history."""

    p = Path(path)
    if not p.exists():
        return []

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise HistoryLoadError(code="E_HISTORY_READ", message=str(e), path=str(p)) from e

    if raw is None:
        return []
    if not isinstance(raw, list):
        raise HistoryLoadError(
            code="E_HISTORY_INVALID",
            message="history file must be a list of entries",
            path=str(p),
        )

    entries: list[HistoryEntry] = []
    for i, item in enumerate(raw):
        if (
            not isinstance(item, dict)
            or not isinstance(item.get("base", ""), str)
            or not isinstance(item.get("cmd"), str)
        ):
            raise HistoryLoadError(
                code="E_HISTORY_INVALID",
                message=f"entry {i} must be a mapping with string 'base' and 'cmd'",
                path=str(p),
            )
        entries.append(HistoryEntry(base=item.get("base", ""), cmd=item["cmd"]))
    return entries
