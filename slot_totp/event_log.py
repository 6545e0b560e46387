from __future__ import annotations

import os
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from .settings import data_dir


MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_NAME = "events.log"


@dataclass(frozen=True)
class Event:
    at: str
    name: str
    fields: dict[str, str] = field(default_factory=dict)

    def to_line(self) -> str:
        parts = [self.at, self.name]
        parts.extend(f"{k}={v}" for k, v in self.fields.items())
        return " ".join(parts)


def _field_value(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "1" if value else "0"
    s = "_".join(str(value).split())
    return s or "-"


def parse_line(line: str) -> Optional[Event]:
    tokens = line.split()
    if len(tokens) < 2:
        return None
    fields: dict[str, str] = {}
    for tok in tokens[2:]:
        k, sep, v = tok.partition("=")
        if sep and k:
            fields[k] = v
    return Event(at=tokens[0], name=tokens[1], fields=fields)


class EventLog:
    """One ``<utc time> NAME key=value ...`` line per engine event.

    ``record`` matches the engine's ``on_event`` hook. Values are flattened
    to a single token. When the file outgrows ``max_bytes`` it is rewritten
    with the newest lines that fit in half of it. Write failures are ignored.
    """

    def __init__(self, path: Optional[str] = None, *, max_bytes: int = MAX_LOG_BYTES) -> None:
        self._path = path
        self._max_bytes = int(max_bytes)

    @property
    def path(self) -> str:
        if self._path is None:
            self._path = os.path.join(data_dir(), LOG_NAME)
        return self._path

    def record(self, name: str, fields: Mapping[str, Any]) -> None:
        event = Event(
            at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
            name=_field_value(name).upper(),
            fields={str(k): _field_value(v) for k, v in fields.items()},
        )
        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(event.to_line() + "\n")
        except OSError:
            return
        self._shrink()

    def _shrink(self) -> None:
        try:
            if os.path.getsize(self.path) <= self._max_bytes:
                return
            with open(self.path, "r", encoding="utf-8", errors="replace") as f:
                lines = f.readlines()
        except OSError:
            return

        budget = self._max_bytes // 2
        kept: deque[str] = deque()
        for ln in reversed(lines):
            size = len(ln.encode("utf-8"))
            if size > budget:
                break
            kept.appendleft(ln)
            budget -= size

        tmp = self.path + ".tmp"
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                f.writelines(kept)
            os.replace(tmp, self.path)
        except OSError:
            return

    def tail(self, limit: int = 20) -> list[Event]:
        try:
            with open(self.path, "r", encoding="utf-8", errors="replace") as f:
                recent = deque(f, maxlen=max(1, int(limit)))
        except OSError:
            return []
        events = [parse_line(ln) for ln in recent]
        return [e for e in events if e is not None]
