from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from platformdirs import user_data_dir

APP_NAME = "ibmcloud-mcp"

logger = logging.getLogger(__name__)


def _events_dir() -> Path:
    return Path(user_data_dir(APP_NAME)) / "events"


@dataclass
class Event:
    ts: float
    type: str
    data: dict[str, Any]


@dataclass
class EventStore:
    """Append-only jsonl journal of handled requests.

    Writes are best-effort: a failing disk never fails a request.
    """

    path: Path
    enabled: bool = True

    @staticmethod
    def open(path: Path | None = None, *, enabled: bool = True) -> "EventStore":
        return EventStore(path=path or (_events_dir() / "events.jsonl"), enabled=enabled)

    def append(self, event_type: str, data: dict[str, Any]) -> None:
        if not self.enabled:
            return
        ev = Event(ts=time.time(), type=event_type, data=data)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(ev.__dict__, ensure_ascii=False, default=str) + "\n")
        except OSError as e:
            logger.warning("Could not append event to %s: %s", self.path, e)

    def iter_events(self) -> Iterable[Event]:
        if not self.path.exists():
            return []
        out: list[Event] = []
        for line in self.path.read_text(encoding="utf-8", errors="replace").splitlines():
            if not line.strip():
                continue
            try:
                obj = json.loads(line)
                out.append(Event(ts=float(obj.get("ts", 0.0)), type=str(obj.get("type")), data=obj.get("data") or {}))
            except (json.JSONDecodeError, TypeError, ValueError, AttributeError):
                # partial trailing line from an interrupted write
                continue
        return out
