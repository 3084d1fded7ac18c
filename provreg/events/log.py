"""Append-only event log.

Every accepted mutation emits one or more events recording the operation,
the affected keys and the invoking identity. Components emit after
validation and before applying their change, so a failed emit leaves state
untouched. The field order of ``args`` is
part of the contract consumed by indexers. Events can optionally be persisted
as newline-delimited JSON.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """A single emitted event."""

    name: str
    emitter: str
    args: dict[str, Any] = field(default_factory=dict)
    block: int = 0
    timestamp: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    @property
    def values(self) -> tuple:
        """The argument values in declaration order."""
        return tuple(self.args.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "emitter": self.emitter,
            "block": self.block,
            "timestamp": self.timestamp,
            "args": {k: _encode(v) for k, v in self.args.items()},
        }


def _encode(value: Any) -> Any:
    if isinstance(value, bytes):
        return "0x" + value.hex()
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


class EventLog:
    """Thread-safe, ordered event log shared by registry components.

    When *path* is given, each event is appended to it as one JSON line.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path else None
        self._events: list[Event] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def emit(self, name: str, emitter: str, /, **args: Any) -> Event:
        """Record an event and return it.

        ``name`` and ``emitter`` are positional-only so event fields may use
        the same names (``NameSet`` has a ``name`` field).
        """
        return self.emit_many(emitter, [(name, args)])[0]

    def emit_many(self, emitter: str, entries: list[tuple[str, dict[str, Any]]]) -> list[Event]:
        """Record several ``(name, args)`` events from one emitter as a unit.

        Events are serialized and persisted before they are appended in
        memory, so if anything raises, none of them is recorded.
        """
        with self._lock:
            start = len(self._events)
            events = [
                Event(name=name, emitter=emitter, args=dict(args), block=start + i + 1)
                for i, (name, args) in enumerate(entries)
            ]
            if self._path is not None:
                lines = "".join(json.dumps(e.to_dict()) + "\n" for e in events)
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as fh:
                    fh.write(lines)
            self._events.extend(events)
        for event in events:
            logger.debug("event %s from %s: %s", event.name, emitter, event.to_dict()["args"])
        return events

    def load(self) -> int:
        """Read previously persisted events from the JSONL file.

        Argument values come back in their JSON form (bytes as ``0x`` hex).
        Returns the number of events loaded.
        """
        if self._path is None or not self._path.exists():
            return 0
        loaded: list[Event] = []
        with self._path.open(encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                data = json.loads(line)
                loaded.append(
                    Event(
                        name=data["name"],
                        emitter=data["emitter"],
                        args=data.get("args", {}),
                        block=data.get("block", 0),
                        timestamp=data.get("timestamp", ""),
                    )
                )
        with self._lock:
            self._events = loaded
        return len(loaded)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def all(self) -> list[Event]:
        with self._lock:
            return list(self._events)

    def filter(self, name: Optional[str] = None, emitter: Optional[str] = None) -> list[Event]:
        """Return events matching *name* and/or *emitter*, oldest first."""
        events = self.all()
        if name:
            events = [e for e in events if e.name == name]
        if emitter:
            events = [e for e in events if e.emitter == emitter]
        return events

    def last(self, name: Optional[str] = None) -> Optional[Event]:
        events = self.filter(name=name)
        return events[-1] if events else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.all())
