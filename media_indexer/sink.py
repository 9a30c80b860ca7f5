from __future__ import annotations

import json
from threading import Lock
from typing import TYPE_CHECKING, Protocol, TextIO

if TYPE_CHECKING:
    from .indexer import ResolvedItem


class EntitySink(Protocol):
    def write(self, item: "ResolvedItem") -> None: ...


class JsonLinesSink:
    """Writes one JSON document per resolved directory; safe to share between
    scan threads."""

    def __init__(self, handle: TextIO) -> None:
        self.handle = handle
        self.count = 0
        self._lock = Lock()

    def write(self, item: "ResolvedItem") -> None:
        line = json.dumps(item.to_record(), sort_keys=True, ensure_ascii=False)
        with self._lock:
            self.handle.write(line + "\n")
            self.handle.flush()
            self.count += 1
