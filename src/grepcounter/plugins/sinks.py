# src/grepcounter/plugins/sinks.py
"""Built-in emission sinks.

- JSONLinesSink: one JSON object per emission on a text stream (CLI output)
- CollectingSink: keeps emissions in memory (embedding, tests)
"""

import json
import threading
from typing import Any, TextIO

from grepcounter.contracts.records import Emission
from grepcounter.plugins.hookspecs import hookimpl


class JSONLinesSink:
    """Writes ``{"tag": ..., "time": ..., "record": {...}}`` lines to a stream.

    The stream is flushed after every line so downstream readers of a pipe
    see each window as soon as it is emitted. The stream is not closed on
    grepcounter_close(); the caller owns it.
    """

    name = "jsonl"

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    @hookimpl
    def grepcounter_emit(self, tag: str, timestamp: float, record: dict[str, Any]) -> None:
        line = json.dumps({"tag": tag, "time": timestamp, "record": record}, ensure_ascii=False, default=str)
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()

    @hookimpl
    def grepcounter_close(self) -> None:
        with self._lock:
            self._stream.flush()


class CollectingSink:
    """Keeps every emission in memory, in emission order."""

    name = "collect"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._emissions: list[Emission] = []
        self.closed = False

    @hookimpl
    def grepcounter_emit(self, tag: str, timestamp: float, record: dict[str, Any]) -> None:
        with self._lock:
            self._emissions.append(Emission(tag=tag, timestamp=timestamp, record=record))

    @hookimpl
    def grepcounter_close(self) -> None:
        self.closed = True

    @property
    def emissions(self) -> list[Emission]:
        with self._lock:
            return list(self._emissions)

    def clear(self) -> None:
        with self._lock:
            self._emissions.clear()
