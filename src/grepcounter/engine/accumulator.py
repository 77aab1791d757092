# src/grepcounter/engine/accumulator.py
"""Concurrent accumulation buffers.

AccumulatorStore holds the in-progress window: key -> count and
key -> matched payloads. Both maps are guarded by ONE lock and are always
mutated and drained together, so a reader can never see a count without
its payloads (or the reverse).

Thread Safety:
    merge() is called from any number of ingestion threads.
    drain_all() is called from the single scheduler thread.
    Critical sections are O(len(payloads)) for merge and O(1) for drain
    (a swap), so ingestion is never held up by a flush.
"""

import threading
from collections.abc import Iterable
from typing import Any

from grepcounter.contracts.records import FlushedBucket


class AccumulatorStore:
    """Lock-guarded key -> (count, payloads) map.

    Example:
        store = AccumulatorStore()
        store.merge("syslog.host1", 2, ["a", "b"])
        store.merge("syslog.host1", 1, ["c"])
        store.drain_all()  # {"syslog.host1": FlushedBucket(count=3, payloads=["a", "b", "c"])}
        store.drain_all()  # {}
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[str, int] = {}
        self._matches: dict[str, list[Any]] = {}

    def merge(self, key: str, count: int, payloads: Iterable[Any]) -> None:
        """Add count and payloads to the bucket for key.

        A zero count is a no-op: buckets only exist for keys that matched.

        Raises:
            ValueError: If count is negative
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if count == 0:
            return
        items = list(payloads)
        with self._lock:
            self._counts[key] = self._counts.get(key, 0) + count
            self._matches.setdefault(key, []).extend(items)

    def drain_all(self) -> dict[str, FlushedBucket]:
        """Swap in empty maps and return the previous contents.

        Merges that race the drain land in the new maps. The returned dict
        is owned by the caller.
        """
        with self._lock:
            counts, matches = self._counts, self._matches
            self._counts, self._matches = {}, {}
        return {key: FlushedBucket(count=count, payloads=matches[key]) for key, count in counts.items()}

    def snapshot_state(self) -> tuple[dict[str, int], dict[str, list[Any]]]:
        """Return copies of the current counts and matches without draining."""
        with self._lock:
            return dict(self._counts), {key: list(items) for key, items in self._matches.items()}

    def restore_state(self, counts: dict[str, int], matches: dict[str, list[Any]]) -> None:
        """Merge previously persisted state into the store.

        Restored entries are merged rather than replacing the maps so records
        that arrived before the restore are not lost.

        Raises:
            ValueError: If counts and matches disagree on their keys
        """
        if set(counts) != set(matches):
            raise ValueError("restored counts and matches must cover the same keys")
        for key, count in counts.items():
            self.merge(key, count, matches[key])

    @property
    def total_count(self) -> int:
        with self._lock:
            return sum(self._counts.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)
