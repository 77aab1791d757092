"""Snapshot persistence of the open window across restarts."""

from grepcounter.core.snapshot.serialization import snapshot_dumps, snapshot_loads
from grepcounter.core.snapshot.store import SNAPSHOT_FORMAT_VERSION, SnapshotStore

__all__ = [
    "SNAPSHOT_FORMAT_VERSION",
    "SnapshotStore",
    "snapshot_dumps",
    "snapshot_loads",
]
