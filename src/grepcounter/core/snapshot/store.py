"""SnapshotStore: window state persistence across restarts.

A snapshot carries the open window (counts and matched payloads) plus
enough timing to resume it:

- saved_at: wall-clock time of the save
- saved_duration: how far into the window the process was

On load the window resumes at ``now - saved_duration`` so the restarted
process flushes when the original window would have ended.

A snapshot is discarded (logged, never raised) when:

- its fingerprint differs from the current match configuration
- it is older than one full window (``saved_at + interval < now``)
- it cannot be read or parsed

Writes go to a temporary file in the same directory followed by
os.replace(), so a crash mid-write never leaves a truncated snapshot.
"""

import os
import tempfile
from pathlib import Path
from typing import Any

import structlog

from grepcounter.contracts.errors import PersistenceError
from grepcounter.contracts.records import SnapshotState
from grepcounter.core.snapshot.serialization import snapshot_dumps, snapshot_loads

logger = structlog.get_logger(__name__)

SNAPSHOT_FORMAT_VERSION = 1


class SnapshotStore:
    """Reads and writes one snapshot file.

    Example:
        store = SnapshotStore("/var/lib/grepcounter/warn.json")
        store.save(state)
        restored = store.load(fingerprint=state.fingerprint, interval=60.0, now=clock.now())
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def save(self, state: SnapshotState) -> bool:
        """Persist state atomically. Returns False (and logs) on failure."""
        try:
            self._write(state)
        except PersistenceError as e:
            logger.warning("Can't write snapshot file", path=str(self._path), error=str(e))
            return False
        logger.debug("Snapshot saved", path=str(self._path), keys=len(state.counts))
        return True

    def load(self, *, fingerprint: str, interval: float, now: float) -> SnapshotState | None:
        """Load a compatible, fresh snapshot, or None.

        Args:
            fingerprint: Fingerprint of the current match configuration
            interval: Current window length in seconds
            now: Current wall-clock time
        """
        if not self._path.exists():
            return None
        try:
            state = self._read()
        except PersistenceError as e:
            logger.warning("Can't load snapshot file", path=str(self._path), error=str(e))
            return None

        if state.fingerprint != fingerprint:
            logger.warning("Match configuration was changed, ignoring stored snapshot", path=str(self._path))
            return None
        if state.saved_at + interval < now:
            logger.warning(
                "Stored snapshot is outdated, ignoring it",
                path=str(self._path),
                saved_at=state.saved_at,
                age=now - state.saved_at,
            )
            return None
        return state

    def _write(self, state: SnapshotState) -> None:
        payload = {
            "format_version": SNAPSHOT_FORMAT_VERSION,
            "counts": state.counts,
            "matches": state.matches,
            "saved_at": state.saved_at,
            "saved_duration": state.saved_duration,
            "fingerprint": state.fingerprint,
        }
        try:
            text = snapshot_dumps(payload)
        except (TypeError, ValueError) as e:
            raise PersistenceError(str(self._path), f"state is not serializable: {e}") from e

        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=self._path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as e:
            raise PersistenceError(str(self._path), str(e)) from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

    def _read(self) -> SnapshotState:
        try:
            data: Any = snapshot_loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PersistenceError(str(self._path), str(e)) from e

        if not isinstance(data, dict):
            raise PersistenceError(str(self._path), f"expected a JSON object, got {type(data).__name__}")
        if data.get("format_version") != SNAPSHOT_FORMAT_VERSION:
            raise PersistenceError(str(self._path), f"unsupported format_version {data.get('format_version')!r}")
        try:
            return SnapshotState(
                counts={str(k): int(v) for k, v in data["counts"].items()},
                matches={str(k): list(v) for k, v in data["matches"].items()},
                saved_at=float(data["saved_at"]),
                saved_duration=float(data["saved_duration"]),
                fingerprint=str(data["fingerprint"]),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise PersistenceError(str(self._path), f"malformed snapshot: {e}") from e
