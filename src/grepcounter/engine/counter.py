# src/grepcounter/engine/counter.py
"""GrepCounter: the engine facade the host pipeline talks to.

Wires the matcher, accumulator, scheduler, decider and snapshot store
together and exposes the host boundary:

    on_batch(tag, events)   ingestion entry point, never raises
    flush(elapsed)          drain + decide + emit (called by the scheduler)
    start() / shutdown()    lifecycle

Lifecycle:
    start():    load snapshot (if configured) -> start scheduler thread
    shutdown(): stop + join scheduler -> save snapshot (if configured)

The shutdown order is mandatory: once the scheduler thread is joined no
flush can run, so the snapshot captures exactly the state that was not
emitted.

Thread Safety:
    on_batch() may be called from many threads at once. Matching happens
    outside any lock; only the final merge into the AccumulatorStore is
    serialized. flush() holds _flush_lock so an explicit flush from the
    host never overlaps a scheduled one.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

import structlog

from grepcounter.contracts.errors import IngestionError
from grepcounter.contracts.records import Emission, SnapshotState
from grepcounter.core.canonical import stable_hash
from grepcounter.core.config import GrepCounterSettings
from grepcounter.core.snapshot import SnapshotStore
from grepcounter.engine.accumulator import AccumulatorStore
from grepcounter.engine.clock import DEFAULT_CLOCK
from grepcounter.engine.decider import OutputDecider
from grepcounter.engine.matcher import Matcher
from grepcounter.engine.scheduler import POLL_INTERVAL, FlushScheduler

if TYPE_CHECKING:
    from grepcounter.engine.clock import Clock
    from grepcounter.plugins.protocols import Emitter

logger = structlog.get_logger(__name__)


class GrepCounter:
    """Counts pattern matches per aggregation key and emits windowed summaries.

    Example:
        manager = EmitterManager()
        manager.register(JSONLinesSink(sys.stdout))
        settings = GrepCounterSettings.from_dict({"input_key": "message", "regexp": "WARN"})

        with GrepCounter(settings, manager) as counter:
            counter.on_batch("syslog.host1", [(time.time(), {"message": "WARN POST /auth"})])
            ...
        # emits {"count": 1, "message": [...], ...} under "count.syslog.host1"
    """

    def __init__(
        self,
        settings: GrepCounterSettings,
        emitter: Emitter,
        clock: Clock | None = None,
        poll_interval: float = POLL_INTERVAL,
    ) -> None:
        """Build every component from validated settings.

        Args:
            settings: Validated configuration
            emitter: Downstream collaborator receiving emitted records
            clock: Optional clock. Defaults to the system clock.
            poll_interval: Scheduler tick period in seconds
        """
        self._settings = settings
        self._emitter = emitter
        self._clock = clock if clock is not None else DEFAULT_CLOCK

        self._matcher = Matcher.from_settings(settings)
        self._decider = OutputDecider.from_settings(settings)
        self._store = AccumulatorStore()
        self._scheduler = FlushScheduler(
            interval=settings.count_interval,
            flush=self.flush,
            clock=self._clock,
            poll_interval=poll_interval,
        )
        self._snapshot = SnapshotStore(settings.store_file) if settings.store_file is not None else None
        self._fingerprint = stable_hash(settings.fingerprint_material())
        self._flush_lock = threading.Lock()

        # Timing of the last snapshot written or adopted
        self.saved_at: float | None = None
        self.saved_duration: float | None = None

    @classmethod
    def from_dict(cls, config: dict[str, Any], emitter: Emitter, clock: Clock | None = None) -> GrepCounter:
        """Validate config and build an engine.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        return cls(GrepCounterSettings.from_dict(config), emitter, clock=clock)

    # === Introspection ===

    @property
    def settings(self) -> GrepCounterSettings:
        return self._settings

    @property
    def store(self) -> AccumulatorStore:
        return self._store

    @property
    def scheduler(self) -> FlushScheduler:
        return self._scheduler

    @property
    def decider(self) -> OutputDecider:
        return self._decider

    @property
    def fingerprint(self) -> str:
        return self._fingerprint

    # === Ingestion ===

    def on_batch(self, tag: str, events: Iterable[tuple[float, dict[str, Any]]]) -> None:
        """Match a batch of (timestamp, record) pairs and merge the matches.

        Errors are logged and the batch's matches are dropped; the caller
        is never interrupted.
        """
        try:
            count = 0
            payloads: list[Any] = []
            for _timestamp, record in events:
                if not isinstance(record, Mapping):
                    raise IngestionError(f"record must be a mapping, got {type(record).__name__}")
                result = self._matcher.evaluate(record)
                if result.matched:
                    count += 1
                    payloads.append(result.captured)
            # One merge per batch keeps the batch's matches contiguous
            self._store.merge(self._decider.aggregation_key(tag), count, payloads)
        except Exception as e:
            logger.warning(
                "Failed to process batch",
                tag=tag,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )

    # === Flushing ===

    def flush(self, elapsed: float | None = None) -> list[Emission]:
        """Drain the window and emit every bucket that passes the threshold.

        Args:
            elapsed: Actual window length in seconds, for logging only

        Returns:
            The emissions handed to the emitter (including any the emitter
            failed on).
        """
        with self._flush_lock:
            timestamp = self._clock.now()
            buckets = self._store.drain_all()
            emissions = self._decider.decide_all(buckets, timestamp)
            for emission in emissions:
                try:
                    self._emitter.emit(emission.tag, emission.timestamp, emission.record)
                except Exception as e:
                    logger.warning(
                        "Emitter failed",
                        tag=emission.tag,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
            logger.debug(
                "Window flushed",
                elapsed=elapsed,
                buckets=len(buckets),
                emitted=len(emissions),
            )
            return emissions

    # === Persistence ===

    def save_snapshot(self) -> bool:
        """Persist the open window. Returns False if nothing was written."""
        if self._snapshot is None:
            return False
        now = self._clock.now()
        last_checkpoint = self._scheduler.last_checkpoint
        saved_duration = 0.0 if last_checkpoint is None else max(0.0, now - last_checkpoint)
        counts, matches = self._store.snapshot_state()
        state = SnapshotState(
            counts=counts,
            matches=matches,
            saved_at=now,
            saved_duration=saved_duration,
            fingerprint=self._fingerprint,
        )
        self.saved_at = state.saved_at
        self.saved_duration = state.saved_duration
        return self._snapshot.save(state)

    def load_snapshot(self) -> bool:
        """Adopt a compatible, fresh snapshot. Returns True if one was adopted.

        The window resumes where it left off: the scheduler's checkpoint is
        set to ``now - saved_duration``.
        """
        if self._snapshot is None:
            return False
        now = self._clock.now()
        state = self._snapshot.load(
            fingerprint=self._fingerprint,
            interval=self._settings.count_interval,
            now=now,
        )
        if state is None:
            return False
        self._store.restore_state(state.counts, state.matches)
        self.saved_at = state.saved_at
        self.saved_duration = state.saved_duration
        self._scheduler.last_checkpoint = now - state.saved_duration
        logger.info(
            "Snapshot restored",
            path=str(self._snapshot.path),
            keys=len(state.counts),
            saved_duration=state.saved_duration,
        )
        return True

    # === Lifecycle ===

    def start(self) -> None:
        """Restore persisted state (if configured) and start the scheduler."""
        self.load_snapshot()
        self._scheduler.start()

    def shutdown(self) -> None:
        """Stop the scheduler, then persist the open window (if configured)."""
        self._scheduler.stop()
        self.save_snapshot()

    def __enter__(self) -> GrepCounter:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
