# src/grepcounter/engine/scheduler.py
"""Time-driven flush scheduling.

The scheduler wakes every POLL_INTERVAL seconds and compares the clock with
the last checkpoint. Once a full interval has elapsed it calls the flush
callback with the ACTUAL elapsed time (not the nominal interval), so a
late tick after scheduling jitter reports the real window length, then
moves the checkpoint to now.

State machine per tick:

    Idle -> CheckElapsed -> Idle                 (interval not reached)
    Idle -> CheckElapsed -> Flushing -> Idle     (interval reached)

Thread Safety:
    One background thread runs the loop; the flush callback always runs on
    it, so flushes never overlap. check() is also public so tests can drive
    ticks synchronously with a MockClock and no thread at all.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from grepcounter.engine.clock import DEFAULT_CLOCK

if TYPE_CHECKING:
    from grepcounter.engine.clock import Clock

logger = structlog.get_logger(__name__)

# Seconds between elapsed-time checks
POLL_INTERVAL = 0.5


class FlushScheduler:
    """Cancellable background loop that triggers tumbling-window flushes.

    Example:
        scheduler = FlushScheduler(interval=5.0, flush=counter.flush)
        scheduler.start()
        ...
        scheduler.stop()  # joins the thread; no flush runs after this returns
    """

    def __init__(
        self,
        interval: float,
        flush: Callable[[float], None],
        clock: Clock | None = None,
        poll_interval: float = POLL_INTERVAL,
    ) -> None:
        """Initialize the scheduler.

        Args:
            interval: Window length in seconds
            flush: Callback receiving the actual elapsed seconds
            clock: Optional clock. Defaults to the system clock.
            poll_interval: Seconds between checks

        Raises:
            ValueError: If interval or poll_interval is not positive
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")
        self._interval = interval
        self._flush = flush
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._poll_interval = poll_interval

        self.last_checkpoint: float | None = None

        self._shutdown_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def reset_checkpoint(self) -> None:
        """Start a new window at the current time."""
        self.last_checkpoint = self._clock.now()

    def elapsed(self) -> float:
        """Seconds since the last checkpoint (0.0 before the first window)."""
        if self.last_checkpoint is None:
            return 0.0
        return self._clock.now() - self.last_checkpoint

    def check(self) -> bool:
        """Run one tick. Returns True if a flush was triggered.

        Flush errors are logged and swallowed so the loop survives; the
        checkpoint still advances, so a failing window is not retried.
        """
        if self.last_checkpoint is None:
            self.reset_checkpoint()
            return False

        now = self._clock.now()
        elapsed = now - self.last_checkpoint
        if elapsed < self._interval:
            return False

        try:
            self._flush(elapsed)
        except Exception as e:
            logger.warning(
                "Flush failed",
                error=str(e),
                error_type=type(e).__name__,
                elapsed=elapsed,
                exc_info=True,
            )
        finally:
            self.last_checkpoint = now
        return True

    def start(self) -> None:
        """Start the background loop.

        The checkpoint is only initialized if nothing set it before, so a
        checkpoint restored from a snapshot carries over.

        Raises:
            RuntimeError: If the scheduler is already running
        """
        if self.is_running:
            raise RuntimeError("FlushScheduler is already running")
        if self.last_checkpoint is None:
            self.reset_checkpoint()
        self._shutdown_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="grepcounter-flush",
            daemon=False,
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Signal the loop to stop and join it. Idempotent.

        A flush already in progress completes before this returns.
        """
        self._shutdown_event.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Flush thread did not stop in time", timeout=timeout)
                return
        self._thread = None

    def _run(self) -> None:
        # Event.wait doubles as the cancellable sleep
        while not self._shutdown_event.wait(self._poll_interval):
            self.check()
