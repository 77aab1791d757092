# src/grepcounter/engine/clock.py
"""Clock abstraction for testable window logic.

This module provides a Clock protocol that abstracts time access,
enabling deterministic testing of the flush scheduler and the snapshot
staleness check.

Windows are measured in wall-clock seconds: emitted timestamps, the
snapshot's saved_at and the restart staleness test all compare against
times that must survive a process restart, which a monotonic clock cannot.

Production code uses SystemClock (the default).
Tests inject MockClock to control time advancement.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Abstract wall clock.

    Implementations:
    - SystemClock: Uses time.time() (production)
    - MockClock: Returns controllable times (testing)
    """

    def now(self) -> float:
        """Return the current time as seconds since the epoch."""
        ...


class SystemClock:
    """Production clock using time.time()."""

    def now(self) -> float:
        """Return system wall-clock time."""
        return time.time()


class MockClock:
    """Controllable clock for deterministic testing.

    Allows tests to advance time programmatically without sleep().

    Example:
        clock = MockClock(start=1_000.0)
        scheduler = FlushScheduler(interval=5.0, flush=on_flush, clock=clock)
        scheduler.reset_checkpoint()

        clock.advance(4.9)
        assert not scheduler.check()

        clock.advance(0.2)
        assert scheduler.check()  # on_flush(5.1) was called
    """

    def __init__(self, start: float = 0.0) -> None:
        """Initialize mock clock at a given time.

        Args:
            start: Initial time value (default 0.0).
        """
        self._current = float(start)

    def now(self) -> float:
        """Return current mock time."""
        return self._current

    def advance(self, seconds: float) -> None:
        """Advance mock time by specified seconds.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        self._current += seconds

    def set(self, value: float) -> None:
        """Set mock time to an absolute value.

        Note:
            Unlike advance(), this can move time backwards, which is how tests
            simulate wall-clock corrections.
        """
        self._current = float(value)


# Default clock for production use
DEFAULT_CLOCK: Clock = SystemClock()
