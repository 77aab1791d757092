# src/grepcounter/plugins/hookspecs.py
"""pluggy hook specifications for grepcounter emission sinks.

A sink is any object implementing these hooks. The EmitterManager calls
them for every emitted summary record and once at shutdown.

Usage (implementing a sink):
    from grepcounter.plugins.hookspecs import hookimpl

    class MySink:
        name = "my_sink"

        @hookimpl  # NOT @hookspec - that's for defining specs
        def grepcounter_emit(self, tag, timestamp, record):
            send(tag, record)

Note: @hookspec defines the hook interface (done here).
      @hookimpl marks sink implementations of those hooks.
"""

from typing import Any

import pluggy

# Project name for pluggy
PROJECT_NAME = "grepcounter"

# Hook specification marker
hookspec = pluggy.HookspecMarker(PROJECT_NAME)

# Hook implementation marker (for sinks to use)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class GrepCounterSinkSpec:
    """Hook specifications for emission sinks."""

    @hookspec
    def grepcounter_emit(self, tag: str, timestamp: float, record: dict[str, Any]) -> None:
        """Receive one summary record.

        Args:
            tag: Output routing tag
            timestamp: Flush time, seconds since the epoch
            record: Output record (count, message, input_tag, ...)
        """

    @hookspec
    def grepcounter_close(self) -> None:
        """Release resources. Called once, after the final flush and snapshot."""
