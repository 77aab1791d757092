# src/grepcounter/plugins/protocols.py
"""Protocol for the engine's downstream collaborator.

GrepCounter only needs something with emit(); EmitterManager is the
pluggy-backed implementation, but a host pipeline can pass its own
router object directly.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Emitter(Protocol):
    """Accepts emitted summary records for further routing."""

    def emit(self, tag: str, timestamp: float, record: dict[str, Any]) -> None:
        """Route one summary record downstream."""
        ...
