"""Emission plugin system: sinks via pluggy.

- Hookspecs: pluggy hook definitions (grepcounter_emit, grepcounter_close)
- Manager: EmitterManager, the pluggy-backed Emitter
- Protocols: the Emitter protocol GrepCounter depends on
- Sinks: built-in JSON-lines and in-memory sinks
"""

from grepcounter.plugins.hookspecs import hookimpl, hookspec
from grepcounter.plugins.manager import EmitterManager
from grepcounter.plugins.protocols import Emitter
from grepcounter.plugins.sinks import CollectingSink, JSONLinesSink

__all__ = [
    "CollectingSink",
    "Emitter",
    "EmitterManager",
    "JSONLinesSink",
    "hookimpl",
    "hookspec",
]
