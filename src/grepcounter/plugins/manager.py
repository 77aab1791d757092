# src/grepcounter/plugins/manager.py
"""Emitter backed by pluggy sink registration.

Uses pluggy for hook-based sink registration, so a host can attach any
number of sinks (stdout, in-memory, its own router) without the engine
knowing about them.
"""

from typing import Any

import pluggy

from grepcounter.plugins.hookspecs import PROJECT_NAME, GrepCounterSinkSpec

# setuptools entry point group scanned by load_entrypoint_sinks()
ENTRYPOINT_GROUP = "grepcounter.sinks"


class EmitterManager:
    """Fans emitted records out to every registered sink.

    Usage:
        manager = EmitterManager()
        manager.register(JSONLinesSink(sys.stdout))
        manager.emit("count.syslog.host1", 1700000000.0, {"count": 3})
        manager.close()
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(GrepCounterSinkSpec)

    def register(self, sink: Any, name: str | None = None) -> str:
        """Register a sink.

        Args:
            sink: Object implementing one or more sink hooks
            name: Registration name. Defaults to the sink's ``name``
                attribute, then to pluggy's generated name.

        Returns:
            The name the sink is registered under.

        Raises:
            ValueError: If a sink is already registered under that name
        """
        plugin_name = name if name is not None else getattr(sink, "name", None)
        if plugin_name is not None and self._pm.get_plugin(plugin_name) is not None:
            raise ValueError(f"Duplicate sink name: '{plugin_name}'")
        registered = self._pm.register(sink, name=plugin_name)
        if registered is None:
            raise ValueError(f"Sink {sink!r} is already registered")
        return registered

    def unregister(self, name: str) -> None:
        """Remove a sink by registration name.

        Raises:
            KeyError: If no sink is registered under name
        """
        if self._pm.get_plugin(name) is None:
            raise KeyError(name)
        self._pm.unregister(name=name)

    def load_entrypoint_sinks(self) -> int:
        """Register sinks published by installed packages. Returns how many."""
        return self._pm.load_setuptools_entrypoints(ENTRYPOINT_GROUP)

    @property
    def sink_names(self) -> list[str]:
        return [name for name, _ in self._pm.list_name_plugin()]

    def emit(self, tag: str, timestamp: float, record: dict[str, Any]) -> None:
        """Deliver one record to every sink.

        A failing sink raises out of this call; GrepCounter logs it and
        moves on to the next record.
        """
        self._pm.hook.grepcounter_emit(tag=tag, timestamp=timestamp, record=record)

    def close(self) -> None:
        self._pm.hook.grepcounter_close()
