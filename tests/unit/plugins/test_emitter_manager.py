"""Tests for EmitterManager sink registration and fan-out."""

import io
import json
from typing import Any

import pytest

from grepcounter.contracts.records import Emission
from grepcounter.plugins import CollectingSink, Emitter, EmitterManager, JSONLinesSink, hookimpl


class TestRegistration:
    def test_register_uses_sink_name(self) -> None:
        manager = EmitterManager()
        assert manager.register(CollectingSink()) == "collect"
        assert manager.sink_names == ["collect"]

    def test_explicit_name(self) -> None:
        manager = EmitterManager()
        manager.register(CollectingSink(), name="first")
        manager.register(CollectingSink(), name="second")
        assert sorted(manager.sink_names) == ["first", "second"]

    def test_duplicate_name_rejected(self) -> None:
        manager = EmitterManager()
        manager.register(CollectingSink())
        with pytest.raises(ValueError, match="Duplicate sink name"):
            manager.register(CollectingSink())

    def test_unregister(self) -> None:
        manager = EmitterManager()
        sink = CollectingSink()
        manager.register(sink)
        manager.unregister("collect")

        manager.emit("t", 1.0, {"count": 1})

        assert sink.emissions == []
        assert manager.sink_names == []

    def test_unregister_unknown(self) -> None:
        with pytest.raises(KeyError):
            EmitterManager().unregister("nope")

    def test_no_entrypoint_sinks_installed(self) -> None:
        assert EmitterManager().load_entrypoint_sinks() == 0


class TestFanOut:
    def test_emit_reaches_every_sink(self) -> None:
        manager = EmitterManager()
        first, second = CollectingSink(), CollectingSink()
        manager.register(first, name="first")
        manager.register(second, name="second")

        manager.emit("count.a", 1.0, {"count": 2})

        expected = [Emission(tag="count.a", timestamp=1.0, record={"count": 2})]
        assert first.emissions == expected
        assert second.emissions == expected

    def test_close_reaches_every_sink(self) -> None:
        manager = EmitterManager()
        sink = CollectingSink()
        manager.register(sink)

        manager.close()

        assert sink.closed

    def test_sink_may_implement_one_hook(self) -> None:
        class EmitOnly:
            def __init__(self) -> None:
                self.tags: list[str] = []

            @hookimpl
            def grepcounter_emit(self, tag: str, timestamp: float, record: dict[str, Any]) -> None:
                self.tags.append(tag)

        manager = EmitterManager()
        sink = EmitOnly()
        manager.register(sink)
        manager.emit("x", 0.0, {})
        manager.close()

        assert sink.tags == ["x"]

    def test_failing_sink_raises_out_of_emit(self) -> None:
        class Broken:
            @hookimpl
            def grepcounter_emit(self, tag: str, timestamp: float, record: dict[str, Any]) -> None:
                raise RuntimeError("boom")

        manager = EmitterManager()
        manager.register(Broken())
        with pytest.raises(RuntimeError, match="boom"):
            manager.emit("x", 0.0, {})

    def test_manager_is_an_emitter(self) -> None:
        assert isinstance(EmitterManager(), Emitter)


class TestSinks:
    def test_jsonl_sink_writes_one_line_per_emission(self) -> None:
        stream = io.StringIO()
        manager = EmitterManager()
        manager.register(JSONLinesSink(stream))

        manager.emit("count.a", 1.5, {"count": 1, "message": ["héllo"]})
        manager.emit("count.b", 2.0, {"count": 2})

        lines = stream.getvalue().splitlines()
        assert [json.loads(line) for line in lines] == [
            {"tag": "count.a", "time": 1.5, "record": {"count": 1, "message": ["héllo"]}},
            {"tag": "count.b", "time": 2.0, "record": {"count": 2}},
        ]
        assert "héllo" in lines[0]

    def test_jsonl_sink_stringifies_unknown_values(self) -> None:
        stream = io.StringIO()
        JSONLinesSink(stream).grepcounter_emit("t", 0.0, {"raw": b"x"})
        assert json.loads(stream.getvalue())["record"]["raw"] == "b'x'"

    def test_jsonl_sink_does_not_close_stream(self) -> None:
        stream = io.StringIO()
        JSONLinesSink(stream).grepcounter_close()
        assert not stream.closed

    def test_collecting_sink_clear(self) -> None:
        sink = CollectingSink()
        sink.grepcounter_emit("t", 0.0, {"count": 1})
        sink.clear()
        assert sink.emissions == []
