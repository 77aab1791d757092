# src/grepcounter/engine/__init__.py
"""Counting engine: matching, accumulation, scheduling and output decisions.

This module provides the runtime for GrepCounter:
- GrepCounter: Facade wiring every component behind on_batch/flush
- Matcher: Per-record include/exclude evaluation
- AccumulatorStore: Thread-safe per-key counts and payloads
- FlushScheduler: Tumbling-window flush trigger
- OutputDecider: Threshold, record shaping and output tag resolution

Example:
    from grepcounter.core.config import GrepCounterSettings
    from grepcounter.engine import GrepCounter
    from grepcounter.plugins import CollectingSink

    sink = CollectingSink()
    settings = GrepCounterSettings.from_dict({"input_key": "message", "regexp": "WARN"})

    with GrepCounter(settings, sink) as counter:
        counter.on_batch("syslog.host1", events)
"""

from grepcounter.engine.accumulator import AccumulatorStore
from grepcounter.engine.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from grepcounter.engine.counter import GrepCounter
from grepcounter.engine.decider import GLOBAL_KEY, OutputDecider, ThresholdRule
from grepcounter.engine.matcher import Matcher
from grepcounter.engine.scheduler import POLL_INTERVAL, FlushScheduler
from grepcounter.engine.tagging import (
    DEFAULT_TAG_PREFIX,
    SliceRange,
    TagStep,
    TagTransformer,
    build_tag_plan,
)

__all__ = [
    "DEFAULT_CLOCK",
    "DEFAULT_TAG_PREFIX",
    "GLOBAL_KEY",
    "POLL_INTERVAL",
    "AccumulatorStore",
    "Clock",
    "FlushScheduler",
    "GrepCounter",
    "Matcher",
    "MockClock",
    "OutputDecider",
    "SliceRange",
    "SystemClock",
    "TagStep",
    "TagTransformer",
    "ThresholdRule",
    "build_tag_plan",
]
