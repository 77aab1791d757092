# tests/conftest.py
"""Shared test fixtures and helpers.

Fixtures:
- mock_clock: MockClock pinned to a fixed epoch time
- sink / emitter: CollectingSink registered on an EmitterManager
- make_counter: GrepCounter factory wired to the mock clock and sink

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from grepcounter.engine.clock import MockClock
from grepcounter.engine.counter import GrepCounter
from grepcounter.plugins.manager import EmitterManager
from grepcounter.plugins.sinks import CollectingSink

# Fixed epoch so emitted timestamps are predictable
T0 = 1_700_000_000.0


@pytest.fixture
def mock_clock() -> MockClock:
    return MockClock(start=T0)


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def emitter(sink: CollectingSink) -> EmitterManager:
    manager = EmitterManager()
    manager.register(sink)
    return manager


@pytest.fixture
def make_counter(mock_clock: MockClock, emitter: EmitterManager) -> Iterator[Callable[..., GrepCounter]]:
    """Build GrepCounter instances from plain config dicts.

    Counters are never started here; tests drive flushes directly or through
    counter.scheduler.check(). Any counter a test did start is stopped at
    teardown so no scheduler thread outlives the test.
    """
    created: list[GrepCounter] = []

    def factory(**config: Any) -> GrepCounter:
        counter = GrepCounter.from_dict(config, emitter, clock=mock_clock)
        created.append(counter)
        return counter

    yield factory

    for counter in created:
        counter.scheduler.stop(timeout=5.0)


def events(*records: dict[str, Any], timestamp: float = T0) -> list[tuple[float, dict[str, Any]]]:
    """Wrap records as (timestamp, record) pairs for on_batch()."""
    return [(timestamp, record) for record in records]


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
