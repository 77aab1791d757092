# tests/property/core/test_snapshot_properties.py
"""Property-based tests for snapshot persistence and fingerprints.

Properties tested:
- Serialization round-trips any JSON-safe payload
- A saved snapshot loads back unchanged while fresh and compatible
- Fingerprints are deterministic and independent of dict insertion order
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

from hypothesis import given
from hypothesis import strategies as st

from grepcounter.contracts.records import SnapshotState
from grepcounter.core.canonical import stable_hash
from grepcounter.core.snapshot import SnapshotStore, snapshot_dumps, snapshot_loads
from tests.property.conftest import json_values, keys
from tests.property.settings import DETERMINISM_SETTINGS, SLOW_SETTINGS, STANDARD_SETTINGS

buckets = st.dictionaries(keys, st.lists(json_values, min_size=1, max_size=4), max_size=4)


class TestSerializationProperties:
    @given(value=json_values)
    @STANDARD_SETTINGS
    def test_round_trip(self, value: Any) -> None:
        assert snapshot_loads(snapshot_dumps(value)) == value


class TestSnapshotStoreProperties:
    @given(matches=buckets, duration=st.floats(min_value=0.0, max_value=60.0))
    @SLOW_SETTINGS
    def test_save_then_load(self, matches: dict[str, list[Any]], duration: float) -> None:
        state = SnapshotState(
            counts={key: len(items) for key, items in matches.items()},
            matches=matches,
            saved_at=1_700_000_000.0,
            saved_duration=duration,
            fingerprint="f",
        )
        with tempfile.TemporaryDirectory() as tmp:
            store = SnapshotStore(Path(tmp) / "snapshot.json")
            assert store.save(state)
            assert store.load(fingerprint="f", interval=60.0, now=1_700_000_000.0) == state


class TestFingerprintProperties:
    @given(rules=st.dictionaries(st.text(min_size=1, max_size=8), st.text(max_size=8), max_size=5))
    @DETERMINISM_SETTINGS
    def test_hash_is_deterministic(self, rules: dict[str, str]) -> None:
        material = {"regexps": [[k, v] for k, v in rules.items()]}
        assert stable_hash(material) == stable_hash(material)

    @given(rules=st.dictionaries(st.text(min_size=1, max_size=8), st.text(max_size=8), max_size=5))
    @DETERMINISM_SETTINGS
    def test_key_order_does_not_matter(self, rules: dict[str, str]) -> None:
        reordered = dict(reversed(list(rules.items())))
        assert stable_hash(rules) == stable_hash(reordered)
