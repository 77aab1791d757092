# tests/property/conftest.py
"""Shared Hypothesis strategies for property-based tests.

Strategy Categories:
- Tags (dot-delimited routing tags)
- JSON-safe values (snapshot payloads)
- Batches (per-key counts and payloads)

Usage:
    from tests.property.conftest import tags, merge_operations

    @given(ops=merge_operations)
    def test_counts_are_conserved(ops) -> None:
        ...
"""

from __future__ import annotations

from hypothesis import strategies as st

# RFC 8785 (JCS) uses JavaScript-safe integers
MAX_SAFE_INT = 2**53 - 1
MIN_SAFE_INT = -(2**53 - 1)

# =============================================================================
# Tags
# =============================================================================

tag_segments = st.text(
    alphabet=st.characters(whitelist_categories=("Ll", "Lu", "Nd"), whitelist_characters="_-"),
    min_size=1,
    max_size=8,
)

tags = st.lists(tag_segments, min_size=1, max_size=5).map(".".join)

# =============================================================================
# JSON-safe values
# =============================================================================

json_primitives = (
    st.none()
    | st.booleans()
    | st.integers(min_value=MIN_SAFE_INT, max_value=MAX_SAFE_INT)
    | st.floats(allow_nan=False, allow_infinity=False)
    | st.text(max_size=20)
)

json_values = st.recursive(
    json_primitives,
    lambda children: st.lists(children, max_size=3) | st.dictionaries(st.text(max_size=8), children, max_size=3),
    max_leaves=10,
)

# =============================================================================
# Accumulator operations
# =============================================================================

keys = st.sampled_from(["syslog.host1", "syslog.host2", "app.web", "global"])

# (key, payloads): count is len(payloads), as produced by on_batch()
merge_operations = st.lists(
    st.tuples(keys, st.lists(st.text(max_size=10), max_size=5)),
    max_size=30,
)
