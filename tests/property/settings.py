# tests/property/settings.py
"""Standardized Hypothesis settings profiles for property tests.

Import these instead of using inline @settings(max_examples=...).

Usage:
    from tests.property.settings import STANDARD_SETTINGS

    @given(counts=st.lists(st.integers(min_value=0)))
    @STANDARD_SETTINGS
    def test_something(counts):
        ...

Tiers:
- DETERMINISM_SETTINGS: 500 examples - fingerprint/canonical hashing
- STANDARD_SETTINGS: 100 examples - Regular property tests
- SLOW_SETTINGS: 50 examples - File system (snapshot) and threaded tests
- QUICK_SETTINGS: 20 examples - Fast validation tests
"""

from hypothesis import settings

# Snapshot reuse depends on fingerprints being deterministic
DETERMINISM_SETTINGS = settings(max_examples=500)

STANDARD_SETTINGS = settings(max_examples=100)

# File system and thread-bound tests
SLOW_SETTINGS = settings(max_examples=50)

QUICK_SETTINGS = settings(max_examples=20)
