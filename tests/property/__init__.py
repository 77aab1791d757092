# tests/property/__init__.py
"""Property-based tests for grepcounter.

Properties cover invariants that must hold for every input, not just the
examples we think of:

- core/: snapshot serialization round-trips, fingerprint determinism
- engine/: count conservation across merges and drains, tag transformation
"""
