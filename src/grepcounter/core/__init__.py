# src/grepcounter/core/__init__.py
"""Core infrastructure: Configuration, Canonical, Encoding, Snapshot, Logging."""

from grepcounter.core.canonical import (
    CANONICAL_VERSION,
    canonical_json,
    stable_hash,
)
from grepcounter.core.config import (
    GrepCounterSettings,
    load_settings,
    parse_duration,
)
from grepcounter.core.encoding import sanitize_text, to_text
from grepcounter.core.logging import (
    configure_logging,
    get_logger,
)
from grepcounter.core.snapshot import SnapshotStore

__all__ = [
    "CANONICAL_VERSION",
    "GrepCounterSettings",
    "SnapshotStore",
    "canonical_json",
    "configure_logging",
    "get_logger",
    "load_settings",
    "parse_duration",
    "sanitize_text",
    "stable_hash",
    "to_text",
]
