"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core/engine.
Settings classes are NOT re-exported here - import them from
grepcounter.core.config.
"""

from grepcounter.contracts.enums import AggregateMode, Comparator, MatchMode, TagStepKind
from grepcounter.contracts.errors import (
    ConfigurationError,
    EncodingError,
    GrepCounterError,
    IngestionError,
    InvalidSequenceError,
    PersistenceError,
)
from grepcounter.contracts.records import Emission, FlushedBucket, MatchResult, SnapshotState

__all__ = [
    "AggregateMode",
    "Comparator",
    "ConfigurationError",
    "Emission",
    "EncodingError",
    "FlushedBucket",
    "GrepCounterError",
    "IngestionError",
    "InvalidSequenceError",
    "MatchMode",
    "MatchResult",
    "PersistenceError",
    "SnapshotState",
    "TagStepKind",
]
