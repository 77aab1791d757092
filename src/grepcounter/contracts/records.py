"""Value types passed between the matcher, accumulator, decider and emitters.

These types answer: "What did a step produce?"
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MatchResult:
    """Outcome of evaluating one record against the match rules.

    captured is the text value in single-field mode and the whole record in
    multi-field mode. It is None when matched is False.
    """

    matched: bool
    captured: Any = None

    @classmethod
    def rejected(cls) -> "MatchResult":
        return cls(matched=False)


@dataclass
class FlushedBucket:
    """Contents of one aggregation bucket at drain time.

    Owned exclusively by the caller of AccumulatorStore.drain_all().
    """

    count: int
    payloads: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class Emission:
    """A summary record ready for the downstream emitter."""

    tag: str
    timestamp: float
    record: dict[str, Any]


@dataclass(frozen=True)
class SnapshotState:
    """Everything SnapshotStore persists.

    saved_duration is how far into the current window the process was when
    the snapshot was taken (saved_at - last_checkpoint).
    """

    counts: dict[str, int]
    matches: dict[str, list[Any]]
    saved_at: float
    saved_duration: float
    fingerprint: str

    def __post_init__(self) -> None:
        if set(self.counts) != set(self.matches):
            raise ValueError("snapshot counts and matches must cover the same keys")
        if self.saved_duration < 0:
            raise ValueError(f"saved_duration must be non-negative, got {self.saved_duration}")
