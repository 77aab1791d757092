# src/grepcounter/engine/decider.py
"""Emission decisions for flushed buckets.

The decider turns drained buckets into zero or more Emission values:

1. Suppress empty windows (count 0 or missing), since idle or standby
   sources legitimately produce nothing.
2. Suppress counts outside the configured ThresholdRule bounds.
3. Shape the output record (count, message, input_tag, input_tag_last).
4. Resolve the output tag for the aggregation mode.

Aggregation key vs. output tag:

    in_tag   key = raw input tag        output tag = plan(key), after flush
    out_tag  key = plan(raw input tag)  output tag = key, before accumulation
    all      key = GLOBAL_KEY           output tag = fixed tag

The difference between in_tag and out_tag decides which counts are summed
before the threshold is applied, so aggregation_key() must be called at
ingestion time.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from grepcounter.contracts.enums import AggregateMode, Comparator, MatchMode
from grepcounter.contracts.errors import ConfigurationError
from grepcounter.contracts.records import Emission, FlushedBucket
from grepcounter.core.config import GrepCounterSettings
from grepcounter.engine.tagging import TagTransformer, build_tag_plan

# Bucket key used by aggregate=all
GLOBAL_KEY = "global"


@dataclass(frozen=True)
class ThresholdRule:
    """Conjunction of up to four numeric bounds on a window's count.

    Resolved once from settings. With nothing configured the rule is
    greater_equal=1, which only suppresses true zero counts.
    """

    less_than: float | None = None
    less_equal: float | None = None
    greater_than: float | None = None
    greater_equal: float | None = None

    @classmethod
    def from_settings(cls, settings: GrepCounterSettings) -> ThresholdRule:
        """Normalize legacy threshold/comparator and modern bounds into one rule."""
        if settings.threshold is not None:
            return cls._legacy(settings.comparator, settings.threshold)

        rule = cls(
            less_than=settings.less_than,
            less_equal=settings.less_equal,
            greater_than=settings.greater_than,
            greater_equal=settings.greater_equal,
        )
        if rule.is_unbounded:
            # A bare comparator still applies, against the legacy default of 1
            return cls._legacy(settings.comparator, 1)
        return rule

    @classmethod
    def _legacy(cls, comparator: Comparator, threshold: float) -> ThresholdRule:
        if comparator == Comparator.GREATER_EQUAL:
            return cls(greater_equal=threshold)
        return cls(less_equal=threshold)

    @property
    def is_unbounded(self) -> bool:
        return all(bound is None for bound in (self.less_than, self.less_equal, self.greater_than, self.greater_equal))

    def allows(self, count: float) -> bool:
        """True if count satisfies every configured bound."""
        if self.less_than is not None and not count < self.less_than:
            return False
        if self.less_equal is not None and not count <= self.less_equal:
            return False
        if self.greater_than is not None and not count > self.greater_than:
            return False
        if self.greater_equal is not None and not count >= self.greater_equal:
            return False
        return True


class OutputDecider:
    """Decides which buckets are emitted, with which record and tag.

    Stateless after construction; called from the scheduler thread at
    flush time and (for aggregation_key) from ingestion threads.
    """

    def __init__(
        self,
        *,
        threshold: ThresholdRule,
        aggregate: AggregateMode,
        tagger: TagTransformer,
        match_mode: MatchMode,
        delimiter: str | None = None,
    ) -> None:
        if aggregate == AggregateMode.ALL and not tagger.is_fixed:
            raise ConfigurationError("aggregate all requires a fixed output tag")
        self._threshold = threshold
        self._aggregate = aggregate
        self._tagger = tagger
        self._match_mode = match_mode
        self._delimiter = delimiter

    @classmethod
    def from_settings(cls, settings: GrepCounterSettings) -> OutputDecider:
        return cls(
            threshold=ThresholdRule.from_settings(settings),
            aggregate=settings.aggregate,
            tagger=TagTransformer(build_tag_plan(**settings.tag_options())),
            match_mode=settings.match_mode,
            delimiter=settings.delimiter,
        )

    @property
    def threshold(self) -> ThresholdRule:
        return self._threshold

    @property
    def aggregate(self) -> AggregateMode:
        return self._aggregate

    def aggregation_key(self, input_tag: str) -> str:
        """Bucket key for records arriving under input_tag."""
        match self._aggregate:
            case AggregateMode.IN_TAG:
                return input_tag
            case AggregateMode.OUT_TAG:
                return self._tagger.transform(input_tag)
            case AggregateMode.ALL:
                return GLOBAL_KEY
        raise AssertionError(f"unhandled aggregate mode: {self._aggregate}")

    def output_tag(self, input_tag: str) -> str:
        """Output tag derived from a raw input tag."""
        return self._tagger.transform(input_tag)

    def build_record(self, count: int | None, payloads: list[Any], input_tag: str | None = None) -> dict[str, Any] | None:
        """Return the output record, or None when the window is suppressed."""
        if not count:
            return None
        if not self._threshold.allows(count):
            return None

        output: dict[str, Any] = {"count": count}
        # Multi-field mode captures whole records, which are not echoed back
        if self._match_mode == MatchMode.SINGLE_FIELD:
            if self._delimiter is not None:
                output["message"] = self._delimiter.join(str(payload) for payload in payloads)
            else:
                output["message"] = list(payloads)
        if input_tag is not None:
            output["input_tag"] = input_tag
            output["input_tag_last"] = input_tag.split(".")[-1]
        return output

    def decide(self, key: str, bucket: FlushedBucket, timestamp: float) -> Emission | None:
        """Decide a single bucket drained under key.

        Not valid for aggregate=all, where buckets are summed first
        (see decide_all()).
        """
        if self._aggregate == AggregateMode.IN_TAG:
            record = self.build_record(bucket.count, bucket.payloads, input_tag=key)
            tag = self.output_tag(key)
        elif self._aggregate == AggregateMode.OUT_TAG:
            record = self.build_record(bucket.count, bucket.payloads)
            tag = key
        else:
            raise ValueError("decide() is per-bucket; use decide_all() for aggregate all")
        if record is None:
            return None
        return Emission(tag=tag, timestamp=timestamp, record=record)

    def decide_all(self, buckets: Mapping[str, FlushedBucket], timestamp: float) -> list[Emission]:
        """Decide every drained bucket, in drain order."""
        if self._aggregate == AggregateMode.ALL:
            # Restored snapshots may carry per-tag keys; sum whatever was drained
            count = sum(bucket.count for bucket in buckets.values())
            payloads = [payload for bucket in buckets.values() for payload in bucket.payloads]
            record = self.build_record(count, payloads)
            if record is None:
                return []
            return [Emission(tag=self._tagger.transform(GLOBAL_KEY), timestamp=timestamp, record=record)]

        emissions: list[Emission] = []
        for key, bucket in buckets.items():
            emission = self.decide(key, bucket, timestamp)
            if emission is not None:
                emissions.append(emission)
        return emissions
