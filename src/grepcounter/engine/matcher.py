# src/grepcounter/engine/matcher.py
"""Record predicate evaluation.

Two mutually exclusive layouts, chosen at configuration time:

- single-field: one field (input_key) tested against an optional include
  pattern and an optional exclude pattern. Captures the field's text.
- multi-field: every include rule must match (AND) and no exclude rule may
  match (OR). Captures the whole record.

Patterns use re.search semantics (unanchored). A missing field is tested as
the empty string.

The matcher is pure: evaluate() has no side effects and holds no mutable
state, so one instance is shared by every ingestion thread.
"""

import re
from collections.abc import Mapping
from typing import Any

from grepcounter.contracts.enums import MatchMode
from grepcounter.contracts.errors import ConfigurationError, InvalidSequenceError
from grepcounter.contracts.records import MatchResult
from grepcounter.core.config import GrepCounterSettings
from grepcounter.core.encoding import sanitize_text, to_text


class Matcher:
    """Evaluates records against compiled match rules.

    Example:
        matcher = Matcher.from_settings(GrepCounterSettings(input_key="message", regexp="WARN"))
        matcher.evaluate({"message": "WARN POST /auth"})
        # MatchResult(matched=True, captured="WARN POST /auth")
    """

    def __init__(
        self,
        *,
        input_key: str | None = None,
        regexp: str | None = None,
        exclude: str | None = None,
        regexps: Mapping[str, str] | None = None,
        excludes: Mapping[str, str] | None = None,
        replace_invalid_sequence: bool = False,
    ) -> None:
        self._input_key = input_key
        self._regexp = re.compile(regexp) if regexp is not None else None
        self._exclude = re.compile(exclude) if exclude is not None else None
        # Dicts preserve declaration order, which is the evaluation order
        self._regexps: list[tuple[str, re.Pattern[str]]] = [(k, re.compile(p)) for k, p in (regexps or {}).items()]
        self._excludes: list[tuple[str, re.Pattern[str]]] = [(k, re.compile(p)) for k, p in (excludes or {}).items()]
        self._replace_invalid_sequence = replace_invalid_sequence

        if input_key is not None and (self._regexps or self._excludes):
            raise ConfigurationError("single-field and multi-field match rules are mutually exclusive")

    @classmethod
    def from_settings(cls, settings: GrepCounterSettings) -> "Matcher":
        return cls(
            input_key=settings.input_key,
            regexp=settings.regexp,
            exclude=settings.exclude,
            regexps=settings.regexps,
            excludes=settings.excludes,
            replace_invalid_sequence=settings.replace_invalid_sequence,
        )

    @property
    def mode(self) -> MatchMode:
        if self._input_key is not None:
            return MatchMode.SINGLE_FIELD
        return MatchMode.MULTI_FIELD

    def evaluate(self, record: Mapping[str, Any]) -> MatchResult:
        """Decide whether a record matches.

        Raises:
            InvalidSequenceError: A tested field holds invalid byte sequences
                and replace_invalid_sequence is off
        """
        if self._input_key is not None:
            return self._evaluate_single(record, self._input_key)
        return self._evaluate_multi(record)

    def _evaluate_single(self, record: Mapping[str, Any], key: str) -> MatchResult:
        text = self._text(record, key)
        if self._regexp is not None and self._regexp.search(text) is None:
            return MatchResult.rejected()
        if self._exclude is not None and self._exclude.search(text) is not None:
            return MatchResult.rejected()
        return MatchResult(matched=True, captured=text)

    def _evaluate_multi(self, record: Mapping[str, Any]) -> MatchResult:
        for key, pattern in self._regexps:
            if pattern.search(self._text(record, key)) is None:
                return MatchResult.rejected()
        for key, pattern in self._excludes:
            if pattern.search(self._text(record, key)) is not None:
                return MatchResult.rejected()
        return MatchResult(matched=True, captured=record)

    def _text(self, record: Mapping[str, Any], key: str) -> str:
        value = record.get(key)
        try:
            return to_text(value)
        except UnicodeError as e:
            if not self._replace_invalid_sequence:
                raise InvalidSequenceError(key, e) from e
            # Single retry: sanitize_text() cannot fail for str/bytes input
            return sanitize_text(value)
