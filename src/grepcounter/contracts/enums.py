"""Modes and kinds used across subsystem boundaries.

Every value here appears in configuration files, so the string values are
part of the public contract and must not change.
"""

from enum import StrEnum


class AggregateMode(StrEnum):
    """How matched records are bucketed between flushes.

    IN_TAG buckets by the raw input tag and derives the output tag after the
    flush. OUT_TAG derives the output tag first and buckets by it, so several
    input tags collapsing to one output tag share a single count. ALL keeps a
    single global bucket routed to a fixed tag.
    """

    IN_TAG = "in_tag"
    OUT_TAG = "out_tag"
    ALL = "all"


class Comparator(StrEnum):
    """Legacy comparator paired with the ``threshold`` option."""

    GREATER_EQUAL = ">="
    LESS_EQUAL = "<="


class MatchMode(StrEnum):
    """Which predicate layout the matcher runs."""

    SINGLE_FIELD = "single_field"
    MULTI_FIELD = "multi_field"


class TagStepKind(StrEnum):
    """Kinds of output-tag rewriting steps.

    Steps are applied in declaration order of the precomputed plan, see
    grepcounter.engine.tagging.build_tag_plan().
    """

    FIXED = "fixed"
    REMOVE_PREFIX = "remove_prefix"
    REMOVE_SUFFIX = "remove_suffix"
    REMOVE_SLICE = "remove_slice"
    ADD_PREFIX = "add_prefix"
    ADD_SUFFIX = "add_suffix"
