# src/grepcounter/engine/tagging.py
"""Output tag derivation.

The output tag is computed from the input tag by a plan: an ordered tuple
of TagStep values built once at configuration time. TagTransformer applies
the plan uniformly; there are no per-configuration closures.

Step order (fixed, independent of option order in the settings file):

    FIXED short-circuits everything else, otherwise
    REMOVE_PREFIX -> REMOVE_SUFFIX -> REMOVE_SLICE -> ADD_PREFIX -> ADD_SUFFIX

Prefix and suffix operands are stored without their joining dot, so
``add_tag_prefix: foo`` and ``add_tag_prefix: foo.`` build identical plans.

Example:
    plan = build_tag_plan(remove_tag_prefix="syslog", add_tag_prefix="foo")
    TagTransformer(plan).transform("syslog.host1")  # "foo.host1"
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from grepcounter.contracts.enums import TagStepKind
from grepcounter.contracts.errors import ConfigurationError

# Prefix added when no tag option at all is configured
DEFAULT_TAG_PREFIX = "count"

_SLICE_RE = re.compile(r"^\s*(-?\d+)\s*(\.{2,3})\s*(-?\d+)\s*$")


@dataclass(frozen=True)
class SliceRange:
    """Contiguous range of dot-delimited tag segments to keep.

    ``a..b`` is inclusive of b, ``a...b`` excludes b. Negative bounds count
    from the end, so ``0..-2`` keeps everything but the last segment.
    """

    start: int
    end: int
    inclusive: bool

    @classmethod
    def parse(cls, text: str) -> SliceRange:
        """Parse ``a..b`` / ``a...b``.

        Raises:
            ConfigurationError: If text is not a range expression
        """
        match = _SLICE_RE.match(text)
        if match is None:
            raise ConfigurationError(f"remove_tag_slice must look like 'a..b' or 'a...b' (integers), got {text!r}")
        start, dots, end = match.groups()
        return cls(start=int(start), end=int(end), inclusive=(dots == ".."))

    def _stop(self) -> int | None:
        if not self.inclusive:
            return self.end
        # Inclusive -1 means "through the last segment"
        if self.end == -1:
            return None
        return self.end + 1

    def apply(self, tag: str) -> str:
        segments = tag.split(".")
        return ".".join(segments[self.start : self._stop()])

    def __str__(self) -> str:
        return f"{self.start}{'..' if self.inclusive else '...'}{self.end}"


@dataclass(frozen=True)
class TagStep:
    """One rewriting step. operand is a str for every kind but REMOVE_SLICE."""

    kind: TagStepKind
    operand: str | SliceRange

    def apply(self, tag: str) -> str:
        match self.kind:
            case TagStepKind.FIXED:
                return str(self.operand)
            case TagStepKind.REMOVE_PREFIX:
                head = f"{self.operand}."
                return tag[len(head) :] if tag.startswith(head) else tag
            case TagStepKind.REMOVE_SUFFIX:
                tail = f".{self.operand}"
                return tag[: -len(tail)] if tag.endswith(tail) else tag
            case TagStepKind.REMOVE_SLICE:
                if not isinstance(self.operand, SliceRange):
                    raise TypeError(f"remove_slice step needs a SliceRange operand, got {type(self.operand).__name__}")
                return self.operand.apply(tag)
            case TagStepKind.ADD_PREFIX:
                return f"{self.operand}.{tag}"
            case TagStepKind.ADD_SUFFIX:
                return f"{tag}.{self.operand}"
        raise AssertionError(f"unhandled tag step kind: {self.kind}")


def _strip_joining_dot(value: str, *, option: str, leading: bool) -> str:
    stripped = value[1:] if leading and value.startswith(".") else value
    if not leading and stripped.endswith("."):
        stripped = stripped[:-1]
    if not stripped:
        raise ConfigurationError(f"{option} must not be empty")
    return stripped


def build_tag_plan(
    *,
    tag: str | None = None,
    add_tag_prefix: str | None = None,
    remove_tag_prefix: str | None = None,
    add_tag_suffix: str | None = None,
    remove_tag_suffix: str | None = None,
    remove_tag_slice: str | None = None,
) -> tuple[TagStep, ...]:
    """Build the ordered rewriting plan for the given tag options.

    With no option set at all, the plan adds the ``count`` prefix.

    Raises:
        ConfigurationError: On empty operands or malformed slice syntax
    """
    if tag is not None:
        return (TagStep(TagStepKind.FIXED, tag),)

    if all(opt is None for opt in (add_tag_prefix, remove_tag_prefix, add_tag_suffix, remove_tag_suffix, remove_tag_slice)):
        add_tag_prefix = DEFAULT_TAG_PREFIX

    steps: list[TagStep] = []
    if remove_tag_prefix is not None:
        steps.append(TagStep(TagStepKind.REMOVE_PREFIX, _strip_joining_dot(remove_tag_prefix, option="remove_tag_prefix", leading=False)))
    if remove_tag_suffix is not None:
        steps.append(TagStep(TagStepKind.REMOVE_SUFFIX, _strip_joining_dot(remove_tag_suffix, option="remove_tag_suffix", leading=True)))
    if remove_tag_slice is not None:
        steps.append(TagStep(TagStepKind.REMOVE_SLICE, SliceRange.parse(remove_tag_slice)))
    if add_tag_prefix is not None:
        steps.append(TagStep(TagStepKind.ADD_PREFIX, _strip_joining_dot(add_tag_prefix, option="add_tag_prefix", leading=False)))
    if add_tag_suffix is not None:
        steps.append(TagStep(TagStepKind.ADD_SUFFIX, _strip_joining_dot(add_tag_suffix, option="add_tag_suffix", leading=True)))
    return tuple(steps)


class TagTransformer:
    """Applies a tag plan to input tags.

    Stateless after construction and safe to share between threads.
    """

    def __init__(self, plan: tuple[TagStep, ...]) -> None:
        self._plan = plan

    @property
    def plan(self) -> tuple[TagStep, ...]:
        return self._plan

    @property
    def is_fixed(self) -> bool:
        """True when every input tag maps to the same output tag."""
        return bool(self._plan) and self._plan[0].kind is TagStepKind.FIXED

    def transform(self, tag: str) -> str:
        for step in self._plan:
            tag = step.apply(tag)
        return tag
