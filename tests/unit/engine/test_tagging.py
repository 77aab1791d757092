"""Tests for output tag plans: SliceRange, TagStep, build_tag_plan, TagTransformer."""

import pytest

from grepcounter.contracts.enums import TagStepKind
from grepcounter.contracts.errors import ConfigurationError
from grepcounter.engine.tagging import DEFAULT_TAG_PREFIX, SliceRange, TagStep, TagTransformer, build_tag_plan


def transform(input_tag: str, /, **options: str) -> str:
    return TagTransformer(build_tag_plan(**options)).transform(input_tag)


class TestSliceRange:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("0..-2", SliceRange(start=0, end=-2, inclusive=True)),
            ("1...3", SliceRange(start=1, end=3, inclusive=False)),
            (" -2 .. -1 ", SliceRange(start=-2, end=-1, inclusive=True)),
        ],
    )
    def test_parse(self, text: str, expected: SliceRange) -> None:
        assert SliceRange.parse(text) == expected

    @pytest.mark.parametrize("text", ["", "0", "0-2", "a..b", "0....2", "0.2"])
    def test_parse_rejects_malformed(self, text: str) -> None:
        with pytest.raises(ConfigurationError, match="remove_tag_slice"):
            SliceRange.parse(text)

    @pytest.mark.parametrize(
        ("text", "tag", "expected"),
        [
            ("0..-2", "syslog.host1", "syslog"),
            ("0..-2", "a.b.c.d", "a.b.c"),
            ("1..-1", "a.b.c.d", "b.c.d"),
            ("0...-1", "a.b.c.d", "a.b.c"),
            ("1..2", "a.b.c.d", "b.c"),
            ("1...2", "a.b.c.d", "b"),
            ("-2..-1", "a.b.c.d", "c.d"),
        ],
    )
    def test_apply(self, text: str, tag: str, expected: str) -> None:
        assert SliceRange.parse(text).apply(tag) == expected

    def test_str_round_trips(self) -> None:
        assert str(SliceRange.parse("0...-2")) == "0...-2"
        assert str(SliceRange.parse("1..3")) == "1..3"


class TestBuildTagPlan:
    def test_no_options_adds_default_prefix(self) -> None:
        assert build_tag_plan() == (TagStep(TagStepKind.ADD_PREFIX, DEFAULT_TAG_PREFIX),)

    def test_fixed_tag_short_circuits(self) -> None:
        plan = build_tag_plan(tag="warn.count", add_tag_prefix="foo", remove_tag_slice="0..1")
        assert plan == (TagStep(TagStepKind.FIXED, "warn.count"),)

    def test_step_order_is_fixed(self) -> None:
        plan = build_tag_plan(
            add_tag_suffix="s",
            add_tag_prefix="p",
            remove_tag_slice="0..-1",
            remove_tag_suffix="rs",
            remove_tag_prefix="rp",
        )
        assert [step.kind for step in plan] == [
            TagStepKind.REMOVE_PREFIX,
            TagStepKind.REMOVE_SUFFIX,
            TagStepKind.REMOVE_SLICE,
            TagStepKind.ADD_PREFIX,
            TagStepKind.ADD_SUFFIX,
        ]

    def test_joining_dot_is_optional(self) -> None:
        assert build_tag_plan(add_tag_prefix="foo.") == build_tag_plan(add_tag_prefix="foo")
        assert build_tag_plan(add_tag_suffix=".foo") == build_tag_plan(add_tag_suffix="foo")
        assert build_tag_plan(remove_tag_prefix="foo.") == build_tag_plan(remove_tag_prefix="foo")
        assert build_tag_plan(remove_tag_suffix=".foo") == build_tag_plan(remove_tag_suffix="foo")

    @pytest.mark.parametrize("option", ["add_tag_prefix", "remove_tag_prefix", "add_tag_suffix", "remove_tag_suffix"])
    def test_empty_operand_rejected(self, option: str) -> None:
        with pytest.raises(ConfigurationError, match=f"{option} must not be empty"):
            build_tag_plan(**{option: ""})


class TestTagStep:
    def test_remove_slice_applies_range(self) -> None:
        step = TagStep(TagStepKind.REMOVE_SLICE, SliceRange(start=0, end=-2, inclusive=True))
        assert step.apply("syslog.host1") == "syslog"

    def test_remove_slice_rejects_string_operand(self) -> None:
        step = TagStep(TagStepKind.REMOVE_SLICE, "0..-2")

        with pytest.raises(TypeError, match="needs a SliceRange operand"):
            step.apply("syslog.host1")


class TestTagTransformer:
    def test_default_prefix(self) -> None:
        assert transform("syslog.host1") == "count.syslog.host1"

    def test_fixed_tag(self) -> None:
        assert transform("syslog.host1", tag="warn.count") == "warn.count"

    def test_fixed_tag_skips_other_steps(self) -> None:
        assert transform("syslog.host1", tag="warn.count", add_tag_prefix="foo", remove_tag_slice="0..0") == "warn.count"

    def test_remove_prefix(self) -> None:
        assert transform("syslog.host1", remove_tag_prefix="syslog") == "host1"

    def test_remove_prefix_requires_segment_boundary(self) -> None:
        assert transform("syslogx.host1", remove_tag_prefix="syslog") == "syslogx.host1"

    def test_remove_suffix(self) -> None:
        assert transform("syslog.host1", remove_tag_suffix="host1") == "syslog"

    def test_add_suffix(self) -> None:
        assert transform("syslog.host1", add_tag_suffix="warn") == "syslog.host1.warn"

    def test_remove_then_add_prefix(self) -> None:
        assert transform("syslog.host1", remove_tag_prefix="syslog", add_tag_prefix="foo") == "foo.host1"

    def test_slice_then_prefix(self) -> None:
        assert transform("syslog.host1", remove_tag_slice="0..-2", add_tag_prefix="foo") == "foo.syslog"

    def test_is_fixed(self) -> None:
        assert TagTransformer(build_tag_plan(tag="x")).is_fixed
        assert not TagTransformer(build_tag_plan()).is_fixed

    def test_plan_exposed(self) -> None:
        plan = build_tag_plan(add_tag_prefix="foo")
        assert TagTransformer(plan).plan is plan
