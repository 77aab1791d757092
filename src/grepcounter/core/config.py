# src/grepcounter/core/config.py
"""
Configuration schema and loading for grepcounter.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.

Two generations of option names are accepted and normalized here, once,
so the engine only ever sees the canonical form:

- ``output_tag`` -> ``tag``
- ``output_with_joined_delimiter`` -> ``delimiter``
- ``aggregate: tag`` -> ``aggregate: in_tag``
- ``regexp1``..``regexp20`` / ``exclude1``..``exclude20`` ("<field> <pattern>")
  -> ``regexps`` / ``excludes`` mappings
- ``threshold`` + ``comparator`` -> one of the four bound options (see
  grepcounter.engine.decider.ThresholdRule.from_settings)
"""

import os
import re
from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from grepcounter.contracts.enums import AggregateMode, Comparator, MatchMode
from grepcounter.contracts.errors import ConfigurationError

# Highest N accepted for the numbered regexpN / excludeN options
REGEXP_MAX_NUM = 20

_LEGACY_ALIASES: dict[str, str] = {
    "output_tag": "tag",
    "output_with_joined_delimiter": "delimiter",
}

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: Any) -> float:
    """Parse a duration in seconds from a number or a "30s"/"5m"/"1h"/"1d" string.

    Raises:
        ValueError: If value is neither a number nor a duration string
    """
    if isinstance(value, bool):
        raise ValueError(f"duration must be a number of seconds, got {value!r}")
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        match = _DURATION_RE.match(value)
        if match is not None:
            number, unit = match.groups()
            return float(number) * _DURATION_UNITS[unit]
    raise ValueError(f"duration must be seconds or a string like '30s', '5m', '1h', '1d', got {value!r}")


def _fold_numbered_rules(data: dict[str, Any], prefix: str, target: str) -> None:
    """Move regexpN/excludeN options into the ``regexps``/``excludes`` mapping.

    Declaration order is the numeric order, matching the order rules are
    evaluated in. Explicit mapping entries come first.
    """
    rules: dict[str, str] = dict(data.get(target) or {})
    for i in range(1, REGEXP_MAX_NUM + 1):
        option = f"{prefix}{i}"
        if option not in data:
            continue
        raw = data.pop(option)
        if raw is None:
            continue
        parts = str(raw).split(" ", 1)
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ConfigurationError(f"{option} does not contain 2 parameters ('<field> <pattern>'): {raw!r}")
        key, pattern = parts
        if key in rules:
            raise ConfigurationError(f"{option} contains a duplicated key, {key}")
        rules[key] = pattern
    if rules:
        data[target] = rules


def _compile(pattern: str, option: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"{option} is not a valid regular expression ({pattern!r}): {e}") from e


def _check_writable(store_file: str) -> None:
    path = Path(store_file).expanduser()
    if path.exists():
        if path.is_dir() or not os.access(path, os.W_OK):
            raise ConfigurationError(f"{store_file} is not writable")
        return
    parent = path.parent if str(path.parent) else Path(".")
    if not parent.is_dir() or not os.access(parent, os.W_OK):
        raise ConfigurationError(f"{store_file} is not writable")


class GrepCounterSettings(BaseModel):
    """Validated grepcounter configuration.

    Example YAML (single-field style):
        input_key: message
        regexp: WARN
        exclude: favicon
        count_interval: 60s
        greater_equal: 3
        add_tag_prefix: alert
        delimiter: "\\n"

    Example YAML (multi-field style):
        regexps:
          message: WARN
          host: ^web
        excludes:
          path: favicon
        aggregate: all
        tag: warn.count
    """

    model_config = {"frozen": True, "extra": "forbid"}

    # Match rules
    input_key: str | None = Field(default=None, description="Field tested in single-field mode")
    regexp: str | None = Field(default=None, description="Include pattern (single-field mode)")
    exclude: str | None = Field(default=None, description="Exclude pattern (single-field mode)")
    regexps: dict[str, str] = Field(default_factory=dict, description="field -> include pattern, all must match")
    excludes: dict[str, str] = Field(default_factory=dict, description="field -> exclude pattern, any match rejects")
    replace_invalid_sequence: bool = Field(default=False, description="Replace invalid byte sequences with '?' and retry")

    # Window
    count_interval: float = Field(default=5.0, gt=0, description="Window length in seconds")

    # Thresholds
    threshold: int | None = Field(default=None, description="Legacy bound, paired with comparator")
    comparator: Comparator = Field(default=Comparator.GREATER_EQUAL, description="Legacy comparator for threshold")
    less_than: float | None = None
    less_equal: float | None = None
    greater_than: float | None = None
    greater_equal: float | None = None

    # Routing
    aggregate: AggregateMode = Field(default=AggregateMode.IN_TAG, description="Bucketing mode")
    tag: str | None = Field(default=None, description="Fixed output tag")
    add_tag_prefix: str | None = None
    remove_tag_prefix: str | None = None
    add_tag_suffix: str | None = None
    remove_tag_suffix: str | None = None
    remove_tag_slice: str | None = Field(default=None, description="Segment range to keep, e.g. '0..-2'")

    # Output
    delimiter: str | None = Field(default=None, description="Join matched payloads into one string")

    # Persistence
    store_file: str | None = Field(default=None, description="Snapshot file for restart continuity")

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> Self:
        """Create settings from a dict with a clear error on validation failure.

        Raises:
            ConfigurationError: If configuration is invalid.
        """
        if not isinstance(config, dict):
            raise ConfigurationError(f"Invalid grepcounter configuration: config must be a dict, got {type(config).__name__}.")
        try:
            return cls.model_validate(config)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid grepcounter configuration: {e}") from e

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy_options(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        for legacy, canonical in _LEGACY_ALIASES.items():
            if legacy in data:
                value = data.pop(legacy)
                # The current option name wins when both are given
                if data.get(canonical) is None:
                    data[canonical] = value

        if data.get("aggregate") == "tag":
            data["aggregate"] = AggregateMode.IN_TAG.value

        _fold_numbered_rules(data, "regexp", "regexps")
        _fold_numbered_rules(data, "exclude", "excludes")
        return data

    @field_validator("count_interval", mode="before")
    @classmethod
    def _parse_interval(cls, v: Any) -> float:
        return parse_duration(v)

    @field_validator("regexps", "excludes")
    @classmethod
    def _validate_rule_fields(cls, v: dict[str, str]) -> dict[str, str]:
        for key in v:
            if not key or not key.strip():
                raise ValueError("field names in regexps/excludes must not be empty")
        return v

    @model_validator(mode="after")
    def _validate_match_mode(self) -> Self:
        if self.input_key is not None and (self.regexps or self.excludes):
            raise ConfigurationError(
                "Classic style `input_key` (with regexp/exclude) and new style `regexps`/`excludes` (regexpN/excludeN) can not be used together"
            )
        if self.input_key is None and (self.regexp is not None or self.exclude is not None):
            raise ConfigurationError("`regexp` and `exclude` require `input_key`")

        for option, pattern in (("regexp", self.regexp), ("exclude", self.exclude)):
            if pattern is not None:
                _compile(pattern, option)
        for option, rules in (("regexps", self.regexps), ("excludes", self.excludes)):
            for key, pattern in rules.items():
                _compile(pattern, f"{option}[{key}]")
        return self

    @model_validator(mode="after")
    def _validate_thresholds(self) -> Self:
        modern = (self.less_than, self.less_equal, self.greater_than, self.greater_equal)
        if self.threshold is not None and any(bound is not None for bound in modern):
            raise ConfigurationError(
                "`threshold`/`comparator` can not be combined with less_than, less_equal, greater_than or greater_equal"
            )
        return self

    @model_validator(mode="after")
    def _validate_routing(self) -> Self:
        if self.aggregate == AggregateMode.ALL and self.tag is None:
            raise ConfigurationError("`tag` must be specified with aggregate all")

        # Builds (and discards) the plan so bad operands fail at load time
        from grepcounter.engine.tagging import build_tag_plan

        build_tag_plan(**self.tag_options())
        return self

    @model_validator(mode="after")
    def _validate_store_file(self) -> Self:
        if self.store_file is not None:
            _check_writable(self.store_file)
        return self

    @property
    def match_mode(self) -> MatchMode:
        """Single-field when input_key is set, multi-field otherwise."""
        if self.input_key is not None:
            return MatchMode.SINGLE_FIELD
        return MatchMode.MULTI_FIELD

    def tag_options(self) -> dict[str, str | None]:
        """Tag rewriting options as keyword arguments for build_tag_plan()."""
        return {
            "tag": self.tag,
            "add_tag_prefix": self.add_tag_prefix,
            "remove_tag_prefix": self.remove_tag_prefix,
            "add_tag_suffix": self.add_tag_suffix,
            "remove_tag_suffix": self.remove_tag_suffix,
            "remove_tag_slice": self.remove_tag_slice,
        }

    def fingerprint_material(self) -> dict[str, Any]:
        """Match configuration that decides whether a snapshot is reusable."""
        return {
            "input_key": self.input_key,
            "regexp": self.regexp,
            "exclude": self.exclude,
            "regexps": [[key, pattern] for key, pattern in self.regexps.items()],
            "excludes": [[key, pattern] for key, pattern in self.excludes.items()],
        }


def load_settings(config_path: Path) -> GrepCounterSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (GREPCOUNTER_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated GrepCounterSettings instance

    Raises:
        ConfigurationError: If configuration fails validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="GREPCOUNTER",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; convert to lowercase for Pydantic
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return GrepCounterSettings.from_dict(raw_config)
