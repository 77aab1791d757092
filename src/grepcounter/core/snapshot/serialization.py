"""Type-preserving JSON serialization for snapshot files.

Snapshot payloads are whatever the matcher captured: text values in
single-field mode, whole records in multi-field mode. Records may carry
datetime values (parsed timestamps) or bytes (raw fields), which plain
json.dumps() cannot round-trip.

Such values are wrapped in collision-safe type envelopes with the
``__grepcounter_type__`` and ``__grepcounter_value__`` keys. Record dicts that
coincidentally contain the reserved key are escaped before encoding, so
they are never mistaken for an envelope on the way back.

NaN and Infinity are rejected: they are not valid JSON and would not
survive a reload.
"""

from __future__ import annotations

import base64
import json
import math
from datetime import UTC, datetime
from typing import Any

_ENVELOPE_TYPE_KEY = "__grepcounter_type__"
_ENVELOPE_VALUE_KEY = "__grepcounter_value__"


class SnapshotEncoder(json.JSONEncoder):
    """JSON encoder that wraps datetime and bytes in type envelopes."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            if obj.tzinfo is None:
                return {_ENVELOPE_TYPE_KEY: "naive_datetime", _ENVELOPE_VALUE_KEY: obj.isoformat()}
            return {_ENVELOPE_TYPE_KEY: "datetime", _ENVELOPE_VALUE_KEY: obj.astimezone(UTC).isoformat()}
        if isinstance(obj, bytes):
            return {_ENVELOPE_TYPE_KEY: "bytes", _ENVELOPE_VALUE_KEY: base64.b64encode(obj).decode("ascii")}
        return super().default(obj)


def _reject_nan_infinity(obj: Any) -> Any:
    """Recursively check for NaN/Infinity in data structure.

    Raises:
        ValueError: If NaN or Infinity found
    """
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            raise ValueError(f"Cannot serialize non-finite float: {obj}")
    elif isinstance(obj, dict):
        for v in obj.values():
            _reject_nan_infinity(v)
    elif isinstance(obj, list | tuple):
        for v in obj:
            _reject_nan_infinity(v)
    return obj


def _escape_reserved_keys(obj: Any) -> Any:
    """Recursively escape user dicts that coincidentally contain the reserved key."""
    if isinstance(obj, dict):
        escaped = {k: _escape_reserved_keys(v) for k, v in obj.items()}
        if _ENVELOPE_TYPE_KEY in escaped:
            return {
                _ENVELOPE_TYPE_KEY: "escaped_dict",
                _ENVELOPE_VALUE_KEY: escaped,
            }
        return escaped
    if isinstance(obj, list | tuple):
        return [_escape_reserved_keys(v) for v in obj]
    return obj


def snapshot_dumps(obj: Any) -> str:
    """Serialize object to JSON with type preservation.

    Raises:
        ValueError: If data contains NaN or Infinity
        TypeError: If data contains non-serializable types
    """
    _reject_nan_infinity(obj)
    escaped = _escape_reserved_keys(obj)
    return json.dumps(escaped, cls=SnapshotEncoder, allow_nan=False, ensure_ascii=False)


def _restore_types(obj: Any) -> Any:
    """Recursively restore type-tagged values."""
    if isinstance(obj, dict):
        if _ENVELOPE_TYPE_KEY in obj and _ENVELOPE_VALUE_KEY in obj and len(obj) == 2:
            envelope_type = obj[_ENVELOPE_TYPE_KEY]
            envelope_value = obj[_ENVELOPE_VALUE_KEY]

            if envelope_type in ("datetime", "naive_datetime") and isinstance(envelope_value, str):
                return datetime.fromisoformat(envelope_value)
            if envelope_type == "bytes" and isinstance(envelope_value, str):
                return base64.b64decode(envelope_value)
            if envelope_type == "escaped_dict" and isinstance(envelope_value, dict):
                return {k: _restore_types(v) for k, v in envelope_value.items()}

        return {k: _restore_types(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_restore_types(v) for v in obj]
    return obj


def snapshot_loads(s: str) -> Any:
    """Deserialize JSON string with type restoration.

    Raises:
        json.JSONDecodeError: If string is not valid JSON
    """
    return _restore_types(json.loads(s))
