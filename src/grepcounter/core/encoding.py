# src/grepcounter/core/encoding.py
"""Text conversion and invalid-sequence repair for matched field values.

Field values arrive from the host as whatever the upstream parser produced:
str, bytes read straight off a socket, str decoded with surrogateescape, or
plain numbers. Patterns are str patterns, so every value is turned into
text first. Invalid UTF-8 surfaces as UnicodeError during that conversion.

sanitize_text() is the repair path: every invalid or undefined sequence is
replaced with a single '?'.
"""

import codecs
from typing import Any

REPLACEMENT_CHAR = "?"
_ERROR_HANDLER = "grepcounter.question_mark"


def _question_mark(exc: UnicodeError) -> tuple[str, int]:
    if isinstance(exc, UnicodeDecodeError | UnicodeEncodeError | UnicodeTranslateError):
        return REPLACEMENT_CHAR, exc.end
    raise exc


codecs.register_error(_ERROR_HANDLER, _question_mark)


def to_text(value: Any) -> str:
    """Convert a field value to text, strictly.

    None becomes the empty string, so a missing field can still be tested
    against a pattern (and only matches patterns that accept "").

    Raises:
        UnicodeDecodeError: bytes value is not valid UTF-8
        UnicodeEncodeError: str value holds lone surrogates
    """
    if value is None:
        return ""
    if isinstance(value, bytes | bytearray):
        return bytes(value).decode("utf-8")
    if isinstance(value, str):
        # Lone surrogates (e.g. from surrogateescape decoding) are invalid text
        value.encode("utf-8")
        return value
    return str(value)


def sanitize_text(value: Any) -> str:
    """Convert a field value to text, replacing invalid sequences with '?'.

    Never raises for str or bytes input. Valid input comes back unchanged
    (modulo the same conversion to_text() performs).
    """
    if value is None:
        return ""
    if isinstance(value, bytes | bytearray):
        return bytes(value).decode("utf-8", errors=_ERROR_HANDLER)
    if isinstance(value, str):
        return value.encode("utf-8", errors=_ERROR_HANDLER).decode("utf-8")
    return str(value)
