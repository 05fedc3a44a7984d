"""Decoding and coercion of raw document values.

Meta values travel as JSON-encoded bytes and are decoded per operation.
Coercion rules are shared by filters, boosts, aggregates and sorting so a
value that compares as a number in a filter also sorts as one.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from QueryEngine.core.errors import TypeMismatchError
from QueryEngine.core.models import Document

_TOKEN_SPLIT_RE = re.compile(r"[\W_]+")


def decode_value(raw: bytes, field: str) -> Any:
    """Decode one JSON meta payload.

    Raises:
        TypeMismatchError: If the payload is not valid UTF-8 JSON.
    """
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TypeMismatchError(field, raw, "a JSON-encoded value") from e


def lookup(document: Document, field: str) -> Any | None:
    """Return the decoded value of ``field``, or None when absent or null."""
    raw = document.get(field)
    if raw is None:
        return None
    return decode_value(raw, field)


def try_number(value: Any) -> float | None:
    """Coerce numbers and numeric strings to float; None when not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def as_number(value: Any, field: str) -> float:
    """Coerce a value to float.

    Raises:
        TypeMismatchError: If the value is not numeric.
    """
    number = try_number(value)
    if number is None:
        raise TypeMismatchError(field, value, "numeric")
    return number


def as_numbers(value: Any, field: str) -> list[float]:
    """Coerce a scalar or array value into a list of floats."""
    if isinstance(value, list):
        return [as_number(item, field) for item in value if item is not None]
    return [as_number(value, field)]


def as_string_list(value: Any, field: str) -> list[str]:
    """Coerce a string or string array into a list of strings.

    Raises:
        TypeMismatchError: If the value is neither.
    """
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise TypeMismatchError(field, value, "a string or string array")


def as_text(value: Any, field: str) -> str:
    """Coerce a string or string array into one text block."""
    return " ".join(as_string_list(value, field))


def text_key(value: Any) -> str:
    """Return the string form used for counting and text comparison."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def tokenize(text: str) -> list[str]:
    """Split text into case-folded words.

    Every run of non-alphanumeric characters (including underscores) is a
    separator; empty tokens are dropped.
    """
    return [token for token in _TOKEN_SPLIT_RE.split(text.casefold()) if token]


def values_equal(left: Any, right: Any) -> bool:
    """Compare two decoded values, numerically when both are numeric."""
    left_num = try_number(left)
    right_num = try_number(right)
    if left_num is not None and right_num is not None:
        return left_num == right_num
    return left == right


def compare_values(left: Any, right: Any) -> int:
    """Three-way comparison used for sorting.

    A total order: values rank by class first (numbers and numeric strings,
    then other strings, then any other JSON value), then numerically, by
    string or by compact JSON text within the class.
    """
    left_key = _sort_key(left)
    right_key = _sort_key(right)
    return (left_key > right_key) - (left_key < right_key)


def _sort_key(value: Any) -> tuple[int, Any]:
    number = try_number(value)
    if number is not None:
        return (0, number)
    if isinstance(value, str):
        return (1, value)
    return (2, text_key(value))
