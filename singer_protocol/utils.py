"""Utility functions shared by the Singer protocol codecs."""

from __future__ import annotations

import json
import math
import re
from datetime import datetime
from typing import Any, Optional

from singer_protocol.errors import (
    FieldError,
    MalformedJsonError,
    MissingRequiredFieldError,
    WrongFieldKindError,
)

RFC3339_NAIVE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?", re.ASCII)
RFC3339_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})", re.ASCII)

_KINDS: dict[str, tuple[type, ...]] = {
    "object": (dict,),
    "array": (list,),
    "string": (str,),
    "boolean": (bool,),
    "integer": (int,),
    "number": (int, float),
}


def dumps(value: Any, indent: Optional[int] = None) -> str:
    """Serialize a JSON value to text.

    Without `indent` the output is compact and always fits on one line: control characters inside strings are escaped
    by the encoder. NaN and infinities are refused because they are not JSON.
    """
    separators = (",", ":") if indent is None else (",", ": ")
    return json.dumps(value, separators=separators, indent=indent, ensure_ascii=False, allow_nan=False)


def _reject_constant(name: str) -> Any:
    raise MalformedJsonError(f"{name} is not a valid JSON number")


def _parse_float(literal: str) -> float:
    value = float(literal)
    if math.isinf(value):
        raise MalformedJsonError(f"{literal} is out of range for a JSON number")
    return value


def loads(text: str | bytes) -> Any:
    """Parse JSON text, raising MalformedJsonError for anything that is not strict, finite JSON."""
    try:
        return json.loads(text, parse_constant=_reject_constant, parse_float=_parse_float)
    except MalformedJsonError:
        raise
    except ValueError as exception:
        # JSONDecodeError, UnicodeDecodeError and the integer digit limit are all ValueErrors
        raise MalformedJsonError(str(exception)) from exception


def is_kind(value: Any, kind: str) -> bool:
    """Return True when value is a JSON value of the named kind. Booleans are never numbers."""
    if kind in ("integer", "number") and isinstance(value, bool):
        return False
    return isinstance(value, _KINDS[kind])


def _fail(error: Optional[type[FieldError]], field: str, reason: str) -> FieldError:
    if error is None:
        return WrongFieldKindError(field, reason)
    return error(field, reason)


def required_field(
    data: dict[str, Any],
    field: str,
    kind: Optional[str] = None,
    error: Optional[type[FieldError]] = None,
) -> Any:
    """Return data[field], which must be present and, when `kind` is given, of that JSON kind.

    A field without a kind accepts any JSON value, null included. `error` replaces both MissingRequiredFieldError and
    WrongFieldKindError when given.
    """
    if field not in data:
        if error is None:
            raise MissingRequiredFieldError(field)
        raise error(field, "required field is missing")
    value = data[field]
    if kind is not None and not is_kind(value, kind):
        raise _fail(error, field, f"expected {kind}, got {type(value).__name__}")
    return value


def optional_field(
    data: dict[str, Any],
    field: str,
    kind: str,
    error: Optional[type[FieldError]] = None,
) -> Any:
    """Return data[field] or None. An explicit null is read the same as an absent key."""
    value = data.get(field)
    if value is None:
        return None
    if not is_kind(value, kind):
        raise _fail(error, field, f"expected {kind}, got {type(value).__name__}")
    return value


def string_list(value: list[Any], field: str, error: Optional[type[FieldError]] = None) -> tuple[str, ...]:
    """Check that every item of a JSON array is a string and return the items as a tuple."""
    for item in value:
        if not isinstance(item, str):
            raise _fail(error, field, f"expected an array of strings, found {type(item).__name__}")
    return tuple(value)


def format_datetime(value: datetime) -> str:
    """Format an aware datetime as an RFC 3339 timestamp with an explicit offset."""
    return value.isoformat()


def parse_datetime(value: str, field: str) -> datetime:
    """Parse an RFC 3339 timestamp. Timestamps without a timezone offset are rejected."""
    if not RFC3339_PATTERN.fullmatch(value):
        if RFC3339_NAIVE_PATTERN.fullmatch(value):
            raise WrongFieldKindError(field, f"timestamp {value!r} lacks a timezone offset")
        raise WrongFieldKindError(field, f"invalid RFC 3339 timestamp {value!r}")
    try:
        return datetime.fromisoformat(value.upper())
    except ValueError as exception:
        raise WrongFieldKindError(field, f"invalid RFC 3339 timestamp {value!r}") from exception
