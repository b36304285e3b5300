"""Errors raised while decoding Singer protocol documents."""

from __future__ import annotations

from typing import Any


class DecodeError(ValueError):
    """Base class for every decode failure."""


class MalformedJsonError(DecodeError):
    """The input is not valid JSON."""


class UnknownMessageTypeError(DecodeError):
    """The message `type` is not one of RECORD, SCHEMA or STATE."""

    def __init__(self, message_type: Any) -> None:
        self.message_type = message_type
        super().__init__(f"Unknown message type: {message_type!r}")


class UnknownMetricTypeError(DecodeError):
    """The metric `type` is not one of counter or timer."""

    def __init__(self, metric_type: Any) -> None:
        self.metric_type = metric_type
        super().__init__(f"Unknown metric type: {metric_type!r}")


class FieldError(DecodeError):
    """A decode failure attributed to one field of a JSON object."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        super().__init__(f"{field}: {reason}")


class MissingRequiredFieldError(FieldError):
    """A required key is absent."""

    def __init__(self, field: str) -> None:
        super().__init__(field, "required field is missing")


class WrongFieldKindError(FieldError):
    """A key holds a JSON value of the wrong kind."""


class SchemaViolationError(FieldError):
    """A catalog, stream or metadata field is missing or has the wrong kind."""
