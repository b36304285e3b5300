"""Messages exchanged between a tap and a target.

Each message is written as one JSON object on one line. The `type` key is the only discriminator: RECORD messages carry
extracted data, SCHEMA messages describe the records that follow for a stream and STATE messages carry an opaque
checkpoint that targets hand back to the tap unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, ClassVar, Optional, Union

from typing_extensions import assert_never

from singer_protocol.errors import MissingRequiredFieldError, UnknownMessageTypeError, WrongFieldKindError
from singer_protocol.types import MessageType
from singer_protocol.utils import (
    dumps,
    format_datetime,
    loads,
    optional_field,
    parse_datetime,
    required_field,
    string_list,
)


@dataclass(frozen=True)
class RecordMessage:
    """One unit of extracted data, shaped by the latest SCHEMA message for the same stream."""

    message_type: ClassVar[MessageType] = MessageType.RECORD

    stream: str
    record: Any
    time_extracted: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.time_extracted is None:
            return
        offset = self.time_extracted.utcoffset()
        if offset is None:
            raise ValueError("time_extracted must be timezone-aware")
        # RFC 3339 offsets are whole minutes
        if offset % timedelta(minutes=1):
            raise ValueError(f"time_extracted offset {offset} is not a whole number of minutes")


@dataclass(frozen=True)
class SchemaMessage:
    """Declares the JSON Schema of the records that follow for `stream`."""

    message_type: ClassVar[MessageType] = MessageType.SCHEMA

    stream: str
    schema: Any
    key_properties: tuple[str, ...] = ()
    bookmark_properties: Optional[tuple[str, ...]] = None

    def __post_init__(self) -> None:
        # frozen dataclass, so object.__setattr__ is needed to normalize sequences
        object.__setattr__(self, "key_properties", tuple(self.key_properties))
        if self.bookmark_properties is not None:
            object.__setattr__(self, "bookmark_properties", tuple(self.bookmark_properties))


@dataclass(frozen=True)
class StateMessage:
    """Opaque checkpoint. Its content is only ever round-tripped."""

    message_type: ClassVar[MessageType] = MessageType.STATE

    value: Any


Message = Union[RecordMessage, SchemaMessage, StateMessage]


def message_to_dict(message: Message) -> dict[str, Any]:
    """Return the wire object for a message, `type` first and unset optional fields omitted."""
    result: dict[str, Any] = {"type": message.message_type.value}
    if isinstance(message, RecordMessage):
        result["stream"] = message.stream
        result["record"] = message.record
        if message.time_extracted is not None:
            result["time_extracted"] = format_datetime(message.time_extracted)
    elif isinstance(message, SchemaMessage):
        result["stream"] = message.stream
        result["schema"] = message.schema
        result["key_properties"] = list(message.key_properties)
        if message.bookmark_properties is not None:
            result["bookmark_properties"] = list(message.bookmark_properties)
    elif isinstance(message, StateMessage):
        result["value"] = message.value
    else:
        assert_never(message)
    return result


def _record_from_dict(data: dict[str, Any]) -> RecordMessage:
    time_extracted = optional_field(data, "time_extracted", "string")
    return RecordMessage(
        stream=required_field(data, "stream", "string"),
        record=required_field(data, "record"),
        time_extracted=parse_datetime(time_extracted, "time_extracted") if time_extracted is not None else None,
    )


def _schema_from_dict(data: dict[str, Any]) -> SchemaMessage:
    bookmark_properties = optional_field(data, "bookmark_properties", "array")
    return SchemaMessage(
        stream=required_field(data, "stream", "string"),
        schema=required_field(data, "schema"),
        key_properties=string_list(required_field(data, "key_properties", "array"), "key_properties"),
        bookmark_properties=(
            string_list(bookmark_properties, "bookmark_properties") if bookmark_properties is not None else None
        ),
    )


def _state_from_dict(data: dict[str, Any]) -> StateMessage:
    return StateMessage(value=required_field(data, "value"))


_DECODERS: dict[str, Callable[[dict[str, Any]], Message]] = {
    MessageType.RECORD.value: _record_from_dict,
    MessageType.SCHEMA.value: _schema_from_dict,
    MessageType.STATE.value: _state_from_dict,
}


def message_from_dict(data: Any) -> Message:
    """Build a message from its parsed wire object. Keys a message type does not know are ignored."""
    if not isinstance(data, dict):
        raise WrongFieldKindError("message", f"expected object, got {type(data).__name__}")
    if "type" not in data:
        raise MissingRequiredFieldError("type")
    message_type = data["type"]
    decoder = _DECODERS.get(message_type) if isinstance(message_type, str) else None
    if decoder is None:
        raise UnknownMessageTypeError(message_type)
    return decoder(data)


def encode_message(message: Message) -> str:
    """Serialize a message to a single line of JSON, without the trailing newline."""
    return dumps(message_to_dict(message))


def format_message(message: Message) -> str:
    """Serialize a message as a newline-terminated line, ready to be written to the data stream."""
    return encode_message(message) + "\n"


def decode_message(line: str | bytes) -> Message:
    """Parse one line of the data stream into a message."""
    return message_from_dict(loads(line))
