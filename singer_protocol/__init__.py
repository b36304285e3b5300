"""Message, metric and catalog model of the Singer protocol, with its JSON wire codecs."""

from singer_protocol.catalog import (
    Catalog,
    Metadata,
    Stream,
    StreamMetadata,
    decode_catalog,
    encode_catalog,
    get_standard_metadata,
)
from singer_protocol.errors import (
    DecodeError,
    MalformedJsonError,
    MissingRequiredFieldError,
    SchemaViolationError,
    UnknownMessageTypeError,
    UnknownMetricTypeError,
    WrongFieldKindError,
)
from singer_protocol.messages import (
    Message,
    RecordMessage,
    SchemaMessage,
    StateMessage,
    decode_message,
    encode_message,
    format_message,
    message_from_dict,
    message_to_dict,
)
from singer_protocol.metrics import (
    Metric,
    MetricValue,
    decode_metric,
    encode_metric,
    format_metric_line,
    log_metric,
    metric_from_dict,
    metric_to_dict,
)
from singer_protocol.types import Include, MessageType, MetricType, ReplicationMethod

__all__ = [
    "Catalog",
    "DecodeError",
    "Include",
    "MalformedJsonError",
    "Message",
    "MessageType",
    "Metadata",
    "Metric",
    "MetricType",
    "MetricValue",
    "MissingRequiredFieldError",
    "RecordMessage",
    "ReplicationMethod",
    "SchemaMessage",
    "SchemaViolationError",
    "StateMessage",
    "Stream",
    "StreamMetadata",
    "UnknownMessageTypeError",
    "UnknownMetricTypeError",
    "WrongFieldKindError",
    "decode_catalog",
    "decode_message",
    "decode_metric",
    "encode_catalog",
    "encode_message",
    "encode_metric",
    "format_message",
    "format_metric_line",
    "get_standard_metadata",
    "log_metric",
    "message_from_dict",
    "message_to_dict",
    "metric_from_dict",
    "metric_to_dict",
]
