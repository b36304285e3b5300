"""JSON Schema documents describing the Singer wire shapes.

Optional properties allow null here because decoders read an explicit null as an absent key, although encoders only
ever omit them.
"""

from singer_sdk import typing as th  # JSON schema typing helpers

from singer_protocol.types import Include, MessageType, MetricType, ReplicationMethod

_REPLICATION_METHODS = [method.value for method in ReplicationMethod]

RECORD_MESSAGE_SCHEMA = th.PropertiesList(
    th.Property("type", th.StringType, required=True, allowed_values=[MessageType.RECORD.value]),
    th.Property("stream", th.StringType, required=True, description="Name of the stream the record belongs to."),
    th.Property(
        "record",
        th.CustomType({}),
        required=True,
        description="The record, conforming to the latest SCHEMA message for the same stream.",
    ),
    th.Property(
        "time_extracted",
        th.DateTimeType,
        description="RFC 3339 timestamp, with a timezone offset, of when the record was extracted.",
    ),
).to_dict()

SCHEMA_MESSAGE_SCHEMA = th.PropertiesList(
    th.Property("type", th.StringType, required=True, allowed_values=[MessageType.SCHEMA.value]),
    th.Property("stream", th.StringType, required=True),
    th.Property("schema", th.CustomType({}), required=True, description="JSON Schema of the stream's records."),
    th.Property("key_properties", th.ArrayType(th.StringType), required=True),
    th.Property("bookmark_properties", th.ArrayType(th.StringType)),
).to_dict()

STATE_MESSAGE_SCHEMA = th.PropertiesList(
    th.Property("type", th.StringType, required=True, allowed_values=[MessageType.STATE.value]),
    th.Property("value", th.CustomType({}), required=True, description="Opaque checkpoint."),
).to_dict()

MESSAGE_SCHEMAS = {
    MessageType.RECORD: RECORD_MESSAGE_SCHEMA,
    MessageType.SCHEMA: SCHEMA_MESSAGE_SCHEMA,
    MessageType.STATE: STATE_MESSAGE_SCHEMA,
}

METRIC_SCHEMA = th.PropertiesList(
    th.Property("type", th.StringType, required=True, allowed_values=[metric_type.value for metric_type in MetricType]),
    th.Property(
        "metric",
        th.StringType,
        required=True,
        description="Metric name, made of letters, digits, underscores and dashes.",
    ),
    th.Property("value", th.NumberType, required=True),
    th.Property("tags", th.ObjectType(), required=True),
).to_dict()

METADATA_SCHEMA = th.ObjectType(
    th.Property(
        "metadata",
        th.ObjectType(
            th.Property("selected", th.BooleanType),
            th.Property("replication-method", th.StringType, allowed_values=_REPLICATION_METHODS),
            th.Property("replication-key", th.StringType),
            th.Property("view-key-properties", th.ArrayType(th.StringType)),
            th.Property("inclusion", th.StringType, allowed_values=[include.value for include in Include]),
            th.Property("selected-by-default", th.BooleanType),
            th.Property("valid-replication-keys", th.ArrayType(th.StringType)),
            th.Property("forced-replication-method", th.StringType, allowed_values=_REPLICATION_METHODS),
            th.Property("table-key-properties", th.ArrayType(th.StringType)),
            th.Property("schema-name", th.StringType),
            th.Property("is-view", th.BooleanType),
            th.Property("row-count", th.IntegerType),
            th.Property("database-name", th.StringType),
            th.Property("sql-datatype", th.StringType),
        ),
        required=True,
    ),
    th.Property(
        "breadcrumb",
        th.ArrayType(th.StringType),
        required=True,
        description='Empty for the whole stream, or ["properties", <name>] for one property.',
    ),
)

STREAM_SCHEMA = th.ObjectType(
    th.Property("stream", th.StringType, required=True, description="Stream name passed to the target."),
    th.Property("tap_stream_id", th.StringType, required=True, description="Unique identifier of the source stream."),
    th.Property("schema", th.CustomType({}), required=True),
    th.Property("table_name", th.StringType),
    th.Property("metadata", th.ArrayType(METADATA_SCHEMA)),
)

CATALOG_SCHEMA = th.PropertiesList(
    th.Property("streams", th.ArrayType(STREAM_SCHEMA), required=True),
).to_dict()
