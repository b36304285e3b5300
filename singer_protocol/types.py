"""Closed enumerations used on the Singer wire."""

from enum import Enum

from singer_sdk.singerlib.catalog import Metadata

# Whether a stream or property is offered for selection: available, automatic or unsupported.
Include = Metadata.InclusionType


class ReplicationMethod(str, Enum):
    """Strategy used to synchronize a stream.

    FULL_TABLE reloads everything, INCREMENTAL resumes from a replication key and LOG_BASED follows a change log.
    """

    FULL_TABLE = "FULL_TABLE"
    INCREMENTAL = "INCREMENTAL"
    LOG_BASED = "LOG_BASED"


class MetricType(str, Enum):
    """Kind of a metric data point."""

    COUNTER = "counter"
    TIMER = "timer"


class MessageType(str, Enum):
    """Discriminator of a message on the main data channel."""

    RECORD = "RECORD"
    SCHEMA = "SCHEMA"
    STATE = "STATE"
