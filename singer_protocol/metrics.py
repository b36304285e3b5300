"""Metrics a tap reports about its read operations.

Metrics are not part of the data stream. A tap logs them on a side channel as `INFO METRIC: <metric-json>` lines, which
log consumers parse for monitoring. The metric name and the tag keys should only contain letters, digits, underscores
and dashes; this is a naming convention and is not checked here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import Logger, getLogger
from typing import Any, Optional, Union

from singer_protocol.errors import UnknownMetricTypeError, WrongFieldKindError
from singer_protocol.types import MetricType
from singer_protocol.utils import dumps, is_kind, loads, required_field

MetricValue = Union[int, float]

LOGGER: Logger = getLogger(__name__)


@dataclass(frozen=True)
class Metric:
    """A single metric data point.

    An integer `value` stays an integer on the wire and a float stays a float, so a counter of 42 is written as `42`
    and never as `42.0`.
    """

    metric_type: MetricType
    metric: str
    value: MetricValue
    tags: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metric_type", MetricType(self.metric_type))
        if not is_kind(self.value, "number"):
            raise TypeError(f"Metric value must be an int or a float, got {type(self.value).__name__}")


def metric_to_dict(metric: Metric) -> dict[str, Any]:
    """Return the bare wire object for a metric."""
    return {
        "type": metric.metric_type.value,
        "metric": metric.metric,
        "value": metric.value,
        "tags": metric.tags,
    }


def metric_from_dict(data: Any) -> Metric:
    """Build a metric from its parsed wire object.

    The JSON parser already classifies numbers: a literal without a decimal point or exponent is an int, anything else
    a float.
    """
    if not isinstance(data, dict):
        raise WrongFieldKindError("metric", f"expected object, got {type(data).__name__}")
    metric_type = required_field(data, "type")
    try:
        parsed_type = MetricType(metric_type)
    except ValueError as exception:
        raise UnknownMetricTypeError(metric_type) from exception
    return Metric(
        metric_type=parsed_type,
        metric=required_field(data, "metric", "string"),
        value=required_field(data, "value", "number"),
        tags=required_field(data, "tags", "object"),
    )


def encode_metric(metric: Metric) -> str:
    """Serialize a metric to a bare single-line JSON object."""
    return dumps(metric_to_dict(metric))


def decode_metric(text: str | bytes) -> Metric:
    """Parse a bare metric JSON object, without the `INFO METRIC:` prefix."""
    return metric_from_dict(loads(text))


def format_metric_line(metric: Metric) -> str:
    """Return the side-channel line for a metric, for callers that write log lines themselves."""
    return f"INFO METRIC: {encode_metric(metric)}"


def log_metric(metric: Metric, logger: Optional[Logger] = None) -> None:
    """Log a metric at INFO level.

    With the conventional Singer log format (`%(levelname)s %(message)s`) the record renders as
    `INFO METRIC: <metric-json>`.
    """
    (logger or LOGGER).info("METRIC: %s", encode_metric(metric))
