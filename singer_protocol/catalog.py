"""Catalog, stream and metadata structures.

A catalog describes the streams a tap can extract. It is discovered once, written to a file, edited to select streams
and handed back to the tap, so it is always read and rewritten as a whole document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any, Iterable, Optional, TypeAlias

from singer_sdk.singerlib.catalog import Metadata as SDKMetadata
from singer_sdk.singerlib.catalog import MetadataMapping, SelectionMask
from singer_sdk.singerlib.catalog import StreamMetadata as SDKStreamMetadata
from typing_extensions import Self

from singer_protocol.errors import SchemaViolationError
from singer_protocol.types import Include, ReplicationMethod
from singer_protocol.utils import dumps, is_kind, loads, optional_field, required_field, string_list

Breadcrumb: TypeAlias = tuple[str, ...]

# (attribute, wire key, kind). Wire keys are fixed by the protocol.
_METADATA_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("selected", "selected", "boolean"),
    ("replication_method", "replication-method", "replication_method"),
    ("replication_key", "replication-key", "string"),
    ("view_key_properties", "view-key-properties", "strings"),
    ("inclusion", "inclusion", "include"),
    ("selected_by_default", "selected-by-default", "boolean"),
    ("valid_replication_keys", "valid-replication-keys", "strings"),
    ("forced_replication_method", "forced-replication-method", "replication_method"),
    ("table_key_properties", "table-key-properties", "strings"),
    ("schema_name", "schema-name", "string"),
    ("is_view", "is-view", "boolean"),
    ("row_count", "row-count", "integer"),
    ("database_name", "database-name", "string"),
    ("sql_datatype", "sql-datatype", "string"),
)
_METADATA_WIRE_KEYS = frozenset(key for _, key, _ in _METADATA_FIELDS)


def _read_metadata_value(key: str, value: Any, kind: str) -> Any:
    if kind == "strings":
        if not isinstance(value, list):
            raise SchemaViolationError(key, f"expected array, got {type(value).__name__}")
        return string_list(value, key, SchemaViolationError)
    if kind in ("include", "replication_method"):
        enum_class = Include if kind == "include" else ReplicationMethod
        try:
            return enum_class(value)
        except ValueError as exception:
            raise SchemaViolationError(key, f"unknown token {value!r}") from exception
    if not is_kind(value, kind):
        raise SchemaViolationError(key, f"expected {kind}, got {type(value).__name__}")
    if kind == "integer" and value < 0:
        raise SchemaViolationError(key, "must not be negative")
    return value


@dataclass(frozen=True)
class StreamMetadata:
    """Typed view of one metadata object.

    The wire format does not distinguish metadata supplied to the tap from metadata the tap infers, so both live here
    as optional fields. Keys outside the reserved vocabulary are kept in `extras`.
    """

    # Supplied externally, never inferred by the tap.
    selected: Optional[bool] = None
    replication_method: Optional[ReplicationMethod] = None
    replication_key: Optional[str] = None
    view_key_properties: Optional[tuple[str, ...]] = None

    # Inferred by the tap from the source system.
    inclusion: Optional[Include] = None
    selected_by_default: Optional[bool] = None
    valid_replication_keys: Optional[tuple[str, ...]] = None
    forced_replication_method: Optional[ReplicationMethod] = None
    table_key_properties: Optional[tuple[str, ...]] = None
    schema_name: Optional[str] = None
    is_view: Optional[bool] = None
    row_count: Optional[int] = None
    database_name: Optional[str] = None
    sql_datatype: Optional[str] = None

    extras: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("view_key_properties", "valid_replication_keys", "table_key_properties"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, tuple(value))
        reserved = _METADATA_WIRE_KEYS.intersection(self.extras)
        if reserved:
            raise ValueError(f"Reserved metadata keys must be set as fields, not extras: {sorted(reserved)}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Interpret a metadata object.

        `inclusion` defaults to `available` when the key is absent. Reserved keys holding null are read as absent.

        Raises:
            SchemaViolationError: if a reserved key has the wrong kind or an unknown enumeration token.
        """
        values: dict[str, Any] = {}
        for attribute, key, kind in _METADATA_FIELDS:
            if data.get(key) is not None:
                values[attribute] = _read_metadata_value(key, data[key], kind)
        values.setdefault("inclusion", Include.AVAILABLE)
        extras = {key: value for key, value in data.items() if key not in _METADATA_WIRE_KEYS}
        return cls(extras=extras, **values)

    def to_dict(self) -> dict[str, Any]:
        """Return the wire object. Unset fields are omitted."""
        result: dict[str, Any] = {}
        for attribute, key, _ in _METADATA_FIELDS:
            value = getattr(self, attribute)
            if value is None:
                continue
            if isinstance(value, tuple):
                value = list(value)
            elif isinstance(value, (Include, ReplicationMethod)):
                value = value.value
            result[key] = value
        result.update(self.extras)
        return result


@dataclass(frozen=True)
class Metadata:
    """Metadata for a whole stream (empty breadcrumb) or for one of its properties (`("properties", name)`).

    `metadata` is kept as the open JSON object it is on the wire; `stream_metadata` gives the typed view.
    """

    metadata: dict[str, Any]
    breadcrumb: Breadcrumb = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "breadcrumb", tuple(self.breadcrumb))

    @property
    def stream_metadata(self) -> StreamMetadata:
        return StreamMetadata.from_dict(self.metadata)

    def to_dict(self) -> dict[str, Any]:
        return {"metadata": self.metadata, "breadcrumb": list(self.breadcrumb)}

    @classmethod
    def from_dict(cls, data: Any) -> Self:
        if not isinstance(data, dict):
            raise SchemaViolationError("metadata", f"expected object, got {type(data).__name__}")
        metadata = required_field(data, "metadata", "object", SchemaViolationError)
        breadcrumb = required_field(data, "breadcrumb", "array", SchemaViolationError)
        # Validates reserved keys; the open object itself is stored as is.
        StreamMetadata.from_dict(metadata)
        return cls(metadata=metadata, breadcrumb=string_list(breadcrumb, "breadcrumb", SchemaViolationError))


@dataclass(frozen=True)
class Stream:
    """A stream entry of the catalog.

    `stream` is the name passed on to the target. `tap_stream_id` identifies the stream in the source and can differ
    from `stream`, since a source may expose several streams with the same name.
    """

    stream: str
    tap_stream_id: str
    schema: Any
    table_name: Optional[str] = None
    metadata: Optional[tuple[Metadata, ...]] = None

    def __post_init__(self) -> None:
        if self.metadata is not None:
            object.__setattr__(self, "metadata", tuple(self.metadata))

    @cached_property
    def _metadata_by_breadcrumb(self) -> dict[Breadcrumb, Metadata]:
        return {entry.breadcrumb: entry for entry in self.metadata or ()}

    def metadata_for(self, breadcrumb: Iterable[str] = ()) -> Optional[Metadata]:
        """Return the metadata entry for a breadcrumb, if the stream has one."""
        return self._metadata_by_breadcrumb.get(tuple(breadcrumb))

    @property
    def root_metadata(self) -> StreamMetadata:
        """Return the typed stream-level metadata, or the defaults if there is none."""
        entry = self.metadata_for(())
        return entry.stream_metadata if entry is not None else StreamMetadata.from_dict({})

    @cached_property
    def _selection_mask(self) -> SelectionMask:
        mapping = MetadataMapping()
        for entry in self.metadata or ():
            typed = entry.stream_metadata
            sdk_class = SDKStreamMetadata if not entry.breadcrumb else SDKMetadata
            mapping[entry.breadcrumb] = sdk_class(
                inclusion=typed.inclusion,
                selected=typed.selected,
                selected_by_default=typed.selected_by_default,
            )
        return mapping.resolve_selection()

    def is_selected(self) -> bool:
        """Return True if the stream should be extracted. A stream without metadata is selected."""
        return self._selection_mask[()]

    def is_property_selected(self, name: str) -> bool:
        """Return True if the named property should be extracted.

        A property without metadata, or whose metadata says nothing about selection, follows the stream.
        """
        return self._selection_mask[("properties", name)]

    def selected_properties(self) -> list[str]:
        """Return the names of the top-level schema properties that should be extracted."""
        properties = self.schema.get("properties") if isinstance(self.schema, dict) else None
        if not isinstance(properties, dict):
            return []
        return [name for name in properties if self.is_property_selected(name)]

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "stream": self.stream,
            "tap_stream_id": self.tap_stream_id,
            "schema": self.schema,
        }
        if self.table_name is not None:
            result["table_name"] = self.table_name
        if self.metadata is not None:
            result["metadata"] = [entry.to_dict() for entry in self.metadata]
        return result

    @classmethod
    def from_dict(cls, data: Any) -> Self:
        if not isinstance(data, dict):
            raise SchemaViolationError("streams", f"expected object, got {type(data).__name__}")
        metadata = optional_field(data, "metadata", "array", SchemaViolationError)
        return cls(
            stream=required_field(data, "stream", "string", SchemaViolationError),
            tap_stream_id=required_field(data, "tap_stream_id", "string", SchemaViolationError),
            schema=required_field(data, "schema", error=SchemaViolationError),
            table_name=optional_field(data, "table_name", "string", SchemaViolationError),
            metadata=tuple(Metadata.from_dict(entry) for entry in metadata) if metadata is not None else None,
        )


@dataclass(frozen=True)
class Catalog:
    """The top-level catalog document."""

    streams: tuple[Stream, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "streams", tuple(self.streams))

    def get_stream(self, tap_stream_id: str) -> Optional[Stream]:
        """Return the stream with the given `tap_stream_id`, if any."""
        for stream in self.streams:
            if stream.tap_stream_id == tap_stream_id:
                return stream
        return None

    def selected_streams(self) -> list[Stream]:
        """Return the streams that should be extracted, in catalog order."""
        return [stream for stream in self.streams if stream.is_selected()]

    def to_dict(self) -> dict[str, Any]:
        return {"streams": [stream.to_dict() for stream in self.streams]}

    @classmethod
    def from_dict(cls, data: Any) -> Self:
        if not isinstance(data, dict):
            raise SchemaViolationError("catalog", f"expected object, got {type(data).__name__}")
        streams = required_field(data, "streams", "array", SchemaViolationError)
        return cls(streams=tuple(Stream.from_dict(entry) for entry in streams))


def encode_catalog(catalog: Catalog, indent: Optional[int] = None) -> str:
    """Serialize a catalog document. Pass `indent` for a human-editable file."""
    return dumps(catalog.to_dict(), indent=indent)


def decode_catalog(text: str | bytes) -> Catalog:
    """Parse a catalog document."""
    return Catalog.from_dict(loads(text))


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


def get_standard_metadata(  # pylint: disable=too-many-arguments
    *,
    schema: Optional[dict[str, Any]] = None,
    key_properties: Iterable[str] = (),
    valid_replication_keys: Optional[Iterable[str]] = None,
    replication_method: Optional[ReplicationMethod] = None,
    schema_name: Optional[str] = None,
    selected_by_default: Optional[bool] = None,
) -> tuple[Metadata, ...]:
    """Build the metadata a tap emits for a discovered stream, using the Meltano SDK's standard layout.

    The stream entry carries the key properties and replication settings, and each top-level schema property gets an
    entry of its own.
    """
    mapping = MetadataMapping.get_standard_metadata(
        schema=schema,
        schema_name=schema_name,
        key_properties=list(key_properties),
        replication_method=ReplicationMethod(replication_method).value if replication_method is not None else None,
        valid_replication_keys=list(valid_replication_keys) if valid_replication_keys is not None else None,
        selected_by_default=selected_by_default,
    )
    return tuple(
        Metadata(
            metadata={key: _plain(value) for key, value in entry["metadata"].items()},
            breadcrumb=tuple(entry["breadcrumb"]),
        )
        for entry in mapping.to_list()
    )
