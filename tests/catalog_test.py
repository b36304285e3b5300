"""Tests of the catalog, stream and metadata codec."""

import json

import pytest
from singer_sdk.singerlib.catalog import Catalog as SDKCatalog
from singer_sdk.singerlib.catalog import MetadataMapping

from singer_protocol.catalog import (
    Catalog,
    Metadata,
    Stream,
    StreamMetadata,
    decode_catalog,
    encode_catalog,
    get_standard_metadata,
)
from singer_protocol.errors import MalformedJsonError, SchemaViolationError
from singer_protocol.types import Include, ReplicationMethod

USERS_SCHEMA = {
    "type": "object",
    "properties": {
        "id": {"type": "integer"},
        "email": {"type": ["string", "null"]},
        "updated_at": {"type": "string", "format": "date-time"},
    },
}


def users_stream(**kwargs) -> Stream:
    """Return a users stream with standard metadata, keyed on id and replicated on updated_at."""
    values = {
        "stream": "users",
        "tap_stream_id": "public-users",
        "schema": USERS_SCHEMA,
        "table_name": "users",
        "metadata": get_standard_metadata(
            schema=USERS_SCHEMA,
            key_properties=["id"],
            valid_replication_keys=["updated_at"],
            replication_method=ReplicationMethod.INCREMENTAL,
            schema_name="public",
        ),
    }
    values.update(kwargs)
    return Stream(**values)


def test_catalog_round_trip():
    """A catalog decodes back to an equal value."""
    catalog = Catalog(streams=[users_stream(), Stream(stream="events", tap_stream_id="events", schema={})])
    assert decode_catalog(encode_catalog(catalog)) == catalog
    assert decode_catalog(encode_catalog(catalog, indent=2)) == catalog


def test_stream_optional_fields_are_omitted():
    """table_name and metadata are left out when unset, never written as null."""
    stream = Stream(stream="events", tap_stream_id="events", schema={"type": "object"})
    assert stream.to_dict() == {"stream": "events", "tap_stream_id": "events", "schema": {"type": "object"}}
    assert "null" not in encode_catalog(Catalog(streams=[stream]))


def test_empty_metadata_is_kept_distinct_from_absent():
    """An empty metadata array is written; an absent one is not."""
    stream = Stream(stream="events", tap_stream_id="events", schema={}, metadata=[])
    assert stream.to_dict()["metadata"] == []
    assert decode_catalog(encode_catalog(Catalog(streams=[stream]))).streams[0].metadata == ()


def test_stream_and_tap_stream_id_may_differ():
    """Both names are kept as given."""
    stream = decode_catalog(encode_catalog(Catalog(streams=[users_stream()]))).streams[0]
    assert stream.stream == "users"
    assert stream.tap_stream_id == "public-users"


def test_hyphenated_wire_keys():
    """Metadata keys are written with their hyphenated wire names."""
    metadata = StreamMetadata(
        selected=True,
        replication_method=ReplicationMethod.LOG_BASED,
        replication_key="updated_at",
        view_key_properties=["id"],
        inclusion=Include.AVAILABLE,
        selected_by_default=False,
        valid_replication_keys=["updated_at"],
        forced_replication_method=ReplicationMethod.FULL_TABLE,
        table_key_properties=["id"],
        schema_name="public",
        is_view=False,
        row_count=12,
        database_name="app",
        sql_datatype="integer",
    )
    assert metadata.to_dict() == {
        "selected": True,
        "replication-method": "LOG_BASED",
        "replication-key": "updated_at",
        "view-key-properties": ["id"],
        "inclusion": "available",
        "selected-by-default": False,
        "valid-replication-keys": ["updated_at"],
        "forced-replication-method": "FULL_TABLE",
        "table-key-properties": ["id"],
        "schema-name": "public",
        "is-view": False,
        "row-count": 12,
        "database-name": "app",
        "sql-datatype": "integer",
    }
    assert StreamMetadata.from_dict(metadata.to_dict()) == metadata


def test_stream_metadata_omits_unset_fields():
    """Only set fields are written."""
    assert StreamMetadata(selected=True).to_dict() == {"selected": True}
    assert StreamMetadata().to_dict() == {}


def test_inclusion_defaults_to_available():
    """A metadata object without `inclusion` is read as available."""
    metadata = StreamMetadata.from_dict({"selected-by-default": True, "table-key-properties": ["id"]})
    assert metadata.inclusion is Include.AVAILABLE


def test_inclusion_default_does_not_touch_the_open_map():
    """The raw metadata object is stored exactly as read."""
    catalog = decode_catalog(
        '{"streams":[{"stream":"s","tap_stream_id":"s","schema":{},'
        '"metadata":[{"metadata":{"selected":true},"breadcrumb":[]}]}]}'
    )
    entry = catalog.streams[0].metadata[0]
    assert entry.metadata == {"selected": True}
    assert entry.stream_metadata.inclusion is Include.AVAILABLE


def test_unknown_metadata_keys_are_kept():
    """Keys outside the reserved vocabulary survive in extras and on the wire."""
    data = {"inclusion": "automatic", "custom-flag": {"nested": 1}}
    metadata = StreamMetadata.from_dict(data)
    assert metadata.extras == {"custom-flag": {"nested": 1}}
    assert metadata.to_dict() == data


def test_reserved_keys_are_refused_as_extras():
    """A reserved key can only be set through its field, so extras never overwrite a typed value."""
    with pytest.raises(ValueError):
        StreamMetadata(selected=True, extras={"selected": False})
    with pytest.raises(ValueError):
        StreamMetadata(extras={"replication-key": "id"})


@pytest.mark.parametrize(
    "metadata,field",
    [
        ({"table-key-properties": "id"}, "table-key-properties"),
        ({"valid-replication-keys": {"key": "updated_at"}}, "valid-replication-keys"),
        ({"view-key-properties": ["id", 2]}, "view-key-properties"),
        ({"inclusion": "Available"}, "inclusion"),
        ({"replication-method": "incremental"}, "replication-method"),
        ({"forced-replication-method": "CDC"}, "forced-replication-method"),
        ({"selected": "yes"}, "selected"),
        ({"row-count": -1}, "row-count"),
        ({"row-count": 1.5}, "row-count"),
    ],
)
def test_metadata_schema_violations(metadata, field):
    """Reserved keys with the wrong kind or an unknown token fail catalog decoding."""
    document = {
        "streams": [
            {"stream": "s", "tap_stream_id": "s", "schema": {}, "metadata": [{"metadata": metadata, "breadcrumb": []}]}
        ]
    }
    with pytest.raises(SchemaViolationError) as excinfo:
        decode_catalog(json.dumps(document))
    assert excinfo.value.field == field


@pytest.mark.parametrize(
    "stream,field",
    [
        ({"tap_stream_id": "s", "schema": {}}, "stream"),
        ({"stream": "s", "schema": {}}, "tap_stream_id"),
        ({"stream": "s", "tap_stream_id": "s"}, "schema"),
        ({"stream": "s", "tap_stream_id": "s", "schema": {}, "table_name": 3}, "table_name"),
        ({"stream": "s", "tap_stream_id": "s", "schema": {}, "metadata": {}}, "metadata"),
        ({"stream": "s", "tap_stream_id": "s", "schema": {}, "metadata": [{"metadata": {}}]}, "breadcrumb"),
        (
            {"stream": "s", "tap_stream_id": "s", "schema": {}, "metadata": [{"metadata": {}, "breadcrumb": [1]}]},
            "breadcrumb",
        ),
        (
            {"stream": "s", "tap_stream_id": "s", "schema": {}, "metadata": [{"metadata": [], "breadcrumb": []}]},
            "metadata",
        ),
    ],
)
def test_stream_schema_violations(stream, field):
    """Required stream fields must be present with the right kind."""
    with pytest.raises(SchemaViolationError) as excinfo:
        decode_catalog(json.dumps({"streams": [stream]}))
    assert excinfo.value.field == field


def test_catalog_document_errors():
    """The top-level document must be an object holding a streams array."""
    with pytest.raises(SchemaViolationError):
        decode_catalog("{}")
    with pytest.raises(SchemaViolationError):
        decode_catalog('{"streams":{}}')
    with pytest.raises(SchemaViolationError):
        decode_catalog("[]")
    with pytest.raises(MalformedJsonError):
        decode_catalog('{"streams":[')


def test_null_optional_stream_fields_are_read_as_absent():
    """An explicit null for table_name or metadata decodes the same as an absent key."""
    catalog = decode_catalog('{"streams":[{"stream":"s","tap_stream_id":"s","schema":{},"table_name":null,"metadata":null}]}')
    assert catalog.streams[0] == Stream(stream="s", tap_stream_id="s", schema={})


def test_standard_metadata():
    """Key and replication-key properties are automatic, the others available."""
    stream = users_stream()
    root = stream.root_metadata
    assert root.inclusion is Include.AVAILABLE
    assert root.table_key_properties == ("id",)
    assert root.valid_replication_keys == ("updated_at",)
    assert root.forced_replication_method is ReplicationMethod.INCREMENTAL
    assert root.schema_name == "public"
    assert stream.metadata_for(["properties", "id"]).stream_metadata.inclusion is Include.AUTOMATIC
    assert stream.metadata_for(("properties", "updated_at")).stream_metadata.inclusion is Include.AUTOMATIC
    assert stream.metadata_for(("properties", "email")).stream_metadata.inclusion is Include.AVAILABLE
    assert stream.metadata_for(("properties", "missing")) is None


def test_standard_metadata_matches_sdk():
    """The generated entries are the Meltano SDK standard metadata, in wire form."""
    expected = MetadataMapping.get_standard_metadata(
        schema=USERS_SCHEMA,
        key_properties=["id"],
        valid_replication_keys=["updated_at"],
        replication_method="INCREMENTAL",
        schema_name="public",
    ).to_list()
    encoded = [entry.to_dict() for entry in users_stream().metadata]
    assert json.loads(json.dumps(encoded)) == json.loads(json.dumps(expected))


def test_stream_selection():
    """Selection follows the Meltano SDK: automatic and unsupported win, then selected, then selected-by-default."""
    def stream_with(metadata):
        return Stream(stream="s", tap_stream_id="s", schema={}, metadata=[Metadata(metadata=metadata)])

    assert Stream(stream="s", tap_stream_id="s", schema={}).is_selected()
    assert not stream_with({"inclusion": "available"}).is_selected()
    assert stream_with({"selected": True}).is_selected()
    assert not stream_with({"selected": False, "selected-by-default": True}).is_selected()
    assert stream_with({"selected-by-default": True}).is_selected()
    assert stream_with({"inclusion": "automatic", "selected": False}).is_selected()
    assert not stream_with({"inclusion": "unsupported", "selected": True}).is_selected()


def test_selected_properties():
    """Deselected properties are dropped, automatic ones are kept and properties without metadata follow the stream."""
    metadata = [
        Metadata(metadata={"selected": True}),
        Metadata(metadata={"inclusion": "automatic", "selected": False}, breadcrumb=("properties", "id")),
        Metadata(metadata={"selected": False}, breadcrumb=("properties", "email")),
    ]
    stream = Stream(stream="users", tap_stream_id="users", schema=USERS_SCHEMA, metadata=metadata)
    assert stream.selected_properties() == ["id", "updated_at"]

    undescribed = Stream(stream="users", tap_stream_id="users", schema=USERS_SCHEMA)
    assert undescribed.selected_properties() == ["id", "email", "updated_at"]

    deselected = Stream(
        stream="users", tap_stream_id="users", schema=USERS_SCHEMA, metadata=[Metadata(metadata={"selected": False})]
    )
    assert deselected.selected_properties() == []


def test_catalog_lookup_and_selection():
    """Streams are found by tap_stream_id and filtered by selection."""
    selected = users_stream(metadata=[Metadata(metadata={"selected": True})])
    other = Stream(stream="events", tap_stream_id="events", schema={}, metadata=[Metadata(metadata={"selected": False})])
    catalog = Catalog(streams=[selected, other])
    assert catalog.get_stream("public-users") is selected
    assert catalog.get_stream("users") is None
    assert catalog.selected_streams() == [selected]


def test_breadcrumbs_and_sequences_are_normalized():
    """Lists given at construction compare equal to decoded tuples."""
    assert Metadata(metadata={}, breadcrumb=["properties", "id"]) == Metadata.from_dict(
        {"metadata": {}, "breadcrumb": ["properties", "id"]}
    )


def test_decodes_sdk_standard_metadata():
    """Metadata built by the Meltano SDK decodes into the typed view."""
    mapping = MetadataMapping.get_standard_metadata(
        schema=USERS_SCHEMA,
        replication_method="INCREMENTAL",
        key_properties=["id"],
        valid_replication_keys=["updated_at"],
    )
    entries = json.loads(json.dumps(mapping.to_list()))
    stream = Stream.from_dict({"stream": "users", "tap_stream_id": "users", "schema": USERS_SCHEMA, "metadata": entries})
    assert stream.root_metadata.table_key_properties == ("id",)
    assert stream.root_metadata.forced_replication_method is ReplicationMethod.INCREMENTAL
    assert stream.metadata_for(("properties", "id")).stream_metadata.inclusion is Include.AUTOMATIC


def test_sdk_reads_encoded_catalog():
    """A catalog written here is readable by the Meltano SDK."""
    catalog = Catalog(streams=[users_stream()])
    sdk_catalog = SDKCatalog.from_dict(json.loads(encode_catalog(catalog)))
    entry = sdk_catalog.get_stream("public-users")
    assert entry.stream == "users"
    assert entry.table == "users"
    assert entry.metadata.root.table_key_properties == ["id"]
