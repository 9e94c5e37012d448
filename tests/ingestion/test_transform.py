import pytest
from conftest import make_field

from cascadesync.ingestion.pipeline import BatchUpsertPipeline
from cascadesync.ingestion.transform import transform_records
from cascadesync.shared.errors import SchemaError
from cascadesync.shared.identity import derive_data_identity

FIELDS = [
    make_field("id", 1, field_type="integer", field_label="ID"),
    make_field("name", 2, field_label="Name"),
    make_field(
        "country_id",
        3,
        field_type="many2one",
        field_label="Country",
        fk_location_model="country",
        fk_location_model_id=20,
    ),
    make_field("note", 4),
]


def test_vector_text_follows_schema_order():
    [item] = transform_records(
        [{"note": "vip", "name": "Acme", "id": 1, "country_id": [4, "France"]}],
        "customer",
        10,
        FIELDS,
    )
    assert item.vector_text == (
        "In model customer, record 1, Name - Acme, "
        "Country - France (id: 4), note - vip"
    )
    assert item.record_id == 1
    assert item.model_id == 10
    assert item.point_id == derive_data_identity(10, 1)


def test_scalar_fk_renders_bare_id_and_adds_payload_fields():
    [item] = transform_records(
        [{"id": 2, "name": "Beta", "country_id": 4}], "customer", 10, FIELDS
    )
    assert "Country - id: 4" in item.vector_text
    assert item.payload["country_id_qdrant"] == derive_data_identity(20, 4)
    assert item.payload["country_id_id"] == 4


def test_tuple_fk_gets_qdrant_ref_without_normalized_id():
    [item] = transform_records(
        [{"id": 2, "country_id": [4, "France"]}], "customer", 10, FIELDS
    )
    assert item.payload["country_id_qdrant"] == derive_data_identity(20, 4)
    assert "country_id_id" not in item.payload


def test_unresolvable_fk_falls_back_to_raw_value():
    [item] = transform_records(
        [{"id": 2, "country_id": "unknown"}], "customer", 10, FIELDS
    )
    assert "Country - unknown" in item.vector_text
    assert "country_id_qdrant" not in item.payload


def test_null_and_empty_values_are_left_out():
    [item] = transform_records(
        [{"id": 3, "name": "", "note": None, "country_id": None}],
        "customer",
        10,
        FIELDS,
    )
    assert item.vector_text == "In model customer, record 3"
    assert item.payload == {"id": 3, "name": ""}


def test_records_without_id_are_skipped():
    records = [
        {"name": "no id"},
        {"id": None, "name": "null id"},
        {"id": 0, "name": "zero id"},
        {"id": 5, "name": "kept"},
        {"id": "abc", "name": "bad id"},
        {"id": 6.0, "name": "float id"},
    ]
    transformed = transform_records(records, "customer", 10, FIELDS)
    assert [t.record_id for t in transformed] == [5, 6]


def test_empty_schema_fails_fast():
    with pytest.raises(SchemaError):
        transform_records([{"id": 1}], "customer", 10, [])


def test_fk_without_target_model_id_adds_no_reference():
    fields = [make_field("parent_id", 5, field_type="many2one")]
    [item] = transform_records([{"id": 1, "parent_id": 3}], "customer", 10, fields)
    assert "parent_id_qdrant" not in item.payload
    assert "parent_id_id" not in item.payload


def test_oversized_id_is_skipped_before_batching(embedder, vector_store):
    records = [{"id": i, "name": f"n{i}"} for i in range(1, 50)]
    records.append({"id": 10**12, "name": "too wide"})

    transformed = transform_records(records, "customer", 10, FIELDS)
    assert len(transformed) == 49
    assert 10**12 not in {t.record_id for t in transformed}

    result = BatchUpsertPipeline(embedder, vector_store, batch_size=50).run(transformed)
    assert result.synced == 49
    assert result.failed == 0
    assert result.errors == []


def test_non_positive_fk_ids_get_no_reference():
    [item] = transform_records(
        [{"id": 1, "country_id": -5}], "customer", 10, FIELDS
    )
    assert "country_id_qdrant" not in item.payload
    assert "country_id_id" not in item.payload
