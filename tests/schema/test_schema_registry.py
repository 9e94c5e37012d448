from types import SimpleNamespace
from unittest.mock import MagicMock

from conftest import make_field

from cascadesync.schema.registry import QdrantSchemaRegistry
from cascadesync.shared.cache import invalidate_all


def _point(field, **extra):
    payload = {"point_type": "schema", "point_id": "x", "vector_text": "..."}
    payload.update(field.to_payload())
    payload.update(extra)
    return SimpleNamespace(id="x", payload=payload)


def _client(pages):
    client = MagicMock()
    client.scroll.side_effect = list(pages)
    return client


FK = make_field(
    "country_id",
    3,
    field_type="many2one",
    fk_location_model="country",
    fk_location_model_id=20,
)


def test_fields_are_ordered_by_field_id_across_pages():
    client = _client(
        [
            ([_point(make_field("note", 9)), _point(FK)], "next"),
            ([_point(make_field("name", 2))], None),
        ]
    )
    registry = QdrantSchemaRegistry(client, "unified")

    fields = registry.get_model_fields("customer")

    assert [f.field_name for f in fields] == ["name", "country_id", "note"]
    assert client.scroll.call_count == 2
    assert client.scroll.call_args_list[1].kwargs["offset"] == "next"


def test_model_id_and_fk_fields():
    client = _client([([_point(make_field("name", 2)), _point(FK)], None)])
    registry = QdrantSchemaRegistry(client, "unified")

    assert registry.model_exists("customer")
    assert registry.get_model_id("customer") == 10
    assert [f.field_name for f in registry.get_fk_fields("customer")] == ["country_id"]
    # one scroll serves every lookup
    assert client.scroll.call_count == 1


def test_unknown_model():
    client = _client([([], None)])
    registry = QdrantSchemaRegistry(client, "unified")
    assert not registry.model_exists("ghost")
    assert registry.get_model_id("ghost") is None
    assert registry.get_fk_fields("ghost") == []


def test_invalidate_all_forces_fresh_lookup():
    client = _client(
        [
            ([], None),
            ([_point(make_field("name", 2))], None),
        ]
    )
    registry = QdrantSchemaRegistry(client, "unified")

    assert not registry.model_exists("customer")
    invalidate_all()
    assert registry.model_exists("customer")


def test_malformed_points_are_skipped():
    bad = SimpleNamespace(id="bad", payload={"point_type": "schema", "field_name": "x"})
    client = _client([([bad, _point(make_field("name", 2))], None)])
    registry = QdrantSchemaRegistry(client, "unified")
    assert [f.field_name for f in registry.get_model_fields("customer")] == ["name"]


def test_scroll_filters_schema_points_of_model():
    client = _client([([], None)])
    QdrantSchemaRegistry(client, "unified").get_model_fields("customer")

    scroll_filter = client.scroll.call_args.kwargs["scroll_filter"]
    conditions = {c.key: c.match.value for c in scroll_filter.must}
    assert conditions == {"point_type": "schema", "model_name": "customer"}
