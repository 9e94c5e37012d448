from conftest import FakeRegistry, make_field

from cascadesync.ingestion.fk_targets import FkTargetCollector


def _registry():
    return FakeRegistry(
        {
            "order": [
                make_field("id", 1, model_name="order", model_id=30, field_type="integer"),
                make_field(
                    "customer_id",
                    2,
                    model_name="order",
                    model_id=30,
                    field_type="many2one",
                    fk_location_model="customer",
                    fk_location_model_id=10,
                ),
                make_field(
                    "invoice_partner_id",
                    3,
                    model_name="order",
                    model_id=30,
                    field_type="many2one",
                    fk_location_model="customer",
                    fk_location_model_id=10,
                ),
                make_field(
                    "currency_id",
                    4,
                    model_name="order",
                    model_id=30,
                    field_type="many2one",
                    fk_location_model="currency",
                    fk_location_model_id=40,
                ),
                make_field(
                    "orphan_id",
                    5,
                    model_name="order",
                    model_id=30,
                    field_type="many2one",
                ),
            ]
        }
    )


def test_ids_are_unioned_per_target_model():
    records = [
        {"id": 1, "customer_id": 7, "invoice_partner_id": [8, "Acme"], "currency_id": 1},
        {"id": 2, "customer_id": 7, "invoice_partner_id": None, "orphan_id": 99},
        {"id": 3, "customer_id": {"id": 9, "name": "Zed"}},
    ]
    targets = FkTargetCollector(_registry()).collect(records, "order")
    assert targets == {"customer": {7, 8, 9}, "currency": {1}}


def test_unresolvable_values_contribute_nothing():
    records = [{"id": 1, "customer_id": "n/a", "currency_id": None}]
    assert FkTargetCollector(_registry()).collect(records, "order") == {}


def test_model_without_fk_fields():
    registry = FakeRegistry({"country": [make_field("name", 1, model_name="country")]})
    assert FkTargetCollector(registry).collect([{"id": 1, "name": "FR"}], "country") == {}


def test_zero_and_negative_ids_are_not_targets():
    records = [
        {"id": 1, "customer_id": -5},
        {"id": 2, "customer_id": 0, "currency_id": [0, "None"]},
        {"id": 3, "customer_id": {"id": -2, "name": "Ghost"}},
    ]
    assert FkTargetCollector(_registry()).collect(records, "order") == {}
