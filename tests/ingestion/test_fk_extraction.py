from types import SimpleNamespace

import pytest

from cascadesync.ingestion.fk import FkExtraction, FkSource, extract_fk_value

FIELD = SimpleNamespace(field_name="partner_id")


@pytest.mark.parametrize(
    "value, expected",
    [
        (5, FkExtraction(fk_id=5, source=FkSource.SCALAR)),
        (5.0, FkExtraction(fk_id=5, source=FkSource.SCALAR)),
        ("5", FkExtraction(fk_id=5, source=FkSource.SCALAR)),
        ([5, "Acme"], FkExtraction(fk_id=5, display_name="Acme", source=FkSource.TUPLE)),
        ((5, "Acme"), FkExtraction(fk_id=5, display_name="Acme", source=FkSource.TUPLE)),
        (
            {"id": 5, "name": "Acme"},
            FkExtraction(fk_id=5, display_name="Acme", source=FkSource.EXPANDED),
        ),
    ],
)
def test_all_encodings_resolve_the_same_id(value, expected):
    assert extract_fk_value({"partner_id": value}, FIELD) == expected


def test_expanded_under_conventional_key():
    record = {"partner_id": None, "partner_id_expanded": {"id": 7, "display_name": "Bob"}}
    result = extract_fk_value(record, FIELD)
    assert result.fk_id == 7
    assert result.display_name == "Bob"
    assert result.source is FkSource.EXPANDED


def test_scalar_wins_over_expanded_key():
    record = {"partner_id": 3, "partner_id_expanded": {"id": 7, "name": "Bob"}}
    assert extract_fk_value(record, FIELD).fk_id == 3


def test_leading_space_header():
    result = extract_fk_value({" partner_id": 9}, FIELD)
    assert result.fk_id == 9
    assert result.source is FkSource.SCALAR


@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        "Acme",
        True,
        False,
        2.5,
        0,
        -5,
        "-3",
        [5],
        [5, "a", "b"],
        ["x", "Acme"],
        [0, "Nobody"],
        {"id": 5},
        {"id": -1, "name": "Ghost"},
    ],
)
def test_unresolvable_values_yield_empty_result(value):
    result = extract_fk_value({"partner_id": value}, FIELD)
    assert result.fk_id is None
    assert result.source is None
    assert not result.resolved


def test_missing_field_is_not_an_error():
    assert extract_fk_value({}, FIELD) == FkExtraction()


def test_accepts_plain_field_name():
    assert extract_fk_value({"country_id": 4}, "country_id").fk_id == 4
