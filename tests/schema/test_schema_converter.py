import pytest

from cascadesync.schema.converter import (
    convert_simple_schema,
    generate_schema_semantic_text,
    validate_simple_schema,
)
from cascadesync.shared.errors import SchemaError
from cascadesync.shared.identity import derive_schema_identity


def _row(**overrides):
    row = {
        "Field_ID": 101,
        "Model_ID": 10,
        "Field_Name": "name",
        "Field_Label": "Name",
        "Field_Type": "char",
        "Model_Name": "customer",
        "Stored": "Yes",
    }
    row.update(overrides)
    return row


def _fk_row(**overrides):
    row = _row(
        Field_ID=102,
        Field_Name="country_id",
        Field_Label="Country",
        Field_Type="many2one",
        **{
            "FK location field model": "country",
            "FK location field model id": 20,
            "FK location record Id": 2001,
        },
    )
    row.update(overrides)
    return row


def test_valid_schema():
    result = validate_simple_schema([_row(), _fk_row()])
    assert result.valid
    assert result.errors == []
    assert result.warnings == []


def test_empty_schema_is_invalid():
    result = validate_simple_schema([])
    assert not result.valid
    assert result.errors == ["Schema is empty or undefined"]


def test_row_errors_use_sheet_row_numbers():
    result = validate_simple_schema(
        [_row(), _row(Field_ID="abc"), _row(Model_ID=None), _row(Field_Name=" ")]
    )
    assert not result.valid
    assert 'Row 3: Field_ID "abc" is not a valid number' in result.errors
    assert "Row 4: Model_ID is missing" in result.errors
    assert "Row 5: Field_Name is missing or empty" in result.errors


def test_duplicate_field_ids():
    result = validate_simple_schema([_row(), _row(Field_Name="other")])
    assert result.errors == ["Duplicate Field_ID 101 found in rows 2 and 3"]


def test_incomplete_fk_metadata_only_warns():
    row = _fk_row(**{"FK location record Id": None})
    result = validate_simple_schema([row])
    assert result.valid
    assert result.warnings == [
        'Row 2: FK field "country_id" missing FK location record Id'
    ]


def test_semantic_text_includes_fk_metadata():
    fk_uuid = derive_schema_identity(2001, 20)
    text = generate_schema_semantic_text(_fk_row(), fk_uuid)
    assert text.startswith(
        "In model customer, Field_ID - 102, Model_ID - 10, Field_Name - country_id, "
        "Field_Label - Country, Field_Type - many2one, Model_Name - customer, Stored - Yes"
    )
    assert "FK location field model - country" in text
    assert text.endswith(f"Qdrant ID for FK - {fk_uuid}")


def test_convert_builds_schema_fields():
    fields = convert_simple_schema([_row(Stored="No"), _fk_row()])

    plain, fk = fields
    assert plain.field_id == 101
    assert plain.stored is False
    assert plain.fk_qdrant_id is None
    assert plain.semantic_text.startswith("In model customer, Field_ID - 101")

    assert fk.is_many2one
    assert fk.stored is True
    assert fk.fk_location_model == "country"
    assert fk.fk_location_model_id == 20
    assert fk.fk_location_record_id == 2001
    assert fk.fk_qdrant_id == derive_schema_identity(2001, 20)


def test_convert_tolerates_leading_space_fk_headers():
    row = _row(
        Field_ID=103,
        Field_Name="currency_id",
        Field_Type="many2one",
        **{
            " FK location field model": "currency",
            " FK location field model id": 40.0,
            " FK location record Id": "4001",
        },
    )
    [field] = convert_simple_schema([row])
    assert field.fk_location_model == "currency"
    assert field.fk_location_model_id == 40
    assert field.fk_qdrant_id == derive_schema_identity(4001, 40)


def test_convert_raises_with_every_error():
    with pytest.raises(SchemaError) as excinfo:
        convert_simple_schema([_row(Field_ID=None), _row(Model_Name="")])
    message = str(excinfo.value)
    assert "Row 2: Field_ID is missing" in message
    assert "Row 3: Model_Name is missing or empty" in message
