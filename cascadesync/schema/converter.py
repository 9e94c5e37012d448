"""
Simple schema conversion.

A "simple schema" sheet has one row per field with the columns:

    Field_ID, Model_ID, Field_Name, Field_Label, Field_Type, Model_Name,
    Stored, FK location field model, FK location field model id,
    FK location record Id

Several models share one sheet. Conversion validates the rows, then produces
SchemaField objects carrying a semantic text for embedding and, for relational
fields, the FK metadata the data sync needs to build payload references and
graph edges.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from cascadesync.shared.errors import SchemaError
from cascadesync.shared.identity import derive_schema_identity
from cascadesync.shared.observability import get_logger
from cascadesync.shared.records import coerce_int, is_blank, lookup_field

from .models import RELATIONAL_TYPES, SchemaField

logger = get_logger(__name__)

FK_MODEL_COLUMN = "FK location field model"
FK_MODEL_ID_COLUMN = "FK location field model id"
FK_RECORD_ID_COLUMN = "FK location record Id"


@dataclass
class ValidationResult:
    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def error(self, message: str) -> None:
        self.valid = False
        self.errors.append(message)


def _fk_columns(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "model": lookup_field(row, FK_MODEL_COLUMN),
        "model_id": lookup_field(row, FK_MODEL_ID_COLUMN),
        "record_id": lookup_field(row, FK_RECORD_ID_COLUMN),
    }


def _text(value: Any) -> str:
    return "" if is_blank(value) else str(value).strip()


def validate_simple_schema(rows: Sequence[Mapping[str, Any]]) -> ValidationResult:
    """
    Validate simple schema rows.

    Errors: missing/non-numeric/duplicate Field_ID, missing/non-numeric
    Model_ID, blank Field_Name / Field_Type / Model_Name.
    Warnings: relational fields with incomplete FK metadata.
    """
    result = ValidationResult()

    if not rows:
        result.error("Schema is empty or undefined")
        return result

    seen_field_ids: Dict[int, int] = {}

    for index, row in enumerate(rows):
        row_num = index + 2  # sheet row (1-indexed header + data)

        raw_field_id = row.get("Field_ID")
        field_id = coerce_int(raw_field_id)
        if is_blank(raw_field_id):
            result.error(f"Row {row_num}: Field_ID is missing")
        elif field_id is None:
            result.error(f'Row {row_num}: Field_ID "{raw_field_id}" is not a valid number')
        elif field_id in seen_field_ids:
            result.error(
                f"Duplicate Field_ID {field_id} found in rows "
                f"{seen_field_ids[field_id]} and {row_num}"
            )
        else:
            seen_field_ids[field_id] = row_num

        raw_model_id = row.get("Model_ID")
        if is_blank(raw_model_id):
            result.error(f"Row {row_num}: Model_ID is missing")
        elif coerce_int(raw_model_id) is None:
            result.error(f'Row {row_num}: Model_ID "{raw_model_id}" is not a valid number')

        for column in ("Field_Name", "Field_Type", "Model_Name"):
            if not _text(row.get(column)):
                result.error(f"Row {row_num}: {column} is missing or empty")

        field_type = _text(row.get("Field_Type")).lower()
        if field_type in RELATIONAL_TYPES:
            fk = _fk_columns(row)
            field_name = _text(row.get("Field_Name"))
            if is_blank(fk["model"]):
                result.warnings.append(
                    f'Row {row_num}: FK field "{field_name}" missing {FK_MODEL_COLUMN}'
                )
            if is_blank(fk["model_id"]):
                result.warnings.append(
                    f'Row {row_num}: FK field "{field_name}" missing {FK_MODEL_ID_COLUMN}'
                )
            if is_blank(fk["record_id"]):
                result.warnings.append(
                    f'Row {row_num}: FK field "{field_name}" missing {FK_RECORD_ID_COLUMN}'
                )

    return result


def generate_schema_semantic_text(
    row: Mapping[str, Any], fk_uuid: Optional[str] = None
) -> str:
    """
    Natural-language description of one schema row for vector search.

    FK metadata is appended so the relationship is searchable from the
    schema point itself.
    """
    model_name = _text(row.get("Model_Name"))
    parts = [
        f"In model {model_name}",
        f"Field_ID - {_text(row.get('Field_ID'))}",
        f"Model_ID - {_text(row.get('Model_ID'))}",
        f"Field_Name - {_text(row.get('Field_Name'))}",
        f"Field_Label - {_text(row.get('Field_Label'))}",
        f"Field_Type - {_text(row.get('Field_Type'))}",
        f"Model_Name - {model_name}",
        f"Stored - {_text(row.get('Stored'))}",
    ]

    fk = _fk_columns(row)
    if not is_blank(fk["model"]):
        parts.append(f"{FK_MODEL_COLUMN} - {_text(fk['model'])}")
    if not is_blank(fk["model_id"]):
        parts.append(f"{FK_MODEL_ID_COLUMN} - {_text(fk['model_id'])}")
    if not is_blank(fk["record_id"]):
        parts.append(f"{FK_RECORD_ID_COLUMN} - {_text(fk['record_id'])}")
    if fk_uuid:
        parts.append(f"Qdrant ID for FK - {fk_uuid}")

    return ", ".join(parts)


def convert_simple_schema(rows: Sequence[Mapping[str, Any]]) -> List[SchemaField]:
    """
    Convert simple schema rows into SchemaField objects.

    Raises:
        SchemaError: If validation fails (all errors are listed in the message)
    """
    validation = validate_simple_schema(rows)
    if not validation.valid:
        message = "Schema validation failed:\n" + "\n".join(
            f"  - {e}" for e in validation.errors
        )
        raise SchemaError(message)

    for warning in validation.warnings:
        logger.warning("Schema validation warning", warning=warning)

    converted: List[SchemaField] = []
    for row in rows:
        fk = _fk_columns(row)
        fk_model_id = coerce_int(fk["model_id"])
        fk_record_id = coerce_int(fk["record_id"])

        fk_uuid = None
        if fk_model_id is not None and fk_record_id is not None:
            fk_uuid = derive_schema_identity(fk_record_id, fk_model_id)

        converted.append(
            SchemaField(
                field_id=coerce_int(row.get("Field_ID")),
                model_id=coerce_int(row.get("Model_ID")),
                model_name=_text(row.get("Model_Name")),
                field_name=_text(row.get("Field_Name")),
                field_label=_text(row.get("Field_Label")),
                field_type=_text(row.get("Field_Type")),
                stored=_text(row.get("Stored")).lower() == "yes",
                fk_location_model=_text(fk["model"]) or None,
                fk_location_model_id=fk_model_id,
                fk_location_record_id=fk_record_id,
                fk_qdrant_id=fk_uuid,
                semantic_text=generate_schema_semantic_text(row, fk_uuid),
            )
        )

    return converted
