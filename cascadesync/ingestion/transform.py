"""
Record transformation: raw rows -> vector-ready items.

Each record becomes one TransformedRecord with
  * vector_text: "In model <m>, record <id>, <label> - <value>, ..." in schema
    field order, skipping the id field and null/empty values
  * payload: the record's non-null fields plus, for every many2one field with
    a resolvable FK and a declared target model id, "<field>_qdrant" (the
    target's data identity) and, for scalar encodings, "<field>_id"
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from cascadesync.schema.models import SchemaField
from cascadesync.shared.errors import IdentityError, SchemaError
from cascadesync.shared.identity import derive_data_identity
from cascadesync.shared.observability import get_logger
from cascadesync.shared.records import coerce_int, lookup_field

from .fk import FkSource, extract_fk_value

logger = get_logger(__name__)

ID_FIELD = "id"
QDRANT_SUFFIX = "_qdrant"
ID_SUFFIX = "_id"


@dataclass
class TransformedRecord:
    record_id: int
    model_name: str
    model_id: int
    vector_text: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def point_id(self) -> str:
        return derive_data_identity(self.model_id, self.record_id)


def record_id_of(record: Mapping[str, Any]) -> Optional[int]:
    """Positive integer id of a record, or None when it has no usable id."""
    record_id = coerce_int(record.get(ID_FIELD))
    if record_id is None or record_id <= 0:
        return None
    return record_id


def _is_null(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _display_value(
    record: Mapping[str, Any], schema_field: SchemaField, value: Any
) -> str:
    if schema_field.is_many2one:
        fk = extract_fk_value(record, schema_field)
        if fk.resolved:
            if fk.display_name:
                return f"{fk.display_name} (id: {fk.fk_id})"
            return f"id: {fk.fk_id}"
    return str(value)


def build_vector_text(
    record: Mapping[str, Any],
    model_name: str,
    record_id: int,
    schema_fields: Sequence[SchemaField],
) -> str:
    parts = [f"In model {model_name}", f"record {record_id}"]

    for schema_field in schema_fields:
        if schema_field.field_name == ID_FIELD:
            continue
        value = lookup_field(record, schema_field.field_name)
        if _is_null(value) or value == "":
            continue
        parts.append(
            f"{schema_field.label} - {_display_value(record, schema_field, value)}"
        )

    return ", ".join(parts)


def build_payload(
    record: Mapping[str, Any], schema_fields: Sequence[SchemaField]
) -> Dict[str, Any]:
    payload = {key: value for key, value in record.items() if not _is_null(value)}

    for schema_field in schema_fields:
        if not schema_field.is_many2one or not schema_field.fk_location_model_id:
            continue
        fk = extract_fk_value(record, schema_field)
        if not fk.resolved:
            continue
        try:
            fk_identity = derive_data_identity(
                schema_field.fk_location_model_id, fk.fk_id
            )
        except IdentityError as exc:
            logger.warning(
                "Unusable FK id", field_name=schema_field.field_name, error=str(exc)
            )
            continue
        payload[f"{schema_field.field_name}{QDRANT_SUFFIX}"] = fk_identity
        if fk.source is FkSource.SCALAR:
            payload[f"{schema_field.field_name}{ID_SUFFIX}"] = fk.fk_id

    return payload


def transform_records(
    records: Iterable[Mapping[str, Any]],
    model_name: str,
    model_id: int,
    schema_fields: Sequence[SchemaField],
) -> List[TransformedRecord]:
    """
    Transform raw records into vector-ready items, preserving input order.

    Records without a usable id are skipped, as are records whose id cannot
    form a data identity (too many digits).

    Raises:
        SchemaError: If schema_fields is empty
    """
    if not schema_fields:
        raise SchemaError(f"No schema fields found for model: {model_name}")

    transformed: List[TransformedRecord] = []
    skipped = 0

    for record in records:
        record_id = record_id_of(record)
        if record_id is None:
            skipped += 1
            logger.debug(
                "Skipping record without id",
                model_name=model_name,
                raw_id=record.get(ID_FIELD),
            )
            continue

        try:
            derive_data_identity(model_id, record_id)
        except IdentityError as exc:
            skipped += 1
            logger.debug(
                "Skipping record with unusable id",
                model_name=model_name,
                raw_id=record.get(ID_FIELD),
                error=str(exc),
            )
            continue

        transformed.append(
            TransformedRecord(
                record_id=record_id,
                model_name=model_name,
                model_id=model_id,
                vector_text=build_vector_text(
                    record, model_name, record_id, schema_fields
                ),
                payload=build_payload(record, schema_fields),
            )
        )

    if skipped:
        logger.info(
            "Records skipped during transform",
            model_name=model_name,
            skipped=skipped,
            transformed=len(transformed),
        )

    return transformed
