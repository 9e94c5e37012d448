"""
Foreign-key value extraction.

Relational columns arrive in one of three encodings depending on how the
source rows were exported:

    scalar    5 / 5.0 / "5"
    tuple     [5, "Acme"]
    expanded  {"id": 5, "name": "Acme"}, either as the field value itself or
              under "<field>_expanded"

extract_fk_value() tries them in that order. An unresolvable value is the
common case for optional FKs and yields an empty FkExtraction, never an error.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from cascadesync.shared.records import coerce_int, is_blank, lookup_field

EXPANDED_SUFFIX = "_expanded"
LABEL_KEYS = ("display_name", "name", "label", "title")


class FkSource(str, Enum):
    SCALAR = "scalar"
    TUPLE = "tuple"
    EXPANDED = "expanded"


@dataclass(frozen=True)
class FkExtraction:
    fk_id: Optional[int] = None
    display_name: Optional[str] = None
    source: Optional[FkSource] = None

    @property
    def resolved(self) -> bool:
        return self.fk_id is not None


EMPTY = FkExtraction()


def _fk_id(value: Any) -> Optional[int]:
    # record ids start at 1; 0 and negatives never name a target
    fk_id = coerce_int(value)
    if fk_id is None or fk_id <= 0:
        return None
    return fk_id


def _label(value: Any) -> Optional[str]:
    if is_blank(value):
        return None
    return str(value)


def _from_scalar(value: Any) -> Optional[FkExtraction]:
    if isinstance(value, (list, tuple, dict)):
        return None
    fk_id = _fk_id(value)
    if fk_id is None:
        return None
    return FkExtraction(fk_id=fk_id, source=FkSource.SCALAR)


def _from_tuple(value: Any) -> Optional[FkExtraction]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    fk_id = _fk_id(value[0])
    if fk_id is None:
        return None
    return FkExtraction(
        fk_id=fk_id, display_name=_label(value[1]), source=FkSource.TUPLE
    )


def _from_expanded(value: Any) -> Optional[FkExtraction]:
    if not isinstance(value, Mapping):
        return None
    fk_id = _fk_id(value.get("id"))
    if fk_id is None:
        return None
    for key in LABEL_KEYS:
        label = _label(value.get(key))
        if label is not None:
            return FkExtraction(
                fk_id=fk_id, display_name=label, source=FkSource.EXPANDED
            )
    return None


def extract_fk_value(record: Mapping[str, Any], field: Any) -> FkExtraction:
    """
    Resolve the FK target id (and display label when present) of field in record.

    field is a SchemaField or anything carrying a field_name attribute.
    """
    field_name = getattr(field, "field_name", None) or str(field)
    value = lookup_field(record, field_name)

    for extractor in (_from_scalar, _from_tuple, _from_expanded):
        result = extractor(value)
        if result is not None:
            return result

    expanded = _from_expanded(lookup_field(record, f"{field_name}{EXPANDED_SUFFIX}"))
    if expanded is not None:
        return expanded

    return EMPTY
