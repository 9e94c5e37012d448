"""
Deterministic point identities for the unified collection.

Identities are UUID-formatted strings built directly from numeric ids, so the
same (model, record) or (model, field) pair always maps to the same Qdrant
point and re-syncs overwrite instead of duplicating:

    data   00000002-MMMM-0000-0000-RRRRRRRRRRRR   (model_id, record_id)
    schema 00000003-MMMM-0000-0000-FFFFFFFFFFFF   (model_id, field_id)
    graph  00000001-SSSS-TTTT-0000-FFFFFFFFFFFF   (source/target model_id, field_id)

Segments are zero-padded decimal digits, which are valid hex, so every
identity parses as a UUID and can be decoded back to its ids.
"""

import re
from typing import Any, Tuple

from .errors import IdentityError

DATA_PREFIX = "00000002"
SCHEMA_PREFIX = "00000003"
GRAPH_PREFIX = "00000001"

MODEL_ID_WIDTH = 4
RECORD_ID_WIDTH = 12

_DATA_PATTERN = re.compile(rf"^{DATA_PREFIX}-(\d{{4}})-0000-0000-(\d{{12}})$")


def _validate_id(name: str, value: Any, width: int) -> int:
    # bool is an int subclass; True must not become record 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise IdentityError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise IdentityError(f"{name} must be non-negative, got {value}")
    if value >= 10**width:
        raise IdentityError(f"{name} {value} does not fit in {width} digits")
    return value


def _pad(value: int, width: int) -> str:
    return str(value).zfill(width)


def derive_data_identity(model_id: int, record_id: int) -> str:
    """Identity of a data point for one record of one model."""
    model_id = _validate_id("model_id", model_id, MODEL_ID_WIDTH)
    record_id = _validate_id("record_id", record_id, RECORD_ID_WIDTH)
    return (
        f"{DATA_PREFIX}-{_pad(model_id, MODEL_ID_WIDTH)}-0000-0000-"
        f"{_pad(record_id, RECORD_ID_WIDTH)}"
    )


def derive_schema_identity(field_id: int, model_id: int) -> str:
    """Identity of a schema point describing one field of one model."""
    field_id = _validate_id("field_id", field_id, RECORD_ID_WIDTH)
    model_id = _validate_id("model_id", model_id, MODEL_ID_WIDTH)
    return (
        f"{SCHEMA_PREFIX}-{_pad(model_id, MODEL_ID_WIDTH)}-0000-0000-"
        f"{_pad(field_id, RECORD_ID_WIDTH)}"
    )


def derive_graph_identity(
    source_model_id: int, target_model_id: int, field_id: int
) -> str:
    """Identity of the relationship edge contributed by one FK field."""
    source_model_id = _validate_id("source_model_id", source_model_id, MODEL_ID_WIDTH)
    target_model_id = _validate_id("target_model_id", target_model_id, MODEL_ID_WIDTH)
    field_id = _validate_id("field_id", field_id, RECORD_ID_WIDTH)
    return (
        f"{GRAPH_PREFIX}-{_pad(source_model_id, MODEL_ID_WIDTH)}-"
        f"{_pad(target_model_id, MODEL_ID_WIDTH)}-0000-"
        f"{_pad(field_id, RECORD_ID_WIDTH)}"
    )


def parse_data_identity(identity: str) -> Tuple[int, int]:
    """Decode a data identity back into (model_id, record_id)."""
    match = _DATA_PATTERN.match(identity or "")
    if not match:
        raise IdentityError(f"Not a data identity: {identity!r}")
    return int(match.group(1)), int(match.group(2))


def is_data_identity(identity: str) -> bool:
    return bool(_DATA_PATTERN.match(identity or ""))
