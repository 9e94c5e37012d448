"""
Payload index maintenance for the unified collection.

Every synced model gets keyword/integer/float/bool payload indexes for the
system fields and for its schema fields, chosen by field type. Index creation
is advisory: a failure on one index is skipped and never fails the sync.
Models already handled in this process are memoized; invalidate_all() clears
the memo so a forced sync re-checks the collection.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Tuple

from qdrant_client import QdrantClient
from qdrant_client.models import PayloadSchemaType

from cascadesync.schema.models import SchemaField
from cascadesync.shared.cache import L1Cache, register_cache
from cascadesync.shared.observability import get_logger
from cascadesync.shared.observability.metrics import payload_indexes_created_total

logger = get_logger(__name__)

SYSTEM_INDEXES: Tuple[Tuple[str, PayloadSchemaType], ...] = (
    ("point_type", PayloadSchemaType.KEYWORD),
    ("model_name", PayloadSchemaType.KEYWORD),
    ("model_id", PayloadSchemaType.INTEGER),
    ("record_id", PayloadSchemaType.INTEGER),
)

FIELD_TYPE_INDEXES: Dict[str, PayloadSchemaType] = {
    "integer": PayloadSchemaType.INTEGER,
    "float": PayloadSchemaType.FLOAT,
    "monetary": PayloadSchemaType.FLOAT,
    "boolean": PayloadSchemaType.BOOL,
    "char": PayloadSchemaType.KEYWORD,
    "text": PayloadSchemaType.KEYWORD,
    "selection": PayloadSchemaType.KEYWORD,
}

_ensured_models = register_cache(
    "payload_indexes", L1Cache(max_size=1000, ttl_seconds=None)
)


@dataclass
class IndexResult:
    created: int = 0
    skipped: int = 0
    failed: int = 0


def indexes_for_fields(
    schema_fields: Iterable[SchemaField],
) -> List[Tuple[str, PayloadSchemaType]]:
    """(payload field, index type) pairs needed for one model, system fields first."""
    wanted: Dict[str, PayloadSchemaType] = dict(SYSTEM_INDEXES)

    for schema_field in schema_fields:
        field_type = schema_field.field_type.lower()
        if schema_field.is_many2one:
            wanted.setdefault(
                f"{schema_field.field_name}_id", PayloadSchemaType.INTEGER
            )
            wanted.setdefault(
                f"{schema_field.field_name}_qdrant", PayloadSchemaType.KEYWORD
            )
        elif field_type in FIELD_TYPE_INDEXES:
            wanted.setdefault(schema_field.field_name, FIELD_TYPE_INDEXES[field_type])

    return list(wanted.items())


class PayloadIndexService:
    def __init__(self, client: QdrantClient, collection_name: str):
        self.client = client
        self.collection_name = collection_name

    def _memo_key(self, model_name: str) -> str:
        return f"{self.collection_name}:{model_name}"

    def _existing_indexes(self) -> Dict[str, Any]:
        info = self.client.get_collection(collection_name=self.collection_name)
        return getattr(info, "payload_schema", None) or {}

    def ensure_model_indexes(
        self, model_name: str, schema_fields: Iterable[SchemaField]
    ) -> IndexResult:
        result = IndexResult()
        memo_key = self._memo_key(model_name)
        if memo_key in _ensured_models:
            return result

        try:
            existing = self._existing_indexes()
        except Exception as exc:
            logger.warning(
                "Could not read payload schema",
                collection=self.collection_name,
                error=str(exc),
            )
            existing = {}

        for field_name, schema_type in indexes_for_fields(schema_fields):
            if field_name in existing:
                result.skipped += 1
                continue
            try:
                self.client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=field_name,
                    field_schema=schema_type,
                )
            except Exception as exc:
                result.failed += 1
                logger.debug(
                    "Payload index creation failed",
                    collection=self.collection_name,
                    field_name=field_name,
                    error=str(exc),
                )
                continue
            result.created += 1
            payload_indexes_created_total.labels(
                collection_name=self.collection_name
            ).inc()

        if not result.failed:
            _ensured_models.put(memo_key, True)
        if result.created:
            logger.info(
                "Payload indexes created",
                model_name=model_name,
                collection=self.collection_name,
                created=result.created,
            )
        return result
