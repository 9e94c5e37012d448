"""
Schema registry backed by the unified Qdrant collection.

Schema points (point_type="schema") hold one SchemaField each. Lookups scroll
the collection once per model and memoize the ordered field list in an
L1Cache registered with the process cache hub, so invalidate_all() (schema
sync, forced data sync) makes the next lookup read fresh state.
"""

from typing import List, Optional

from pydantic import ValidationError
from qdrant_client import QdrantClient, models

from cascadesync.shared.cache import L1Cache, register_cache
from cascadesync.shared.observability import get_logger

from .models import SchemaField

logger = get_logger(__name__)

SCHEMA_POINT_TYPE = "schema"
SCROLL_PAGE_SIZE = 256

_fields_cache = register_cache(
    "schema_registry", L1Cache(max_size=512, ttl_seconds=300)
)


class QdrantSchemaRegistry:
    def __init__(self, client: QdrantClient, collection_name: str):
        self.client = client
        self.collection_name = collection_name

    def _schema_filter(self, model_name: str) -> models.Filter:
        return models.Filter(
            must=[
                models.FieldCondition(
                    key="point_type",
                    match=models.MatchValue(value=SCHEMA_POINT_TYPE),
                ),
                models.FieldCondition(
                    key="model_name",
                    match=models.MatchValue(value=model_name),
                ),
            ]
        )

    def _load_fields(self, model_name: str) -> List[SchemaField]:
        fields: List[SchemaField] = []
        next_page = None
        while True:
            points, next_page = self.client.scroll(
                collection_name=self.collection_name,
                scroll_filter=self._schema_filter(model_name),
                with_payload=True,
                with_vectors=False,
                limit=SCROLL_PAGE_SIZE,
                offset=next_page,
            )
            for point in points:
                try:
                    fields.append(SchemaField.model_validate(point.payload or {}))
                except ValidationError as exc:
                    logger.warning(
                        "Skipping malformed schema point",
                        model_name=model_name,
                        point_id=str(point.id),
                        error=str(exc),
                    )
            if next_page is None:
                break

        fields.sort(key=lambda f: f.field_id)
        logger.debug("Schema fields loaded", model_name=model_name, fields=len(fields))
        return fields

    def get_model_fields(self, model_name: str) -> List[SchemaField]:
        """All fields of a model ordered by field id (empty if unknown)."""
        cache_key = f"{self.collection_name}:{model_name}"
        return _fields_cache.get_or_load(
            cache_key, lambda: self._load_fields(model_name)
        )

    def model_exists(self, model_name: str) -> bool:
        return bool(self.get_model_fields(model_name))

    def get_model_id(self, model_name: str) -> Optional[int]:
        fields = self.get_model_fields(model_name)
        if not fields:
            return None
        return fields[0].model_id

    def get_fk_fields(self, model_name: str) -> List[SchemaField]:
        return [f for f in self.get_model_fields(model_name) if f.is_many2one]
