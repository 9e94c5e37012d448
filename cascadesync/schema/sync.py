"""
Schema sync: simple schema sheet -> schema points in the unified collection.

Each field row becomes one point (point_type="schema") keyed by its schema
identity, embedded from its semantic text. Batches use the same isolation
rule as data sync. Process caches are invalidated afterwards so the registry
sees the new schema on its next lookup.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Union

from qdrant_client.models import PointStruct

from cascadesync.ingestion.loader import load_records
from cascadesync.ingestion.pipeline import BatchUpsertPipeline
from cascadesync.shared.cache import invalidate_all
from cascadesync.shared.errors import CascadeSyncError
from cascadesync.shared.identity import derive_schema_identity
from cascadesync.shared.observability import get_logger

from .converter import convert_simple_schema
from .models import SchemaField

logger = get_logger(__name__)

SCHEMA_POINT_TYPE = "schema"


@dataclass(frozen=True)
class SchemaSyncResult:
    success: bool
    file_path: str
    fields_read: int = 0
    fields_synced: int = 0
    fields_failed: int = 0
    models: tuple = ()
    duration_ms: int = 0
    errors: tuple = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "file_path": self.file_path,
            "fields_read": self.fields_read,
            "fields_synced": self.fields_synced,
            "fields_failed": self.fields_failed,
            "models": list(self.models),
            "duration_ms": self.duration_ms,
            "errors": list(self.errors),
        }


def build_schema_point(
    schema_field: SchemaField, vector: List[float], sync_timestamp: str
) -> PointStruct:
    point_id = derive_schema_identity(schema_field.field_id, schema_field.model_id)
    payload: Dict[str, Any] = {
        "point_id": point_id,
        "point_type": SCHEMA_POINT_TYPE,
        "vector_text": schema_field.semantic_text,
        "sync_timestamp": sync_timestamp,
    }
    payload.update(schema_field.to_payload())
    return PointStruct(id=point_id, vector=list(vector), payload=payload)


class SchemaSyncService:
    def __init__(self, pipeline: BatchUpsertPipeline):
        self.pipeline = pipeline

    def sync_file(self, file_path: Union[str, Path]) -> SchemaSyncResult:
        start = time.time()
        path_str = str(file_path)

        def elapsed_ms() -> int:
            return int((time.time() - start) * 1000)

        logger.info("Starting schema sync", file_path=path_str)

        try:
            rows = load_records(file_path)
            fields = convert_simple_schema(rows)
        except (FileNotFoundError, CascadeSyncError) as exc:
            logger.error("Schema sync failed", file_path=path_str, error=str(exc))
            return SchemaSyncResult(
                success=False,
                file_path=path_str,
                duration_ms=elapsed_ms(),
                errors=(str(exc),),
            )

        pipeline_result = self.pipeline.run(
            fields,
            build_point=build_schema_point,
            text_of=self._text_of,
            label=SCHEMA_POINT_TYPE,
        )

        invalidate_all()

        models = tuple(sorted({f.model_name for f in fields}))
        result = SchemaSyncResult(
            success=not pipeline_result.errors,
            file_path=path_str,
            fields_read=len(rows),
            fields_synced=pipeline_result.synced,
            fields_failed=pipeline_result.failed,
            models=models,
            duration_ms=elapsed_ms(),
            errors=tuple(pipeline_result.errors),
        )
        logger.info(
            "Schema sync complete",
            file_path=path_str,
            models=len(models),
            fields_synced=result.fields_synced,
            fields_failed=result.fields_failed,
        )
        return result

    @staticmethod
    def _text_of(schema_field: SchemaField) -> str:
        return schema_field.semantic_text or ""
