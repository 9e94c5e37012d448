"""
Batch embed/upsert pipeline.

Transformed records are cut into contiguous batches and processed strictly in
order. A batch is the unit of atomicity and of failure: any error while
embedding or writing it is recorded once ("Batch <n> failed: ..."), its items
are counted failed, and the loop moves on to the next batch. Batches that
already committed stay committed.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from operator import attrgetter
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from qdrant_client.models import PointStruct

from cascadesync.providers.embeddings.base import EmbeddingProvider
from cascadesync.shared.config import DEFAULT_BATCH_SIZE
from cascadesync.shared.observability import get_logger
from cascadesync.shared.observability.metrics import (
    batch_failures_total,
    records_failed_total,
    records_synced_total,
)

from .transform import TransformedRecord

logger = get_logger(__name__)

DATA_POINT_TYPE = "data"

PointBuilder = Callable[[Any, List[float], str], PointStruct]


class VectorStore(Protocol):
    def upsert(self, points: Sequence[PointStruct]) -> None: ...


@dataclass
class PipelineResult:
    synced: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_data_point(
    record: TransformedRecord, vector: List[float], sync_timestamp: str
) -> PointStruct:
    """Qdrant point for one record; system fields first, record payload on top."""
    point_id = record.point_id
    payload: Dict[str, Any] = {
        "point_id": point_id,
        "point_type": DATA_POINT_TYPE,
        "record_id": record.record_id,
        "model_name": record.model_name,
        "model_id": record.model_id,
        "vector_text": record.vector_text,
        "sync_timestamp": sync_timestamp,
    }
    payload.update(record.payload)
    return PointStruct(id=point_id, vector=list(vector), payload=payload)


class BatchUpsertPipeline:
    """Embeds and writes transformed records batch by batch."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        vector_store: VectorStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.embedder = embedder
        self.vector_store = vector_store
        self.batch_size = batch_size

    def _process_batch(
        self,
        batch: Sequence[Any],
        build_point: PointBuilder,
        text_of: Callable[[Any], str],
    ) -> None:
        texts = [text_of(item) for item in batch]
        embeddings = self.embedder.embed_documents(texts)

        if len(embeddings) != len(batch):
            raise ValueError(
                f"Embedding count mismatch: {len(embeddings)} vs {len(batch)}"
            )

        sync_timestamp = _utc_timestamp()
        points = [
            build_point(item, vector, sync_timestamp)
            for item, vector in zip(batch, embeddings)
        ]
        self.vector_store.upsert(points)

    def run(
        self,
        transformed: Sequence[Any],
        build_point: PointBuilder = build_data_point,
        text_of: Callable[[Any], str] = attrgetter("vector_text"),
        label: Optional[str] = None,
    ) -> PipelineResult:
        """
        Embed and upsert items batch by batch.

        Defaults handle TransformedRecord data points; schema sync passes its
        own point builder, text accessor and metrics label.
        """
        result = PipelineResult()
        if not transformed:
            return result

        model_name = label or transformed[0].model_name
        total_batches = (len(transformed) + self.batch_size - 1) // self.batch_size

        for start in range(0, len(transformed), self.batch_size):
            batch = transformed[start : start + self.batch_size]
            batch_num = start // self.batch_size + 1

            logger.debug(
                "Processing batch",
                model_name=model_name,
                batch=batch_num,
                total_batches=total_batches,
                size=len(batch),
            )

            try:
                self._process_batch(batch, build_point, text_of)
            except Exception as exc:
                message = f"Batch {batch_num} failed: {exc}"
                result.errors.append(message)
                result.failed += len(batch)
                records_failed_total.labels(model_name=model_name).inc(len(batch))
                batch_failures_total.labels(model_name=model_name).inc()
                logger.error(
                    "Batch failed",
                    model_name=model_name,
                    batch=batch_num,
                    size=len(batch),
                    error=str(exc),
                )
                continue

            result.synced += len(batch)
            records_synced_total.labels(model_name=model_name).inc(len(batch))

        logger.info(
            "Pipeline finished",
            model_name=model_name,
            synced=result.synced,
            failed=result.failed,
            batches=total_batches,
        )
        return result
