"""
Record ingestion: loading, FK extraction, transformation, batch upsert and
the cascading data sync built on top of them.
"""

from .cascade import CascadedModel, DataSyncService, SyncResult, SyncState
from .fk import FkExtraction, FkSource, extract_fk_value
from .fk_targets import FkTargetCollector
from .loader import load_records
from .pipeline import BatchUpsertPipeline, PipelineResult
from .transform import TransformedRecord, transform_records

__all__ = [
    "BatchUpsertPipeline",
    "CascadedModel",
    "DataSyncService",
    "FkExtraction",
    "FkSource",
    "FkTargetCollector",
    "PipelineResult",
    "SyncResult",
    "SyncState",
    "TransformedRecord",
    "extract_fk_value",
    "load_records",
    "transform_records",
]
