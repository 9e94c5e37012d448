"""
Data sync with one-hop FK cascade.

DataSyncService.sync() drives one model end to end:

    schema lookup -> load records -> transform -> embed/upsert batches
    -> graph edges (advisory) -> payload indexes (advisory) -> cascade

A call runs in one of two states. ROOT passes collect the FK targets of the
records they just synced and run one CASCADED pass per target model. CASCADED
passes never look at FK targets, so depth is bounded to one hop without any
recursion. Cascade outcomes are advisory: a failing target is logged and left
out of cascaded_models, it never touches the root result's errors.
"""

import re
import time
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Set,
    Tuple,
    Union,
)

from cascadesync.schema.models import SchemaField
from cascadesync.shared.cache import invalidate_all
from cascadesync.shared.errors import CascadeSyncError
from cascadesync.shared.observability import get_logger, set_correlation_id
from cascadesync.shared.observability.metrics import (
    cascade_total,
    sync_duration_seconds,
    sync_runs_total,
)

from .fk_targets import FkTargetCollector
from .loader import load_records
from .pipeline import BatchUpsertPipeline
from .transform import transform_records

logger = get_logger(__name__)

RecordLoader = Callable[[Union[str, Path]], List[Dict[str, Any]]]


def _count_cascade(source_model: str, target_model: str, status: str) -> None:
    cascade_total.labels(
        source_model=source_model, target_model=target_model, status=status
    ).inc()


class SyncState(str, Enum):
    ROOT = "root"
    CASCADED = "cascaded"


class SchemaRegistry(Protocol):
    def model_exists(self, model_name: str) -> bool: ...

    def get_model_id(self, model_name: str) -> Optional[int]: ...

    def get_model_fields(self, model_name: str) -> Sequence[SchemaField]: ...

    def get_fk_fields(self, model_name: str) -> Sequence[SchemaField]: ...


class GraphUpdater(Protocol):
    def update(
        self,
        model_name: str,
        model_id: int,
        records: Sequence[Mapping[str, Any]],
        schema_fields: Sequence[SchemaField],
        cascade_source: Optional[str] = None,
    ) -> Any: ...


class IndexMaintainer(Protocol):
    def ensure_model_indexes(
        self, model_name: str, schema_fields: Sequence[SchemaField]
    ) -> Any: ...


@dataclass(frozen=True)
class CascadedModel:
    model_name: str
    records_synced: int


@dataclass(frozen=True)
class SyncResult:
    success: bool
    model_name: str
    model_id: int
    file_path: str
    records_read: int = 0
    records_synced: int = 0
    records_failed: int = 0
    duration_ms: int = 0
    errors: Tuple[str, ...] = ()
    cascaded_models: Optional[Tuple[CascadedModel, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "model_name": self.model_name,
            "model_id": self.model_id,
            "file_path": self.file_path,
            "records_read": self.records_read,
            "records_synced": self.records_synced,
            "records_failed": self.records_failed,
            "duration_ms": self.duration_ms,
            "errors": list(self.errors),
        }
        if self.cascaded_models is not None:
            data["cascaded_models"] = [
                {"model_name": m.model_name, "records_synced": m.records_synced}
                for m in self.cascaded_models
            ]
        return data


@dataclass
class _Pass:
    """Outcome of one single-model pass, before it is frozen into a SyncResult."""

    result: SyncResult
    records: Sequence[Mapping[str, Any]] = ()
    reached_pipeline: bool = False


class DataSyncService:
    def __init__(
        self,
        registry: SchemaRegistry,
        pipeline: BatchUpsertPipeline,
        graph_updater: Optional[GraphUpdater] = None,
        index_service: Optional[IndexMaintainer] = None,
        *,
        data_dir: Union[str, Path] = "samples",
        file_prefix: str = "SAMPLE_",
        extensions: Sequence[str] = (".xlsx", ".csv"),
        default_extension: str = ".xlsx",
        loader: RecordLoader = load_records,
        invalidate_caches: Callable[[], Any] = invalidate_all,
    ):
        self.registry = registry
        self.pipeline = pipeline
        self.graph_updater = graph_updater
        self.index_service = index_service
        self.collector = FkTargetCollector(registry)
        self.data_dir = Path(data_dir)
        self.file_prefix = file_prefix
        self.extensions = tuple(extensions)
        self.default_extension = default_extension
        self.loader = loader
        self.invalidate_caches = invalidate_caches

    # ------------------------------------------------------------------
    # Source files
    # ------------------------------------------------------------------
    def default_file_path(self, model_name: str) -> Path:
        """<data_dir>/<prefix><model>_data.<ext>, first existing extension wins."""
        stem = f"{self.file_prefix}{model_name}_data"
        for ext in self.extensions:
            candidate = self.data_dir / f"{stem}{ext}"
            if candidate.exists():
                return candidate
        return self.data_dir / f"{stem}{self.default_extension}"

    def discover_models(self) -> List[str]:
        """Model names that have a data file in data_dir, sorted by file name."""
        if not self.data_dir.is_dir():
            logger.error("Data directory not found", data_dir=str(self.data_dir))
            return []

        ext_pattern = "|".join(re.escape(ext) for ext in self.extensions)
        pattern = re.compile(
            rf"^{re.escape(self.file_prefix)}(.+)_data({ext_pattern})$"
        )
        models: List[str] = []
        for entry in sorted(self.data_dir.iterdir(), key=lambda p: p.name):
            match = pattern.match(entry.name)
            if entry.is_file() and match and match.group(1) not in models:
                models.append(match.group(1))
        return models

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def sync(
        self,
        model_name: str,
        *,
        file_path: Optional[Union[str, Path]] = None,
        skip_cascade: bool = False,
        dry_run: bool = False,
        force: bool = False,
    ) -> SyncResult:
        state = SyncState.CASCADED if skip_cascade else SyncState.ROOT
        set_correlation_id(str(uuid.uuid4()))

        if force:
            self.invalidate_caches()

        root = self._run_pass(model_name, file_path, state, dry_run)
        if state is SyncState.CASCADED or not root.reached_pipeline:
            return root.result

        targets = self.collector.collect(root.records, model_name)
        if not targets:
            return root.result

        cascaded = self._cascade(model_name, targets)
        result = replace(root.result, cascaded_models=tuple(cascaded) or None)
        if cascaded:
            logger.info(
                "Cascade complete",
                model_name=model_name,
                cascaded=[m.model_name for m in cascaded],
            )
        return result

    def sync_all(
        self, *, dry_run: bool = False, force: bool = False
    ) -> List[SyncResult]:
        """Sync every model with a data file in data_dir, cascade off."""
        models = self.discover_models()
        logger.info("Found data files", data_dir=str(self.data_dir), models=len(models))

        results: List[SyncResult] = []
        for index, model_name in enumerate(models):
            results.append(
                self.sync(
                    model_name,
                    skip_cascade=True,
                    dry_run=dry_run,
                    # one invalidation covers the whole run
                    force=force and index == 0,
                )
            )
        return results

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _cascade(
        self, source_model: str, targets: Dict[str, Set[int]]
    ) -> List[CascadedModel]:
        cascaded: List[CascadedModel] = []
        visited = {source_model}

        for target_model, target_ids in targets.items():
            if target_model in visited:
                logger.debug(
                    "Skipping cascade target already synced in this call",
                    source_model=source_model,
                    target_model=target_model,
                )
                continue
            visited.add(target_model)

            logger.info(
                "Cascading to FK target",
                source_model=source_model,
                target_model=target_model,
                target_ids=len(target_ids),
            )
            try:
                outcome = self._run_pass(
                    target_model,
                    None,
                    SyncState.CASCADED,
                    False,
                    cascade_source=source_model,
                )
            except Exception as exc:
                _count_cascade(source_model, target_model, "error")
                logger.warning(
                    "Cascade failed",
                    source_model=source_model,
                    target_model=target_model,
                    error=str(exc),
                )
                continue

            if not outcome.result.success:
                _count_cascade(source_model, target_model, "failed")
                logger.warning(
                    "Cascade sync unsuccessful",
                    source_model=source_model,
                    target_model=target_model,
                    errors=list(outcome.result.errors),
                )
                continue

            _count_cascade(source_model, target_model, "success")
            cascaded.append(
                CascadedModel(
                    model_name=target_model,
                    records_synced=outcome.result.records_synced,
                )
            )

        return cascaded

    def _run_pass(
        self,
        model_name: str,
        file_path: Optional[Union[str, Path]],
        state: SyncState,
        dry_run: bool,
        cascade_source: Optional[str] = None,
    ) -> _Pass:
        start = time.time()
        source = Path(file_path) if file_path else self.default_file_path(model_name)

        def finish(
            model_id: int = 0,
            errors: Sequence[str] = (),
            records_read: int = 0,
            records_synced: int = 0,
            records_failed: int = 0,
        ) -> SyncResult:
            duration = time.time() - start
            success = not errors
            sync_runs_total.labels(
                model_name=model_name,
                state=state.value,
                status="success" if success else "failed",
            ).inc()
            sync_duration_seconds.labels(model_name=model_name).observe(duration)
            return SyncResult(
                success=success,
                model_name=model_name,
                model_id=model_id,
                file_path=str(source),
                records_read=records_read,
                records_synced=records_synced,
                records_failed=records_failed,
                duration_ms=int(duration * 1000),
                errors=tuple(errors),
            )

        logger.info(
            "Starting sync",
            model_name=model_name,
            state=state.value,
            file_path=str(source),
            dry_run=dry_run,
        )

        if not self.registry.model_exists(model_name):
            error = f"Model '{model_name}' not found in schema. Run schema sync first."
            logger.error("Sync aborted", model_name=model_name, error=error)
            return _Pass(finish(errors=[error]))

        model_id = self.registry.get_model_id(model_name)
        if not model_id:
            error = f"Could not get model ID for: {model_name}"
            logger.error("Sync aborted", model_name=model_name, error=error)
            return _Pass(finish(errors=[error]))

        try:
            records = self.loader(source)
        except (FileNotFoundError, CascadeSyncError) as exc:
            logger.error("Sync aborted", model_name=model_name, error=str(exc))
            return _Pass(finish(model_id=model_id, errors=[str(exc)]))

        if not records:
            logger.warning(
                "No records found", model_name=model_name, file_path=str(source)
            )
            return _Pass(finish(model_id=model_id))

        if dry_run:
            logger.info(
                "Dry run, nothing written",
                model_name=model_name,
                records=len(records),
            )
            return _Pass(finish(model_id=model_id, records_read=len(records)))

        schema_fields = self.registry.get_model_fields(model_name)
        try:
            transformed = transform_records(
                records, model_name, model_id, schema_fields
            )
        except CascadeSyncError as exc:
            logger.error("Sync aborted", model_name=model_name, error=str(exc))
            return _Pass(
                finish(model_id=model_id, errors=[str(exc)], records_read=len(records))
            )

        pipeline_result = self.pipeline.run(transformed)

        self._update_graph(
            model_name, model_id, records, schema_fields, cascade_source
        )
        self._ensure_indexes(model_name, schema_fields)

        result = finish(
            model_id=model_id,
            errors=pipeline_result.errors,
            records_read=len(records),
            records_synced=pipeline_result.synced,
            records_failed=pipeline_result.failed,
        )
        logger.info(
            "Sync complete",
            model_name=model_name,
            model_id=model_id,
            state=state.value,
            records_read=result.records_read,
            records_synced=result.records_synced,
            records_failed=result.records_failed,
            duration_ms=result.duration_ms,
        )
        return _Pass(result, records=records, reached_pipeline=True)

    def _update_graph(
        self,
        model_name: str,
        model_id: int,
        records: Sequence[Mapping[str, Any]],
        schema_fields: Sequence[SchemaField],
        cascade_source: Optional[str] = None,
    ) -> None:
        if self.graph_updater is None:
            return
        try:
            graph_result = self.graph_updater.update(
                model_name,
                model_id,
                records,
                schema_fields,
                cascade_source=cascade_source,
            )
        except Exception as exc:
            logger.warning(
                "Graph update failed", model_name=model_name, error=str(exc)
            )
            return
        if graph_result.edges_created:
            logger.info(
                "Graph edges upserted",
                model_name=model_name,
                edges=graph_result.edges_created,
            )

    def _ensure_indexes(
        self, model_name: str, schema_fields: Sequence[SchemaField]
    ) -> None:
        if self.index_service is None:
            return
        try:
            self.index_service.ensure_model_indexes(model_name, schema_fields)
        except Exception as exc:
            logger.warning(
                "Payload index maintenance failed",
                model_name=model_name,
                error=str(exc),
            )
