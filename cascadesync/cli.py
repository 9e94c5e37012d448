"""
Command-line interface for schema and data sync.

    cascadesync sync-schema schema.xlsx
    cascadesync sync customer --skip-cascade
    cascadesync sync-all --dry-run --json

Structured logs go to stderr; stdout carries only the human summary or the
--json document. Exit status is 1 when any sync result failed.
"""

import argparse
import json
import sys
from typing import Iterable, Optional, Sequence

from cascadesync.ingestion.cascade import DataSyncService, SyncResult
from cascadesync.ingestion.pipeline import BatchUpsertPipeline
from cascadesync.neo.knowledge_graph import KnowledgeGraphUpdater, Neo4jGraphStore
from cascadesync.providers import ProviderFactory
from cascadesync.registry.index_service import PayloadIndexService
from cascadesync.schema.registry import QdrantSchemaRegistry
from cascadesync.schema.sync import SchemaSyncResult, SchemaSyncService
from cascadesync.shared.config import Config, get_embedding_settings, reload_config
from cascadesync.shared.connections import ConnectionManager
from cascadesync.shared.observability import get_logger, get_metrics, setup_logging

logger = get_logger(__name__)


def _build_pipeline(config: Config, manager: ConnectionManager) -> BatchUpsertPipeline:
    embedder = ProviderFactory.create_embedding_provider(
        get_embedding_settings(config, manager.settings)
    )
    return BatchUpsertPipeline(
        embedder, manager.get_vector_store(), batch_size=config.sync.batch_size
    )


def build_data_sync_service(
    config: Config, manager: ConnectionManager
) -> DataSyncService:
    """Wire the data sync service against live Qdrant / Neo4j / embeddings."""
    client = manager.get_qdrant_client()
    collection = config.qdrant.collection_name

    graph_updater = None
    if config.graph.enabled:
        graph_updater = KnowledgeGraphUpdater(
            Neo4jGraphStore(
                manager.get_neo4j_driver(),
                relationship_type=config.graph.relationship_type,
            )
        )

    return DataSyncService(
        QdrantSchemaRegistry(client, collection),
        _build_pipeline(config, manager),
        graph_updater=graph_updater,
        index_service=PayloadIndexService(client, collection),
        data_dir=config.sync.data_dir,
        file_prefix=config.sync.file_prefix,
        extensions=config.sync.extensions,
        default_extension=config.sync.default_extension,
    )


def build_schema_sync_service(
    config: Config, manager: ConnectionManager
) -> SchemaSyncService:
    return SchemaSyncService(_build_pipeline(config, manager))


def _print_sync_result(result: SyncResult) -> None:
    status = "OK" if result.success else "FAILED"
    print(f"[{status}] {result.model_name} (id: {result.model_id})")
    print(f"  File: {result.file_path}")
    print(
        f"  Records: {result.records_read} read, {result.records_synced} synced, "
        f"{result.records_failed} failed"
    )
    print(f"  Duration: {result.duration_ms}ms")
    for error in result.errors:
        print(f"  Error: {error}")
    if result.cascaded_models:
        print("  Cascaded:")
        for cascaded in result.cascaded_models:
            print(f"    - {cascaded.model_name}: {cascaded.records_synced} records")


def _emit_sync_results(results: Sequence[SyncResult], as_json: bool) -> int:
    if as_json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
    else:
        for result in results:
            _print_sync_result(result)
        if len(results) > 1:
            ok = sum(1 for r in results if r.success)
            print(f"\n{ok}/{len(results)} models synced successfully")
    return 0 if all(r.success for r in results) else 1


def cmd_sync(args, service: DataSyncService) -> int:
    result = service.sync(
        args.model,
        file_path=args.file,
        skip_cascade=args.skip_cascade,
        dry_run=args.dry_run,
        force=args.force,
    )
    return _emit_sync_results([result], args.json)


def cmd_sync_all(args, service: DataSyncService) -> int:
    results = service.sync_all(dry_run=args.dry_run, force=args.force)
    if not results and not args.json:
        print("No data files found", file=sys.stderr)
    return _emit_sync_results(results, args.json)


def cmd_sync_schema(args, service: SchemaSyncService) -> int:
    result: SchemaSyncResult = service.sync_file(args.file)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        status = "OK" if result.success else "FAILED"
        print(f"[{status}] schema {result.file_path}")
        print(
            f"  Fields: {result.fields_read} read, {result.fields_synced} synced, "
            f"{result.fields_failed} failed"
        )
        print(f"  Models: {', '.join(result.models) or '-'}")
        for error in result.errors:
            print(f"  Error: {error}")
    return 0 if result.success else 1


def _write_metrics(path: str) -> None:
    with open(path, "wb") as f:
        f.write(get_metrics())
    logger.info("Metrics written", path=path)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cascadesync",
        description="Sync schema and tabular model data into Qdrant and Neo4j",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--metrics-file",
        help="Write Prometheus metrics (text format) here when the command ends",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    sync_parser = subparsers.add_parser("sync", help="Sync one model's data file")
    sync_parser.add_argument("model", help="Model name (e.g. customer)")
    sync_parser.add_argument(
        "--file", help="Data file (default: <data_dir>/SAMPLE_<model>_data.xlsx)"
    )
    sync_parser.add_argument(
        "--skip-cascade",
        action="store_true",
        help="Do not sync models referenced through FK fields",
    )
    sync_parser.add_argument(
        "--dry-run", action="store_true", help="Read the file, write nothing"
    )
    sync_parser.add_argument(
        "--force", action="store_true", help="Drop cached schema state first"
    )
    sync_parser.add_argument("--json", action="store_true", help="JSON output")

    all_parser = subparsers.add_parser(
        "sync-all", help="Sync every data file in the data directory"
    )
    all_parser.add_argument("--dry-run", action="store_true")
    all_parser.add_argument("--force", action="store_true")
    all_parser.add_argument("--json", action="store_true", help="JSON output")

    schema_parser = subparsers.add_parser(
        "sync-schema", help="Load a simple schema sheet into the schema registry"
    )
    schema_parser.add_argument("file", help="Simple schema .xlsx/.csv file")
    schema_parser.add_argument("--json", action="store_true", help="JSON output")

    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if not args.command:
        parser.print_help()
        return 1

    config, settings = reload_config()
    setup_logging(settings.log_level or config.app.log_level)

    manager = ConnectionManager(settings, config)
    try:
        if args.command == "sync":
            return cmd_sync(args, build_data_sync_service(config, manager))
        elif args.command == "sync-all":
            return cmd_sync_all(args, build_data_sync_service(config, manager))
        elif args.command == "sync-schema":
            return cmd_sync_schema(args, build_schema_sync_service(config, manager))
        else:
            parser.print_help()
            return 1
    except Exception as exc:
        logger.error("Command failed", command=args.command, error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        manager.close_all()
        if args.metrics_file:
            _write_metrics(args.metrics_file)


if __name__ == "__main__":
    sys.exit(main())
