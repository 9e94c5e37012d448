# Prometheus metrics for cascadesync

from prometheus_client import Counter, Histogram, generate_latest

# ===== Sync metrics =====
sync_runs_total = Counter(
    "cascadesync_sync_runs_total",
    "Total model sync runs",
    ["model_name", "state", "status"],
)

sync_duration_seconds = Histogram(
    "cascadesync_sync_duration_seconds",
    "Model sync duration in seconds",
    ["model_name"],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
)

records_synced_total = Counter(
    "cascadesync_records_synced_total",
    "Records embedded and written to the vector store",
    ["model_name"],
)

records_failed_total = Counter(
    "cascadesync_records_failed_total",
    "Records lost to a failed batch",
    ["model_name"],
)

batch_failures_total = Counter(
    "cascadesync_batch_failures_total",
    "Embed/upsert batches that failed",
    ["model_name"],
)

cascade_total = Counter(
    "cascadesync_cascade_total",
    "Cascaded syncs triggered from a root sync",
    ["source_model", "target_model", "status"],
)

# ===== Embedding metrics =====
embedding_request_total = Counter(
    "cascadesync_embedding_requests_total",
    "Total embedding requests",
    ["model_id", "operation"],
)

embedding_error_total = Counter(
    "cascadesync_embedding_errors_total",
    "Total embedding errors",
    ["model_id", "error_type"],
)

embedding_latency_ms = Histogram(
    "cascadesync_embedding_latency_ms",
    "Embedding request latency in milliseconds",
    ["model_id", "operation"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
)

# ===== Store metrics =====
qdrant_upsert_total = Counter(
    "cascadesync_qdrant_upsert_total",
    "Total Qdrant upsert operations",
    ["collection_name", "status"],
)

qdrant_operation_latency_ms = Histogram(
    "cascadesync_qdrant_operation_latency_ms",
    "Qdrant operation latency in milliseconds",
    ["collection_name", "operation"],
    buckets=(1, 5, 10, 25, 50, 100, 250, 500, 1000, 2500),
)

graph_edges_upserted_total = Counter(
    "cascadesync_graph_edges_upserted_total",
    "Relationship edges upserted into the graph store",
    ["source_model", "status"],
)

payload_indexes_created_total = Counter(
    "cascadesync_payload_indexes_created_total",
    "Qdrant payload indexes created",
    ["collection_name"],
)


def get_metrics() -> bytes:
    """Render all metrics in Prometheus exposition format."""
    return generate_latest()
