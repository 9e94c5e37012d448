import pytest

from cascadesync.ingestion.pipeline import BatchUpsertPipeline, build_data_point
from cascadesync.ingestion.transform import TransformedRecord
from cascadesync.shared.identity import derive_data_identity


def _records(count: int, model_name: str = "customer", model_id: int = 10):
    return [
        TransformedRecord(
            record_id=i,
            model_name=model_name,
            model_id=model_id,
            vector_text=f"In model {model_name}, record {i}",
            payload={"id": i, "name": f"row {i}"},
        )
        for i in range(1, count + 1)
    ]


def test_batches_are_contiguous_and_sequential(embedder, vector_store):
    result = BatchUpsertPipeline(embedder, vector_store, batch_size=50).run(
        _records(120)
    )
    assert result.synced == 120
    assert result.failed == 0
    assert result.errors == []
    assert [len(call) for call in embedder.calls] == [50, 50, 20]
    assert embedder.calls[1][0] == "In model customer, record 51"
    assert len(vector_store.points) == 120


def test_failed_batch_is_isolated(embedder, vector_store):
    embedder.fail_calls = {2}
    result = BatchUpsertPipeline(embedder, vector_store, batch_size=50).run(
        _records(120)
    )

    assert result.synced == 70
    assert result.failed == 50
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Batch 2 failed:")
    # batches 1 and 3 committed
    assert derive_data_identity(10, 1) in vector_store.points
    assert derive_data_identity(10, 120) in vector_store.points
    assert derive_data_identity(10, 51) not in vector_store.points


def test_store_write_failure_counts_batch_as_failed(embedder, vector_store):
    vector_store.fail_calls = {3}
    result = BatchUpsertPipeline(embedder, vector_store, batch_size=50).run(
        _records(120)
    )
    assert result.synced == 100
    assert result.failed == 20
    assert result.errors == ["Batch 3 failed: qdrant write rejected"]


def test_embedding_count_mismatch_fails_only_that_batch(embedder, vector_store):
    embedder.short_calls = {1}
    result = BatchUpsertPipeline(embedder, vector_store, batch_size=10).run(
        _records(15)
    )
    assert result.synced == 5
    assert result.failed == 10
    assert result.errors == ["Batch 1 failed: Embedding count mismatch: 9 vs 10"]


def test_point_payload_carries_system_fields(embedder, vector_store):
    BatchUpsertPipeline(embedder, vector_store, batch_size=5).run(_records(3))
    point = vector_store.points[derive_data_identity(10, 2)]

    assert point.vector == [1.0, 1.0, 1.0, 1.0]
    assert point.payload["point_id"] == derive_data_identity(10, 2)
    assert point.payload["point_type"] == "data"
    assert point.payload["record_id"] == 2
    assert point.payload["model_name"] == "customer"
    assert point.payload["model_id"] == 10
    assert point.payload["vector_text"] == "In model customer, record 2"
    assert point.payload["name"] == "row 2"
    assert "T" in point.payload["sync_timestamp"]


def test_record_payload_overrides_system_fields():
    record = _records(1)[0]
    record.payload["model_name"] = "overridden"
    point = build_data_point(record, [0.0], "2026-01-01T00:00:00+00:00")
    assert point.payload["model_name"] == "overridden"


def test_resync_is_idempotent(embedder, vector_store):
    pipeline = BatchUpsertPipeline(embedder, vector_store, batch_size=50)
    pipeline.run(_records(30))
    pipeline.run(_records(30))
    assert len(vector_store.points) == 30


def test_empty_input_makes_no_calls(embedder, vector_store):
    result = BatchUpsertPipeline(embedder, vector_store).run([])
    assert (result.synced, result.failed, result.errors) == (0, 0, [])
    assert embedder.calls == []
    assert vector_store.upserts == []


def test_batch_size_must_be_positive(embedder, vector_store):
    with pytest.raises(ValueError):
        BatchUpsertPipeline(embedder, vector_store, batch_size=0)
