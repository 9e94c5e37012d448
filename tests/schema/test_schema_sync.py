from conftest import FakeEmbedder, FakeVectorStore

from cascadesync.ingestion.pipeline import BatchUpsertPipeline
from cascadesync.schema.sync import SchemaSyncService
from cascadesync.shared.identity import derive_schema_identity

SCHEMA_CSV = (
    "Field_ID,Model_ID,Field_Name,Field_Label,Field_Type,Model_Name,Stored,"
    "FK location field model,FK location field model id,FK location record Id\n"
    "101,10,name,Name,char,customer,Yes,,,\n"
    "102,10,country_id,Country,many2one,customer,Yes,country,20,2001\n"
    "201,20,name,Name,char,country,Yes,,,\n"
)


def _service(embedder, store, batch_size=50):
    return SchemaSyncService(BatchUpsertPipeline(embedder, store, batch_size=batch_size))


def test_schema_points_are_upserted(tmp_path):
    path = tmp_path / "schema.csv"
    path.write_text(SCHEMA_CSV, encoding="utf-8")
    embedder, store = FakeEmbedder(), FakeVectorStore()

    result = _service(embedder, store).sync_file(path)

    assert result.success
    assert result.fields_read == 3
    assert result.fields_synced == 3
    assert result.models == ("country", "customer")

    point = store.points[derive_schema_identity(102, 10)]
    assert point.payload["point_type"] == "schema"
    assert point.payload["model_name"] == "customer"
    assert point.payload["field_type"] == "many2one"
    assert point.payload["fk_location_model_id"] == 20
    assert point.payload["fk_qdrant_id"] == derive_schema_identity(2001, 20)
    assert point.payload["vector_text"].startswith("In model customer, Field_ID - 102")
    assert "semantic_text" not in point.payload


def test_schema_batch_failure_is_isolated(tmp_path):
    path = tmp_path / "schema.csv"
    path.write_text(SCHEMA_CSV, encoding="utf-8")
    embedder, store = FakeEmbedder(), FakeVectorStore()
    embedder.fail_calls = {1}

    result = _service(embedder, store, batch_size=2).sync_file(path)

    assert not result.success
    assert result.fields_synced == 1
    assert result.fields_failed == 2
    assert result.errors == ("Batch 1 failed: embedding service unavailable",)


def test_invalid_schema_writes_nothing(tmp_path):
    path = tmp_path / "schema.csv"
    path.write_text(
        "Field_ID,Model_ID,Field_Name,Field_Type,Model_Name\nabc,10,name,char,customer\n",
        encoding="utf-8",
    )
    embedder, store = FakeEmbedder(), FakeVectorStore()

    result = _service(embedder, store).sync_file(path)

    assert not result.success
    assert "Schema validation failed" in result.errors[0]
    assert embedder.calls == []


def test_missing_schema_file(tmp_path):
    result = _service(FakeEmbedder(), FakeVectorStore()).sync_file(tmp_path / "nope.csv")
    assert not result.success
    assert result.to_dict()["errors"][0].startswith("File not found")
