# Shared fixtures: in-memory stand-ins for the embedding service, vector store,
# graph store, schema registry and index maintainer.

import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment
os.environ["ENV"] = "development"
os.environ.setdefault("NEO4J_PASSWORD", "testpassword123")
os.environ.setdefault("CONFIG_PATH", str(project_root / "config" / "development.yaml"))

from cascadesync.schema.models import SchemaField  # noqa: E402
from cascadesync.shared.cache import invalidate_all  # noqa: E402

DIMS = 4


def make_field(
    field_name: str,
    field_id: int,
    *,
    model_name: str = "customer",
    model_id: int = 10,
    field_type: str = "char",
    field_label: str = "",
    fk_location_model: Optional[str] = None,
    fk_location_model_id: Optional[int] = None,
) -> SchemaField:
    return SchemaField(
        field_id=field_id,
        model_id=model_id,
        model_name=model_name,
        field_name=field_name,
        field_label=field_label,
        field_type=field_type,
        fk_location_model=fk_location_model,
        fk_location_model_id=fk_location_model_id,
    )


class FakeEmbedder:
    """Deterministic embedder; call numbers (1-based) can be told to fail."""

    def __init__(self, dims: int = DIMS):
        self._dims = dims
        self.calls: List[List[str]] = []
        self.fail_calls: Set[int] = set()
        self.short_calls: Set[int] = set()

    @property
    def dims(self) -> int:
        return self._dims

    @property
    def model_id(self) -> str:
        return "fake-embedder"

    @property
    def provider_name(self) -> str:
        return "fake"

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        call_num = len(self.calls)
        if call_num in self.fail_calls:
            raise RuntimeError("embedding service unavailable")
        vectors = [[float(i)] * self._dims for i in range(len(texts))]
        if call_num in self.short_calls:
            return vectors[:-1]
        return vectors

    def embed_query(self, text: str) -> List[float]:
        return [0.0] * self._dims


class FakeVectorStore:
    def __init__(self):
        self.points: Dict[str, object] = {}
        self.upserts: List[list] = []
        self.fail_calls: Set[int] = set()

    def upsert(self, points) -> None:
        self.upserts.append(list(points))
        if len(self.upserts) in self.fail_calls:
            raise RuntimeError("qdrant write rejected")
        for point in points:
            self.points[point.id] = point


class FakeGraphStore:
    def __init__(self, fail_fields: Sequence[str] = ()):
        self.edges: Dict[tuple, object] = {}
        self.fail_fields = set(fail_fields)
        self.calls = 0

    def upsert_edge(self, edge) -> None:
        self.calls += 1
        if edge.field_name in self.fail_fields:
            raise RuntimeError("neo4j unavailable")
        self.edges[(edge.source_model, edge.field_name)] = edge


class FakeRegistry:
    def __init__(self, models: Optional[Dict[str, List[SchemaField]]] = None):
        self.models: Dict[str, List[SchemaField]] = dict(models or {})

    def model_exists(self, model_name: str) -> bool:
        return bool(self.models.get(model_name))

    def get_model_id(self, model_name: str) -> Optional[int]:
        fields = self.models.get(model_name)
        return fields[0].model_id if fields else None

    def get_model_fields(self, model_name: str) -> List[SchemaField]:
        return list(self.models.get(model_name, []))

    def get_fk_fields(self, model_name: str) -> List[SchemaField]:
        return [f for f in self.get_model_fields(model_name) if f.is_many2one]


class FakeIndexService:
    def __init__(self, fail: bool = False):
        self.calls: List[str] = []
        self.fail = fail

    def ensure_model_indexes(self, model_name, schema_fields):
        self.calls.append(model_name)
        if self.fail:
            raise RuntimeError("index creation failed")
        return None


@pytest.fixture(autouse=True)
def _fresh_caches():
    invalidate_all()
    yield
    invalidate_all()


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def vector_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture
def graph_store() -> FakeGraphStore:
    return FakeGraphStore()
