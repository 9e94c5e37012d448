# Connection management for Qdrant (vector store) and Neo4j (graph store)

import time
from typing import Any, Dict, Optional, Sequence

from neo4j import Driver, GraphDatabase
from qdrant_client import QdrantClient
from qdrant_client.models import Distance, PointStruct, VectorParams

from .config import Config, Settings, get_config, get_settings
from .observability import get_logger
from .observability.metrics import qdrant_operation_latency_ms, qdrant_upsert_total

logger = get_logger(__name__)

_DISTANCE_MAP = {
    "cosine": Distance.COSINE,
    "euclid": Distance.EUCLID,
    "euclidean": Distance.EUCLID,
    "dot": Distance.DOT,
}


class CompatQdrantClient(QdrantClient):
    """
    Subclass of QdrantClient adding dimension-validated upserts and idempotent
    collection bootstrap.
    """

    def __init__(self, *args, **kwargs):
        if args and isinstance(args[0], QdrantClient):
            base_client: QdrantClient = args[0]
            self.__dict__ = base_client.__dict__
        else:
            super().__init__(*args, **kwargs)

    def upsert_validated(
        self,
        collection_name: str,
        points: Sequence[PointStruct],
        expected_dim: int,
        wait: bool = True,
    ):
        """
        Upsert points with dimension validation.

        Raises:
            ValueError: If any vector dimension doesn't match expected_dim
        """
        start_time = time.time()
        status = "success"

        try:
            for i, point in enumerate(points):
                vector = getattr(point, "vector", None) or []
                if expected_dim and len(vector) != expected_dim:
                    raise ValueError(
                        f"Dimension mismatch in point {i}: expected {expected_dim}, "
                        f"got {len(vector)}. Point ID: {getattr(point, 'id', 'unknown')}"
                    )

            result = super().upsert(
                collection_name=collection_name,
                points=list(points),
                wait=wait,
            )

            latency_ms = (time.time() - start_time) * 1000
            qdrant_upsert_total.labels(
                collection_name=collection_name, status=status
            ).inc()
            qdrant_operation_latency_ms.labels(
                collection_name=collection_name, operation="upsert"
            ).observe(latency_ms)

            return result

        except Exception:
            status = "error"
            qdrant_upsert_total.labels(
                collection_name=collection_name, status=status
            ).inc()
            raise

    def create_collection_with_dims(
        self,
        collection_name: str,
        size: int,
        distance: str = "cosine",
    ) -> bool:
        """
        Create a collection with specific dimensions if it does not exist.

        Returns:
            True if the collection was created, False if it already existed
        """
        distance_enum = _DISTANCE_MAP.get(distance.lower(), Distance.COSINE)

        collections = self.get_collections()
        if collection_name in [c.name for c in collections.collections]:
            logger.info(
                "Collection already exists, skipping creation",
                collection=collection_name,
            )
            return False

        logger.info(
            "Creating collection",
            collection=collection_name,
            size=size,
            distance=distance,
        )
        self.create_collection(
            collection_name=collection_name,
            vectors_config=VectorParams(size=size, distance=distance_enum),
        )
        return True


class QdrantVectorStore:
    """
    The unified collection seen as a plain vector store: upsert(points).

    Upserts are idempotent on point id, so re-writing a record replaces it.
    """

    def __init__(self, client: CompatQdrantClient, collection_name: str, dims: int):
        self.client = client
        self.collection_name = collection_name
        self.dims = dims

    def upsert(self, points: Sequence[PointStruct]) -> None:
        if not points:
            return
        self.client.upsert_validated(
            collection_name=self.collection_name,
            points=points,
            expected_dim=self.dims,
        )
        logger.debug(
            "Points upserted",
            collection=self.collection_name,
            count=len(points),
        )


class ConnectionManager:
    """Manages connections to Qdrant and Neo4j"""

    def __init__(
        self, settings: Optional[Settings] = None, config: Optional[Config] = None
    ):
        self.settings = settings or get_settings()
        self.config = config or get_config()
        self._neo4j_driver: Optional[Driver] = None
        self._qdrant_client: Optional[CompatQdrantClient] = None

    # Neo4j
    def get_neo4j_driver(self) -> Driver:
        """Get or create Neo4j driver"""
        if self._neo4j_driver is None:
            logger.info(
                "Initializing Neo4j driver",
                uri=self.settings.neo4j_uri,
                user=self.settings.neo4j_user,
            )
            self._neo4j_driver = GraphDatabase.driver(
                self.settings.neo4j_uri,
                auth=(self.settings.neo4j_user, self.settings.neo4j_password),
                max_connection_lifetime=3600,
                max_connection_pool_size=50,
                connection_acquisition_timeout=60,
            )
            self._neo4j_driver.verify_connectivity()
            logger.info("Neo4j driver initialized successfully")
        return self._neo4j_driver

    def close_neo4j(self) -> None:
        """Close Neo4j driver"""
        if self._neo4j_driver:
            logger.info("Closing Neo4j driver")
            self._neo4j_driver.close()
            self._neo4j_driver = None

    # Qdrant
    def get_qdrant_client(self) -> CompatQdrantClient:
        """Get or create Qdrant client with compatibility wrapper"""
        if self._qdrant_client is None:
            logger.info(
                "Initializing Qdrant client",
                host=self.settings.qdrant_host,
                port=self.settings.qdrant_port,
            )
            kwargs: Dict[str, Any] = {
                "host": self.settings.qdrant_host,
                "port": self.settings.qdrant_port,
                "timeout": self.config.qdrant.timeout,
            }
            if self.settings.qdrant_api_key:
                kwargs["api_key"] = self.settings.qdrant_api_key
            self._qdrant_client = CompatQdrantClient(**kwargs)
            logger.info("Qdrant client initialized successfully")
        return self._qdrant_client

    def get_vector_store(self) -> QdrantVectorStore:
        """Unified collection wrapper, creating the collection on first use."""
        client = self.get_qdrant_client()
        qdrant_cfg = self.config.qdrant
        if qdrant_cfg.create_collection:
            client.create_collection_with_dims(
                qdrant_cfg.collection_name,
                size=self.config.embedding.dims,
                distance=qdrant_cfg.distance,
            )
        return QdrantVectorStore(
            client, qdrant_cfg.collection_name, self.config.embedding.dims
        )

    def close_qdrant(self) -> None:
        """Close Qdrant client"""
        if self._qdrant_client:
            logger.info("Closing Qdrant client")
            self._qdrant_client.close()
            self._qdrant_client = None

    def close_all(self) -> None:
        """Close all connections"""
        logger.info("Closing all connections")
        self.close_neo4j()
        self.close_qdrant()
        logger.info("All connections closed")
