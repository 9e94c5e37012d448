"""
Ollama embedding provider implementation.

Runs against a local Ollama daemon; useful for development when no hosted
embedding service is available. The model must be pulled first
(`ollama pull bge-m3`).
"""

import os
import time
from typing import List, Optional

import httpx

from cascadesync.providers.settings import EmbeddingSettings
from cascadesync.shared.errors import EmbeddingError
from cascadesync.shared.observability import get_logger
from cascadesync.shared.observability.metrics import (
    embedding_error_total,
    embedding_latency_ms,
    embedding_request_total,
)

logger = get_logger(__name__)


class OllamaEmbeddingProvider:
    """Ollama embedding provider (one /api/embeddings call per text)."""

    def __init__(
        self,
        settings: EmbeddingSettings,
        *,
        base_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        validate: bool = True,
    ):
        """
        Initialize Ollama embedding provider.

        Args:
            settings: Resolved embedding settings (model id, dims, timeout)
            base_url: Ollama API base URL (defaults to OLLAMA_BASE_URL or localhost)
            client: Pre-built httpx client, mainly for tests
            validate: Check the daemon is reachable before first use

        Raises:
            EmbeddingError: If connection to Ollama fails
        """
        self._model_id = settings.model_id
        self._dims = settings.dims
        self._provider_name = "ollama"
        self._base_url = (
            base_url
            or settings.service_url
            or os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
        )

        self._client = client or httpx.Client(
            timeout=settings.timeout_seconds,
            base_url=self._base_url,
            follow_redirects=True,
        )

        if validate:
            self._validate_connection()

        logger.info(
            "OllamaEmbeddingProvider initialized",
            model=self._model_id,
            dims=self._dims,
            base_url=self._base_url,
        )

    def _validate_connection(self):
        """
        Validate connection to Ollama service.

        Raises:
            EmbeddingError: If Ollama is unreachable
        """
        try:
            response = self._client.get("/api/tags")
            response.raise_for_status()

            models = response.json().get("models", [])
            model_names = [m["name"] for m in models]

            if not any(self._model_id in name for name in model_names):
                # Don't fail here - model might be pulled later
                logger.warning(
                    "Model not found in Ollama",
                    model=self._model_id,
                    available=model_names,
                )

        except httpx.HTTPError as e:
            logger.error("Failed to connect to Ollama", base_url=self._base_url, error=str(e))
            raise EmbeddingError(
                f"Cannot connect to Ollama at {self._base_url}. Ensure Ollama is running."
            ) from e

    @property
    def dims(self) -> int:
        return self._dims

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def provider_name(self) -> str:
        return self._provider_name

    def _embed_one(self, text: str) -> List[float]:
        response = self._client.post(
            "/api/embeddings",
            json={"model": self._model_id, "prompt": text},
        )
        response.raise_for_status()

        embedding = response.json().get("embedding")
        if not embedding:
            raise EmbeddingError("Ollama returned no embedding for text")

        if len(embedding) != self._dims:
            raise EmbeddingError(
                f"Ollama returned {len(embedding)}-D vector, expected {self._dims}-D. "
                f"Verify {self._model_id} produces {self._dims}-D embeddings."
            )
        return embedding

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            raise ValueError("Cannot embed empty text list")

        start_time = time.time()
        try:
            embeddings = [self._embed_one(text) for text in texts]
        except Exception as e:
            embedding_error_total.labels(
                model_id=self._model_id, error_type=type(e).__name__
            ).inc()
            logger.error("Failed to embed documents with Ollama", error=str(e))
            if isinstance(e, EmbeddingError):
                raise
            raise EmbeddingError(f"Ollama document embedding failed: {e}") from e

        latency_ms = (time.time() - start_time) * 1000
        embedding_request_total.labels(model_id=self._model_id, operation="documents").inc()
        embedding_latency_ms.labels(model_id=self._model_id, operation="documents").observe(
            latency_ms
        )
        logger.debug(
            "Ollama embeddings generated",
            count=len(embeddings),
            latency_ms=round(latency_ms, 2),
        )
        return embeddings

    def embed_query(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise ValueError("Cannot embed empty query text")
        return self.embed_documents([text])[0]

    def close(self) -> None:
        self._client.close()
