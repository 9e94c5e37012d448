"""
HTTP embedding provider for OpenAI-compatible embedding services.

Talks to any service exposing POST /v1/embeddings (text-embeddings-inference,
vLLM, LiteLLM, a local BGE-M3 server, ...). Batches are sent as one request and
the response is re-ordered by its "index" field so vector i always belongs to
input i.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

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

DEFAULT_BASE_URL = "http://127.0.0.1:9000"


class HttpEmbeddingProvider:
    """EmbeddingProvider backed by an OpenAI-compatible HTTP service."""

    def __init__(
        self,
        settings: EmbeddingSettings,
        *,
        client: Optional[httpx.Client] = None,
        base_url: Optional[str] = None,
    ) -> None:
        if settings is None:
            raise ValueError("Embedding settings are required for HttpEmbeddingProvider.")

        self._dims = settings.dims
        self._model_id = settings.model_id
        self._provider_name = settings.provider or "http"
        self._base_url = base_url or settings.service_url or DEFAULT_BASE_URL

        headers = {}
        if settings.api_key:
            headers["Authorization"] = f"Bearer {settings.api_key}"
        self._client = client or httpx.Client(
            base_url=self._base_url,
            timeout=settings.timeout_seconds,
            headers=headers,
        )

        logger.info(
            "HttpEmbeddingProvider initialized",
            model=self._model_id,
            dims=self._dims,
            base_url=self._base_url,
        )

    @property
    def dims(self) -> int:
        return self._dims

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def provider_name(self) -> str:
        return self._provider_name

    def close(self) -> None:
        self._client.close()

    def _post_embeddings(self, texts: List[str], operation: str) -> List[List[float]]:
        payload: Dict[str, Any] = {
            "model": self._model_id,
            "input": texts,
            "encoding_format": "float",
        }
        start_time = time.time()
        try:
            response = self._client.post("/v1/embeddings", json=payload)
            if response.status_code != 200:
                raise EmbeddingError(
                    f"Embedding service HTTP {response.status_code}: {response.text}"
                )
            data = sorted(response.json()["data"], key=lambda item: item.get("index", 0))
            vectors = [[float(x) for x in item["embedding"]] for item in data]
        except EmbeddingError as exc:
            embedding_error_total.labels(
                model_id=self._model_id, error_type=type(exc).__name__
            ).inc()
            raise
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            embedding_error_total.labels(
                model_id=self._model_id, error_type=type(exc).__name__
            ).inc()
            raise EmbeddingError(f"Embedding request failed: {exc}") from exc

        for vector in vectors:
            if len(vector) != self._dims:
                embedding_error_total.labels(
                    model_id=self._model_id, error_type="DimensionMismatch"
                ).inc()
                raise EmbeddingError(
                    f"Embedding service returned {len(vector)}-D vector, "
                    f"expected {self._dims}-D"
                )

        latency_ms = (time.time() - start_time) * 1000
        embedding_request_total.labels(model_id=self._model_id, operation=operation).inc()
        embedding_latency_ms.labels(model_id=self._model_id, operation=operation).observe(
            latency_ms
        )
        logger.debug(
            "Embeddings generated",
            count=len(vectors),
            latency_ms=round(latency_ms, 2),
        )
        return vectors

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            raise ValueError("Cannot embed empty text list")
        return self._post_embeddings(texts, "documents")

    def embed_query(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise ValueError("Cannot embed empty query text")
        return self._post_embeddings([text], "query")[0]
