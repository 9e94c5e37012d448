from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class EmbeddingSettings:
    provider: str
    model_id: str
    version: str
    dims: int
    similarity: str = "cosine"
    task: str = "retrieval.passage"
    service_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_seconds: float = 60.0
    extra: Dict[str, str] = field(default_factory=dict)


def build_embedding_telemetry(settings: "EmbeddingSettings") -> Dict[str, str]:
    """Return standardized telemetry tags for embedding settings."""

    return {
        "embedding_provider": settings.provider,
        "embedding_model": settings.model_id,
        "embedding_dims": str(settings.dims),
        "embedding_service_url": settings.service_url or "default",
    }
