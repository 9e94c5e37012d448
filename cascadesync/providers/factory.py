"""
Provider factory for config-selectable embedding providers.

Supported providers:
- http: OpenAI-compatible /v1/embeddings service
- ollama: local Ollama daemon
"""

from typing import Callable, Dict, Optional

from cascadesync.providers.embeddings.base import EmbeddingProvider
from cascadesync.providers.settings import EmbeddingSettings, build_embedding_telemetry
from cascadesync.shared.observability import get_logger

logger = get_logger(__name__)


def _create_http_provider(settings: EmbeddingSettings, **kwargs) -> EmbeddingProvider:
    from cascadesync.providers.embeddings.http_service import HttpEmbeddingProvider

    return HttpEmbeddingProvider(settings, **kwargs)


def _create_ollama_provider(settings: EmbeddingSettings, **kwargs) -> EmbeddingProvider:
    from cascadesync.providers.embeddings.ollama import OllamaEmbeddingProvider

    return OllamaEmbeddingProvider(settings, **kwargs)


class ProviderFactory:
    """Factory for creating embedding providers from resolved settings."""

    _EMBEDDING_PROVIDER_CREATORS: Dict[
        str, Callable[..., EmbeddingProvider]
    ] = {
        "http": _create_http_provider,
        "ollama": _create_ollama_provider,
    }
    _EMBEDDING_PROVIDER_ALIASES = {
        "openai-compatible": "http",
        "openai_compatible": "http",
        "tei": "http",
        "bge-m3-service": "http",
        "bge_m3_service": "http",
        "local": "ollama",
    }

    @classmethod
    def create_embedding_provider(
        cls,
        settings: Optional[EmbeddingSettings] = None,
        **kwargs,
    ) -> EmbeddingProvider:
        """Create the embedding provider named by the settings."""
        if settings is None:
            from cascadesync.shared.config import get_embedding_settings

            settings = get_embedding_settings()

        provider_key = cls._normalize_provider(settings.provider)
        creator = cls._EMBEDDING_PROVIDER_CREATORS.get(provider_key)
        if not creator:
            raise ValueError(
                f"Unknown embedding provider: {settings.provider}. "
                f"Supported: {sorted(cls._EMBEDDING_PROVIDER_CREATORS.keys())}"
            )

        logger.info("Creating embedding provider", **build_embedding_telemetry(settings))
        return creator(settings, **kwargs)

    @classmethod
    def _normalize_provider(cls, provider: Optional[str]) -> str:
        base = (provider or "").strip().lower()
        return cls._EMBEDDING_PROVIDER_ALIASES.get(base, base)
