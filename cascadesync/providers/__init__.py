"""Embedding provider abstraction and factory."""

from .factory import ProviderFactory
from .settings import EmbeddingSettings

__all__ = ["ProviderFactory", "EmbeddingSettings"]
