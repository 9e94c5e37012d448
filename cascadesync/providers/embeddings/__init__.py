"""
Embedding provider interfaces and implementations.
"""

from .base import EmbeddingProvider
from .http_service import HttpEmbeddingProvider
from .ollama import OllamaEmbeddingProvider

__all__ = [
    "EmbeddingProvider",
    "HttpEmbeddingProvider",
    "OllamaEmbeddingProvider",
]
