"""
Base embedding provider protocol.

Every provider returns plain List[List[float]] for documents and List[float]
for queries so vectors serialize straight into Qdrant points (no numpy arrays).
"""

from typing import List, Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Protocol for embedding providers.

    The sync pipeline only relies on embed_documents; embed_query exists so the
    same provider can serve search clients of the unified collection.
    """

    @property
    def dims(self) -> int:
        """Number of dimensions in each embedding vector."""
        ...

    @property
    def model_id(self) -> str:
        """Model identifier (e.g., "BAAI/bge-m3", "nomic-embed-text")."""
        ...

    @property
    def provider_name(self) -> str:
        """Provider name (e.g., "http", "ollama")."""
        ...

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for multiple documents.

        Args:
            texts: List of document texts to embed

        Returns:
            One embedding per input text, in input order

        Raises:
            ValueError: If texts is empty
            EmbeddingError: If embedding generation fails
        """
        ...

    def embed_query(self, text: str) -> List[float]:
        """
        Generate embedding for a single query.

        Raises:
            ValueError: If text is empty
            EmbeddingError: If embedding generation fails
        """
        ...
