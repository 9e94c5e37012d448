"""Schema-driven record sync into a unified Qdrant collection with FK cascade."""

__version__ = "0.1.0"
