"""
Registry package for payload index management.
"""

from cascadesync.registry.index_service import IndexResult, PayloadIndexService

__all__ = ["IndexResult", "PayloadIndexService"]
