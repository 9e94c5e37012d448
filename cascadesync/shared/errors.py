"""Exception hierarchy shared across cascadesync modules."""


class CascadeSyncError(Exception):
    """Base class for all cascadesync errors."""


class IdentityError(CascadeSyncError, ValueError):
    """Raised when an identity cannot be derived from the given ids."""


class SchemaError(CascadeSyncError):
    """Raised when schema metadata is missing or invalid for a model."""


class RecordLoadError(CascadeSyncError):
    """Raised when a tabular source file cannot be read."""


class EmbeddingError(CascadeSyncError, RuntimeError):
    """Raised when an embedding provider call fails."""
