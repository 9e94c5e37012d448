"""Schema metadata: field model, simple-schema conversion, registry and schema sync."""

from .models import MANY2ONE, SchemaField

__all__ = ["MANY2ONE", "SchemaField"]
