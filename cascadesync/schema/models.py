from typing import Any, Dict, Optional

from pydantic import ConfigDict, Field

from cascadesync.shared.models import CascadeBaseModel

MANY2ONE = "many2one"
RELATIONAL_TYPES = frozenset({"many2one", "many2many", "one2many"})


class SchemaField(CascadeBaseModel):
    """One field of one model, as stored in the schema registry."""

    model_config = ConfigDict(protected_namespaces=(), extra="ignore")

    field_id: int
    model_id: int
    model_name: str
    field_name: str
    field_label: str = ""
    field_type: str
    stored: bool = True
    fk_location_model: Optional[str] = None
    fk_location_model_id: Optional[int] = None
    fk_location_record_id: Optional[int] = None
    fk_qdrant_id: Optional[str] = None
    semantic_text: Optional[str] = Field(default=None, repr=False)

    @property
    def label(self) -> str:
        return self.field_label or self.field_name

    @property
    def is_many2one(self) -> bool:
        return self.field_type.lower() == MANY2ONE

    @property
    def is_relational(self) -> bool:
        return self.field_type.lower() in RELATIONAL_TYPES

    def to_payload(self) -> Dict[str, Any]:
        """Payload fields stored on the schema point (None values dropped)."""
        return self.model_dump(exclude_none=True, exclude={"semantic_text"})
