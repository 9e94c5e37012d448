from pydantic import BaseModel, ConfigDict


class CascadeBaseModel(BaseModel):
    model_config = ConfigDict(
        protected_namespaces=(),  # allow fields like model_name / model_id
        arbitrary_types_allowed=True,
    )
