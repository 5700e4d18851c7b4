"""Models describing the provider models a client may select."""

from pydantic import BaseModel


class ModelOption(BaseModel):
    id: str
    label: str


class ModelCatalog(BaseModel):
    """Selectable models plus the model used when a request names none."""

    default: str
    models: list[ModelOption]
