"""Shared model configuration."""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, populated by either form."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class UpdateModel(CamelModel):
    """Base for partial-update payloads: unknown keys are rejected."""

    model_config = {"extra": "forbid"}

    def changes(self) -> dict:
        """Return only the fields the caller actually sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)
