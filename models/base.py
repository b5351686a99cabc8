"""Shared pydantic base: camelCase on the wire, snake_case in Python."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts both ``styleId`` and ``style_id``; dumps camelCase via aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_document(self, **kwargs) -> dict:
        """JSON-safe camelCase dict, the shape stored in JSONB columns."""
        return self.model_dump(mode="json", by_alias=True, **kwargs)
