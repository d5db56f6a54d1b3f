"""Shared schema configuration."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelSchema(BaseModel):
    """
    Base schema whose JSON form uses camelCase keys.

    Python code uses snake_case attributes; both spellings are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_document(self) -> dict:
        """Serialise to the camelCase JSON document stored and cached."""
        return self.model_dump(mode="json", by_alias=True)
