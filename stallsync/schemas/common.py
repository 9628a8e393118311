"""Shared schema base: camelCase JSON, snake_case attributes."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys (the stored field names); reads DTO attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PartialUpdateModel(CamelModel):
    """Partial update: omitted fields are left unchanged.

    Only fields named in ``nullable_fields`` may be sent as ``null`` (which
    clears them); ``null`` for any other field is a validation error.
    """

    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_null_for_required_fields(self) -> "PartialUpdateModel":
        nulled = sorted(
            to_camel(name)
            for name in self.model_fields_set
            if getattr(self, name) is None and name not in self.nullable_fields
        )
        if nulled:
            raise ValueError(f"{', '.join(nulled)} cannot be null")
        return self


class MessageResponse(CamelModel):
    message: str = Field(..., description="Human-readable outcome")
