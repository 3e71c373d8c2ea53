"""
Shared pydantic configuration.

Attribute names are snake_case in Python; JSON payloads use camelCase
(fullName, organizationId, ...). Input accepts either spelling.
"""
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_json(self, **kwargs) -> dict:
        """Dump with camelCase keys and JSON-safe values (datetimes as ISO strings)."""
        return self.model_dump(mode="json", by_alias=True, **kwargs)


class PartialUpdate(CamelModel):
    """
    Base for PUT bodies where only the keys actually sent are applied.

    Fields listed in NOT_NULLABLE may be omitted but not sent as null.
    """
    model_config = ConfigDict(extra="forbid")

    NOT_NULLABLE: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_nulls(self):
        for name in self.NOT_NULLABLE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> dict:
        """Only the fields present in the request, snake_case keys."""
        return self.model_dump(exclude_unset=True)
