from typing import Optional

from pydantic import Field

from app.models.enums import OrganizationType
from app.schemas.common import CamelModel, PartialUpdate


class OrganizationRecord(CamelModel):
    id: int
    name: str
    type: OrganizationType


class OrganizationCreate(CamelModel):
    name: str = Field(min_length=1, max_length=256)
    type: OrganizationType


class OrganizationUpdate(PartialUpdate):
    NOT_NULLABLE = ("name", "type")

    name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    type: Optional[OrganizationType] = None
