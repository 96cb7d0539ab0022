from pydantic import BaseModel, Field
from datetime import datetime

from storefront.models.attribute import AttributeType


class AttributeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: str | None = Field(None, max_length=100)
    type: AttributeType
    values: list[str] = []
    category_id: int | None = None
    is_required: bool = False
    display_order: int = Field(0, ge=0)


class AttributeCreate(AttributeBase):
    pass


class Attribute(AttributeBase):
    id: int
    created_at: datetime | None = None

    class Config:
        from_attributes = True
