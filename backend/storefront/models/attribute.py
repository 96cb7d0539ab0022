"""
Attribute catalog model.

An attribute is a named, typed axis of product variation (Color, Size, ...)
with an ordered list of legal values. Attributes are created administratively
and only ever referenced by variants, never embedded in them.
"""
import enum

from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.database import Base


class AttributeType(str, enum.Enum):
    COLOR = "COLOR"
    SELECT = "SELECT"
    IMAGE = "IMAGE"
    TEXT = "TEXT"
    NUMBER = "NUMBER"


# Attribute types that produce variants; the others are plain specifications
VARIANT_ATTRIBUTE_TYPES = {AttributeType.COLOR.value, AttributeType.SELECT.value, AttributeType.IMAGE.value}


class Attribute(Base):
    __tablename__ = "attributes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)  # Internal name, e.g. 'color'
    display_name = Column(String(100))  # Shown to operators, e.g. 'Colour'
    type = Column(String(20), nullable=False, default=AttributeType.SELECT.value)
    values = Column(JSON, nullable=False, default=list)  # Ordered legal values
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    is_required = Column(Boolean, default=False)
    display_order = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    category = relationship("Category", back_populates="attributes")
    assignments = relationship("VariantAttribute", back_populates="attribute")

    @property
    def label(self) -> str:
        """Display name, falling back to the internal name."""
        return self.display_name or self.name

    @property
    def is_variant_attribute(self) -> bool:
        return self.type in VARIANT_ATTRIBUTE_TYPES
