"""
Variant models.

A variant is one purchasable version of a product, corresponding to one
combination of attribute values. Each (variant, attribute) pair carries the
chosen value in a VariantAttribute row.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime, Numeric, JSON, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.database import Base


class Variant(Base):
    __tablename__ = "variants"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    sku = Column(String(100), unique=True, nullable=False)

    # Pricing
    price = Column(Numeric(10, 2), nullable=False)
    compare_price = Column(Numeric(10, 2))  # "Was" price shown struck through
    cost_price = Column(Numeric(10, 2))

    # Inventory
    stock = Column(Integer, default=0, nullable=False)
    reserved_stock = Column(Integer, default=0, nullable=False)

    weight = Column(Numeric(10, 3))
    barcode = Column(String(100))
    images = Column(JSON, default=list)

    is_default = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    display_order = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    product = relationship("Product", back_populates="variants")
    attributes = relationship(
        "VariantAttribute",
        back_populates="variant",
        cascade="all, delete-orphan",
        order_by="VariantAttribute.id",
    )

    __table_args__ = (
        Index("ix_variants_product_active", "product_id", "is_active"),
    )

    @property
    def combination(self) -> frozenset:
        """The variant's attribute assignments as a set of (attribute_id, value) pairs."""
        return frozenset((a.attribute_id, a.value) for a in self.attributes)


class VariantAttribute(Base):
    __tablename__ = "variant_attributes"

    id = Column(Integer, primary_key=True, index=True)
    variant_id = Column(Integer, ForeignKey("variants.id", ondelete="CASCADE"), nullable=False)
    attribute_id = Column(Integer, ForeignKey("attributes.id"), nullable=False)
    value = Column(String(255), nullable=False)
    display_value = Column(String(255))

    variant = relationship("Variant", back_populates="attributes")
    attribute = relationship("Attribute", back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("variant_id", "attribute_id", name="uq_variant_attribute"),
    )
