from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime, Numeric, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)  # Unique among active products
    description = Column(Text, default="")
    category_id = Column(Integer, ForeignKey("categories.id"))
    base_price = Column(Numeric(10, 2), nullable=False, default=0)
    stock = Column(Integer, default=0)
    images = Column(JSON, default=list)
    specifications = Column(JSON, default=dict)
    is_active = Column(Boolean, default=True, index=True)

    # Price-range aggregate over active variants, recomputed after every variant change
    min_price = Column(Numeric(10, 2), nullable=True)
    max_price = Column(Numeric(10, 2), nullable=True)
    has_variants = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    category = relationship("Category", back_populates="products")
    variants = relationship("Variant", back_populates="product", cascade="all, delete-orphan")
