"""
Category tree.

Products belong to at most one category. Attributes scoped to a category are
offered (and matched on import) only for that category's products; attributes
without a category are global.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Text
from sqlalchemy.orm import relationship
from storefront.database import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)  # 'Apparel', 'Shoes'
    slug = Column(String(100), unique=True, nullable=False)
    description = Column(Text, default="")
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    display_order = Column(Integer, default=0)

    parent = relationship("Category", remote_side=[id], backref="subcategories")

    products = relationship("Product", back_populates="category")
    attributes = relationship("Attribute", back_populates="category")
