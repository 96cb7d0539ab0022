from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category_id: int | None = None
    base_price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    images: list[str] = []
    specifications: dict = {}
    is_active: bool = True


class ProductCreate(ProductBase):
    pass


class Product(ProductBase):
    id: int
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    has_variants: bool = False
    created_at: datetime | None = None

    class Config:
        from_attributes = True
