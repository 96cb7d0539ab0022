"""
Variant request/response schemas.

VariantProposal accepts loosely typed sku/price/stock: a single
malformed row must come back as a FailedVariant in the batch report rather
than failing request validation for the whole batch.
"""
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Any


class AttributeValue(BaseModel):
    attribute_id: int
    value: str
    display_value: str | None = None


class VariantProposal(BaseModel):
    """A variant the reconciler is asked to create."""
    product_id: int | None = None
    sku: Any = None
    price: Any = None
    stock: Any = None
    compare_price: Decimal | None = None
    cost_price: Decimal | None = None
    reserved_stock: int = 0
    weight: Decimal | None = None
    barcode: str | None = None
    images: list[str] = []
    is_default: bool = False
    is_active: bool = True
    display_order: int = 0
    attributes: list[AttributeValue] = []


class FailedVariant(BaseModel):
    """One proposal the reconciler did not create, keyed by its position in the batch."""
    position: int
    sku: str | None = None
    reason: str
    code: str


class VariantAttributeRead(BaseModel):
    attribute_id: int
    value: str
    display_value: str | None = None

    class Config:
        from_attributes = True


class VariantRead(BaseModel):
    id: int
    product_id: int
    sku: str
    price: Decimal
    compare_price: Decimal | None = None
    cost_price: Decimal | None = None
    stock: int
    reserved_stock: int
    weight: Decimal | None = None
    barcode: str | None = None
    images: list[str] = []
    is_default: bool
    is_active: bool
    display_order: int
    attributes: list[VariantAttributeRead] = []
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class BatchReportResponse(BaseModel):
    created: list[VariantRead]
    failed: list[FailedVariant]
    created_count: int
    failed_count: int


# ============== Bulk generation ==============

class AttributeGroup(BaseModel):
    attribute_id: int
    values: list[str] = Field(..., min_length=1)


class PriceTableEntry(BaseModel):
    combination: list[AttributeValue]
    price: Decimal = Field(..., ge=0)


class BulkVariantRequest(BaseModel):
    """Generate one variant per combination of the given attribute groups."""
    product_id: int
    attributes: list[AttributeGroup] = []
    base_price: Decimal | None = Field(None, ge=0)
    price_table: list[PriceTableEntry] = []
    adjustment_rules: dict[str, dict[str, Decimal]] = {}
    sku_pattern: str | None = Field(None, max_length=200)
    default_stock: int = Field(0, ge=0)


class VariantBatchRequest(BaseModel):
    proposals: list[VariantProposal]


# ============== Updates ==============

class VariantUpdate(BaseModel):
    sku: str | None = Field(None, min_length=1, max_length=100)
    price: Decimal | None = Field(None, ge=0)
    compare_price: Decimal | None = None
    cost_price: Decimal | None = None
    stock: int | None = Field(None, ge=0)
    reserved_stock: int | None = Field(None, ge=0)
    weight: Decimal | None = None
    barcode: str | None = None
    images: list[str] | None = None
    is_default: bool | None = None
    is_active: bool | None = None
    attributes: list[AttributeValue] | None = None


class VariantBulkUpdateData(BaseModel):
    price: Decimal | None = Field(None, ge=0)
    stock: int | None = Field(None, ge=0)
    is_active: bool | None = None


class VariantBulkUpdate(BaseModel):
    variant_ids: list[int] = Field(..., min_length=1)
    data: VariantBulkUpdateData


class VariantOrderUpdate(BaseModel):
    variant_ids: list[int] = Field(..., min_length=1)


class SkuPreviewRequest(BaseModel):
    product_id: int
    pattern: str = Field(..., min_length=1, max_length=200)
    attributes: list[AttributeValue] = Field(..., min_length=1)
