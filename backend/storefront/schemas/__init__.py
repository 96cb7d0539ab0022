from storefront.schemas.category import Category, CategoryCreate
from storefront.schemas.attribute import Attribute, AttributeCreate
from storefront.schemas.product import Product, ProductCreate
from storefront.schemas.variant import (
    AttributeValue, VariantProposal, FailedVariant, VariantRead, BatchReportResponse,
    AttributeGroup, PriceTableEntry, BulkVariantRequest, VariantBatchRequest,
    VariantUpdate, VariantBulkUpdate, VariantOrderUpdate, SkuPreviewRequest,
)
from storefront.schemas.imports import RowImportRequest, ImportFailure, ImportReport

__all__ = [
    "Category", "CategoryCreate",
    "Attribute", "AttributeCreate",
    "Product", "ProductCreate",
    "AttributeValue", "VariantProposal", "FailedVariant", "VariantRead", "BatchReportResponse",
    "AttributeGroup", "PriceTableEntry", "BulkVariantRequest", "VariantBatchRequest",
    "VariantUpdate", "VariantBulkUpdate", "VariantOrderUpdate", "SkuPreviewRequest",
    "RowImportRequest", "ImportFailure", "ImportReport",
]
