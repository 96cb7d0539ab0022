from storefront.models.category import Category
from storefront.models.attribute import Attribute, AttributeType, VARIANT_ATTRIBUTE_TYPES
from storefront.models.product import Product
from storefront.models.variant import Variant, VariantAttribute

__all__ = [
    "Category",
    "Attribute",
    "AttributeType",
    "VARIANT_ATTRIBUTE_TYPES",
    "Product",
    "Variant",
    "VariantAttribute",
]
