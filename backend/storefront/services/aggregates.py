"""
Product price-range aggregate maintenance.

The aggregate is always recomputed from scratch, never patched. Callers run
refresh_product_aggregate after creating variants, changing a variant's
price or active flag, or deleting a variant.
"""
import logging

from storefront.services.store import VariantStore

logger = logging.getLogger(__name__)


def refresh_product_aggregate(store: VariantStore, product_id: int) -> dict:
    """
    Recompute (min_price, max_price) over active variants and has_variants
    over all variants of the product, and write them back.

    Returns the written values.
    """
    prices = [v.price for v in store.find_active_variants_by_product(product_id)]
    min_price = min(prices) if prices else None
    max_price = max(prices) if prices else None

    # Inactive variants still count: has_variants tracks ownership, not visibility
    has_variants = store.count_variants(product_id) > 0

    store.update_product_aggregate(product_id, min_price, max_price, has_variants)
    logger.debug(
        f"Product {product_id} aggregate: min={min_price} max={max_price} has_variants={has_variants}"
    )
    return {"min_price": min_price, "max_price": max_price, "has_variants": has_variants}
