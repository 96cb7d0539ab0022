"""
Bulk variant creation entry points.

create_variants_bulk expands attribute groups into combinations, prices and
names each one, and hands the resulting proposals to the reconciler.
create_variants_batch reconciles proposals that were built elsewhere (bulk
import, API clients that already know their SKUs).
"""
import logging
from typing import Sequence

from sqlalchemy.orm import Session

from storefront.models import Product
from storefront.schemas.variant import AttributeValue, BulkVariantRequest, VariantProposal
from storefront.services.combinations import generate_combinations
from storefront.services.pricing import resolve_price
from storefront.services.reconciler import BatchReconciler, BatchReport
from storefront.services.sku import sequential_sku, sku_from_pattern
from storefront.services.store import AttributeCatalog, VariantStore

logger = logging.getLogger(__name__)


def attribute_name_map(catalog: AttributeCatalog, attribute_ids) -> dict[int, str]:
    """Display names by attribute id, for SKU pattern tokens."""
    return {a.id: a.label for a in catalog.find_attributes_by_ids(attribute_ids)}


def build_generated_proposals(
    product: Product,
    request: BulkVariantRequest,
    attribute_names: dict[int, str],
) -> list[VariantProposal]:
    """
    One proposal per combination of the request's attribute groups.

    The first combination becomes the default variant. Raises
    CombinationLimitExceeded before building anything when the groups are
    too large.
    """
    groups = [(g.attribute_id, g.values) for g in request.attributes]
    combinations = generate_combinations(groups)

    base_price = request.base_price if request.base_price is not None else product.base_price
    price_table = [
        {"combination": [(a.attribute_id, a.value) for a in entry.combination], "price": entry.price}
        for entry in request.price_table
    ]

    proposals = []
    for index, combination in enumerate(combinations):
        if request.sku_pattern:
            sku = sku_from_pattern(request.sku_pattern, combination, product.name, attribute_names)
        else:
            sku = sequential_sku(product.name, index)

        proposals.append(VariantProposal(
            product_id=product.id,
            sku=sku,
            price=resolve_price(combination, base_price, price_table, request.adjustment_rules),
            stock=request.default_stock,
            is_default=index == 0,
            is_active=True,
            display_order=index,
            attributes=[AttributeValue(attribute_id=a, value=v) for a, v in combination],
        ))
    return proposals


def create_variants_bulk(db: Session, product: Product, request: BulkVariantRequest) -> BatchReport:
    catalog = AttributeCatalog(db)
    names = attribute_name_map(catalog, [g.attribute_id for g in request.attributes])
    proposals = build_generated_proposals(product, request, names)

    logger.info(f"Generated {len(proposals)} variant proposal(s) for product {product.id}")
    return BatchReconciler(VariantStore(db), catalog).reconcile(proposals)


def create_variants_batch(db: Session, proposals: Sequence[VariantProposal]) -> BatchReport:
    return BatchReconciler(VariantStore(db), AttributeCatalog(db)).reconcile(proposals)
