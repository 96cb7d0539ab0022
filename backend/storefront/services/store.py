"""
Persistence boundary for the variant engine.

VariantStore and AttributeCatalog wrap a SQLAlchemy session so the reconciler
only ever talks to a handful of keyed operations. Each method is a single
round-trip; create_variants_atomically is all-or-nothing.
"""
import logging
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from storefront.models import Attribute, Product, Variant, VariantAttribute
from storefront.services.errors import BatchTransactionError

logger = logging.getLogger(__name__)


class AttributeCatalog:
    """Read-only lookup of attribute definitions."""

    def __init__(self, db: Session):
        self.db = db

    def find_attributes_by_ids(self, ids: Iterable[int]) -> list[Attribute]:
        ids = set(ids)
        if not ids:
            return []
        return self.db.query(Attribute).filter(Attribute.id.in_(ids)).all()


class VariantStore:
    """Variant and product persistence used by the reconciler and aggregate refresh."""

    def __init__(self, db: Session):
        self.db = db

    def find_existing_skus(self, skus: Iterable[str]) -> set[str]:
        skus = set(skus)
        if not skus:
            return set()
        rows = self.db.query(Variant.sku).filter(Variant.sku.in_(skus)).all()
        return {row[0] for row in rows}

    def find_product_ids(self, ids: Iterable[int]) -> set[int]:
        ids = set(ids)
        if not ids:
            return set()
        rows = self.db.query(Product.id).filter(Product.id.in_(ids)).all()
        return {row[0] for row in rows}

    def find_active_combinations(self, product_ids: Iterable[int]) -> dict[int, set[frozenset]]:
        """Assignment sets of every active variant, keyed by product id."""
        product_ids = set(product_ids)
        if not product_ids:
            return {}

        variants = (
            self.db.query(Variant)
            .options(selectinload(Variant.attributes))
            .filter(Variant.product_id.in_(product_ids), Variant.is_active == True)
            .all()
        )
        combinations: dict[int, set[frozenset]] = {}
        for variant in variants:
            combinations.setdefault(variant.product_id, set()).add(variant.combination)
        return combinations

    def find_active_variants_by_product(self, product_id: int) -> list[Variant]:
        return (
            self.db.query(Variant)
            .filter(Variant.product_id == product_id, Variant.is_active == True)
            .all()
        )

    def count_variants(self, product_id: int) -> int:
        return (
            self.db.query(func.count(Variant.id))
            .filter(Variant.product_id == product_id)
            .scalar()
        )

    def create_variants_atomically(self, records: list[dict]) -> list[Variant]:
        """
        Insert every record in one transaction.

        Each record is a dict of Variant columns plus an "attributes" list of
        {"attribute_id", "value", "display_value"} dicts. When a record is
        the new default of its product, existing defaults of that product are
        demoted in the same transaction.

        Raises:
            BatchTransactionError: the transaction failed and was rolled back;
                nothing from this call is persisted.
        """
        try:
            new_default_products = {r["product_id"] for r in records if r.get("is_default")}
            if new_default_products:
                self.db.query(Variant).filter(
                    Variant.product_id.in_(new_default_products),
                    Variant.is_default == True,
                ).update({Variant.is_default: False}, synchronize_session=False)

            variants = []
            for record in records:
                data = dict(record)
                assignments = data.pop("attributes", [])
                variant = Variant(**data)
                variant.attributes = [
                    VariantAttribute(
                        attribute_id=a["attribute_id"],
                        value=a["value"],
                        display_value=a.get("display_value"),
                    )
                    for a in assignments
                ]
                self.db.add(variant)
                variants.append(variant)

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Variant transaction of {len(records)} record(s) rolled back: {e}")
            raise BatchTransactionError(str(getattr(e, "orig", None) or e)) from e

        for variant in variants:
            self.db.refresh(variant)
        return variants

    def update_product_aggregate(
        self,
        product_id: int,
        min_price: Optional[Decimal],
        max_price: Optional[Decimal],
        has_variants: bool,
    ) -> None:
        self.db.query(Product).filter(Product.id == product_id).update(
            {
                Product.min_price: min_price,
                Product.max_price: max_price,
                Product.has_variants: has_variants,
            },
            synchronize_session="fetch",
        )
        self.db.commit()
