"""
Spreadsheet Variant Import Service

Bulk import of products and their variants from CSV or Excel.

Rows sharing a product_name collapse into one logical product; each row
becomes one variant proposal. Columns named after a variant attribute
(COLOR / SELECT / IMAGE) become attribute values, other unknown columns
become product specifications.

Expected columns:
product_name,description,base_price,price,category,stock,sku,image_url,is_active,<attribute columns>

Example:
product_name,base_price,price,stock,Color,Size
Classic Tee,19.90,19.90,10,Black,M
Classic Tee,19.90,21.90,5,Black,L
Canvas Tote,12.00,,3,,
"""
import csv
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from io import BytesIO, StringIO
from typing import Any, Optional

import pandas as pd
from sqlalchemy.orm import Session

from storefront.config import get_settings
from storefront.models import Attribute, Category, Product
from storefront.schemas.imports import ImportFailure, ImportReport
from storefront.schemas.variant import AttributeValue, VariantProposal, VariantRead
from storefront.services.pricing import to_decimal
from storefront.services.reconciler import VALIDATION_ERROR, BatchReconciler
from storefront.services.row_mapping import SourceRowMapper, describe_failure
from storefront.services.sku import import_row_sku
from storefront.services.store import AttributeCatalog, VariantStore

logger = logging.getLogger(__name__)

NAME_COLUMNS = ("product_name", "name")
IMAGE_COLUMNS = ("image_url", "images", "image")
BASE_COLUMNS = {
    "product_name", "name", "description", "base_price", "price", "category",
    "stock", "sku", "image_url", "images", "image", "is_active",
}
TRUE_VALUES = {"true", "1", "yes", "y", "是"}


# ============== Reading ==============

def read_csv_rows(csv_content: str) -> list[dict]:
    reader = csv.DictReader(StringIO(csv_content.lstrip("\ufeff")))
    return [dict(row) for row in reader]


def read_excel_rows(content: bytes) -> list[dict]:
    """First sheet of an .xlsx workbook, every cell read as text."""
    df = pd.read_excel(BytesIO(content), dtype=str, keep_default_na=False)
    df.columns = [str(c).strip() for c in df.columns]
    return df.to_dict(orient="records")


# ============== Cell normalization ==============

def _cell(row: dict, *names: str) -> str:
    """First non-empty value among the given columns (case-insensitive headers)."""
    lowered = {str(k).strip().lower(): v for k, v in row.items()}
    for name in names:
        value = lowered.get(name)
        if value is not None and str(value).strip() != "":
            return str(value).strip()
    return ""


def normalize_images(value: Any) -> list[str]:
    """List of image URLs from a list or a comma-separated string."""
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    if value is None or str(value).strip() == "":
        return []
    return [url.strip() for url in str(value).split(",") if url.strip()]


def normalize_stock(value: Any) -> Any:
    """
    Whole stock count from a cell like "12", "12 pcs" or "3.7" (floored).

    Missing, non-numeric and negative cells come back unchanged so the
    reconciler reports them as validation failures.
    """
    if value is None or str(value).strip() == "":
        return value
    cleaned = re.sub(r"[^\d.-]", "", str(value))
    try:
        stock = Decimal(cleaned)
    except (InvalidOperation, ValueError):
        return value
    if not stock.is_finite() or stock < 0:
        return value
    return int(stock)


def parse_bool(value: Any, default: bool = True) -> bool:
    if value is None or str(value).strip() == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


def _is_blank(row: dict) -> bool:
    return all(v is None or str(v).strip() == "" for v in row.values())


# ============== Flattening ==============

@dataclass
class LogicalProduct:
    """One product described by one or more consecutive spreadsheet rows."""
    name: str
    description: str
    base_price: str
    category: str
    images: list[str]
    is_active: bool
    specifications: dict
    first_row: int
    variants: list[VariantProposal] = field(default_factory=list)


class VariantImporter:
    """Flattens rows into logical products, creates them, and reconciles their variants."""

    def __init__(self, db: Session):
        self.db = db
        self.catalog = AttributeCatalog(db)
        self.mapper = SourceRowMapper()
        self.attributes = db.query(Attribute).order_by(Attribute.display_order, Attribute.id).all()
        self.categories = db.query(Category).all()

    # ---- category / attribute lookup ----

    def resolve_category(self, identifier: str) -> Optional[Category]:
        """Match a category cell by id, then slug, then case-insensitive name."""
        if not identifier:
            return None
        for category in self.categories:
            if str(category.id) == identifier:
                return category
        for category in self.categories:
            if category.slug == identifier:
                return category
        for category in self.categories:
            if category.name.lower() == identifier.lower():
                return category
        return None

    def variant_attributes_for(self, category: Optional[Category]) -> list[Attribute]:
        return [
            a for a in self.attributes
            if a.is_variant_attribute and (a.category_id is None or (category and a.category_id == category.id))
        ]

    def _row_assignments(self, row: dict, attributes: list[Attribute]) -> dict[int, str]:
        """Attribute values in a row; each column feeds at most one attribute."""
        headers = {str(k).strip().lower(): k for k in row.keys()}
        matched_columns = set()
        assignments = {}
        for attribute in attributes:
            for key in (attribute.label.lower(), attribute.name.lower()):
                column = headers.get(key)
                if column is None:
                    continue
                if column in matched_columns:
                    logger.warning(f"Column '{column}' already matched, skipping attribute {attribute.id}")
                    break
                value = row.get(column)
                if value is not None and str(value).strip() != "":
                    assignments[attribute.id] = str(value).strip()
                    matched_columns.add(column)
                break
        return assignments

    def _specifications(self, row: dict, attributes: list[Attribute]) -> dict:
        attribute_keys = {a.label.lower() for a in attributes} | {a.name.lower() for a in attributes}
        return {
            str(k).strip(): str(v).strip()
            for k, v in row.items()
            if str(k).strip().lower() not in BASE_COLUMNS
            and str(k).strip().lower() not in attribute_keys
            and v is not None and str(v).strip() != ""
        }

    def flatten(self, rows: list[dict], first_row_number: int) -> tuple[list[LogicalProduct], list[ImportFailure]]:
        """
        Group rows by product name into logical products with one variant
        proposal per row, recording every row against its product's index.
        """
        products: list[LogicalProduct] = []
        index_by_name: dict[str, int] = {}
        row_failures: list[ImportFailure] = []

        for offset, row in enumerate(rows):
            row_number = first_row_number + offset
            if _is_blank(row):
                continue

            name = _cell(row, *NAME_COLUMNS)
            if not name:
                row_failures.append(ImportFailure(
                    rows=[row_number], reason="Product name is required", code=VALIDATION_ERROR,
                ))
                continue

            category_cell = _cell(row, "category")
            if name not in index_by_name:
                index_by_name[name] = len(products)
                category = self.resolve_category(category_cell)
                attributes = self.variant_attributes_for(category)
                products.append(LogicalProduct(
                    name=name,
                    description=_cell(row, "description"),
                    base_price=_cell(row, "base_price", "price"),
                    category=category_cell,
                    images=normalize_images(_cell(row, *IMAGE_COLUMNS)),
                    is_active=parse_bool(_cell(row, "is_active")),
                    specifications=self._specifications(row, attributes),
                    first_row=row_number,
                ))

            index = index_by_name[name]
            self.mapper.record(index, row_number)
            product = products[index]

            category = self.resolve_category(category_cell or product.category)
            assignments = self._row_assignments(row, self.variant_attributes_for(category))

            sku = _cell(row, "sku") or import_row_sku(name, assignments, offset)
            product.variants.append(VariantProposal(
                sku=sku,
                price=_cell(row, "price") or product.base_price,
                stock=normalize_stock(_cell(row, "stock")),
                images=normalize_images(_cell(row, *IMAGE_COLUMNS)),
                is_active=parse_bool(_cell(row, "is_active")),
                display_order=len(product.variants),
                attributes=[AttributeValue(attribute_id=a, value=v) for a, v in assignments.items()],
            ))

        logger.info(f"Flattened {len(rows)} row(s) into {len(products)} product(s)")
        return products, row_failures

    # ---- products ----

    def _find_or_create_product(self, logical: LogicalProduct) -> tuple[Product, bool]:
        existing = self.db.query(Product).filter(
            Product.name == logical.name,
            Product.is_active == True,
        ).first()
        if existing:
            return existing, False

        category = self.resolve_category(logical.category)
        product = Product(
            name=logical.name,
            description=logical.description,
            category_id=category.id if category else None,
            base_price=to_decimal(logical.base_price).quantize(Decimal("0.01")),
            stock=0,
            images=logical.images,
            specifications=logical.specifications,
            is_active=logical.is_active,
        )
        self.db.add(product)
        self.db.flush()
        return product, True

    def _check_product(self, logical: LogicalProduct) -> Optional[str]:
        if not logical.base_price:
            return "Base price is required"
        try:
            price = to_decimal(logical.base_price)
        except (InvalidOperation, ValueError):
            return f"Base price {logical.base_price!r} is not a number"
        if not price.is_finite() or price < 0:
            return f"Base price {logical.base_price!r} must be a non-negative number"
        return None

    # ---- run ----

    def run(self, rows: list[dict], first_row_number: Optional[int] = None) -> ImportReport:
        if first_row_number is None:
            first_row_number = get_settings().import_header_rows + 1

        logical_products, failures = self.flatten(rows, first_row_number)

        messages = []
        product_failures = []
        proposals: list[VariantProposal] = []
        proposal_product_index: list[int] = []
        created_products = reused_products = 0
        store = VariantStore(self.db)

        for index, logical in enumerate(logical_products):
            reason = self._check_product(logical)
            if reason:
                product_failures.append((index, reason, VALIDATION_ERROR, None))
                continue

            if logical.category and self.resolve_category(logical.category) is None:
                messages.append(f"Row {logical.first_row}: unknown category '{logical.category}', imported without category")

            product, created = self._find_or_create_product(logical)
            if created:
                created_products += 1
            else:
                reused_products += 1

            # A product without variants, new or left empty by an earlier import, gets a default
            needs_default = created or store.count_variants(product.id) == 0
            for position, proposal in enumerate(logical.variants):
                proposal.product_id = product.id
                proposal.is_default = needs_default and position == 0
                proposals.append(proposal)
                proposal_product_index.append(index)

        self.db.commit()

        report = BatchReconciler(store, self.catalog).reconcile(proposals)

        failures.extend(self.mapper.annotate_all(product_failures))
        for failed in report.failed:
            index = proposal_product_index[failed.position] if failed.position < len(proposal_product_index) else None
            failures.append(self.mapper.annotate(index, failed.reason, failed.code, failed.sku))

        messages.extend(describe_failure(f) for f in failures)
        logger.info(
            f"Import finished: {len(rows)} row(s), {created_products} product(s) created, "
            f"{reused_products} reused, {report.created_count} variant(s) created, {len(failures)} failure(s)"
        )

        return ImportReport(
            total_rows=len(rows),
            products_created=created_products,
            products_reused=reused_products,
            created=[VariantRead.model_validate(v) for v in report.created],
            failed=failures,
            created_count=report.created_count,
            failed_count=len(failures),
            messages=messages,
        )


def import_variants_from_rows(rows: list[dict], db: Session, first_row_number: Optional[int] = None) -> ImportReport:
    return VariantImporter(db).run(rows, first_row_number)


def import_variants_from_csv(csv_content: str, db: Session) -> ImportReport:
    return import_variants_from_rows(read_csv_rows(csv_content), db)


def get_csv_template() -> str:
    """Get a CSV template with example data."""
    return """product_name,description,base_price,price,category,stock,sku,image_url,is_active,Color,Size
Classic Tee,Heavyweight cotton tee,19.90,19.90,,10,,,true,Black,M
Classic Tee,,19.90,21.90,,5,,,true,Black,L
Classic Tee,,19.90,21.90,,5,,,true,White,L
Canvas Tote,Everyday tote bag,12.00,12.00,,3,TOTE-001,,true,,
"""
