"""
Batch variant reconciliation.

Validates, de-duplicates and persists a batch of variant proposals, reporting
every proposal that could not be created instead of aborting the batch.

Pipeline, in order:
1. field validation
2. duplicate SKUs within the batch (first occurrence wins)
3. SKUs that already exist in the store (one query)
4. unknown attribute / product references, then duplicate combinations
5. at most one default variant per product (later defaults are cleared)
6. creation, one transaction per chunk of batch_size proposals
7. price-range aggregate refresh for every product that gained variants

Failures are keyed by the proposal's position in the submitted list, so a
caller can fix and resubmit only the failed proposals.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence

from storefront.config import get_settings
from storefront.models import Variant
from storefront.schemas.variant import FailedVariant, VariantProposal
from storefront.services.aggregates import refresh_product_aggregate
from storefront.services.errors import BatchTransactionError
from storefront.services.pricing import CENTS, to_decimal
from storefront.services.sku import MAX_SKU_LENGTH
from storefront.services.store import AttributeCatalog, VariantStore

logger = logging.getLogger(__name__)

# Failure codes
VALIDATION_ERROR = "VALIDATION_ERROR"
DUPLICATE_IN_BATCH = "DUPLICATE_IN_BATCH"
DUPLICATE_SKU = "DUPLICATE_SKU"
ATTRIBUTE_NOT_FOUND = "ATTRIBUTE_NOT_FOUND"
PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
DUPLICATE_COMBINATION = "DUPLICATE_COMBINATION"
TRANSACTION_FAILED = "TRANSACTION_FAILED"


@dataclass
class BatchReport:
    created: list[Variant] = field(default_factory=list)
    failed: list[FailedVariant] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


@dataclass
class _Candidate:
    """A proposal that passed field validation, with its values coerced."""
    position: int
    proposal: VariantProposal
    sku: str
    price: Decimal
    stock: int
    is_default: bool

    @property
    def product_id(self) -> int:
        return self.proposal.product_id

    @property
    def combination(self) -> frozenset:
        return frozenset((a.attribute_id, a.value) for a in self.proposal.attributes)

    def to_record(self) -> dict:
        p = self.proposal
        return {
            "product_id": p.product_id,
            "sku": self.sku,
            "price": self.price,
            "stock": self.stock,
            "compare_price": p.compare_price,
            "cost_price": p.cost_price,
            "reserved_stock": p.reserved_stock,
            "weight": p.weight,
            "barcode": p.barcode,
            "images": list(p.images),
            "is_default": self.is_default,
            "is_active": p.is_active,
            "display_order": p.display_order,
            "attributes": [a.model_dump() for a in p.attributes],
        }


def _raw_sku(proposal: VariantProposal) -> Optional[str]:
    return None if proposal.sku is None else str(proposal.sku)


def _coerce_price(value) -> Decimal:
    if value is None or isinstance(value, bool) or (isinstance(value, str) and not value.strip()):
        raise ValueError("Price is required")
    try:
        price = to_decimal(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Price {value!r} is not a number")
    if not price.is_finite():
        raise ValueError(f"Price {value!r} is not a number")
    if price < 0:
        raise ValueError("Price must not be negative")
    return price.quantize(CENTS)


def _coerce_stock(value) -> int:
    if value is None or isinstance(value, bool) or (isinstance(value, str) and not value.strip()):
        raise ValueError("Stock is required")
    try:
        stock = to_decimal(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Stock {value!r} is not a number")
    if not stock.is_finite() or stock != stock.to_integral_value():
        raise ValueError(f"Stock {value!r} is not a whole number")
    if stock < 0:
        raise ValueError("Stock must not be negative")
    return int(stock)


def check_fields(position: int, proposal: VariantProposal) -> tuple[Optional[_Candidate], Optional[str]]:
    """Validate one proposal's own fields; returns (candidate, None) or (None, reason)."""
    if proposal.product_id is None:
        return None, "Product ID is required"

    sku = (_raw_sku(proposal) or "").strip()
    if not sku:
        return None, "SKU is required"
    if len(sku) > MAX_SKU_LENGTH:
        return None, f"SKU is longer than {MAX_SKU_LENGTH} characters"

    try:
        price = _coerce_price(proposal.price)
        stock = _coerce_stock(proposal.stock)
    except ValueError as e:
        return None, str(e)

    attribute_ids = [a.attribute_id for a in proposal.attributes]
    if len(attribute_ids) != len(set(attribute_ids)):
        return None, "An attribute is assigned more than once"

    return _Candidate(
        position=position,
        proposal=proposal,
        sku=sku,
        price=price,
        stock=stock,
        is_default=proposal.is_default,
    ), None


class BatchReconciler:
    """Creates a batch of variants, reporting per-proposal failures."""

    def __init__(
        self,
        store: VariantStore,
        catalog: AttributeCatalog,
        batch_size: Optional[int] = None,
    ):
        self.store = store
        self.catalog = catalog
        self.batch_size = batch_size or get_settings().variant_batch_size

    def reconcile(self, proposals: Sequence[VariantProposal]) -> BatchReport:
        report = BatchReport()

        candidates = self._validate_fields(proposals, report)
        candidates = self._drop_batch_duplicates(candidates, report)
        candidates = self._drop_existing_skus(candidates, report)
        candidates = self._check_references(candidates, report)
        candidates = self._drop_duplicate_combinations(candidates, report)
        self._normalize_defaults(candidates)
        self._persist(candidates, report)

        for product_id in sorted({v.product_id for v in report.created}):
            refresh_product_aggregate(self.store, product_id)

        report.failed.sort(key=lambda f: f.position)
        logger.info(
            f"Reconciled {len(proposals)} proposal(s): "
            f"{report.created_count} created, {report.failed_count} failed"
        )
        return report

    def _fail(self, report: BatchReport, position: int, sku: Optional[str], reason: str, code: str):
        logger.debug(f"Proposal {position} ({sku}) failed: {reason}")
        report.failed.append(FailedVariant(position=position, sku=sku, reason=reason, code=code))

    def _validate_fields(self, proposals, report) -> list[_Candidate]:
        candidates = []
        for position, proposal in enumerate(proposals):
            candidate, reason = check_fields(position, proposal)
            if candidate is None:
                self._fail(report, position, _raw_sku(proposal), reason, VALIDATION_ERROR)
            else:
                candidates.append(candidate)
        return candidates

    def _drop_batch_duplicates(self, candidates, report) -> list[_Candidate]:
        first_seen: dict[str, int] = {}
        survivors = []
        for c in candidates:
            if c.sku in first_seen:
                self._fail(
                    report, c.position, c.sku,
                    f"SKU '{c.sku}' is duplicated within this batch (first seen at position {first_seen[c.sku]})",
                    DUPLICATE_IN_BATCH,
                )
                continue
            first_seen[c.sku] = c.position
            survivors.append(c)
        return survivors

    def _drop_existing_skus(self, candidates, report) -> list[_Candidate]:
        existing = self.store.find_existing_skus(c.sku for c in candidates)
        survivors = []
        for c in candidates:
            if c.sku in existing:
                self._fail(report, c.position, c.sku, f"SKU '{c.sku}' already exists", DUPLICATE_SKU)
            else:
                survivors.append(c)
        return survivors

    def _check_references(self, candidates, report) -> list[_Candidate]:
        referenced = {a.attribute_id for c in candidates for a in c.proposal.attributes}
        known_attributes = {a.id for a in self.catalog.find_attributes_by_ids(referenced)}
        known_products = self.store.find_product_ids(c.product_id for c in candidates)

        survivors = []
        for c in candidates:
            if c.product_id not in known_products:
                self._fail(report, c.position, c.sku, f"Product {c.product_id} not found", PRODUCT_NOT_FOUND)
                continue
            missing = sorted({a.attribute_id for a in c.proposal.attributes} - known_attributes)
            if missing:
                ids = ", ".join(str(i) for i in missing)
                self._fail(report, c.position, c.sku, f"Attribute {ids} not found", ATTRIBUTE_NOT_FOUND)
                continue
            survivors.append(c)
        return survivors

    def _drop_duplicate_combinations(self, candidates, report) -> list[_Candidate]:
        # Only active variants with at least one assignment carry a combination
        checked = {c.position for c in candidates if c.proposal.is_active and c.proposal.attributes}
        seen = self.store.find_active_combinations(c.product_id for c in candidates if c.position in checked)

        survivors = []
        for c in candidates:
            if c.position not in checked:
                survivors.append(c)
                continue
            combinations = seen.setdefault(c.product_id, set())
            if c.combination in combinations:
                self._fail(
                    report, c.position, c.sku,
                    f"Product {c.product_id} already has a variant with the same attribute values",
                    DUPLICATE_COMBINATION,
                )
                continue
            combinations.add(c.combination)
            survivors.append(c)
        return survivors

    def _normalize_defaults(self, candidates) -> None:
        has_default: set[int] = set()
        for c in candidates:
            if not c.is_default:
                continue
            if c.product_id in has_default:
                c.is_default = False
            else:
                has_default.add(c.product_id)

    def _persist(self, candidates, report) -> None:
        for start in range(0, len(candidates), self.batch_size):
            chunk = candidates[start:start + self.batch_size]
            try:
                created = self.store.create_variants_atomically([c.to_record() for c in chunk])
            except BatchTransactionError as e:
                logger.warning(f"Transaction for {len(chunk)} proposal(s) failed: {e}")
                for c in chunk:
                    self._fail(report, c.position, c.sku, f"Transaction failed: {e}", TRANSACTION_FAILED)
                continue
            report.created.extend(created)
