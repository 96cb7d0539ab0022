import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from storefront.database import get_db
from storefront.models import Product, Variant, VariantAttribute
from storefront.schemas.variant import (
    BatchReportResponse,
    BulkVariantRequest,
    SkuPreviewRequest,
    VariantBatchRequest,
    VariantBulkUpdate,
    VariantOrderUpdate,
    VariantProposal,
    VariantRead,
    VariantUpdate,
)
from storefront.services.aggregates import refresh_product_aggregate
from storefront.services.reconciler import (
    ATTRIBUTE_NOT_FOUND,
    DUPLICATE_COMBINATION,
    DUPLICATE_IN_BATCH,
    DUPLICATE_SKU,
    PRODUCT_NOT_FOUND,
    BatchReport,
)
from storefront.services.sku import sku_from_pattern
from storefront.services.store import AttributeCatalog, VariantStore
from storefront.services.variant_generation import (
    attribute_name_map,
    create_variants_batch,
    create_variants_bulk,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/variants", tags=["variants"])

FAILURE_STATUS = {
    PRODUCT_NOT_FOUND: 404,
    ATTRIBUTE_NOT_FOUND: 404,
    DUPLICATE_SKU: 409,
    DUPLICATE_IN_BATCH: 409,
    DUPLICATE_COMBINATION: 409,
}


def _report_response(report: BatchReport) -> BatchReportResponse:
    return BatchReportResponse(
        created=[VariantRead.model_validate(v) for v in report.created],
        failed=report.failed,
        created_count=report.created_count,
        failed_count=report.failed_count,
    )


def _activation_clashes(db: Session, variants: list[Variant]) -> list[int]:
    """Ids of variants whose activation would duplicate an active combination of their product."""
    requested = {v.id for v in variants}
    others = db.query(Variant).filter(
        Variant.product_id.in_({v.product_id for v in variants}),
        Variant.is_active == True,
        Variant.id.notin_(requested)
    ).all()

    seen: dict[int, set] = {}
    for other in others:
        seen.setdefault(other.product_id, set()).add(other.combination)

    # Already-active variants claim their combination before inactive ones
    clashes = []
    for variant in sorted(variants, key=lambda v: (not v.is_active, v.id)):
        combination = variant.combination
        if not combination:
            continue
        combinations = seen.setdefault(variant.product_id, set())
        if combination in combinations:
            clashes.append(variant.id)
        else:
            combinations.add(combination)
    return clashes


def _get_variant_or_404(db: Session, variant_id: int) -> Variant:
    variant = db.query(Variant).filter(Variant.id == variant_id).first()
    if not variant:
        raise HTTPException(status_code=404, detail="Variant not found")
    return variant


# ============== Batch creation ==============

@router.post("/bulk", response_model=BatchReportResponse, status_code=201)
def bulk_create_variants(request: BulkVariantRequest, db: Session = Depends(get_db)):
    """
    Generate one variant per combination of the given attribute groups.

    Prices come from the price table, then base price plus adjustment rules.
    SKUs follow sku_pattern when given, otherwise "<PRODUCT>-<n>". Proposals
    that fail are reported in `failed`; the rest are created.
    """
    product = db.query(Product).filter(Product.id == request.product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    report = create_variants_bulk(db, product, request)
    return _report_response(report)


@router.post("/batch", response_model=BatchReportResponse, status_code=201)
def batch_create_variants(request: VariantBatchRequest, db: Session = Depends(get_db)):
    """Create pre-built variant proposals; failures are keyed by list position."""
    report = create_variants_batch(db, request.proposals)
    return _report_response(report)


@router.post("/generate-sku")
def generate_sku(request: SkuPreviewRequest, db: Session = Depends(get_db)):
    """Preview the SKU a pattern produces for one combination."""
    product = db.query(Product).filter(Product.id == request.product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    combination = [(a.attribute_id, a.value) for a in request.attributes]
    names = attribute_name_map(AttributeCatalog(db), [a for a, _ in combination])
    return {"sku": sku_from_pattern(request.pattern, combination, product.name, names)}


# ============== Bulk edits ==============

@router.put("/bulk/update")
def bulk_update_variants(request: VariantBulkUpdate, db: Session = Depends(get_db)):
    """Set price, stock or active flag on many variants at once."""
    changes = request.data.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    variants = db.query(Variant).filter(Variant.id.in_(request.variant_ids)).all()
    if not variants:
        raise HTTPException(status_code=404, detail="No variants found")

    if changes.get("is_active"):
        clashes = _activation_clashes(db, variants)
        if clashes:
            raise HTTPException(
                status_code=409,
                detail=f"Variants {clashes} would duplicate the attribute values of another active variant"
            )

    for variant in variants:
        for key, value in changes.items():
            setattr(variant, key, value)
    db.commit()

    product_ids = sorted({v.product_id for v in variants})
    store = VariantStore(db)
    for product_id in product_ids:
        refresh_product_aggregate(store, product_id)

    logger.info(f"Bulk updated {len(variants)} variant(s) across {len(product_ids)} product(s)")
    return {"updated": len(variants), "product_ids": product_ids}


@router.put("/update-order")
def update_variant_order(request: VariantOrderUpdate, db: Session = Depends(get_db)):
    """Reorder a product's variants; display_order follows the list order."""
    variants = db.query(Variant).filter(Variant.id.in_(request.variant_ids)).all()
    by_id = {v.id: v for v in variants}

    missing = [i for i in request.variant_ids if i not in by_id]
    if missing:
        raise HTTPException(status_code=404, detail=f"Variants not found: {missing}")
    if len({v.product_id for v in variants}) > 1:
        raise HTTPException(status_code=400, detail="All variants must belong to the same product")

    for order, variant_id in enumerate(request.variant_ids):
        by_id[variant_id].display_order = order
    db.commit()

    return {"message": "Variant order updated", "variant_ids": request.variant_ids}


# ============== Single variants ==============

@router.post("/", response_model=VariantRead, status_code=201)
def create_variant(proposal: VariantProposal, db: Session = Depends(get_db)):
    """Create one variant with the same checks as a batch of one."""
    report = create_variants_batch(db, [proposal])
    if report.failed:
        failure = report.failed[0]
        raise HTTPException(status_code=FAILURE_STATUS.get(failure.code, 400), detail=failure.reason)
    return VariantRead.model_validate(report.created[0])


@router.get("/product/{product_id}", response_model=list[VariantRead])
def list_product_variants(
    product_id: int,
    is_active: bool | None = None,
    db: Session = Depends(get_db)
):
    """List a product's variants, default variant first."""
    if not db.query(Product).filter(Product.id == product_id).first():
        raise HTTPException(status_code=404, detail="Product not found")

    query = db.query(Variant).filter(Variant.product_id == product_id)
    if is_active is not None:
        query = query.filter(Variant.is_active == is_active)

    return query.order_by(
        Variant.is_default.desc(),
        Variant.display_order,
        Variant.created_at,
        Variant.id,
    ).all()


@router.get("/{variant_id}", response_model=VariantRead)
def get_variant(variant_id: int, db: Session = Depends(get_db)):
    return _get_variant_or_404(db, variant_id)


@router.put("/{variant_id}", response_model=VariantRead)
def update_variant(variant_id: int, data: VariantUpdate, db: Session = Depends(get_db)):
    """
    Update one variant.

    A new SKU must be unused. Making the variant default demotes the
    product's other defaults. Attributes, when given, replace the existing
    assignments and must not duplicate another active variant's values.
    """
    variant = _get_variant_or_404(db, variant_id)
    changes = data.model_dump(exclude_unset=True, exclude={"attributes"})

    if "sku" in changes and changes["sku"] is not None:
        changes["sku"] = changes["sku"].strip()
        if not changes["sku"]:
            raise HTTPException(status_code=400, detail="SKU is required")
        taken = db.query(Variant).filter(
            Variant.sku == changes["sku"],
            Variant.id != variant.id
        ).first()
        if taken:
            raise HTTPException(status_code=409, detail=f"SKU '{changes['sku']}' already exists")

    if data.attributes is not None:
        attribute_ids = [a.attribute_id for a in data.attributes]
        if len(attribute_ids) != len(set(attribute_ids)):
            raise HTTPException(status_code=400, detail="An attribute is assigned more than once")
        known = {a.id for a in AttributeCatalog(db).find_attributes_by_ids(attribute_ids)}
        missing = sorted(set(attribute_ids) - known)
        if missing:
            raise HTTPException(status_code=404, detail=f"Attribute {', '.join(str(i) for i in missing)} not found")
        combination = frozenset((a.attribute_id, a.value) for a in data.attributes)
    else:
        combination = variant.combination

    will_be_active = changes.get("is_active", variant.is_active)
    if combination and will_be_active:
        siblings = db.query(Variant).filter(
            Variant.product_id == variant.product_id,
            Variant.is_active == True,
            Variant.id != variant.id
        ).all()
        if any(s.combination == combination for s in siblings):
            raise HTTPException(
                status_code=409,
                detail="Another active variant already has the same attribute values"
            )

    if changes.get("is_default"):
        db.query(Variant).filter(
            Variant.product_id == variant.product_id,
            Variant.id != variant.id,
            Variant.is_default == True
        ).update({Variant.is_default: False}, synchronize_session=False)

    for key, value in changes.items():
        if value is None and key in ("sku", "price", "stock", "reserved_stock", "is_default", "is_active", "images"):
            continue
        setattr(variant, key, value)

    if data.attributes is not None:
        variant.attributes.clear()
        db.flush()
        variant.attributes = [
            VariantAttribute(attribute_id=a.attribute_id, value=a.value, display_value=a.display_value)
            for a in data.attributes
        ]

    db.commit()
    refresh_product_aggregate(VariantStore(db), variant.product_id)
    db.refresh(variant)
    return variant


@router.delete("/{variant_id}")
def delete_variant(variant_id: int, db: Session = Depends(get_db)):
    variant = _get_variant_or_404(db, variant_id)
    product_id = variant.product_id

    db.delete(variant)
    db.commit()
    refresh_product_aggregate(VariantStore(db), product_id)

    logger.info(f"Deleted variant {variant_id} of product {product_id}")
    return {"message": "Variant deleted", "id": variant_id}
