import logging
from zipfile import BadZipFile
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlalchemy.orm import Session
from storefront.database import get_db
from storefront.schemas.imports import ImportReport, RowImportRequest
from storefront.services.variant_import import (
    get_csv_template,
    import_variants_from_csv,
    read_excel_rows,
    import_variants_from_rows,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/import", tags=["admin"])


@router.get("/template/csv")
def get_import_csv_template():
    """Get a CSV template with example data for importing products and variants."""
    return {
        "template": get_csv_template(),
        "instructions": (
            "One row per variant. Rows with the same product_name form one product. "
            "Columns: product_name, description, base_price, price, category, stock, sku, "
            "image_url, is_active, plus one column per variant attribute (e.g. Color, Size)"
        )
    }


@router.post("/variants", response_model=ImportReport)
async def import_variants_file(file: UploadFile = File(...), db: Session = Depends(get_db)):
    """
    Import products and variants from a CSV or Excel (.xlsx) file.

    Failures are reported against spreadsheet row numbers; the header is row 1.
    """
    filename = (file.filename or "").lower()
    content = await file.read()

    if filename.endswith(".csv"):
        try:
            csv_content = content.decode("utf-8")
        except UnicodeDecodeError:
            raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")
        return import_variants_from_csv(csv_content, db)

    if filename.endswith(".xlsx"):
        try:
            rows = read_excel_rows(content)
        except (ValueError, BadZipFile) as e:
            logger.warning(f"Unreadable workbook '{file.filename}': {e}")
            raise HTTPException(status_code=400, detail="File is not a readable .xlsx workbook")
        return import_variants_from_rows(rows, db)

    raise HTTPException(status_code=400, detail="File must be a CSV or .xlsx workbook")


@router.post("/rows", response_model=ImportReport)
def import_variant_rows(request: RowImportRequest, db: Session = Depends(get_db)):
    """Import already-parsed spreadsheet rows (one dict per row, keyed by header)."""
    return import_variants_from_rows(request.rows, db, request.first_row_number)
