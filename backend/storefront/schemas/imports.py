from pydantic import BaseModel
from typing import Any

from storefront.schemas.variant import VariantRead


class RowImportRequest(BaseModel):
    """Spreadsheet rows as JSON objects keyed by column header."""
    rows: list[dict[str, Any]]
    first_row_number: int | None = None  # Defaults to the first data row after the header


class ImportFailure(BaseModel):
    """A failure pointed back at the spreadsheet rows it came from."""
    product_index: int | None = None
    rows: list[int] = []
    sku: str | None = None
    reason: str
    code: str
    unmapped: bool = False


class ImportReport(BaseModel):
    total_rows: int
    products_created: int
    products_reused: int
    created: list[VariantRead]
    failed: list[ImportFailure]
    created_count: int
    failed_count: int
    messages: list[str] = []
