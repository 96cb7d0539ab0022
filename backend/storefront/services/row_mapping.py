"""
Source row mapping for spreadsheet imports.

Import flattens spreadsheet rows into logical products; the reconciler reports
failures against logical product indexes. SourceRowMapper is the side-table
that turns those indexes back into the spreadsheet row numbers an operator
can find, without threading row numbers through the reconciler itself.
"""
from typing import Iterable, Optional

from storefront.schemas.imports import ImportFailure

UNMAPPED_PREFIX = "Unmapped error"


class SourceRowMapper:
    """Logical product index -> originating spreadsheet row numbers."""

    def __init__(self):
        self._rows: dict[int, list[int]] = {}

    def record(self, product_index: int, row_number: int) -> None:
        """Note that row_number contributed to the logical product at product_index."""
        rows = self._rows.setdefault(product_index, [])
        if row_number not in rows:
            rows.append(row_number)

    def resolve(self, product_index: Optional[int]) -> list[int]:
        """Row numbers for a logical product, or [] when the index was never recorded."""
        if product_index is None:
            return []
        return list(self._rows.get(product_index, []))

    def __len__(self) -> int:
        return len(self._rows)

    def annotate(
        self,
        product_index: Optional[int],
        reason: str,
        code: str,
        sku: Optional[str] = None,
    ) -> ImportFailure:
        """
        Point one failure at every row of its logical product.

        An index with no recorded rows still yields a failure, flagged as
        unmapped, so the message reaches the operator.
        """
        rows = self.resolve(product_index)
        return ImportFailure(
            product_index=product_index,
            rows=rows,
            sku=sku,
            reason=reason,
            code=code,
            unmapped=not rows,
        )

    def annotate_all(self, failures: Iterable[tuple]) -> list[ImportFailure]:
        """annotate() over (product_index, reason, code, sku) tuples."""
        return [self.annotate(*failure) for failure in failures]


def describe_failure(failure: ImportFailure) -> str:
    """One line for an operator: "Rows 2, 3: <reason>" or "Unmapped error: <reason>"."""
    if failure.unmapped or not failure.rows:
        return f"{UNMAPPED_PREFIX}: {failure.reason}"
    label = "Row" if len(failure.rows) == 1 else "Rows"
    rows = ", ".join(str(r) for r in failure.rows)
    return f"{label} {rows}: {failure.reason}"
