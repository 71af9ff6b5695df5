"""Order records produced by an import run and the report that carries them."""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import Any, Iterator, Optional

from pydantic import Field

from ledgerport.models.base import CamelModel
from ledgerport.models.issues import ImportIssue, Severity
from ledgerport.models.pipeline import ImportBatchSummary


class AutoFix(CamelModel):
    """Audit record of one automatic correction applied to one cell."""

    model_config = {"frozen": True}

    rule_id: str
    field: str
    before: Any = None
    after: Any = None
    row_index: Optional[int] = None


class LineItem(CamelModel):
    model_config = {"frozen": True}

    product_id: str
    quantity: Decimal
    price: Decimal


class ImportHashInput(CamelModel):
    """Identity of an order as seen by the duplicate detector."""

    model_config = {"frozen": True}

    invoice_number: Optional[str] = None
    company_id: str
    order_date: Optional[str] = None
    items: tuple[LineItem, ...] = ()


class NormalizedRow(CamelModel):
    """A fully validated, resolved and hashed order line.

    Attributes are snake_case; ``model_dump(by_alias=True)`` yields the canonical
    camelCase keys (``customerName``, ``itemName`` ...).
    """

    model_config = {"frozen": True}

    row_index: int

    # --- Required canonical fields ---
    customer_name: str
    item_name: str
    quantity: Decimal
    price: Decimal

    # --- Optional canonical fields ---
    invoice_number: str = ""
    invoice_date: Optional[str] = None  # ISO YYYY-MM-DD
    customer_account: str = ""
    area: str = ""
    item_id: str = ""
    unit: str = ""
    discount_percent: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    vat_percent: Decimal = Decimal("0")
    vat_amount: Decimal = Decimal("0")
    line_total: Decimal = Decimal("0")
    grand_total: Decimal = Decimal("0")
    notes: str = ""

    # --- Resolution & dedup ---
    company_id: str
    product_id: str
    import_hash: str
    line_subtotal: Decimal = Decimal("0")  # quantity x price
    net_total: Decimal = Decimal("0")  # after discount and VAT
    is_return: bool = False
    issues: tuple[ImportIssue, ...] = ()

    def order_values(self) -> dict[str, Any]:
        """Canonical camelCase values plus resolution ids, JSON-safe."""
        return self.model_dump(mode="json", by_alias=True, exclude={"issues"})


class RejectedRow(CamelModel):
    row_index: int
    row: dict[str, Any] = Field(default_factory=dict)
    issues: list[ImportIssue] = Field(default_factory=list)


class ImportReport(CamelModel):
    """Outcome of one import run. Built incrementally, returned to the caller."""

    batch_id: str
    file_name: str = ""
    dry_run: bool = False
    cancelled: bool = False
    accepted: list[NormalizedRow] = Field(default_factory=list)
    rejected: list[RejectedRow] = Field(default_factory=list)
    fixes: list[AutoFix] = Field(default_factory=list)
    duplicates: list[str] = Field(default_factory=list)
    issues: list[ImportIssue] = Field(default_factory=list)
    summary: Optional[ImportBatchSummary] = None

    def all_issues(self) -> Iterator[ImportIssue]:
        yield from self.issues
        for row in self.accepted:
            yield from row.issues
        for rejected in self.rejected:
            yield from rejected.issues

    def count_by_severity(self, severity: Severity) -> int:
        return sum(1 for issue in self.all_issues() if issue.severity is severity)

    @property
    def has_critical(self) -> bool:
        return self.count_by_severity(Severity.CRITICAL) > 0

    @property
    def can_auto_apply(self) -> bool:
        """True when nothing in the report needs a human to look at it."""
        return not any(
            issue.severity in (Severity.CRITICAL, Severity.WARNING) for issue in self.all_issues()
        )


class RowStatus(StrEnum):
    IMPORTED = "imported"
    PREVIEWED = "previewed"  # accepted during a dry run
    DUPLICATE = "duplicate"
    REJECTED = "rejected"


class RowAuditEntry(CamelModel):
    """What happened to a single source row."""

    row_index: int
    status: RowStatus
    import_hash: Optional[str] = None
    auto_fixes: list[AutoFix] = Field(default_factory=list)
    issue_codes: list[str] = Field(default_factory=list)
