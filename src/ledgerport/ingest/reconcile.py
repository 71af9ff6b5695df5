"""Entity resolution against the directory, and line-total reconciliation."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any, Collection, Mapping, NamedTuple

from ledgerport.core.protocols import IDirectoryLookup
from ledgerport.core.types import EntityId
from ledgerport.models.issues import ErrorCode, ImportIssue

_CENT = Decimal("0.01")
_HUNDRED = Decimal("100")
# Quantizing needs room for every integer digit plus the cents.
_MONEY_CONTEXT = Context(prec=60)


class ResolvedEntities(NamedTuple):
    company_id: EntityId | None
    product_id: EntityId | None
    issues: list[ImportIssue]

    @property
    def resolved(self) -> bool:
        return self.company_id is not None and self.product_id is not None


class LineAmounts(NamedTuple):
    subtotal: Decimal
    discount: Decimal
    net_total: Decimal
    is_return: bool


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP, context=_MONEY_CONTEXT)


def resolve_entities(
    values: Mapping[str, Any], directory: IDirectoryLookup, row_index: int | None = None,
) -> ResolvedEntities:
    """Resolve the row's customer and item to directory ids.

    An unresolved customer stops resolution: the item is not looked up.
    """
    customer = str(values.get("customerName") or "")
    company_id = directory.resolve_company(customer)
    if company_id is None:
        issue = ImportIssue.build(
            ErrorCode.COMPANY_NOT_FOUND, row_index=row_index, field="customerName",
            message=f"Company not found: {customer}",
            suggested={"action": "create_company", "name": customer,
                       "account": values.get("customerAccount") or "",
                       "area": values.get("area") or ""},
        )
        return ResolvedEntities(None, None, [issue])

    item_id = str(values.get("itemId") or "")
    item_name = str(values.get("itemName") or "")
    product_id = directory.resolve_product(item_id) if item_id else None
    if product_id is None and item_name:
        product_id = directory.resolve_product(item_name)
    if product_id is None:
        issue = ImportIssue.build(
            ErrorCode.PRODUCT_NOT_FOUND, row_index=row_index,
            field="itemId" if item_id else "itemName",
            message=f"Product not found: {item_id or item_name}",
            suggested={"action": "create_product", "name": item_name, "code": item_id,
                       "price": str(values.get("price", "")), "unit": values.get("unit") or ""},
        )
        return ResolvedEntities(company_id, None, [issue])

    return ResolvedEntities(company_id, product_id, [])


def line_amounts(values: Mapping[str, Any]) -> LineAmounts:
    """Compute subtotal, discount and VAT-inclusive net for one line.

    A stated discount amount wins over a discount percentage. Negative quantities
    are returns and produce negative totals.
    """
    quantity = Decimal(values.get("quantity") or 0)
    price = Decimal(values.get("price") or 0)
    subtotal = quantity * price

    discount_amount = Decimal(values.get("discountAmount") or 0)
    if discount_amount:
        discount = discount_amount
    else:
        discount = subtotal * Decimal(values.get("discountPercent") or 0) / _HUNDRED

    vat_rate = Decimal(values.get("vatPercent") or 0) / _HUNDRED
    net = (subtotal - discount) * (1 + vat_rate)
    return LineAmounts(_money(subtotal), _money(discount), _money(net), quantity < 0)


def check_line_total(
    values: Mapping[str, Any],
    provided: Collection[str],
    tolerance: Decimal = _CENT,
    row_index: int | None = None,
) -> ImportIssue | None:
    """Flag a stated line total that disagrees with quantity x price."""
    if "lineTotal" not in provided:
        return None
    stated = Decimal(values.get("lineTotal") or 0)
    computed = line_amounts(values).subtotal
    if abs(stated - computed) <= tolerance:
        return None
    return ImportIssue.build(
        ErrorCode.TOTAL_MISMATCH, row_index=row_index, field="lineTotal",
        message=f"Calculated total {computed} differs from stated {stated}",
        stated=str(stated), calculated=str(computed),
    )
