"""Deterministic import identity hash used for idempotent re-import detection.

The identity is per logical order: every line sharing an invoice number, company and
day hashes together. Lines without an invoice number are orders of their own.
"""

from __future__ import annotations

import hashlib
import json
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any, Mapping, Sequence

from ledgerport.core.types import ImportHash
from ledgerport.models.records import ImportHashInput, LineItem

HASH_LENGTH = 16
_CENT = Decimal("0.01")
_WIDE = Context(prec=60)

OrderKey = tuple[str, ...]


def _format_quantity(quantity: Decimal) -> str:
    return f"{Decimal(str(quantity)).normalize(_WIDE):f}"


def _format_price(price: Decimal) -> str:
    return f"{Decimal(str(price)).quantize(_CENT, rounding=ROUND_HALF_UP, context=_WIDE):f}"


def _format_item(item: LineItem) -> str:
    return f"{item.product_id}:{_format_quantity(item.quantity)}:{_format_price(item.price)}"


def _invoice(value: Any) -> str:
    return str(value or "").strip().lower()


def _day(value: Any) -> str:
    return str(value or "").split("T")[0]


def compute_import_hash(data: ImportHashInput) -> ImportHash:
    """Return the first 16 hex chars of SHA-256 over the order's identity.

    The identity ignores item order, time of day and invoice-number case/spacing.
    """
    payload = {
        "inv": _invoice(data.invoice_number),
        "cid": data.company_id,
        "date": _day(data.order_date),
        "items": "|".join(sorted(_format_item(item) for item in data.items)),
    }
    encoded = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def order_key(values: Mapping[str, Any], company_id: str, row_index: int) -> OrderKey:
    """Grouping key of the order a validated row belongs to."""
    invoice = _invoice(values.get("invoiceNumber"))
    if not invoice:
        return ("standalone", str(row_index))
    return (invoice, company_id, _day(values.get("invoiceDate")))


def line_item(values: Mapping[str, Any]) -> LineItem:
    """The hashed view of one line.

    Lines are identified by the source's own item reference (item id, else item
    name) so that re-imports hash identically regardless of directory changes.
    """
    item_ref = str(values.get("itemId") or values.get("itemName") or "")
    return LineItem(product_id=item_ref, quantity=values["quantity"], price=values["price"])


def hash_input_for_order(lines: Sequence[Mapping[str, Any]], company_id: str) -> ImportHashInput:
    """Build the hash input for the validated rows of one order."""
    first = lines[0]
    return ImportHashInput(
        invoice_number=first.get("invoiceNumber") or None,
        company_id=company_id,
        order_date=first.get("invoiceDate"),
        items=tuple(line_item(values) for values in lines),
    )
