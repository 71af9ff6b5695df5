"""Canonical order-import schema: field definitions and static lookup tables.

Every raw spreadsheet column is resolved against ``CANONICAL_FIELDS``. The tuple order
is significant: it is the priority in which canonical keys claim raw headers.
"""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel


class DataType(StrEnum):
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    DECIMAL = "decimal"


class CanonicalFieldDef(BaseModel):
    """One schema-declared order attribute."""

    model_config = {"frozen": True}

    key: str
    label: str
    description: str = ""
    data_type: DataType
    required: bool = False
    max_length: Optional[int] = None
    min: Optional[Decimal] = None
    max: Optional[Decimal] = None

    @property
    def is_numeric(self) -> bool:
        return self.data_type in (DataType.NUMBER, DataType.DECIMAL)


REQUIRED_IMPORT_FIELDS: tuple[CanonicalFieldDef, ...] = (
    CanonicalFieldDef(key="customerName", label="Customer Name", description="Company/branch name",
                      data_type=DataType.STRING, required=True, max_length=255),
    CanonicalFieldDef(key="itemName", label="Item Name", description="Product name",
                      data_type=DataType.STRING, required=True, max_length=255),
    CanonicalFieldDef(key="quantity", label="Quantity", description="Order quantity (negative for returns)",
                      data_type=DataType.NUMBER, required=True),
    CanonicalFieldDef(key="price", label="Price", description="Unit price",
                      data_type=DataType.DECIMAL, required=True, min=Decimal("0")),
)

OPTIONAL_IMPORT_FIELDS: tuple[CanonicalFieldDef, ...] = (
    CanonicalFieldDef(key="invoiceNumber", label="Invoice Number", description="Invoice/Order reference",
                      data_type=DataType.STRING, max_length=50),
    CanonicalFieldDef(key="invoiceDate", label="Invoice Date", description="Order date",
                      data_type=DataType.DATE),
    CanonicalFieldDef(key="customerAccount", label="Customer Account", description="Account code",
                      data_type=DataType.STRING, max_length=50),
    CanonicalFieldDef(key="area", label="Area", description="Delivery area/region",
                      data_type=DataType.STRING, max_length=100),
    CanonicalFieldDef(key="itemId", label="Item ID", description="Product SKU or ID",
                      data_type=DataType.STRING, max_length=50),
    CanonicalFieldDef(key="unit", label="Unit", description="Unit of measure",
                      data_type=DataType.STRING, max_length=20),
    CanonicalFieldDef(key="discountPercent", label="Discount %", description="Discount percentage (0-100)",
                      data_type=DataType.NUMBER, min=Decimal("0"), max=Decimal("100")),
    CanonicalFieldDef(key="discountAmount", label="Discount Amount", description="Fixed discount",
                      data_type=DataType.DECIMAL),
    CanonicalFieldDef(key="vatPercent", label="VAT %", description="Tax percentage",
                      data_type=DataType.NUMBER, min=Decimal("0"), max=Decimal("100")),
    CanonicalFieldDef(key="vatAmount", label="VAT Amount", description="Stated tax amount",
                      data_type=DataType.DECIMAL),
    CanonicalFieldDef(key="lineTotal", label="Line Total", description="Line item total (for verification)",
                      data_type=DataType.DECIMAL),
    CanonicalFieldDef(key="grandTotal", label="Grand Total", description="Invoice total as stated by the source",
                      data_type=DataType.DECIMAL),
    CanonicalFieldDef(key="notes", label="Notes", description="Delivery notes / remarks",
                      data_type=DataType.STRING, max_length=500),
)

CANONICAL_FIELDS: tuple[CanonicalFieldDef, ...] = REQUIRED_IMPORT_FIELDS + OPTIONAL_IMPORT_FIELDS

FIELDS_BY_KEY: dict[str, CanonicalFieldDef] = {f.key: f for f in CANONICAL_FIELDS}


def get_field(key: str) -> CanonicalFieldDef | None:
    return FIELDS_BY_KEY.get(key)


# Known header spellings per canonical key, English and Arabic. Spellings are
# disjoint across keys (case-insensitively).
HEADER_SYNONYMS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("customerName", (
        "customer name", "company name", "customername", "companyname",
        "client", "branch", "account_name", "buyer", "customer", "company",
        "العميل", "اسم العميل",
    )),
    ("itemName", (
        "item name", "product name", "itemname", "productname", "item_name", "product_name",
        "description", "product", "item", "اسم المنتج",
    )),
    ("quantity", (
        "inv. qty", "inv qty", "invqty", "quantity", "qty", "units", "count", "الكمية",
        "sales qty", "sales_qty", "salesqty",
    )),
    ("price", (
        "price", "unit price", "unitprice", "unit_price", "rate", "cost", "unit_cost", "السعر",
    )),
    ("invoiceNumber", (
        "inv. no", "invoice number", "invno", "invoiceno", "invoice_number",
        "order_id", "order id", "ref", "reference", "order_no", "order no",
        "bill_no", "receipt", "رقم الفاتورة",
    )),
    ("invoiceDate", (
        "inv. date", "invoice date", "invdate", "invoicedate", "invoice_date",
        "order_date", "order date", "date", "bill_date", "created_at", "تاريخ",
    )),
    ("customerAccount", (
        "cust account", "custaccount", "customer account", "account",
        "account_no", "customer_id", "client_code", "رقم الحساب",
    )),
    ("area", (
        "area", "region", "location", "zone", "territory", "delivery_area", "المنطقة",
    )),
    ("itemId", (
        "item id", "product id", "itemid", "productid", "item_id", "product_id",
        "sku", "code", "product_code", "part_no", "barcode",
    )),
    ("unit", (
        "inv. unit", "inv unit", "invunit", "unit", "uom", "measure", "unit_of_measure",
    )),
    ("discountPercent", (
        "disc. %", "disc %", "discount %", "discpercent", "discountpercent",
        "disc_pct", "discount_rate", "discount percent",
    )),
    ("discountAmount", (
        "disc. amount", "disc amount", "discount", "discount amount",
        "discamount", "disc_value", "rebate",
    )),
    ("vatPercent", (
        "vat %", "tax %", "vatpercent", "taxpercent", "vat_rate", "tax_rate", "gst",
    )),
    ("vatAmount", (
        "vat amount", "tax amount", "vatamount", "taxamount", "vat", "tax", "ضريبة",
    )),
    ("lineTotal", (
        "amount", "line total", "linetotal", "line_total", "subtotal",
        "line_amount", "item_total", "المبلغ",
    )),
    ("grandTotal", (
        "total", "grand total", "grandtotal", "grand_total",
        "invoice_total", "net_total", "الإجمالي",
    )),
    ("notes", (
        "notes", "note", "delivery notes", "delivery_notes", "remarks", "comments", "ملاحظات",
    )),
)

# Free-text fields whose embedded newlines are flattened by the auto-fixer.
FREE_TEXT_FIELDS: tuple[str, ...] = ("customerName", "itemName", "area", "notes")

UNIT_FIELD = "unit"

UNIT_SYNONYMS: dict[str, str] = {
    "kg.": "kg", "kg": "kg", "kgs": "kg", "kilogram": "kg", "kilograms": "kg",
    "g.": "g", "g": "g", "grams": "g", "gram": "g",
    "pcs": "pcs", "pcs.": "pcs", "pc": "pcs", "piece": "pcs", "pieces": "pcs",
    "pack": "pack", "packs": "pack", "pk": "pack",
    "box": "box", "boxes": "box", "bx": "box",
    "carton": "carton", "cartons": "carton", "ctn": "carton",
    "ltr": "ltr", "l": "ltr", "litre": "ltr", "liter": "ltr", "litres": "ltr", "liters": "ltr",
}
