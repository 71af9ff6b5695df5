"""Value normalizers for spreadsheet cells: locale numbers, dates, units.

None of these functions raise on bad input (``excel_serial_to_iso`` excepted); they
return ``None`` (or ``0.0`` for ``parse_localized_number``) and let the caller decide
whether that is a finding.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation

from dateutil import parser as date_parser

from ledgerport.core.types import CellValue
from ledgerport.models.schema import UNIT_SYNONYMS

EXCEL_EPOCH = date(1899, 12, 30)
MIN_YEAR = 2000
MAX_YEAR = 2100

# Integer cells strictly inside this range are read as spreadsheet serial dates.
SERIAL_RANGE = (1000, 100000)

# Amounts at or beyond 10**MAX_MAGNITUDE are not believable order values.
MAX_MAGNITUDE = 15

_CURRENCY_AND_SPACE = re.compile(r"[$€£¥₹\s]")
_PLAIN_NUMBER = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)$")
_DIGITS_ONLY = re.compile(r"^\d+$")


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

def _unlocalize(text: str) -> str:
    """Rewrite a localized numeric string into plain ``1234.56`` notation."""
    last_comma = text.rfind(",")
    last_dot = text.rfind(".")

    if last_comma > last_dot >= 0:
        # European: 1.234,56
        head, tail = text[:last_comma], text[last_comma + 1:]
        return head.replace(".", "").replace(",", "") + "." + tail
    if last_dot > last_comma >= 0:
        # US: 1,234.56
        return text.replace(",", "")
    if last_comma >= 0:
        tail = text[last_comma + 1:]
        if len(tail) <= 2:
            # Decimal comma: 123,45
            return text[:last_comma].replace(",", "") + "." + tail
        # Thousands separators: 1,234
        return text.replace(",", "")
    return text


def _bounded(number: Decimal) -> Decimal | None:
    if not number.is_finite() or (number and number.adjusted() >= MAX_MAGNITUDE):
        return None
    return number


def parse_localized_decimal(value: CellValue) -> Decimal | None:
    """Parse a cell into a Decimal, guessing the locale from separator positions.

    >>> parse_localized_decimal("1.234,56")
    Decimal('1234.56')
    >>> parse_localized_decimal("$1,234.56")
    Decimal('1234.56')
    >>> parse_localized_decimal("123.45-")
    Decimal('-123.45')

    Values of ``10**MAX_MAGNITUDE`` or more are treated as unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return _bounded(value)
    if isinstance(value, int):
        return _bounded(Decimal(value))
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return _bounded(Decimal(str(value)))
    if not isinstance(value, str):
        return None

    text = _CURRENCY_AND_SPACE.sub("", value)
    if not text:
        return None
    # Trailing negative sign from accounting exports.
    if text.endswith("-") and not text.startswith(("-", "+")):
        text = "-" + text[:-1]

    text = _unlocalize(text)
    if not _PLAIN_NUMBER.match(text):
        return None
    try:
        return _bounded(Decimal(text))
    except InvalidOperation:
        return None


def parse_localized_number(value: CellValue) -> float:
    """Fail-soft float view of ``parse_localized_decimal``: 0.0 when unparseable."""
    parsed = parse_localized_decimal(value)
    return 0.0 if parsed is None else float(parsed)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def excel_serial_to_date(serial: float) -> date:
    return EXCEL_EPOCH + timedelta(days=math.floor(serial))


def excel_serial_to_iso(serial: float, *, min_year: int = MIN_YEAR, max_year: int = MAX_YEAR) -> str:
    """Convert a spreadsheet serial day number to ``YYYY-MM-DD``.

    Raises:
        ValueError: if the resulting year is outside ``[min_year, max_year]``.
    """
    try:
        day = excel_serial_to_date(serial)
    except OverflowError as exc:
        raise ValueError(f"Serial date {serial!r} is out of range") from exc
    if not min_year <= day.year <= max_year:
        raise ValueError(f"Date out of valid range: {day.isoformat()}")
    return day.isoformat()


def _serial_candidate(value: CellValue) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return None if not math.isfinite(value) else math.floor(value)
    if isinstance(value, str) and _DIGITS_ONLY.match(value.strip()):
        return int(value.strip())
    return None


def parse_date(
    value: CellValue,
    *,
    day_first: bool = False,
    min_year: int = MIN_YEAR,
    max_year: int = MAX_YEAR,
) -> str | None:
    """Parse a date cell to ``YYYY-MM-DD``; None when unparseable or out of range."""
    if value is None:
        return None

    if isinstance(value, datetime):
        day = value.date()
    elif isinstance(value, date):
        day = value
    else:
        serial = _serial_candidate(value)
        if serial is not None:
            if not SERIAL_RANGE[0] < serial < SERIAL_RANGE[1]:
                return None
            try:
                return excel_serial_to_iso(serial, min_year=min_year, max_year=max_year)
            except ValueError:
                return None
        if not isinstance(value, str) or not value.strip():
            return None
        try:
            day = date_parser.parse(value.strip(), dayfirst=day_first).date()
        except (ValueError, OverflowError):
            return None

    if not min_year <= day.year <= max_year:
        return None
    return day.isoformat()


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

def normalize_unit(unit: str) -> tuple[str, bool]:
    """Map a unit spelling onto its canonical short form.

    Returns ``(normalized, changed)``; unknown units pass through lower-cased.
    """
    lowered = unit.strip().lower()
    normalized = UNIT_SYNONYMS.get(lowered, lowered)
    return normalized, normalized != unit
