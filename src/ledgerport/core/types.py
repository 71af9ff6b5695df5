"""Type aliases used across the LedgerPort engine."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

CellValue = str | int | float | Decimal | date | datetime | None
RawRow = dict[str, CellValue]
CanonicalKey = str
ImportHash = str
EntityId = str
