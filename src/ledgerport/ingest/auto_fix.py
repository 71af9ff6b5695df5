"""Safe, audited corrections applied to a canonical row before validation."""

from __future__ import annotations

import re
from typing import Any, Mapping

from ledgerport.core.types import RawRow
from ledgerport.ingest.normalizers import normalize_unit
from ledgerport.models.records import AutoFix
from ledgerport.models.schema import FIELDS_BY_KEY, FREE_TEXT_FIELDS, UNIT_FIELD, DataType

RULE_TRIM = "AF_001"
RULE_UNIT = "AF_002"
RULE_MULTILINE = "AF_008"

_LINE_BREAK = re.compile(r"\r?\n")
_WHITESPACE_RUN = re.compile(r"\s+")


def _is_text_field(key: str) -> bool:
    field = FIELDS_BY_KEY.get(key)
    return field is None or field.data_type is DataType.STRING


def apply_auto_fixes(
    row: Mapping[str, Any], row_index: int | None = None,
) -> tuple[RawRow, list[AutoFix]]:
    """Apply the auto-fix rules in order and return ``(fixed_row, fixes)``.

    Rules:
        AF_001  trim surrounding whitespace of string values in text fields
        AF_002  canonicalize the unit of measure
        AF_008  flatten multi-line free text to a single ", "-separated line

    Numeric and date fields are never touched. ``row`` is not modified.
    """
    fixed = dict(row)
    fixes: list[AutoFix] = []

    def record(rule_id: str, key: str, before: Any, after: Any) -> None:
        fixes.append(AutoFix(rule_id=rule_id, field=key, before=before, after=after, row_index=row_index))
        fixed[key] = after

    for key, value in row.items():
        if isinstance(value, str) and _is_text_field(key):
            trimmed = value.strip()
            if trimmed != value:
                record(RULE_TRIM, key, value, trimmed)

    unit = fixed.get(UNIT_FIELD)
    if isinstance(unit, str) and unit:
        normalized, changed = normalize_unit(unit)
        if changed:
            record(RULE_UNIT, UNIT_FIELD, unit, normalized)

    for key in FREE_TEXT_FIELDS:
        text = fixed.get(key)
        if isinstance(text, str) and "\n" in text:
            flattened = _WHITESPACE_RUN.sub(" ", _LINE_BREAK.sub(", ", text)).strip()
            if flattened != text:
                record(RULE_MULTILINE, key, text, flattened)

    return fixed, fixes
