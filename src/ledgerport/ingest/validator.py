"""Row validator: required, type and range checks against the canonical schema.

Each row walks a small state machine::

    UNVALIDATED -> FIELDS_RESOLVED | MISSING_REQUIRED
    FIELDS_RESOLVED -> TYPE_VALID | TYPE_INVALID
    TYPE_* -> RANGE_VALID | RANGE_INVALID
    RANGE_* -> ACCEPTED
    MISSING_REQUIRED -> REJECTED

Type and range problems are warnings: the offending value is replaced by the field's
default (or kept, for range problems) and the row stays acceptable. Only a missing
required field rejects the row here.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, Field

from ledgerport.core.config import ImportConfig
from ledgerport.core.types import CellValue
from ledgerport.ingest.normalizers import parse_date, parse_localized_decimal
from ledgerport.models.issues import ErrorCode, ImportIssue
from ledgerport.models.schema import CANONICAL_FIELDS, CanonicalFieldDef, DataType


class RowState(StrEnum):
    UNVALIDATED = "UNVALIDATED"
    FIELDS_RESOLVED = "FIELDS_RESOLVED"
    MISSING_REQUIRED = "MISSING_REQUIRED"
    TYPE_VALID = "TYPE_VALID"
    TYPE_INVALID = "TYPE_INVALID"
    RANGE_VALID = "RANGE_VALID"
    RANGE_INVALID = "RANGE_INVALID"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class RowValidation(BaseModel):
    """Validation outcome for one row."""

    row_index: int
    state: RowState = RowState.UNVALIDATED
    history: list[RowState] = Field(default_factory=lambda: [RowState.UNVALIDATED])
    values: dict[str, Any] = Field(default_factory=dict)
    provided: set[str] = Field(default_factory=set)
    issues: list[ImportIssue] = Field(default_factory=list)

    def transition(self, state: RowState) -> None:
        self.state = state
        self.history.append(state)

    @property
    def accepted(self) -> bool:
        return self.state is RowState.ACCEPTED


def is_blank(value: CellValue) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def as_text(value: CellValue) -> str:
    """Render a cell as text; integral floats lose their ``.0``."""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal):
        return f"{value.normalize():f}" if value == value.to_integral_value() else str(value)
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _default(field: CanonicalFieldDef) -> Any:
    if field.is_numeric:
        return Decimal("0")
    if field.data_type is DataType.DATE:
        return None
    return ""


class RowValidator:
    """Validate canonical rows (canonical key -> raw cell) against field definitions."""

    def __init__(
        self,
        fields: Sequence[CanonicalFieldDef] = CANONICAL_FIELDS,
        config: ImportConfig | None = None,
    ) -> None:
        self._fields = tuple(fields)
        self._config = config or ImportConfig()

    def validate(self, row_index: int, row: Mapping[str, CellValue]) -> RowValidation:
        result = RowValidation(row_index=row_index)

        missing = [f for f in self._fields if f.required and is_blank(row.get(f.key))]
        if missing:
            result.transition(RowState.MISSING_REQUIRED)
            for field in missing:
                result.issues.append(ImportIssue.build(
                    ErrorCode.MISSING_REQUIRED, row_index=row_index, field=field.key,
                    message=f"Missing required field: {field.label}",
                ))
            result.transition(RowState.REJECTED)
            return result
        result.transition(RowState.FIELDS_RESOLVED)

        type_ok = True
        for field in self._fields:
            raw = row.get(field.key)
            if is_blank(raw):
                result.values[field.key] = _default(field)
                continue
            result.provided.add(field.key)
            value, ok = self._coerce(field, raw)
            result.values[field.key] = value
            if not ok:
                type_ok = False
                result.issues.append(ImportIssue.build(
                    ErrorCode.INVALID_FORMAT, row_index=row_index, field=field.key,
                    message=f"Invalid {field.data_type} for {field.label}: {raw!r}",
                    value=as_text(raw),
                ))
        result.transition(RowState.TYPE_VALID if type_ok else RowState.TYPE_INVALID)

        range_ok = True
        for field in self._fields:
            if field.key not in result.provided:
                continue
            problem = self._range_problem(field, result.values[field.key])
            if problem:
                range_ok = False
                result.issues.append(ImportIssue.build(
                    ErrorCode.OUT_OF_RANGE, row_index=row_index, field=field.key,
                    message=f"{field.label} {problem}",
                ))
        result.transition(RowState.RANGE_VALID if range_ok else RowState.RANGE_INVALID)

        result.transition(RowState.ACCEPTED)
        return result

    def _coerce(self, field: CanonicalFieldDef, raw: CellValue) -> tuple[Any, bool]:
        if field.is_numeric:
            number = parse_localized_decimal(raw)
            return (Decimal("0"), False) if number is None else (number, True)
        if field.data_type is DataType.DATE:
            parsed = parse_date(
                raw,
                day_first=self._config.day_first,
                min_year=self._config.min_year,
                max_year=self._config.max_year,
            )
            return parsed, parsed is not None
        return as_text(raw), True

    @staticmethod
    def _range_problem(field: CanonicalFieldDef, value: Any) -> str | None:
        if isinstance(value, str) and field.max_length is not None and len(value) > field.max_length:
            return f"exceeds {field.max_length} characters"
        if isinstance(value, Decimal):
            if field.min is not None and value < field.min:
                return f"must be at least {field.min}"
            if field.max is not None and value > field.max:
                return f"must be at most {field.max}"
        return None
