"""Closed import-issue taxonomy.

Each ``ErrorCode`` has exactly one severity. ``ImportIssue`` takes its severity (and
default message) from ``ERROR_CATALOG``; callers cannot override it.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, NamedTuple, Optional

from pydantic import Field, model_validator

from ledgerport.models.base import CamelModel


class Severity(StrEnum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ErrorCode(StrEnum):
    PARSE_UNDECODABLE = "ERR_PARSE_001"
    PARSE_NO_ROWS = "ERR_PARSE_002"
    MISSING_REQUIRED = "ERR_VAL_001"
    INVALID_FORMAT = "ERR_VAL_002"
    OUT_OF_RANGE = "ERR_VAL_003"
    COMPANY_NOT_FOUND = "ERR_ENT_001"
    PRODUCT_NOT_FOUND = "ERR_ENT_002"
    DUPLICATE_EXISTING = "ERR_DUP_001"
    DUPLICATE_IN_FILE = "ERR_DUP_002"
    TOTAL_MISMATCH = "ERR_TOT_001"
    PARTIAL_IMPORT = "ERR_PAR_001"


class CatalogEntry(NamedTuple):
    severity: Severity
    message: str


ERROR_CATALOG: dict[ErrorCode, CatalogEntry] = {
    ErrorCode.PARSE_UNDECODABLE: CatalogEntry(Severity.CRITICAL, "Failed to parse file"),
    ErrorCode.PARSE_NO_ROWS: CatalogEntry(Severity.WARNING, "Empty file or no data rows"),
    ErrorCode.MISSING_REQUIRED: CatalogEntry(Severity.CRITICAL, "Missing required field"),
    ErrorCode.INVALID_FORMAT: CatalogEntry(Severity.WARNING, "Invalid format"),
    ErrorCode.OUT_OF_RANGE: CatalogEntry(Severity.WARNING, "Value out of range"),
    ErrorCode.COMPANY_NOT_FOUND: CatalogEntry(Severity.CRITICAL, "Company not found"),
    ErrorCode.PRODUCT_NOT_FOUND: CatalogEntry(Severity.CRITICAL, "Product not found"),
    ErrorCode.DUPLICATE_EXISTING: CatalogEntry(Severity.WARNING, "Duplicate entry detected"),
    ErrorCode.DUPLICATE_IN_FILE: CatalogEntry(Severity.WARNING, "Duplicate within file"),
    ErrorCode.TOTAL_MISMATCH: CatalogEntry(Severity.WARNING, "Calculated total differs from stated"),
    ErrorCode.PARTIAL_IMPORT: CatalogEntry(Severity.INFO, "Partial import"),
}


class ImportIssue(CamelModel):
    """A single machine-actionable finding about the file or one of its rows."""

    model_config = {"frozen": True}

    code: ErrorCode
    severity: Severity
    message: str
    field: Optional[str] = None
    row_index: Optional[int] = None
    context: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _apply_catalog(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "code" not in data:
            return data
        entry = ERROR_CATALOG[ErrorCode(data["code"])]
        data = {**data, "severity": entry.severity}
        if not data.get("message"):
            data["message"] = entry.message
        return data

    @classmethod
    def build(
        cls,
        code: ErrorCode,
        *,
        row_index: int | None = None,
        field: str | None = None,
        message: str | None = None,
        **context: Any,
    ) -> ImportIssue:
        return cls(
            code=code, row_index=row_index, field=field, message=message or "", context=context,
        )

    @property
    def is_critical(self) -> bool:
        return self.severity is Severity.CRITICAL
