"""Batch-level import state models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional

from ledgerport.models.base import CamelModel


class ImportStatus(StrEnum):
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ImportBatchSummary(CamelModel):
    """Roll-up of a finished import run."""

    batch_id: str
    file_name: str = ""
    started_at: datetime
    completed_at: Optional[datetime] = None
    total_rows: int = 0
    imported_count: int = 0
    rejected_count: int = 0
    duplicate_count: int = 0
    auto_fix_count: int = 0
    status: ImportStatus = ImportStatus.COMPLETED

