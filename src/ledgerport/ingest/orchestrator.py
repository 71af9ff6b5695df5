"""ImportOrchestrator: drives one spreadsheet through mapping, fixing, validation,
resolution and deduplication, and collects the outcome in an ``ImportReport``.

Rows are checked one by one in source order, then grouped into orders (see
``hashing.order_key``). Each order is hashed, deduplicated and inserted as a unit.

Row problems are never raised; they end up in the report. Failures of the injected
directory or sink (``SinkError``, ``CacheError`` ...) propagate to the caller.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, NamedTuple, Sequence

from ledgerport.core.config import ImportConfig
from ledgerport.core.exceptions import DuplicateHashError, FileDecodeError
from ledgerport.core.protocols import IDirectoryLookup, IOrderSink
from ledgerport.core.types import CanonicalKey, CellValue, EntityId
from ledgerport.ingest.audit import summarize
from ledgerport.ingest.auto_fix import apply_auto_fixes
from ledgerport.ingest.hashing import OrderKey, compute_import_hash, hash_input_for_order, order_key
from ledgerport.ingest.header_mapper import auto_map_positions, missing_required_fields
from ledgerport.ingest.readers import read_spreadsheet
from ledgerport.ingest.reconcile import check_line_total, line_amounts, resolve_entities
from ledgerport.ingest.validator import RowValidator
from ledgerport.models.issues import ErrorCode, ImportIssue
from ledgerport.models.records import ImportReport, NormalizedRow, RejectedRow
from ledgerport.models.schema import FIELDS_BY_KEY

logger = logging.getLogger(__name__)

# Data rows are numbered as spreadsheet rows: the header occupies row 1.
FIRST_DATA_ROW = 2

RowInput = Sequence[CellValue] | Mapping[str, CellValue]


class PendingLine(NamedTuple):
    """A row that passed validation and resolution, waiting for its order to be committed."""

    row_index: int
    values: dict[str, Any]
    company_id: EntityId
    product_id: EntityId
    issues: list[ImportIssue]


def new_batch_id() -> str:
    return f"import_{uuid.uuid4().hex}"


def _column_labels(headers: Sequence[str]) -> list[str]:
    """Unique, non-empty labels for each column, used when echoing rejected rows."""
    labels: list[str] = []
    counts: dict[str, int] = {}
    for position, header in enumerate(headers):
        label = header or f"column_{position + 1}"
        counts[label] = counts.get(label, 0) + 1
        labels.append(label if counts[label] == 1 else f"{label} ({counts[label]})")
    return labels


def _cells(row: RowInput, headers: Sequence[str]) -> list[CellValue]:
    if isinstance(row, Mapping):
        return [row.get(header) for header in headers]
    cells = list(row)[: len(headers)]
    return cells + [None] * (len(headers) - len(cells))


class ImportOrchestrator:
    """Runs imports against a directory and an order sink."""

    def __init__(
        self,
        *,
        directory: IDirectoryLookup,
        sink: IOrderSink,
        config: ImportConfig | None = None,
    ) -> None:
        self._directory = directory
        self._sink = sink
        self._config = config or ImportConfig()
        self._validator = RowValidator(config=self._config)

    # ---- entry points ----

    def run_file(self, content: bytes, file_name: str, **kwargs: Any) -> ImportReport:
        """Decode a CSV/XLSX upload and run it."""
        try:
            sheet = read_spreadsheet(content, file_name, max_rows=self._config.max_rows)
        except FileDecodeError as exc:
            logger.warning("Import of %s failed to decode: %s", file_name, exc.reason)
            started_at = datetime.now(timezone.utc)
            report = ImportReport(
                batch_id=new_batch_id(), file_name=file_name, dry_run=kwargs.get("dry_run", False),
            )
            report.issues.append(ImportIssue.build(
                ErrorCode.PARSE_UNDECODABLE, message=f"Failed to parse file: {exc.reason}",
                file_name=file_name,
            ))
            report.summary = summarize(report, started_at, total_rows=0)
            return report
        return self.run(sheet.headers, sheet.rows, file_name=file_name, **kwargs)

    def run(
        self,
        headers: Sequence[str],
        rows: Sequence[RowInput],
        *,
        file_name: str = "",
        dry_run: bool = False,
        cancel: threading.Event | None = None,
    ) -> ImportReport:
        started_at = datetime.now(timezone.utc)
        headers = ["" if h is None else str(h) for h in headers]
        report = ImportReport(batch_id=new_batch_id(), file_name=file_name, dry_run=dry_run)
        logger.info("Import %s started: file=%r rows=%d dry_run=%s",
                    report.batch_id, file_name, len(rows), dry_run)

        if not rows:
            report.issues.append(ImportIssue.build(ErrorCode.PARSE_NO_ROWS, file_name=file_name))
            return self._finish(report, started_at, total_rows=0)

        positions = auto_map_positions(headers)
        missing = missing_required_fields({key: headers[pos] for key, pos in positions.items()})
        if missing:
            for key in missing:
                report.issues.append(ImportIssue.build(
                    ErrorCode.MISSING_REQUIRED, field=key,
                    message=f"Required column not found: {FIELDS_BY_KEY[key].label}",
                    headers=list(headers),
                ))
            logger.warning("Import %s: required columns not mapped: %s", report.batch_id, missing)
            return self._finish(report, started_at, total_rows=len(rows))

        labels = _column_labels(headers)
        orders: dict[OrderKey, list[PendingLine]] = {}
        for offset, row in enumerate(rows):
            if self._cancelled(report, cancel, f"after reading {offset} of {len(rows)} rows"):
                break
            line = self._prepare_row(report, offset + FIRST_DATA_ROW, _cells(row, headers),
                                     labels, positions)
            if line is not None:
                key = order_key(line.values, line.company_id, line.row_index)
                orders.setdefault(key, []).append(line)

        # Orders may still be incomplete when reading stopped early; commit none of them.
        if not report.cancelled:
            seen: set[str] = set()
            for position, lines in enumerate(orders.values()):
                if self._cancelled(report, cancel, f"after {position} of {len(orders)} orders"):
                    break
                self._commit_order(report, lines, seen)

        if report.rejected:
            report.issues.append(ImportIssue.build(
                ErrorCode.PARTIAL_IMPORT,
                message=f"{len(report.rejected)} of {len(rows)} rows rejected",
                rejected=len(report.rejected), total=len(rows),
            ))
        return self._finish(report, started_at, total_rows=len(rows))

    @staticmethod
    def _cancelled(report: ImportReport, cancel: threading.Event | None, where: str) -> bool:
        if cancel is None or not cancel.is_set():
            return False
        report.cancelled = True
        logger.info("Import %s cancelled %s", report.batch_id, where)
        return True

    # ---- per-row checks ----

    def _prepare_row(
        self,
        report: ImportReport,
        row_index: int,
        cells: list[CellValue],
        labels: list[str],
        positions: dict[CanonicalKey, int],
    ) -> PendingLine | None:
        """Fix, validate and resolve one row. Rejections go straight to the report."""
        canonical = {key: cells[pos] for key, pos in positions.items()}
        fixed, fixes = apply_auto_fixes(canonical, row_index)
        report.fixes.extend(fixes)

        def reject(issues: list[ImportIssue]) -> None:
            report.rejected.append(RejectedRow(
                row_index=row_index, row=dict(zip(labels, cells)), issues=issues,
            ))
            logger.debug("Row %d rejected: %s", row_index, [i.code.value for i in issues])

        validation = self._validator.validate(row_index, fixed)
        if not validation.accepted:
            reject(validation.issues)
            return None

        values = validation.values
        entities = resolve_entities(values, self._directory, row_index)
        if not entities.resolved:
            reject(validation.issues + entities.issues)
            return None

        issues = list(validation.issues)
        mismatch = check_line_total(values, validation.provided, self._config.total_tolerance, row_index)
        if mismatch is not None:
            issues.append(mismatch)
        return PendingLine(row_index, values, entities.company_id, entities.product_id, issues)

    # ---- per-order dedup and insert ----

    def _commit_order(self, report: ImportReport, lines: list[PendingLine], seen: set[str]) -> None:
        company_id = lines[0].company_id
        import_hash = compute_import_hash(hash_input_for_order([line.values for line in lines], company_id))
        if import_hash in seen:
            self._duplicate(report, ErrorCode.DUPLICATE_IN_FILE, lines, import_hash)
            return
        seen.add(import_hash)
        if self._sink.hash_exists(import_hash):
            self._duplicate(report, ErrorCode.DUPLICATE_EXISTING, lines, import_hash)
            return

        records = [self._record(line, import_hash) for line in lines]
        if not report.dry_run:
            try:
                self._sink.insert(import_hash, records)
            except DuplicateHashError:
                self._duplicate(report, ErrorCode.DUPLICATE_EXISTING, lines, import_hash)
                return
        report.accepted.extend(records)

    @staticmethod
    def _record(line: PendingLine, import_hash: str) -> NormalizedRow:
        amounts = line_amounts(line.values)
        return NormalizedRow.model_validate({
            **line.values,
            "rowIndex": line.row_index,
            "companyId": line.company_id,
            "productId": line.product_id,
            "importHash": import_hash,
            "lineSubtotal": amounts.subtotal,
            "netTotal": amounts.net_total,
            "isReturn": amounts.is_return,
            "issues": tuple(line.issues),
        })

    @staticmethod
    def _duplicate(
        report: ImportReport, code: ErrorCode, lines: list[PendingLine], import_hash: str,
    ) -> None:
        for line in lines:
            report.duplicates.append(import_hash)
            report.issues.append(ImportIssue.build(code, row_index=line.row_index, import_hash=import_hash))
        logger.info("Rows %s skipped as duplicate (%s): %s",
                    [line.row_index for line in lines], code.value, import_hash)

    @staticmethod
    def _finish(report: ImportReport, started_at: datetime, total_rows: int) -> ImportReport:
        report.summary = summarize(report, started_at, total_rows)
        logger.info(
            "Import %s finished: status=%s accepted=%d rejected=%d duplicates=%d fixes=%d",
            report.batch_id, report.summary.status, len(report.accepted),
            len(report.rejected), len(report.duplicates), len(report.fixes),
        )
        return report
