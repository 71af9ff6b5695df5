"""Audit trail for import runs: batch summary, per-row entries, export and display."""

from __future__ import annotations

import json
from collections import defaultdict
from datetime import datetime, timezone

from ledgerport.models.issues import ErrorCode
from ledgerport.models.pipeline import ImportBatchSummary, ImportStatus
from ledgerport.models.records import AutoFix, ImportReport, RowAuditEntry, RowStatus

DUPLICATE_CODES = frozenset({ErrorCode.DUPLICATE_EXISTING, ErrorCode.DUPLICATE_IN_FILE})


def _status(report: ImportReport, processed: int) -> ImportStatus:
    if report.cancelled:
        return ImportStatus.CANCELLED
    file_level_critical = any(i.is_critical and i.row_index is None for i in report.issues)
    if file_level_critical or processed == 0 or len(report.rejected) == processed:
        return ImportStatus.FAILED
    if report.rejected:
        return ImportStatus.PARTIAL
    return ImportStatus.COMPLETED


def summarize(
    report: ImportReport, started_at: datetime, total_rows: int,
    completed_at: datetime | None = None,
) -> ImportBatchSummary:
    processed = len(report.accepted) + len(report.rejected) + len(report.duplicates)
    return ImportBatchSummary(
        batch_id=report.batch_id,
        file_name=report.file_name,
        started_at=started_at,
        completed_at=completed_at or datetime.now(timezone.utc),
        total_rows=total_rows,
        imported_count=len(report.accepted),
        rejected_count=len(report.rejected),
        duplicate_count=len(report.duplicates),
        auto_fix_count=len(report.fixes),
        status=_status(report, processed),
    )


def audit_entries(report: ImportReport) -> list[RowAuditEntry]:
    """One entry per processed source row, in row order."""
    fixes_by_row: dict[int | None, list[AutoFix]] = defaultdict(list)
    for fix in report.fixes:
        fixes_by_row[fix.row_index].append(fix)

    accepted_status = RowStatus.PREVIEWED if report.dry_run else RowStatus.IMPORTED
    entries: list[RowAuditEntry] = []

    for row in report.accepted:
        entries.append(RowAuditEntry(
            row_index=row.row_index, status=accepted_status, import_hash=row.import_hash,
            auto_fixes=fixes_by_row[row.row_index], issue_codes=[i.code.value for i in row.issues],
        ))
    for rejected in report.rejected:
        entries.append(RowAuditEntry(
            row_index=rejected.row_index, status=RowStatus.REJECTED,
            auto_fixes=fixes_by_row[rejected.row_index],
            issue_codes=[i.code.value for i in rejected.issues],
        ))
    for issue in report.issues:
        if issue.code in DUPLICATE_CODES and issue.row_index is not None:
            entries.append(RowAuditEntry(
                row_index=issue.row_index, status=RowStatus.DUPLICATE,
                import_hash=issue.context.get("import_hash"),
                auto_fixes=fixes_by_row[issue.row_index], issue_codes=[issue.code.value],
            ))

    return sorted(entries, key=lambda e: e.row_index)


def export_audit_log(report: ImportReport) -> str:
    """Serialize the batch summary and per-row entries as indented JSON."""
    payload = {
        "summary": report.summary.model_dump(mode="json", by_alias=True) if report.summary else None,
        "entries": [e.model_dump(mode="json", by_alias=True) for e in audit_entries(report)],
        "issues": [i.model_dump(mode="json", by_alias=True) for i in report.issues],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def format_row_audit(entry: RowAuditEntry) -> str:
    lines = [f"Row {entry.row_index}: {entry.status.upper()}"]
    if entry.auto_fixes:
        lines.append(f"  Auto-fixes applied ({len(entry.auto_fixes)}):")
        for fix in entry.auto_fixes:
            lines.append(f'    - {fix.field}: "{fix.before}" → "{fix.after}" [{fix.rule_id}]')
    if entry.issue_codes:
        lines.append(f"  Issues: {', '.join(entry.issue_codes)}")
    if entry.import_hash:
        lines.append(f"  Hash: {entry.import_hash}")
    return "\n".join(lines)
