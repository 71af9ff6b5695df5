"""Import endpoints: header mapping preview and import runs from the file store."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from ledgerport.core.exceptions import FileStoreError
from ledgerport.ingest.audit import export_audit_log
from ledgerport.ingest.header_mapper import describe_mapping

logger = logging.getLogger(__name__)

router = APIRouter(tags=["imports"])

AUDIT_PREFIX = "audit"


class HeaderPreviewRequest(BaseModel):
    headers: list[str] = Field(default_factory=list)


class ImportRequest(BaseModel):
    path: str
    dry_run: bool = False


@router.post("/headers")
async def preview_headers(body: HeaderPreviewRequest) -> dict[str, Any]:
    """Show how a header row would be mapped, before uploading the whole file."""
    preview = describe_mapping(body.headers)
    return {**preview.model_dump(), "complete": preview.is_complete}


@router.post("")
def run_import(body: ImportRequest, request: Request) -> dict[str, Any]:
    """Run an import of a file already uploaded to the file store."""
    persistence = request.app.state.persistence
    try:
        content = persistence.file_store.read(body.path)
    except FileStoreError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    report = request.app.state.orchestrator.run_file(
        content, PurePosixPath(body.path).name, dry_run=body.dry_run,
    )
    audit_path = persistence.file_store.write(
        f"{AUDIT_PREFIX}/{report.batch_id}.json",
        export_audit_log(report).encode("utf-8"),
        content_type="application/json",
    )
    logger.info("Audit log for %s written to %s", report.batch_id, audit_path)
    return {**report.model_dump(mode="json", by_alias=True), "auditPath": audit_path}
