"""Bulk import endpoints.

Accepts a delimited text file (comma or semicolon separated, header row
first) either as a multipart upload or as a raw text/plain body, merges it
into the directory and returns the import report.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status

from src.partnermap.api.deps import get_directory, require_admin
from src.partnermap.directory.errors import ImportFormatError
from src.partnermap.directory.schemas import ImportReport
from src.partnermap.directory.service import DirectoryService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/imports", tags=["imports"], dependencies=[Depends(require_admin)])


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="The file is not valid UTF-8 text.",
        )


async def _run_import(directory: DirectoryService, text: str) -> ImportReport:
    try:
        report = await directory.import_text(text)
    except ImportFormatError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    logger.info(
        "imports.completed",
        rows_read=report.rows_read,
        rows_applied=report.rows_applied,
        rows_skipped=report.rows_skipped,
    )
    return report


@router.post("", response_model=ImportReport)
async def import_file(
    file: UploadFile = File(...),
    directory: DirectoryService = Depends(get_directory),
) -> ImportReport:
    """Import an uploaded CSV file."""
    content = await file.read()
    return await _run_import(directory, _decode(content))


@router.post("/text", response_model=ImportReport)
async def import_raw_text(
    request: Request,
    directory: DirectoryService = Depends(get_directory),
) -> ImportReport:
    """Import CSV content sent as the raw request body."""
    content = await request.body()
    return await _run_import(directory, _decode(content))
