"""Bank statement upload endpoints.

Format problems answer 400 with ``{"error": ...}`` before anything is
written. A failed batch insert still answers 200 with ``success: false`` and
zero rows imported, so the dashboard can show the storage message.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from apps.api.core.auth import Actor, require_admin
from apps.api.core.config import setting
from apps.api.domains.ingestion.schemas import (
    IngestResponse,
    MappedUploadRequest,
    RowWarningOut,
)
from apps.api.domains.ingestion.service import (
    ExistingReferencesError,
    IngestionResult,
    ingest_statement,
    ingest_transactions,
)
from apps.api.domains.ingestion.store import TransactionStore
from packages.pledge_engine.normalizer import StatementFormatError

router = APIRouter(prefix="/bank-statements", tags=["ingestion"])
logger = structlog.get_logger()

ACCEPTED_EXTENSIONS = ("csv", "xlsx", "xls")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _store_for(actor: Actor) -> TransactionStore:
    return TransactionStore(actor.client, page_size=setting("TRANSACTION_PAGE_SIZE", 1000))


def _to_response(result: IngestionResult) -> IngestResponse:
    return IngestResponse(
        success=result.success,
        rows_imported=result.rows_imported,
        duplicates_skipped=result.duplicates_skipped,
        message=result.message,
        duplicate_references=result.duplicate_references,
        warnings=[RowWarningOut(**w.to_dict()) for w in result.warnings],
    )


@router.post("/upload", response_model=IngestResponse)
async def upload_statement(
    file: Optional[UploadFile] = File(None),
    actor: Actor = Depends(require_admin),
):
    """Import a CSV bank statement.

    Excel files pass the type check but are not processed yet.
    """
    if file is None:
        return _error(400, "No file provided")

    filename = file.filename or ""
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if extension not in ACCEPTED_EXTENSIONS:
        return _error(400, "Invalid file type. Only CSV and Excel files are supported.")
    if extension != "csv":
        return _error(400, "Excel file processing is not implemented yet.")

    contents = await file.read()
    max_bytes = setting("MAX_UPLOAD_BYTES", 10 * 1024 * 1024)
    if len(contents) > max_bytes:
        return _error(413, f"File too large (max {max_bytes // (1024 * 1024)}MB)")

    try:
        result = ingest_statement(
            _store_for(actor),
            contents,
            actor=actor,
            duplicate_sample=setting("DUPLICATE_SAMPLE_SIZE", 10),
        )
    except StatementFormatError as e:
        logger.warning("statement_rejected", filename=filename, error=str(e))
        return _error(400, str(e))
    except ExistingReferencesError as e:
        return _error(500, f"Error checking existing transactions: {e}")

    return _to_response(result)


@router.post("/upload-mapped", response_model=IngestResponse)
async def upload_mapped(
    request: MappedUploadRequest,
    actor: Actor = Depends(require_admin),
):
    """Import rows an operator mapped column-by-column in the dashboard."""
    if not request.transactions:
        return _error(400, "No transactions to import")

    try:
        result = ingest_transactions(
            _store_for(actor),
            [tx.to_normalized() for tx in request.transactions],
            actor=actor,
            duplicate_sample=setting("DUPLICATE_SAMPLE_SIZE", 10),
        )
    except ExistingReferencesError as e:
        return _error(500, f"Error checking existing transactions: {e}")

    return _to_response(result)
