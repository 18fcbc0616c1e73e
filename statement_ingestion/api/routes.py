"""FastAPI endpoints for the statement ingestion API.

This module defines the routes for submitting a batch of statements, checking batch status, reading the
batch summary, downloading the transactions table, cancelling a running batch, and health checks.
"""

import io
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from statement_ingestion.api.dependencies import get_file_service, get_runner
from statement_ingestion.core.db import BatchRepository, get_repository
from statement_ingestion.core.models import BatchStatus, Document
from statement_ingestion.core.stats import summarize
from statement_ingestion.core.utils import get_logger
from statement_ingestion.services.file_service import FileService, read_upload
from statement_ingestion.services.report_service import COMBINED_KEY, ExportMode, build_report
from statement_ingestion.workers.batch_runner import BatchRunner

router = APIRouter()
logger = get_logger("statement-ingestion.api")


@router.post(
    "/batches",
    status_code=202,
    summary="Submit a batch of bank statements",
    description=(
        "Upload one or more statement documents (plain text or PDF). "
        "The server validates each document, extracts statement metadata, parses and categorizes the "
        "transactions in a background job. Returns a batch_id used to follow progress and fetch results.\n\n"
        "**Request:**\n"
        "- Content-Type: multipart/form-data\n"
        "- Form field: `files` (one or more files)\n\n"
        "**Response:**\n"
        "- 202 Accepted: `{ 'batch_id': '<uuid>' }`.\n"
        "- 400 Bad Request: no files, duplicate names, or an unsupported file type."
    ),
    response_description="Batch accepted. Returns batch_id.",
    responses={
        202: {
            "description": "Batch accepted.",
            "content": {"application/json": {"example": {"batch_id": "123e4567-e89b-12d3-a456-426614174000"}}},
        },
        400: {
            "description": "Batch rejected.",
            "content": {"application/json": {"example": {"detail": "No documents were submitted"}}},
        },
    },
)
async def submit_batch(
    background_tasks: BackgroundTasks,
    files: list[UploadFile],
    file_service: FileService = Depends(get_file_service),
    repository: BatchRepository = Depends(get_repository),
    runner: BatchRunner = Depends(get_runner),
) -> JSONResponse:
    """Store the uploaded documents and start a batch job."""
    logger.info(f"Received batch upload: {[f.filename for f in files]}")
    documents: list[Document] = []
    for file in files:
        try:
            documents.append(await read_upload(file))
        except ValueError as exc:
            logger.warning(f"Rejected upload: {exc}")
            raise HTTPException(400, str(exc)) from exc
    if not documents:
        raise HTTPException(400, "No documents were submitted")
    names = [doc.name for doc in documents]
    if len(set(names)) != len(names):
        raise HTTPException(400, "Document names within a batch must be unique")
    batch_id = str(uuid.uuid4())
    for doc in documents:
        file_service.save_document(batch_id, doc)
    repository.create_batch(batch_id)
    BatchRunner.cancel_event(batch_id)
    background_tasks.add_task(runner.run, batch_id, [(doc.name, doc.media_type.value) for doc in documents])
    logger.info(f"Background batch started: batch_id={batch_id}")
    return JSONResponse({"batch_id": batch_id}, status_code=202)


@router.get(
    "/batches/{batch_id}/status",
    response_model=BatchStatus,
    summary="Get batch status",
    description=(
        "Status of a batch with its progress counters (uploaded, validated, processed, failed).\n\n"
        "- 200 OK: status, timestamps, error if any, counters.\n"
        "- 404 Not Found: unknown batch_id."
    ),
    responses={404: {"content": {"application/json": {"example": {"detail": "Batch not found"}}}}},
)
async def get_status(batch_id: str, repository: BatchRepository = Depends(get_repository)) -> dict:
    """Get the status of a batch."""
    row = repository.get_status(batch_id)
    if not row:
        raise HTTPException(404, "Batch not found")
    return row


@router.get("/batches/{batch_id}", summary="Get batch results summary")
async def get_batch(batch_id: str, repository: BatchRepository = Depends(get_repository)) -> dict:
    """Return per-document outcomes and the aggregate statistics of a batch."""
    state = repository.get_result(batch_id)
    if state is None:
        raise HTTPException(404, "Batch not found or not started")
    documents = [
        {
            "name": rec.name,
            "status": rec.status,
            "error": rec.error,
            "validation": rec.validation.model_dump(mode="json", exclude={"metadata"}) if rec.validation else None,
            "stats": rec.stats.model_dump(mode="json") if rec.stats else None,
        }
        for rec in state.documents
    ]
    return {"documents": documents, "summary": summarize(state).model_dump(mode="json")}


@router.get(
    "/batches/{batch_id}/download",
    summary="Download the transactions table as CSV",
    description=(
        "Download the categorized transactions of a batch as CSV. Without `document` the combined table "
        "for the whole batch is returned; with `document=<name>` only that document's table."
    ),
)
async def download(
    batch_id: str, document: str | None = None, repository: BatchRepository = Depends(get_repository)
) -> StreamingResponse:
    """Stream the transactions table of a batch or of one of its documents."""
    state = repository.get_result(batch_id)
    if state is None:
        raise HTTPException(404, "Batch not found")
    if document is None:
        tables = build_report(state, ExportMode.COMBINED)[COMBINED_KEY]
        filename = f"transactions_{batch_id}.csv"
    else:
        reports = build_report(state, ExportMode.SEPARATE)
        if document not in reports:
            raise HTTPException(404, "Document not found or not processed")
        tables = reports[document]
        filename = f"transactions_{document}.csv"
    data = tables.transactions.to_csv(index=False).encode("utf-8")
    return StreamingResponse(
        io.BytesIO(data),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/batches/{batch_id}/cancel", summary="Cancel a running batch")
async def cancel(batch_id: str, repository: BatchRepository = Depends(get_repository)) -> dict:
    """Stop a batch before its next document; the document in flight is finished."""
    if repository.get_status(batch_id) is None:
        raise HTTPException(404, "Batch not found")
    return {"batch_id": batch_id, "cancelled": BatchRunner.cancel(batch_id)}


@router.get(
    "/health",
    summary="Health check",
    description="Simple health check endpoint. Returns status ok.",
    responses={200: {"description": "API is healthy.", "content": {"application/json": {"example": {"status": "ok"}}}}},
)
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
