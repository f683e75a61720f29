"""Import endpoints for bulk student CSV import."""

import logging

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import APIRouter, File, HTTPException, Query, Request, Response, UploadFile, status
from pydantic import ValidationError
from pymongo.errors import PyMongoError
from slowapi import Limiter
from slowapi.util import get_remote_address

from studentbox.config import settings
from studentbox.models.import_batch import ImportBatch, ImportStatus
from studentbox.models.student import Student
from studentbox.schemas.import_schemas import (
    ImportBatchDetail,
    ImportBatchSummary,
    ImportPreviewResponse,
    ImportSessionResponse,
    ImportStartRequest,
    RowPreview,
)
from studentbox.services.auth import RequireAuth
from studentbox.services.student_import import (
    TEMPLATE_FILENAME,
    BeanieStudentStore,
    CompleteState,
    FileError,
    FileTooLargeError,
    ImportingState,
    ImportNotAllowedError,
    ImportResultResponse,
    ImportSession,
    InvalidTransitionError,
    ParseResult,
    PreviewState,
    StudentImportError,
    UploadState,
    describe_store_error,
    generate_student_csv_template,
    import_sessions,
    present_result,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Uploads are parsed in full, so they get their own per-client limit
limiter = Limiter(key_func=get_remote_address)


def _row_preview(parse_result: ParseResult, index: int) -> RowPreview:
    row = parse_result.data[index]
    return RowPreview(
        row_index=row.row_index,
        line_number=row.line_number,
        values=row.values,
        errors=parse_result.errors.get(row.row_index, []),
        duplicate_of_row=parse_result.repeated_id_rows.get(row.row_index),
    )


def _preview_response(parse_result: ParseResult) -> ImportPreviewResponse:
    shown = min(parse_result.row_count, settings.import_preview_rows)
    return ImportPreviewResponse(
        filename=parse_result.filename,
        headers=parse_result.headers,
        row_count=parse_result.row_count,
        valid_count=parse_result.valid_count,
        invalid_count=parse_result.invalid_count,
        repeated_id_count=len(parse_result.repeated_id_rows),
        can_import=parse_result.invalid_count == 0 and parse_result.valid_count > 0,
        preview_rows=[_row_preview(parse_result, i) for i in range(shown)],
        invalid_rows=[_row_preview(parse_result, i) for i in sorted(parse_result.errors)],
    )


def _session_response(session: ImportSession) -> ImportSessionResponse:
    state = session.state
    response = ImportSessionResponse(step=state.step.value)
    if isinstance(state, UploadState):
        response.error = state.error
    elif isinstance(state, PreviewState):
        response.error = state.error
        response.preview = _preview_response(state.parse_result)
    elif isinstance(state, ImportingState):
        response.progress = state.progress
    elif isinstance(state, CompleteState):
        response.result = present_result(state.result, settings.import_detail_limit)
    return response


def _batch_summary(batch: ImportBatch) -> dict:
    return dict(
        id=str(batch.id),
        filename=batch.filename,
        imported_at=batch.imported_at,
        finished_at=batch.finished_at,
        status=batch.status.value,
        row_count=batch.row_count,
        success_count=batch.success_count,
        duplicate_count=batch.duplicate_count,
        error_count=batch.error_count,
    )


@router.get("/template")
async def download_template(
    current_user: RequireAuth,
    include_sample: bool = Query(False, description="Append an example row"),
) -> Response:
    """Download the CSV template for student imports."""
    return Response(
        content=generate_student_csv_template(include_sample=include_sample),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


@router.post("/upload", response_model=ImportPreviewResponse)
@limiter.limit(lambda: f"{settings.rate_limit_per_minute}/minute")
async def upload_student_csv(
    request: Request,  # Required for rate limiting
    current_user: RequireAuth,
    file: UploadFile = File(..., description="Student CSV file"),
) -> ImportPreviewResponse:
    """Upload a student CSV file.

    Validates every row and returns the preview. Uploading again replaces
    the previewed file.
    """
    session = import_sessions.get(str(current_user.id))
    if isinstance(session.state, CompleteState):
        session.reset()
    limit = settings.max_upload_size_bytes

    # Read in chunks to avoid unbounded memory for oversized files
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(64 * 1024)  # 64 KB chunks
        if not chunk:
            break
        total_size += len(chunk)
        chunks.append(chunk)
        if total_size > limit:
            break
    content = b"".join(chunks)

    try:
        parse_result = session.load_file(content, file.filename, file.content_type)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except FileTooLargeError as e:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(e),
        )
    except FileError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return _preview_response(parse_result)


@router.get("/session", response_model=ImportSessionResponse)
async def get_session(current_user: RequireAuth) -> ImportSessionResponse:
    """Get the state of the current user's import session."""
    return _session_response(import_sessions.get(str(current_user.id)))


@router.post("/session/import", response_model=ImportResultResponse)
async def run_import(
    current_user: RequireAuth,
    request: ImportStartRequest | None = None,
) -> ImportResultResponse:
    """Import the previewed file.

    Refused while any row is invalid. The run is recorded as an import batch.
    """
    session = import_sessions.get(str(current_user.id))
    opts = request or ImportStartRequest()

    try:
        parse_result = session.begin_import()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ImportNotAllowedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    batch = ImportBatch(
        owner_id=current_user.id,
        filename=parse_result.filename or "unknown",
        row_count=parse_result.row_count,
    )
    try:
        await batch.insert()
    except PyMongoError as e:
        message = f"Import failed: {describe_store_error(e)}"
        session.abandon_import(message)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=message)

    store = BeanieStudentStore(created_by=current_user.email, import_batch_id=batch.id)

    try:
        result = await session.execute_import(store, chunk_size=opts.chunk_size)
    except (StudentImportError, PyMongoError) as e:
        logger.error("Import batch %s failed: %s", batch.id, e)
        await batch.mark_failed(str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Import failed: {e}",
        )

    detail_limit = settings.import_detail_limit
    await batch.mark_completed(result, detail_limit)

    logger.info(
        "Import batch %s by %s: %d imported, %d duplicates, %d errors",
        batch.id,
        current_user.email,
        result.success_count,
        result.duplicate_count,
        result.error_count,
    )
    return present_result(result, detail_limit, batch_id=str(batch.id))


@router.post("/session/reset", response_model=ImportSessionResponse)
async def reset_session(current_user: RequireAuth) -> ImportSessionResponse:
    """Discard the previewed file or last result and start over."""
    session = import_sessions.get(str(current_user.id))
    try:
        session.reset()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return _session_response(session)


@router.get("/batches", response_model=list[ImportBatchSummary])
async def list_batches(
    current_user: RequireAuth,
) -> list[ImportBatchSummary]:
    """List the current user's import runs."""
    batches = await ImportBatch.find(
        ImportBatch.owner_id == current_user.id,
    ).sort(-ImportBatch.imported_at).to_list()

    return [ImportBatchSummary(**_batch_summary(b)) for b in batches]


@router.get("/batches/{batch_id}", response_model=ImportBatchDetail)
async def get_batch(
    batch_id: str,
    current_user: RequireAuth,
) -> ImportBatchDetail:
    """Get details of an import run."""
    batch = await _get_user_batch(batch_id, current_user.id)
    return ImportBatchDetail(**_batch_summary(batch), errors=batch.errors)


@router.delete("/batches/{batch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_batch(
    batch_id: str,
    current_user: RequireAuth,
    delete_students: bool = Query(False, description="Also delete the students it created"),
) -> None:
    """Delete an import run record, optionally with the students it created."""
    batch = await _get_user_batch(batch_id, current_user.id)
    if batch.status == ImportStatus.PROCESSING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete an import that is still running",
        )
    if delete_students:
        deleted = await Student.find(Student.import_batch_id == batch.id).delete()
        logger.info(
            "Deleted %s students of import batch %s",
            getattr(deleted, "deleted_count", 0),
            batch.id,
        )
    await batch.delete()


async def _get_user_batch(batch_id: str, owner_id: PydanticObjectId) -> ImportBatch:
    """Get an import batch by ID, verifying ownership.

    Raises:
        HTTPException: If batch not found or not owned by user.
    """
    try:
        batch = await ImportBatch.find_one(
            ImportBatch.id == PydanticObjectId(batch_id),
            ImportBatch.owner_id == owner_id,
        )
    except (InvalidId, ValidationError):
        batch = None

    if not batch:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Import batch '{batch_id}' not found",
        )

    return batch
