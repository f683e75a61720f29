"""Pydantic schemas for the bulk student import API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from studentbox.services.student_import.types import (
    BatchProgress,
    FieldError,
    ImportResultResponse,
)


class RowPreview(BaseModel):
    """One row of an uploaded file as shown in the preview."""

    row_index: int
    line_number: int
    values: dict[str, str]
    errors: list[FieldError] = Field(default_factory=list)
    duplicate_of_row: Optional[int] = None


class ImportPreviewResponse(BaseModel):
    """Validation summary of an uploaded file."""

    filename: Optional[str] = None
    headers: list[str]
    row_count: int
    valid_count: int
    invalid_count: int
    repeated_id_count: int
    can_import: bool
    preview_rows: list[RowPreview]
    invalid_rows: list[RowPreview]


class ImportStartRequest(BaseModel):
    """Options for running the import of the previewed file."""

    chunk_size: Optional[int] = Field(
        None, ge=1, le=10000, description="Records per batch (defaults to config)"
    )


class ImportSessionResponse(BaseModel):
    """Current state of the caller's import session."""

    step: str
    error: Optional[str] = None
    preview: Optional[ImportPreviewResponse] = None
    progress: Optional[BatchProgress] = None
    result: Optional[ImportResultResponse] = None


class ImportBatchSummary(BaseModel):
    """Summary of an import run for listing."""

    id: str
    filename: str
    imported_at: datetime
    finished_at: Optional[datetime] = None
    status: str
    row_count: int
    success_count: int
    duplicate_count: int
    error_count: int


class ImportBatchDetail(ImportBatchSummary):
    """Import run with its recorded error messages."""

    errors: list[str]
