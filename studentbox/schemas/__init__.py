"""Pydantic schemas for StudentBox API."""

from studentbox.schemas.import_schemas import (
    ImportBatchDetail,
    ImportBatchSummary,
    ImportPreviewResponse,
    ImportResultResponse,
    ImportSessionResponse,
    ImportStartRequest,
    RowPreview,
)

__all__ = [
    "ImportBatchDetail",
    "ImportBatchSummary",
    "ImportPreviewResponse",
    "ImportResultResponse",
    "ImportSessionResponse",
    "ImportStartRequest",
    "RowPreview",
]
