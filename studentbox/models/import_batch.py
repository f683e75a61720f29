"""ImportBatch document model: the history record of one student import run."""

from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field

if TYPE_CHECKING:
    from studentbox.services.student_import.types import ImportResult


class ImportStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ImportBatch(Document):
    """One run of the bulk student import.

    Created as PROCESSING before the first student is written, so every
    student of the run can point back at it through ``import_batch_id``.
    """

    owner_id: Indexed(PydanticObjectId)
    filename: str
    imported_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    status: ImportStatus = ImportStatus.PROCESSING

    row_count: int = 0
    success_count: int = 0
    duplicate_count: int = 0
    error_count: int = 0
    # At most detail_limit messages, "<id number>: <reason>"
    errors: list[str] = Field(default_factory=list)

    class Settings:
        name = "import_batches"

    async def mark_completed(self, result: "ImportResult", detail_limit: int) -> None:
        self.status = ImportStatus.COMPLETED
        self.finished_at = datetime.now(timezone.utc)
        self.success_count = result.success_count
        self.duplicate_count = result.duplicate_count
        self.error_count = result.error_count
        self.errors = [
            f"{e.id_number or 'unknown'}: {e.error}" for e in result.errors[:detail_limit]
        ]
        await self.save()

    async def mark_failed(self, reason: str) -> None:
        """Record a run that stopped before finishing."""
        self.status = ImportStatus.FAILED
        self.finished_at = datetime.now(timezone.utc)
        self.errors = [reason]
        await self.save()
