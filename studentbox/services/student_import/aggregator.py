"""Accumulation and presentation of import outcomes."""

from .constants import DEFAULT_DETAIL_LIMIT
from .types import (
    DuplicateStudent,
    ImportErrorDetail,
    ImportResult,
    ImportResultResponse,
    ValidatedStudent,
)


class ImportResultAggregator:
    """Collects the outcome of every record of one import run."""

    def __init__(self, total_count: int = 0):
        self.total_count = total_count
        self.success_count = 0
        self.duplicates: list[DuplicateStudent] = []
        self.errors: list[ImportErrorDetail] = []

    def record_success(self) -> None:
        self.success_count += 1

    def record_duplicate(self, student: ValidatedStudent, reason: str) -> None:
        self.duplicates.append(
            DuplicateStudent(name=student.full_name, id_number=student.id_number, reason=reason)
        )

    def record_error(self, student: ValidatedStudent | None, message: str) -> None:
        self.errors.append(
            ImportErrorDetail(
                name=student.full_name if student else None,
                id_number=student.id_number if student else None,
                error=message,
            )
        )

    @property
    def processed_count(self) -> int:
        return self.success_count + len(self.duplicates) + len(self.errors)

    def result(self) -> ImportResult:
        return ImportResult(
            total_count=self.total_count,
            success_count=self.success_count,
            duplicate_count=len(self.duplicates),
            duplicate_students=list(self.duplicates),
            error_count=len(self.errors),
            errors=list(self.errors),
        )


def present_result(
    result: ImportResult,
    detail_limit: int = DEFAULT_DETAIL_LIMIT,
    batch_id: str | None = None,
) -> ImportResultResponse:
    """Cap the detail lists of a result for display.

    Counts are untouched; ``more_duplicates`` and ``more_errors`` say how
    many details were left out.
    """
    return ImportResultResponse(
        total_count=result.total_count,
        success_count=result.success_count,
        duplicate_count=result.duplicate_count,
        error_count=result.error_count,
        duplicate_students=result.duplicate_students[:detail_limit],
        errors=result.errors[:detail_limit],
        more_duplicates=max(0, len(result.duplicate_students) - detail_limit),
        more_errors=max(0, len(result.errors) - detail_limit),
        batch_id=batch_id,
    )


def summarize_result(result: ImportResult) -> str:
    """Render a short human-readable summary of an import."""
    lines = [f"Imported {result.success_count} of {result.total_count} students."]
    if result.duplicate_count:
        lines.append(f"Skipped {result.duplicate_count} duplicate(s).")
    if result.error_count:
        lines.append(f"{result.error_count} record(s) failed to import.")
    return "\n".join(lines)
