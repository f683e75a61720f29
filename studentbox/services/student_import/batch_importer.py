"""Chunked, duplicate-aware persistence of validated students."""

import logging
from typing import Callable, Optional

from studentbox.config import settings

from .aggregator import ImportResultAggregator
from .errors import DuplicateRecordError, PersistenceError
from .store import StudentStore, describe_store_error
from .types import BatchProgress, ImportResult, ValidatedStudent

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[BatchProgress], None]

REASON_REPEATED_IN_FILE = "ID number appears more than once in the import file"
REASON_EXISTS = "Student with this ID number already exists in the system"


def progress_percentage(processed: int, total: int, final: bool) -> int:
    """Percentage of records processed, rounded half-up.

    Stays below 100 until the final chunk has been processed.
    """
    if total <= 0:
        return 100
    percentage = (processed * 200 + total) // (total * 2)
    if not final:
        percentage = min(percentage, 99)
    return percentage


def effective_chunk_size(store: StudentStore, chunk_size: Optional[int] = None) -> int:
    requested = chunk_size or settings.import_chunk_size
    return max(1, min(requested, store.max_batch_size))


async def _write_chunk(
    store: StudentStore,
    pending: list[ValidatedStudent],
    aggregator: ImportResultAggregator,
    batch_number: int,
) -> None:
    """Write one chunk atomically, or record by record if that fails."""
    if not pending:
        return
    try:
        await store.write_batch(pending)
    except PersistenceError as e:
        logger.warning(
            "Batch %d write failed (%s), retrying %d records individually",
            batch_number,
            e,
            len(pending),
        )
    else:
        for _ in pending:
            aggregator.record_success()
        return

    for student in pending:
        try:
            await store.write_one(student)
        except DuplicateRecordError:
            aggregator.record_duplicate(student, REASON_EXISTS)
        except Exception as e:
            message = str(e) if isinstance(e, PersistenceError) else describe_store_error(e)
            aggregator.record_error(student, message)
            logger.warning("Import error for ID number %s: %s", student.id_number, message)
        else:
            aggregator.record_success()


async def import_student_batch(
    students: list[ValidatedStudent],
    on_progress: Optional[ProgressCallback] = None,
    *,
    store: StudentStore,
    chunk_size: Optional[int] = None,
) -> ImportResult:
    """Persist validated students in sequential chunks.

    Within the run the first occurrence of an ID number wins; later ones and
    ID numbers already in the store are reported as duplicates. A chunk is
    written atomically; if that fails each of its records is retried on its
    own so one bad record does not sink the others.

    Args:
        students: Records to import, in file order.
        on_progress: Called once after every chunk.
        store: Persistence backend.
        chunk_size: Records per chunk (defaults to config, capped by the store).

    Returns:
        ImportResult accounting for every input record.

    Raises:
        StoreUnavailableError: If the store cannot be queried.
    """
    total = len(students)
    aggregator = ImportResultAggregator(total_count=total)
    if total == 0:
        return aggregator.result()

    size = effective_chunk_size(store, chunk_size)
    chunks = [students[i : i + size] for i in range(0, total, size)]
    claimed: set[str] = set()

    logger.info("Importing %d students in %d batch(es) of up to %d", total, len(chunks), size)

    for number, chunk in enumerate(chunks, start=1):
        candidates: list[ValidatedStudent] = []
        for student in chunk:
            if student.id_number in claimed:
                aggregator.record_duplicate(student, REASON_REPEATED_IN_FILE)
            else:
                claimed.add(student.id_number)
                candidates.append(student)

        existing = await store.find_existing_id_numbers(s.id_number for s in candidates)

        pending: list[ValidatedStudent] = []
        for student in candidates:
            if student.id_number in existing:
                aggregator.record_duplicate(student, REASON_EXISTS)
            else:
                pending.append(student)

        await _write_chunk(store, pending, aggregator, number)

        processed = aggregator.processed_count
        logger.info("Batch %d/%d done: %d/%d records processed", number, len(chunks), processed, total)

        if on_progress is not None:
            on_progress(
                BatchProgress(
                    current_batch=number,
                    total_batches=len(chunks),
                    imported_count=processed,
                    total_count=total,
                    percentage=progress_percentage(processed, total, number == len(chunks)),
                )
            )

    result = aggregator.result()
    logger.info(
        "Import finished: %d imported, %d duplicates, %d errors",
        result.success_count,
        result.duplicate_count,
        result.error_count,
    )
    return result
