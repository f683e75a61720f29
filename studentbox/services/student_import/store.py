"""Persistence capability used by the batch importer, and its Beanie adapter."""

import logging
from typing import Iterable, Optional, Protocol

from beanie import PydanticObjectId
from beanie.operators import In
from pydantic import BaseModel, ValidationError
from pymongo.errors import (
    BulkWriteError,
    ConnectionFailure,
    DocumentTooLarge,
    DuplicateKeyError,
    OperationFailure,
    PyMongoError,
)

from studentbox.models.student import Student

from .errors import (
    BatchWriteError,
    DuplicateRecordError,
    PersistenceError,
    StoreUnavailableError,
)
from .types import ValidatedStudent

logger = logging.getLogger(__name__)

# MongoDB error codes
_UNAUTHORIZED = 13
_DOCUMENT_VALIDATION_FAILURE = 121


class StudentStore(Protocol):
    """What the batch importer needs from persistent storage."""

    max_batch_size: int

    async def exists_by_id_number(self, id_number: str) -> bool: ...

    async def find_existing_id_numbers(self, id_numbers: Iterable[str]) -> set[str]: ...

    async def write_batch(self, students: list[ValidatedStudent]) -> None:
        """Persist all students or none of them.

        Raises:
            BatchWriteError: If the write failed; nothing was kept.
            StoreUnavailableError: If a partial write could not be undone.
        """
        ...

    async def write_one(self, student: ValidatedStudent) -> None:
        """Persist a single student.

        Raises:
            DuplicateRecordError: If the ID number is already taken.
            PersistenceError: For any other write failure.
        """
        ...


def describe_store_error(exc: BaseException) -> str:
    """Turn a driver or store exception into a message for the user."""
    if isinstance(exc, (DuplicateKeyError, DuplicateRecordError)):
        return "Record already exists: A student with this ID number already exists in the system."
    if isinstance(exc, (ConnectionFailure, StoreUnavailableError)):
        return "Network error: Unable to reach the database. Please try again."
    if isinstance(exc, (ValidationError, DocumentTooLarge)):
        return "Invalid data format: One or more fields contain invalid values."

    message = str(exc)
    lowered = message.lower()
    code = getattr(exc, "code", None)

    if code == _UNAUTHORIZED or "not authorized" in lowered or "permission" in lowered:
        return (
            "Permission denied: You don't have access to create student records. "
            "Please contact your administrator."
        )
    if "quota" in lowered or "exceeded" in lowered:
        return "Database quota exceeded. Please try importing fewer students at a time."
    if code == _DOCUMENT_VALIDATION_FAILURE or "invalid" in lowered:
        return "Invalid data format: One or more fields contain invalid values."
    if isinstance(exc, (OperationFailure, BulkWriteError)) or "write" in lowered:
        return f"Database write error: {message}"
    return message


class _IdNumberOnly(BaseModel):
    id_number: str


class BeanieStudentStore:
    """StudentStore backed by the ``students`` collection.

    Every document written through this store is stamped with the acting
    user and the import run it belongs to.
    """

    def __init__(
        self,
        created_by: Optional[str] = None,
        import_batch_id: Optional[PydanticObjectId] = None,
        max_batch_size: int = 500,
    ):
        self.created_by = created_by
        self.import_batch_id = import_batch_id
        self.max_batch_size = max_batch_size

    def _to_document(self, student: ValidatedStudent) -> Student:
        return Student(
            id=PydanticObjectId(),
            created_by=self.created_by,
            import_batch_id=self.import_batch_id,
            **student.model_dump(),
        )

    async def exists_by_id_number(self, id_number: str) -> bool:
        try:
            return await Student.find_one(Student.id_number == id_number) is not None
        except ConnectionFailure as e:
            raise StoreUnavailableError(describe_store_error(e)) from e

    async def find_existing_id_numbers(self, id_numbers: Iterable[str]) -> set[str]:
        wanted = list(dict.fromkeys(id_numbers))
        if not wanted:
            return set()
        try:
            found = (
                await Student.find(In(Student.id_number, wanted))
                .project(_IdNumberOnly)
                .to_list()
            )
        except ConnectionFailure as e:
            raise StoreUnavailableError(describe_store_error(e)) from e
        return {doc.id_number for doc in found}

    async def write_batch(self, students: list[ValidatedStudent]) -> None:
        if not students:
            return
        documents = [self._to_document(s) for s in students]
        try:
            await Student.insert_many(documents, ordered=True)
        except PyMongoError as e:
            logger.warning("Batch insert of %d students failed: %s", len(documents), e)
            await self._discard([doc.id for doc in documents])
            raise BatchWriteError(describe_store_error(e)) from e

    async def _discard(self, ids: list[PydanticObjectId]) -> None:
        """Remove documents of a failed batch that did get inserted.

        Raises:
            StoreUnavailableError: If the rollback fails. Left in place, this
                run's own records would come back as duplicates on retry.
        """
        try:
            result = await Student.find(In(Student.id, ids)).delete()
        except PyMongoError as e:
            logger.error("Could not roll back partial batch insert: %s", e)
            raise StoreUnavailableError(
                f"Could not roll back a partially written batch: {describe_store_error(e)}"
            ) from e
        removed = result.deleted_count if result is not None else 0
        if removed:
            logger.info("Rolled back %d of %d students from a failed batch", removed, len(ids))

    async def write_one(self, student: ValidatedStudent) -> None:
        document = self._to_document(student)
        try:
            await document.insert()
        except DuplicateKeyError as e:
            raise DuplicateRecordError(student.id_number) from e
        except PyMongoError as e:
            raise PersistenceError(describe_store_error(e)) from e
