"""MongoDB document models for StudentBox."""

from studentbox.models.import_batch import ImportBatch, ImportStatus
from studentbox.models.student import Student, StudentStatus
from studentbox.models.user import User

__all__ = [
    "User",
    "Student",
    "StudentStatus",
    "ImportBatch",
    "ImportStatus",
]
