"""Student document model for MongoDB."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field


class StudentStatus(str, Enum):
    """Lifecycle status of a student record."""

    PENDING = "Pending"
    VERIFIED = "Verified"
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    GRADUATED = "Graduated"


class Student(Document):
    """Student document model.

    ``id_number`` is the natural key: it is unique across every persisted
    student, not only within one import.
    """

    # Personal information
    id_number: Indexed(str, unique=True)
    first_names: str
    surname: Indexed(str)
    email: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[str] = None  # ISO YYYY-MM-DD
    gender: Optional[str] = None

    # Academic information
    institution: Optional[str] = None
    student_number: Optional[str] = None
    program: Optional[str] = None
    year_of_study: Optional[int] = None

    # NSFAS funding
    nsfas_number: Optional[str] = None
    funded: bool = False
    funded_amount: Optional[float] = None
    funding_year: Optional[int] = None

    status: StudentStatus = StudentStatus.PENDING

    # Audit
    created_by: Optional[str] = None
    import_batch_id: Optional[PydanticObjectId] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    class Settings:
        name = "students"
        indexes = [
            "surname",
            "import_batch_id",
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_names} {self.surname}"

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, id_number={self.id_number}, name={self.full_name})>"
