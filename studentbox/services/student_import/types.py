"""Value types passed between the stages of the student import."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .constants import DEFAULT_STATUS


class RawRow(BaseModel):
    """One data row of the source file, keyed by column name."""

    model_config = ConfigDict(frozen=True)

    row_index: int  # 0-based, header excluded
    values: dict[str, str]

    def get(self, column: str) -> str:
        """Return the raw cell for ``column`` ("" when absent)."""
        return self.values.get(column) or ""

    @property
    def line_number(self) -> int:
        """1-based line number in the file, counting the header."""
        return self.row_index + 2


class FieldError(BaseModel):
    """A single field-level defect on one row."""

    model_config = ConfigDict(frozen=True)

    row_index: int
    field: str
    message: str


class ParseResult(BaseModel):
    """Rows of a parsed file and the errors found on them.

    ``errors`` only holds rows with at least one defect, so its key set is
    exactly the set of invalid row indices.
    """

    filename: Optional[str] = None
    headers: list[str] = Field(default_factory=list)
    data: list[RawRow] = Field(default_factory=list)
    errors: dict[int, list[FieldError]] = Field(default_factory=dict)
    # later row index -> row index of the first occurrence of the same ID
    repeated_id_rows: dict[int, int] = Field(default_factory=dict)

    @property
    def row_count(self) -> int:
        return len(self.data)

    @property
    def invalid_count(self) -> int:
        return len(self.errors)

    @property
    def valid_count(self) -> int:
        return len(self.data) - len(self.errors)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


class ValidatedStudent(BaseModel):
    """A fully typed student ready to be written to the store."""

    id_number: str
    first_names: str
    surname: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    institution: Optional[str] = None
    student_number: Optional[str] = None
    program: Optional[str] = None
    year_of_study: Optional[int] = None
    nsfas_number: Optional[str] = None
    funded: bool = False
    funded_amount: Optional[float] = None
    funding_year: Optional[int] = None
    status: str = DEFAULT_STATUS

    @property
    def full_name(self) -> str:
        return f"{self.first_names} {self.surname}"


class BatchProgress(BaseModel):
    """Progress snapshot emitted after each chunk."""

    current_batch: int
    total_batches: int
    imported_count: int
    total_count: int
    percentage: int = Field(ge=0, le=100)


class DuplicateStudent(BaseModel):
    """A record skipped because its ID number is already taken."""

    name: str
    id_number: str
    reason: str


class ImportErrorDetail(BaseModel):
    """A record that could not be written."""

    name: Optional[str] = None
    id_number: Optional[str] = None
    error: str


class ImportResult(BaseModel):
    """Outcome of one import run.

    ``success_count + duplicate_count + error_count == total_count`` always
    holds; the detail lists are complete.
    """

    total_count: int = 0
    success_count: int = 0
    duplicate_count: int = 0
    duplicate_students: list[DuplicateStudent] = Field(default_factory=list)
    error_count: int = 0
    errors: list[ImportErrorDetail] = Field(default_factory=list)


class ImportResultResponse(BaseModel):
    """Import outcome with detail lists capped for display."""

    total_count: int
    success_count: int
    duplicate_count: int
    error_count: int
    duplicate_students: list[DuplicateStudent]
    errors: list[ImportErrorDetail]
    more_duplicates: int = 0
    more_errors: int = 0
    batch_id: Optional[str] = None
