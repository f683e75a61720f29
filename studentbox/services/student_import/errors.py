"""Exception hierarchy for the bulk student import.

Row-level defects are not exceptions; they are reported as ``FieldError``
values in the parse result. The classes below cover whole-file problems,
session misuse and store failures.
"""


class StudentImportError(Exception):
    """Base class for all import errors."""


class FileError(StudentImportError, ValueError):
    """The uploaded file cannot be processed at all.

    Raised before any row is produced; the user fixes the file and uploads
    it again.
    """


class UnsupportedFileTypeError(FileError):
    """The file is not a CSV file."""


class FileTooLargeError(FileError):
    """The file exceeds the configured size ceiling."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"File exceeds maximum size of {limit // (1024 * 1024)} MB"
        )


class MalformedFileError(FileError):
    """The file cannot be decoded or has no header row."""


class MissingColumnsError(FileError):
    """The header row lacks one or more required columns."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required columns: {', '.join(missing)}")


class ImportNotAllowedError(StudentImportError):
    """The session is not in a state where an import may start."""


class InvalidTransitionError(StudentImportError):
    """An import session operation was called from the wrong step."""


class PersistenceError(StudentImportError):
    """A store write failed."""


class BatchWriteError(PersistenceError):
    """An atomic chunk write failed; nothing from the chunk was kept."""


class DuplicateRecordError(PersistenceError):
    """The store already holds a student with this ID number."""

    def __init__(self, id_number: str):
        self.id_number = id_number
        super().__init__(f"Student with ID number {id_number} already exists")


class StoreUnavailableError(StudentImportError):
    """The store cannot be reached; the import cannot continue."""
