"""Import service package for turning student CSV files into student records."""

from .constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_DETAIL_LIMIT,
    KNOWN_COLUMNS,
    MAX_FILE_SIZE,
    REQUIRED_COLUMNS,
    TEMPLATE_COLUMNS,
    TEMPLATE_FILENAME,
)
from .errors import (
    BatchWriteError,
    DuplicateRecordError,
    FileError,
    FileTooLargeError,
    ImportNotAllowedError,
    InvalidTransitionError,
    MalformedFileError,
    MissingColumnsError,
    PersistenceError,
    StoreUnavailableError,
    StudentImportError,
    UnsupportedFileTypeError,
)
from .types import (
    BatchProgress,
    DuplicateStudent,
    FieldError,
    ImportErrorDetail,
    ImportResult,
    ImportResultResponse,
    ParseResult,
    RawRow,
    ValidatedStudent,
)
from .id_number import (
    birth_date_from_id,
    format_id_number,
    gender_from_id,
    luhn_is_valid,
    normalize_id_number,
)
from .validator import validate_row
from .csv_parser import generate_student_csv_template, parse_student_csv
from .converter import convert_to_validated_students
from .aggregator import ImportResultAggregator, present_result, summarize_result
from .store import BeanieStudentStore, StudentStore, describe_store_error
from .batch_importer import import_student_batch
from .session import (
    CompleteState,
    ImportingState,
    ImportSession,
    ImportStep,
    PreviewState,
    UploadState,
)
from .registry import ImportSessionRegistry, import_sessions

__all__ = [
    # Constants
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_DETAIL_LIMIT",
    "KNOWN_COLUMNS",
    "MAX_FILE_SIZE",
    "REQUIRED_COLUMNS",
    "TEMPLATE_COLUMNS",
    "TEMPLATE_FILENAME",
    # Errors
    "StudentImportError",
    "FileError",
    "UnsupportedFileTypeError",
    "FileTooLargeError",
    "MalformedFileError",
    "MissingColumnsError",
    "ImportNotAllowedError",
    "InvalidTransitionError",
    "PersistenceError",
    "BatchWriteError",
    "DuplicateRecordError",
    "StoreUnavailableError",
    # Types
    "RawRow",
    "FieldError",
    "ParseResult",
    "ValidatedStudent",
    "BatchProgress",
    "DuplicateStudent",
    "ImportErrorDetail",
    "ImportResult",
    "ImportResultResponse",
    # ID numbers
    "normalize_id_number",
    "luhn_is_valid",
    "birth_date_from_id",
    "gender_from_id",
    "format_id_number",
    # Pipeline
    "validate_row",
    "parse_student_csv",
    "generate_student_csv_template",
    "convert_to_validated_students",
    "ImportResultAggregator",
    "present_result",
    "summarize_result",
    "StudentStore",
    "BeanieStudentStore",
    "describe_store_error",
    "import_student_batch",
    # Session
    "ImportStep",
    "UploadState",
    "PreviewState",
    "ImportingState",
    "CompleteState",
    "ImportSession",
    "ImportSessionRegistry",
    "import_sessions",
]
