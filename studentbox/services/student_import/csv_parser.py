"""CSV parsing and template export for student imports."""

import csv
import io
import logging

from .constants import (
    ALLOWED_CONTENT_TYPES,
    ALLOWED_EXTENSIONS,
    MAX_FILE_SIZE,
    REQUIRED_COLUMNS,
    TEMPLATE_COLUMNS,
    TEMPLATE_SAMPLE_ROW,
)
from .errors import (
    FileTooLargeError,
    MalformedFileError,
    MissingColumnsError,
    UnsupportedFileTypeError,
)
from .id_number import normalize_id_number
from .types import FieldError, ParseResult, RawRow
from .validator import validate_row

logger = logging.getLogger(__name__)


def check_file_type(filename: str | None, content_type: str | None = None) -> None:
    """Reject anything that is not a CSV upload.

    Raises:
        UnsupportedFileTypeError: If the extension or content type is not CSV.
    """
    if filename is not None:
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if ext not in ALLOWED_EXTENSIONS:
            raise UnsupportedFileTypeError("Unsupported file type. Please upload a .csv file")
    if content_type:
        media_type = content_type.split(";", 1)[0].strip().lower()
        if media_type not in ALLOWED_CONTENT_TYPES:
            raise UnsupportedFileTypeError(f"Unsupported content type: {media_type}")


def _decode(content: bytes) -> str:
    """Decode UTF-8 (BOM tolerated), falling back to Latin-1."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("CSV is not valid UTF-8, decoding as Latin-1")
    return content.decode("latin-1")


def read_rows(content: bytes) -> tuple[list[str], list[RawRow]]:
    """Read CSV bytes into headers and raw rows.

    Fully blank lines are skipped; every other line becomes a row, even if
    all of its cells are empty.

    Raises:
        MalformedFileError: If the file has no usable header row.
        MissingColumnsError: If a required column is absent.
    """
    text = _decode(content)
    reader = csv.DictReader(io.StringIO(text, newline=""))

    try:
        fieldnames = reader.fieldnames
    except csv.Error as e:
        raise MalformedFileError(f"Invalid CSV file: {e}") from e

    if fieldnames is None:
        raise MalformedFileError("CSV file has no headers")

    headers = [h.strip() for h in fieldnames if h and h.strip()]
    if not headers:
        raise MalformedFileError("CSV file has no valid headers")

    missing = [col for col in REQUIRED_COLUMNS if col not in headers]
    if missing:
        raise MissingColumnsError(missing)

    rows: list[RawRow] = []
    try:
        for index, row in enumerate(reader):
            values = {
                h.strip(): str(v).strip() if v else ""
                for h, v in row.items()
                if isinstance(h, str) and h.strip()
            }
            rows.append(RawRow(row_index=index, values=values))
    except csv.Error as e:
        raise MalformedFileError(f"Invalid CSV file: {e}") from e

    return headers, rows


def find_repeated_ids(
    rows: list[RawRow], errors: dict[int, list[FieldError]]
) -> dict[int, int]:
    """Map each later row that repeats an ID number to its first occurrence."""
    first_seen: dict[str, int] = {}
    repeated: dict[int, int] = {}
    for row in rows:
        if row.row_index in errors:
            continue
        id_number = normalize_id_number(row.get("idNumber"))
        if id_number in first_seen:
            repeated[row.row_index] = first_seen[id_number]
        else:
            first_seen[id_number] = row.row_index
    return repeated


def parse_student_csv(
    content: bytes,
    *,
    filename: str | None = None,
    content_type: str | None = None,
    max_size: int | None = None,
    verify_checksum: bool = False,
) -> ParseResult:
    """Parse and validate an uploaded student CSV file.

    Args:
        content: Raw file bytes.
        filename: Original filename, used for the extension check.
        content_type: Declared media type, if any.
        max_size: Size ceiling in bytes (defaults to 10 MB).
        verify_checksum: Verify the Luhn check digit of ID numbers.

    Returns:
        ParseResult holding every data row and the errors of invalid rows.

    Raises:
        FileError: If the file cannot be processed at all.
    """
    check_file_type(filename, content_type)

    limit = max_size if max_size is not None else MAX_FILE_SIZE
    if len(content) > limit:
        raise FileTooLargeError(len(content), limit)

    headers, rows = read_rows(content)

    errors: dict[int, list[FieldError]] = {}
    for row in rows:
        row_errors = validate_row(row, verify_checksum=verify_checksum)
        if row_errors:
            errors[row.row_index] = row_errors

    result = ParseResult(
        filename=filename,
        headers=headers,
        data=rows,
        errors=errors,
        repeated_id_rows=find_repeated_ids(rows, errors),
    )
    logger.info(
        "Parsed %s: %d rows, %d invalid",
        filename or "CSV upload",
        result.row_count,
        result.invalid_count,
    )
    return result


def generate_student_csv_template(include_sample: bool = False) -> str:
    """Build the downloadable import template.

    Args:
        include_sample: Append one example row after the header.

    Returns:
        CSV text with the template header row.
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(TEMPLATE_COLUMNS)
    if include_sample:
        writer.writerow([TEMPLATE_SAMPLE_ROW.get(col, "") for col in TEMPLATE_COLUMNS])
    return output.getvalue()
