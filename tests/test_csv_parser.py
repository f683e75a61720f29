"""Unit tests for CSV parsing and template export."""

import csv
import io

import pytest

from studentbox.services.student_import import (
    REQUIRED_COLUMNS,
    TEMPLATE_COLUMNS,
    FileTooLargeError,
    MalformedFileError,
    MissingColumnsError,
    UnsupportedFileTypeError,
    generate_student_csv_template,
    parse_student_csv,
)

HEADER = "idNumber,firstNames,surname,email"


def _make_csv(headers: list[str], rows: list[list[str]]) -> bytes:
    """Helper to create CSV bytes."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
    return output.getvalue().encode("utf-8")


# =============================================================================
# Row parsing
# =============================================================================


def test_parse_valid_file() -> None:
    content = _make_csv(
        ["idNumber", "firstNames", "surname"],
        [
            ["9001015800088", "John", "Doe"],
            ["9202024800081", "Jane", "Smith"],
        ],
    )
    result = parse_student_csv(content, filename="students.csv")

    assert result.filename == "students.csv"
    assert result.headers == ["idNumber", "firstNames", "surname"]
    assert result.row_count == 2
    assert result.valid_count == 2
    assert result.invalid_count == 0
    assert result.has_errors is False
    assert [r.row_index for r in result.data] == [0, 1]
    assert result.data[1].get("firstNames") == "Jane"


def test_scenario_mixed_valid_and_invalid_rows() -> None:
    """Invalid rows stay in the data for preview and are keyed in the error map."""
    content = (
        f"{HEADER}\n"
        "9001015800088,John,Doe,john@example.com\n"
        ",Jane,Smith,jane@example.com\n"
        "9202024800081,Sam,Jones,not-an-email\n"
    ).encode("utf-8")
    result = parse_student_csv(content, filename="students.csv")

    assert len(result.data) == 3
    assert set(result.errors) == {1, 2}
    assert [e.field for e in result.errors[1]] == ["idNumber"]
    assert [e.field for e in result.errors[2]] == ["email"]
    assert result.valid_count == 1
    assert result.invalid_count == 2


def test_bad_phone_and_negative_amount_are_row_errors() -> None:
    content = _make_csv(
        ["idNumber", "firstNames", "surname", "phoneNumber", "fundedAmount"],
        [
            ["9001015800088", "A", "B", "not-a-phone", "-5000"],
            ["9202024800081", "C", "D", "082 123 4567", "75000"],
        ],
    )
    result = parse_student_csv(content, filename="students.csv")

    assert set(result.errors) == {0}
    assert [e.field for e in result.errors[0]] == ["phoneNumber", "fundedAmount"]
    assert result.valid_count == 1


def test_error_map_never_holds_empty_lists() -> None:
    content = _make_csv(
        ["idNumber", "firstNames", "surname"],
        [["9001015800088", "John", "Doe"], ["", "", ""]],
    )
    result = parse_student_csv(content)
    assert all(result.errors.values())
    assert 0 not in result.errors


def test_blank_lines_skipped_but_empty_cells_kept() -> None:
    content = f"{HEADER}\n9001015800088,John,Doe,\n\n,,,\n".encode("utf-8")
    result = parse_student_csv(content)

    # The blank line is not a row; the row of empty cells is, and it is invalid
    assert result.row_count == 2
    assert result.invalid_count == 1
    assert 1 in result.errors


def test_values_and_headers_are_trimmed() -> None:
    content = " idNumber , firstNames ,surname\n 9001015800088 ,  John  , Doe \n".encode("utf-8")
    result = parse_student_csv(content)
    assert result.headers == ["idNumber", "firstNames", "surname"]
    assert result.data[0].values == {
        "idNumber": "9001015800088",
        "firstNames": "John",
        "surname": "Doe",
    }


def test_utf8_bom_is_tolerated() -> None:
    content = "\ufeffidNumber,firstNames,surname\n9001015800088,Zoë,Müller\n".encode("utf-8")
    result = parse_student_csv(content)
    assert result.headers[0] == "idNumber"
    assert result.data[0].get("surname") == "Müller"


def test_latin1_fallback() -> None:
    content = "idNumber,firstNames,surname\n9001015800088,Zoë,Müller\n".encode("latin-1")
    result = parse_student_csv(content)
    assert result.data[0].get("firstNames") == "Zoë"
    assert result.valid_count == 1


def test_unknown_columns_are_kept() -> None:
    content = "idNumber,firstNames,surname,roomNumber\n9001015800088,John,Doe,B12\n".encode("utf-8")
    result = parse_student_csv(content)
    assert "roomNumber" in result.headers
    assert result.data[0].get("roomNumber") == "B12"
    assert result.valid_count == 1


def test_headers_only_file_has_no_rows() -> None:
    result = parse_student_csv(b"idNumber,firstNames,surname\n")
    assert result.row_count == 0
    assert result.valid_count == 0


def test_checksum_verification_flag() -> None:
    content = b"idNumber,firstNames,surname\n9001015800085,John,Doe\n"
    assert parse_student_csv(content).valid_count == 1
    result = parse_student_csv(content, verify_checksum=True)
    assert result.invalid_count == 1


def test_repeated_ids_are_informational() -> None:
    content = (
        "idNumber,firstNames,surname\n"
        "9001015800088,John,Doe\n"
        "9202024800081,Jane,Smith\n"
        "900101-5800-088,Johnny,Doe\n"
    ).encode("utf-8")
    result = parse_student_csv(content)
    assert result.repeated_id_rows == {2: 0}
    assert result.has_errors is False


# =============================================================================
# File-level errors
# =============================================================================


def test_unsupported_extension() -> None:
    with pytest.raises(UnsupportedFileTypeError):
        parse_student_csv(b"idNumber,firstNames,surname\n", filename="students.xlsx")


def test_unsupported_content_type() -> None:
    with pytest.raises(UnsupportedFileTypeError):
        parse_student_csv(
            b"idNumber,firstNames,surname\n",
            filename="students.csv",
            content_type="image/png",
        )


def test_content_type_with_charset_is_accepted() -> None:
    result = parse_student_csv(
        b"idNumber,firstNames,surname\n9001015800088,John,Doe\n",
        filename="students.csv",
        content_type="text/csv; charset=utf-8",
    )
    assert result.valid_count == 1


def test_file_too_large() -> None:
    content = b"idNumber,firstNames,surname\n" + b"9001015800088,John,Doe\n" * 10
    with pytest.raises(FileTooLargeError) as exc_info:
        parse_student_csv(content, max_size=50)
    assert exc_info.value.limit == 50
    assert exc_info.value.size == len(content)


def test_empty_file() -> None:
    with pytest.raises(MalformedFileError, match="no headers"):
        parse_student_csv(b"")


def test_missing_required_columns_lists_all() -> None:
    with pytest.raises(MissingColumnsError) as exc_info:
        parse_student_csv(b"email,phoneNumber\nx@example.com,0821234567\n")
    assert exc_info.value.missing == REQUIRED_COLUMNS
    assert "idNumber" in str(exc_info.value)


def test_missing_one_required_column() -> None:
    with pytest.raises(MissingColumnsError) as exc_info:
        parse_student_csv(b"idNumber,firstNames\n9001015800088,John\n")
    assert exc_info.value.missing == ["surname"]


def test_file_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):
        parse_student_csv(b"")


# =============================================================================
# Template export
# =============================================================================


def test_template_is_header_only() -> None:
    text = generate_student_csv_template()
    assert text.splitlines() == [
        "idNumber,firstNames,surname,email,phoneNumber,institution,"
        "studentNumber,program,yearOfStudy,funded,fundedAmount,nsfasNumber"
    ]


def test_template_with_sample_row_parses_cleanly() -> None:
    text = generate_student_csv_template(include_sample=True)
    lines = text.splitlines()
    assert len(lines) == 2
    assert lines[0] == ",".join(TEMPLATE_COLUMNS)

    result = parse_student_csv(text.encode("utf-8"), filename="template.csv", verify_checksum=True)
    assert result.row_count == 1
    assert result.valid_count == 1
