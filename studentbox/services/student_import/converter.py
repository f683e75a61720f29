"""Conversion of validated raw rows into import-ready students."""

import re
from typing import Any

from .constants import COLUMN_FIELDS, DEFAULT_STATUS, FUNDED_VALUES, GENDERS
from .id_number import birth_date_from_id, gender_from_id, normalize_id_number
from .types import FieldError, RawRow, ValidatedStudent

# Columns copied through as trimmed strings
_TEXT_COLUMNS = [
    "firstNames",
    "surname",
    "email",
    "institution",
    "studentNumber",
    "program",
    "nsfasNumber",
    "dateOfBirth",
]


def _coerce_float(value: str) -> float | None:
    """Try to coerce a string to a float."""
    if not value:
        return None
    cleaned = value.replace(",", "").replace(" ", "")
    try:
        number = float(cleaned)
    except (ValueError, OverflowError):
        return None
    # float() accepts "nan" and "inf"
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def _coerce_int(value: str) -> int | None:
    """Try to coerce a string to an int."""
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _strip_separators(value: str) -> str:
    return re.sub(r"[\s-]", "", value)


def _canonical_gender(value: str) -> str | None:
    for gender in GENDERS:
        if gender.lower() == value.lower():
            return gender
    return None


def row_to_student(row: RawRow) -> ValidatedStudent:
    """Convert one error-free raw row to a ValidatedStudent."""
    data: dict[str, Any] = {}

    for column in _TEXT_COLUMNS:
        value = row.get(column).strip()
        if value:
            data[COLUMN_FIELDS[column]] = value

    id_number = normalize_id_number(row.get("idNumber"))
    data["id_number"] = id_number

    phone = _strip_separators(row.get("phoneNumber"))
    if phone:
        data["phone_number"] = phone

    data["funded"] = FUNDED_VALUES.get(row.get("funded").strip().lower(), False)
    data["funded_amount"] = _coerce_float(row.get("fundedAmount").strip())
    data["year_of_study"] = _coerce_int(row.get("yearOfStudy").strip())
    data["funding_year"] = _coerce_int(row.get("fundingYear").strip())
    data["gender"] = _canonical_gender(row.get("gender").strip())

    # Fill date of birth and gender from the ID number when not supplied
    born = birth_date_from_id(id_number)
    if born is not None:
        data.setdefault("date_of_birth", born.isoformat())
        if data["gender"] is None:
            data["gender"] = gender_from_id(id_number)

    data["status"] = DEFAULT_STATUS
    return ValidatedStudent(**data)


def convert_to_validated_students(
    data: list[RawRow], errors: dict[int, list[FieldError]]
) -> list[ValidatedStudent]:
    """Convert every row without errors, preserving file order.

    Args:
        data: All parsed rows.
        errors: Error map from parsing; rows keyed here are dropped.

    Returns:
        Import-ready students, one per error-free row.
    """
    return [row_to_student(row) for row in data if row.row_index not in errors]
