"""Field-level validation of raw student rows."""

import re
from datetime import date

from .constants import FUNDED_VALUES, FUNDING_YEAR_RANGE, GENDERS
from .id_number import has_valid_format, luhn_is_valid, normalize_id_number
from .types import FieldError, RawRow

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
PHONE_PATTERN = re.compile(r"^0\d{9}$")


def _check_id_number(value: str, verify_checksum: bool) -> str | None:
    cleaned = normalize_id_number(value)
    if not cleaned:
        return "ID number is required"
    if not cleaned.isascii() or not cleaned.isdigit():
        return "ID number must contain only digits"
    if not has_valid_format(cleaned):
        return "ID number must be 13 digits"
    if verify_checksum and not luhn_is_valid(cleaned):
        return "Invalid ID number checksum"
    return None


def _check_positive_int(value: str, label: str) -> str | None:
    try:
        number = int(value)
    except ValueError:
        return f"{label} must be a whole number"
    if number < 1:
        return f"{label} must be a positive number"
    return None


def _check_phone_number(value: str) -> str | None:
    if not PHONE_PATTERN.match(re.sub(r"[\s-]", "", value)):
        return "Phone number must be 10 digits starting with 0"
    return None


def _check_funded_amount(value: str) -> str | None:
    # Same separators the converter strips: "75 000" and "75,000"
    try:
        amount = float(value.replace(",", "").replace(" ", ""))
    except ValueError:
        return "Funded amount must be a number"
    if amount != amount or amount in (float("inf"), float("-inf")):
        return "Funded amount must be a number"
    if amount < 0:
        return "Funded amount must not be negative"
    return None


def _check_date(value: str) -> str | None:
    if not DATE_PATTERN.match(value):
        return "Date of birth must be in YYYY-MM-DD format"
    try:
        date.fromisoformat(value)
    except ValueError:
        return "Date of birth is not a valid date"
    return None


def _check_funding_year(value: str) -> str | None:
    low, high = FUNDING_YEAR_RANGE
    try:
        year = int(value)
    except ValueError:
        return "Funding year must be a year"
    if not low <= year <= high:
        return f"Funding year must be between {low} and {high}"
    return None


def validate_row(raw: RawRow, *, verify_checksum: bool = False) -> list[FieldError]:
    """Validate one raw row and return every defect found on it.

    Args:
        raw: Row as read from the file.
        verify_checksum: Also verify the Luhn check digit of ``idNumber``.

    Returns:
        List of field errors; empty when the row is valid.
    """
    errors: list[FieldError] = []

    def add(field: str, message: str | None) -> None:
        if message:
            errors.append(FieldError(row_index=raw.row_index, field=field, message=message))

    add("idNumber", _check_id_number(raw.get("idNumber"), verify_checksum))

    if not raw.get("firstNames").strip():
        add("firstNames", "First names are required")
    if not raw.get("surname").strip():
        add("surname", "Surname is required")

    email = raw.get("email").strip()
    if email and not EMAIL_PATTERN.match(email):
        add("email", "Invalid email format")

    phone = raw.get("phoneNumber").strip()
    if phone:
        add("phoneNumber", _check_phone_number(phone))

    funded = raw.get("funded").strip()
    if funded and funded.lower() not in FUNDED_VALUES:
        add("funded", "Funded must be Yes or No")

    funded_amount = raw.get("fundedAmount").strip()
    if funded_amount:
        add("fundedAmount", _check_funded_amount(funded_amount))

    year_of_study = raw.get("yearOfStudy").strip()
    if year_of_study:
        add("yearOfStudy", _check_positive_int(year_of_study, "Year of study"))

    date_of_birth = raw.get("dateOfBirth").strip()
    if date_of_birth:
        add("dateOfBirth", _check_date(date_of_birth))

    gender = raw.get("gender").strip()
    if gender and gender.lower() not in {g.lower() for g in GENDERS}:
        add("gender", f"Gender must be one of: {', '.join(GENDERS)}")

    funding_year = raw.get("fundingYear").strip()
    if funding_year:
        add("fundingYear", _check_funding_year(funding_year))

    return errors
