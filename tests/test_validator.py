"""Unit tests for row validation and ID number helpers."""

from datetime import date

import pytest

from studentbox.services.student_import import (
    RawRow,
    birth_date_from_id,
    format_id_number,
    gender_from_id,
    luhn_is_valid,
    normalize_id_number,
    validate_row,
)

VALID_ID = "9001015800088"


def _row(**values: str) -> RawRow:
    base = {"idNumber": VALID_ID, "firstNames": "John", "surname": "Doe"}
    base.update(values)
    return RawRow(row_index=3, values=base)


def _fields(errors) -> list[str]:
    return [e.field for e in errors]


# =============================================================================
# ID number helpers
# =============================================================================


def test_normalize_id_number_strips_spaces_and_hyphens() -> None:
    assert normalize_id_number("900101 5800-088") == VALID_ID
    assert normalize_id_number("") == ""


def test_luhn() -> None:
    assert luhn_is_valid(VALID_ID) is True
    assert luhn_is_valid("9001015800085") is False


def test_birth_date_from_id() -> None:
    today = date(2024, 6, 1)
    assert birth_date_from_id(VALID_ID, today=today) == date(1990, 1, 1)
    assert birth_date_from_id("0502285800083", today=today) == date(2005, 2, 28)
    # Month 13 does not exist
    assert birth_date_from_id("9013015800088", today=today) is None
    assert birth_date_from_id("12345", today=today) is None


def test_gender_from_id() -> None:
    assert gender_from_id(VALID_ID) == "Male"
    assert gender_from_id("9001014800088") == "Female"
    assert gender_from_id("abc") is None


def test_format_id_number() -> None:
    assert format_id_number(VALID_ID) == "900101 5800 0 8 8"
    assert format_id_number("123") == "123"


# =============================================================================
# validate_row
# =============================================================================


def test_valid_row_has_no_errors() -> None:
    assert validate_row(_row()) == []


def test_valid_row_with_all_optional_columns() -> None:
    row = _row(
        email="john.doe@example.com",
        phoneNumber="082 123 4567",
        funded="yes",
        fundedAmount="75000",
        yearOfStudy="2",
        dateOfBirth="1990-01-01",
        gender="male",
        fundingYear="2025",
    )
    assert validate_row(row) == []


def test_id_number_with_separators_is_accepted() -> None:
    assert validate_row(_row(idNumber="900101-5800-088")) == []


@pytest.mark.parametrize(
    "id_number, message",
    [
        ("", "ID number is required"),
        ("   ", "ID number is required"),
        ("900101580008", "13 digits"),
        ("90010158000881", "13 digits"),
        ("90010158000AB", "only digits"),
    ],
)
def test_invalid_id_number(id_number: str, message: str) -> None:
    errors = validate_row(_row(idNumber=id_number))
    assert _fields(errors) == ["idNumber"]
    assert message in errors[0].message
    assert errors[0].row_index == 3


def test_checksum_only_checked_when_enabled() -> None:
    row = _row(idNumber="9001015800085")
    assert validate_row(row) == []
    errors = validate_row(row, verify_checksum=True)
    assert _fields(errors) == ["idNumber"]
    assert "checksum" in errors[0].message


def test_missing_names() -> None:
    errors = validate_row(_row(firstNames="  ", surname=""))
    assert _fields(errors) == ["firstNames", "surname"]


def test_missing_name_columns_entirely() -> None:
    row = RawRow(row_index=0, values={"idNumber": VALID_ID})
    assert _fields(validate_row(row)) == ["firstNames", "surname"]


@pytest.mark.parametrize("email", ["not-an-email", "a@b", "a b@c.com", "@example.com"])
def test_invalid_email(email: str) -> None:
    assert _fields(validate_row(_row(email=email))) == ["email"]


@pytest.mark.parametrize("funded", ["Yes", "NO", "yes", "no"])
def test_funded_accepts_yes_no_any_case(funded: str) -> None:
    assert validate_row(_row(funded=funded)) == []


@pytest.mark.parametrize("funded", ["Y", "true", "1", "Maybe"])
def test_funded_rejects_other_values(funded: str) -> None:
    assert _fields(validate_row(_row(funded=funded))) == ["funded"]


@pytest.mark.parametrize("phone", ["0821234567", "082 123 4567", "082-123-4567"])
def test_phone_number_accepts_separators(phone: str) -> None:
    assert validate_row(_row(phoneNumber=phone)) == []


@pytest.mark.parametrize("phone", ["not-a-phone", "821234567", "+27821234567", "08212345678"])
def test_invalid_phone_number(phone: str) -> None:
    errors = validate_row(_row(phoneNumber=phone))
    assert _fields(errors) == ["phoneNumber"]
    assert errors[0].message == "Phone number must be 10 digits starting with 0"


@pytest.mark.parametrize("amount", ["0", "75000", "75000.50", "75,000", "75 000"])
def test_funded_amount_accepts_numbers(amount: str) -> None:
    assert validate_row(_row(fundedAmount=amount)) == []


@pytest.mark.parametrize(
    "amount, message",
    [
        ("-5000", "must not be negative"),
        ("lots", "must be a number"),
        ("NaN", "must be a number"),
        ("inf", "must be a number"),
    ],
)
def test_invalid_funded_amount(amount: str, message: str) -> None:
    errors = validate_row(_row(fundedAmount=amount))
    assert _fields(errors) == ["fundedAmount"]
    assert message in errors[0].message


@pytest.mark.parametrize("year", ["0", "-1", "two", "1.5"])
def test_invalid_year_of_study(year: str) -> None:
    assert _fields(validate_row(_row(yearOfStudy=year))) == ["yearOfStudy"]


def test_optional_columns_may_be_blank() -> None:
    row = _row(
        email="",
        phoneNumber="",
        funded="",
        fundedAmount="",
        yearOfStudy="",
        dateOfBirth="",
        gender="",
        fundingYear="",
    )
    assert validate_row(row) == []


@pytest.mark.parametrize("value", ["01/01/1990", "1990-02-30", "1990-1-1"])
def test_invalid_date_of_birth(value: str) -> None:
    assert _fields(validate_row(_row(dateOfBirth=value))) == ["dateOfBirth"]


def test_invalid_gender() -> None:
    errors = validate_row(_row(gender="unknown"))
    assert _fields(errors) == ["gender"]
    assert "Male" in errors[0].message


@pytest.mark.parametrize("value", ["1999", "2101", "next year"])
def test_invalid_funding_year(value: str) -> None:
    assert _fields(validate_row(_row(fundingYear=value))) == ["fundingYear"]


def test_all_defects_reported() -> None:
    """Every broken field is reported; validation never stops at the first."""
    row = RawRow(
        row_index=7,
        values={
            "idNumber": "",
            "firstNames": "",
            "surname": "",
            "email": "bad",
            "phoneNumber": "not-a-phone",
            "funded": "perhaps",
            "fundedAmount": "-5000",
            "yearOfStudy": "0",
        },
    )
    errors = validate_row(row)
    assert _fields(errors) == [
        "idNumber",
        "firstNames",
        "surname",
        "email",
        "phoneNumber",
        "funded",
        "fundedAmount",
        "yearOfStudy",
    ]
    assert all(e.row_index == 7 for e in errors)
