"""South African ID number helpers.

Layout: YYMMDD SSSS C A Z (13 digits)
- YYMMDD: date of birth
- SSSS: sequence (0000-4999 female, 5000-9999 male)
- C: citizenship (0 citizen, 1 permanent resident)
- A: historically 8, unused
- Z: Luhn check digit
"""

import re
from datetime import date

from .constants import ID_NUMBER_LENGTH

_SEPARATORS = re.compile(r"[\s-]")


def normalize_id_number(value: str) -> str:
    """Strip spaces and hyphens from an ID number."""
    return _SEPARATORS.sub("", value or "")


def has_valid_format(id_number: str) -> bool:
    """Check that a normalised ID number is exactly 13 digits."""
    return len(id_number) == ID_NUMBER_LENGTH and id_number.isascii() and id_number.isdigit()


def luhn_is_valid(number: str) -> bool:
    """Validate the Luhn check digit of a digit string."""
    total = 0
    for position, char in enumerate(reversed(number)):
        digit = int(char)
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def birth_date_from_id(id_number: str, today: date | None = None) -> date | None:
    """Extract the date of birth embedded in an ID number.

    Two-digit years above the current two-digit year belong to the 1900s.
    Returns None for impossible or future dates.
    """
    if not has_valid_format(id_number):
        return None

    today = today or date.today()
    yy = int(id_number[0:2])
    month = int(id_number[2:4])
    day = int(id_number[4:6])
    year = 1900 + yy if yy > today.year % 100 else 2000 + yy

    try:
        born = date(year, month, day)
    except ValueError:
        return None

    if born > today:
        return None
    return born


def gender_from_id(id_number: str) -> str | None:
    """Derive gender from the sequence digits of an ID number."""
    if not has_valid_format(id_number):
        return None
    return "Male" if int(id_number[6:10]) >= 5000 else "Female"


def format_id_number(id_number: str) -> str:
    """Format an ID number for display, e.g. ``900101 5800 0 8 8``."""
    cleaned = normalize_id_number(id_number)
    if len(cleaned) != ID_NUMBER_LENGTH:
        return id_number
    return f"{cleaned[:6]} {cleaned[6:10]} {cleaned[10]} {cleaned[11]} {cleaned[12]}"
