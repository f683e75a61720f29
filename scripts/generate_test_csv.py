"""Generate a synthetic student import CSV.

Every row gets a unique, checksum-valid South African ID number. Use
``--invalid`` to plant rows that fail validation and ``--repeats`` to repeat
ID numbers inside the file.

Usage:
    uv run python scripts/generate_test_csv.py -n 5000 -o students.csv
"""

import argparse
import csv
import random
from datetime import date, timedelta
from pathlib import Path

from studentbox.services.student_import import TEMPLATE_COLUMNS, luhn_is_valid

OUTPUT_PATH = Path(__file__).parent.parent / "tests" / "data" / "students-test-data.csv"
TARGET_ROWS = 1000

FIRST_NAMES = [
    "Thabo", "Lerato", "Sipho", "Naledi", "Johan", "Anele", "Kagiso", "Zanele",
    "Pieter", "Ayanda", "Lwazi", "Refilwe", "Musa", "Nomvula", "Ruan", "Palesa",
]
SURNAMES = [
    "Nkosi", "Dlamini", "Mokoena", "van der Merwe", "Naidoo", "Botha", "Khumalo",
    "Mahlangu", "Pillay", "Ndlovu", "Smith", "Molefe", "Zulu", "Jacobs",
]
INSTITUTIONS = [
    "University of Cape Town",
    "University of the Witwatersrand",
    "Stellenbosch University",
    "University of Johannesburg",
    "Tshwane University of Technology",
    "Cape Peninsula University of Technology",
]
PROGRAMS = [
    "Computer Science", "Accounting", "Civil Engineering", "Nursing",
    "Law", "Education", "Marketing", "Mechanical Engineering",
]

# Ways to break a row so it fails validation
BREAKAGES = [
    ("idNumber", ""),
    ("idNumber", "12345"),
    ("firstNames", ""),
    ("surname", ""),
    ("email", "not-an-email"),
    ("funded", "Maybe"),
    ("yearOfStudy", "zero"),
]


def make_id_number(born: date, male: bool, rng: random.Random) -> str:
    """Build a checksum-valid ID number for a birth date and gender."""
    sequence = rng.randint(5000, 9999) if male else rng.randint(0, 4999)
    body = f"{born:%y%m%d}{sequence:04d}08"
    for check in range(10):
        if luhn_is_valid(f"{body}{check}"):
            return f"{body}{check}"
    raise AssertionError("unreachable: one check digit always satisfies Luhn")


def make_row(rng: random.Random, used_ids: set[str]) -> dict[str, str]:
    """Generate one valid student row with an unused ID number."""
    while True:
        born = date(1995, 1, 1) + timedelta(days=rng.randint(0, 365 * 10))
        id_number = make_id_number(born, rng.random() < 0.5, rng)
        if id_number not in used_ids:
            used_ids.add(id_number)
            break

    first = rng.choice(FIRST_NAMES)
    surname = rng.choice(SURNAMES)
    funded = rng.random() < 0.7
    return {
        "idNumber": id_number,
        "firstNames": first,
        "surname": surname,
        "email": f"{first}.{surname.replace(' ', '')}.{id_number[-4:]}@example.com".lower(),
        "phoneNumber": f"0{rng.choice([6, 7, 8])}{rng.randint(10000000, 99999999)}",
        "institution": rng.choice(INSTITUTIONS),
        "studentNumber": f"STU{rng.randint(100000, 999999)}",
        "program": rng.choice(PROGRAMS),
        "yearOfStudy": str(rng.randint(1, 5)),
        "funded": "Yes" if funded else "No",
        "fundedAmount": str(rng.choice([45000, 60000, 75000, 90000])) if funded else "",
        "nsfasNumber": f"NSFAS{rng.randint(100000, 999999)}" if funded else "",
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a synthetic student import CSV")
    parser.add_argument("-n", "--rows", type=int, default=TARGET_ROWS, help="Number of rows")
    parser.add_argument("-o", "--output", type=str, default=str(OUTPUT_PATH), help="Output CSV path")
    parser.add_argument("--invalid", type=int, default=0, help="Rows to make invalid")
    parser.add_argument("--repeats", type=int, default=0, help="Rows that repeat an earlier ID number")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    args = parser.parse_args()

    rng = random.Random(args.seed)
    used_ids: set[str] = set()
    rows = [make_row(rng, used_ids) for _ in range(args.rows)]

    for index in rng.sample(range(len(rows)), min(args.invalid, len(rows))):
        column, value = rng.choice(BREAKAGES)
        rows[index][column] = value

    for _ in range(min(args.repeats, max(len(rows) - 1, 0))):
        source, target = sorted(rng.sample(range(len(rows)), 2))
        rows[target]["idNumber"] = rows[source]["idNumber"]

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=TEMPLATE_COLUMNS)
        writer.writeheader()
        writer.writerows(rows)

    print(f"Wrote {len(rows)} rows to {output_path}")
    if args.invalid:
        print(f"  Invalid rows: {min(args.invalid, len(rows))}")
    if args.repeats:
        print(f"  Repeated ID numbers: {args.repeats}")


if __name__ == "__main__":
    main()
