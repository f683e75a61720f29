"""Constants for the bulk student import."""

# Upload ceiling; overridable through [import] max_upload_mb
MAX_FILE_SIZE = 10 * 1024 * 1024

ALLOWED_EXTENSIONS = {"csv"}
ALLOWED_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "text/plain",
    "application/vnd.ms-excel",  # what Windows browsers send for .csv
    "application/octet-stream",
}

# Records per chunk; a store may advertise a lower atomic-write limit
DEFAULT_CHUNK_SIZE = 500

# Duplicate/error details listed before the rest are summarised
DEFAULT_DETAIL_LIMIT = 10

ID_NUMBER_LENGTH = 13

# Columns that must appear in the header row
REQUIRED_COLUMNS = ["idNumber", "firstNames", "surname"]

# Columns of the downloadable template, in order
TEMPLATE_COLUMNS = [
    "idNumber",
    "firstNames",
    "surname",
    "email",
    "phoneNumber",
    "institution",
    "studentNumber",
    "program",
    "yearOfStudy",
    "funded",
    "fundedAmount",
    "nsfasNumber",
]

# Recognised when present, not part of the template
EXTRA_OPTIONAL_COLUMNS = ["dateOfBirth", "gender", "fundingYear"]

KNOWN_COLUMNS = TEMPLATE_COLUMNS + EXTRA_OPTIONAL_COLUMNS

# CSV column -> ValidatedStudent / Student attribute
COLUMN_FIELDS: dict[str, str] = {
    "idNumber": "id_number",
    "firstNames": "first_names",
    "surname": "surname",
    "email": "email",
    "phoneNumber": "phone_number",
    "institution": "institution",
    "studentNumber": "student_number",
    "program": "program",
    "yearOfStudy": "year_of_study",
    "funded": "funded",
    "fundedAmount": "funded_amount",
    "nsfasNumber": "nsfas_number",
    "dateOfBirth": "date_of_birth",
    "gender": "gender",
    "fundingYear": "funding_year",
}

FUNDED_VALUES = {"yes": True, "no": False}

GENDERS = ["Male", "Female", "Other"]

FUNDING_YEAR_RANGE = (2000, 2100)

DEFAULT_STATUS = "Pending"

TEMPLATE_FILENAME = "student_import_template.csv"

# Example row appended to the template on request
TEMPLATE_SAMPLE_ROW = {
    "idNumber": "9001015800088",
    "firstNames": "John Peter",
    "surname": "Doe",
    "email": "john.doe@example.com",
    "phoneNumber": "0821234567",
    "institution": "University of Cape Town",
    "studentNumber": "STU123456",
    "program": "Computer Science",
    "yearOfStudy": "2",
    "funded": "Yes",
    "fundedAmount": "75000",
    "nsfasNumber": "NSFAS123456",
}
