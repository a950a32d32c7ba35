"""
Field validation for the registration steps.

Every function here is pure: it takes the raw user input and returns either
``None`` (valid) or the message to show next to the field.
"""

import re
from datetime import date, datetime, timezone
from typing import Dict, Mapping, Optional

from core.config import MIN_AGE, MAX_AGE

AADHAAR_PATTERN = re.compile(r"[0-9]{12}")
MOBILE_PATTERN  = re.compile(r"[6-9][0-9]{9}")
OTP_PATTERN     = re.compile(r"[0-9]{6}")
PAN_PATTERN     = re.compile(r"[A-Z]{5}[0-9]{4}[A-Z]")
NAME_PATTERN    = re.compile(r"[A-Za-z ]{2,100}")

MESSAGES = {
    "required": "This field is required",
    "aadhaar":  "Aadhaar number must be 12 digits",
    "aadhaar_checksum": "Invalid Aadhaar number",
    "mobile":   "Mobile number must be 10 digits starting with 6-9",
    "otp":      "OTP must be 6 digits",
    "pan":      "PAN must be in format: ABCDE1234F (5 letters, 4 numbers, 1 letter)",
    "name":     "Name must contain only letters and spaces (2-100 characters)",
    "date":     "Please enter a valid date",
    "dob_future": "Date of birth cannot be in the future",
    "dob_minor":  "You must be at least 18 years old",
    "dob_range":  "Please enter a valid date of birth",
}


def _is_blank(value) -> bool:
    return value is None or str(value).strip() == ""


def clean_aadhaar(aadhaar: str) -> str:
    return re.sub(r"[\s-]", "", aadhaar)


def clean_mobile(mobile: str) -> str:
    return re.sub(r"[\s\-+()]", "", mobile)


def _verhoeff_check(aadhaar: str) -> bool:
    # Placeholder: every syntactically valid 12-digit number is accepted.
    return AADHAAR_PATTERN.fullmatch(aadhaar) is not None


def validate_aadhaar(aadhaar: Optional[str]) -> Optional[str]:
    if _is_blank(aadhaar):
        return MESSAGES["required"]
    cleaned = clean_aadhaar(aadhaar)
    if not AADHAAR_PATTERN.fullmatch(cleaned):
        return MESSAGES["aadhaar"]
    if not _verhoeff_check(cleaned):
        return MESSAGES["aadhaar_checksum"]
    return None


def validate_mobile(mobile: Optional[str]) -> Optional[str]:
    if _is_blank(mobile):
        return MESSAGES["required"]
    if not MOBILE_PATTERN.fullmatch(clean_mobile(mobile)):
        return MESSAGES["mobile"]
    return None


def validate_otp(otp: Optional[str]) -> Optional[str]:
    if _is_blank(otp):
        return MESSAGES["required"]
    if not OTP_PATTERN.fullmatch(otp):
        return MESSAGES["otp"]
    return None


def validate_pan(pan: Optional[str]) -> Optional[str]:
    if _is_blank(pan):
        return MESSAGES["required"]
    # lowercase input is rejected before normalisation
    if re.search(r"[a-z]", pan):
        return MESSAGES["pan"]
    if not PAN_PATTERN.fullmatch(format_pan(pan)):
        return MESSAGES["pan"]
    return None


def validate_name(name: Optional[str]) -> Optional[str]:
    if _is_blank(name):
        return MESSAGES["required"]
    if not NAME_PATTERN.fullmatch(name.strip()):
        return MESSAGES["name"]
    return None


validate_entrepreneur_name = validate_name


def parse_date(value) -> Optional[date]:
    """Parse an ISO date (``YYYY-MM-DD``) or ISO datetime into a ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def calculate_age(dob: date, today: Optional[date] = None) -> int:
    today = today or datetime.now(timezone.utc).date()
    age = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        age -= 1
    return age


def validate_date_of_birth(dob, today: Optional[date] = None) -> Optional[str]:
    if _is_blank(dob):
        return MESSAGES["required"]
    parsed = parse_date(dob)
    if parsed is None:
        return MESSAGES["date"]
    today = today or datetime.now(timezone.utc).date()
    if parsed > today:
        return MESSAGES["dob_future"]
    age = calculate_age(parsed, today)
    if age < MIN_AGE:
        return MESSAGES["dob_minor"]
    if age > MAX_AGE:
        return MESSAGES["dob_range"]
    return None


STEP_FIELDS = {
    1: [
        ("aadhaar", validate_aadhaar, True),
        ("entrepreneurName", validate_entrepreneur_name, True),
        ("mobile", validate_mobile, True),
        ("otp", validate_otp, False),
    ],
    2: [
        ("pan", validate_pan, True),
        ("panHolderName", validate_name, True),
        ("dateOfBirth", validate_date_of_birth, True),
    ],
}


def validate_step(values: Mapping, step: int) -> Dict[str, str]:
    """Return ``{field: message}`` for every failing field of the given step."""
    errors: Dict[str, str] = {}
    for field, validator, required in STEP_FIELDS.get(step, []):
        value = values.get(field)
        if _is_blank(value):
            if required:
                errors[field] = MESSAGES["required"]
            continue
        error = validator(value)
        if error:
            errors[field] = error
    return errors


def is_step_valid(values: Mapping, step: int) -> bool:
    return not validate_step(values, step)


def format_aadhaar(aadhaar: str) -> str:
    digits = re.sub(r"[^0-9]", "", aadhaar)
    return re.sub(r"^([0-9]{4})([0-9]{4})([0-9]{4})$", r"\1 \2 \3", digits)


def format_mobile(mobile: str) -> str:
    digits = re.sub(r"[^0-9]", "", mobile)
    if len(digits) == 10:
        return f"{digits[:5]} {digits[5:]}"
    return digits


def format_pan(pan: str) -> str:
    return re.sub(r"\s", "", pan.upper())
