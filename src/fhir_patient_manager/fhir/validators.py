"""Validation predicates for patient write payloads.

Each predicate is a pure function over a single value so the rules can be
tested in isolation and composed by the mapper's write entry points.
"""

import re
from typing import Any, Iterable, Mapping, Optional

# FHIR administrative-gender value set
VALID_GENDERS = ("male", "female", "other", "unknown")

# FHIR name-use value set
VALID_NAME_USES = ("usual", "official", "temp", "nickname", "anonymous", "old", "maiden")

DEFAULT_NAME_USE = "official"

BIRTH_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

REQUIRED_CREATE_FIELDS = ("first", "last", "gender")


def is_valid_gender(value: str) -> bool:
    """Check value is a FHIR administrative gender code."""
    return value in VALID_GENDERS


def is_valid_name_use(value: str) -> bool:
    """Check value is a FHIR HumanName.use code."""
    return value in VALID_NAME_USES


def is_valid_birth_date(value: str) -> bool:
    """Check value has the YYYY-MM-DD shape.

    Only the textual shape is checked; the FHIR server rejects impossible
    calendar dates such as 2023-02-30.
    """
    return BIRTH_DATE_PATTERN.fullmatch(value) is not None


def missing_required_fields(
    data: Mapping[str, Any], required: Iterable[str] = REQUIRED_CREATE_FIELDS
) -> list[str]:
    """Return the required fields that are absent or empty in data."""
    return [name for name in required if not data.get(name)]


def is_present(data: Mapping[str, Any], key: str) -> bool:
    """Check key was explicitly supplied (an empty string counts, None does not)."""
    return data.get(key) is not None


def name_use_error(value: Optional[str]) -> Optional[str]:
    """Return an error message for an invalid name use, None if acceptable."""
    if value and not is_valid_name_use(value):
        return f"Invalid name use: {value}. Must be one of {', '.join(VALID_NAME_USES)}"
    return None


def gender_error(value: Optional[str]) -> Optional[str]:
    """Return an error message for an invalid gender, None if acceptable."""
    if value and not is_valid_gender(value):
        return f"Invalid gender: {value}. Must be one of {', '.join(VALID_GENDERS)}"
    return None


def birth_date_error(value: Optional[str]) -> Optional[str]:
    """Return an error message for a malformed birth date, None if acceptable."""
    if value and not is_valid_birth_date(value):
        return "birthDate must be in YYYY-MM-DD format"
    return None
