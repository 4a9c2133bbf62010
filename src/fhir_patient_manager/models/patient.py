"""Simplified patient data models.

This module defines the two projections of a FHIR Patient resource used by
the application: a summary row for search results and an editable detail
record.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class PatientSummary:
    """Patient row shown in search results.

    Missing values are replaced with descriptive placeholders
    ("No Phone", "No Email", ...) when the summary is built.

    Attributes:
        id: FHIR Patient id
        name: Given names and family name joined by spaces
        phone: First phone contact
        email: First e-mail contact
        birth_date: Birth date (YYYY-MM-DD)
        gender: Administrative gender (male, female, other, unknown)
    """

    id: Optional[str]
    name: str
    phone: str
    email: str
    birth_date: str
    gender: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "birthDate": self.birth_date,
            "gender": self.gender,
        }


@dataclass(frozen=True)
class PatientDetail:
    """Patient record used to populate an edit form.

    Missing contact and birth date values are empty strings so they can be
    placed directly into input fields.

    Attributes:
        id: FHIR Patient id
        name: Display name derived from given names and family name
        first: First given name
        middle: Remaining given names joined by spaces
        last: Family name
        gender: Administrative gender
        phone: First phone contact
        email: First e-mail contact (read-only, never written back)
        dob: Birth date (YYYY-MM-DD)
    """

    id: Optional[str]
    name: str
    first: str
    middle: str
    last: str
    gender: str
    phone: str
    email: str
    dob: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "first": self.first,
            "middle": self.middle,
            "last": self.last,
            "gender": self.gender,
            "phone": self.phone,
            "email": self.email,
            "dob": self.dob,
        }
