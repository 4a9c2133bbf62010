"""Mapping between FHIR Patient resources and simplified patient records.

Read direction:
    to_summary()  - search-result row with descriptive placeholders
    to_detail()   - edit-form record with empty-string placeholders

Write direction:
    build_patient_resource() - new Patient payload from form fields
    merge_patient_update()   - non-destructive partial update of an existing Patient

Write input is a plain mapping with any of the keys in WRITABLE_FIELDS.
``email`` and ``id`` are never written.
"""

import logging
from typing import Any, Mapping, Optional

from fhir_patient_manager.fhir.validators import (
    DEFAULT_NAME_USE,
    birth_date_error,
    gender_error,
    is_present,
    missing_required_fields,
    name_use_error,
)
from fhir_patient_manager.models.fhir import Patient
from fhir_patient_manager.models.patient import PatientDetail, PatientSummary
from fhir_patient_manager.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

PATIENT_RESOURCE_TYPE = "Patient"

WRITABLE_FIELDS = ("use", "first", "middle", "last", "gender", "phone", "dob")
NAME_FIELDS = ("first", "middle", "last", "use")

# Search-result placeholders
NO_NAME = "No Name"
NO_PHONE = "No Phone"
NO_EMAIL = "No Email"
NO_GENDER = "No Gender Mentioned"
NO_BIRTH_DATE = "No Birth Date"

# Detail placeholder for name and gender; contact fields fall back to ""
NOT_AVAILABLE = "N/A"


def is_patient(resource: Optional[Mapping[str, Any]]) -> bool:
    """Check resource is a FHIR Patient."""
    return isinstance(resource, Mapping) and resource.get("resourceType") == PATIENT_RESOURCE_TYPE


def to_summary(resource: Optional[Mapping[str, Any]]) -> Optional[PatientSummary]:
    """Map a Patient resource to a search-result row.

    Args:
        resource: FHIR resource from a search Bundle entry

    Returns:
        PatientSummary, or None when resource is missing or not a Patient
    """
    if not is_patient(resource):
        return None

    name = _primary_name(resource)
    return PatientSummary(
        id=resource.get("id"),
        name=_display_name(name) or NO_NAME,
        phone=_contact_value(resource, "phone") or NO_PHONE,
        email=_contact_value(resource, "email") or NO_EMAIL,
        birth_date=resource.get("birthDate") or NO_BIRTH_DATE,
        gender=resource.get("gender") or NO_GENDER,
    )


def to_detail(resource: Optional[Mapping[str, Any]]) -> Optional[PatientDetail]:
    """Map a Patient resource to an editable record.

    The first given name becomes ``first``; any further given names are
    joined into ``middle``.

    Args:
        resource: FHIR Patient fetched by id

    Returns:
        PatientDetail, or None when resource is missing or not a Patient
    """
    if not is_patient(resource):
        return None

    name = _primary_name(resource)
    given = _given_names(name)
    return PatientDetail(
        id=resource.get("id"),
        name=_display_name(name) or NOT_AVAILABLE,
        first=given[0] if given else "",
        middle=" ".join(given[1:]),
        last=name.get("family") or "",
        gender=resource.get("gender") or NOT_AVAILABLE,
        phone=_contact_value(resource, "phone") or "",
        email=_contact_value(resource, "email") or "",
        dob=resource.get("birthDate") or "",
    )


def build_patient_resource(data: Mapping[str, Any]) -> Patient:
    """Build a new FHIR Patient payload from form fields.

    Args:
        data: Mapping with first, last, gender and optionally
            use, middle, phone, dob

    Returns:
        Patient resource ready to POST

    Raises:
        ValidationError: If a required field is missing, or use, gender or
            dob has an invalid value

    Example:
        >>> resource = build_patient_resource(
        ...     {"first": "Jane", "last": "Doe", "gender": "female"}
        ... )
        >>> resource["name"][0]["text"]
        'Jane Doe'
    """
    missing = missing_required_fields(data)
    if missing:
        raise ValidationError(
            f"first, last, and gender are required (missing: {', '.join(missing)})"
        )

    use = _text(data.get("use")) or DEFAULT_NAME_USE
    first = _text(data.get("first"))
    middle = _text(data.get("middle"))
    last = _text(data.get("last"))
    gender = _text(data.get("gender"))
    phone = _text(data.get("phone"))
    dob = _text(data.get("dob"))

    _raise_for_errors(name_use_error(use), gender_error(gender), birth_date_error(dob))

    given = [first]
    if middle:
        given.append(middle)

    resource: Patient = {
        "resourceType": PATIENT_RESOURCE_TYPE,
        "name": [
            {
                "use": use,
                "given": given,
                "family": last,
                "text": _join(first, middle, last),
            }
        ],
        "gender": gender,
        "telecom": [{"system": "phone", "value": phone}] if phone else [],
    }
    if dob:
        resource["birthDate"] = dob
    return resource


def merge_patient_update(
    existing: Mapping[str, Any], updates: Mapping[str, Any]
) -> Patient:
    """Apply a partial update to an existing Patient resource.

    The existing resource is not modified. Every element not targeted by
    ``updates`` is carried over as-is. A key whose value is None counts as
    absent; an empty string for ``middle``, ``phone`` or ``dob`` clears it.

    Args:
        existing: Patient resource as returned by the server
        updates: Any subset of use, first, middle, last, gender, phone, dob

    Returns:
        New Patient resource ready to PUT

    Raises:
        ValidationError: If use, gender or dob has an invalid value; nothing
            is merged in that case
    """
    _raise_for_errors(
        name_use_error(_text(updates.get("use"))),
        gender_error(_text(updates.get("gender"))),
        birth_date_error(_text(updates.get("dob"))),
    )

    merged = dict(existing)

    if any(is_present(updates, key) for key in NAME_FIELDS):
        merged["name"] = _merge_names(existing.get("name") or [], updates)

    gender = _text(updates.get("gender"))
    if gender:
        merged["gender"] = gender

    if is_present(updates, "phone"):
        phone = _text(updates.get("phone"))
        telecom = [
            contact for contact in existing.get("telecom") or []
            if contact.get("system") != "phone"
        ]
        if phone:
            telecom.append({"system": "phone", "value": phone})
        merged["telecom"] = telecom

    if is_present(updates, "dob"):
        dob = _text(updates.get("dob"))
        if dob:
            merged["birthDate"] = dob
        else:
            merged.pop("birthDate", None)

    logger.debug("Merged update fields: %s", ", ".join(updated_fields(updates)))
    return merged


def updated_fields(updates: Mapping[str, Any]) -> list[str]:
    """List the writable fields explicitly supplied in updates."""
    return [key for key in WRITABLE_FIELDS if is_present(updates, key)]


def _merge_names(names: list, updates: Mapping[str, Any]) -> list:
    """Rebuild the primary name entry; later name entries are kept as-is."""
    current = dict(names[0]) if names and isinstance(names[0], Mapping) else {}
    current_given = _given_names(current)

    first = _text(updates.get("first")) or (current_given[0] if current_given else "")
    if is_present(updates, "middle"):
        middle = _text(updates.get("middle"))
        trailing = [middle] if middle else []
    else:
        trailing = current_given[1:]

    given = ([first] if first else []) + trailing
    family = _text(updates.get("last")) or current.get("family") or ""

    current["use"] = _text(updates.get("use")) or current.get("use") or DEFAULT_NAME_USE
    current["given"] = given
    current["family"] = family
    current["text"] = _join(*given, family)
    return [current] + list(names[1:])


def _primary_name(resource: Mapping[str, Any]) -> Mapping[str, Any]:
    names = resource.get("name") or []
    if names and isinstance(names[0], Mapping):
        return names[0]
    return {}


def _given_names(name: Mapping[str, Any]) -> list[str]:
    return [g for g in name.get("given") or [] if g]


def _display_name(name: Mapping[str, Any]) -> str:
    return _join(*_given_names(name), name.get("family") or "")


def _contact_value(resource: Mapping[str, Any], system: str) -> Optional[str]:
    for contact in resource.get("telecom") or []:
        if contact.get("system") == system:
            return contact.get("value")
    return None


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part).strip()


def _text(value: Any) -> str:
    """Normalize an optional form value to a string ("" for None)."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _raise_for_errors(*errors: Optional[str]) -> None:
    messages = [e for e in errors if e]
    if messages:
        raise ValidationError("; ".join(messages))
