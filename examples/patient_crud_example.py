"""Patient CRUD and paging examples.

This module demonstrates the patient service against a live FHIR server:
creating a patient, paging through search results, applying partial
updates, and handling the typed errors each operation can raise.

Run this example (uses the FHIR server from config/config.json or
FHIR_PM_BASE_URL):
    python examples/patient_crud_example.py
"""

import logging

from fhir_patient_manager.config import load_config
from fhir_patient_manager.service import PatientService
from fhir_patient_manager.utils.exceptions import (
    NotFoundError,
    PatientManagerError,
    RemoteError,
    ValidationError,
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def example_1_create_and_read(service: PatientService) -> str:
    """Example 1: Create a patient and read it back as an edit record."""
    print("=" * 80)
    print("Example 1: Create and Read")
    print("=" * 80)

    created = service.create({
        "first": "Jane",
        "middle": "Q",
        "last": "Example",
        "gender": "female",
        "phone": "555-0100",
        "dob": "1990-04-01",
    })
    print(f"\nCreated patient: {created['id']}")

    detail = service.get(created["id"])
    print(f"  Name:  {detail.name}")
    print(f"  First: {detail.first}  Middle: {detail.middle}  Last: {detail.last}")
    print(f"  DOB:   {detail.dob}  Phone: {detail.phone}")
    print()
    return created["id"]


def example_2_paging(service: PatientService) -> None:
    """Example 2: Page through the most recently updated patients.

    Page links are issued by the server and passed back unchanged.
    """
    print("=" * 80)
    print("Example 2: Search and Paging")
    print("=" * 80)

    page = service.default_patients()
    print(f"\nTotal: {page.total}  Filters: {page.current_search_params}")
    for patient in page.patients:
        print(f"  {patient.id}: {patient.name} ({patient.gender}, {patient.birth_date})")

    if page.has_next_page:
        page = service.next_page(page)
        print(f"\nNext page ({len(page.patients)} patients)")
        for patient in page.patients:
            print(f"  {patient.id}: {patient.name}")
    print()


def example_3_partial_update(service: PatientService, patient_id: str) -> None:
    """Example 3: Partial updates leave untouched fields in place.

    Updating only the first name keeps the middle name; an empty phone
    removes the phone contact.
    """
    print("=" * 80)
    print("Example 3: Partial Update")
    print("=" * 80)

    updated = service.update(patient_id, {"first": "Janet", "phone": ""})
    print(f"\nName text now: {updated['name'][0]['text']}")
    print(f"Telecom now:   {updated.get('telecom', [])}")
    print()


def example_4_error_handling(service: PatientService) -> None:
    """Example 4: Typed errors raised by the service."""
    print("=" * 80)
    print("Example 4: Error Handling")
    print("=" * 80)

    try:
        service.create({"first": "No", "last": "Gender"})
    except ValidationError as e:
        print(f"\nValidationError: {e}")

    try:
        service.get("does-not-exist-000")
    except NotFoundError as e:
        print(f"NotFoundError:   {e}")
    except RemoteError as e:
        print(f"RemoteError:     {e} (status {e.status_code})")
    print()


def example_5_delete(service: PatientService, patient_id: str) -> None:
    """Example 5: Delete the patient created in example 1."""
    print("=" * 80)
    print("Example 5: Delete")
    print("=" * 80)

    result = service.remove(patient_id)
    print(f"\n{result['message']}")
    print()


if __name__ == "__main__":
    config = load_config()
    service = PatientService.from_config(config)
    print(f"FHIR server: {config.fhir.base_url}\n")

    try:
        patient_id = example_1_create_and_read(service)
        example_2_paging(service)
        example_3_partial_update(service, patient_id)
        example_4_error_handling(service)
        example_5_delete(service, patient_id)
    except PatientManagerError as e:
        logger.error(f"Example execution failed: {e}", exc_info=True)
    finally:
        service.client.close()

    print("=" * 80)
    print("Examples completed")
    print("=" * 80)
