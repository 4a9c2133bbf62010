"""Patient service: CRUD and search over FHIR Patient resources.

Every operation accepts plain data (filter maps, field maps, id strings),
makes one or two calls to the FHIR server and returns plain data or raises
one of the typed errors from ``fhir_patient_manager.utils.exceptions``:

    ValidationError   - caller input rejected before any remote call
    NotFoundError     - id does not resolve to a Patient
    RemoteFetchError  - search or read failed
    RemoteWriteError  - create, update or delete failed

Nothing is retried.
"""

import logging
import time
from typing import Any, Mapping, Optional

import requests

from fhir_patient_manager.config.schema import Config
from fhir_patient_manager.fhir.client import FHIRClient
from fhir_patient_manager.fhir.mapper import (
    build_patient_resource,
    is_patient,
    merge_patient_update,
    to_detail,
    updated_fields,
)
from fhir_patient_manager.fhir.search import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT,
    build_search_params,
    search_patients,
)
from fhir_patient_manager.logging_audit import log_audit_event
from fhir_patient_manager.models.patient import PatientDetail
from fhir_patient_manager.models.search import SearchPage
from fhir_patient_manager.utils.exceptions import (
    NotFoundError,
    RemoteFetchError,
    RemoteWriteError,
    ValidationError,
    describe_remote_error,
)

logger = logging.getLogger(__name__)

# Statuses meaning the id does not resolve
NOT_FOUND_STATUSES = (404, 410)


class PatientService:
    """Patient operations against a FHIR server.

    Attributes:
        client: FHIR REST client
        page_size: Patients per search page
        sort: Sort expression for fresh searches

    Example:
        >>> service = PatientService.from_config(load_config())
        >>> created = service.create({"first": "Jane", "last": "Doe", "gender": "female"})
        >>> service.update(created["id"], {"phone": "555-0100"})
        >>> page = service.search({"name": "Jane"})
    """

    def __init__(
        self,
        client: FHIRClient,
        page_size: int = DEFAULT_PAGE_SIZE,
        sort: str = DEFAULT_SORT,
    ) -> None:
        self.client = client
        self.page_size = page_size
        self.sort = sort

    @classmethod
    def from_config(cls, config: Config) -> "PatientService":
        """Create a service and its FHIR client from configuration."""
        return cls(
            FHIRClient.from_config(config),
            page_size=config.fhir.page_size,
            sort=config.fhir.default_sort,
        )

    def search(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        page_url: Optional[str] = None,
    ) -> SearchPage:
        """Search patients, or fetch another page of an earlier search.

        Args:
            filters: Any of name (contains match), phone, birthdate, id
            page_url: Page link from an earlier SearchPage; filters are
                ignored when given

        Returns:
            SearchPage, possibly with no patients

        Raises:
            RemoteFetchError: If the FHIR server call fails
        """
        return self._run_search(build_search_params(filters), page_url)

    def search_by_name(self, name: str) -> SearchPage:
        return self.search({"name": name})

    def search_by_birthdate(self, birthdate: str) -> SearchPage:
        return self.search({"birthdate": birthdate})

    def search_by_phone(self, phone: str) -> SearchPage:
        return self.search({"phone": phone})

    def default_patients(self) -> SearchPage:
        """Most recently updated patients, first page."""
        return self._run_search({"_sort": self.sort})

    def next_page(self, page: SearchPage) -> SearchPage:
        """Fetch the page after ``page``.

        Raises:
            ValidationError: If ``page`` is the last page
        """
        if not page.next_link:
            raise ValidationError("No next page available")
        return self.search(page_url=page.next_link)

    def previous_page(self, page: SearchPage) -> SearchPage:
        """Fetch the page before ``page``.

        Raises:
            ValidationError: If ``page`` is the first page
        """
        if not page.prev_link:
            raise ValidationError("No previous page available")
        return self.search(page_url=page.prev_link)

    def get(self, patient_id: str) -> PatientDetail:
        """Fetch one patient as an editable record.

        Raises:
            ValidationError: If patient_id is empty
            NotFoundError: If the id does not resolve to a Patient
            RemoteFetchError: If the FHIR server call fails otherwise
        """
        _require_id(patient_id)
        resource = self._fetch_existing(patient_id)
        return to_detail(resource)

    def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Create a patient.

        Args:
            data: first, last, gender and optionally use, middle, phone, dob

        Returns:
            Created Patient resource as returned by the server

        Raises:
            ValidationError: If data is incomplete or has invalid values
            RemoteWriteError: If the FHIR server rejects or fails the create
        """
        resource = build_patient_resource(data)
        start_time = time.time()

        try:
            created = self.client.create_patient(resource)
        except (requests.RequestException, ValueError) as e:
            raise self._write_failed("PATIENT_CREATE_FAILED", "create patient", e, start_time) from e

        patient_id = created.get("id")
        logger.info(f"Created patient: {patient_id}")
        log_audit_event("PATIENT_CREATED", {
            "status": "success",
            "patient_id": patient_id,
            "duration": time.time() - start_time,
        })
        return created

    def update(self, patient_id: str, updates: Mapping[str, Any]) -> dict[str, Any]:
        """Apply a partial update to a patient.

        The current resource is fetched, merged with ``updates`` and stored
        back in full. Fields not present in ``updates`` keep their values.

        Args:
            patient_id: FHIR Patient id
            updates: Any subset of use, first, middle, last, gender, phone, dob

        Returns:
            Updated Patient resource as returned by the server

        Raises:
            ValidationError: If patient_id is empty or an update value is invalid
            NotFoundError: If the id does not resolve to a Patient
            RemoteFetchError: If fetching the current resource fails otherwise
            RemoteWriteError: If the FHIR server rejects or fails the update
        """
        _require_id(patient_id)
        existing = self._fetch_existing(patient_id)

        merged = merge_patient_update(existing, updates)
        merged["id"] = existing.get("id") or patient_id
        start_time = time.time()

        try:
            updated = self.client.update_patient(patient_id, merged)
        except (requests.RequestException, ValueError) as e:
            raise self._write_failed(
                "PATIENT_UPDATE_FAILED", f"update patient {patient_id}", e, start_time,
                patient_id=patient_id,
            ) from e

        logger.info(f"Updated patient: {patient_id}")
        log_audit_event("PATIENT_UPDATED", {
            "status": "success",
            "patient_id": patient_id,
            "fields": updated_fields(updates),
            "duration": time.time() - start_time,
        })
        return updated

    def remove(self, patient_id: str) -> dict[str, str]:
        """Delete a patient.

        Returns:
            Confirmation message

        Raises:
            ValidationError: If patient_id is empty
            RemoteWriteError: If the FHIR server rejects or fails the delete
        """
        if not patient_id or not str(patient_id).strip():
            raise ValidationError("Patient ID is required for deletion")
        start_time = time.time()

        try:
            self.client.delete_patient(patient_id)
        except requests.RequestException as e:
            raise self._write_failed(
                "PATIENT_DELETE_FAILED", f"delete patient {patient_id}", e, start_time,
                patient_id=patient_id,
            ) from e

        message = f"Patient with ID {patient_id} deleted successfully."
        logger.info(message)
        log_audit_event("PATIENT_DELETED", {
            "status": "success",
            "patient_id": patient_id,
            "duration": time.time() - start_time,
        })
        return {"message": message}

    def _run_search(
        self, search_params: Mapping[str, Any], page_url: Optional[str] = None
    ) -> SearchPage:
        return search_patients(
            self.client,
            search_params=search_params,
            page_url=page_url,
            page_size=self.page_size,
            sort=self.sort,
        )

    def _fetch_existing(self, patient_id: str) -> dict[str, Any]:
        """Read a Patient by id, translating failures.

        Raises:
            NotFoundError: On 404/410 or when the resource is not a Patient
            RemoteFetchError: On any other failure
        """
        try:
            resource = self.client.read_patient(patient_id)
        except (requests.RequestException, ValueError) as e:
            message, status_code, remote_message = describe_remote_error(e)
            if status_code in NOT_FOUND_STATUSES:
                logger.info(f"Patient not found: {patient_id}")
                raise NotFoundError(f"Patient {patient_id} not found") from e
            logger.error(f"Error fetching patient {patient_id}: {message}")
            raise RemoteFetchError(
                f"Failed to retrieve patient {patient_id}: {message}",
                status_code=status_code,
                remote_message=remote_message,
            ) from e

        if not is_patient(resource):
            raise NotFoundError(f"Resource {patient_id} is not a Patient")
        return resource

    def _write_failed(
        self,
        event_type: str,
        action: str,
        error: Exception,
        start_time: float,
        patient_id: Optional[str] = None,
    ) -> RemoteWriteError:
        """Log and audit a failed write, returning the error to raise."""
        message, status_code, remote_message = describe_remote_error(error)
        logger.error(f"Error trying to {action}: {message}")

        details: dict[str, Any] = {
            "status": "failure",
            "duration": time.time() - start_time,
            "error_message": message,
        }
        if patient_id:
            details["patient_id"] = patient_id
        if status_code is not None:
            details["status_code"] = status_code
        log_audit_event(event_type, details)

        return RemoteWriteError(
            f"Failed to {action}: {message}",
            status_code=status_code,
            remote_message=remote_message,
        )


def _require_id(patient_id: Optional[str]) -> None:
    if not patient_id or not str(patient_id).strip():
        raise ValidationError("Patient ID is required")
