"""Patient service layer for FHIR Patient Manager."""

from fhir_patient_manager.service.patient_service import PatientService

__all__ = ["PatientService"]
