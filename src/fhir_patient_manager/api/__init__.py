"""JSON HTTP adapter for the patient service."""

from fhir_patient_manager.api.app import create_app, run_server

__all__ = ["create_app", "run_server"]
