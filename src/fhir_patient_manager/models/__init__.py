"""Models module.

This module provides data models and dataclasses for the application.
"""

from fhir_patient_manager.models.patient import PatientDetail, PatientSummary
from fhir_patient_manager.models.search import SearchPage

__all__ = [
    "PatientDetail",
    "PatientSummary",
    "SearchPage",
]
