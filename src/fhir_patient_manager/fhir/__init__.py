"""FHIR module.

Patient resource mapping, validation predicates, search/pagination and the
REST client for the FHIR server.
"""

from fhir_patient_manager.fhir.client import FHIRClient
from fhir_patient_manager.fhir.mapper import (
    build_patient_resource,
    merge_patient_update,
    to_detail,
    to_summary,
)
from fhir_patient_manager.fhir.search import (
    build_search_params,
    normalize_search_params,
    search_patients,
)

__all__ = [
    "FHIRClient",
    "build_patient_resource",
    "merge_patient_update",
    "to_detail",
    "to_summary",
    "build_search_params",
    "normalize_search_params",
    "search_patients",
]
