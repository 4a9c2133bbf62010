"""Config module.

This module provides configuration management functionality.
"""

from fhir_patient_manager.config.manager import load_config
from fhir_patient_manager.config.schema import (
    ApiConfig,
    Config,
    FhirServerConfig,
    LoggingConfig,
    TransportConfig,
)

__all__ = [
    "load_config",
    "Config",
    "FhirServerConfig",
    "TransportConfig",
    "LoggingConfig",
    "ApiConfig",
]
