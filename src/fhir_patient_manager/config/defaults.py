"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

# Default configuration dictionary
# This is used as a fallback when no configuration file is present
DEFAULT_CONFIG: dict[str, Any] = {
    "fhir": {
        # Public HAPI-based sandbox used during development
        "base_url": "https://fhir-bootcamp.medblocks.com/fhir/",
        # Patients per search page
        "page_size": 10,
        # Newest resources first
        "default_sort": "-_lastUpdated",
    },
    "transport": {
        # Verify TLS certificates by default for security
        "verify_tls": True,
        # Connection timeout: 10 seconds
        "timeout_connect": 10,
        # Read timeout: 30 seconds
        "timeout_read": 30,
        # Pooled connections per host
        "max_connections": 10,
    },
    "logging": {
        # Default log level: INFO (moderate verbosity)
        "level": "INFO",
        # Default log file path
        "log_file": "logs/fhir-patient-manager.log",
        # Do not redact PII by default (user must opt-in for privacy)
        "redact_pii": False,
    },
    "api": {
        "host": "127.0.0.1",
        "port": 3000,
    },
}

# Default configuration file path
DEFAULT_CONFIG_PATH = "config/config.json"
