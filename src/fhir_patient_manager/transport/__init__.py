"""Transport module.

Pooled HTTP sessions used by the FHIR client.
"""

from fhir_patient_manager.transport.http_client import (
    ConnectionPool,
    ConnectionPoolConfig,
)

__all__ = [
    "ConnectionPool",
    "ConnectionPoolConfig",
]
