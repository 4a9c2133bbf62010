"""Audit trail functionality for FHIR Patient Manager.

This module provides structured audit logging for patient writes
(create, update, delete) against the FHIR server.
"""

import time
import uuid
from typing import Any, Dict

from .logger import get_logger

logger = get_logger(__name__)


def log_audit_event(event_type: str, details: Dict[str, Any]) -> None:
    """Log an audit trail event.

    Creates a structured audit log entry with standard fields for tracking
    operations. Audit events are logged at INFO level for successful
    operations and ERROR level for failures.

    Args:
        event_type: Type of operation (e.g., "PATIENT_CREATED",
                   "PATIENT_UPDATED", "PATIENT_DELETED", "PATIENT_CREATE_FAILED")
        details: Dictionary with event details. Common fields include:
                - status: "success" or "failure"
                - patient_id: FHIR Patient id (if known)
                - fields: Updated field names
                - duration: Operation duration in seconds
                - error_message: Error details (if status is failure)
                - correlation_id: Optional correlation ID for tracking related events

    Example:
        >>> log_audit_event("PATIENT_CREATED", {
        ...     "status": "success",
        ...     "patient_id": "123",
        ...     "duration": 0.42
        ... })
    """
    details = dict(details)
    if "timestamp" not in details:
        details["timestamp"] = time.time()

    if "correlation_id" not in details:
        details["correlation_id"] = str(uuid.uuid4())

    message_parts = [f"AUDIT [{event_type}]"]

    # Add key fields in consistent order
    field_order = [
        "status",
        "patient_id",
        "fields",
        "duration",
        "status_code",
        "error_message",
        "correlation_id",
    ]

    for field in field_order:
        if field in details:
            value = details[field]
            if field == "duration" and isinstance(value, (int, float)):
                message_parts.append(f"{field}={value:.2f}s")
            elif field == "fields" and isinstance(value, (list, tuple)):
                message_parts.append(f"{field}={','.join(value)}")
            else:
                message_parts.append(f"{field}={value}")

    for key, value in details.items():
        if key not in field_order and key != "timestamp":
            message_parts.append(f"{key}={value}")

    audit_message = " | ".join(message_parts)

    status = details.get("status", "unknown")
    if status == "failure":
        logger.error(audit_message)
    else:
        logger.info(audit_message)
