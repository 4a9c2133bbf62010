"""Custom exception classes for FHIR Patient Manager.

All exceptions inherit from PatientManagerError to allow catching all custom exceptions.
"""

from typing import Optional

import requests


class PatientManagerError(Exception):
    """Base exception for all FHIR Patient Manager custom exceptions."""

    pass


class ValidationError(PatientManagerError):
    """Raised when caller input violates a documented constraint.

    Examples:
        - Missing first name, last name or gender on create
        - Birth date not in YYYY-MM-DD format
        - Unknown name use or gender code
    """

    pass


class NotFoundError(PatientManagerError):
    """Raised when a patient identifier does not resolve on the FHIR server.

    Examples:
        - HTTP 404 on GET /Patient/{id}
        - Resource returned is not a Patient
    """

    pass


class ConfigurationError(PatientManagerError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Invalid configuration file format
        - FHIR base URL not http:// or https://
        - Configuration value out of range
    """

    pass


class RemoteError(PatientManagerError):
    """Base exception for failed calls to the FHIR server.

    Attributes:
        status_code: HTTP status returned by the server, None on transport failure
        remote_message: Diagnostic text extracted from the server response
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        remote_message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.remote_message = remote_message


class RemoteFetchError(RemoteError):
    """Raised when a search or read against the FHIR server fails.

    Examples:
        - Connection refused or timeout
        - HTTP 5xx on search
        - Response body is not JSON
    """

    pass


class RemoteWriteError(RemoteError):
    """Raised when a create, update or delete against the FHIR server fails.

    Examples:
        - HTTP 422 with an OperationOutcome on POST /Patient
        - Connection reset during PUT
    """

    pass


def extract_remote_message(response: Optional[requests.Response]) -> Optional[str]:
    """Extract the most useful diagnostic text from a FHIR server response.

    Prefers ``OperationOutcome.issue[].diagnostics`` (or ``details.text``),
    falling back to the raw response body.

    Args:
        response: HTTP response, may be None for transport failures

    Returns:
        Diagnostic message, or None when nothing useful is available
    """
    if response is None:
        return None

    try:
        body = response.json()
    except ValueError:
        text = (response.text or "").strip()
        return text[:500] or None

    if isinstance(body, dict) and body.get("resourceType") == "OperationOutcome":
        messages = []
        for issue in body.get("issue") or []:
            diagnostics = issue.get("diagnostics") or (issue.get("details") or {}).get("text")
            if diagnostics:
                messages.append(diagnostics)
        if messages:
            return "; ".join(messages)

    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])

    return None


def describe_remote_error(exception: Exception) -> tuple[str, Optional[int], Optional[str]]:
    """Describe a requests exception for wrapping in a RemoteError.

    Args:
        exception: Exception raised by requests (or while decoding the body)

    Returns:
        Tuple of (message, status_code, remote_message)

    Example:
        >>> try:
        ...     session.get(url).raise_for_status()
        ... except requests.RequestException as e:
        ...     message, status, remote = describe_remote_error(e)
    """
    response = getattr(exception, "response", None)
    status_code = response.status_code if response is not None else None
    remote_message = extract_remote_message(response)

    if remote_message:
        message = f"{exception} ({remote_message})"
    else:
        message = str(exception)
    return message, status_code, remote_message


def http_status_for(exception: Exception) -> int:
    """Map an exception to the HTTP status returned to API callers.

    Args:
        exception: Exception raised by the patient service

    Returns:
        400 for validation errors, 404 for unknown patients,
        502 for FHIR server failures, 500 for anything else
    """
    if isinstance(exception, ValidationError):
        return 400
    if isinstance(exception, NotFoundError):
        return 404
    if isinstance(exception, RemoteError):
        return 502
    return 500
