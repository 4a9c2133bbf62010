"""
Shared pytest configuration and fixtures.

This module provides fixtures and configuration used across all test suites
(unit and integration tests).
"""

from pathlib import Path
from typing import Any, Callable, Optional
from unittest.mock import MagicMock

import pytest
import requests

BASE_URL = "http://fhir.test/fhir"


@pytest.fixture
def project_root() -> Path:
    """
    Return the project root directory.

    Returns:
        Path: Absolute path to the project root directory.
    """
    return Path(__file__).parent.parent


@pytest.fixture
def base_url() -> str:
    """Return the FHIR base URL used by tests."""
    return BASE_URL


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """
    Create a temporary configuration file for testing.

    Args:
        tmp_path: Pytest's temporary directory fixture.

    Returns:
        Path: Path to the temporary configuration file.
    """
    config_file = tmp_path / "config.json"
    config_file.write_text(
        '{"fhir": {"base_url": "http://fhir.test/fhir", "page_size": 5},'
        ' "logging": {"log_file": "' + (tmp_path / "test.log").as_posix() + '"}}'
    )
    return config_file


@pytest.fixture
def sample_patient() -> dict[str, Any]:
    """
    Return a Patient resource as stored on the FHIR server.

    Returns:
        dict: Patient with two given names, phone, e-mail and birth date.
    """
    return {
        "resourceType": "Patient",
        "id": "p1",
        "meta": {"versionId": "3", "lastUpdated": "2024-05-01T10:00:00Z"},
        "identifier": [{"system": "urn:mrn", "value": "MRN-001"}],
        "name": [
            {
                "use": "official",
                "given": ["Jane", "Marie"],
                "family": "Doe",
                "text": "Jane Marie Doe",
            },
            {"use": "nickname", "given": ["JD"]},
        ],
        "gender": "female",
        "telecom": [
            {"system": "phone", "value": "555-0100"},
            {"system": "email", "value": "jane@example.com"},
        ],
        "birthDate": "1990-04-01",
        "address": [{"city": "Springfield"}],
    }


@pytest.fixture
def minimal_patient() -> dict[str, Any]:
    """Return a Patient resource with no optional elements."""
    return {"resourceType": "Patient", "id": "p2"}


@pytest.fixture
def make_bundle() -> Callable[..., dict[str, Any]]:
    """
    Return a factory building searchset Bundles.

    Returns:
        Callable taking resources, total and link URLs by relation.
    """

    def _make_bundle(
        resources: Optional[list[dict[str, Any]]] = None,
        total: Optional[int] = None,
        **links: str,
    ) -> dict[str, Any]:
        bundle: dict[str, Any] = {
            "resourceType": "Bundle",
            "type": "searchset",
            "link": [
                {"relation": relation, "url": url}
                for relation, url in links.items()
            ],
            "entry": [{"resource": r} for r in resources or []],
        }
        if total is not None:
            bundle["total"] = total
        return bundle

    return _make_bundle


def make_response(
    status_code: int = 200,
    json_body: Any = None,
    text: str = "",
) -> MagicMock:
    """Build a mocked requests.Response.

    Args:
        status_code: HTTP status
        json_body: Value returned by .json(); ValueError raised when None and text given
        text: Raw body text
    """
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.text = text
    response.content = text.encode() if text else (b"{}" if json_body is not None else b"")
    if json_body is not None:
        response.json.return_value = json_body
    else:
        response.json.side_effect = ValueError("No JSON body")
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


def http_error(status_code: int, json_body: Any = None, text: str = "") -> requests.HTTPError:
    """Build the HTTPError requests raises for an error status."""
    response = make_response(status_code, json_body=json_body, text=text)
    return requests.HTTPError(f"{status_code} Client Error", response=response)


@pytest.fixture
def response_factory() -> Callable[..., MagicMock]:
    """Return the mocked response factory."""
    return make_response


@pytest.fixture
def http_error_factory() -> Callable[..., requests.HTTPError]:
    """Return the HTTPError factory."""
    return http_error
