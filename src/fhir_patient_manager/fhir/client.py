"""REST client for the Patient endpoint of a FHIR server.

The client performs single HTTP interactions and raises requests exceptions
unchanged (``requests.HTTPError`` for error statuses). Translating those
into application errors is left to the search coordinator and the patient
service, which know whether a failure was a read or a write.
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

import requests

from fhir_patient_manager.config.schema import Config
from fhir_patient_manager.models.fhir import Bundle, Patient
from fhir_patient_manager.transport.http_client import FHIR_JSON, ConnectionPool

logger = logging.getLogger(__name__)


class FHIRClient:
    """Client for FHIR Patient REST interactions.

    Attributes:
        base_url: FHIR server base URL without trailing slash
        pool: Connection pool providing the HTTP session

    Example:
        >>> client = FHIRClient("http://localhost:8080/fhir")
        >>> bundle = client.search_patients({"name:contains": "Jane", "_count": "10"})
        >>> patient = client.read_patient("123")
    """

    resource_type = "Patient"

    def __init__(self, base_url: str, pool: Optional[ConnectionPool] = None) -> None:
        if not base_url.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid FHIR base URL: {base_url}. Must start with http:// or https://"
            )
        self.base_url = base_url.rstrip("/")
        self.pool = pool or ConnectionPool()
        logger.info(f"FHIR client initialized: base_url={self.base_url}")

    @classmethod
    def from_config(cls, config: Config) -> "FHIRClient":
        """Create a client from application configuration."""
        return cls(
            config.fhir.base_url,
            pool=ConnectionPool.from_transport_config(config.transport),
        )

    @property
    def collection_url(self) -> str:
        return f"{self.base_url}/{self.resource_type}"

    def instance_url(self, resource_id: str) -> str:
        return f"{self.collection_url}/{quote(str(resource_id), safe='')}"

    def search_patients(self, params: dict[str, str]) -> Bundle:
        """GET [base]/Patient?params and return the Bundle."""
        return self._request("GET", self.collection_url, params=params).json()

    def get_page(self, page_url: str) -> Bundle:
        """GET a page link exactly as the server issued it."""
        return self._request("GET", page_url).json()

    def read_patient(self, resource_id: str) -> Patient:
        """GET [base]/Patient/{id}."""
        return self._request("GET", self.instance_url(resource_id)).json()

    def create_patient(self, resource: Patient) -> Patient:
        """POST [base]/Patient and return the created resource."""
        response = self._request(
            "POST",
            self.collection_url,
            json=resource,
            headers={"Content-Type": FHIR_JSON},
        )
        return _json_or_empty(response)

    def update_patient(self, resource_id: str, resource: Patient) -> Patient:
        """PUT [base]/Patient/{id} and return the stored resource."""
        response = self._request(
            "PUT",
            self.instance_url(resource_id),
            json=resource,
            headers={"Content-Type": FHIR_JSON},
        )
        return _json_or_empty(response)

    def delete_patient(self, resource_id: str) -> None:
        """DELETE [base]/Patient/{id}."""
        self._request("DELETE", self.instance_url(resource_id))

    def close(self) -> None:
        self.pool.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Send one request and raise for error statuses.

        Raises:
            requests.RequestException: On transport failure or HTTP status >= 400
        """
        session = self.pool.get_session()
        logger.debug(f"{method} {url} params={kwargs.get('params') or {}}")

        response = session.request(method, url, timeout=self.pool.config.timeout, **kwargs)

        logger.debug(f"{method} {url} -> HTTP {response.status_code}")
        if response.status_code >= 400:
            logger.warning(f"HTTP error {response.status_code} from FHIR server for {method} {url}")
        response.raise_for_status()
        return response


def _json_or_empty(response: requests.Response) -> dict[str, Any]:
    # Servers honouring "Prefer: return=minimal" send no body on writes
    if not response.content:
        return {}
    return response.json()
