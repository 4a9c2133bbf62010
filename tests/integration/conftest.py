"""Integration test fixtures and configuration.

This module provides an in-memory FHIR server that stands in for the
requests session, so the patient service, FHIR client and Flask API can be
exercised together without network access.
"""

import copy
import json
import uuid
from typing import Any, Optional
from unittest.mock import MagicMock
from urllib.parse import parse_qsl, urlencode, urlsplit

import pytest
import requests

from fhir_patient_manager.api.app import create_app
from fhir_patient_manager.fhir.client import FHIRClient
from fhir_patient_manager.service.patient_service import PatientService

BASE_URL = "http://fhir.test/fhir"


def build_response(status_code: int, body: Optional[dict[str, Any]], url: str) -> requests.Response:
    """Build a real requests.Response carrying a JSON body."""
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response.reason = "OK" if status_code < 400 else "Error"
    response.headers["Content-Type"] = "application/fhir+json"
    response._content = json.dumps(body).encode("utf-8") if body is not None else b""
    return response


def operation_outcome(diagnostics: str) -> dict[str, Any]:
    return {
        "resourceType": "OperationOutcome",
        "issue": [{"severity": "error", "code": "processing", "diagnostics": diagnostics}],
    }


class InMemoryFhirServer:
    """Minimal FHIR Patient endpoint with HAPI-style paging links.

    Attributes:
        patients: Stored resources by id, in insertion order
        requests: Recorded (method, url, params) tuples
        fail_next: Status to return for the next request, then cleared
    """

    def __init__(self, base_url: str = BASE_URL) -> None:
        self.base_url = base_url
        self.patients: dict[str, dict[str, Any]] = {}
        self.requests: list[tuple[str, str, dict[str, str]]] = []
        self.fail_next: Optional[int] = None
        self._searches: dict[str, dict[str, str]] = {}
        self._next_id = 1

    def add(self, resource: dict[str, Any]) -> dict[str, Any]:
        stored = copy.deepcopy(resource)
        if "id" not in stored:
            stored["id"] = f"pat-{self._next_id}"
            self._next_id += 1
        stored["meta"] = {"versionId": "1"}
        self.patients[stored["id"]] = stored
        return stored

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        params = dict(kwargs.get("params") or {})
        self.requests.append((method, url, params))

        if self.fail_next:
            status, self.fail_next = self.fail_next, None
            return build_response(status, operation_outcome("Simulated failure"), url)

        path = urlsplit(url).path
        collection = urlsplit(f"{self.base_url}/Patient").path

        if method == "GET" and path == urlsplit(self.base_url).path:
            return self._page(url)
        if path == collection:
            if method == "GET":
                return self._search(params, url)
            if method == "POST":
                created = self.add({k: v for k, v in kwargs["json"].items() if k != "id"})
                return build_response(201, created, url)
        elif path.startswith(collection + "/"):
            patient_id = path.rsplit("/", 1)[1]
            return self._instance(method, patient_id, kwargs.get("json"), url)

        return build_response(400, operation_outcome(f"Unsupported {method} {url}"), url)

    def _instance(self, method: str, patient_id: str, body: Any, url: str) -> requests.Response:
        if patient_id not in self.patients:
            return build_response(404, operation_outcome(f"Resource Patient/{patient_id} is not known"), url)
        if method == "GET":
            return build_response(200, self.patients[patient_id], url)
        if method == "PUT":
            if body.get("id") != patient_id:
                return build_response(400, operation_outcome("Resource id does not match URL"), url)
            stored = copy.deepcopy(body)
            version = int(self.patients[patient_id]["meta"]["versionId"]) + 1
            stored["meta"] = {"versionId": str(version)}
            self.patients[patient_id] = stored
            return build_response(200, stored, url)
        if method == "DELETE":
            del self.patients[patient_id]
            return build_response(200, operation_outcome("Successfully deleted 1 resource(s)"), url)
        return build_response(405, operation_outcome("Method not allowed"), url)

    def _search(self, params: dict[str, str], url: str) -> requests.Response:
        token = uuid.uuid4().hex[:8]
        self._searches[token] = params
        return self._bundle(token, 0, f"{url}?{urlencode(params)}")

    def _page(self, url: str) -> requests.Response:
        query = dict(parse_qsl(urlsplit(url).query))
        token = query.get("_getpages")
        if token not in self._searches:
            return build_response(410, operation_outcome("Search expired"), url)
        return self._bundle(token, int(query.get("_getpagesoffset", 0)), url)

    def _bundle(self, token: str, offset: int, self_link: str) -> requests.Response:
        params = self._searches[token]
        count = int(params.get("_count", 10))
        matches = [p for p in reversed(list(self.patients.values())) if _matches(p, params)]

        def page_link(page_offset: int) -> str:
            return (
                f"{self.base_url}?_getpages={token}&_getpagesoffset={page_offset}"
                f"&_count={count}&_bundletype=searchset"
            )

        links = [{"relation": "self", "url": self_link}]
        if offset + count < len(matches):
            links.append({"relation": "next", "url": page_link(offset + count)})
        if offset > 0:
            links.append({"relation": "previous", "url": page_link(max(offset - count, 0))})

        bundle = {
            "resourceType": "Bundle",
            "type": "searchset",
            "total": len(matches),
            "link": links,
            "entry": [
                {"fullUrl": f"{self.base_url}/Patient/{p['id']}", "resource": p}
                for p in matches[offset:offset + count]
            ],
        }
        return build_response(200, bundle, self_link)


def _matches(patient: dict[str, Any], params: dict[str, str]) -> bool:
    if "_id" in params and patient.get("id") != params["_id"]:
        return False
    if "birthdate" in params and patient.get("birthDate") != params["birthdate"]:
        return False
    if "telecom" in params:
        values = [t.get("value") for t in patient.get("telecom") or []]
        if params["telecom"] not in values:
            return False
    if "name:contains" in params:
        needle = params["name:contains"].lower()
        haystack = " ".join(
            " ".join(n.get("given") or []) + " " + (n.get("family") or "")
            for n in patient.get("name") or []
        ).lower()
        if needle not in haystack:
            return False
    return True


@pytest.fixture
def fhir_server() -> InMemoryFhirServer:
    """In-memory FHIR server."""
    return InMemoryFhirServer()


@pytest.fixture
def fhir_client(fhir_server: InMemoryFhirServer) -> FHIRClient:
    """FHIR client whose pooled session is routed to the in-memory server."""
    pool = MagicMock()
    pool.config.timeout = (10, 30)
    pool.get_session.return_value.request.side_effect = fhir_server.request
    return FHIRClient(BASE_URL, pool=pool)


@pytest.fixture
def patient_service(fhir_client: FHIRClient) -> PatientService:
    """Patient service over the in-memory server with small pages."""
    return PatientService(fhir_client, page_size=2)


@pytest.fixture
def api_client(patient_service: PatientService):
    """Flask test client for the patient API."""
    app = create_app(patient_service)
    app.config["TESTING"] = True
    return app.test_client()
