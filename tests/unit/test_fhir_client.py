"""Unit tests for the FHIR Patient REST client."""

from unittest.mock import MagicMock

import pytest
import requests

from fhir_patient_manager.config.schema import Config, FhirServerConfig, TransportConfig
from fhir_patient_manager.fhir.client import FHIRClient
from fhir_patient_manager.transport.http_client import FHIR_JSON


@pytest.fixture
def pool():
    """Connection pool double with a mocked session."""
    mock_pool = MagicMock()
    mock_pool.config.timeout = (10, 30)
    return mock_pool


@pytest.fixture
def session(pool):
    return pool.get_session.return_value


@pytest.fixture
def client(pool):
    return FHIRClient("http://fhir.test/fhir/", pool=pool)


class TestFHIRClientInit:
    """Test client construction."""

    def test_strips_trailing_slash(self, client):
        assert client.base_url == "http://fhir.test/fhir"
        assert client.collection_url == "http://fhir.test/fhir/Patient"

    def test_rejects_non_http_url(self, pool):
        with pytest.raises(ValueError, match="Must start with http:// or https://"):
            FHIRClient("fhir.test/fhir", pool=pool)

    def test_instance_url_quotes_id(self, client):
        assert client.instance_url("a/b c") == "http://fhir.test/fhir/Patient/a%2Fb%20c"

    def test_from_config(self):
        # Arrange
        config = Config(
            fhir=FhirServerConfig(base_url="https://hapi.test/baseR4"),
            transport=TransportConfig(timeout_connect=3, timeout_read=7, max_connections=4),
        )

        # Act
        client = FHIRClient.from_config(config)

        # Assert
        assert client.base_url == "https://hapi.test/baseR4"
        assert client.pool.config.timeout == (3, 7)
        assert client.pool.config.max_connections == 4


class TestFHIRClientRequests:
    """Test REST interactions."""

    def test_search(self, client, session, response_factory):
        # Arrange
        session.request.return_value = response_factory(200, {"resourceType": "Bundle"})

        # Act
        bundle = client.search_patients({"_count": "10"})

        # Assert
        assert bundle == {"resourceType": "Bundle"}
        session.request.assert_called_once_with(
            "GET",
            "http://fhir.test/fhir/Patient",
            timeout=(10, 30),
            params={"_count": "10"},
        )

    def test_get_page_sends_url_unchanged(self, client, session, response_factory):
        url = "http://fhir.test/fhir?_getpages=abc&_getpagesoffset=10"
        session.request.return_value = response_factory(200, {"resourceType": "Bundle"})

        client.get_page(url)

        session.request.assert_called_once_with("GET", url, timeout=(10, 30))

    def test_read(self, client, session, response_factory):
        session.request.return_value = response_factory(200, {"resourceType": "Patient", "id": "p1"})

        assert client.read_patient("p1")["id"] == "p1"
        session.request.assert_called_once_with(
            "GET", "http://fhir.test/fhir/Patient/p1", timeout=(10, 30)
        )

    def test_create_posts_fhir_json(self, client, session, response_factory):
        # Arrange
        resource = {"resourceType": "Patient"}
        session.request.return_value = response_factory(201, {"resourceType": "Patient", "id": "new"})

        # Act
        created = client.create_patient(resource)

        # Assert
        assert created["id"] == "new"
        session.request.assert_called_once_with(
            "POST",
            "http://fhir.test/fhir/Patient",
            timeout=(10, 30),
            json=resource,
            headers={"Content-Type": FHIR_JSON},
        )

    def test_update_puts_to_instance(self, client, session, response_factory):
        resource = {"resourceType": "Patient", "id": "p1"}
        session.request.return_value = response_factory(200, resource)

        client.update_patient("p1", resource)

        args, kwargs = session.request.call_args
        assert args == ("PUT", "http://fhir.test/fhir/Patient/p1")
        assert kwargs["json"] == resource

    def test_write_without_body_returns_empty(self, client, session, response_factory):
        session.request.return_value = response_factory(201)

        assert client.create_patient({"resourceType": "Patient"}) == {}

    def test_delete(self, client, session, response_factory):
        session.request.return_value = response_factory(204)

        client.delete_patient("p1")

        session.request.assert_called_once_with(
            "DELETE", "http://fhir.test/fhir/Patient/p1", timeout=(10, 30)
        )

    def test_error_status_raises_http_error(self, client, session, response_factory):
        session.request.return_value = response_factory(404, {"resourceType": "OperationOutcome"})

        with pytest.raises(requests.HTTPError):
            client.read_patient("missing")

    def test_transport_error_propagates(self, client, session):
        session.request.side_effect = requests.Timeout("read timed out")

        with pytest.raises(requests.Timeout):
            client.search_patients({})

        assert session.request.call_count == 1

    def test_close_closes_pool(self, client, pool):
        client.close()

        pool.close.assert_called_once()
