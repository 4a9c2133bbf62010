"""Integration tests for the patient service over the FHIR client.

Exercises create, search, paging, update and delete against the in-memory
FHIR server, through the real client, mapper and search coordinator.
"""

import pytest

from fhir_patient_manager.utils.exceptions import (
    NotFoundError,
    RemoteFetchError,
    RemoteWriteError,
    ValidationError,
)

pytestmark = pytest.mark.integration


@pytest.fixture
def three_patients(patient_service):
    """Create three patients and return their ids in creation order."""
    ids = []
    for first, middle, last, dob in [
        ("Ana", "Luisa", "Silva", "1985-03-02"),
        ("Ben", None, "Okafor", "1990-07-14"),
        ("Janet", "Marie", "Doe", "2001-12-24"),
    ]:
        created = patient_service.create(
            {"first": first, "middle": middle, "last": last, "gender": "female", "dob": dob}
        )
        ids.append(created["id"])
    return ids


class TestCreateAndRead:
    """Test create followed by read."""

    def test_round_trip(self, patient_service, fhir_server):
        # Act
        created = patient_service.create(
            {"first": "Jane", "middle": "Q", "last": "Doe", "gender": "female",
             "phone": "555-0100", "dob": "1990-04-01"}
        )
        detail = patient_service.get(created["id"])

        # Assert
        assert detail.first == "Jane"
        assert detail.middle == "Q"
        assert detail.last == "Doe"
        assert detail.gender == "female"
        assert detail.phone == "555-0100"
        assert detail.dob == "1990-04-01"
        method, url, _ = fhir_server.requests[0]
        assert (method, url) == ("POST", "http://fhir.test/fhir/Patient")

    def test_rejected_create_never_reaches_server(self, patient_service, fhir_server):
        with pytest.raises(ValidationError):
            patient_service.create({"first": "Jane", "last": "Doe", "gender": "female", "dob": "4/1/1990"})

        assert fhir_server.requests == []

    def test_server_rejection(self, patient_service, fhir_server):
        fhir_server.fail_next = 422

        with pytest.raises(RemoteWriteError) as exc_info:
            patient_service.create({"first": "Jane", "last": "Doe", "gender": "female"})

        assert exc_info.value.status_code == 422
        assert exc_info.value.remote_message == "Simulated failure"


class TestSearchAndPaging:
    """Test search with server-issued page links."""

    def test_pages_forward_and_back(self, patient_service, fhir_server, three_patients):
        # Act
        first_page = patient_service.default_patients()
        second_page = patient_service.next_page(first_page)
        back = patient_service.previous_page(second_page)

        # Assert
        assert [p.name for p in first_page.patients] == ["Janet Marie Doe", "Ben Okafor"]
        assert first_page.total == 3
        assert first_page.has_next_page and not first_page.has_prev_page
        assert first_page.current_search_params == {"_sort": "-_lastUpdated"}

        assert [p.name for p in second_page.patients] == ["Ana Luisa Silva"]
        assert second_page.has_prev_page and not second_page.has_next_page

        assert [p.id for p in back.patients] == [p.id for p in first_page.patients]

    def test_continuation_sends_no_parameters(self, patient_service, fhir_server, three_patients):
        # Arrange
        first_page = patient_service.search()

        # Act
        patient_service.search(page_url=first_page.next_link)

        # Assert
        method, url, params = fhir_server.requests[-1]
        assert url == first_page.next_link
        assert params == {}
        assert fhir_server.requests[-2][2] == {"_count": "2", "_sort": "-_lastUpdated"}

    def test_filters_reported_without_paging_parameters(self, patient_service, three_patients):
        page = patient_service.search_by_name("JAN")

        assert [p.name for p in page.patients] == ["Janet Marie Doe"]
        assert page.current_search_params == {"name:contains": "JAN", "_sort": "-_lastUpdated"}

    def test_search_by_birthdate_and_id(self, patient_service, three_patients):
        by_date = patient_service.search_by_birthdate("1990-07-14")
        by_id = patient_service.search({"id": three_patients[0]})

        assert [p.name for p in by_date.patients] == ["Ben Okafor"]
        assert [p.id for p in by_id.patients] == [three_patients[0]]

    def test_summary_placeholders(self, patient_service, three_patients):
        page = patient_service.search_by_name("Ben")

        summary = page.patients[0]
        assert summary.phone == "No Phone"
        assert summary.email == "No Email"

    def test_expired_page_link(self, patient_service):
        with pytest.raises(RemoteFetchError) as exc_info:
            patient_service.search(page_url="http://fhir.test/fhir?_getpages=gone&_getpagesoffset=2")

        assert exc_info.value.status_code == 410


class TestUpdateAndDelete:
    """Test partial updates and deletion."""

    def test_first_name_update_keeps_middle(self, patient_service, fhir_server, three_patients):
        # Arrange
        patient_id = three_patients[2]

        # Act
        updated = patient_service.update(patient_id, {"first": "Jane"})

        # Assert
        name = updated["name"][0]
        assert name["given"] == ["Jane", "Marie"]
        assert name["text"] == "Jane Marie Doe"
        assert updated["meta"]["versionId"] == "2"
        assert updated["birthDate"] == "2001-12-24"

    def test_clearing_fields(self, patient_service, fhir_server):
        # Arrange
        created = patient_service.create(
            {"first": "Jane", "middle": "Q", "last": "Doe", "gender": "female",
             "phone": "555", "dob": "1990-04-01"}
        )
        fhir_server.patients[created["id"]]["telecom"].append({"system": "email", "value": "a@b.com"})

        # Act
        patient_service.update(created["id"], {"phone": "", "middle": "", "dob": ""})
        detail = patient_service.get(created["id"])

        # Assert
        stored = fhir_server.patients[created["id"]]
        assert stored["telecom"] == [{"system": "email", "value": "a@b.com"}]
        assert "birthDate" not in stored
        assert detail.middle == ""
        assert detail.email == "a@b.com"

    def test_update_unknown_patient(self, patient_service):
        with pytest.raises(NotFoundError):
            patient_service.update("nope", {"last": "Smith"})

    def test_update_fetch_failure(self, patient_service, fhir_server, three_patients):
        fhir_server.fail_next = 500

        with pytest.raises(RemoteFetchError):
            patient_service.update(three_patients[0], {"last": "Smith"})

    def test_delete_then_get(self, patient_service, three_patients):
        # Act
        result = patient_service.remove(three_patients[1])

        # Assert
        assert result == {"message": f"Patient with ID {three_patients[1]} deleted successfully."}
        with pytest.raises(NotFoundError):
            patient_service.get(three_patients[1])

    def test_delete_unknown_patient(self, patient_service):
        with pytest.raises(RemoteWriteError) as exc_info:
            patient_service.remove("nope")

        assert exc_info.value.status_code == 404
