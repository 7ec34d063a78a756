from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from src.api.main import create_app
from src.integrations.google_calendar import CalendarResolver

from fakes import DEFAULT_CALENDAR, FakeCalendarService


@pytest.fixture
def client(resolver: CalendarResolver) -> TestClient:
    return TestClient(create_app(resolver))


def test_create_event_returns_saved_event(client: TestClient, calendar_service: FakeCalendarService) -> None:
    response = client.post(
        "/api/events",
        json={
            "name": "Standup",
            "start_date_time": "2024-03-01T09:00:00+00:00",
            "end_date_time": "2024-03-01T09:15:00+00:00",
            "attendees": [{"email": "ana@example.com", "display_name": "Ana"}],
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Standup"
    assert body["all_day"] is False
    assert body["calendar_id"] == DEFAULT_CALENDAR
    assert body["sort_date"] == "2024-03-01 09:00:00"
    assert body["attendees"] == [{"email": "ana@example.com", "displayName": "Ana"}]
    assert body["id"] in calendar_service.calendar(DEFAULT_CALENDAR)


def test_list_events_is_sorted(client: TestClient, calendar_service: FakeCalendarService) -> None:
    calendar_service.seed(
        {"id": "late", "summary": "Late", "start": {"date": "2024-02-01"}, "end": {"date": "2024-02-02"}},
        {"id": "early", "summary": "Early", "start": {"date": "2024-01-15"}, "end": {"date": "2024-01-16"}},
    )

    response = client.get("/api/events")

    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == ["early", "late"]
    assert response.json()[0]["all_day"] is True


def test_missing_event_returns_404(client: TestClient) -> None:
    response = client.get("/api/events/nope")

    assert response.status_code == 404


def test_malformed_remote_date_is_a_bad_request(client: TestClient, calendar_service: FakeCalendarService) -> None:
    calendar_service.seed({"id": "broken", "start": {"date": "March 1st"}, "end": {"date": "2024-03-02"}})

    response = client.get("/api/events/broken")

    assert response.status_code == 400


def test_payload_with_both_start_variants_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/api/events",
        json={"name": "Clash", "start_date": "2024-03-01", "start_date_time": "2024-03-01T09:00:00+00:00"},
    )

    assert response.status_code == 422


def test_naive_timestamp_is_a_bad_request(client: TestClient) -> None:
    response = client.post("/api/events", json={"name": "Local", "start_date_time": "2024-03-01T09:00:00"})

    assert response.status_code == 400


def test_update_keeps_existing_attendees(client: TestClient, calendar_service: FakeCalendarService) -> None:
    calendar_service.seed(
        {
            "id": "retro",
            "summary": "Retro",
            "start": {"date": "2024-04-02"},
            "end": {"date": "2024-04-03"},
            "attendees": [{"email": "ana@example.com"}],
        }
    )

    response = client.put("/api/events/retro", json={"name": "Sprint retro"})

    assert response.status_code == 200
    assert response.json()["name"] == "Sprint retro"
    assert response.json()["attendees"] == [{"email": "ana@example.com"}]


def test_add_attendee_appends_to_remote_list(client: TestClient, calendar_service: FakeCalendarService) -> None:
    calendar_service.seed(
        {"id": "kickoff", "start": {"date": "2024-06-01"}, "attendees": [{"email": "ana@example.com"}]}
    )

    response = client.post("/api/events/kickoff/attendees", json={"email": "ben@example.com", "optional": True})

    assert response.status_code == 200
    assert calendar_service.calendar(DEFAULT_CALENDAR)["kickoff"]["attendees"] == [
        {"email": "ana@example.com"},
        {"email": "ben@example.com", "optional": True},
    ]


def test_delete_event(client: TestClient, calendar_service: FakeCalendarService) -> None:
    calendar_service.seed({"id": "gone", "start": {"date": "2024-06-01"}})

    response = client.delete("/api/events/gone")

    assert response.status_code == 204
    assert "gone" not in calendar_service.calendar(DEFAULT_CALENDAR)


def test_remote_failure_maps_to_bad_gateway(client: TestClient, calendar_service: FakeCalendarService) -> None:
    calendar_service.fail_status = 503

    response = client.get("/api/events")

    assert response.status_code == 502
