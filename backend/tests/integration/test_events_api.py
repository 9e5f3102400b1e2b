"""
Integration tests for the events endpoints.
"""

from datetime import date, timedelta

import pytest


pytestmark = pytest.mark.integration


def event_body(client_guid, **overrides):
    body = {
        "title": "Smith Anniversary",
        "event_type": "ANNIVERSARY",
        "start_date": (date.today() + timedelta(days=60)).isoformat(),
        "client_guid": client_guid,
        "location": {"name": "Harbor Hall", "city": "Portland", "state": "OR"},
        "budget": {"total": 8000, "currency": "USD"},
        "guest_count": 80,
    }
    body.update(overrides)
    return body


class TestCreate:

    def test_planner_becomes_planner_of_new_event(self, test_client, planner_user, client_user, auth_headers):
        response = test_client.post(
            "/api/events", json=event_body(client_user.guid), headers=auth_headers(planner_user),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["guid"].startswith("evt_")
        assert body["status"] == "PLANNING"
        assert body["client"]["guid"] == client_user.guid
        assert body["planner"]["guid"] == planner_user.guid
        assert body["location"]["city"] == "Portland"

    def test_client_may_not_create(self, test_client, client_user, auth_headers):
        response = test_client.post(
            "/api/events", json=event_body(client_user.guid), headers=auth_headers(client_user),
        )
        assert response.status_code == 403

    def test_non_client_as_client(self, test_client, planner_user, auth_headers):
        response = test_client.post(
            "/api/events", json=event_body(planner_user.guid), headers=auth_headers(planner_user),
        )
        assert response.status_code == 400

    def test_blank_title(self, test_client, planner_user, client_user, auth_headers):
        response = test_client.post(
            "/api/events", json=event_body(client_user.guid, title="   "), headers=auth_headers(planner_user),
        )
        assert response.status_code == 422

    def test_end_before_start(self, test_client, planner_user, client_user, auth_headers):
        start = date.today() + timedelta(days=10)
        response = test_client.post(
            "/api/events",
            json=event_body(
                client_user.guid,
                start_date=start.isoformat(),
                end_date=(start - timedelta(days=1)).isoformat(),
            ),
            headers=auth_headers(planner_user),
        )
        assert response.status_code == 422


class TestRead:

    def test_client_sees_only_own_events(self, test_client, client_user, make_user, sample_event, auth_headers):
        mine = sample_event(title="Mine")
        theirs = sample_event(title="Theirs", client=make_user())
        headers = auth_headers(client_user)

        listing = test_client.get("/api/events", headers=headers).json()
        assert [e["guid"] for e in listing["events"]] == [mine.guid]
        assert listing["total"] == 1

        assert test_client.get(f"/api/events/{mine.guid}", headers=headers).status_code == 200
        assert test_client.get(f"/api/events/{theirs.guid}", headers=headers).status_code == 404

    def test_staff_filters_by_status(self, test_client, planner_user, sample_event, auth_headers):
        from backend.src.models import EventStatus

        sample_event(title="Draft")
        confirmed = sample_event(title="Booked", status=EventStatus.CONFIRMED)

        response = test_client.get("/api/events?status=CONFIRMED", headers=auth_headers(planner_user))
        assert [e["guid"] for e in response.json()["events"]] == [confirmed.guid]

    def test_stats_and_upcoming(self, test_client, planner_user, sample_event, auth_headers):
        sample_event(title="Soon", start_date=date.today() + timedelta(days=3))
        sample_event(title="Past", start_date=date.today() - timedelta(days=3))
        headers = auth_headers(planner_user)

        stats = test_client.get("/api/events/stats", headers=headers).json()
        assert stats["total"] == 2
        assert stats["upcoming"] == 1

        upcoming = test_client.get("/api/events/upcoming", headers=headers).json()
        assert [e["title"] for e in upcoming["events"]] == ["Soon"]

    def test_malformed_guid_is_not_found(self, test_client, planner_user, auth_headers):
        response = test_client.get("/api/events/evt_bogus", headers=auth_headers(planner_user))
        assert response.status_code == 404


class TestUpdate:

    def test_forward_transitions(self, test_client, planner_user, sample_event, auth_headers):
        event = sample_event()
        headers = auth_headers(planner_user)

        for new_status in ("CONFIRMED", "IN_PROGRESS", "COMPLETED"):
            response = test_client.put(f"/api/events/{event.guid}", json={"status": new_status}, headers=headers)
            assert response.status_code == 200
            assert response.json()["status"] == new_status

    def test_terminal_status_is_final(self, test_client, planner_user, sample_event, auth_headers):
        from backend.src.models import EventStatus

        event = sample_event(status=EventStatus.CANCELLED)
        response = test_client.put(
            f"/api/events/{event.guid}", json={"status": "PLANNING"}, headers=auth_headers(planner_user),
        )
        assert response.status_code == 400
        assert "CANCELLED" in response.json()["detail"]

    def test_partial_update(self, test_client, planner_user, sample_event, auth_headers):
        event = sample_event()
        response = test_client.put(
            f"/api/events/{event.guid}", json={"guest_count": 120, "notes": "Add vegan menu"},
            headers=auth_headers(planner_user),
        )
        body = response.json()
        assert body["guest_count"] == 120
        assert body["title"] == "Garden Wedding"

    def test_update_unknown(self, test_client, planner_user, auth_headers):
        from backend.src.services.guid import GuidService

        response = test_client.put(
            f"/api/events/{GuidService.generate_guid('evt')}", json={"notes": "x"},
            headers=auth_headers(planner_user),
        )
        assert response.status_code == 404


def test_delete_event_removes_payments(test_client, planner_user, sample_event, sample_payment, auth_headers):
    event = sample_event()
    payment = sample_payment(event)
    headers = auth_headers(planner_user)

    response = test_client.delete(f"/api/events/{event.guid}", headers=headers)
    assert response.status_code == 200

    assert test_client.get(f"/api/events/{event.guid}", headers=headers).status_code == 404
    assert test_client.get(f"/api/payments/{payment.guid}", headers=headers).status_code == 404
