"""
Integration tests for the leads endpoints.
"""

import pytest

from backend.src.models import UserRole


pytestmark = pytest.mark.integration


def _create(test_client, headers, **fields):
    body = {"first_name": "Marco", "last_name": "Rossi", "source": "Trade show", **fields}
    return test_client.post("/api/leads", json=body, headers=headers)


def test_create_derives_score(test_client, planner_user, auth_headers):
    response = _create(
        test_client, auth_headers(planner_user),
        company="Rossi Wines",
        estimated_value=12000,
        currency="EUR",
        lead_source={"type": "EVENT", "campaign": "Spring expo"},
        qualification_criteria={"budget": True, "authority": True},
        score=5,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["guid"].startswith("led_")
    assert body["status"] == "NEW"
    assert body["priority"] == "MEDIUM"
    assert body["score"] == 65
    assert body["currency"] == "EUR"
    assert body["days_in_pipeline"] == 0
    assert body["lead_source"]["campaign"] == "Spring expo"


@pytest.mark.parametrize("field, value", [
    ("currency", "JPY"),
    ("estimated_value", -1),
    ("status", "ARCHIVED"),
])
def test_invalid_fields_rejected(test_client, planner_user, auth_headers, field, value):
    response = _create(test_client, auth_headers(planner_user), **{field: value})
    assert response.status_code == 422


def test_contact_link(test_client, planner_user, auth_headers):
    headers = auth_headers(planner_user)
    contact = test_client.post("/api/contacts", json={
        "first_name": "Marco", "last_name": "Rossi", "source": "Trade show",
    }, headers=headers).json()

    body = _create(test_client, headers, contact_guid=contact["guid"]).json()
    assert body["contact_guid"] == contact["guid"]

    assert _create(test_client, headers, contact_guid="con_missing").status_code == 400


def test_close_and_reopen(test_client, planner_user, auth_headers):
    headers = auth_headers(planner_user)
    lead = _create(test_client, headers).json()
    url = f"/api/leads/{lead['guid']}"

    closed = test_client.put(url, json={"status": "CLOSED_WON"}, headers=headers).json()
    assert closed["actual_close_date"].endswith("Z")

    reopened = test_client.put(url, json={"status": "QUALIFIED"}, headers=headers).json()
    assert reopened["actual_close_date"] is None


def test_list_orders_by_score(test_client, planner_user, auth_headers):
    headers = auth_headers(planner_user)
    _create(test_client, headers, first_name="Cold")
    _create(test_client, headers, first_name="Warm", qualification_criteria={"need": True})

    body = test_client.get("/api/leads", headers=headers).json()
    assert [lead["first_name"] for lead in body["leads"]] == ["Warm", "Cold"]
    assert test_client.get("/api/leads?min_score=25", headers=headers).json()["total"] == 1


def test_update_broadcasts_lead_updated(test_client, planner_user, make_user, auth_headers, token_service):
    observer = make_user(role=UserRole.PLANNER)
    lead = _create(test_client, auth_headers(planner_user)).json()

    with test_client.websocket_connect(f"/ws?token={token_service.create_access_token(observer)}") as ws:
        ws.send_text("ping")
        assert ws.receive_text() == "pong"

        test_client.put(f"/api/leads/{lead['guid']}", json={"priority": "URGENT"},
                        headers=auth_headers(planner_user))

        message = ws.receive_json()
        assert message["event"] == "lead:updated"
        assert message["data"]["priority"] == "URGENT"
        assert message["data"]["updated_by"]["name"] == planner_user.full_name
        ws.close()


def test_clients_are_forbidden(test_client, client_user, auth_headers):
    assert test_client.get("/api/leads", headers=auth_headers(client_user)).status_code == 403


def test_missing_lead(test_client, planner_user, auth_headers):
    headers = auth_headers(planner_user)
    assert test_client.get("/api/leads/led_missing", headers=headers).status_code == 404
    assert test_client.put("/api/leads/led_missing", json={}, headers=headers).status_code == 404
    assert test_client.delete("/api/leads/led_missing", headers=headers).status_code == 404
