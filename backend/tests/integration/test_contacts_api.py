"""
Integration tests for the contacts endpoints.
"""

import pytest

from backend.src.models import UserRole


pytestmark = pytest.mark.integration


def _create(test_client, headers, **fields):
    body = {"first_name": "Priya", "last_name": "Shah", "source": "Referral", **fields}
    return test_client.post("/api/contacts", json=body, headers=headers)


def test_staff_creates_contact(test_client, planner_user, auth_headers):
    response = _create(
        test_client, auth_headers(planner_user),
        email="priya@harborbank.example",
        company="Harbor Bank",
        address={"city": "Portland", "state": "OR"},
        tags=["corporate"],
    )

    assert response.status_code == 201
    body = response.json()
    assert body["guid"].startswith("con_")
    assert body["full_name"] == "Priya Shah"
    assert body["status"] == "PROSPECT"
    assert body["owner_guid"] == planner_user.guid
    assert body["score"] == 25
    assert body["communication_preferences"]["timezone"] == "UTC"


def test_source_is_required(test_client, planner_user, auth_headers):
    response = test_client.post("/api/contacts", json={"first_name": "A", "last_name": "B"},
                                headers=auth_headers(planner_user))
    assert response.status_code == 422


def test_clients_are_forbidden(test_client, client_user, auth_headers):
    headers = auth_headers(client_user)
    assert test_client.get("/api/contacts", headers=headers).status_code == 403
    assert _create(test_client, headers).status_code == 403


def test_list_filters(test_client, planner_user, auth_headers):
    headers = auth_headers(planner_user)
    _create(test_client, headers, status="CUSTOMER", company="Harbor Bank")
    _create(test_client, headers, first_name="Leo", last_name="Park", tags=["vip"])

    body = test_client.get("/api/contacts?status=CUSTOMER", headers=headers).json()
    assert [c["first_name"] for c in body["contacts"]] == ["Priya"]
    assert test_client.get("/api/contacts?tag=VIP", headers=headers).json()["total"] == 1
    assert test_client.get("/api/contacts?search=harbor", headers=headers).json()["total"] == 1
    assert test_client.get("/api/contacts?owner_guid=usr_missing", headers=headers).status_code == 400


def test_update_broadcasts_contact_updated(test_client, planner_user, make_user, auth_headers, token_service):
    observer = make_user(role=UserRole.PLANNER)
    created = _create(test_client, auth_headers(planner_user)).json()

    with test_client.websocket_connect(f"/ws?token={token_service.create_access_token(observer)}") as ws:
        ws.send_text("ping")
        assert ws.receive_text() == "pong"

        response = test_client.put(f"/api/contacts/{created['guid']}", json={"status": "ACTIVE"},
                                   headers=auth_headers(planner_user))
        assert response.status_code == 200

        message = ws.receive_json()
        assert message["event"] == "contact:updated"
        assert message["data"]["guid"] == created["guid"]
        assert message["data"]["status"] == "ACTIVE"
        assert message["data"]["updated_by"]["id"] == planner_user.guid
        ws.close()


def test_delete_rules(test_client, planner_user, make_user, admin_user, auth_headers):
    other_planner = make_user(role=UserRole.PLANNER)
    created = _create(test_client, auth_headers(planner_user)).json()
    url = f"/api/contacts/{created['guid']}"

    assert test_client.delete(url, headers=auth_headers(other_planner)).status_code == 403
    assert test_client.delete(url, headers=auth_headers(admin_user)).json() == {"guid": created["guid"], "deleted": True}
    assert test_client.get(url, headers=auth_headers(planner_user)).status_code == 404
