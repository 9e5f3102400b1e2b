"""
Integration tests for the users and clients endpoints.
"""

import pytest


pytestmark = pytest.mark.integration


NEW_USER = {
    "email": "fresh@example.com",
    "password": "s3cret-pass",
    "first_name": "Fresh",
    "last_name": "Face",
}


class TestUsers:

    def test_admin_lists_users(self, test_client, admin_user, planner_user, client_user, auth_headers):
        response = test_client.get("/api/users", headers=auth_headers(admin_user))
        assert response.status_code == 200
        assert response.json()["total"] == 3

        response = test_client.get("/api/users?role=CLIENT", headers=auth_headers(admin_user))
        assert [u["guid"] for u in response.json()["users"]] == [client_user.guid]

    def test_non_admin_cannot_list(self, test_client, planner_user, auth_headers):
        response = test_client.get("/api/users", headers=auth_headers(planner_user))
        assert response.status_code == 403

    def test_user_reads_self_not_others(self, test_client, client_user, planner_user, auth_headers):
        headers = auth_headers(client_user)
        assert test_client.get(f"/api/users/{client_user.guid}", headers=headers).status_code == 200
        assert test_client.get(f"/api/users/{planner_user.guid}", headers=headers).status_code == 403

    def test_admin_creates_user(self, test_client, admin_user, auth_headers):
        response = test_client.post(
            "/api/users", json={**NEW_USER, "role": "PLANNER"}, headers=auth_headers(admin_user),
        )
        assert response.status_code == 201
        assert response.json()["role"] == "PLANNER"

        duplicate = test_client.post("/api/users", json=NEW_USER, headers=auth_headers(admin_user))
        assert duplicate.status_code == 409

    def test_self_edit_limited_to_profile_fields(self, test_client, client_user, auth_headers):
        headers = auth_headers(client_user)
        response = test_client.put(
            f"/api/users/{client_user.guid}", json={"job_title": "Bride"}, headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["job_title"] == "Bride"

        response = test_client.put(
            f"/api/users/{client_user.guid}", json={"role": "ADMIN"}, headers=headers,
        )
        assert response.status_code == 403

    def test_admin_deactivates_user(self, test_client, admin_user, client_user, auth_headers):
        response = test_client.put(
            f"/api/users/{client_user.guid}", json={"is_active": False}, headers=auth_headers(admin_user),
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert test_client.get("/api/auth/me", headers=auth_headers(client_user)).status_code == 401

    def test_admin_cannot_delete_self(self, test_client, admin_user, auth_headers):
        response = test_client.delete(f"/api/users/{admin_user.guid}", headers=auth_headers(admin_user))
        assert response.status_code == 400

    def test_delete_user_with_events_conflicts(self, test_client, admin_user, sample_event, client_user, auth_headers):
        sample_event()
        response = test_client.delete(f"/api/users/{client_user.guid}", headers=auth_headers(admin_user))
        assert response.status_code == 409

    def test_delete_unknown(self, test_client, admin_user, auth_headers):
        response = test_client.delete("/api/users/usr_missing", headers=auth_headers(admin_user))
        assert response.status_code == 404


class TestClients:

    def test_staff_creates_client_with_forced_role(self, test_client, planner_user, auth_headers):
        response = test_client.post(
            "/api/clients", json={**NEW_USER, "role": "ADMIN"}, headers=auth_headers(planner_user),
        )
        assert response.status_code == 201
        assert response.json()["role"] == "CLIENT"

    def test_clients_are_staff_only(self, test_client, client_user, auth_headers):
        response = test_client.get("/api/clients", headers=auth_headers(client_user))
        assert response.status_code == 403

    def test_list_only_clients(self, test_client, planner_user, client_user, admin_user, auth_headers):
        response = test_client.get("/api/clients", headers=auth_headers(planner_user))
        assert response.status_code == 200
        assert [u["guid"] for u in response.json()["users"]] == [client_user.guid]

    def test_non_client_guid_is_not_found(self, test_client, planner_user, auth_headers):
        response = test_client.get(f"/api/clients/{planner_user.guid}", headers=auth_headers(planner_user))
        assert response.status_code == 404

    def test_client_events(self, test_client, planner_user, client_user, sample_event, auth_headers):
        event = sample_event()
        response = test_client.get(f"/api/clients/{client_user.guid}/events", headers=auth_headers(planner_user))
        assert response.status_code == 200
        assert [e["guid"] for e in response.json()["events"]] == [event.guid]

    def test_role_change_rejected(self, test_client, planner_user, client_user, auth_headers):
        response = test_client.put(
            f"/api/clients/{client_user.guid}", json={"role": "PLANNER"}, headers=auth_headers(planner_user),
        )
        assert response.status_code == 400

    def test_delete_client(self, test_client, planner_user, client_user, auth_headers):
        response = test_client.delete(f"/api/clients/{client_user.guid}", headers=auth_headers(planner_user))
        assert response.status_code == 200
        assert response.json() == {"guid": client_user.guid, "deleted": True}
