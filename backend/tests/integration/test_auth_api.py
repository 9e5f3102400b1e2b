"""
Integration tests for the authentication endpoints.
"""

import pytest


pytestmark = pytest.mark.integration


class TestRegister:

    def test_register_signs_in(self, test_client):
        response = test_client.post("/api/auth/register", json={
            "email": "  New.Planner@Example.com ",
            "password": "s3cret-pass",
            "first_name": "New",
            "last_name": "Planner",
            "role": "PLANNER",
            "company": "Acme Events",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"] and body["refresh_token"]
        assert body["user"]["email"] == "new.planner@example.com"
        assert body["user"]["role"] == "PLANNER"
        assert "password_hash" not in body["user"]
        assert response.cookies.get("token") == body["access_token"]

    def test_register_duplicate_email(self, test_client, client_user):
        response = test_client.post("/api/auth/register", json={
            "email": "client@example.com",
            "password": "s3cret-pass",
            "first_name": "Dup",
            "last_name": "User",
        })
        assert response.status_code == 409

    def test_cannot_self_register_admin(self, test_client):
        response = test_client.post("/api/auth/register", json={
            "email": "boss@example.com",
            "password": "s3cret-pass",
            "first_name": "Boss",
            "last_name": "User",
            "role": "ADMIN",
        })
        assert response.status_code == 422

    def test_short_password(self, test_client):
        response = test_client.post("/api/auth/register", json={
            "email": "short@example.com",
            "password": "short",
            "first_name": "Short",
            "last_name": "Pass",
        })
        assert response.status_code == 422


class TestLogin:

    def test_login_and_me(self, test_client, planner_user, test_password):
        response = test_client.post("/api/auth/login", json={
            "email": "PLANNER@example.com",
            "password": test_password,
        })
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = test_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["guid"] == planner_user.guid
        assert me.json()["last_login_at"] is not None

    def test_cookie_authenticates(self, test_client, client_user, test_password):
        test_client.post("/api/auth/login", json={"email": "client@example.com", "password": test_password})
        assert test_client.get("/api/auth/me").status_code == 200

        test_client.post("/api/auth/logout")
        test_client.cookies.clear()
        assert test_client.get("/api/auth/me").status_code == 401

    def test_wrong_password(self, test_client, client_user):
        response = test_client.post("/api/auth/login", json={
            "email": "client@example.com",
            "password": "nope-nope-nope",
        })
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_unknown_email_gets_same_message(self, test_client):
        response = test_client.post("/api/auth/login", json={
            "email": "ghost@example.com",
            "password": "whatever-123",
        })
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_deactivated_user(self, test_client, make_user, test_password):
        make_user(email="gone@example.com", is_active=False)
        response = test_client.post("/api/auth/login", json={
            "email": "gone@example.com",
            "password": test_password,
        })
        assert response.status_code == 401


class TestTokens:

    def test_refresh(self, test_client, client_user, token_service):
        refresh_token = token_service.create_refresh_token(client_user)
        response = test_client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
        assert response.status_code == 200
        assert response.json()["user"]["guid"] == client_user.guid

    def test_access_token_is_not_a_refresh_token(self, test_client, client_user, token_service):
        access_token = token_service.create_access_token(client_user)
        response = test_client.post("/api/auth/refresh", json={"refresh_token": access_token})
        assert response.status_code == 401

    def test_me_requires_token(self, test_client):
        response = test_client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authorized to access this route"

    def test_garbage_token(self, test_client):
        response = test_client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401

    def test_token_for_deactivated_user(self, test_client, make_user, auth_headers):
        user = make_user(is_active=False)
        response = test_client.get("/api/auth/me", headers=auth_headers(user))
        assert response.status_code == 401
        assert response.json()["detail"] == "User account is deactivated"


class TestChangePassword:

    def test_change_password(self, test_client, client_user, auth_headers, test_password):
        response = test_client.put(
            "/api/auth/password",
            json={"current_password": test_password, "new_password": "brand-new-pass"},
            headers=auth_headers(client_user),
        )
        assert response.status_code == 200

        login = test_client.post("/api/auth/login", json={
            "email": "client@example.com",
            "password": "brand-new-pass",
        })
        assert login.status_code == 200

    def test_wrong_current_password(self, test_client, client_user, auth_headers):
        response = test_client.put(
            "/api/auth/password",
            json={"current_password": "not-it-at-all", "new_password": "brand-new-pass"},
            headers=auth_headers(client_user),
        )
        assert response.status_code == 400
