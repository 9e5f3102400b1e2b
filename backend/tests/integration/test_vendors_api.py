"""
Integration tests for the vendors endpoints.
"""

import pytest


pytestmark = pytest.mark.integration


def test_staff_creates_vendor(test_client, planner_user, auth_headers):
    response = test_client.post("/api/vendors", json={
        "name": "Harbor Catering",
        "categories": ["Caterer"],
        "services": ["buffet"],
        "location": {"city": "Portland", "state": "OR"},
        "pricing": {"min_price": 1000, "max_price": 9000, "pricing_model": "PER_PERSON"},
        "contact_person": {"name": "Sam", "email": "sam@harbor.example"},
    }, headers=auth_headers(planner_user))

    assert response.status_code == 201
    body = response.json()
    assert body["guid"].startswith("vnd_")
    assert body["rating"] == {"average": 0, "count": 0}
    assert body["is_active"] is True
    assert body["pricing"]["pricing_model"] == "PER_PERSON"


def test_bad_price_range(test_client, planner_user, auth_headers):
    response = test_client.post("/api/vendors", json={
        "name": "Backwards",
        "pricing": {"min_price": 900, "max_price": 100},
    }, headers=auth_headers(planner_user))
    assert response.status_code == 422


def test_client_may_browse_but_not_create(test_client, client_user, sample_vendor, auth_headers):
    sample_vendor()
    headers = auth_headers(client_user)
    assert test_client.get("/api/vendors", headers=headers).json()["total"] == 1
    assert test_client.post("/api/vendors", json={"name": "x"}, headers=headers).status_code == 403
    assert test_client.get("/api/vendors/stats", headers=headers).status_code == 403


def test_inactive_vendors_hidden_from_clients(test_client, client_user, planner_user, sample_vendor, auth_headers):
    sample_vendor()
    sample_vendor(name="Retired", is_active=False)

    url = "/api/vendors?include_inactive=true"
    assert test_client.get(url, headers=auth_headers(client_user)).json()["total"] == 1
    assert test_client.get(url, headers=auth_headers(planner_user)).json()["total"] == 2


def test_filters(test_client, planner_user, sample_vendor, auth_headers):
    sample_vendor()
    sample_vendor(name="Lens Works", categories=["Photographer"], services=["portraits"], city="Seattle", state="WA")
    headers = auth_headers(planner_user)

    response = test_client.get("/api/vendors?category=photographer", headers=headers)
    assert [v["name"] for v in response.json()["vendors"]] == ["Lens Works"]

    response = test_client.get("/api/vendors?city=portland", headers=headers)
    assert [v["name"] for v in response.json()["vendors"]] == ["Bloom & Co"]

    response = test_client.get("/api/vendors?search=PORTRAIT", headers=headers)
    assert response.json()["total"] == 1


def test_stats(test_client, planner_user, sample_vendor, auth_headers):
    sample_vendor(is_verified=True)
    sample_vendor(name="Other", is_active=False)
    stats = test_client.get("/api/vendors/stats", headers=auth_headers(planner_user)).json()
    assert stats == {"total": 2, "active": 1, "verified": 1, "by_category": {"florist": 1}}


def test_update_and_delete(test_client, planner_user, sample_vendor, auth_headers):
    vendor = sample_vendor()
    headers = auth_headers(planner_user)

    response = test_client.put(f"/api/vendors/{vendor.guid}", json={
        "is_verified": True, "rating": {"average": 4.5, "count": 12},
    }, headers=headers)
    assert response.status_code == 200
    assert response.json()["rating"] == {"average": 4.5, "count": 12}

    assert test_client.delete(f"/api/vendors/{vendor.guid}", headers=headers).status_code == 200
    assert test_client.get(f"/api/vendors/{vendor.guid}", headers=headers).status_code == 404
