"""
Integration tests for the payments endpoints.
"""

from datetime import datetime, timedelta

import pytest

from backend.src.models import PaymentStatus


pytestmark = pytest.mark.integration


def test_record_payment(test_client, planner_user, client_user, sample_event, sample_vendor, auth_headers):
    event = sample_event()
    vendor = sample_vendor()
    response = test_client.post("/api/payments", json={
        "event_guid": event.guid,
        "vendor_guid": vendor.guid,
        "amount": 2500,
        "payment_method": "CREDIT_CARD",
        "payment_type": "DEPOSIT",
        "invoice_number": "INV-100",
        "is_recurring": True,
        "recurring_details": {"frequency": "MONTHLY", "interval": 1},
    }, headers=auth_headers(planner_user))

    assert response.status_code == 201
    body = response.json()
    assert body["guid"].startswith("pay_")
    assert body["status"] == "PENDING"
    assert body["event_guid"] == event.guid
    assert body["vendor_guid"] == vendor.guid
    assert body["client_guid"] == client_user.guid
    assert body["recurring_details"]["frequency"] == "MONTHLY"
    assert body["is_overdue"] is False


def test_duplicate_invoice_conflicts(test_client, planner_user, sample_event, sample_payment, auth_headers):
    event = sample_event()
    sample_payment(event, invoice_number="INV-7")
    response = test_client.post("/api/payments", json={
        "event_guid": event.guid, "amount": 10, "invoice_number": "INV-7",
    }, headers=auth_headers(planner_user))
    assert response.status_code == 409


def test_non_positive_amount(test_client, planner_user, sample_event, auth_headers):
    response = test_client.post("/api/payments", json={
        "event_guid": sample_event().guid, "amount": -5,
    }, headers=auth_headers(planner_user))
    assert response.status_code == 422


def test_clients_cannot_record(test_client, client_user, sample_event, auth_headers):
    response = test_client.post("/api/payments", json={
        "event_guid": sample_event().guid, "amount": 5,
    }, headers=auth_headers(client_user))
    assert response.status_code == 403


def test_status_lifecycle(test_client, planner_user, sample_event, sample_payment, auth_headers):
    payment = sample_payment(sample_event())
    headers = auth_headers(planner_user)

    response = test_client.put(f"/api/payments/{payment.guid}", json={"status": "COMPLETED"}, headers=headers)
    assert response.status_code == 400

    response = test_client.put(f"/api/payments/{payment.guid}", json={"status": "PROCESSING"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["paid_date"] is None

    response = test_client.put(f"/api/payments/{payment.guid}", json={"status": "COMPLETED"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["paid_date"] is not None

    response = test_client.put(f"/api/payments/{payment.guid}", json={"status": "PENDING"}, headers=headers)
    assert response.status_code == 400

    response = test_client.put(f"/api/payments/{payment.guid}", json={"status": "REFUNDED"}, headers=headers)
    assert response.json()["status"] == "REFUNDED"


def test_client_scope(test_client, client_user, make_user, sample_event, sample_payment, auth_headers):
    mine = sample_payment(sample_event())
    theirs = sample_payment(sample_event(client=make_user()))
    headers = auth_headers(client_user)

    listing = test_client.get("/api/payments", headers=headers).json()
    assert [p["guid"] for p in listing["payments"]] == [mine.guid]
    assert test_client.get(f"/api/payments/{theirs.guid}", headers=headers).status_code == 404

    stats = test_client.get("/api/payments/stats", headers=headers).json()
    assert stats["total"] == 1


def test_overdue_and_upcoming(test_client, planner_user, sample_event, sample_payment, auth_headers):
    event = sample_event()
    late = sample_payment(event, due_date=datetime.utcnow() - timedelta(days=3))
    soon = sample_payment(event, due_date=datetime.utcnow() + timedelta(days=2))
    sample_payment(event, due_date=datetime.utcnow() + timedelta(days=20))
    headers = auth_headers(planner_user)

    overdue = test_client.get("/api/payments/overdue", headers=headers).json()
    assert [p["guid"] for p in overdue["payments"]] == [late.guid]
    assert overdue["payments"][0]["is_overdue"] is True

    upcoming = test_client.get("/api/payments/upcoming?days=7", headers=headers).json()
    assert [p["guid"] for p in upcoming["payments"]] == [soon.guid]

    assert test_client.get("/api/payments/upcoming?days=-1", headers=headers).status_code == 422


def test_list_filters(test_client, planner_user, sample_event, sample_payment, auth_headers):
    first, second = sample_event(title="A"), sample_event(title="B")
    sample_payment(first, status=PaymentStatus.COMPLETED)
    sample_payment(first)
    sample_payment(second)
    headers = auth_headers(planner_user)

    response = test_client.get(f"/api/payments?event_guid={first.guid}&status=PENDING", headers=headers)
    assert response.json()["total"] == 1

    response = test_client.get("/api/payments?event_guid=evt_nope", headers=headers)
    assert response.status_code == 400


def test_delete_payment(test_client, admin_user, sample_event, sample_payment, auth_headers):
    payment = sample_payment(sample_event())
    headers = auth_headers(admin_user)
    assert test_client.delete(f"/api/payments/{payment.guid}", headers=headers).status_code == 200
    assert test_client.delete(f"/api/payments/{payment.guid}", headers=headers).status_code == 404
