"""
Tests for ReportService aggregates.
"""

from datetime import date, datetime, timedelta

import pytest

from backend.src.models import EventStatus, PaymentStatus, Task, TaskStatus
from backend.src.services.report_service import ReportService


@pytest.fixture
def report_service(test_db_session):
    return ReportService(test_db_session)


def test_events_report_by_month_and_window(report_service, sample_event):
    sample_event(title="Spring", start_date=date(2026, 4, 10))
    sample_event(title="Spring 2", start_date=date(2026, 4, 20), status=EventStatus.CONFIRMED)
    sample_event(title="Summer", start_date=date(2026, 7, 1))

    report = report_service.events_report()
    assert report["total"] == 3
    assert report["by_month"] == {"2026-04": 2, "2026-07": 1}
    assert report["by_status"]["CONFIRMED"] == 1
    assert report["by_type"]["WEDDING"] == 3
    assert report["total_budget"] == 60000

    windowed = report_service.events_report(start_date=date(2026, 4, 15), end_date=date(2026, 6, 30))
    assert windowed["total"] == 1


def test_payments_report_revenue_by_paid_month(report_service, sample_event, sample_payment, test_db_session):
    event = sample_event()
    first = sample_payment(event, amount=100, status=PaymentStatus.COMPLETED)
    second = sample_payment(event, amount=250, status=PaymentStatus.COMPLETED)
    sample_payment(event, amount=999)
    first.paid_date = datetime(2026, 1, 31, 23, 0)
    second.paid_date = datetime(2026, 2, 1, 8, 0)
    test_db_session.commit()

    report = report_service.payments_report()
    assert report["revenue_by_month"] == {"2026-01": 100, "2026-02": 250}
    assert report["summary"]["total"] == 3

    january = report_service.payments_report(start_date=date(2026, 1, 1), end_date=date(2026, 1, 31))
    assert january["revenue_by_month"] == {"2026-01": 100}


def test_clients_report_ranks_by_paid_total(report_service, sample_event, sample_payment, client_user, make_user):
    big_spender = make_user(first_name="Zed")
    make_user(is_active=False)

    sample_payment(sample_event(), amount=300, status=PaymentStatus.COMPLETED)
    sample_payment(sample_event(client=big_spender), amount=900, status=PaymentStatus.COMPLETED)
    sample_payment(sample_event(client=big_spender), amount=5000)

    report = report_service.clients_report()
    assert report["total_clients"] == 3
    assert report["active_clients"] == 2
    assert report["clients_with_events"] == 2
    assert [c["guid"] for c in report["top_clients"][:2]] == [big_spender.guid, client_user.guid]
    assert report["top_clients"][0]["total_paid"] == 900
    assert report["top_clients"][0]["event_count"] == 2


def test_dashboard_counts_callers_tasks(report_service, planner_user, admin_user, test_db_session):
    past = datetime.utcnow() - timedelta(days=1)
    test_db_session.add_all([
        Task(title="Open", owner_id=planner_user.id),
        Task(title="Late", owner_id=admin_user.id, assigned_to_id=planner_user.id, due_date=past),
        Task(title="Done", owner_id=planner_user.id, status=TaskStatus.COMPLETED),
        Task(title="Not mine", owner_id=admin_user.id),
    ])
    test_db_session.commit()

    report = report_service.dashboard(user_id=planner_user.id, online_users=4)
    assert report["tasks"] == {"open": 2, "overdue": 1, "completed": 1}
    assert report["online_users"] == 4
    assert report["recent_activities"] == 0
    assert "total" in report["events"]
    assert report["payments"]["total"] == 0
