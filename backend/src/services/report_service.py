"""
Report service: read-only aggregates for planners and administrators.

Month buckets are computed in Python so results are identical on SQLite
and PostgreSQL.
"""

from collections import Counter, defaultdict
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.src.models import (
    Activity,
    CLOSED_TASK_STATUSES,
    Event,
    EventStatus,
    EventType,
    Payment,
    PaymentStatus,
    Task,
    TaskStatus,
    User,
    UserRole,
)
from backend.src.services.event_service import EventService
from backend.src.services.payment_service import PaymentService
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

TOP_CLIENTS_LIMIT = 10
RECENT_ACTIVITY_DAYS = 7


def _month(value) -> str:
    return value.strftime("%Y-%m")


class ReportService:
    """
    Service for aggregate reports.

    Usage:
        >>> service = ReportService(db_session)
        >>> service.events_report(start_date=date(2026, 1, 1))
    """

    def __init__(self, db: Session):
        self.db = db

    def events_report(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Event counts by status, type and start month within an optional date window."""
        query = self.db.query(Event)
        if start_date:
            query = query.filter(Event.start_date >= start_date)
        if end_date:
            query = query.filter(Event.start_date <= end_date)
        events = query.all()

        by_status = {s.value: 0 for s in EventStatus}
        by_type = {t.value: 0 for t in EventType}
        by_month: Counter = Counter()
        total_guests = 0
        total_budget = 0.0
        for event in events:
            by_status[event.status.value] += 1
            by_type[event.event_type.value] += 1
            by_month[_month(event.start_date)] += 1
            total_guests += event.guest_count or 0
            total_budget += float((event.budget or {}).get("total") or 0)

        return {
            "total": len(events),
            "by_status": by_status,
            "by_type": by_type,
            "by_month": dict(sorted(by_month.items())),
            "total_guests": total_guests,
            "total_budget": round(total_budget, 2),
        }

    def payments_report(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Payment summary plus completed revenue per paid month."""
        query = self.db.query(Payment).filter(
            Payment.status == PaymentStatus.COMPLETED,
            Payment.paid_date.isnot(None),
        )
        if start_date:
            query = query.filter(Payment.paid_date >= datetime.combine(start_date, datetime.min.time()))
        if end_date:
            query = query.filter(Payment.paid_date < datetime.combine(end_date + timedelta(days=1), datetime.min.time()))

        revenue: Dict[str, float] = defaultdict(float)
        for payment in query.all():
            revenue[_month(payment.paid_date)] += float(payment.amount)

        return {
            "summary": PaymentService(self.db).get_stats(),
            "revenue_by_month": {k: round(v, 2) for k, v in sorted(revenue.items())},
        }

    def clients_report(self) -> Dict[str, Any]:
        """Client counts and the top clients by completed payments."""
        clients = self.db.query(User).filter(User.role == UserRole.CLIENT).all()

        event_counts = dict(
            self.db.query(Event.client_id, func.count(Event.id))
            .group_by(Event.client_id)
            .all()
        )
        paid_totals = dict(
            self.db.query(Payment.client_id, func.sum(Payment.amount))
            .filter(Payment.status == PaymentStatus.COMPLETED)
            .group_by(Payment.client_id)
            .all()
        )

        summaries = [
            {
                "guid": client.guid,
                "full_name": client.full_name,
                "email": client.email,
                "company": client.company,
                "event_count": event_counts.get(client.id, 0),
                "total_paid": round(float(paid_totals.get(client.id) or 0), 2),
            }
            for client in clients
        ]
        summaries.sort(key=lambda s: (-s["total_paid"], -s["event_count"], s["full_name"]))

        return {
            "total_clients": len(clients),
            "active_clients": sum(1 for c in clients if c.is_active),
            "clients_with_events": sum(1 for c in clients if event_counts.get(c.id)),
            "top_clients": summaries[:TOP_CLIENTS_LIMIT],
        }

    def dashboard(self, user_id: int, online_users: int = 0) -> Dict[str, Any]:
        """
        Landing-page figures.

        Task counts are for tasks owned by or assigned to ``user_id``.
        """
        tasks = (
            self.db.query(Task)
            .filter((Task.owner_id == user_id) | (Task.assigned_to_id == user_id))
            .all()
        )
        since = datetime.utcnow() - timedelta(days=RECENT_ACTIVITY_DAYS)
        recent_activities = (
            self.db.query(func.count(Activity.id))
            .filter(Activity.created_at >= since)
            .scalar()
        )

        return {
            "events": EventService(self.db).get_stats(),
            "payments": PaymentService(self.db).get_stats(),
            "tasks": {
                "open": sum(1 for t in tasks if t.status not in CLOSED_TASK_STATUSES),
                "overdue": sum(1 for t in tasks if t.is_overdue),
                "completed": sum(1 for t in tasks if t.status == TaskStatus.COMPLETED),
            },
            "recent_activities": recent_activities or 0,
            "online_users": online_users,
        }
