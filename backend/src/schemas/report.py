"""
Pydantic schemas for report responses.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from backend.src.schemas.event import EventStatsResponse
from backend.src.schemas.payment import PaymentStatsResponse


class EventsReport(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_type: Dict[str, int]
    by_month: Dict[str, int] = Field(..., description="YYYY-MM of start_date → count")
    total_guests: int
    total_budget: float


class PaymentsReport(BaseModel):
    summary: PaymentStatsResponse
    revenue_by_month: Dict[str, float] = Field(..., description="YYYY-MM of paid_date → completed amount")


class ClientSummary(BaseModel):
    guid: str
    full_name: str
    email: str
    company: Optional[str] = None
    event_count: int
    total_paid: float


class ClientsReport(BaseModel):
    total_clients: int
    active_clients: int
    clients_with_events: int
    top_clients: List[ClientSummary]


class TaskSummary(BaseModel):
    open: int
    overdue: int
    completed: int


class DashboardReport(BaseModel):
    events: EventStatsResponse
    payments: PaymentStatsResponse
    tasks: TaskSummary
    recent_activities: int = Field(..., description="Activities logged in the last 7 days")
    online_users: int
