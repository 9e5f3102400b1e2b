"""
Reports API endpoints (planners and administrators).

- GET /reports/events - Event counts by status, type and month
- GET /reports/payments - Payment summary and monthly revenue
- GET /reports/clients - Client counts and top clients
- GET /reports/dashboard - Landing-page figures for the caller
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import AuthContext, require_staff
from backend.src.schemas.report import ClientsReport, DashboardReport, EventsReport, PaymentsReport
from backend.src.services.realtime_service import RealtimeService, get_realtime_service
from backend.src.services.report_service import ReportService


router = APIRouter(prefix="/reports", tags=["Reports"])


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db=db)


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must be on or after start_date",
        )


@router.get("/events", response_model=EventsReport, summary="Events report")
async def events_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    ctx: AuthContext = Depends(require_staff),
    report_service: ReportService = Depends(get_report_service),
) -> EventsReport:
    _check_range(start_date, end_date)
    return EventsReport(**report_service.events_report(start_date, end_date))


@router.get("/payments", response_model=PaymentsReport, summary="Payments report")
async def payments_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    ctx: AuthContext = Depends(require_staff),
    report_service: ReportService = Depends(get_report_service),
) -> PaymentsReport:
    _check_range(start_date, end_date)
    return PaymentsReport(**report_service.payments_report(start_date, end_date))


@router.get("/clients", response_model=ClientsReport, summary="Clients report")
async def clients_report(
    ctx: AuthContext = Depends(require_staff),
    report_service: ReportService = Depends(get_report_service),
) -> ClientsReport:
    return ClientsReport(**report_service.clients_report())


@router.get("/dashboard", response_model=DashboardReport, summary="Dashboard figures")
async def dashboard(
    ctx: AuthContext = Depends(require_staff),
    report_service: ReportService = Depends(get_report_service),
    realtime: RealtimeService = Depends(get_realtime_service),
) -> DashboardReport:
    return DashboardReport(**report_service.dashboard(
        user_id=ctx.user_id,
        online_users=realtime.connected_user_count(),
    ))
