from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from seatdesk.db.session import get_db
from seatdesk.api.deps import get_current_admin
from seatdesk.core.config import settings
from seatdesk.models.admin import Admin
from seatdesk.schemas.dashboard import DashboardSummary, ExpiryForecast
from seatdesk.services import dashboard

router = APIRouter(prefix="/admin/dashboard", tags=["Admin - Dashboard"])


@router.get("", response_model=DashboardSummary)
def dashboard_summary(
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    """
    Headline counters plus subscription expiry buckets:
    `expired_or_today` (0 or fewer days left) and a per-day breakdown for
    the next `EXPIRY_WINDOW_DAYS` days.
    """
    return dashboard.summary_counts(db)


@router.get("/expiring", response_model=ExpiryForecast)
def expiring_subscriptions(
    window_days: Optional[int] = Query(None, ge=1, le=365),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    """Active subscribers whose plan ends within `window_days`, soonest first."""
    window = window_days or settings.EXPIRY_WINDOW_DAYS
    entries = dashboard.expiry_forecast(db, window_days=window)
    return ExpiryForecast(window_days=window, count=len(entries), subscribers=entries)
