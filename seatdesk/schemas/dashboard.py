from typing import Optional, List
from pydantic import BaseModel
from datetime import date, datetime

from seatdesk.schemas.seat import AuditRecord, OccupantSummary


class SectionStats(BaseModel):
    total: int
    occupied: int
    available: int


# One row of the seat grid; there is a row for every seat from 1 to the section's capacity
class SeatDetail(BaseModel):
    seat_number: str
    section: str
    status: str  # Occupied, Available
    occupant_count: int = 0
    occupants: List[OccupantSummary] = []
    fee_paid: bool = False
    # Primary (first) occupant, for the table view
    subscriber_name: Optional[str] = None
    plan_name: Optional[str] = None
    join_date: Optional[datetime] = None
    expiry_date: Optional[date] = None


class SeatSnapshot(BaseModel):
    total_seats: int
    occupied: int
    available: int
    per_section: dict[str, SectionStats]
    seat_details: List[SeatDetail]
    invalid_records: List[AuditRecord] = []


class ExpiryForecastEntry(BaseModel):
    subscriber_name: str
    seat_id: str
    expiry_date: date
    days_left: int
    plan_name: str


class ExpiryForecast(BaseModel):
    window_days: int
    count: int
    subscribers: List[ExpiryForecastEntry]


class ExpiryBreakdown(BaseModel):
    expiring_soon: int
    expired_or_today: int
    breakdown: dict[int, int]  # days left -> subscribers


class DashboardSummary(BaseModel):
    subscriber_count: int
    plan_count: int
    active_count: int
    subscription_expiry: ExpiryBreakdown
