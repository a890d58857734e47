"""
Read-only views over the ledger: the seat grid, the expiry forecast and the
dashboard counters.

Each call is a full scan without a transaction spanning concurrent writers,
so a view can mix states from just before and just after a write.
"""
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from seatdesk.core.config import settings
from seatdesk.db.store import reading
from seatdesk.models.plan import SubscriptionPlan
from seatdesk.models.seat import SeatSlot
from seatdesk.schemas.dashboard import (
    DashboardSummary,
    ExpiryBreakdown,
    ExpiryForecastEntry,
    SeatDetail,
    SeatSnapshot,
    SectionStats,
)
from seatdesk.schemas.seat import AuditRecord, OccupantSummary
from seatdesk.services.expiry import EXPIRED_OR_TODAY, classify_bucket, days_until
from seatdesk.services.ledger import list_all, slot_expiry, summarize_slot
from seatdesk.services.registry import capacity_by_section, section_capacities
from seatdesk.services.validation import invalid_reason


def snapshot(db: Session) -> SeatSnapshot:
    capacities = section_capacities(db)
    ceilings = capacity_by_section()

    occupants: Dict[str, List[OccupantSummary]] = defaultdict(list)
    invalid: List[AuditRecord] = []
    for slot in list_all(db):
        reason = invalid_reason(slot.slot_number, ceilings)
        if reason:
            invalid.append(AuditRecord(
                slot_number=slot.slot_number,
                subscriber_name=slot.subscriber_name,
                is_active=bool(slot.is_active),
                reason=reason,
            ))
            continue
        if slot.is_occupied:
            occupants[slot.seat_number].append(summarize_slot(slot))

    details: List[SeatDetail] = []
    per_section: Dict[str, SectionStats] = {}
    for letter, capacity in capacities.items():
        occupied_here = 0
        for position in range(1, capacity + 1):
            seat_number = f"{letter}{position}"
            seated = occupants.get(seat_number)
            if not seated:
                details.append(SeatDetail(seat_number=seat_number, section=letter, status="Available"))
                continue
            occupied_here += 1
            primary = seated[0]
            details.append(SeatDetail(
                seat_number=seat_number,
                section=letter,
                status="Occupied",
                occupant_count=len(seated),
                occupants=seated,
                fee_paid=any(o.fee_paid for o in seated),
                subscriber_name=primary.name,
                plan_name=primary.plan_name,
                join_date=primary.join_date,
                expiry_date=primary.expiry_date,
            ))
        per_section[letter] = SectionStats(
            total=capacity,
            occupied=occupied_here,
            available=capacity - occupied_here,
        )

    total = sum(capacities.values())
    occupied = sum(stats.occupied for stats in per_section.values())
    return SeatSnapshot(
        total_seats=total,
        occupied=occupied,
        available=total - occupied,
        per_section=per_section,
        seat_details=details,
        invalid_records=invalid,
    )


def _occupied_slots(db: Session) -> List[SeatSlot]:
    with reading(db):
        slots = (
            db.query(SeatSlot)
            .options(joinedload(SeatSlot.plan))
            .filter(SeatSlot.is_active == True)  # noqa: E712
            .all()
        )
    return [s for s in slots if s.is_occupied]


def _subscribed_slots(slots: List[SeatSlot]) -> List[SeatSlot]:
    """Slots bound to a plan with a join date; anything else is skipped."""
    return [s for s in slots if s.plan is not None and s.join_date is not None]


def expiry_forecast(
    db: Session,
    window_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[ExpiryForecastEntry]:
    """Subscribers whose plan runs out within ``window_days``, soonest first."""
    window_days = settings.EXPIRY_WINDOW_DAYS if window_days is None else window_days
    now = now or datetime.now(timezone.utc)

    entries = []
    for slot in _subscribed_slots(_occupied_slots(db)):
        expiry = slot_expiry(slot)
        days_left = days_until(expiry, now)
        if 0 < days_left <= window_days:
            entries.append(ExpiryForecastEntry(
                subscriber_name=slot.subscriber_name,
                seat_id=slot.slot_number,
                expiry_date=expiry.date(),
                days_left=days_left,
                plan_name=slot.plan.name,
            ))
    entries.sort(key=lambda e: (e.days_left, e.seat_id))
    return entries


def summary_counts(db: Session, now: Optional[datetime] = None) -> DashboardSummary:
    window_days = settings.EXPIRY_WINDOW_DAYS
    now = now or datetime.now(timezone.utc)

    with reading(db):
        subscriber_count = db.query(SeatSlot).filter(SeatSlot.national_id.isnot(None)).count()
        plan_count = db.query(SubscriptionPlan).count()

    occupied = _occupied_slots(db)
    breakdown = {day: 0 for day in range(1, window_days + 1)}
    expired = 0
    for slot in _subscribed_slots(occupied):
        bucket = classify_bucket(days_until(slot_expiry(slot), now), window_days)
        if bucket == EXPIRED_OR_TODAY:
            expired += 1
        elif bucket is not None:
            breakdown[bucket] += 1

    return DashboardSummary(
        subscriber_count=subscriber_count,
        plan_count=plan_count,
        active_count=len(occupied),
        subscription_expiry=ExpiryBreakdown(
            expiring_soon=sum(breakdown.values()),
            expired_or_today=expired,
            breakdown=breakdown,
        ),
    )
