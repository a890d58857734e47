"""
Which seats exist per section.

Capacity is never cached: every call recomputes it from the seats table as
max(guaranteed minimum, highest position stored for the section), so it can
only grow past the configured minimum.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from seatdesk.core.config import settings
from seatdesk.db.store import committing, reading
from seatdesk.models.seat import Seat, SeatSlot
from seatdesk.schemas.seat import AuditRecord, AuditReport
from seatdesk.services.plans import rebind_plan
from seatdesk.services.validation import invalid_reason

logger = logging.getLogger(__name__)


def capacity_by_section() -> Dict[str, Optional[int]]:
    """Ceilings used for seat id validation; None means open-ended."""
    return {letter: settings.SECTION_CEILINGS.get(letter) for letter in settings.sections}


def section_capacity(db: Session, letter: str, minimum: Optional[int] = None) -> int:
    if minimum is None:
        minimum = settings.SECTION_MINIMUMS.get(letter, 0)
    with reading(db):
        observed = db.query(func.max(Seat.position)).filter(Seat.section == letter).scalar()
    return max(minimum, observed or 0)


def section_capacities(db: Session) -> Dict[str, int]:
    """Capacity of every configured section, in section order."""
    with reading(db):
        observed = dict(
            db.query(Seat.section, func.max(Seat.position)).group_by(Seat.section).all()
        )
    return {
        letter: max(settings.SECTION_MINIMUMS.get(letter, 0), observed.get(letter) or 0)
        for letter in settings.sections
    }


def occupied_seat_numbers(db: Session) -> set:
    """Base seat numbers with at least one active, named occupant."""
    with reading(db):
        rows = (
            db.query(Seat.seat_number)
            .join(SeatSlot, SeatSlot.seat_id == Seat.id)
            .filter(
                SeatSlot.is_active == True,  # noqa: E712
                SeatSlot.subscriber_name.isnot(None),
                func.trim(SeatSlot.subscriber_name) != "",
            )
            .distinct()
            .all()
        )
    return {row[0] for row in rows}


def available_seats(db: Session, section: Optional[str] = None) -> List[str]:
    """
    Seat numbers 1..capacity per section, minus the occupied ones, in
    natural order (A1, A2, ..., A10, ..., B1). A fresh list on every call.
    """
    capacities = section_capacities(db)
    if section is not None:
        section = section.upper()
        capacities = {section: capacities[section]} if section in capacities else {}

    occupied = occupied_seat_numbers(db)
    return [
        f"{letter}{position}"
        for letter, capacity in capacities.items()
        for position in range(1, capacity + 1)
        if f"{letter}{position}" not in occupied
    ]


def ensure_default_seats(db: Session, letter: str, minimum_count: int) -> int:
    """
    Register placeholder seats 1..minimum_count for a section that has no
    seats at all. Once any seat exists in the section this does nothing.
    Returns the number of seats created.
    """
    with reading(db):
        existing = db.query(Seat.id).filter(Seat.section == letter).first()
    if existing is not None:
        return 0

    with committing(db, f"Default seats for section {letter} were created concurrently", section=letter):
        for position in range(1, minimum_count + 1):
            seat_number = f"{letter}{position}"
            seat = Seat(seat_number=seat_number, section=letter, position=position)
            seat.slots.append(SeatSlot(slot_index=1, slot_number=seat_number, is_active=False, fee_paid=False))
            db.add(seat)

    logger.info("Initialized section %s with %d default seats", letter, minimum_count)
    return minimum_count


def ensure_all_default_seats(db: Session) -> Dict[str, int]:
    return {
        letter: ensure_default_seats(db, letter, minimum)
        for letter, minimum in settings.SECTION_MINIMUMS.items()
    }


def audit_records(db: Session, purge: bool = False) -> AuditReport:
    """
    Report stored slots whose numbers fall outside the configured sections or
    ceilings. With ``purge`` the affected seats are deleted, except seats that
    still have an active slot; those are reported in ``skipped_active``.
    """
    ceilings = capacity_by_section()
    with reading(db):
        seats = db.query(Seat).order_by(Seat.section, Seat.position).all()

    total = 0
    placeholders = 0
    invalid: List[AuditRecord] = []
    invalid_seats: List[Seat] = []
    for seat in seats:
        seat_invalid = False
        for slot in seat.slots:
            total += 1
            if not slot.subscriber_name:
                placeholders += 1
            reason = invalid_reason(slot.slot_number, ceilings)
            if reason:
                seat_invalid = True
                invalid.append(AuditRecord(
                    slot_number=slot.slot_number,
                    subscriber_name=slot.subscriber_name,
                    is_active=bool(slot.is_active),
                    reason=reason,
                ))
        if seat_invalid:
            invalid_seats.append(seat)

    report = AuditReport(total_records=total, invalid=invalid, placeholders=placeholders)
    if not purge or not invalid_seats:
        return report

    purged = 0
    with committing(db, "Seat audit purge conflicted with a concurrent write"):
        for seat in invalid_seats:
            if any(slot.is_active for slot in seat.slots):
                report.skipped_active.extend(s.slot_number for s in seat.slots if s.is_active)
                continue
            for slot in seat.slots:
                rebind_plan(slot, None)
            purged += len(seat.slots)
            db.delete(seat)

    report.purged = purged
    logger.info("Seat audit purged %d slot(s), skipped %d active", purged, len(report.skipped_active))
    return report
