from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from seatdesk.db.session import get_db
from seatdesk.api.deps import get_current_admin
from seatdesk.models.admin import Admin
from seatdesk.schemas.common import ErrorResponse
from seatdesk.schemas.dashboard import SeatSnapshot
from seatdesk.schemas.seat import (
    AuditReport,
    AvailableSeatsResponse,
    DefaultSeatsResponse,
    SeatAllocateRequest,
    SeatDeleteResponse,
    SeatInfo,
    SeatRegister,
    SeatRegisterResponse,
    SeatSlot as SeatSlotSchema,
    SeatUpdate,
)
from seatdesk.services import dashboard, ledger, registry

router = APIRouter(
    prefix="/admin/seats",
    tags=["Admin - Seats"],
    responses={code: {"model": ErrorResponse} for code in (400, 404, 409, 503)},
)


# ---------------------------------------------------------------------------
# Seat grid and registry
# ---------------------------------------------------------------------------


@router.get("", response_model=SeatSnapshot)
def seat_management(
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    """
    Full seat grid: every seat from 1 to each section's capacity, whether or
    not it has a record, plus per-section totals. A shared seat counts once.
    """
    return dashboard.snapshot(db)


@router.get("/available", response_model=AvailableSeatsResponse)
def list_available_seats(
    section: Optional[str] = Query(None, description="Section letter, e.g. A"),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    seats = registry.available_seats(db, section)
    return AvailableSeatsResponse(section=section, count=len(seats), available_seats=seats)


@router.post("/initialize", response_model=DefaultSeatsResponse)
def initialize_default_seats(
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    """Create the guaranteed seats of every section that has none yet."""
    return DefaultSeatsResponse(created=registry.ensure_all_default_seats(db))


@router.get("/audit", response_model=AuditReport)
def audit_seats(
    purge: bool = Query(False, description="Delete inactive records with invalid seat numbers"),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return registry.audit_records(db, purge=purge)


@router.post("", response_model=SeatRegisterResponse)
def register_seat(
    data: SeatRegister,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    """Register an empty seat. Registering an existing available seat is a no-op."""
    slot, created = ledger.register_placeholder(db, data.seat_number)
    return SeatRegisterResponse(slot=SeatSlotSchema.model_validate(slot), created=created)


# ---------------------------------------------------------------------------
# Single seat
# ---------------------------------------------------------------------------


@router.get("/{seat_number}", response_model=SeatInfo)
def get_seat(
    seat_number: str,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return ledger.describe_seat(db, seat_number)


@router.post("/{seat_number}/allocate", response_model=SeatSlotSchema)
def allocate_seat(
    seat_number: str,
    data: SeatAllocateRequest,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return ledger.allocate(db, seat_number, data.subscriber, data.plan)


@router.post(
    "/{seat_number}/occupants",
    response_model=SeatSlotSchema,
    status_code=status.HTTP_201_CREATED,
)
def add_shared_occupant(
    seat_number: str,
    data: SeatAllocateRequest,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    """Add another occupant to a seat; the new slot is numbered <seat>_2, <seat>_3, ..."""
    return ledger.add_to_shared_seat(db, seat_number, data.subscriber, data.plan)


@router.post("/{seat_number}/release", response_model=SeatSlotSchema)
def release_seat(
    seat_number: str,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return ledger.release(db, seat_number)


@router.patch("/{seat_number}", response_model=SeatSlotSchema)
def update_seat(
    seat_number: str,
    intent: SeatUpdate = Body(...),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    """
    Apply one update intent, selected by `kind`:

    - `reassign`: seat a subscriber on a released seat, or refresh the current one
    - `change_plan`: move the subscriber to another plan
    - `toggle_active`: activate or deactivate the seat
    - `set_fee_paid`: record whether the fee is paid
    - `clear`: unbind the subscriber and leave an empty slot
    """
    return ledger.update(db, seat_number, intent)


@router.delete("/{seat_number}", response_model=SeatDeleteResponse)
def delete_seat(
    seat_number: str,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    deleted = ledger.remove(db, seat_number)
    return SeatDeleteResponse(seat_number=seat_number, deleted_count=deleted)
