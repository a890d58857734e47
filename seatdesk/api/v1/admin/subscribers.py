from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from seatdesk.db.session import get_db
from seatdesk.api.deps import get_current_admin
from seatdesk.models.admin import Admin
from seatdesk.schemas.common import ErrorResponse
from seatdesk.schemas.seat import SeatSlot as SeatSlotSchema, SubscriberRemoved, SubscriberUpdate
from seatdesk.services import ledger

router = APIRouter(
    prefix="/admin/subscribers",
    tags=["Admin - Subscribers"],
    responses={code: {"model": ErrorResponse} for code in (400, 404, 409, 503)},
)


@router.get("", response_model=List[SeatSlotSchema])
def list_subscribers(
    active: Optional[bool] = Query(None, description="Only active (true) or released (false) subscribers"),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return ledger.list_subscribers(db, active=active)


@router.get("/{national_id}", response_model=SeatSlotSchema)
def get_subscriber(
    national_id: str,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return ledger.get_subscriber(db, national_id)


@router.patch("/{national_id}", response_model=SeatSlotSchema)
def update_subscriber(
    national_id: str,
    data: SubscriberUpdate,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    """Edit profile fields, the fee flag or the plan. Sending `plan: null` unbinds the plan."""
    return ledger.update_subscriber(db, national_id, data)


@router.delete("/{national_id}", response_model=SubscriberRemoved)
def remove_subscriber(
    national_id: str,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    """Unbind the subscriber; their slot stays behind as an empty placeholder."""
    name = ledger.get_subscriber(db, national_id).subscriber_name
    slot = ledger.remove_subscriber(db, national_id)
    return SubscriberRemoved(national_id=national_id, seat_number=slot.slot_number, subscriber_name=name)
