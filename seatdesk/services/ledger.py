"""
Occupancy ledger: one SeatSlot row per seat-slot, holding zero or one
subscriber.

A Seat owns its slots in slot_index order. Slot 1 carries the bare seat
number (A1); the n-th shared occupant gets slot n and the number A1_n.
Every write checks first and then relies on the store's unique constraints
(slot number, national id) to turn a lost race into a ConflictError.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Union

from sqlalchemy.orm import Session, joinedload

from seatdesk.core.config import settings
from seatdesk.core.errors import ConflictError, NotFoundError, ValidationError
from seatdesk.db.store import committing, reading
from seatdesk.models.seat import Seat, SeatSlot
from seatdesk.schemas.seat import (
    ChangePlan,
    ClearOccupant,
    OccupantIn,
    OccupantSummary,
    ReassignOccupant,
    SeatInfo,
    SetFeePaid,
    SubscriberUpdate,
    ToggleActive,
)
from seatdesk.services.expiry import compute_expiry
from seatdesk.services.plans import rebind_plan, resolve_plan
from seatdesk.services.registry import capacity_by_section
from seatdesk.services.validation import SeatId, require_valid_seat_id, slot_number

logger = logging.getLogger(__name__)

UpdateIntent = Union[ReassignOccupant, ChangePlan, ToggleActive, SetFeePaid, ClearOccupant]


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def get_by_seat(db: Session, seat_id: str) -> Optional[SeatSlot]:
    with reading(db):
        return db.query(SeatSlot).filter(SeatSlot.slot_number == seat_id).first()


def get_seat(db: Session, base_seat_id: str) -> Optional[Seat]:
    with reading(db):
        return db.query(Seat).filter(Seat.seat_number == base_seat_id).first()


def list_all(db: Session) -> List[SeatSlot]:
    """Every slot with its seat and plan loaded, in section/position/slot order."""
    with reading(db):
        return (
            db.query(SeatSlot)
            .join(Seat, SeatSlot.seat_id == Seat.id)
            .options(joinedload(SeatSlot.seat), joinedload(SeatSlot.plan))
            .order_by(Seat.section, Seat.position, SeatSlot.slot_index)
            .all()
        )


def _require_slot(db: Session, seat_id: str) -> SeatSlot:
    slot = get_by_seat(db, seat_id)
    if slot is None:
        raise NotFoundError(f"Seat {seat_id} not found", {"seat_number": seat_id})
    return slot


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _new_seat(db: Session, parsed: SeatId) -> Seat:
    seat = Seat(seat_number=parsed.base, section=parsed.section, position=parsed.position)
    db.add(seat)
    return seat


def _apply_occupant(slot: SeatSlot, occupant: OccupantIn) -> None:
    slot.subscriber_name = occupant.name.strip()
    slot.national_id = occupant.national_id
    slot.secondary_id = occupant.secondary_id
    slot.guardian_name = occupant.guardian_name
    slot.age = occupant.age
    slot.address = occupant.address
    slot.time_slot = occupant.time_slot or settings.DEFAULT_TIME_SLOT
    slot.join_date = _utc(occupant.join_date)
    slot.fee_paid = occupant.fee_paid


def _clear_occupant(slot: SeatSlot) -> None:
    rebind_plan(slot, None)
    slot.subscriber_name = None
    slot.national_id = None
    slot.secondary_id = None
    slot.guardian_name = None
    slot.age = None
    slot.address = None
    slot.time_slot = None
    slot.join_date = None
    slot.is_active = False
    slot.fee_paid = False


def _ensure_slot_free(slot: SeatSlot, national_id: str) -> None:
    if slot.is_occupied and slot.national_id != national_id:
        logger.warning("Seat %s is occupied by %s", slot.slot_number, slot.subscriber_name)
        raise ConflictError(
            f"Seat {slot.slot_number} is already occupied by {slot.subscriber_name}",
            {"seat_number": slot.slot_number, "occupied_by": slot.subscriber_name},
        )


def _holder_elsewhere(db: Session, national_id: str, target: Optional[SeatSlot]) -> Optional[SeatSlot]:
    """
    The slot currently carrying ``national_id`` when it is not ``target``.
    A subscriber sits in one seat at a time, so an active holder is a conflict.
    """
    with reading(db):
        holder = db.query(SeatSlot).filter(SeatSlot.national_id == national_id).first()
    if holder is None or (target is not None and holder.id == target.id):
        return None
    if holder.is_active:
        logger.warning("Subscriber %s already active on seat %s", national_id, holder.slot_number)
        raise ConflictError(
            f"Subscriber {national_id} already holds seat {holder.slot_number}",
            {
                "national_id": national_id,
                "seat_number": holder.slot_number,
                "subscriber_name": holder.subscriber_name,
            },
        )
    return holder


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def allocate(db: Session, seat_id: str, occupant: OccupantIn, plan_ref: str) -> SeatSlot:
    """
    Bind a subscriber to ``seat_id`` and mark the slot active.

    Creates the seat when it was never registered, otherwise overwrites the
    existing (available) slot. Sub-seat slots must already exist; new ones
    come from add_to_shared_seat. A subscriber holding an inactive slot
    elsewhere is detached from it first.
    """
    parsed = require_valid_seat_id(seat_id, capacity_by_section())
    plan = resolve_plan(db, plan_ref)

    slot = get_by_seat(db, str(parsed))
    if slot is None and parsed.is_sub_seat:
        raise NotFoundError(
            f"Sub-seat {seat_id} does not exist; add shared occupants to {parsed.base} instead",
            {"seat_number": seat_id},
        )
    if slot is not None:
        _ensure_slot_free(slot, occupant.national_id)
    previous = _holder_elsewhere(db, occupant.national_id, slot)

    with committing(
        db,
        f"Seat {seat_id} or subscriber {occupant.national_id} was taken concurrently",
        seat_number=seat_id,
        national_id=occupant.national_id,
    ):
        if previous is not None:
            logger.info("Moving subscriber %s off inactive seat %s", occupant.national_id, previous.slot_number)
            _clear_occupant(previous)
            db.flush()
        if slot is None:
            seat = get_seat(db, parsed.base) or _new_seat(db, parsed)
            slot = SeatSlot(seat=seat, slot_index=1, slot_number=parsed.base)
            db.add(slot)
        _apply_occupant(slot, occupant)
        rebind_plan(slot, plan)
        slot.is_active = True

    db.refresh(slot)
    logger.info("Allocated seat %s to %s on plan %s", slot.slot_number, slot.subscriber_name, plan.name)
    return slot


def release(db: Session, seat_id: str) -> SeatSlot:
    """Mark the slot inactive; the subscriber, plan and dates stay for history."""
    slot = _require_slot(db, seat_id)
    if not slot.is_active:
        logger.info("Seat %s already released", seat_id)
        return slot

    with committing(db, f"Seat {seat_id} could not be released", seat_number=seat_id):
        slot.is_active = False
    db.refresh(slot)
    logger.info("Released seat %s (%s)", seat_id, slot.subscriber_name)
    return slot


def add_to_shared_seat(db: Session, base_seat_id: str, occupant: OccupantIn, plan_ref: str) -> SeatSlot:
    """
    Add another occupant to a physical seat, e.g. for a different time slot.

    The first occupant of a seat takes the bare number; later ones take
    <base>_<count + 1>, so the suffixes run _2, _3, ... without gaps. A slot
    with no subscriber (a seeded placeholder, or one whose subscriber moved
    away) is filled before a new one is opened.
    """
    parsed = require_valid_seat_id(base_seat_id, capacity_by_section(), allow_sub_seat=False)

    with reading(db):
        existing = db.query(SeatSlot).filter(SeatSlot.national_id == occupant.national_id).first()
    if existing is not None:
        raise ConflictError(
            f"Subscriber {occupant.national_id} already exists on seat {existing.slot_number}",
            {
                "national_id": occupant.national_id,
                "seat_number": existing.slot_number,
                "subscriber_name": existing.subscriber_name,
            },
        )
    plan = resolve_plan(db, plan_ref)

    seat = get_seat(db, parsed.base)
    vacant = None
    if seat is not None:
        vacant = next((s for s in seat.slots if not s.subscriber_name), None)

    if vacant is not None:
        new_number = vacant.slot_number
    else:
        next_index = len(seat.slots) + 1 if seat is not None else 1
        new_number = slot_number(parsed.base, next_index)
        # The count and the write are separate steps; make sure nobody took the number in between
        if get_by_seat(db, new_number) is not None:
            raise ConflictError(
                f"Seat slot {new_number} was taken while it was being assigned",
                {"seat_number": new_number},
            )

    with committing(
        db,
        f"Seat slot {new_number} or subscriber {occupant.national_id} was taken concurrently",
        seat_number=new_number,
        national_id=occupant.national_id,
    ):
        if vacant is not None:
            slot = vacant
        else:
            if seat is None:
                seat = _new_seat(db, parsed)
            slot = SeatSlot(seat=seat, slot_index=next_index, slot_number=new_number)
            db.add(slot)
        _apply_occupant(slot, occupant)
        rebind_plan(slot, plan)
        slot.is_active = True

    db.refresh(slot)
    logger.info("Added %s to seat %s as %s", slot.subscriber_name, parsed.base, new_number)
    return slot


def update(db: Session, seat_id: str, intent: UpdateIntent) -> SeatSlot:
    slot = _require_slot(db, seat_id)
    plan = None
    previous = None

    if isinstance(intent, ReassignOccupant):
        plan = resolve_plan(db, intent.plan)
        _ensure_slot_free(slot, intent.subscriber.national_id)
        previous = _holder_elsewhere(db, intent.subscriber.national_id, slot)
    elif isinstance(intent, ChangePlan):
        if not slot.subscriber_name:
            raise ValidationError(f"Seat {seat_id} has no subscriber to put on a plan", {"seat_number": seat_id})
        plan = resolve_plan(db, intent.plan)
    elif isinstance(intent, ToggleActive):
        if intent.is_active and not slot.subscriber_name:
            raise ValidationError(f"Seat {seat_id} has no subscriber to activate", {"seat_number": seat_id})
    elif not isinstance(intent, (SetFeePaid, ClearOccupant)):
        raise ValidationError(f"Unsupported seat update '{type(intent).__name__}'")

    with committing(db, f"Seat {seat_id} update conflicted with another write", seat_number=seat_id):
        if isinstance(intent, ReassignOccupant):
            if previous is not None:
                _clear_occupant(previous)
                db.flush()
            _apply_occupant(slot, intent.subscriber)
            rebind_plan(slot, plan)
            slot.is_active = intent.is_active
        elif isinstance(intent, ChangePlan):
            rebind_plan(slot, plan)
        elif isinstance(intent, ToggleActive):
            slot.is_active = intent.is_active
        elif isinstance(intent, ClearOccupant):
            _clear_occupant(slot)
        else:
            slot.fee_paid = intent.fee_paid

    db.refresh(slot)
    logger.info("Updated seat %s (%s)", seat_id, intent.kind)
    return slot


def remove(db: Session, seat_id: str) -> int:
    """
    Delete an inactive slot permanently. Only the last slot of a seat may go,
    which keeps the suffix sequence gap-free; the seat row goes with its
    last slot.
    """
    require_valid_seat_id(seat_id, capacity_by_section())
    slot = _require_slot(db, seat_id)
    if slot.is_active:
        raise ConflictError(
            f"Cannot delete seat {seat_id} while it is occupied by {slot.subscriber_name}",
            {"seat_number": seat_id, "occupied_by": slot.subscriber_name},
        )
    seat = slot.seat
    last = seat.slots[-1]
    if last.id != slot.id:
        raise ConflictError(
            f"Remove {last.slot_number} before {seat_id}",
            {"seat_number": seat_id, "blocking": last.slot_number},
        )

    with committing(db, f"Seat {seat_id} could not be deleted", seat_number=seat_id):
        rebind_plan(slot, None)
        if len(seat.slots) == 1:
            db.delete(seat)
        else:
            seat.slots.remove(slot)
    logger.info("Deleted seat %s", seat_id)
    return 1


def register_placeholder(db: Session, seat_id: str) -> tuple[SeatSlot, bool]:
    """Register an empty seat. Returns the slot and whether it was created."""
    parsed = require_valid_seat_id(seat_id, capacity_by_section(), allow_sub_seat=False)
    slot = get_by_seat(db, parsed.base)
    if slot is not None:
        if slot.is_occupied:
            raise ConflictError(
                f"Seat {seat_id} is already occupied by {slot.subscriber_name}",
                {"seat_number": seat_id, "occupied_by": slot.subscriber_name},
            )
        return slot, False

    with committing(db, f"Seat {seat_id} already exists", seat_number=seat_id):
        seat = _new_seat(db, parsed)
        slot = SeatSlot(seat=seat, slot_index=1, slot_number=parsed.base, is_active=False, fee_paid=False)
        db.add(slot)
    db.refresh(slot)
    logger.info("Registered seat %s", seat_id)
    return slot, True


# ---------------------------------------------------------------------------
# Subscribers
# ---------------------------------------------------------------------------


def list_subscribers(db: Session, active: Optional[bool] = None) -> List[SeatSlot]:
    """Slots carrying a subscriber, in seat order; ``active`` narrows to one state."""
    with reading(db):
        query = (
            db.query(SeatSlot)
            .join(Seat, SeatSlot.seat_id == Seat.id)
            .options(joinedload(SeatSlot.plan))
            .filter(SeatSlot.national_id.isnot(None))
        )
        if active is not None:
            query = query.filter(SeatSlot.is_active == active)
        return query.order_by(Seat.section, Seat.position, SeatSlot.slot_index).all()


def get_subscriber(db: Session, national_id: str) -> SeatSlot:
    with reading(db):
        slot = db.query(SeatSlot).filter(SeatSlot.national_id == national_id).first()
    if slot is None:
        raise NotFoundError(f"Subscriber {national_id} not found", {"national_id": national_id})
    return slot


def update_subscriber(db: Session, national_id: str, data: SubscriberUpdate) -> SeatSlot:
    """Edit a subscriber's profile, fee flag or plan in place on their slot."""
    slot = get_subscriber(db, national_id)
    changes = data.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is None:
        raise ValidationError("Subscriber name cannot be empty", {"national_id": national_id})
    if "fee_paid" in changes and changes["fee_paid"] is None:
        raise ValidationError("fee_paid must be true or false", {"national_id": national_id})

    plan = None
    if changes.get("plan") is not None:
        plan = resolve_plan(db, changes["plan"])

    with committing(db, f"Subscriber {national_id} update conflicted with another write", national_id=national_id):
        for field in ("secondary_id", "guardian_name", "age", "address", "time_slot"):
            if field in changes:
                setattr(slot, field, changes[field])
        if "name" in changes:
            slot.subscriber_name = changes["name"].strip()
        if changes.get("join_date") is not None:
            slot.join_date = _utc(changes["join_date"])
        if "fee_paid" in changes:
            slot.fee_paid = changes["fee_paid"]
        if "plan" in changes:
            rebind_plan(slot, plan)

    db.refresh(slot)
    logger.info("Updated subscriber %s on seat %s", national_id, slot.slot_number)
    return slot


def remove_subscriber(db: Session, national_id: str) -> SeatSlot:
    """
    Unbind a subscriber from their slot. The slot stays as an empty, inactive
    placeholder and the plan loses the subscriber.
    """
    slot = get_subscriber(db, national_id)
    name = slot.subscriber_name
    with committing(db, f"Subscriber {national_id} could not be removed", national_id=national_id):
        _clear_occupant(slot)
    db.refresh(slot)
    logger.info("Removed subscriber %s (%s) from seat %s", national_id, name, slot.slot_number)
    return slot


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


def slot_expiry(slot: SeatSlot) -> Optional[datetime]:
    if slot.plan is None or slot.join_date is None:
        return None
    return compute_expiry(slot.join_date, slot.plan.duration)


def summarize_slot(slot: SeatSlot) -> OccupantSummary:
    expiry = slot_expiry(slot)
    return OccupantSummary(
        slot_number=slot.slot_number,
        name=slot.subscriber_name,
        national_id=slot.national_id,
        plan_name=slot.plan_name,
        time_slot=slot.time_slot,
        guardian_name=slot.guardian_name,
        join_date=slot.join_date,
        expiry_date=expiry.date() if expiry else None,
        fee_paid=bool(slot.fee_paid),
        is_active=bool(slot.is_active),
    )


def describe_seat(db: Session, seat_id: str) -> SeatInfo:
    """
    Occupants of a seat. A base number covers all of its slots, a sub-seat
    number only itself; a valid number with no record reads as Available.
    """
    parsed = require_valid_seat_id(seat_id, capacity_by_section())
    if parsed.is_sub_seat:
        slot = get_by_seat(db, str(parsed))
        slots = [slot] if slot is not None else []
    else:
        seat = get_seat(db, parsed.base)
        slots = list(seat.slots) if seat is not None else []

    occupied = any(s.is_occupied for s in slots)
    return SeatInfo(
        seat_number=str(parsed),
        section=parsed.section,
        status="Occupied" if occupied else "Available",
        occupants=[summarize_slot(s) for s in slots if s.subscriber_name],
    )
