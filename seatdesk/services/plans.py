import logging
import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from seatdesk.core.errors import ConflictError, NotFoundError, ValidationError
from seatdesk.db.store import committing, reading
from seatdesk.models.plan import SubscriptionPlan
from seatdesk.models.seat import SeatSlot
from seatdesk.schemas.plan import PlanCreate, PlanUpdate
from seatdesk.services.expiry import parse_duration

logger = logging.getLogger(__name__)


def resolve_plan(db: Session, plan_ref: str) -> SubscriptionPlan:
    """Look a plan up by id, falling back to its name."""
    with reading(db):
        plan = None
        try:
            plan_id = uuid.UUID(str(plan_ref))
        except ValueError:
            plan_id = None
        if plan_id is not None:
            plan = db.query(SubscriptionPlan).filter(SubscriptionPlan.id == plan_id).first()
        if plan is None:
            plan = db.query(SubscriptionPlan).filter(SubscriptionPlan.name == plan_ref).first()
    if plan is None:
        raise NotFoundError(f"Subscription plan '{plan_ref}' not found", {"plan": plan_ref})
    return plan


def rebind_plan(slot: SeatSlot, plan: Optional[SubscriptionPlan]) -> None:
    """Move ``slot`` to ``plan``, keeping both plans' subscriber counts in step."""
    old = slot.plan
    if old is plan:
        return
    if old is not None:
        old.subscriber_count = max(0, (old.subscriber_count or 0) - 1)
    if plan is not None:
        plan.subscriber_count = (plan.subscriber_count or 0) + 1
    slot.plan = plan


def list_plans(db: Session) -> List[SubscriptionPlan]:
    with reading(db):
        return db.query(SubscriptionPlan).order_by(SubscriptionPlan.name).all()


def create_plan(db: Session, data: PlanCreate) -> SubscriptionPlan:
    parse_duration(data.duration)
    with reading(db):
        existing = db.query(SubscriptionPlan).filter(SubscriptionPlan.name == data.name).first()
    if existing is not None:
        raise ConflictError(f"Plan '{data.name}' already exists", {"plan": data.name})

    plan = SubscriptionPlan(**data.model_dump())
    with committing(db, f"Plan '{data.name}' already exists", plan=data.name):
        db.add(plan)
    db.refresh(plan)
    logger.info("Created plan %s (%s)", plan.name, plan.duration)
    return plan


def update_plan(db: Session, plan_ref: str, data: PlanUpdate) -> SubscriptionPlan:
    plan = resolve_plan(db, plan_ref)
    changes = data.model_dump(exclude_unset=True)
    missing = sorted(field for field, value in changes.items() if value is None)
    if missing:
        raise ValidationError(
            f"Plan field(s) {', '.join(missing)} cannot be empty",
            {"plan": plan.name, "fields": missing},
        )
    if "duration" in changes:
        parse_duration(changes["duration"])

    with committing(db, f"Plan '{plan.name}' could not be updated", plan=plan.name):
        for field, value in changes.items():
            setattr(plan, field, value)
    db.refresh(plan)
    return plan


def delete_plan(db: Session, plan_ref: str) -> None:
    plan = resolve_plan(db, plan_ref)
    with reading(db):
        bound = db.query(SeatSlot).filter(SeatSlot.plan_id == plan.id).count()
    if bound:
        raise ConflictError(
            f"Plan '{plan.name}' still has {bound} seat(s) bound to it",
            {"plan": plan.name, "bound_seats": bound},
        )
    name = plan.name
    with committing(db, f"Plan '{name}' could not be deleted", plan=name):
        db.delete(plan)
    logger.info("Deleted plan %s", name)
