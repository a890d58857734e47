from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from seatdesk.db.session import get_db
from seatdesk.api.deps import get_current_admin
from seatdesk.models.admin import Admin
from seatdesk.schemas.common import ErrorResponse
from seatdesk.schemas.plan import Plan, PlanCreate, PlanUpdate
from seatdesk.services import plans

router = APIRouter(
    prefix="/admin/plans",
    tags=["Admin - Subscription Plans"],
    responses={code: {"model": ErrorResponse} for code in (400, 404, 409, 503)},
)


@router.get("", response_model=List[Plan])
def list_plans(
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return plans.list_plans(db)


@router.post("", response_model=Plan, status_code=status.HTTP_201_CREATED)
def create_plan(
    data: PlanCreate,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return plans.create_plan(db, data)


@router.get("/{plan_ref}", response_model=Plan)
def get_plan(
    plan_ref: str,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    """`plan_ref` is the plan id or its name."""
    return plans.resolve_plan(db, plan_ref)


@router.patch("/{plan_ref}", response_model=Plan)
def update_plan(
    plan_ref: str,
    data: PlanUpdate,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return plans.update_plan(db, plan_ref, data)


@router.delete("/{plan_ref}", status_code=status.HTTP_200_OK)
def delete_plan(
    plan_ref: str,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    plans.delete_plan(db, plan_ref)
    return {"plan": plan_ref, "deleted": True}
