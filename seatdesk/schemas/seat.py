from typing import Annotated, Literal, Optional, List, Union
from pydantic import BaseModel, Field, UUID4
from datetime import date, datetime


# Subscriber fields supplied when a seat is allocated or shared
class OccupantIn(BaseModel):
    name: Annotated[str, Field(min_length=1, max_length=120)]
    national_id: Annotated[str, Field(min_length=1, max_length=32)]
    secondary_id: Optional[str] = None
    guardian_name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0)
    address: Optional[str] = None
    time_slot: Optional[str] = None      # defaults to settings.DEFAULT_TIME_SLOT
    join_date: Optional[datetime] = None  # defaults to now
    fee_paid: bool = False


# POST /admin/seats/{seat_number}/allocate and /occupants
class SeatAllocateRequest(BaseModel):
    subscriber: OccupantIn
    plan: str  # plan name or plan id


# POST /admin/seats: register an empty seat
class SeatRegister(BaseModel):
    seat_number: str


# --- Update intents (PATCH /admin/seats/{seat_number}) ---

class ReassignOccupant(BaseModel):
    kind: Literal["reassign"] = "reassign"
    subscriber: OccupantIn
    plan: str
    is_active: bool = True


class ChangePlan(BaseModel):
    kind: Literal["change_plan"] = "change_plan"
    plan: str


class ToggleActive(BaseModel):
    kind: Literal["toggle_active"] = "toggle_active"
    is_active: bool


class SetFeePaid(BaseModel):
    kind: Literal["set_fee_paid"] = "set_fee_paid"
    fee_paid: bool


class ClearOccupant(BaseModel):
    kind: Literal["clear"] = "clear"


SeatUpdate = Annotated[
    Union[ReassignOccupant, ChangePlan, ToggleActive, SetFeePaid, ClearOccupant],
    Field(discriminator="kind"),
]


# One occupant slot as stored
class SeatSlot(BaseModel):
    id: UUID4
    slot_number: str
    seat_number: str
    slot_index: int
    status: str  # Occupied, Available
    subscriber_name: Optional[str] = None
    national_id: Optional[str] = None
    secondary_id: Optional[str] = None
    guardian_name: Optional[str] = None
    age: Optional[int] = None
    address: Optional[str] = None
    time_slot: Optional[str] = None
    plan_id: Optional[UUID4] = None
    plan_name: Optional[str] = None
    join_date: Optional[datetime] = None
    is_active: bool
    fee_paid: bool

    class Config:
        from_attributes = True


# Compact occupant for seat info and the seat grid
class OccupantSummary(BaseModel):
    slot_number: str
    name: Optional[str] = None
    national_id: Optional[str] = None
    plan_name: Optional[str] = None
    time_slot: Optional[str] = None
    guardian_name: Optional[str] = None
    join_date: Optional[datetime] = None
    expiry_date: Optional[date] = None
    fee_paid: bool = False
    is_active: bool = False


# GET /admin/seats/{seat_number}
class SeatInfo(BaseModel):
    seat_number: str
    section: str
    status: str
    occupants: List[OccupantSummary] = []


class SeatDeleteResponse(BaseModel):
    seat_number: str
    deleted_count: int


class SeatRegisterResponse(BaseModel):
    slot: SeatSlot
    created: bool


class AvailableSeatsResponse(BaseModel):
    section: Optional[str] = None
    count: int
    available_seats: List[str]


class DefaultSeatsResponse(BaseModel):
    created: dict[str, int]


# --- Audit (GET /admin/seats/audit) ---

class AuditRecord(BaseModel):
    slot_number: str
    subscriber_name: Optional[str] = None
    is_active: bool
    reason: str


class AuditReport(BaseModel):
    total_records: int
    invalid: List[AuditRecord]
    placeholders: int
    purged: int = 0
    skipped_active: List[str] = []


# --- Subscribers (/admin/subscribers/{national_id}) ---

# Profile edits for a subscriber found by national id; seat moves go through allocate
class SubscriberUpdate(BaseModel):
    name: Optional[Annotated[str, Field(min_length=1, max_length=120)]] = None
    secondary_id: Optional[str] = None
    guardian_name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0)
    address: Optional[str] = None
    time_slot: Optional[str] = None
    join_date: Optional[datetime] = None
    fee_paid: Optional[bool] = None
    plan: Optional[str] = None  # plan name or plan id


class SubscriberRemoved(BaseModel):
    national_id: str
    seat_number: str
    subscriber_name: Optional[str] = None
