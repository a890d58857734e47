from sqlalchemy import UniqueConstraint, inspect
from sqlalchemy.orm import configure_mappers

from seatdesk.db.base import Base
from seatdesk.models.seat import Seat, SeatSlot


def test_mappers_configure():
    configure_mappers()
    assert {"admins", "subscription_plans", "seats", "seat_slots"} <= set(Base.metadata.tables)


def test_seat_slot_constraints():
    table = Base.metadata.tables["seat_slots"]
    assert table.c.slot_number.unique
    assert table.c.national_id.unique
    assert table.c.national_id.nullable
    assert any(
        {c.name for c in constraint.columns} == {"seat_id", "slot_index"}
        for constraint in table.constraints
        if isinstance(constraint, UniqueConstraint)
    )


def test_seat_slots_relationship_is_ordered():
    configure_mappers()
    rel = inspect(Seat).relationships["slots"]
    assert [c.key for c in rel.order_by] == ["slot_index"]
    assert rel.cascade.delete_orphan


def test_slot_properties():
    slot = SeatSlot(slot_number="A1_2", subscriber_name="  ", is_active=True)
    assert slot.seat_number == "A1"
    assert not slot.is_occupied
    assert slot.status == "Available"
    assert slot.plan_name is None

    slot.subscriber_name = "Asha"
    assert slot.status == "Occupied"
