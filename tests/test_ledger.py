from datetime import date

import pytest

from seatdesk.core.errors import ConflictError, InvalidSeatIdError, NotFoundError, ValidationError
from seatdesk.models.seat import Seat, SeatSlot
from seatdesk.schemas.seat import (
    ChangePlan,
    ClearOccupant,
    ReassignOccupant,
    SetFeePaid,
    SubscriberUpdate,
    ToggleActive,
)
from seatdesk.services import ledger, registry


def test_allocate_creates_seat_and_binds_plan(db, monthly_plan, make_occupant):
    slot = ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")

    assert slot.slot_number == "A1"
    assert slot.seat_number == "A1"
    assert slot.status == "Occupied"
    assert slot.plan_name == "Monthly"
    assert slot.time_slot == "Full day"
    assert monthly_plan.subscriber_count == 1
    assert ledger.get_seat(db, "A1").section == "A"


def test_second_subscriber_on_occupied_seat_conflicts(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")

    with pytest.raises(ConflictError) as exc_info:
        ledger.allocate(db, "A1", make_occupant("Bilal", "NID-2"), "Monthly")
    assert exc_info.value.detail["occupied_by"] == "Asha"

    slot = ledger.get_by_seat(db, "A1")
    assert slot.subscriber_name == "Asha"
    assert slot.is_active


def test_released_seat_can_be_allocated_again(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    released = ledger.release(db, "A1")
    assert released.status == "Available"
    # History is kept until the seat is reused
    assert released.subscriber_name == "Asha"

    slot = ledger.allocate(db, "A1", make_occupant("Bilal", "NID-2"), "Monthly")
    assert slot.subscriber_name == "Bilal"
    assert slot.national_id == "NID-2"
    assert slot.is_active


def test_release_is_idempotent(db, monthly_plan, make_occupant):
    ledger.allocate(db, "B4", make_occupant("Asha", "NID-1"), "Monthly")
    ledger.release(db, "B4")
    slot = ledger.release(db, "B4")
    assert not slot.is_active


def test_release_unknown_seat(db):
    with pytest.raises(NotFoundError):
        ledger.release(db, "A30")


def test_allocate_rejects_bad_seat_and_unknown_plan(db, monthly_plan, make_occupant):
    with pytest.raises(InvalidSeatIdError):
        ledger.allocate(db, "a1", make_occupant("Asha", "NID-1"), "Monthly")
    with pytest.raises(InvalidSeatIdError):
        ledger.allocate(db, "Q1", make_occupant("Asha", "NID-1"), "Monthly")
    with pytest.raises(NotFoundError):
        ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Quarterly")
    assert ledger.get_by_seat(db, "A1") is None


def test_allocate_to_missing_sub_seat(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    with pytest.raises(NotFoundError):
        ledger.allocate(db, "A1_2", make_occupant("Bilal", "NID-2"), "Monthly")


def test_subscriber_cannot_hold_two_active_seats(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    with pytest.raises(ConflictError) as exc_info:
        ledger.allocate(db, "A2", make_occupant("Asha", "NID-1"), "Monthly")
    assert exc_info.value.detail["seat_number"] == "A1"


def test_inactive_subscriber_moves_to_new_seat(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    ledger.release(db, "A1")

    slot = ledger.allocate(db, "A2", make_occupant("Asha", "NID-1"), "Monthly")

    assert slot.slot_number == "A2"
    old = ledger.get_by_seat(db, "A1")
    assert old.subscriber_name is None
    assert old.national_id is None
    assert old.plan is None
    assert monthly_plan.subscriber_count == 1


def test_shared_seat_numbers_run_without_gaps(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1", time_slot="Morning"), "Monthly")
    second = ledger.add_to_shared_seat(db, "A1", make_occupant("Bilal", "NID-2", time_slot="Evening"), "Monthly")
    third = ledger.add_to_shared_seat(db, "A1", make_occupant("Chen", "NID-3", time_slot="Night"), "Monthly")

    assert (second.slot_number, second.slot_index) == ("A1_2", 2)
    assert (third.slot_number, third.slot_index) == ("A1_3", 3)
    assert second.seat_number == "A1"
    assert [s.slot_number for s in ledger.get_seat(db, "A1").slots] == ["A1", "A1_2", "A1_3"]
    assert monthly_plan.subscriber_count == 3


def test_shared_add_on_unregistered_seat_takes_bare_number(db, monthly_plan, make_occupant):
    slot = ledger.add_to_shared_seat(db, "B7", make_occupant("Asha", "NID-1"), "Monthly")
    assert slot.slot_number == "B7"
    assert slot.slot_index == 1


def test_shared_add_rejects_known_subscriber(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    ledger.release(db, "A1")
    with pytest.raises(ConflictError):
        ledger.add_to_shared_seat(db, "A2", make_occupant("Asha", "NID-1"), "Monthly")


def test_shared_add_requires_base_seat(db, monthly_plan, make_occupant):
    with pytest.raises(InvalidSeatIdError):
        ledger.add_to_shared_seat(db, "A1_2", make_occupant("Asha", "NID-1"), "Monthly")


def test_change_plan_moves_subscriber_count(db, monthly_plan, fortnight_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")

    slot = ledger.update(db, "A1", ChangePlan(plan="Fortnight"))

    assert slot.plan_name == "Fortnight"
    assert monthly_plan.subscriber_count == 0
    assert fortnight_plan.subscriber_count == 1


def test_change_plan_needs_a_subscriber(db, monthly_plan):
    ledger.register_placeholder(db, "A3")
    with pytest.raises(ValidationError):
        ledger.update(db, "A3", ChangePlan(plan="Monthly"))


def test_toggle_active_and_fee_paid(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")

    slot = ledger.update(db, "A1", SetFeePaid(fee_paid=True))
    assert slot.fee_paid

    slot = ledger.update(db, "A1", ToggleActive(is_active=False))
    assert slot.status == "Available"
    slot = ledger.update(db, "A1", ToggleActive(is_active=True))
    assert slot.status == "Occupied"


def test_cannot_activate_empty_seat(db):
    ledger.register_placeholder(db, "A3")
    with pytest.raises(ValidationError):
        ledger.update(db, "A3", ToggleActive(is_active=True))


def test_reassign_released_seat(db, monthly_plan, fortnight_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    ledger.release(db, "A1")

    slot = ledger.update(
        db, "A1",
        ReassignOccupant(subscriber=make_occupant("Bilal", "NID-2", age=19), plan="Fortnight"),
    )

    assert slot.subscriber_name == "Bilal"
    assert slot.age == 19
    assert slot.plan_name == "Fortnight"
    assert slot.is_active
    assert monthly_plan.subscriber_count == 0
    assert fortnight_plan.subscriber_count == 1


def test_reassign_occupied_seat_to_someone_else_conflicts(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    with pytest.raises(ConflictError):
        ledger.update(db, "A1", ReassignOccupant(subscriber=make_occupant("Bilal", "NID-2"), plan="Monthly"))


def test_update_unknown_seat(db):
    with pytest.raises(NotFoundError):
        ledger.update(db, "A5", SetFeePaid(fee_paid=True))


def test_remove_refuses_active_seat(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    with pytest.raises(ConflictError):
        ledger.remove(db, "A1")


def test_remove_inactive_seat(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    ledger.release(db, "A1")

    assert ledger.remove(db, "A1") == 1
    assert ledger.get_by_seat(db, "A1") is None
    assert ledger.get_seat(db, "A1") is None
    assert monthly_plan.subscriber_count == 0


def test_remove_only_last_shared_slot(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    ledger.add_to_shared_seat(db, "A1", make_occupant("Bilal", "NID-2"), "Monthly")
    ledger.add_to_shared_seat(db, "A1", make_occupant("Chen", "NID-3"), "Monthly")
    ledger.release(db, "A1_2")

    with pytest.raises(ConflictError) as exc_info:
        ledger.remove(db, "A1_2")
    assert exc_info.value.detail["blocking"] == "A1_3"

    ledger.release(db, "A1_3")
    assert ledger.remove(db, "A1_3") == 1

    again = ledger.add_to_shared_seat(db, "A1", make_occupant("Dara", "NID-4"), "Monthly")
    assert again.slot_number == "A1_3"


def test_register_placeholder(db, monthly_plan, make_occupant):
    slot, created = ledger.register_placeholder(db, "B2")
    assert created
    assert slot.status == "Available"
    assert not slot.is_active

    slot, created = ledger.register_placeholder(db, "B2")
    assert not created

    ledger.allocate(db, "B2", make_occupant("Asha", "NID-1"), "Monthly")
    with pytest.raises(ConflictError):
        ledger.register_placeholder(db, "B2")
    with pytest.raises(InvalidSeatIdError):
        ledger.register_placeholder(db, "B2_2")


def test_describe_seat(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    ledger.add_to_shared_seat(db, "A1", make_occupant("Bilal", "NID-2"), "Monthly")

    info = ledger.describe_seat(db, "A1")
    assert info.status == "Occupied"
    assert [o.slot_number for o in info.occupants] == ["A1", "A1_2"]
    assert info.occupants[0].expiry_date == date(2024, 4, 1)

    sub = ledger.describe_seat(db, "A1_2")
    assert [o.name for o in sub.occupants] == ["Bilal"]

    empty = ledger.describe_seat(db, "A9")
    assert empty.status == "Available"
    assert empty.occupants == []


def test_shared_add_fills_seeded_placeholder_first(db, monthly_plan, make_occupant):
    registry.ensure_default_seats(db, "A", 66)

    numbers = [
        ledger.add_to_shared_seat(db, "A1", make_occupant(name, nid), "Monthly").slot_number
        for name, nid in [("Asha", "NID-1"), ("Bilal", "NID-2"), ("Chen", "NID-3")]
    ]

    assert numbers == ["A1", "A1_2", "A1_3"]
    assert registry.occupied_seat_numbers(db) == {"A1"}


def _stray_slot(db, slot_number):
    """A slot row whose number collides with a seat it does not belong to."""
    seat = Seat(seat_number="B30", section="B", position=30)
    seat.slots.append(SeatSlot(slot_index=1, slot_number=slot_number, is_active=False))
    db.add(seat)
    db.commit()


def test_shared_add_rechecks_generated_number(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    _stray_slot(db, "A1_2")

    with pytest.raises(ConflictError) as exc_info:
        ledger.add_to_shared_seat(db, "A1", make_occupant("Bilal", "NID-2"), "Monthly")

    assert exc_info.value.detail == {"seat_number": "A1_2"}
    assert monthly_plan.subscriber_count == 1
    assert ledger.get_seat(db, "A1").slots[-1].slot_number == "A1"


def test_shared_add_lost_race_rolls_back(db, monthly_plan, make_occupant, monkeypatch):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    _stray_slot(db, "A1_2")
    # Another writer takes A1_2 between the re-check and the commit
    monkeypatch.setattr(ledger, "get_by_seat", lambda db, seat_id: None)

    with pytest.raises(ConflictError) as exc_info:
        ledger.add_to_shared_seat(db, "A1", make_occupant("Bilal", "NID-2"), "Monthly")

    assert exc_info.value.detail["seat_number"] == "A1_2"
    monkeypatch.undo()
    assert monthly_plan.subscriber_count == 1
    assert db.query(SeatSlot).filter(SeatSlot.national_id == "NID-2").count() == 0


def test_allocate_lost_race_on_national_id(db, monthly_plan, make_occupant, monkeypatch):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    # Another writer seats the same subscriber after the holder check ran
    monkeypatch.setattr(ledger, "_holder_elsewhere", lambda db, national_id, target: None)

    with pytest.raises(ConflictError) as exc_info:
        ledger.allocate(db, "A2", make_occupant("Asha", "NID-1"), "Monthly")

    assert exc_info.value.detail["national_id"] == "NID-1"
    monkeypatch.undo()
    assert ledger.get_by_seat(db, "A2") is None
    assert monthly_plan.subscriber_count == 1


def test_clear_intent_unbinds_subscriber(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")

    slot = ledger.update(db, "A1", ClearOccupant())

    assert slot.subscriber_name is None
    assert slot.national_id is None
    assert slot.plan is None
    assert not slot.is_active
    assert monthly_plan.subscriber_count == 0
    # The subscriber can now be seated anywhere as new
    assert ledger.add_to_shared_seat(db, "A2", make_occupant("Asha", "NID-1"), "Monthly").slot_number == "A2"


def test_list_and_get_subscribers(db, monthly_plan, make_occupant):
    ledger.allocate(db, "B2", make_occupant("Bilal", "NID-2"), "Monthly")
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    ledger.add_to_shared_seat(db, "A1", make_occupant("Chen", "NID-3"), "Monthly")
    ledger.register_placeholder(db, "A5")
    ledger.release(db, "B2")

    assert [s.slot_number for s in ledger.list_subscribers(db)] == ["A1", "A1_2", "B2"]
    assert [s.national_id for s in ledger.list_subscribers(db, active=True)] == ["NID-1", "NID-3"]
    assert [s.national_id for s in ledger.list_subscribers(db, active=False)] == ["NID-2"]

    assert ledger.get_subscriber(db, "NID-3").slot_number == "A1_2"
    with pytest.raises(NotFoundError):
        ledger.get_subscriber(db, "NID-9")


def test_update_subscriber(db, monthly_plan, fortnight_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")

    slot = ledger.update_subscriber(
        db, "NID-1",
        SubscriberUpdate(name=" Asha K ", address="12 Mill Road", fee_paid=True, plan="Fortnight"),
    )

    assert slot.subscriber_name == "Asha K"
    assert slot.address == "12 Mill Road"
    assert slot.fee_paid
    assert slot.plan_name == "Fortnight"
    assert slot.is_active
    assert monthly_plan.subscriber_count == 0
    assert fortnight_plan.subscriber_count == 1

    with pytest.raises(ValidationError):
        ledger.update_subscriber(db, "NID-1", SubscriberUpdate(name=None))
    with pytest.raises(NotFoundError):
        ledger.update_subscriber(db, "NID-1", SubscriberUpdate(plan="Quarterly"))
    with pytest.raises(NotFoundError):
        ledger.update_subscriber(db, "NID-9", SubscriberUpdate(age=20))


def test_remove_subscriber_leaves_placeholder(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")

    slot = ledger.remove_subscriber(db, "NID-1")

    assert slot.slot_number == "A1"
    assert slot.status == "Available"
    assert slot.subscriber_name is None
    assert monthly_plan.subscriber_count == 0
    assert ledger.list_subscribers(db) == []
    with pytest.raises(NotFoundError):
        ledger.remove_subscriber(db, "NID-1")
