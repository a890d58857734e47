from seatdesk.models.seat import Seat, SeatSlot
from seatdesk.services import ledger, registry


def _store_raw_seat(db, seat_number, section, position, **slot_fields):
    """Write a seat straight to the store, bypassing seat id validation."""
    seat = Seat(seat_number=seat_number, section=section, position=position)
    seat.slots.append(SeatSlot(slot_index=1, slot_number=seat_number, **slot_fields))
    db.add(seat)
    db.commit()
    return seat


def test_default_seats_are_created_once(db):
    assert registry.ensure_default_seats(db, "B", 39) == 39
    assert registry.ensure_default_seats(db, "B", 39) == 0

    numbers = [s.seat_number for s in db.query(Seat).filter(Seat.section == "B").order_by(Seat.position)]
    assert numbers == [f"B{i}" for i in range(1, 40)]
    assert all(not s.is_occupied for s in ledger.list_all(db))


def test_default_seats_skip_section_with_any_seat(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A5", make_occupant("Asha", "NID-1"), "Monthly")
    assert registry.ensure_default_seats(db, "A", 66) == 0
    assert db.query(Seat).filter(Seat.section == "A").count() == 1


def test_ensure_all_default_seats(db):
    assert registry.ensure_all_default_seats(db) == {"A": 66, "B": 39}
    assert registry.ensure_all_default_seats(db) == {"A": 0, "B": 0}


def test_capacity_grows_past_minimum(db, monthly_plan, make_occupant):
    assert registry.section_capacities(db) == {"A": 66, "B": 39}

    ledger.allocate(db, "A70", make_occupant("Asha", "NID-1"), "Monthly")

    assert registry.section_capacity(db, "A") == 70
    assert registry.section_capacity(db, "B") == 39
    assert registry.section_capacities(db) == {"A": 70, "B": 39}


def test_capacity_never_drops_below_minimum(db):
    registry.ensure_default_seats(db, "B", 10)
    assert registry.section_capacity(db, "B") == 39
    assert registry.section_capacity(db, "B", minimum=5) == 10


def test_available_seats_in_natural_order(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A2", make_occupant("Asha", "NID-1"), "Monthly")
    ledger.allocate(db, "B1", make_occupant("Bilal", "NID-2"), "Monthly")

    seats = registry.available_seats(db)

    assert len(seats) == 66 + 39 - 2
    assert seats[:10] == ["A1", "A3", "A4", "A5", "A6", "A7", "A8", "A9", "A10", "A11"]
    assert seats[65] == "B2"
    assert "A2" not in seats and "B1" not in seats


def test_available_seats_by_section(db, monthly_plan, make_occupant):
    ledger.allocate(db, "B1", make_occupant("Bilal", "NID-2"), "Monthly")

    assert registry.available_seats(db, "b")[:2] == ["B2", "B3"]
    assert len(registry.available_seats(db, "B")) == 38
    assert registry.available_seats(db, "Z") == []


def test_shared_seat_is_unavailable_once(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    ledger.add_to_shared_seat(db, "A1", make_occupant("Bilal", "NID-2"), "Monthly")

    assert registry.occupied_seat_numbers(db) == {"A1"}
    assert len(registry.available_seats(db, "A")) == 65


def test_released_seat_is_available_again(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    ledger.release(db, "A1")
    assert registry.available_seats(db, "A")[0] == "A1"


def test_audit_reports_invalid_records(db, monthly_plan, make_occupant):
    ledger.allocate(db, "A1", make_occupant("Asha", "NID-1"), "Monthly")
    ledger.register_placeholder(db, "A2")
    _store_raw_seat(db, "C1", "C", 1, subscriber_name="Ghost", is_active=False)

    report = registry.audit_records(db)

    assert report.total_records == 3
    assert report.placeholders == 1
    assert [r.slot_number for r in report.invalid] == ["C1"]
    assert "unknown section" in report.invalid[0].reason
    assert report.purged == 0
    assert ledger.get_by_seat(db, "C1") is not None


def test_audit_purge_skips_active_records(db, monthly_plan):
    _store_raw_seat(db, "C1", "C", 1, subscriber_name="Ghost", is_active=False, plan=monthly_plan)
    monthly_plan.subscriber_count = 1
    db.commit()
    _store_raw_seat(db, "D4", "D", 4, subscriber_name="Still here", is_active=True)

    report = registry.audit_records(db, purge=True)

    assert report.purged == 1
    assert report.skipped_active == ["D4"]
    assert ledger.get_by_seat(db, "C1") is None
    assert ledger.get_by_seat(db, "D4") is not None
    assert monthly_plan.subscriber_count == 0
