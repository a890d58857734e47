"""
Seat identifier rules.

A base seat number is a section letter followed by a positive index
(``A1``, ``B39``). A sub-seat adds ``_<n>`` with ``n >= 2`` for the second,
third, ... occupant sharing the same physical seat (``A1_2``).
"""
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from seatdesk.core.errors import InvalidSeatIdError

_SEAT_ID_RE = re.compile(r"(?P<section>[A-Z])(?P<position>[1-9][0-9]*)(?:_(?P<slot>[1-9][0-9]*))?")


@dataclass(frozen=True)
class SeatId:
    section: str
    position: int
    slot_index: int = 1

    @property
    def base(self) -> str:
        return f"{self.section}{self.position}"

    @property
    def is_sub_seat(self) -> bool:
        return self.slot_index > 1

    def __str__(self) -> str:
        return slot_number(self.base, self.slot_index)


def slot_number(base: str, slot_index: int) -> str:
    """Identifier for the n-th occupant slot of a base seat (1 is the bare id)."""
    return base if slot_index == 1 else f"{base}_{slot_index}"


def parse_seat_id(seat_id: str) -> Optional[SeatId]:
    """Structural parse only; section membership and ceilings are not checked."""
    if not isinstance(seat_id, str):
        return None
    match = _SEAT_ID_RE.fullmatch(seat_id)
    if not match:
        return None
    slot = int(match.group("slot")) if match.group("slot") else 1
    if match.group("slot") and slot < 2:
        return None
    return SeatId(match.group("section"), int(match.group("position")), slot)


def base_seat_number(seat_id: str) -> str:
    return seat_id.split("_", 1)[0]


def invalid_reason(seat_id: str, capacity_by_section: Mapping[str, Optional[int]]) -> Optional[str]:
    """Why ``seat_id`` is not a legal seat id, or None when it is."""
    if not seat_id:
        return "seat number is empty"
    parsed = parse_seat_id(seat_id)
    if parsed is None:
        return "expected <Section><Number> or <Section><Number>_<n> (e.g. A1, B12, A1_2)"
    if parsed.section not in capacity_by_section:
        sections = ", ".join(sorted(capacity_by_section)) or "none"
        return f"unknown section '{parsed.section}' (sections: {sections})"
    ceiling = capacity_by_section[parsed.section]
    if ceiling is not None and parsed.position > ceiling:
        return f"section {parsed.section} has {ceiling} seats"
    return None


def is_valid_seat_id(seat_id: str, capacity_by_section: Mapping[str, Optional[int]]) -> bool:
    """
    True when ``seat_id`` names a seat (or sub-seat) of a known section.

    ``capacity_by_section`` maps section letter to its ceiling; a ceiling of
    None accepts any positive index.
    """
    return invalid_reason(seat_id, capacity_by_section) is None


def require_valid_seat_id(
    seat_id: str,
    capacity_by_section: Mapping[str, Optional[int]],
    allow_sub_seat: bool = True,
) -> SeatId:
    reason = invalid_reason(seat_id, capacity_by_section)
    if reason:
        raise InvalidSeatIdError(seat_id, reason)
    parsed = parse_seat_id(seat_id)
    if parsed.is_sub_seat and not allow_sub_seat:
        raise InvalidSeatIdError(seat_id, "a base seat number is required here, not a sub-seat")
    return parsed
