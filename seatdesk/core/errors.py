"""
Error taxonomy for seat allocation.

Services raise these; the HTTP layer maps them onto responses in one place
(see ``seatdesk.main``) so routes stay thin.
"""
from __future__ import annotations

from typing import Any, Optional

STATUS_BAD_REQUEST = 400
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_SERVICE_UNAVAILABLE = 503


class SeatingError(Exception):
    error = "seating_error"
    status_code = 500

    def __init__(self, message: str, detail: Optional[dict[str, Any]] = None):
        self.message = message
        self.detail = detail or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.message, **self.detail}


class ValidationError(SeatingError):
    """Malformed input or a missing required field."""

    error = "validation_error"
    status_code = STATUS_BAD_REQUEST


class InvalidSeatIdError(ValidationError):
    error = "invalid_seat_id"

    def __init__(self, seat_id: str, reason: str):
        super().__init__(
            f"Invalid seat number '{seat_id}': {reason}",
            {"seat_number": seat_id, "reason": reason},
        )


class NotFoundError(SeatingError):
    error = "not_found"
    status_code = STATUS_NOT_FOUND


class ConflictError(SeatingError):
    """Duplicate seat, duplicate subscriber, or an operation forbidden on an active seat."""

    error = "conflict"
    status_code = STATUS_CONFLICT


class StoreUnavailableError(SeatingError):
    error = "store_unavailable"
    status_code = STATUS_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Seat store is unavailable"):
        super().__init__(message)
