"""
Domain errors raised by the reservation core.
main.py renders them as JSON responses with the matching status code.
"""
from typing import Any, Dict, Optional


class ReservationError(Exception):
    status_code = 400
    code = "reservation_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code, "details": self.details}


class InvalidDateRange(ReservationError):
    status_code = 400
    code = "invalid_date_range"


class CapacityExceeded(ReservationError):
    status_code = 409
    code = "capacity_exceeded"

    def __init__(self, room_type: str, requested: int = 1, available: int = 0):
        super().__init__(
            f"No capacity left for room type '{room_type}' (requested {requested}, available {available})",
            {"room_type": room_type, "requested": requested, "available": available},
        )
        self.room_type = room_type


class NoRoomAvailable(ReservationError):
    status_code = 409
    code = "no_room_available"


class Forbidden(ReservationError):
    status_code = 403
    code = "forbidden"


class NotFound(ReservationError):
    status_code = 404
    code = "not_found"


class Conflict(ReservationError):
    status_code = 409
    code = "conflict"


class AlreadyBilled(ReservationError):
    status_code = 409
    code = "already_billed"


class InvalidBlockSize(ReservationError):
    status_code = 400
    code = "invalid_block_size"


class InvalidDiscount(ReservationError):
    status_code = 400
    code = "invalid_discount"
