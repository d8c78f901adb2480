"""
Models package.
Importing 'models' registers every table on Base.metadata.
"""

from .core import (
    Hotel,
    Room,
    Reservation,
    BillingRecord,
    RoomStatus,
    ReservationStatus,
)
from .block_booking import BlockBooking, BlockBookingRoomType, BlockBookingStatus
from .reconciliation import ReconciliationRun, RunStatus

__all__ = [
    "Hotel", "Room", "Reservation", "BillingRecord",
    "RoomStatus", "ReservationStatus",
    "BlockBooking", "BlockBookingRoomType", "BlockBookingStatus",
    "ReconciliationRun", "RunStatus",
]
