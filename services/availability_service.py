"""
Availability Index
Free rooms of a type for a date range, derived from Room inventory,
active reservations and reserved block bookings. No storage of its own.
"""

from datetime import date
from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.core import Room, Reservation, ReservationStatus, ACTIVE_RESERVATION_STATES
from models.block_booking import BlockBooking, BlockBookingRoomType, BlockBookingStatus
from services.inventory_service import InventoryService
from utils.errors import InvalidDateRange


def validate_date_range(arrival_date: date, departure_date: date) -> None:
    if arrival_date is None or departure_date is None:
        raise InvalidDateRange("Arrival and departure dates are required")
    if departure_date <= arrival_date:
        raise InvalidDateRange(
            "Departure date must be after arrival date",
            {"arrival_date": str(arrival_date), "departure_date": str(departure_date)},
        )


def intervals_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open [start, end): a checkout and a checkin on the same day do not clash."""
    return a_start < b_end and b_start < a_end


class AvailabilityService:

    @staticmethod
    def reserved_by_reservations(
        db: Session,
        hotel_id: int,
        room_type: str,
        arrival_date: date,
        departure_date: date,
        exclude_reservation_id: Optional[int] = None,
    ) -> int:
        # existing.arrival < new.departure AND existing.departure > new.arrival
        query = db.query(func.count(Reservation.id)).filter(
            Reservation.hotel_id == hotel_id,
            Reservation.room_type == room_type,
            Reservation.status.in_(ACTIVE_RESERVATION_STATES),
            Reservation.arrival_date < departure_date,
            Reservation.departure_date > arrival_date,
        )
        if exclude_reservation_id:
            query = query.filter(Reservation.id != exclude_reservation_id)
        return query.scalar() or 0

    @staticmethod
    def reserved_by_blocks(
        db: Session,
        hotel_id: int,
        room_type: str,
        arrival_date: date,
        departure_date: date,
        exclude_block_booking_id: Optional[int] = None,
    ) -> int:
        query = (
            db.query(func.coalesce(func.sum(BlockBookingRoomType.room_count), 0))
            .join(BlockBooking, BlockBookingRoomType.block_booking_id == BlockBooking.id)
            .filter(
                BlockBooking.hotel_id == hotel_id,
                BlockBooking.status == BlockBookingStatus.RESERVED.value,
                BlockBookingRoomType.room_type == room_type,
                BlockBooking.arrival_date < departure_date,
                BlockBooking.departure_date > arrival_date,
            )
        )
        if exclude_block_booking_id:
            query = query.filter(BlockBooking.id != exclude_block_booking_id)
        return int(query.scalar() or 0)

    @staticmethod
    def available_count(
        db: Session,
        hotel_id: int,
        room_type: str,
        arrival_date: date,
        departure_date: date,
        exclude_reservation_id: Optional[int] = None,
        exclude_block_booking_id: Optional[int] = None,
    ) -> int:
        """
        |rooms of the type in service| - |active overlapping reservations| - |reserved overlapping block rooms|
        Clamped to [0, physical count].
        """
        validate_date_range(arrival_date, departure_date)

        total = InventoryService.count_rooms_in_service(db, hotel_id, room_type)
        if total == 0:
            return 0

        taken = AvailabilityService.reserved_by_reservations(
            db, hotel_id, room_type, arrival_date, departure_date, exclude_reservation_id
        )
        taken += AvailabilityService.reserved_by_blocks(
            db, hotel_id, room_type, arrival_date, departure_date, exclude_block_booking_id
        )
        return max(0, min(total, total - taken))

    @staticmethod
    def room_is_free(
        db: Session,
        room: Room,
        arrival_date: date,
        departure_date: date,
        exclude_reservation_id: Optional[int] = None,
    ) -> bool:
        """A specific room: in service and not bound to an overlapping active reservation."""
        validate_date_range(arrival_date, departure_date)
        if not room.is_in_service():
            return False
        query = db.query(Reservation.id).filter(
            Reservation.room_id == room.id,
            Reservation.status.in_(ACTIVE_RESERVATION_STATES),
            Reservation.arrival_date < departure_date,
            Reservation.departure_date > arrival_date,
        )
        if exclude_reservation_id:
            query = query.filter(Reservation.id != exclude_reservation_id)
        return query.first() is None

    @staticmethod
    def room_has_guest(db: Session, room: Room, exclude_reservation_id: Optional[int] = None) -> bool:
        """True while someone is checked in to the room (covers overstays past departure)."""
        query = db.query(Reservation.id).filter(
            Reservation.room_id == room.id,
            Reservation.status == ReservationStatus.CHECKED_IN.value,
        )
        if exclude_reservation_id:
            query = query.filter(Reservation.id != exclude_reservation_id)
        return query.first() is not None

    @staticmethod
    def find_free_room(
        db: Session,
        hotel_id: int,
        room_type: str,
        arrival_date: date,
        departure_date: date,
        exclude_reservation_id: Optional[int] = None,
        skip_occupied: bool = False,
    ) -> Optional[Room]:
        for room in InventoryService.rooms_in_service(db, hotel_id, room_type):
            if skip_occupied and AvailabilityService.room_has_guest(db, room, exclude_reservation_id):
                continue
            if AvailabilityService.room_is_free(db, room, arrival_date, departure_date, exclude_reservation_id):
                return room
        return None

    @staticmethod
    def availability_summary(db: Session, hotel_id: int, arrival_date: date, departure_date: date) -> Dict[str, dict]:
        """Per room type totals for display (lock-free, may be slightly stale)."""
        validate_date_range(arrival_date, departure_date)
        InventoryService.get_hotel(db, hotel_id)
        summary = {}
        for room_type in InventoryService.room_types(db, hotel_id):
            total = InventoryService.count_rooms_in_service(db, hotel_id, room_type)
            summary[room_type] = {
                "total": total,
                "available": AvailabilityService.available_count(
                    db, hotel_id, room_type, arrival_date, departure_date
                ),
                "nightly_rate": InventoryService.nightly_rate(db, hotel_id, room_type) if total else None,
            }
        return summary
