"""
Room inventory primitives
- Lookup of hotels / rooms
- Nightly rate per room type
- Room.status projection (compute-on-write)
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.core import (
    Hotel, Room, Reservation, RoomStatus, ReservationStatus, ACTIVE_RESERVATION_STATES,
)
from utils.errors import NotFound
from utils.timezone import get_operational_date


class InventoryService:

    @staticmethod
    def get_hotel(db: Session, hotel_id: int) -> Hotel:
        hotel = db.query(Hotel).filter(Hotel.id == hotel_id).first()
        if not hotel:
            raise NotFound(f"Hotel {hotel_id} not found", {"hotel_id": hotel_id})
        return hotel

    @staticmethod
    def list_rooms(db: Session, hotel_id: int, room_type: Optional[str] = None) -> List[Room]:
        query = db.query(Room).filter(Room.hotel_id == hotel_id)
        if room_type:
            query = query.filter(Room.type == room_type)
        return query.order_by(Room.number).all()

    @staticmethod
    def rooms_in_service(db: Session, hotel_id: int, room_type: str) -> List[Room]:
        return (
            db.query(Room)
            .filter(
                Room.hotel_id == hotel_id,
                Room.type == room_type,
                Room.status != RoomStatus.MAINTENANCE.value,
            )
            .order_by(Room.number)
            .all()
        )

    @staticmethod
    def count_rooms_in_service(db: Session, hotel_id: int, room_type: str) -> int:
        return (
            db.query(func.count(Room.id))
            .filter(
                Room.hotel_id == hotel_id,
                Room.type == room_type,
                Room.status != RoomStatus.MAINTENANCE.value,
            )
            .scalar()
            or 0
        )

    @staticmethod
    def get_room_by_number(db: Session, hotel_id: int, number: str) -> Room:
        room = db.query(Room).filter(Room.hotel_id == hotel_id, Room.number == str(number)).first()
        if not room:
            raise NotFound(f"Room {number} not found in hotel {hotel_id}", {"room_number": number})
        return room

    @staticmethod
    def room_types(db: Session, hotel_id: int) -> List[str]:
        rows = db.query(Room.type).filter(Room.hotel_id == hotel_id).distinct().order_by(Room.type).all()
        return [row[0] for row in rows]

    @staticmethod
    def nightly_rate(db: Session, hotel_id: int, room_type: str) -> Decimal:
        """Lowest nightly price among the type's rooms in service (the advertised 'from' price)."""
        rate = (
            db.query(func.min(Room.price_per_night))
            .filter(
                Room.hotel_id == hotel_id,
                Room.type == room_type,
                Room.status != RoomStatus.MAINTENANCE.value,
            )
            .scalar()
        )
        if rate is None:
            raise NotFound(
                f"Room type '{room_type}' not found in hotel {hotel_id}",
                {"hotel_id": hotel_id, "room_type": room_type},
            )
        return Decimal(str(rate))

    @staticmethod
    def refresh_room_status(db: Session, room: Optional[Room], today: Optional[date] = None) -> None:
        """
        Recomputes Room.status from the reservations bound to the room.
        maintenance is operator-asserted and left untouched.
        Does not commit; the caller's transaction does.
        """
        if room is None or room.status == RoomStatus.MAINTENANCE.value:
            return
        today = today or get_operational_date()

        db.flush()
        occupied = (
            db.query(Reservation.id)
            .filter(
                Reservation.room_id == room.id,
                Reservation.status == ReservationStatus.CHECKED_IN.value,
            )
            .first()
        )
        if occupied:
            room.status = RoomStatus.OCCUPIED.value
            return

        held_today = (
            db.query(Reservation.id)
            .filter(
                Reservation.room_id == room.id,
                Reservation.status.in_(ACTIVE_RESERVATION_STATES),
                Reservation.arrival_date <= today,
                Reservation.departure_date > today,
            )
            .first()
        )
        room.status = RoomStatus.RESERVED.value if held_today else RoomStatus.AVAILABLE.value
