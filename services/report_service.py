"""
Manager reports (read-only, no locks)
"""
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.core import Room, Reservation, BillingRecord, RoomStatus, ReservationStatus
from models.block_booking import BlockBooking, BlockBookingRoomType, BlockBookingStatus
from services.availability_service import validate_date_range
from services.inventory_service import InventoryService
from utils.invoice_engine import INCIDENTAL_CATEGORIES

# Nights that count as sold (an unpaid hold is not occupancy yet)
OCCUPYING_STATES = (
    ReservationStatus.RESERVED.value,
    ReservationStatus.CONFIRMED.value,
    ReservationStatus.CHECKED_IN.value,
    ReservationStatus.CHECKED_OUT.value,
)

MAX_REPORT_DAYS = 366


class ReportService:

    @staticmethod
    def occupancy(db: Session, hotel_id: int, start_date: date, end_date: date) -> Dict[str, Any]:
        """Nightly occupancy for [start_date, end_date)."""
        validate_date_range(start_date, end_date)
        InventoryService.get_hotel(db, hotel_id)
        end_date = min(end_date, start_date + timedelta(days=MAX_REPORT_DAYS))

        rooms_in_service = (
            db.query(func.count(Room.id))
            .filter(Room.hotel_id == hotel_id, Room.status != RoomStatus.MAINTENANCE.value)
            .scalar()
            or 0
        )

        stays = (
            db.query(Reservation.arrival_date, Reservation.departure_date)
            .filter(
                Reservation.hotel_id == hotel_id,
                Reservation.status.in_(OCCUPYING_STATES),
                Reservation.arrival_date < end_date,
                Reservation.departure_date > start_date,
            )
            .all()
        )
        blocks = (
            db.query(BlockBooking.arrival_date, BlockBooking.departure_date, func.sum(BlockBookingRoomType.room_count))
            .join(BlockBookingRoomType, BlockBookingRoomType.block_booking_id == BlockBooking.id)
            .filter(
                BlockBooking.hotel_id == hotel_id,
                BlockBooking.status == BlockBookingStatus.RESERVED.value,
                BlockBooking.arrival_date < end_date,
                BlockBooking.departure_date > start_date,
            )
            .group_by(BlockBooking.id, BlockBooking.arrival_date, BlockBooking.departure_date)
            .all()
        )

        days: List[Dict[str, Any]] = []
        total_sold = 0
        day = start_date
        while day < end_date:
            sold = sum(1 for arrival, departure in stays if arrival <= day < departure)
            sold += sum(int(count or 0) for arrival, departure, count in blocks if arrival <= day < departure)
            sold = min(sold, rooms_in_service)
            total_sold += sold
            rate = (sold / rooms_in_service * 100) if rooms_in_service > 0 else 0
            days.append({"date": day.isoformat(), "rooms_sold": sold, "occupancy_rate": round(rate, 2)})
            day += timedelta(days=1)

        capacity = rooms_in_service * len(days)
        return {
            "hotel_id": hotel_id,
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "rooms_in_service": rooms_in_service,
            "room_nights_sold": total_sold,
            "average_occupancy_rate": round((total_sold / capacity * 100) if capacity else 0, 2),
            "days": days,
        }

    @staticmethod
    def revenue(db: Session, hotel_id: int, start_date: date, end_date: date) -> Dict[str, Any]:
        """Billed revenue of [start_date, end_date) by folio category and source."""
        validate_date_range(start_date, end_date)
        InventoryService.get_hotel(db, hotel_id)

        columns = ["room_charges", "late_checkout"] + list(INCIDENTAL_CATEGORIES) + ["total"]
        start_at = datetime(start_date.year, start_date.month, start_date.day)
        end_at = datetime(end_date.year, end_date.month, end_date.day)

        rows = (
            db.query(
                BillingRecord.source,
                func.count(BillingRecord.id),
                *[func.coalesce(func.sum(getattr(BillingRecord, name)), 0) for name in columns],
            )
            .join(Reservation, BillingRecord.reservation_id == Reservation.id)
            .filter(
                Reservation.hotel_id == hotel_id,
                BillingRecord.created_at >= start_at,
                BillingRecord.created_at < end_at,
            )
            .group_by(BillingRecord.source)
            .all()
        )

        totals = {name: Decimal("0.00") for name in columns}
        by_source = {}
        for row in rows:
            source, count, sums = row[0], row[1], row[2:]
            source_total = Decimal("0.00")
            for name, value in zip(columns, sums):
                amount = Decimal(str(value or 0))
                totals[name] += amount
                if name == "total":
                    source_total = amount
            by_source[source] = {"records": int(count), "total": str(source_total.quantize(Decimal("0.01")))}

        return {
            "hotel_id": hotel_id,
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "by_category": {name: str(value.quantize(Decimal("0.01"))) for name, value in totals.items() if name != "total"},
            "by_source": by_source,
            "total": str(totals["total"].quantize(Decimal("0.01"))),
        }
