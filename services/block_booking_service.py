"""
Block Booking Allocator
Travel companies request N rooms across room types for one date range.
A manager approves (capacity is held from then on) or rejects.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import MIN_BLOCK_ROOMS, MAX_BLOCK_DISCOUNT
from models.block_booking import BlockBooking, BlockBookingRoomType, BlockBookingStatus, OPEN_BLOCK_STATES
from schemas.auth import Principal
from services.availability_service import AvailabilityService, validate_date_range
from services.inventory_service import InventoryService
from utils.allocation_lock import allocation_lock
from utils.errors import (
    ReservationError, CapacityExceeded, Forbidden, NotFound, Conflict, InvalidBlockSize, InvalidDiscount,
)
from utils.logging_utils import log_event
from utils.timezone import utc_now

_CENT = Decimal("0.01")


def _normalize_counts(room_type_counts: Mapping[str, int]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for room_type, count in dict(room_type_counts or {}).items():
        if not room_type:
            raise ReservationError("Room type is required for every block line")
        if count is None or int(count) < 1:
            raise InvalidBlockSize(
                f"Each room type needs at least one room (got {count} for '{room_type}')",
                {"room_type": room_type, "room_count": count},
            )
        counts[room_type] = counts.get(room_type, 0) + int(count)
    return counts


def validate_block_request(room_type_counts: Mapping[str, int], discount_rate) -> Dict[str, int]:
    counts = _normalize_counts(room_type_counts)
    total_rooms = sum(counts.values())
    if total_rooms < MIN_BLOCK_ROOMS:
        raise InvalidBlockSize(
            f"A block booking needs at least {MIN_BLOCK_ROOMS} rooms (got {total_rooms})",
            {"total_rooms": total_rooms, "minimum": MIN_BLOCK_ROOMS},
        )
    discount = Decimal(str(discount_rate if discount_rate is not None else 0))
    if discount < 0 or discount > MAX_BLOCK_DISCOUNT:
        raise InvalidDiscount(
            f"Discount must be between 0 and {MAX_BLOCK_DISCOUNT}%",
            {"discount_rate": str(discount)},
        )
    return counts


def block_total(rates: Mapping[str, Decimal], counts: Mapping[str, int], nights: int, discount_rate) -> Decimal:
    """sum(count x nights x nightly rate) x (1 - discount / 100)"""
    gross = sum((Decimal(str(rates[rt])) * count * nights for rt, count in counts.items()), Decimal("0"))
    factor = Decimal("1") - Decimal(str(discount_rate)) / Decimal("100")
    return (gross * factor).quantize(_CENT, rounding=ROUND_HALF_UP)


class BlockBookingService:

    @staticmethod
    def _load(db: Session, block_booking_id: int, for_update: bool = False) -> BlockBooking:
        query = db.query(BlockBooking).filter(BlockBooking.id == block_booking_id)
        if for_update:
            query = query.with_for_update()
        block = query.first()
        if not block:
            raise NotFound(f"Block booking {block_booking_id} not found", {"block_booking_id": block_booking_id})
        return block

    @staticmethod
    def _is_owner(block: BlockBooking, principal: Principal) -> bool:
        return (
            principal.is_travel_company
            and principal.company_id is not None
            and block.travel_company_id == principal.company_id
        )

    @staticmethod
    def _check_capacity(
        db: Session,
        hotel_id: int,
        counts: Mapping[str, int],
        arrival_date: date,
        departure_date: date,
        exclude_block_booking_id: Optional[int] = None,
    ) -> None:
        for room_type, count in sorted(counts.items()):
            available = AvailabilityService.available_count(
                db, hotel_id, room_type, arrival_date, departure_date,
                exclude_block_booking_id=exclude_block_booking_id,
            )
            if count > available:
                raise CapacityExceeded(room_type, requested=count, available=available)

    @staticmethod
    def _current_counts(db: Session, block_booking_id: int) -> Dict[str, int]:
        """Room mix as committed, bypassing the loaded relationship."""
        rows = db.query(BlockBookingRoomType.room_type, BlockBookingRoomType.room_count).filter(
            BlockBookingRoomType.block_booking_id == block_booking_id
        ).all()
        counts: Dict[str, int] = {}
        for room_type, room_count in rows:
            counts[room_type] = counts.get(room_type, 0) + room_count
        return counts

    @staticmethod
    def _price(db: Session, hotel_id: int, counts: Mapping[str, int], nights: int, discount_rate) -> Decimal:
        rates = {rt: InventoryService.nightly_rate(db, hotel_id, rt) for rt in counts}
        return block_total(rates, counts, nights, discount_rate)

    @staticmethod
    def get(db: Session, block_booking_id: int, principal: Principal) -> BlockBooking:
        block = BlockBookingService._load(db, block_booking_id)
        if principal.is_staff or BlockBookingService._is_owner(block, principal):
            return block
        raise Forbidden("Not allowed to view this block booking", {"block_booking_id": block_booking_id})

    @staticmethod
    def list_for_principal(
        db: Session,
        principal: Principal,
        hotel_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[BlockBooking]:
        query = db.query(BlockBooking)
        if principal.is_travel_company:
            query = query.filter(BlockBooking.travel_company_id == principal.company_id)
        elif not principal.is_staff:
            raise Forbidden("Customers cannot access block bookings")
        if hotel_id:
            query = query.filter(BlockBooking.hotel_id == hotel_id)
        if status:
            query = query.filter(BlockBooking.status == getattr(status, "value", status))
        return query.order_by(BlockBooking.arrival_date, BlockBooking.id).all()

    @staticmethod
    def create(
        db: Session,
        hotel_id: int,
        company_id: Optional[int],
        arrival_date: date,
        departure_date: date,
        room_type_counts: Mapping[str, int],
        discount_rate,
        principal: Principal,
    ) -> BlockBooking:
        """
        Registers a pending block. Capacity is checked now but only held once a manager approves.

        Raises:
            Forbidden, InvalidBlockSize, InvalidDiscount, InvalidDateRange, CapacityExceeded
        """
        if not principal.is_travel_company:
            raise Forbidden("Only travel companies can request block bookings")
        company_id = company_id or principal.company_id
        if principal.company_id is None or company_id != principal.company_id:
            raise Forbidden("Block bookings can only be requested for your own company")

        counts = validate_block_request(room_type_counts, discount_rate)
        validate_date_range(arrival_date, departure_date)
        InventoryService.get_hotel(db, hotel_id)
        discount = Decimal(str(discount_rate or 0))

        try:
            BlockBookingService._check_capacity(db, hotel_id, counts, arrival_date, departure_date)
            total = BlockBookingService._price(
                db, hotel_id, counts, (departure_date - arrival_date).days, discount
            )
            block = BlockBooking(
                hotel_id=hotel_id,
                travel_company_id=company_id,
                arrival_date=arrival_date,
                departure_date=departure_date,
                discount_rate=discount,
                total_amount=total,
                status=BlockBookingStatus.PENDING.value,
            )
            block.room_types = [
                BlockBookingRoomType(room_type=rt, room_count=count) for rt, count in counts.items()
            ]
            db.add(block)
            db.commit()
        except ReservationError as e:
            db.rollback()
            log_event("block_bookings", principal.user_id, "Create rejected", f"company={company_id} {e.message}")
            raise
        except SQLAlchemyError:
            db.rollback()
            raise

        db.refresh(block)
        log_event(
            "block_bookings",
            principal.user_id,
            "Create block booking",
            f"id={block.id} company={company_id} rooms={counts} total={block.total_amount}",
        )
        return block

    @staticmethod
    def approve(db: Session, block_booking_id: int, principal: Principal) -> BlockBooking:
        """pending -> reserved. Availability is re-validated under the allocation lock."""
        if not principal.is_manager:
            raise Forbidden("Only managers can approve block bookings")
        block = BlockBookingService._load(db, block_booking_id)
        if block.status != BlockBookingStatus.PENDING.value:
            raise Conflict(
                f"Block booking in status '{block.status}' cannot be approved",
                {"status": block.status},
            )

        counts = block.counts_by_type()
        try:
            while True:
                with allocation_lock(db, block.hotel_id, counts.keys()):
                    db.refresh(block)
                    if block.status != BlockBookingStatus.PENDING.value:
                        raise Conflict(
                            f"Block booking in status '{block.status}' cannot be approved",
                            {"status": block.status},
                        )
                    # The company may have changed the room mix before the lock was taken
                    current = BlockBookingService._current_counts(db, block.id)
                    if not set(current) <= set(counts):
                        counts = current
                        continue
                    counts = current
                    BlockBookingService._check_capacity(
                        db, block.hotel_id, counts, block.arrival_date, block.departure_date,
                        exclude_block_booking_id=block.id,
                    )
                    block.status = BlockBookingStatus.RESERVED.value
                    block.decided_by = principal.user_id
                    block.decided_at = utc_now()
                    block.updated_at = utc_now()
                    db.commit()
                    break
        except ReservationError as e:
            db.rollback()
            log_event("block_bookings", principal.user_id, "Approve rejected", f"id={block_booking_id} {e.message}")
            raise
        except SQLAlchemyError:
            db.rollback()
            raise

        db.refresh(block)
        log_event("block_bookings", principal.user_id, "Approve block booking", f"id={block.id} rooms={counts}")
        return block

    @staticmethod
    def reject(db: Session, block_booking_id: int, principal: Principal) -> BlockBooking:
        if not principal.is_manager:
            raise Forbidden("Only managers can reject block bookings")
        block = BlockBookingService._load(db, block_booking_id, for_update=True)
        if block.status not in OPEN_BLOCK_STATES:
            db.rollback()
            raise Conflict(
                f"Block booking in status '{block.status}' cannot be rejected",
                {"status": block.status},
            )
        try:
            block.status = BlockBookingStatus.REJECTED.value
            block.decided_by = principal.user_id
            block.decided_at = utc_now()
            block.updated_at = utc_now()
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        db.refresh(block)
        log_event("block_bookings", principal.user_id, "Reject block booking", f"id={block.id}")
        return block

    @staticmethod
    def cancel(db: Session, block_booking_id: int, principal: Principal) -> BlockBooking:
        block = BlockBookingService._load(db, block_booking_id, for_update=True)
        if not BlockBookingService._is_owner(block, principal):
            db.rollback()
            raise Forbidden("Only the requesting company can cancel this block booking")
        if block.status not in OPEN_BLOCK_STATES:
            db.rollback()
            raise Conflict(
                f"Block booking in status '{block.status}' cannot be cancelled",
                {"status": block.status},
            )
        try:
            block.status = BlockBookingStatus.CANCELLED.value
            block.updated_at = utc_now()
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        db.refresh(block)
        log_event("block_bookings", principal.user_id, "Cancel block booking", f"id={block.id}")
        return block

    @staticmethod
    def update(db: Session, block_booking_id: int, patch: Mapping[str, Any], principal: Principal) -> BlockBooking:
        """
        Owning company changes dates, counts or discount while pending or reserved.
        A reserved block keeps its status; its own hold is excluded from the re-check.
        """
        patch = {k: v for k, v in dict(patch).items() if v is not None}
        block = BlockBookingService._load(db, block_booking_id)
        if not BlockBookingService._is_owner(block, principal):
            raise Forbidden("Only the requesting company can modify this block booking")
        if block.status not in OPEN_BLOCK_STATES:
            raise Conflict(
                f"Block booking in status '{block.status}' cannot be modified",
                {"status": block.status},
            )

        new_arrival = patch.get("arrival_date", block.arrival_date)
        new_departure = patch.get("departure_date", block.departure_date)
        new_discount = patch.get("discount_rate", block.discount_rate)
        new_counts = patch.get("room_type_counts") or block.counts_by_type()
        counts = validate_block_request(new_counts, new_discount)
        validate_date_range(new_arrival, new_departure)
        discount = Decimal(str(new_discount))

        involved = set(counts) | set(block.counts_by_type())
        try:
            with allocation_lock(db, block.hotel_id, involved):
                BlockBookingService._check_capacity(
                    db, block.hotel_id, counts, new_arrival, new_departure,
                    exclude_block_booking_id=block.id,
                )
                block.arrival_date = new_arrival
                block.departure_date = new_departure
                block.discount_rate = discount
                if "room_type_counts" in patch:
                    block.room_types = [
                        BlockBookingRoomType(room_type=rt, room_count=count) for rt, count in counts.items()
                    ]
                block.total_amount = BlockBookingService._price(
                    db, block.hotel_id, counts, (new_departure - new_arrival).days, discount
                )
                block.updated_at = utc_now()
                db.commit()
        except ReservationError as e:
            db.rollback()
            log_event("block_bookings", principal.user_id, "Update rejected", f"id={block_booking_id} {e.message}")
            raise
        except SQLAlchemyError:
            db.rollback()
            raise

        db.refresh(block)
        log_event("block_bookings", principal.user_id, "Update block booking", f"id={block.id} total={block.total_amount}")
        return block
