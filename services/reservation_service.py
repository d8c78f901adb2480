"""
Reservation State Machine
Owns the lifecycle of an individual reservation:
- Admission (online / walk-in) against the Availability Index
- Update, cancel, delete
- Check-in (room binding) and check-out (billing)
- Payment confirmation hook
- No-show and auto-cancel transitions used by the daily reconciliation
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models.core import (
    Reservation, BillingRecord, ReservationStatus, PRE_CHECKIN_STATES, UNPAID_STATES,
)
from schemas.auth import Principal, SYSTEM_PRINCIPAL
from services.availability_service import AvailabilityService, validate_date_range
from services.inventory_service import InventoryService
from utils.allocation_lock import allocation_lock
from utils.errors import (
    ReservationError, CapacityExceeded, NoRoomAvailable, Forbidden, NotFound, Conflict, AlreadyBilled,
)
from utils.invoice_engine import compute_folio, no_show_folio, FolioCalculation
from utils.logging_utils import log_event
from utils.timezone import HOTEL_TZ, get_hotel_now, to_hotel_time, as_naive_utc, utc_now


WALK_IN_STATES = (
    ReservationStatus.RESERVED.value,
    ReservationStatus.CHECKED_IN.value,
)

GUEST_FIELDS = ("guest_name", "guest_email", "guest_phone")


def _status_value(status) -> Optional[str]:
    if status is None:
        return None
    return status.value if isinstance(status, ReservationStatus) else str(status)


def _stay_total(db: Session, hotel_id: int, room_type: str, arrival_date: date, departure_date: date) -> Decimal:
    rate = InventoryService.nightly_rate(db, hotel_id, room_type)
    return rate * (departure_date - arrival_date).days


def resolve_checkout_instant(checkout_at: Optional[datetime]) -> datetime:
    """Checkout instant in hotel time. Naive values are read as hotel-local wall clock."""
    if checkout_at is None:
        return get_hotel_now()
    if isinstance(checkout_at, datetime):
        if checkout_at.tzinfo is None:
            return HOTEL_TZ.localize(checkout_at)
        return to_hotel_time(checkout_at)
    # plain date: start of that day, hotel time
    return HOTEL_TZ.localize(datetime(checkout_at.year, checkout_at.month, checkout_at.day))


class ReservationService:

    # ------------------------------------------------------------------
    # Lookup / visibility
    # ------------------------------------------------------------------

    @staticmethod
    def _load(db: Session, reservation_id: int, for_update: bool = False) -> Reservation:
        query = db.query(Reservation).filter(Reservation.id == reservation_id)
        if for_update:
            query = query.with_for_update()
        reservation = query.first()
        if not reservation:
            raise NotFound(f"Reservation {reservation_id} not found", {"reservation_id": reservation_id})
        return reservation

    @staticmethod
    def is_owner(reservation: Reservation, principal: Principal) -> bool:
        if principal.is_customer:
            return principal.customer_id is not None and reservation.customer_id == principal.customer_id
        if principal.is_staff:
            return reservation.customer_id is None
        return False

    @staticmethod
    def _ensure_owner(reservation: Reservation, principal: Principal, action: str) -> None:
        if not ReservationService.is_owner(reservation, principal):
            log_event("reservations", principal.user_id, f"Denied {action}", f"reservation_id={reservation.id}")
            raise Forbidden(
                f"Only the owner can {action} this reservation",
                {"reservation_id": reservation.id},
            )

    @staticmethod
    def get(db: Session, reservation_id: int, principal: Principal) -> Reservation:
        reservation = ReservationService._load(db, reservation_id)
        if principal.is_staff:
            return reservation
        if not ReservationService.is_owner(reservation, principal):
            raise Forbidden("Not allowed to view this reservation", {"reservation_id": reservation_id})
        return reservation

    @staticmethod
    def list_for_principal(
        db: Session,
        principal: Principal,
        hotel_id: Optional[int] = None,
        status: Optional[str] = None,
        arrival_date: Optional[date] = None,
    ) -> List[Reservation]:
        """Customers see their own reservations, staff see every reservation (optionally per hotel)."""
        query = db.query(Reservation)
        if principal.is_customer:
            if principal.customer_id is None:
                return []
            query = query.filter(Reservation.customer_id == principal.customer_id)
        elif not principal.is_staff:
            raise Forbidden("Travel companies manage block bookings only")

        if hotel_id:
            query = query.filter(Reservation.hotel_id == hotel_id)
        if status:
            query = query.filter(Reservation.status == _status_value(status))
        if arrival_date:
            query = query.filter(Reservation.arrival_date == arrival_date)
        return query.order_by(Reservation.arrival_date, Reservation.id).all()

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    @staticmethod
    def create(
        db: Session,
        hotel_id: int,
        room_type: str,
        arrival_date: date,
        departure_date: date,
        guest: Optional[Mapping[str, Any]],
        principal: Principal,
        guests: int = 1,
        room_number: Optional[str] = None,
        status=None,
        total_amount=None,
        pay_at_hotel: bool = False,
    ) -> Reservation:
        """
        Admits a reservation if the room type still has capacity for the range.

        Online (customer): pending_payment, or pending when the guest pays at the hotel.
        Walk-in (clerk/manager): reserved or checked-in, optionally on a given room number.

        Raises:
            Forbidden, InvalidDateRange, NotFound, CapacityExceeded, NoRoomAvailable
        """
        if principal.is_travel_company:
            raise Forbidden("Travel companies cannot create individual reservations")
        validate_date_range(arrival_date, departure_date)
        if guests is None or guests < 1:
            raise ReservationError("At least one guest is required", {"guests": guests})

        requested_status = _status_value(status)
        if principal.is_customer:
            if principal.customer_id is None:
                raise Forbidden("Customer profile required to book online")
            if room_number or requested_status or total_amount is not None:
                raise Forbidden("Room number, status and price can only be set by hotel staff")
            initial_status = (
                ReservationStatus.PENDING.value if pay_at_hotel else ReservationStatus.PENDING_PAYMENT.value
            )
            customer_id = principal.customer_id
        else:
            initial_status = requested_status or ReservationStatus.RESERVED.value
            if initial_status not in WALK_IN_STATES:
                raise ReservationError(
                    f"Walk-in reservations start as {' or '.join(WALK_IN_STATES)}",
                    {"status": initial_status},
                )
            customer_id = None

        InventoryService.get_hotel(db, hotel_id)
        guest = dict(guest or {})

        try:
            with allocation_lock(db, hotel_id, [room_type]):
                available = AvailabilityService.available_count(
                    db, hotel_id, room_type, arrival_date, departure_date
                )
                if available < 1:
                    raise CapacityExceeded(room_type, requested=1, available=available)

                room = None
                if room_number:
                    room = InventoryService.get_room_by_number(db, hotel_id, room_number)
                    if room.type != room_type:
                        raise Conflict(
                            f"Room {room.number} is a '{room.type}' room, not '{room_type}'",
                            {"room_number": room.number, "room_type": room.type},
                        )
                    if not AvailabilityService.room_is_free(db, room, arrival_date, departure_date):
                        raise NoRoomAvailable(
                            f"Room {room.number} is not free for the requested dates",
                            {"room_number": room.number},
                        )
                    if initial_status == ReservationStatus.CHECKED_IN.value and AvailabilityService.room_has_guest(db, room):
                        raise NoRoomAvailable(f"Room {room.number} is still occupied", {"room_number": room.number})
                elif initial_status == ReservationStatus.CHECKED_IN.value:
                    room = AvailabilityService.find_free_room(
                        db, hotel_id, room_type, arrival_date, departure_date, skip_occupied=True
                    )
                    if room is None:
                        raise NoRoomAvailable(
                            f"No '{room_type}' room can be assigned right now",
                            {"room_type": room_type},
                        )

                if total_amount is None:
                    amount = _stay_total(db, hotel_id, room_type, arrival_date, departure_date)
                else:
                    amount = Decimal(str(total_amount))
                    if amount < 0:
                        raise ReservationError("Total amount must be >= 0", {"total_amount": str(amount)})

                reservation = Reservation(
                    hotel_id=hotel_id,
                    room_type=room_type,
                    room_id=room.id if room else None,
                    customer_id=customer_id,
                    created_by=principal.user_id,
                    created_by_role=principal.role.value,
                    guest_name=guest.get("guest_name"),
                    guest_email=guest.get("guest_email"),
                    guest_phone=guest.get("guest_phone"),
                    arrival_date=arrival_date,
                    departure_date=departure_date,
                    guests=guests,
                    total_amount=amount,
                    status=initial_status,
                )
                if initial_status == ReservationStatus.CHECKED_IN.value:
                    reservation.checked_in_at = utc_now()
                db.add(reservation)
                db.flush()

                InventoryService.refresh_room_status(db, room)
                db.commit()
        except ReservationError as e:
            db.rollback()
            log_event("reservations", principal.user_id, "Create rejected", f"hotel_id={hotel_id} type={room_type} {e.message}")
            raise
        except SQLAlchemyError:
            db.rollback()
            raise

        db.refresh(reservation)
        log_event(
            "reservations",
            principal.user_id,
            "Create reservation",
            f"id={reservation.id} hotel_id={hotel_id} type={room_type} "
            f"{arrival_date}..{departure_date} status={reservation.status}",
        )
        return reservation

    @staticmethod
    def update(db: Session, reservation_id: int, patch: Mapping[str, Any], principal: Principal) -> Reservation:
        """
        Changes dates / room type / guest data of a reservation that has not started.
        Availability is re-validated without counting the reservation itself.
        """
        patch = {k: v for k, v in dict(patch).items() if v is not None}
        reservation = ReservationService._load(db, reservation_id)
        ReservationService._ensure_owner(reservation, principal, "update")
        if not reservation.is_editable():
            raise Conflict(
                f"Reservation in status '{reservation.status}' cannot be modified",
                {"status": reservation.status},
            )
        if "total_amount" in patch and not principal.is_staff:
            raise Forbidden("Only hotel staff can set the total amount")

        new_arrival = patch.get("arrival_date", reservation.arrival_date)
        new_departure = patch.get("departure_date", reservation.departure_date)
        new_type = patch.get("room_type", reservation.room_type)
        validate_date_range(new_arrival, new_departure)
        if "guests" in patch and patch["guests"] < 1:
            raise ReservationError("At least one guest is required", {"guests": patch["guests"]})

        try:
            with allocation_lock(db, reservation.hotel_id, {reservation.room_type, new_type}):
                db.refresh(reservation)
                if not reservation.is_editable():
                    raise Conflict(
                        f"Reservation in status '{reservation.status}' cannot be modified",
                        {"status": reservation.status},
                    )
                stay_changed = (
                    new_arrival != reservation.arrival_date
                    or new_departure != reservation.departure_date
                    or new_type != reservation.room_type
                )
                old_room = reservation.room

                if stay_changed:
                    available = AvailabilityService.available_count(
                        db, reservation.hotel_id, new_type, new_arrival, new_departure,
                        exclude_reservation_id=reservation.id,
                    )
                    if available < 1:
                        raise CapacityExceeded(new_type, requested=1, available=available)

                    if old_room is not None:
                        if new_type != reservation.room_type:
                            reservation.room_id = None
                        elif not AvailabilityService.room_is_free(
                            db, old_room, new_arrival, new_departure, exclude_reservation_id=reservation.id
                        ):
                            raise Conflict(
                                f"Room {old_room.number} is not free for the new dates",
                                {"room_number": old_room.number},
                            )

                reservation.arrival_date = new_arrival
                reservation.departure_date = new_departure
                reservation.room_type = new_type
                for field in GUEST_FIELDS:
                    if field in patch:
                        setattr(reservation, field, patch[field])
                if "guests" in patch:
                    reservation.guests = patch["guests"]

                if "total_amount" in patch:
                    reservation.total_amount = Decimal(str(patch["total_amount"]))
                elif stay_changed:
                    reservation.total_amount = _stay_total(
                        db, reservation.hotel_id, new_type, new_arrival, new_departure
                    )
                reservation.updated_at = utc_now()
                db.flush()

                InventoryService.refresh_room_status(db, old_room)
                db.commit()
        except ReservationError as e:
            db.rollback()
            log_event("reservations", principal.user_id, "Update rejected", f"id={reservation_id} {e.message}")
            raise
        except SQLAlchemyError:
            db.rollback()
            raise

        db.refresh(reservation)
        log_event(
            "reservations",
            principal.user_id,
            "Update reservation",
            f"id={reservation.id} type={reservation.room_type} {reservation.arrival_date}..{reservation.departure_date}",
        )
        return reservation

    # ------------------------------------------------------------------
    # Cancellation / deletion
    # ------------------------------------------------------------------

    @staticmethod
    def cancel(db: Session, reservation_id: int, principal: Principal, reason: Optional[str] = None) -> Reservation:
        reservation = ReservationService._load(db, reservation_id, for_update=True)
        if not (principal.is_staff or ReservationService.is_owner(reservation, principal)):
            db.rollback()
            raise Forbidden("Not allowed to cancel this reservation", {"reservation_id": reservation_id})
        if reservation.status not in PRE_CHECKIN_STATES:
            db.rollback()
            raise Conflict(
                f"Reservation in status '{reservation.status}' cannot be cancelled",
                {"status": reservation.status},
            )

        try:
            ReservationService._mark_cancelled(reservation, reason or "cancelled on request", principal.user_id)
            db.flush()
            InventoryService.refresh_room_status(db, reservation.room)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        db.refresh(reservation)
        log_event("reservations", principal.user_id, "Cancel reservation", f"id={reservation.id} reason={reservation.cancellation_reason}")
        return reservation

    @staticmethod
    def _mark_cancelled(reservation: Reservation, reason: str, user: str) -> None:
        reservation.status = ReservationStatus.CANCELLED.value
        reservation.cancellation_reason = reason
        reservation.cancelled_at = utc_now()
        reservation.cancelled_by = user
        reservation.customer_notified = False
        reservation.updated_at = utc_now()

    @staticmethod
    def delete(db: Session, reservation_id: int, principal: Principal) -> None:
        """Hard delete, owner only, before check-in (or once cancelled)."""
        reservation = ReservationService._load(db, reservation_id, for_update=True)
        if not ReservationService.is_owner(reservation, principal):
            db.rollback()
            raise Forbidden("Only the owner can delete this reservation", {"reservation_id": reservation_id})
        if reservation.status not in PRE_CHECKIN_STATES + (ReservationStatus.CANCELLED.value,):
            db.rollback()
            raise Conflict(
                f"Reservation in status '{reservation.status}' cannot be deleted",
                {"status": reservation.status},
            )
        if reservation.billing_record is not None:
            db.rollback()
            raise Conflict("Billed reservations cannot be deleted", {"reservation_id": reservation_id})

        room = reservation.room
        try:
            db.delete(reservation)
            db.flush()
            InventoryService.refresh_room_status(db, room)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        log_event("reservations", principal.user_id, "Delete reservation", f"id={reservation_id}")

    # ------------------------------------------------------------------
    # Payment hook
    # ------------------------------------------------------------------

    @staticmethod
    def mark_paid(db: Session, reservation_id: int, user: str = "payments") -> Reservation:
        """pending / pending_payment -> confirmed. Repeated notifications are a no-op."""
        reservation = ReservationService._load(db, reservation_id, for_update=True)
        if reservation.status == ReservationStatus.CONFIRMED.value:
            db.rollback()
            return reservation
        if reservation.status not in UNPAID_STATES:
            db.rollback()
            raise Conflict(
                f"Reservation in status '{reservation.status}' cannot be marked as paid",
                {"status": reservation.status},
            )
        try:
            reservation.status = ReservationStatus.CONFIRMED.value
            reservation.updated_at = utc_now()
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        db.refresh(reservation)
        log_event("payments", user, "Reservation paid", f"id={reservation.id}")
        return reservation

    @staticmethod
    def mark_notified(db: Session, reservation_id: int, principal: Principal) -> Reservation:
        """The customer has been told about the last change (e.g. an auto-cancellation)."""
        reservation = ReservationService._load(db, reservation_id, for_update=True)
        if not (principal.is_staff or ReservationService.is_owner(reservation, principal)):
            db.rollback()
            raise Forbidden("Not allowed to update this reservation", {"reservation_id": reservation_id})
        if reservation.customer_notified:
            db.rollback()
            return reservation
        try:
            reservation.customer_notified = True
            reservation.updated_at = utc_now()
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        db.refresh(reservation)
        log_event("reservations", principal.user_id, "Customer notified", f"id={reservation.id} status={reservation.status}")
        return reservation

    # ------------------------------------------------------------------
    # Front desk
    # ------------------------------------------------------------------

    @staticmethod
    def check_in(
        db: Session, reservation_id: int, principal: Principal, room_number: Optional[str] = None
    ) -> Reservation:
        """Binds a concrete room (requested or first free of the type) and marks the guest in-house."""
        if not principal.is_staff:
            raise Forbidden("Only hotel staff can check guests in")
        reservation = ReservationService._load(db, reservation_id)
        if not reservation.can_checkin():
            raise Conflict(
                f"Reservation in status '{reservation.status}' cannot be checked in",
                {"status": reservation.status},
            )

        old_room = reservation.room
        try:
            with allocation_lock(db, reservation.hotel_id, [reservation.room_type]):
                db.refresh(reservation)
                if not reservation.can_checkin():
                    raise Conflict(
                        f"Reservation in status '{reservation.status}' cannot be checked in",
                        {"status": reservation.status},
                    )

                if room_number:
                    room = InventoryService.get_room_by_number(db, reservation.hotel_id, room_number)
                    if room.type != reservation.room_type:
                        raise Conflict(
                            f"Room {room.number} is a '{room.type}' room, not '{reservation.room_type}'",
                            {"room_number": room.number, "room_type": room.type},
                        )
                    if (
                        not AvailabilityService.room_is_free(
                            db, room, reservation.arrival_date, reservation.departure_date,
                            exclude_reservation_id=reservation.id,
                        )
                        or AvailabilityService.room_has_guest(db, room, exclude_reservation_id=reservation.id)
                    ):
                        raise NoRoomAvailable(f"Room {room.number} is not free", {"room_number": room.number})
                elif old_room is not None and old_room.is_in_service() and not AvailabilityService.room_has_guest(
                    db, old_room, exclude_reservation_id=reservation.id
                ):
                    room = old_room
                else:
                    room = AvailabilityService.find_free_room(
                        db, reservation.hotel_id, reservation.room_type,
                        reservation.arrival_date, reservation.departure_date,
                        exclude_reservation_id=reservation.id, skip_occupied=True,
                    )
                    if room is None:
                        raise NoRoomAvailable(
                            f"No '{reservation.room_type}' room is free for check-in",
                            {"room_type": reservation.room_type},
                        )

                reservation.room_id = room.id
                reservation.status = ReservationStatus.CHECKED_IN.value
                reservation.checked_in_at = utc_now()
                reservation.updated_at = utc_now()
                db.flush()

                if old_room is not None and old_room.id != room.id:
                    InventoryService.refresh_room_status(db, old_room)
                InventoryService.refresh_room_status(db, room)
                db.commit()
        except ReservationError as e:
            db.rollback()
            log_event("checkin", principal.user_id, "Check-in rejected", f"id={reservation_id} {e.message}")
            raise
        except SQLAlchemyError:
            db.rollback()
            raise

        db.refresh(reservation)
        log_event("checkin", principal.user_id, "Check-in", f"id={reservation.id} room={reservation.room_number}")
        return reservation

    @staticmethod
    def _folio_for(
        db: Session,
        reservation: Reservation,
        incidentals: Optional[Mapping[str, Any]],
        checkout_at: Optional[datetime],
    ) -> FolioCalculation:
        if reservation.room is not None:
            price = reservation.room.price_per_night
        else:
            price = InventoryService.nightly_rate(db, reservation.hotel_id, reservation.room_type)
        instant = resolve_checkout_instant(checkout_at)
        try:
            return compute_folio(
                reservation.total_amount,
                price,
                reservation.departure_date,
                instant,
                incidentals,
            )
        except ValueError as e:
            raise ReservationError(str(e), {"incidentals": {k: str(v) for k, v in dict(incidentals or {}).items()}})

    @staticmethod
    def folio_preview(
        db: Session,
        reservation_id: int,
        principal: Principal,
        incidentals: Optional[Mapping[str, Any]] = None,
        checkout_at: Optional[datetime] = None,
    ) -> FolioCalculation:
        """Same calculation as check_out, nothing persisted."""
        if not principal.is_staff:
            raise Forbidden("Only hotel staff can preview folios")
        reservation = ReservationService._load(db, reservation_id)
        if reservation.status != ReservationStatus.CHECKED_IN.value:
            raise Conflict(
                f"Reservation in status '{reservation.status}' has no open folio",
                {"status": reservation.status},
            )
        return ReservationService._folio_for(db, reservation, incidentals, checkout_at)

    @staticmethod
    def check_out(
        db: Session,
        reservation_id: int,
        principal: Principal,
        incidentals: Optional[Mapping[str, Any]] = None,
        payment_method: Optional[str] = None,
        checkout_at: Optional[datetime] = None,
    ) -> BillingRecord:
        """
        Closes the stay: computes the folio, writes the single BillingRecord,
        frees the room.

        Raises:
            AlreadyBilled if the reservation already carries a BillingRecord
            Conflict if the guest is not checked in
        """
        if not principal.is_staff:
            raise Forbidden("Only hotel staff can check guests out")
        reservation = ReservationService._load(db, reservation_id, for_update=True)

        if db.query(BillingRecord.id).filter(BillingRecord.reservation_id == reservation.id).first():
            db.rollback()
            raise AlreadyBilled(f"Reservation {reservation.id} is already billed", {"reservation_id": reservation.id})
        if reservation.status != ReservationStatus.CHECKED_IN.value:
            db.rollback()
            raise Conflict(
                f"Reservation in status '{reservation.status}' cannot be checked out",
                {"status": reservation.status},
            )

        try:
            folio = ReservationService._folio_for(db, reservation, incidentals, checkout_at)
        except ReservationError:
            db.rollback()
            raise

        instant = resolve_checkout_instant(checkout_at)
        room = reservation.room
        try:
            billing = BillingRecord(
                reservation_id=reservation.id,
                payment_method=payment_method,
                source="checkout",
                **folio.as_billing_fields(),
            )
            db.add(billing)
            reservation.status = ReservationStatus.CHECKED_OUT.value
            reservation.checked_out_at = as_naive_utc(instant)
            reservation.updated_at = utc_now()
            db.flush()
            InventoryService.refresh_room_status(db, room)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise AlreadyBilled(f"Reservation {reservation_id} is already billed", {"reservation_id": reservation_id})
        except SQLAlchemyError:
            db.rollback()
            raise

        db.refresh(billing)
        log_event(
            "checkout",
            principal.user_id,
            "Check-out",
            f"id={reservation_id} total={billing.total} late_days={folio.late_days}",
        )
        return billing

    # ------------------------------------------------------------------
    # Reconciliation transitions (caller commits)
    # ------------------------------------------------------------------

    @staticmethod
    def auto_cancel(db: Session, reservation: Reservation, reason: str, user: str = SYSTEM_PRINCIPAL.user_id) -> bool:
        """Unpaid reservation whose arrival day reached the cutoff. False if nothing to do."""
        if reservation.status not in UNPAID_STATES:
            return False
        ReservationService._mark_cancelled(reservation, reason, user)
        db.flush()
        InventoryService.refresh_room_status(db, reservation.room)
        return True

    @staticmethod
    def mark_no_show(db: Session, reservation: Reservation, user: str = SYSTEM_PRINCIPAL.user_id) -> Optional[BillingRecord]:
        """
        reserved / confirmed reservation whose arrival day elapsed without check-in.
        Bills the full amount once; returns the new BillingRecord (None if already billed).
        """
        if reservation.status not in (ReservationStatus.RESERVED.value, ReservationStatus.CONFIRMED.value):
            return None
        reservation.status = ReservationStatus.NO_SHOW.value
        reservation.updated_at = utc_now()

        billing = None
        already_billed = db.query(BillingRecord.id).filter(BillingRecord.reservation_id == reservation.id).first()
        if not already_billed:
            folio = no_show_folio(reservation.total_amount)
            billing = BillingRecord(reservation_id=reservation.id, source="no_show", **folio.as_billing_fields())
            db.add(billing)
        db.flush()
        InventoryService.refresh_room_status(db, reservation.room)
        log_event("reconciliation", user, "No-show", f"id={reservation.id} billed={billing is not None}")
        return billing
