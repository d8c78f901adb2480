from datetime import datetime
import enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    Boolean,
    ForeignKey,
    Text,
    UniqueConstraint,
    Index,
    Numeric,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from database.connection import Base


# ============================================================================
# ENUMS
# ============================================================================

class RoomStatus(str, enum.Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    RESERVED = "reserved"


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    PENDING_PAYMENT = "pending_payment"
    RESERVED = "reserved"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# States that hold capacity in the Availability Index
ACTIVE_RESERVATION_STATES = (
    ReservationStatus.PENDING.value,
    ReservationStatus.PENDING_PAYMENT.value,
    ReservationStatus.RESERVED.value,
    ReservationStatus.CONFIRMED.value,
    ReservationStatus.CHECKED_IN.value,
)

# Editable / cancellable (guest has not arrived yet)
PRE_CHECKIN_STATES = (
    ReservationStatus.PENDING.value,
    ReservationStatus.PENDING_PAYMENT.value,
    ReservationStatus.RESERVED.value,
    ReservationStatus.CONFIRMED.value,
)

UNPAID_STATES = (
    ReservationStatus.PENDING.value,
    ReservationStatus.PENDING_PAYMENT.value,
)

CHECKIN_ALLOWED_STATES = (
    ReservationStatus.RESERVED.value,
    ReservationStatus.CONFIRMED.value,
)


# ============================================================================
# HOTEL / ROOM INVENTORY
# ============================================================================

class Hotel(Base):
    """Hotels are created by the admin backoffice; the core only reads them."""
    __tablename__ = "hotels"
    __table_args__ = (
        UniqueConstraint("slug", name="uq_hotel_slug"),
        Index("idx_hotel_city", "city"),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(150), nullable=False)
    slug = Column(String(160), nullable=False)
    city = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    star_rating = Column(Integer, nullable=True)
    starting_price = Column(Numeric(12, 2), nullable=True)  # cache for listing cards

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    rooms = relationship("Room", back_populates="hotel", cascade="all, delete-orphan")
    reservations = relationship("Reservation", back_populates="hotel")


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("hotel_id", "number", name="uq_room_hotel_number"),
        Index("idx_room_hotel_type", "hotel_id", "type"),
        Index("idx_room_status", "status"),
        CheckConstraint("price_per_night >= 0", name="ck_room_price_positive"),
    )

    id = Column(Integer, primary_key=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False)
    number = Column(String(10), nullable=False)
    type = Column(String(60), nullable=False)  # free text: "Deluxe", "Standard", "Suite"...
    price_per_night = Column(Numeric(12, 2), nullable=False, default=0)

    # Cached projection of the reservations overlapping "now".
    # available | occupied | reserved | maintenance (maintenance is set by ops and is sticky)
    status = Column(String(20), nullable=False, default=RoomStatus.AVAILABLE.value)

    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    hotel = relationship("Hotel", back_populates="rooms")
    reservations = relationship("Reservation", back_populates="room")

    def is_in_service(self) -> bool:
        return self.status != RoomStatus.MAINTENANCE.value

    def __repr__(self):
        return f"<Room(hotel_id={self.hotel_id}, number='{self.number}', type='{self.type}', status='{self.status}')>"


# ============================================================================
# RESERVATIONS
# ============================================================================

class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        Index("idx_res_availability", "hotel_id", "room_type", "arrival_date"),
        Index("idx_res_room", "room_id"),
        Index("idx_res_status", "status"),
        Index("idx_res_customer", "customer_id"),
        CheckConstraint("arrival_date < departure_date", name="ck_res_date_range"),
        CheckConstraint("guests >= 1", name="ck_res_guests"),
        CheckConstraint("total_amount >= 0", name="ck_res_total"),
    )

    id = Column(Integer, primary_key=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False)

    room_type = Column(String(60), nullable=False)  # requested category
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=True)  # bound once assigned

    # Owner: customer profile for online bookings, None for desk bookings
    customer_id = Column(Integer, nullable=True)
    created_by = Column(String(50), nullable=True)
    created_by_role = Column(String(20), nullable=True)

    guest_name = Column(String(120), nullable=True)
    guest_email = Column(String(120), nullable=True)
    guest_phone = Column(String(30), nullable=True)

    arrival_date = Column(Date, nullable=False)
    departure_date = Column(Date, nullable=False)
    guests = Column(Integer, nullable=False, default=1)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, default=ReservationStatus.PENDING.value)

    # Cancellation (soft)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(String(50), nullable=True)
    customer_notified = Column(Boolean, nullable=False, default=False)

    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    checked_out_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    hotel = relationship("Hotel", back_populates="reservations")
    room = relationship("Room", back_populates="reservations")
    billing_record = relationship("BillingRecord", back_populates="reservation", uselist=False)

    @property
    def nights(self) -> int:
        return (self.departure_date - self.arrival_date).days

    @property
    def room_number(self):
        return self.room.number if self.room else None

    def is_editable(self) -> bool:
        return self.status in PRE_CHECKIN_STATES

    def can_checkin(self) -> bool:
        return self.status in CHECKIN_ALLOWED_STATES

    def __repr__(self):
        return f"<Reservation(id={self.id}, room_type='{self.room_type}', status='{self.status}')>"


class BillingRecord(Base):
    """Guest folio. At most one per reservation (checkout or no-show)."""
    __tablename__ = "billing_records"
    __table_args__ = (
        UniqueConstraint("reservation_id", name="uq_billing_reservation"),
    )

    id = Column(Integer, primary_key=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id"), nullable=False)

    room_charges = Column(Numeric(12, 2), nullable=False, default=0)
    restaurant = Column(Numeric(12, 2), nullable=False, default=0)
    room_service = Column(Numeric(12, 2), nullable=False, default=0)
    laundry = Column(Numeric(12, 2), nullable=False, default=0)
    telephone = Column(Numeric(12, 2), nullable=False, default=0)
    club = Column(Numeric(12, 2), nullable=False, default=0)
    other = Column(Numeric(12, 2), nullable=False, default=0)
    late_checkout = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)

    payment_method = Column(String(30), nullable=True)
    source = Column(String(20), nullable=False, default="checkout")  # checkout | no_show

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    reservation = relationship("Reservation", back_populates="billing_record")
