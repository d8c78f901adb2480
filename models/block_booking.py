"""
Block bookings: multi-room, multi-night allotments requested by travel companies.
A block in status "reserved" consumes room-type capacity exactly like reservations.
"""
from datetime import datetime
import enum

from sqlalchemy import (
    Column, Integer, String, Date, DateTime, ForeignKey, Numeric, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from database.connection import Base


class BlockBookingStatus(str, enum.Enum):
    PENDING = "pending"
    RESERVED = "reserved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


OPEN_BLOCK_STATES = (
    BlockBookingStatus.PENDING.value,
    BlockBookingStatus.RESERVED.value,
)


class BlockBooking(Base):
    __tablename__ = "block_bookings"
    __table_args__ = (
        Index("idx_block_hotel_dates", "hotel_id", "arrival_date"),
        Index("idx_block_company", "travel_company_id"),
        Index("idx_block_status", "status"),
        CheckConstraint("arrival_date < departure_date", name="ck_block_date_range"),
        CheckConstraint("discount_rate >= 0", name="ck_block_discount"),
    )

    id = Column(Integer, primary_key=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False)
    travel_company_id = Column(Integer, nullable=False)

    arrival_date = Column(Date, nullable=False)
    departure_date = Column(Date, nullable=False)
    discount_rate = Column(Numeric(5, 2), nullable=False, default=0)  # percent
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, default=BlockBookingStatus.PENDING.value)

    decided_by = Column(String(50), nullable=True)  # manager who approved / rejected
    decided_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    hotel = relationship("Hotel")
    room_types = relationship(
        "BlockBookingRoomType",
        back_populates="block_booking",
        cascade="all, delete-orphan",
        order_by="BlockBookingRoomType.id",
    )

    @property
    def nights(self) -> int:
        return (self.departure_date - self.arrival_date).days

    @property
    def total_rooms(self) -> int:
        return sum(rt.room_count for rt in self.room_types)

    def counts_by_type(self) -> dict:
        counts = {}
        for rt in self.room_types:
            counts[rt.room_type] = counts.get(rt.room_type, 0) + rt.room_count
        return counts

    def __repr__(self):
        return f"<BlockBooking(id={self.id}, company={self.travel_company_id}, status='{self.status}')>"


class BlockBookingRoomType(Base):
    __tablename__ = "block_booking_room_types"
    __table_args__ = (
        Index("idx_block_rt_block", "block_booking_id"),
        Index("idx_block_rt_type", "room_type"),
        CheckConstraint("room_count >= 1", name="ck_block_rt_count"),
    )

    id = Column(Integer, primary_key=True)
    block_booking_id = Column(Integer, ForeignKey("block_bookings.id", ondelete="CASCADE"), nullable=False)
    room_type = Column(String(60), nullable=False)
    room_count = Column(Integer, nullable=False)

    block_booking = relationship("BlockBooking", back_populates="room_types")
