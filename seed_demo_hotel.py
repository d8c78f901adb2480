#!/usr/bin/env python3
"""
Seed data for local runs
Creates: one demo hotel with Deluxe / Standard / Suite rooms
"""

from decimal import Decimal

from database.connection import SessionLocal, engine, Base
import models  # noqa: F401
from models.core import Hotel, Room
from schemas.auth import SYSTEM_PRINCIPAL
from utils.logging_utils import log_event

DEMO_SLUG = "demo-seaside"

DEMO_ROOMS = [
    ("101", "Deluxe", Decimal("100.00")),
    ("102", "Deluxe", Decimal("100.00")),
    ("103", "Deluxe", Decimal("120.00")),
    ("201", "Standard", Decimal("60.00")),
    ("202", "Standard", Decimal("60.00")),
    ("203", "Standard", Decimal("60.00")),
    ("301", "Suite", Decimal("250.00")),
]


def seed_demo_hotel(session) -> Hotel:
    """Idempotent: returns the existing demo hotel if it is already there"""
    hotel = session.query(Hotel).filter(Hotel.slug == DEMO_SLUG).first()
    if hotel:
        return hotel

    hotel = Hotel(
        name="Demo Seaside Hotel",
        slug=DEMO_SLUG,
        city="Galle",
        country="Sri Lanka",
        star_rating=4,
        starting_price=min(price for _, _, price in DEMO_ROOMS),
    )
    session.add(hotel)
    session.flush()
    for number, room_type, price in DEMO_ROOMS:
        session.add(Room(hotel_id=hotel.id, number=number, type=room_type, price_per_night=price))
    session.commit()
    log_event("seed", SYSTEM_PRINCIPAL.user_id, "Demo hotel created", f"hotel_id={hotel.id} rooms={len(DEMO_ROOMS)}")
    return hotel


if __name__ == "__main__":
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        hotel = seed_demo_hotel(session)
        print(f"[OK] Demo hotel id={hotel.id} ({hotel.slug})")
    finally:
        session.close()
