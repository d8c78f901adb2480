"""
Shared fixtures: a fresh SQLite database per test, a seeded hotel and the principals.
"""
import os
import sys
from pathlib import Path

# Root directory on the import path (flat layout)
sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["HOTEL_TIMEZONE"] = "Asia/Colombo"
os.environ.setdefault("LOG_FILE", str(Path(__file__).parent / "test_hotel_reservations.log"))

from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from database.connection import Base, build_engine
import models  # noqa: F401
from models.core import Hotel, Room
from schemas.auth import Principal, Role


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'reservations.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def hotel(db):
    """
    Deluxe: 101 (100), 102 (100), 103 (120)
    Standard: 201 (60), 202 (60)
    Suite: 301 (250)
    """
    hotel = Hotel(name="Seaside Hotel", slug="seaside-hotel", city="Galle", country="Sri Lanka", star_rating=4)
    db.add(hotel)
    db.flush()
    db.add_all([
        Room(hotel_id=hotel.id, number="101", type="Deluxe", price_per_night=Decimal("100.00")),
        Room(hotel_id=hotel.id, number="102", type="Deluxe", price_per_night=Decimal("100.00")),
        Room(hotel_id=hotel.id, number="103", type="Deluxe", price_per_night=Decimal("120.00")),
        Room(hotel_id=hotel.id, number="201", type="Standard", price_per_night=Decimal("60.00")),
        Room(hotel_id=hotel.id, number="202", type="Standard", price_per_night=Decimal("60.00")),
        Room(hotel_id=hotel.id, number="301", type="Suite", price_per_night=Decimal("250.00")),
    ])
    db.commit()
    db.refresh(hotel)
    return hotel


@pytest.fixture
def customer():
    return Principal(user_id="cust-7", role=Role.CUSTOMER, customer_id=7)


@pytest.fixture
def other_customer():
    return Principal(user_id="cust-8", role=Role.CUSTOMER, customer_id=8)


@pytest.fixture
def clerk():
    return Principal(user_id="clerk-1", role=Role.CLERK)


@pytest.fixture
def manager():
    return Principal(user_id="manager-1", role=Role.MANAGER)


@pytest.fixture
def company():
    return Principal(user_id="agency-3", role=Role.TRAVEL_COMPANY, company_id=3)


@pytest.fixture
def other_company():
    return Principal(user_id="agency-4", role=Role.TRAVEL_COMPANY, company_id=4)
