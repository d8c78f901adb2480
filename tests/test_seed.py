from models.core import Room
from seed_demo_hotel import seed_demo_hotel, DEMO_ROOMS
from services.inventory_service import InventoryService


class TestSeed:

    def test_creates_hotel_with_rooms(self, db):
        hotel = seed_demo_hotel(db)
        assert db.query(Room).filter(Room.hotel_id == hotel.id).count() == len(DEMO_ROOMS)
        assert InventoryService.room_types(db, hotel.id) == ["Deluxe", "Standard", "Suite"]

    def test_is_idempotent(self, db):
        first = seed_demo_hotel(db)
        second = seed_demo_hotel(db)
        assert first.id == second.id
        assert db.query(Room).count() == len(DEMO_ROOMS)
