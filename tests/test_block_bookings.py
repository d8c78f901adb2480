"""
Tests for the block booking allocator
"""

import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import patch

from models.block_booking import BlockBooking, BlockBookingStatus
from services.availability_service import AvailabilityService
from services.block_booking_service import BlockBookingService, block_total, validate_block_request
from services.reservation_service import ReservationService
from utils.errors import CapacityExceeded, Conflict, Forbidden, InvalidBlockSize, InvalidDiscount, InvalidDateRange

D1 = date(2024, 6, 10)
D2 = date(2024, 6, 12)


def _create(db, hotel, company, counts=None, discount=10, arrival=D1, departure=D2):
    counts = counts or {"Deluxe": 2, "Standard": 1}
    return BlockBookingService.create(db, hotel.id, company.company_id, arrival, departure, counts, discount, company)


class TestPricing:

    def test_total_with_discount(self):
        total = block_total({"Deluxe": Decimal("100"), "Standard": Decimal("60")}, {"Deluxe": 2, "Standard": 1}, 2, 10)
        assert total == Decimal("468.00")

    def test_no_discount(self):
        assert block_total({"Suite": Decimal("250")}, {"Suite": 3}, 1, 0) == Decimal("750.00")

    def test_validation(self):
        with pytest.raises(InvalidBlockSize):
            validate_block_request({"Deluxe": 2}, 0)
        with pytest.raises(InvalidBlockSize):
            validate_block_request({"Deluxe": 3, "Suite": 0}, 0)
        with pytest.raises(InvalidDiscount):
            validate_block_request({"Deluxe": 3}, 51)
        with pytest.raises(InvalidDiscount):
            validate_block_request({"Deluxe": 3}, -1)
        assert validate_block_request({"Deluxe": 3}, 50) == {"Deluxe": 3}


class TestCreate:

    def test_pending_block_with_total(self, db, hotel, company):
        block = _create(db, hotel, company)
        assert block.status == BlockBookingStatus.PENDING.value
        assert block.total_amount == Decimal("468.00")
        assert block.total_rooms == 3
        assert block.counts_by_type() == {"Deluxe": 2, "Standard": 1}

    def test_too_small(self, db, hotel, company):
        with pytest.raises(InvalidBlockSize):
            _create(db, hotel, company, counts={"Deluxe": 2})

    def test_discount_out_of_range(self, db, hotel, company):
        with pytest.raises(InvalidDiscount):
            _create(db, hotel, company, discount=60)

    def test_configured_discount_ceiling_is_the_only_limit(self, db, hotel, company):
        with patch("services.block_booking_service.MAX_BLOCK_DISCOUNT", 60):
            block = _create(db, hotel, company, discount=55)
        assert block.discount_rate == Decimal("55")
        assert block.total_amount == Decimal("234.00")

    def test_invalid_dates(self, db, hotel, company):
        with pytest.raises(InvalidDateRange):
            _create(db, hotel, company, arrival=D2, departure=D1)

    def test_not_enough_rooms_of_a_type(self, db, hotel, company):
        with pytest.raises(CapacityExceeded) as exc:
            _create(db, hotel, company, counts={"Deluxe": 1, "Suite": 2})
        assert exc.value.room_type == "Suite"

    def test_only_travel_companies(self, db, hotel, customer, manager):
        for principal in (customer, manager):
            with pytest.raises(Forbidden):
                BlockBookingService.create(db, hotel.id, 3, D1, D2, {"Deluxe": 3}, 0, principal)

    def test_company_cannot_book_for_another(self, db, hotel, company):
        with pytest.raises(Forbidden):
            BlockBookingService.create(db, hotel.id, 99, D1, D2, {"Deluxe": 3}, 0, company)

    def test_pending_block_holds_nothing(self, db, hotel, company):
        _create(db, hotel, company)
        assert AvailabilityService.available_count(db, hotel.id, "Deluxe", D1, D2) == 3


class TestDecisions:

    def test_approve_holds_capacity(self, db, hotel, company, manager):
        block = _create(db, hotel, company)
        approved = BlockBookingService.approve(db, block.id, manager)
        assert approved.status == BlockBookingStatus.RESERVED.value
        assert approved.decided_by == "manager-1"
        assert AvailabilityService.available_count(db, hotel.id, "Deluxe", D1, D2) == 1
        assert AvailabilityService.available_count(db, hotel.id, "Standard", D1, D2) == 1

    def test_only_manager_approves(self, db, hotel, company, clerk):
        block = _create(db, hotel, company)
        with pytest.raises(Forbidden):
            BlockBookingService.approve(db, block.id, clerk)

    def test_approve_revalidates(self, db, hotel, company, clerk, manager):
        block = _create(db, hotel, company, counts={"Deluxe": 3}, discount=0)
        ReservationService.create(db, hotel.id, "Deluxe", D1, D2, {}, clerk)
        with pytest.raises(CapacityExceeded):
            BlockBookingService.approve(db, block.id, manager)
        db.refresh(block)
        assert block.status == BlockBookingStatus.PENDING.value

    def _change_mix_before_lock(self, session_factory, hotel, company, customer, book_standard):
        """First read of the room mix lets the company swap it (and a guest book) in another session."""
        original = BlockBooking.counts_by_type
        state = {"fired": False}

        def counts_then_interfere(block):
            counts = original(block)
            if not state["fired"]:
                state["fired"] = True
                other = session_factory()
                try:
                    BlockBookingService.update(
                        other, block.id, {"room_type_counts": {"Deluxe": 1, "Standard": 2}}, company
                    )
                    if book_standard:
                        ReservationService.create(other, hotel.id, "Standard", D1, D2, {}, customer)
                finally:
                    other.close()
            return counts

        return patch.object(BlockBooking, "counts_by_type", counts_then_interfere)

    def test_approve_rechecks_room_mix_changed_before_lock(self, db, session_factory, hotel, company, customer, manager):
        block = _create(db, hotel, company, counts={"Deluxe": 3}, discount=0)
        with self._change_mix_before_lock(session_factory, hotel, company, customer, book_standard=True):
            with pytest.raises(CapacityExceeded) as exc:
                BlockBookingService.approve(db, block.id, manager)
        assert exc.value.room_type == "Standard"
        db.refresh(block)
        assert block.status == BlockBookingStatus.PENDING.value
        assert AvailabilityService.available_count(db, hotel.id, "Standard", D1, D2) == 1

    def test_approve_holds_the_current_room_mix(self, db, session_factory, hotel, company, customer, manager):
        block = _create(db, hotel, company, counts={"Deluxe": 3}, discount=0)
        with self._change_mix_before_lock(session_factory, hotel, company, customer, book_standard=False):
            approved = BlockBookingService.approve(db, block.id, manager)
        assert approved.status == BlockBookingStatus.RESERVED.value
        assert approved.counts_by_type() == {"Deluxe": 1, "Standard": 2}
        assert AvailabilityService.available_count(db, hotel.id, "Standard", D1, D2) == 0
        assert AvailabilityService.available_count(db, hotel.id, "Deluxe", D1, D2) == 2

    def test_cannot_approve_twice(self, db, hotel, company, manager):
        block = _create(db, hotel, company)
        BlockBookingService.approve(db, block.id, manager)
        with pytest.raises(Conflict):
            BlockBookingService.approve(db, block.id, manager)

    def test_reject_releases_hold(self, db, hotel, company, manager):
        block = _create(db, hotel, company, counts={"Deluxe": 3}, discount=0)
        BlockBookingService.approve(db, block.id, manager)
        assert AvailabilityService.available_count(db, hotel.id, "Deluxe", D1, D2) == 0
        rejected = BlockBookingService.reject(db, block.id, manager)
        assert rejected.status == BlockBookingStatus.REJECTED.value
        assert AvailabilityService.available_count(db, hotel.id, "Deluxe", D1, D2) == 3

    def test_reserved_block_blocks_individual_bookings(self, db, hotel, company, manager, customer):
        block = _create(db, hotel, company, counts={"Deluxe": 3}, discount=0)
        BlockBookingService.approve(db, block.id, manager)
        with pytest.raises(CapacityExceeded):
            ReservationService.create(db, hotel.id, "Deluxe", D1, D2, {}, customer)

    def test_company_cancels(self, db, hotel, company, other_company, manager):
        block = _create(db, hotel, company)
        BlockBookingService.approve(db, block.id, manager)
        with pytest.raises(Forbidden):
            BlockBookingService.cancel(db, block.id, other_company)
        cancelled = BlockBookingService.cancel(db, block.id, company)
        assert cancelled.status == BlockBookingStatus.CANCELLED.value
        with pytest.raises(Conflict):
            BlockBookingService.reject(db, block.id, manager)


class TestUpdate:

    def test_update_reprices(self, db, hotel, company):
        block = _create(db, hotel, company)
        updated = BlockBookingService.update(db, block.id, {"discount_rate": Decimal("0")}, company)
        assert updated.total_amount == Decimal("520.00")

    def test_update_counts(self, db, hotel, company):
        block = _create(db, hotel, company)
        updated = BlockBookingService.update(
            db, block.id, {"room_type_counts": {"Deluxe": 3, "Standard": 2}}, company
        )
        assert updated.total_rooms == 5
        assert updated.counts_by_type() == {"Deluxe": 3, "Standard": 2}

    def test_reserved_block_update_excludes_own_hold(self, db, hotel, company, manager):
        block = _create(db, hotel, company, counts={"Deluxe": 3}, discount=0)
        BlockBookingService.approve(db, block.id, manager)
        updated = BlockBookingService.update(
            db, block.id, {"departure_date": date(2024, 6, 13)}, company
        )
        assert updated.status == BlockBookingStatus.RESERVED.value
        assert updated.total_amount == Decimal("900.00")

    def test_update_shrink_below_minimum(self, db, hotel, company):
        block = _create(db, hotel, company)
        with pytest.raises(InvalidBlockSize):
            BlockBookingService.update(db, block.id, {"room_type_counts": {"Deluxe": 2}}, company)

    def test_only_owner_updates(self, db, hotel, company, other_company):
        block = _create(db, hotel, company)
        with pytest.raises(Forbidden):
            BlockBookingService.update(db, block.id, {"discount_rate": 5}, other_company)

    def test_visibility(self, db, hotel, company, other_company, manager, customer):
        _create(db, hotel, company)
        assert len(BlockBookingService.list_for_principal(db, company)) == 1
        assert len(BlockBookingService.list_for_principal(db, other_company)) == 0
        assert len(BlockBookingService.list_for_principal(db, manager, hotel_id=hotel.id)) == 1
        with pytest.raises(Forbidden):
            BlockBookingService.list_for_principal(db, customer)
