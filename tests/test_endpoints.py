"""
HTTP surface: routing, identity headers and error rendering
"""

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient

from database.connection import get_db
from main import app

CUSTOMER = {"X-User-Id": "cust-7", "X-User-Role": "customer", "X-Customer-Id": "7"}
CLERK = {"X-User-Id": "clerk-1", "X-User-Role": "clerk"}
MANAGER = {"X-User-Id": "manager-1", "X-User-Role": "manager"}
COMPANY = {"X-User-Id": "agency-3", "X-User-Role": "travel-company", "X-Company-Id": "3"}


@pytest.fixture
def client(session_factory, hotel):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _booking(hotel, **overrides):
    payload = {
        "hotel_id": hotel.id,
        "room_type": "Deluxe",
        "arrival_date": "2024-06-10",
        "departure_date": "2024-06-12",
        "guests": 2,
        "guest_name": "Ana Perera",
        "guest_email": "ana@example.com",
    }
    payload.update(overrides)
    return payload


class TestIdentity:

    def test_missing_identity(self, client, hotel):
        response = client.post("/reservations", json=_booking(hotel))
        assert response.status_code == 401

    def test_unknown_role(self, client, hotel):
        response = client.post("/reservations", json=_booking(hotel), headers={"X-User-Id": "x", "X-User-Role": "root"})
        assert response.status_code == 401

    def test_customer_cannot_walk_in(self, client, hotel):
        response = client.post("/reservations/walk-in", json=_booking(hotel), headers=CUSTOMER)
        assert response.status_code == 403


class TestAvailabilityRoutes:

    def test_available_count(self, client, hotel):
        response = client.get(
            "/availability",
            params={"hotel_id": hotel.id, "room_type": "Deluxe", "arrival_date": "2024-06-10", "departure_date": "2024-06-12"},
        )
        assert response.status_code == 200
        assert response.json()["available"] == 3

    def test_invalid_range_is_400(self, client, hotel):
        response = client.get(
            "/availability",
            params={"hotel_id": hotel.id, "room_type": "Deluxe", "arrival_date": "2024-06-12", "departure_date": "2024-06-12"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_date_range"

    def test_summary(self, client, hotel):
        response = client.get(
            "/availability/summary",
            params={"hotel_id": hotel.id, "arrival_date": "2024-06-10", "departure_date": "2024-06-12"},
        )
        assert response.status_code == 200
        assert response.json()["room_types"]["Suite"]["available"] == 1

    def test_rooms(self, client, hotel):
        response = client.get(f"/hotels/{hotel.id}/rooms", params={"room_type": "Standard"})
        assert response.status_code == 200
        assert [r["number"] for r in response.json()] == ["201", "202"]

    def test_unknown_hotel(self, client, hotel):
        response = client.get(f"/hotels/{hotel.id + 100}/rooms")
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"


class TestReservationFlow:

    def test_online_booking_paid_checked_in_and_out(self, client, hotel):
        response = client.post("/reservations", json=_booking(hotel), headers=CUSTOMER)
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending_payment"
        assert Decimal(str(body["total_amount"])) == Decimal("200")
        reservation_id = body["id"]

        response = client.post(f"/payments/reservations/{reservation_id}/paid", headers=CLERK)
        assert response.json()["status"] == "confirmed"

        response = client.post(f"/reservations/{reservation_id}/check-in", json={"room_number": "102"}, headers=CLERK)
        assert response.status_code == 200
        assert response.json()["room_number"] == "102"

        preview = client.post(
            f"/reservations/{reservation_id}/folio-preview",
            json={"incidentals": {"restaurant": "20.00"}, "checkout_at": "2024-06-13T10:00:00"},
            headers=CLERK,
        )
        assert preview.status_code == 200
        assert Decimal(str(preview.json()["total"])) == Decimal("320")

        response = client.post(
            f"/reservations/{reservation_id}/check-out",
            json={"incidentals": {"restaurant": "20.00"}, "payment_method": "card", "checkout_at": "2024-06-12T10:00:00"},
            headers=CLERK,
        )
        assert response.status_code == 200
        assert Decimal(str(response.json()["total"])) == Decimal("220")

        again = client.post(f"/reservations/{reservation_id}/check-out", json={}, headers=CLERK)
        assert again.status_code == 409
        assert again.json()["code"] == "already_billed"

    def test_capacity_exceeded_body(self, client, hotel):
        assert client.post("/reservations", json=_booking(hotel, room_type="Suite"), headers=CUSTOMER).status_code == 201
        response = client.post("/reservations", json=_booking(hotel, room_type="Suite"), headers=CUSTOMER)
        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "capacity_exceeded"
        assert body["details"]["room_type"] == "Suite"

    def test_update_cancel_delete(self, client, hotel):
        reservation_id = client.post("/reservations", json=_booking(hotel), headers=CUSTOMER).json()["id"]

        response = client.put(f"/reservations/{reservation_id}", json={"departure_date": "2024-06-11"}, headers=CUSTOMER)
        assert response.status_code == 200
        assert response.json()["nights"] == 1

        response = client.post(f"/reservations/{reservation_id}/cancel", json={"reason": "plans changed"}, headers=CUSTOMER)
        assert response.json()["status"] == "cancelled"

        assert client.delete(f"/reservations/{reservation_id}", headers=CUSTOMER).status_code == 204
        assert client.get(f"/reservations/{reservation_id}", headers=CUSTOMER).status_code == 404

    def test_mark_notified(self, client, hotel):
        reservation_id = client.post("/reservations", json=_booking(hotel), headers=CUSTOMER).json()["id"]
        client.post(f"/reservations/{reservation_id}/cancel", json={"reason": "overbooked"}, headers=CLERK)
        assert client.get(f"/reservations/{reservation_id}", headers=CUSTOMER).json()["customer_notified"] is False
        response = client.patch(f"/reservations/{reservation_id}/mark-notified", headers=CUSTOMER)
        assert response.status_code == 200
        assert response.json()["customer_notified"] is True
        other = {"X-User-Id": "cust-8", "X-User-Role": "customer", "X-Customer-Id": "8"}
        response = client.patch(f"/reservations/{reservation_id}/mark-notified", headers=other)
        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"

    def test_empty_update_is_rejected(self, client, hotel):
        reservation_id = client.post("/reservations", json=_booking(hotel), headers=CUSTOMER).json()["id"]
        response = client.put(f"/reservations/{reservation_id}", json={}, headers=CUSTOMER)
        assert response.status_code == 422

    def test_list_for_customer(self, client, hotel):
        client.post("/reservations", json=_booking(hotel), headers=CUSTOMER)
        client.post("/reservations/walk-in", json=_booking(hotel), headers=CLERK)
        assert len(client.get("/reservations", headers=CUSTOMER).json()) == 1
        assert len(client.get("/reservations", params={"hotel_id": hotel.id}, headers=CLERK).json()) == 2


class TestBlockBookingRoutes:

    def test_request_and_approve(self, client, hotel):
        payload = {
            "hotel_id": hotel.id,
            "arrival_date": "2024-06-10",
            "departure_date": "2024-06-12",
            "room_types": [{"room_type": "Deluxe", "room_count": 2}, {"room_type": "Standard", "room_count": 1}],
            "discount_rate": "10",
        }
        response = client.post("/block-bookings", json=payload, headers=COMPANY)
        assert response.status_code == 201
        body = response.json()
        assert Decimal(str(body["total_amount"])) == Decimal("468")
        assert body["total_rooms"] == 3

        assert client.post(f"/block-bookings/{body['id']}/approve", headers=CLERK).status_code == 403
        response = client.post(f"/block-bookings/{body['id']}/approve", headers=MANAGER)
        assert response.json()["status"] == "reserved"

    def test_small_block_is_400(self, client, hotel):
        payload = {
            "hotel_id": hotel.id,
            "arrival_date": "2024-06-10",
            "departure_date": "2024-06-12",
            "room_types": [{"room_type": "Deluxe", "room_count": 2}],
        }
        response = client.post("/block-bookings", json=payload, headers=COMPANY)
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_block_size"


class TestReportRoutes:

    def test_manager_only(self, client, hotel):
        params = {"hotel_id": hotel.id, "start_date": "2024-06-10", "end_date": "2024-06-12"}
        assert client.get("/reports/occupancy", params=params, headers=CLERK).status_code == 403
        response = client.get("/reports/occupancy", params=params, headers=MANAGER)
        assert response.status_code == 200
        assert response.json()["rooms_in_service"] == 6

    def test_revenue_after_checkout(self, client, hotel):
        walk_in = _booking(hotel, status="checked-in")
        reservation_id = client.post("/reservations/walk-in", json=walk_in, headers=CLERK).json()["id"]
        client.post(
            f"/reservations/{reservation_id}/check-out",
            json={"incidentals": {"laundry": "5"}, "checkout_at": "2024-06-12T09:00:00"},
            headers=CLERK,
        )
        response = client.get(
            "/reports/revenue",
            params={"hotel_id": hotel.id, "start_date": "2000-01-01", "end_date": "2100-01-01"},
            headers=MANAGER,
        )
        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["total"]) == Decimal("205")
        assert body["by_source"]["checkout"]["records"] == 1

    def test_manual_reconciliation(self, client, hotel):
        response = client.post("/reports/reconciliation/run", params={"operating_day": "2024-06-10"}, headers=MANAGER)
        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        status = client.get("/reports/reconciliation/status", headers=MANAGER).json()
        assert status["last_persisted_run"]["operating_day"] == "2024-06-10"


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
