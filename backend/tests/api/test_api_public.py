"""
公开预订页 API 测试
"""
from decimal import Decimal
from fastapi.testclient import TestClient

from conftest import make_room, TENANT_ID, OTHER_TENANT_ID
from booking_engine.models.ontology import BookingStatus


class TestPublicRooms:

    def test_lists_active_rooms_by_price(self, client: TestClient, db_session):
        make_room(db_session, name="Suite", base_price_per_night=Decimal("2000.00"))
        make_room(db_session, name="Cabin", base_price_per_night=Decimal("600.00"))
        make_room(db_session, name="Closed", is_active=False)
        make_room(db_session, name="Elsewhere", tenant_id=OTHER_TENANT_ID)

        response = client.get(f"/public/{TENANT_ID}/rooms")
        assert response.status_code == 200
        assert [r["name"] for r in response.json()] == ["Cabin", "Suite"]

    def test_inactive_room_hidden(self, client: TestClient, db_session):
        room = make_room(db_session, is_active=False)
        assert client.get(f"/public/{TENANT_ID}/rooms/{room.id}").status_code == 404

    def test_no_tenant_header_needed(self, client: TestClient, sample_room):
        response = client.get(f"/public/{TENANT_ID}/rooms/{sample_room.id}")
        assert response.status_code == 200
        assert response.json()["name"] == "Garden Suite"


class TestPublicPricingAndAvailability:

    def test_pricing(self, client: TestClient, sample_room, summer_rates):
        response = client.get(f"/public/{TENANT_ID}/rooms/{sample_room.id}/pricing", params={
            "check_in": "2025-12-24", "check_out": "2025-12-27",
        })
        assert response.status_code == 200
        data = response.json()
        assert float(data["subtotal"]) == 7500.00
        assert data["night_count"] == 3

    def test_availability(self, client: TestClient, sample_room, sample_booking):
        data = client.get(f"/public/{TENANT_ID}/rooms/{sample_room.id}/availability", params={
            "check_in": "2025-06-11", "check_out": "2025-06-12",
        }).json()
        assert data["available"] is False

    def test_booked_dates(self, client: TestClient, sample_room, sample_booking):
        data = client.get(f"/public/{TENANT_ID}/rooms/{sample_room.id}/booked-dates", params={
            "start_date": "2025-06-01", "end_date": "2025-06-11",
        }).json()
        assert data["booked_dates"] == ["2025-06-10"]


class TestPublicBooking:

    def test_create(self, client: TestClient, sample_room):
        response = client.post(f"/public/{TENANT_ID}/bookings", json={
            "room_id": sample_room.id,
            "check_in": "2025-09-01",
            "check_out": "2025-09-04",
            "guest_name": "Lerato Nkosi",
            "guest_email": "lerato@example.com",
            "adults": 2,
            "special_requests": "late arrival",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == BookingStatus.PENDING.value
        assert data["source"] == "website"
        assert data["notes"] == "late arrival"
        assert float(data["total_amount"]) == 3000.00

    def test_too_many_guests(self, client: TestClient, sample_room):
        response = client.post(f"/public/{TENANT_ID}/bookings", json={
            "room_id": sample_room.id,
            "check_in": "2025-09-01",
            "check_out": "2025-09-04",
            "guest_name": "Big Group",
            "guest_email": "group@example.com",
            "adults": 2,
            "children": 1,
        })
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "GUEST_COUNT_INVALID"

    def test_conflict(self, client: TestClient, sample_room, sample_booking):
        response = client.post(f"/public/{TENANT_ID}/bookings", json={
            "room_id": sample_room.id,
            "check_in": "2025-06-12",
            "check_out": "2025-06-14",
            "guest_name": "Late Guest",
            "guest_email": "late@example.com",
        })
        assert response.status_code == 409

    def test_wrong_tenant_path(self, client: TestClient, sample_room):
        response = client.post(f"/public/{OTHER_TENANT_ID}/bookings", json={
            "room_id": sample_room.id,
            "check_in": "2025-09-01",
            "check_out": "2025-09-02",
            "guest_name": "Lost",
            "guest_email": "lost@example.com",
        })
        assert response.status_code == 404
