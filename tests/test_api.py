"""HTTP binding tests using FastAPI's TestClient."""
import pytest
from fastapi.testclient import TestClient

from apps.api.deps import get_scheduling_service
from apps.api.main import app


@pytest.fixture
def client(scheduling_service):
    """Client whose requests share the test session and clock."""
    app.dependency_overrides[get_scheduling_service] = lambda: scheduling_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def monday_block(client):
    response = client.post("/api/v1/availability/blocks", json={
        "provider_id": "dr-p",
        "kind": "recurring",
        "day_of_week": 1,
        "start_time": "09:00",
        "end_time": "09:15",
        "timezone": "Australia/Brisbane",
    })
    assert response.status_code == 201
    return response.json()


def _reserve(client, requester_id="patient-x", slot_time="09:05"):
    return client.post("/api/v1/reservations", json={
        "requester_id": requester_id,
        "provider_id": "dr-p",
        "date": "2024-03-18",
        "time": slot_time,
    })


@pytest.mark.integration
class TestHealth:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"


@pytest.mark.integration
class TestAvailabilityEndpoints:

    def test_create_and_list_blocks(self, client, monday_block):
        response = client.get("/api/v1/availability/blocks", params={"provider_id": "dr-p"})

        assert response.status_code == 200
        assert [b["id"] for b in response.json()] == [monday_block["id"]]

    def test_invalid_window_maps_to_422(self, client):
        response = client.post("/api/v1/availability/blocks", json={
            "provider_id": "dr-p",
            "kind": "one_off",
            "specific_date": "2024-03-18",
            "start_time": "10:00",
            "end_time": "09:00",
        })

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_window"

    def test_deactivate_block(self, client, monday_block):
        response = client.post(f"/api/v1/availability/blocks/{monday_block['id']}/deactivate")

        assert response.status_code == 200
        assert response.json()["is_active"] is False

    def test_deactivate_unknown_block_404(self, client):
        response = client.post("/api/v1/availability/blocks/00000000-0000-0000-0000-000000000000/deactivate")

        assert response.status_code == 404
        assert response.json()["error"] == "availability_block_not_found"


@pytest.mark.integration
class TestSlotEndpoints:

    def test_list_slots(self, client, monday_block):
        response = client.get("/api/v1/slots", params={"date": "2024-03-18"})

        body = response.json()
        assert response.status_code == 200
        assert body["total_available"] == 3
        assert [s["time"] for s in body["slots"]] == ["09:00:00", "09:05:00", "09:10:00"]
        assert body["slots"][0]["provider_ids"] == ["dr-p"]
        assert body["slots"][0]["timezone_abbr"] == "AEST"

    def test_dates_with_availability(self, client, monday_block):
        response = client.get("/api/v1/slots/dates", params={"start_date": "2024-03-17", "end_date": "2024-03-26"})

        assert response.json() == ["2024-03-18", "2024-03-25"]


@pytest.mark.integration
class TestBookingFlow:
    """Reserve, book, pay and run the consultation over HTTP."""

    def test_reserved_slot_hidden_and_conflict_is_409(self, client, monday_block):
        assert _reserve(client).status_code == 201

        slots = client.get("/api/v1/slots", params={"date": "2024-03-18"}).json()["slots"]
        conflict = _reserve(client, requester_id="patient-y")

        assert [s["time"] for s in slots] == ["09:00:00", "09:10:00"]
        assert conflict.status_code == 409
        assert conflict.json()["error"] == "slot_no_longer_available"
        assert "message" in conflict.json()

    def test_release_reservation(self, client, monday_block):
        hold = _reserve(client).json()

        assert client.delete(f"/api/v1/reservations/{hold['id']}").status_code == 204
        assert client.get(f"/api/v1/reservations/{hold['id']}").status_code == 410

    def test_full_lifecycle(self, client, monday_block):
        hold = _reserve(client).json()

        booking = client.post("/api/v1/bookings", json={"reservation_id": hold["id"]}).json()
        assert booking["status"] == "pending_payment"

        paid = client.post(f"/api/v1/bookings/{booking['id']}/payment", json={"payment_reference": "pi_1"})
        assert paid.status_code == 200
        assert paid.json()["status"] == "booked"
        assert paid.json()["amount_paid"] == 4900

        again = client.post(f"/api/v1/bookings/{booking['id']}/payment", json={})
        assert again.status_code == 409
        assert again.json()["error"] == "payment_not_confirmed"

        attempt = client.post(f"/api/v1/bookings/{booking['id']}/call-attempts", json={"answered": True})
        assert attempt.status_code == 201
        assert attempt.json()["attempt_number"] == 1

        done = client.post(f"/api/v1/bookings/{booking['id']}/complete", json={"doctor_notes": "ok"})
        assert done.json()["status"] == "completed"

        listed = client.get("/api/v1/bookings", params={"provider_id": "dr-p", "status": "completed"})
        assert [b["id"] for b in listed.json()] == [booking["id"]]

    def test_no_answer_flow(self, client, monday_block):
        hold = _reserve(client).json()
        booking = client.post("/api/v1/bookings", json={"reservation_id": hold["id"]}).json()
        client.post(f"/api/v1/bookings/{booking['id']}/payment")

        early = client.post(f"/api/v1/bookings/{booking['id']}/no-answer")
        for _ in range(3):
            client.post(f"/api/v1/bookings/{booking['id']}/call-attempts", json={"answered": False})
        fourth = client.post(f"/api/v1/bookings/{booking['id']}/call-attempts", json={"answered": False})
        final = client.post(f"/api/v1/bookings/{booking['id']}/no-answer")

        assert early.json()["error"] == "insufficient_attempts"
        assert fourth.json()["error"] == "max_attempts_reached"
        assert final.json()["status"] == "no_answer"
        assert len(client.get(f"/api/v1/bookings/{booking['id']}/call-attempts").json()) == 3

    def test_cancel_twice(self, client, monday_block):
        hold = _reserve(client).json()
        booking = client.post("/api/v1/bookings", json={"reservation_id": hold["id"]}).json()

        first = client.post(f"/api/v1/bookings/{booking['id']}/cancel")
        second = client.post(f"/api/v1/bookings/{booking['id']}/cancel")

        assert first.status_code == second.status_code == 200
        assert second.json()["status"] == "cancelled"

    def test_unknown_booking_404(self, client):
        response = client.get("/api/v1/bookings/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404
        assert response.json()["error"] == "booking_not_found"
