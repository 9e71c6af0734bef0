"""
Tests for the HTTP layer (FastAPI TestClient over SQLite)
"""
import unittest
import uuid
from datetime import time, timedelta
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from rivo_scheduling.api.dependencies import create_access_token
from rivo_scheduling.config.database import get_db
from rivo_scheduling.core import monitoring
from rivo_scheduling.main import app
from rivo_scheduling.models import Booking, Holiday, UserRole

from support import MONDAY, DatabaseTestCase, TestingSessionLocal, add_rule, local, make_user


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def auth(user_id):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}


class APITestCase(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

        self.provider_id = make_user(self.db, UserRole.PROVIDER, full_name="Pat Provider")
        self.homeowner_id = make_user(self.db, UserRole.HOMEOWNER, full_name="Hana Homeowner")
        add_rule(self.db, self.provider_id, 1, time(9), time(17), buffer_minutes=15)

    def tearDown(self):
        app.dependency_overrides.clear()
        super().tearDown()

    def monday_params(self, **extra):
        params = {
            "provider_id": str(self.provider_id),
            "from": local(MONDAY, 0).isoformat(),
            "to": local(MONDAY + timedelta(days=1), 0).isoformat(),
        }
        params.update(extra)
        return params

    def booking_payload(self, hour=10, minute=0, **extra):
        start = local(MONDAY, hour, minute)
        payload = {
            "provider_id": str(self.provider_id),
            "start_ts": start.isoformat(),
            "end_ts": (start + timedelta(minutes=30)).isoformat(),
            "service_type": "Plumbing",
            "description": "Leaky faucet",
        }
        payload.update(extra)
        return payload


class TestSlotsEndpoint(APITestCase):

    def test_lists_slots(self):
        response = self.client.get("/api/v1/slots", params=self.monday_params(slot_mins=30))

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["total_slots"], 16)
        self.assertEqual(data["timezone"], "America/New_York")
        self.assertEqual(data["slots"][0], {
            "slot_start": "2030-01-07T14:00:00+00:00",
            "slot_end": "2030-01-07T14:30:00+00:00",
        })
        self.assertEqual(list(data["grouped_slots"]), ["2030-01-07"])

    def test_default_slot_length(self):
        response = self.client.get("/api/v1/slots", params=self.monday_params())
        self.assertEqual(response.json()["total_slots"], 16)

    def test_invalid_duration(self):
        response = self.client.get("/api/v1/slots", params=self.monday_params(slot_mins=5))
        self.assertEqual(response.status_code, 400)
        self.assertIn("between 15 and 480", response.json()["detail"])

    def test_reversed_range(self):
        params = self.monday_params()
        params["from"], params["to"] = params["to"], params["from"]

        response = self.client.get("/api/v1/slots", params=params)
        self.assertEqual(response.status_code, 400)

    def test_unknown_provider(self):
        response = self.client.get("/api/v1/slots", params=self.monday_params(provider_id=str(uuid.uuid4())))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"detail": "Provider not found"})

    def test_public_weekly_availability(self):
        response = self.client.get(f"/api/v1/providers/{self.provider_id}/availability")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["availability"][0]["start_time"], "09:00")


class TestBookingEndpoints(APITestCase):

    def test_create_booking(self):
        response = self.client.post("/api/v1/bookings", json=self.booking_payload(), headers=auth(self.homeowner_id))

        self.assertEqual(response.status_code, 201)
        booking = response.json()["booking"]
        self.assertEqual(booking["status"], "pending")
        self.assertEqual(booking["buffer_minutes"], 15)
        self.assertEqual(booking["provider"]["business_name"], "Pat Provider Plumbing")

        slots = self.client.get("/api/v1/slots", params=self.monday_params()).json()
        self.assertEqual(slots["total_slots"], 13)

    def test_double_booking_conflicts(self):
        self.client.post("/api/v1/bookings", json=self.booking_payload(), headers=auth(self.homeowner_id))

        other = make_user(self.db, UserRole.HOMEOWNER)
        response = self.client.post("/api/v1/bookings", json=self.booking_payload(), headers=auth(other))

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["detail"], "Selected time slot is no longer available")

        db = TestingSessionLocal()
        try:
            self.assertEqual(db.query(Booking).count(), 1)
        finally:
            db.close()

    def test_naive_timestamps_rejected(self):
        payload = self.booking_payload(start_ts="2030-01-07T10:00:00", end_ts="2030-01-07T10:30:00")
        response = self.client.post("/api/v1/bookings", json=payload, headers=auth(self.homeowner_id))
        self.assertEqual(response.status_code, 422)

    def test_requires_token(self):
        response = self.client.post("/api/v1/bookings", json=self.booking_payload())
        self.assertIn(response.status_code, (401, 403))

    def test_bad_token(self):
        response = self.client.post(
            "/api/v1/bookings",
            json=self.booking_payload(),
            headers={"Authorization": "Bearer not-a-token"},
        )
        self.assertEqual(response.status_code, 401)

    def test_providers_cannot_book(self):
        response = self.client.post("/api/v1/bookings", json=self.booking_payload(), headers=auth(self.provider_id))
        self.assertEqual(response.status_code, 403)

    def test_my_bookings_and_cancel(self):
        created = self.client.post(
            "/api/v1/bookings", json=self.booking_payload(), headers=auth(self.homeowner_id)
        ).json()["booking"]

        mine = self.client.get("/api/v1/bookings/me", headers=auth(self.homeowner_id)).json()
        self.assertEqual(mine["total"], 1)

        response = self.client.post(f"/api/v1/bookings/{created['id']}/cancel", headers=auth(self.homeowner_id))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["booking"]["status"], "cancelled")

        slots = self.client.get("/api/v1/slots", params=self.monday_params()).json()
        self.assertEqual(slots["total_slots"], 16)

    def test_get_booking_parties_only(self):
        created = self.client.post(
            "/api/v1/bookings", json=self.booking_payload(), headers=auth(self.homeowner_id)
        ).json()["booking"]

        self.assertEqual(
            self.client.get(f"/api/v1/bookings/{created['id']}", headers=auth(self.provider_id)).status_code,
            200,
        )

        stranger = make_user(self.db, UserRole.HOMEOWNER)
        response = self.client.get(f"/api/v1/bookings/{created['id']}", headers=auth(stranger))
        self.assertEqual(response.status_code, 403)

        response = self.client.get(f"/api/v1/bookings/{uuid.uuid4()}", headers=auth(self.homeowner_id))
        self.assertEqual(response.status_code, 404)


class TestProviderEndpoints(APITestCase):

    def test_replace_weekly_availability(self):
        response = self.client.put(
            "/api/v1/provider/availability",
            json={"rules": [
                {"day_of_week": 2, "start_time": "08:00", "end_time": "12:00", "buffer_minutes": 10},
                {"day_of_week": 4, "start_time": "13:00", "end_time": "18:00"},
            ]},
            headers=auth(self.provider_id),
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual([r["day_of_week"] for r in response.json()["availability"]], [2, 4])

        listing = self.client.get("/api/v1/provider/availability", headers=auth(self.provider_id)).json()
        self.assertEqual(len(listing["availability"]), 2)

        # Monday is no longer open
        self.assertEqual(self.client.get("/api/v1/slots", params=self.monday_params()).json()["total_slots"], 0)

    def test_overlapping_rules_rejected(self):
        response = self.client.put(
            "/api/v1/provider/availability",
            json={"rules": [
                {"day_of_week": 1, "start_time": "09:00", "end_time": "12:00"},
                {"day_of_week": 1, "start_time": "11:00", "end_time": "13:00"},
            ]},
            headers=auth(self.provider_id),
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("Overlapping availability on Monday", response.json()["detail"])

    def test_homeowners_cannot_manage_availability(self):
        response = self.client.put("/api/v1/provider/availability", json={"rules": []}, headers=auth(self.homeowner_id))
        self.assertEqual(response.status_code, 403)

    def test_unavailability_roundtrip(self):
        response = self.client.post(
            "/api/v1/provider/unavailability",
            json={
                "start_ts": local(MONDAY, 12).isoformat(),
                "end_ts": local(MONDAY, 13).isoformat(),
                "reason": "Training",
            },
            headers=auth(self.provider_id),
        )
        self.assertEqual(response.status_code, 201)
        block_id = response.json()["unavailability"]["id"]

        self.assertEqual(self.client.get("/api/v1/slots", params=self.monday_params()).json()["total_slots"], 14)

        listing = self.client.get("/api/v1/provider/unavailability", headers=auth(self.provider_id)).json()
        self.assertEqual([b["id"] for b in listing["unavailability"]], [block_id])

        response = self.client.delete(f"/api/v1/provider/unavailability/{block_id}", headers=auth(self.provider_id))
        self.assertEqual(response.status_code, 200)

        response = self.client.delete(f"/api/v1/provider/unavailability/{block_id}", headers=auth(self.provider_id))
        self.assertEqual(response.status_code, 404)

    def test_confirm_and_cancel_bookings(self):
        created = self.client.post(
            "/api/v1/bookings", json=self.booking_payload(), headers=auth(self.homeowner_id)
        ).json()["booking"]

        response = self.client.patch(
            f"/api/v1/provider/bookings/{created['id']}",
            json={"status": "confirmed", "provider_notes": "See you then"},
            headers=auth(self.provider_id),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["booking"]["status"], "confirmed")

        response = self.client.patch(
            f"/api/v1/provider/bookings/{created['id']}",
            json={"status": "pending"},
            headers=auth(self.provider_id),
        )
        self.assertEqual(response.status_code, 400)

        listing = self.client.get("/api/v1/provider/bookings", headers=auth(self.provider_id)).json()
        self.assertEqual(len(listing["grouped"]["confirmed"]), 1)

        response = self.client.delete(f"/api/v1/provider/bookings/{created['id']}", headers=auth(self.provider_id))
        self.assertEqual(response.json()["booking"]["status"], "cancelled")

        listing = self.client.get(
            "/api/v1/provider/bookings", params={"status": "cancelled"}, headers=auth(self.provider_id)
        ).json()
        self.assertEqual(listing["total"], 1)

    def test_holiday_preferences(self):
        db = TestingSessionLocal()
        try:
            holiday = Holiday(id=uuid.uuid4(), date=MONDAY, name="Company Day")
            db.add(holiday)
            db.commit()
            holiday_id = str(holiday.id)
        finally:
            db.close()

        response = self.client.put(
            "/api/v1/provider/holidays",
            json={"preferences": [{"holiday_id": holiday_id, "blocks_availability": True}]},
            headers=auth(self.provider_id),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["blocking_holidays"], 1)

        self.assertEqual(self.client.get("/api/v1/slots", params=self.monday_params()).json()["total_slots"], 0)


class TestHealth(APITestCase):

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")
        self.assertIn("X-Correlation-ID", response.headers)

    def test_correlation_id_is_echoed(self):
        response = self.client.get("/health", headers={"X-Correlation-ID": "abc-123"})
        self.assertEqual(response.headers["X-Correlation-ID"], "abc-123")

    def test_detailed_health_reports_redis_outage(self):
        with patch("rivo_scheduling.core.monitoring.get_redis", side_effect=ConnectionError("refused")):
            response = self.client.get("/health/detailed")

        data = response.json()
        self.assertEqual(data["database"], "healthy")
        self.assertTrue(data["redis"].startswith("unhealthy"))
        self.assertEqual(data["overall"], "degraded")

    def test_notification_broker_skipped_when_disabled(self):
        with patch("rivo_scheduling.core.monitoring.ping_redis", new=AsyncMock(return_value="healthy")) as ping:
            data = self.client.get("/health/detailed").json()

        self.assertEqual(data["notification_broker"], "disabled")
        self.assertEqual(data["overall"], "healthy")
        ping.assert_awaited_once_with(monitoring.settings.REDIS_URL)

    def test_notification_broker_checked_when_enabled(self):
        ping = AsyncMock(side_effect=["healthy", "unhealthy: refused"])
        with patch.object(monitoring.settings, "NOTIFICATIONS_ENABLED", True), \
                patch("rivo_scheduling.core.monitoring.ping_redis", new=ping):
            data = self.client.get("/health/detailed").json()

        self.assertEqual(data["redis"], "healthy")
        self.assertEqual(data["notification_broker"], "unhealthy: refused")
        self.assertEqual(data["overall"], "degraded")
        ping.assert_awaited_with(monitoring.settings.CELERY_BROKER_URL)


if __name__ == '__main__':
    unittest.main()
