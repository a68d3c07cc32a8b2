"""
End-to-end booking flow over HTTP. Dates are relative to today so the
cancel-before-start rule and the overdue sweep behave the same on any day.
"""

from datetime import datetime, timedelta

import pytest
import pytz

from rental_api import create_app
from rental_api.config import TestConfig as BaseConfig
from rental_api.utils.constants import Role
from rental_api.utils.security import issue_token


def _days(n):
    # the test app runs on UTC business days
    return (datetime.now(pytz.utc).date() + timedelta(days=n)).isoformat()


@pytest.fixture
def setup(make_user, make_vehicle, auth_header):
    admin = make_user(name="Admin", role="admin")
    alice = make_user(name="Alice")
    vid = make_vehicle(name="Honda Civic", price=100)
    return {
        "admin": auth_header(admin, "admin"),
        "alice": auth_header(alice),
        "alice_id": alice,
        "vid": vid,
    }


def _book(client, headers, customer_id, vid, start=10, end=13):
    return client.post("/api/v1/bookings", headers=headers, json={
        "customer_id": customer_id, "vehicle_id": vid,
        "rent_start_date": _days(start), "rent_end_date": _days(end),
    })


def _vehicle_status(client, vid):
    return client.get(f"/api/v1/vehicles/{vid}").get_json()["data"]["availability_status"]


def test_book_cancel_and_rebook(client, setup):
    r = _book(client, setup["alice"], setup["alice_id"], setup["vid"])
    assert r.status_code == 201
    booking = r.get_json()["data"]
    assert booking["total_price"] == 300
    assert _vehicle_status(client, setup["vid"]) == "booked"

    r = _book(client, setup["alice"], setup["alice_id"], setup["vid"], 20, 22)
    assert r.status_code == 409
    assert r.get_json()["message"] == "Vehicle is not available"

    r = client.put(f"/api/v1/bookings/{booking['id']}", json={"status": "cancelled"}, headers=setup["alice"])
    assert r.status_code == 200
    assert r.get_json()["data"]["status"] == "cancelled"
    assert _vehicle_status(client, setup["vid"]) == "available"

    r = client.put(f"/api/v1/bookings/{booking['id']}", json={"status": "cancelled"}, headers=setup["alice"])
    assert r.status_code == 409

    assert _book(client, setup["alice"], setup["alice_id"], setup["vid"], 20, 22).status_code == 201


def test_customer_cannot_cancel_started_booking_but_admin_can_return(client, setup):
    r = _book(client, setup["admin"], setup["alice_id"], setup["vid"], start=0, end=3)
    assert r.status_code == 201
    bid = r.get_json()["data"]["id"]

    r = client.put(f"/api/v1/bookings/{bid}", json={"status": "cancelled"}, headers=setup["alice"])
    assert r.status_code == 409
    assert r.get_json()["message"] == "Cannot cancel booking after start date"

    r = client.put(f"/api/v1/bookings/{bid}", json={"status": "returned"}, headers=setup["alice"])
    assert r.status_code == 403

    r = client.put(f"/api/v1/bookings/{bid}", json={"status": "returned"}, headers=setup["admin"])
    assert r.status_code == 200
    assert r.get_json()["data"]["vehicle"]["availability_status"] == "available"


def test_invalid_dates_and_status(client, setup):
    r = _book(client, setup["alice"], setup["alice_id"], setup["vid"], start=5, end=5)
    assert r.status_code == 400
    assert r.get_json()["message"] == "End date must be after start date"
    assert _vehicle_status(client, setup["vid"]) == "available"

    r = client.post("/api/v1/bookings", headers=setup["alice"], json={
        "customer_id": setup["alice_id"], "vehicle_id": setup["vid"],
        "rent_start_date": "tomorrow", "rent_end_date": _days(3),
    })
    assert r.status_code == 400

    bid = _book(client, setup["alice"], setup["alice_id"], setup["vid"]).get_json()["data"]["id"]
    r = client.put(f"/api/v1/bookings/{bid}", json={"status": "active"}, headers=setup["admin"])
    assert r.status_code == 400


def test_listing_sweeps_overdue_bookings(client, setup):
    bid = _book(client, setup["admin"], setup["alice_id"], setup["vid"], start=-5, end=-2).get_json()["data"]["id"]

    r = client.get("/api/v1/bookings", headers=setup["alice"])
    assert r.status_code == 200
    rows = r.get_json()["data"]
    assert [b["id"] for b in rows] == [bid]
    assert rows[0]["status"] == "returned"
    assert "customer_id" not in rows[0]
    # vehicles stay booked unless the sweep is configured to release them
    assert _vehicle_status(client, setup["vid"]) == "booked"


class ReleasingConfig(BaseConfig):
    SWEEP_RELEASES_VEHICLES = True


def test_listing_sweep_can_release_vehicles(store, make_user, make_vehicle):
    app = create_app(ReleasingConfig, store=store)
    client = app.test_client()
    admin = make_user(name="Admin", role="admin")
    alice = make_user(name="Alice")
    vid = make_vehicle()
    with app.app_context():
        headers = {"Authorization": f"Bearer {issue_token(admin, Role.ADMIN)}"}

    _book(client, headers, alice, vid, start=-5, end=-2)
    rows = client.get("/api/v1/bookings", headers=headers).get_json()["data"]
    assert rows[0]["status"] == "returned"
    assert rows[0]["customer"]["name"] == "Alice"
    assert _vehicle_status(client, vid) == "available"
