import sys, pathlib

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import pytest

from rental_api import create_app
from rental_api.config import TestConfig
from rental_api.models.store import Store, users, vehicles
from rental_api.models.user import Caller
from rental_api.utils.constants import Role
from rental_api.utils.security import generate_hash, issue_token


@pytest.fixture
def store():
    """
    A fresh in-memory SQLite store per test; nothing leaks between tests.
    """
    st = Store("sqlite:///:memory:")
    st.init_schema()
    yield st
    st.dispose()


@pytest.fixture
def app(store):
    return create_app(TestConfig, store=store)


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def make_user(store):
    """
    Insert a user row directly. Pass `id` to pin the primary key.
    Returns the user id.
    """
    counter = {"n": 0}

    def _make(name="Alice", email=None, role="customer", password="secret123",
              phone="0211234567", id=None):
        counter["n"] += 1
        values = {
            "name": name,
            "email": email or f"user{counter['n']}@example.com",
            "password_hash": generate_hash(password),
            "phone": phone,
            "role": role,
        }
        if id is not None:
            values["id"] = id
        with store.transaction() as conn:
            return conn.execute(users.insert().values(**values)).inserted_primary_key[0]

    return _make


@pytest.fixture
def make_vehicle(store):
    counter = {"n": 0}

    def _make(name="Toyota Corolla", vtype="car", price=50.0, status="available",
              registration_number=None, id=None):
        counter["n"] += 1
        values = {
            "vehicle_name": name,
            "type": vtype,
            "registration_number": registration_number or f"REG-{counter['n']:03d}",
            "daily_rent_price": price,
            "availability_status": status,
        }
        if id is not None:
            values["id"] = id
        with store.transaction() as conn:
            return conn.execute(vehicles.insert().values(**values)).inserted_primary_key[0]

    return _make


@pytest.fixture
def auth_header(app):
    """Bearer header for a user id and role, signed with the app's key."""
    def _header(user_id, role="customer"):
        with app.app_context():
            token = issue_token(user_id, Role(role))
        return {"Authorization": f"Bearer {token}"}

    return _header


@pytest.fixture
def admin_caller():
    return Caller(id=1, role=Role.ADMIN)
