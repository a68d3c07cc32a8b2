from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token, decode_token

from rental_api.utils.constants import Role
from rental_api.utils.security import check_hash, generate_hash, issue_token


def test_password_hash_roundtrip():
    pw = "Secret123"
    h = generate_hash(pw)
    assert h != pw
    assert check_hash(pw, h)
    assert not check_hash("wrong", h)


def test_check_hash_rejects_garbage_hash():
    assert not check_hash("Secret123", "not-a-hash")


def test_token_carries_id_and_role(app):
    with app.app_context():
        token = issue_token(7, Role.CUSTOMER)
        claims = decode_token(token)
    assert claims["sub"] == "7"
    assert claims["role"] == "customer"
    assert "exp" in claims


@pytest.mark.parametrize("header", [None, "Bearer garbage", "Token abc"])
def test_protected_route_rejects_missing_or_bad_token(client, header):
    headers = {"Authorization": header} if header else {}
    r = client.get("/api/v1/bookings", headers=headers)
    assert r.status_code == 401
    assert r.get_json()["success"] is False


def test_expired_token_is_rejected(app, client):
    with app.app_context():
        token = create_access_token(
            identity="1", additional_claims={"role": "admin"}, expires_delta=timedelta(seconds=-30)
        )
    r = client.get("/api/v1/users", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.get_json()["message"] == "Invalid or expired token"


def test_unknown_role_claim_is_rejected(app, client):
    with app.app_context():
        token = create_access_token(identity="1", additional_claims={"role": "superuser"})
    r = client.get("/api/v1/bookings", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
