"""Accessors for per-app state from inside a request."""

from datetime import date

from flask import current_app, request

from rental_api.models.store import Store
from rental_api.services.common import _today

STORE_KEY = "rental_store"


def get_store() -> Store:
    return current_app.extensions[STORE_KEY]


def business_today() -> date:
    return _today(current_app.config.get("BUSINESS_TIMEZONE"))


def sweep_releases_vehicles() -> bool:
    return bool(current_app.config.get("SWEEP_RELEASES_VEHICLES", False))


def json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}
