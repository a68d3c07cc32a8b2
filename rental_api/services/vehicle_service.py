from __future__ import annotations

from typing import Optional

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from rental_api.exceptions import ConflictError, NotFoundError, ValidationError
from rental_api.models.store import bookings, fetch_one, partial_update, vehicles
from rental_api.models.vehicle import Vehicle, VehiclePatch
from rental_api.services.common import require_fields, result, to_positive_float
from rental_api.utils.constants import AvailabilityStatus, BookingStatus, VehicleType


def _vehicle_type(value) -> VehicleType:
    try:
        return VehicleType(value)
    except ValueError:
        raise ValidationError("Type must be one of: car, bike, van, SUV") from None


def _availability(value) -> AvailabilityStatus:
    try:
        return AvailabilityStatus(value)
    except ValueError:
        raise ValidationError("Availability status must be 'available' or 'booked'") from None


def _registration_taken(conn, registration_number: str, exclude_id: Optional[int] = None) -> bool:
    stmt = select(vehicles.c.id).where(vehicles.c.registration_number == registration_number)
    if exclude_id is not None:
        stmt = stmt.where(vehicles.c.id != exclude_id)
    return conn.execute(stmt).first() is not None


class VehicleService:
    """Vehicle catalogue: create, list, get, partial update, delete."""

    @staticmethod
    def create_vehicle(store, payload: Optional[dict]):
        """
        Create a vehicle. All four descriptive fields are required;
        availability_status defaults to 'available'.
        """
        payload = require_fields(
            payload,
            ("vehicle_name", "type", "registration_number", "daily_rent_price"),
            "All fields are required",
        )
        vehicle_name = str(payload["vehicle_name"]).strip()
        registration_number = str(payload["registration_number"]).strip()
        vtype = _vehicle_type(payload["type"])
        price = to_positive_float(payload["daily_rent_price"], "daily_rent_price")
        availability = _availability(payload.get("availability_status") or AvailabilityStatus.AVAILABLE.value)

        try:
            with store.transaction() as conn:
                # pre-check for a friendly message; the unique index is the backstop
                if _registration_taken(conn, registration_number):
                    raise ConflictError("Registration number already exists")
                inserted = conn.execute(
                    vehicles.insert().values(
                        vehicle_name=vehicle_name,
                        type=vtype.value,
                        registration_number=registration_number,
                        daily_rent_price=price,
                        availability_status=availability.value,
                    )
                )
                vehicle = Vehicle.from_row(fetch_one(conn, vehicles, inserted.inserted_primary_key[0]))
        except IntegrityError:
            raise ConflictError("Registration number already exists") from None

        logger.info("Vehicle {} created: {} ({})", vehicle.id, vehicle.vehicle_name, vehicle.registration_number)
        return result("Vehicle created successfully", vehicle.to_dict())

    @staticmethod
    def all_vehicles(store):
        with store.connect() as conn:
            rows = conn.execute(select(vehicles).order_by(vehicles.c.id)).mappings().all()
        return result("Vehicles retrieved successfully", [Vehicle.from_row(r).to_dict() for r in rows])

    @staticmethod
    def get_vehicle(store, vehicle_id: int):
        """Return a vehicle by ID or raise NotFoundError."""
        with store.connect() as conn:
            vehicle = Vehicle.from_row(fetch_one(conn, vehicles, vehicle_id))
        if vehicle is None:
            raise NotFoundError("Vehicle not found")
        return result("Vehicle retrieved successfully", vehicle.to_dict())

    @staticmethod
    def build_patch(payload: Optional[dict]) -> VehiclePatch:
        """Validate the provided fields of an update payload; absent or empty ones are skipped."""
        payload = payload or {}

        def given(key):
            value = payload.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                return None
            return value

        patch = VehiclePatch()
        if given("vehicle_name") is not None:
            patch.vehicle_name = str(payload["vehicle_name"]).strip()
        if given("type") is not None:
            patch.type = _vehicle_type(payload["type"])
        if given("registration_number") is not None:
            patch.registration_number = str(payload["registration_number"]).strip()
        if given("daily_rent_price") is not None:
            patch.daily_rent_price = to_positive_float(payload["daily_rent_price"], "daily_rent_price")
        if given("availability_status") is not None:
            patch.availability_status = _availability(payload["availability_status"])
        return patch

    @staticmethod
    def update_vehicle(store, vehicle_id: int, payload: Optional[dict]):
        """Rewrite only the provided fields of a vehicle."""
        patch = VehicleService.build_patch(payload)
        try:
            with store.transaction() as conn:
                if fetch_one(conn, vehicles, vehicle_id) is None:
                    raise NotFoundError("Vehicle not found")
                if patch.is_empty():
                    raise ValidationError("No update data provided")
                if patch.registration_number and _registration_taken(conn, patch.registration_number, vehicle_id):
                    raise ConflictError("Registration number already in use")
                partial_update(conn, vehicles, vehicle_id, patch.changes())
                vehicle = Vehicle.from_row(fetch_one(conn, vehicles, vehicle_id))
        except IntegrityError:
            raise ConflictError("Registration number already exists") from None

        logger.info("Vehicle {} updated: {}", vehicle_id, sorted(patch.changes()))
        return result("Vehicle updated successfully", vehicle.to_dict())

    @staticmethod
    def delete_vehicle(store, vehicle_id: int):
        """
        Delete a vehicle if and only if:
        - the vehicle exists,
        - there are no active bookings referencing this vehicle.
        """
        with store.transaction() as conn:
            if fetch_one(conn, vehicles, vehicle_id, lock=True) is None:
                raise NotFoundError("Vehicle not found")
            active = conn.execute(
                select(bookings.c.id).where(
                    bookings.c.vehicle_id == vehicle_id,
                    bookings.c.status == BookingStatus.ACTIVE.value,
                )
            ).first()
            if active is not None:
                raise ConflictError("Cannot delete vehicle with active bookings")
            conn.execute(delete(vehicles).where(vehicles.c.id == vehicle_id))

        logger.info("Vehicle {} deleted", vehicle_id)
        return result("Vehicle deleted successfully")
