"""Booking engine: create, list (with the overdue sweep), read and status transitions."""

from datetime import date
from typing import Optional

from loguru import logger
from sqlalchemy import and_, select, update

from rental_api.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from rental_api.models.booking import Booking, assert_transition
from rental_api.models.store import bookings, fetch_one, users, vehicles
from rental_api.models.user import Caller
from rental_api.models.vehicle import Vehicle
from rental_api.services.common import _today, parse_date, rental_days, require_fields, result, to_int
from rental_api.services.policy import Policy
from rental_api.utils.constants import AvailabilityStatus, BookingStatus, Role

REQUIRED_FIELDS = ("customer_id", "vehicle_id", "rent_start_date", "rent_end_date")
SETTABLE_STATUSES = (BookingStatus.CANCELLED, BookingStatus.RETURNED)


def _joined_select():
    """Bookings joined with their customer and vehicle summaries, newest first."""
    return (
        select(
            bookings,
            users.c.name.label("customer_name"),
            users.c.email.label("customer_email"),
            vehicles.c.vehicle_name,
            vehicles.c.registration_number,
            vehicles.c.type.label("vehicle_type"),
        )
        .select_from(
            bookings.join(users, bookings.c.customer_id == users.c.id).join(
                vehicles, bookings.c.vehicle_id == vehicles.c.id
            )
        )
        .order_by(bookings.c.id.desc())
    )


def _admin_row(row) -> dict:
    out = Booking.from_row(row).to_dict()
    out["customer"] = {"name": row["customer_name"], "email": row["customer_email"]}
    out["vehicle"] = {
        "vehicle_name": row["vehicle_name"],
        "registration_number": row["registration_number"],
    }
    return out


def _customer_row(row) -> dict:
    out = Booking.from_row(row).to_dict()
    out.pop("customer_id")
    out["vehicle"] = {
        "vehicle_name": row["vehicle_name"],
        "registration_number": row["registration_number"],
        "type": row["vehicle_type"],
    }
    return out


class BookingService:
    """
    Every multi-step change runs inside one store transaction, so the booking
    row and the vehicle's availability gate are always written together.
    """

    @staticmethod
    def create_booking(store, payload: Optional[dict]):
        """
        Book a vehicle for a customer.

        The booking row is inserted first and the vehicle is then claimed with a
        conditional update (only while still 'available'). If another request
        claimed the vehicle in between, the update touches no row, a
        ConflictError is raised and the insert is rolled back with it.
        """
        payload = require_fields(
            payload,
            REQUIRED_FIELDS,
            "customer_id, vehicle_id, rent_start_date, and rent_end_date are required",
        )
        customer_id = to_int(payload["customer_id"], "customer_id")
        vehicle_id = to_int(payload["vehicle_id"], "vehicle_id")
        start = parse_date(payload["rent_start_date"], "rent_start_date")
        end = parse_date(payload["rent_end_date"], "rent_end_date")
        if end <= start:
            raise ValidationError("End date must be after start date")

        with store.transaction() as conn:
            customer = conn.execute(select(users.c.id).where(users.c.id == customer_id)).first()
            if customer is None:
                raise NotFoundError("Customer not found")

            vehicle = Vehicle.from_row(fetch_one(conn, vehicles, vehicle_id, lock=True))
            if vehicle is None:
                raise NotFoundError("Vehicle not found")
            if not vehicle.is_available:
                logger.warning("Booking rejected: vehicle {} is {}", vehicle_id, vehicle.availability_status.value)
                raise ConflictError("Vehicle is not available")

            total_price = vehicle.price_for_days(rental_days(start, end))

            inserted = conn.execute(
                bookings.insert().values(
                    customer_id=customer_id,
                    vehicle_id=vehicle_id,
                    rent_start_date=start,
                    rent_end_date=end,
                    total_price=total_price,
                    status=BookingStatus.ACTIVE.value,
                )
            )
            booking_id = inserted.inserted_primary_key[0]

            claimed = conn.execute(
                update(vehicles)
                .where(
                    vehicles.c.id == vehicle_id,
                    vehicles.c.availability_status == AvailabilityStatus.AVAILABLE.value,
                )
                .values(availability_status=AvailabilityStatus.BOOKED.value)
            ).rowcount
            if claimed != 1:
                logger.warning("Booking rejected: vehicle {} was claimed concurrently", vehicle_id)
                raise ConflictError("Vehicle is not available")

            booking = Booking.from_row(fetch_one(conn, bookings, booking_id))

        logger.info(
            "Booking {} created: customer={} vehicle={} {}..{} total={}",
            booking.id, customer_id, vehicle_id, start, end, total_price,
        )
        data = booking.to_dict()
        data["vehicle"] = {
            "vehicle_name": vehicle.vehicle_name,
            "daily_rent_price": vehicle.daily_rent_price,
        }
        return result("Booking created successfully", data)

    @staticmethod
    def sweep_expired(store, today: Optional[date] = None, release_vehicles: bool = False) -> int:
        """
        Mark active bookings whose rent_end_date is strictly before today as
        returned. Idempotent. With `release_vehicles`, the vehicles of the swept
        bookings are flipped back to available in the same transaction.
        Returns the number of bookings swept.
        """
        today = today or _today()
        expired = and_(
            bookings.c.status == BookingStatus.ACTIVE.value,
            bookings.c.rent_end_date < today,
        )
        with store.transaction() as conn:
            vehicle_ids = []
            if release_vehicles:
                vehicle_ids = list(conn.execute(select(bookings.c.vehicle_id).where(expired)).scalars())
            swept = conn.execute(
                update(bookings).where(expired).values(status=BookingStatus.RETURNED.value)
            ).rowcount
            if vehicle_ids:
                conn.execute(
                    update(vehicles)
                    .where(vehicles.c.id.in_(vehicle_ids))
                    .values(availability_status=AvailabilityStatus.AVAILABLE.value)
                )
        if swept:
            logger.info("Sweep returned {} overdue booking(s) (vehicles released: {})", swept, release_vehicles)
        return swept

    @staticmethod
    def list_bookings(store, caller: Caller, *, today: Optional[date] = None, release_vehicles: bool = False):
        """Sweep overdue bookings, then list: admins see everything, customers their own."""
        BookingService.sweep_expired(store, today=today, release_vehicles=release_vehicles)

        stmt = _joined_select()
        if caller.role is Role.ADMIN:
            to_out, message = _admin_row, "Bookings retrieved successfully"
        elif caller.role is Role.CUSTOMER:
            stmt = stmt.where(bookings.c.customer_id == caller.id)
            to_out, message = _customer_row, "Your bookings retrieved successfully"
        else:
            raise ValueError(f"Unhandled role: {caller.role!r}")

        with store.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return result(message, [to_out(r) for r in rows])

    @staticmethod
    def get_booking(store, booking_id: int, caller: Caller):
        with store.connect() as conn:
            row = conn.execute(_joined_select().where(bookings.c.id == booking_id)).mappings().first()
        if row is None:
            raise NotFoundError("Booking not found")
        if caller.role is Role.CUSTOMER and row["customer_id"] != caller.id:
            raise AuthorizationError("Access denied to this booking")
        return result("Booking retrieved", _admin_row(row))

    @staticmethod
    def update_booking_status(store, booking_id: int, payload: Optional[dict], caller: Caller,
                              *, today: Optional[date] = None):
        """
        Move an active booking to cancelled or returned and release its vehicle.

        Order of checks: requested status is settable, booking exists, the
        state machine allows it (a finished booking always reports the
        transition error), then the caller may make this change (ownership,
        admin-only return, cancel-before-start). The booking row is
        locked while this runs and the status update is itself conditional on
        the booking still being active, so a booking can never be released twice.
        """
        raw = (payload or {}).get("status")
        try:
            target = BookingStatus(raw)
        except ValueError:
            target = None
        if target not in SETTABLE_STATUSES:
            raise ValidationError("Status must be 'cancelled' or 'returned'")

        today = today or _today()
        with store.transaction() as conn:
            booking = Booking.from_row(fetch_one(conn, bookings, booking_id, lock=True))
            if booking is None:
                raise NotFoundError("Booking not found")

            assert_transition(booking.status, target)
            Policy.check_status_change(caller, booking, target, today)

            changed = conn.execute(
                update(bookings)
                .where(bookings.c.id == booking_id, bookings.c.status == BookingStatus.ACTIVE.value)
                .values(status=target.value)
            ).rowcount
            if changed != 1:
                current = conn.execute(
                    select(bookings.c.status).where(bookings.c.id == booking_id)
                ).scalar_one()
                raise InvalidTransitionError(current, target.value)

            conn.execute(
                update(vehicles)
                .where(vehicles.c.id == booking.vehicle_id)
                .values(availability_status=AvailabilityStatus.AVAILABLE.value)
            )

            updated = Booking.from_row(fetch_one(conn, bookings, booking_id))
            vehicle_status = conn.execute(
                select(vehicles.c.availability_status).where(vehicles.c.id == booking.vehicle_id)
            ).scalar_one()

        logger.info(
            "Booking {} {} -> {} by {} {}",
            booking_id, booking.status.value, target.value, caller.role.value, caller.id,
        )
        data = updated.to_dict()
        if target is BookingStatus.CANCELLED:
            return result("Booking cancelled successfully", data)
        data["vehicle"] = {"availability_status": vehicle_status}
        return result("Booking marked as returned. Vehicle is now available", data)
