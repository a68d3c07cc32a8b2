from flask import Blueprint, jsonify

from ..services.booking_service import BookingService
from ..services.policy import Operation, ResourceKind
from ..utils.context import business_today, get_store, json_body, sweep_releases_vehicles
from ..utils.decorators import authorize, current_caller, login_required

bp = Blueprint("bookings", __name__, url_prefix="/api/v1/bookings")


@bp.post("")
@authorize(ResourceKind.BOOKING, Operation.CREATE, body_field="customer_id")
def create_booking():
    """Customers may only book for themselves; admins for anyone."""
    res = BookingService.create_booking(get_store(), json_body())
    return jsonify(res), 201


@bp.get("")
@login_required
def list_bookings():
    res = BookingService.list_bookings(
        get_store(),
        current_caller(),
        today=business_today(),
        release_vehicles=sweep_releases_vehicles(),
    )
    return jsonify(res)


@bp.get("/<booking_id>")
@authorize(ResourceKind.BOOKING, Operation.READ, id_arg="booking_id")
def booking_detail(booking_id):
    return jsonify(BookingService.get_booking(get_store(), booking_id, current_caller()))


@bp.put("/<booking_id>")
@authorize(ResourceKind.BOOKING, Operation.UPDATE, id_arg="booking_id")
def update_booking(booking_id):
    """Cancel (owner before start, or admin) or return (admin only)."""
    res = BookingService.update_booking_status(
        get_store(),
        booking_id,
        json_body(),
        current_caller(),
        today=business_today(),
    )
    return jsonify(res)
