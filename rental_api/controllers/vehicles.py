from flask import Blueprint, jsonify

from ..services.common import to_int
from ..services.vehicle_service import VehicleService
from ..utils.constants import Role
from ..utils.context import get_store, json_body
from ..utils.decorators import role_required

bp = Blueprint("vehicles", __name__, url_prefix="/api/v1/vehicles")


@bp.get("")
def list_vehicles():
    """Public catalogue, ordered by id."""
    return jsonify(VehicleService.all_vehicles(get_store()))


@bp.get("/<vehicle_id>")
def vehicle_detail(vehicle_id):
    vid = to_int(vehicle_id, "vehicle ID")
    return jsonify(VehicleService.get_vehicle(get_store(), vid))


@bp.post("")
@role_required(Role.ADMIN)
def add_vehicle():
    res = VehicleService.create_vehicle(get_store(), json_body())
    return jsonify(res), 201


@bp.put("/<vehicle_id>")
@role_required(Role.ADMIN)
def update_vehicle(vehicle_id):
    vid = to_int(vehicle_id, "vehicle ID")
    return jsonify(VehicleService.update_vehicle(get_store(), vid, json_body()))


@bp.delete("/<vehicle_id>")
@role_required(Role.ADMIN)
def delete_vehicle(vehicle_id):
    vid = to_int(vehicle_id, "vehicle ID")
    return jsonify(VehicleService.delete_vehicle(get_store(), vid))
