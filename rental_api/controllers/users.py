from flask import Blueprint, jsonify

from ..services.common import to_int
from ..services.policy import Operation, ResourceKind
from ..services.user_service import UserService
from ..utils.constants import Role
from ..utils.context import get_store, json_body
from ..utils.decorators import authorize, current_caller, role_required

bp = Blueprint("users", __name__, url_prefix="/api/v1/users")


@bp.get("")
@role_required(Role.ADMIN)
def list_users():
    return jsonify(UserService.all_users(get_store()))


@bp.get("/<user_id>")
@authorize(ResourceKind.USER, Operation.READ, id_arg="user_id")
def get_user(user_id):
    return jsonify(UserService.get_user(get_store(), user_id))


@bp.put("/<user_id>")
@authorize(ResourceKind.USER, Operation.UPDATE, id_arg="user_id")
def update_user(user_id):
    """Self-service or admin update; only the provided fields are rewritten."""
    res = UserService.update_user(get_store(), user_id, json_body(), current_caller())
    return jsonify(res)


@bp.delete("/<user_id>")
@role_required(Role.ADMIN)
def delete_user(user_id):
    uid = to_int(user_id, "user ID")
    return jsonify(UserService.delete_user(get_store(), uid, current_caller()))
