from flask import Blueprint, jsonify

from ..services.user_service import UserService
from ..utils.context import get_store, json_body

bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@bp.post("/signup")
def signup():
    """Public registration; role falls back to customer when absent or unknown."""
    res = UserService.create_user(get_store(), json_body())
    return jsonify(res), 201


@bp.post("/signin")
def signin():
    res = UserService.signin(get_store(), json_body())
    return jsonify(res), 200
