from flask import Blueprint, jsonify

from ..utils.constants import APP_VERSION

bp = Blueprint("views", __name__)


@bp.get("/health")
def health():
    return jsonify({"success": True, "message": "ok", "data": {"status": "healthy", "version": APP_VERSION}})
