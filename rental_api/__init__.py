import sys

from flask import Flask, jsonify, request
from flask_jwt_extended import JWTManager
from loguru import logger
from werkzeug.exceptions import HTTPException

from .config import Config
from .controllers.auth import bp as auth_bp
from .controllers.bookings import bp as bookings_bp
from .controllers.users import bp as users_bp
from .controllers.vehicles import bp as vehicles_bp
from .controllers.views import bp as views_bp
from .exceptions import RentalError
from .models.store import Store
from .utils.constants import APP_VERSION
from .utils.context import STORE_KEY
from .utils.security import generate_hash

__version__ = APP_VERSION


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}",
    )


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(RentalError)
    def _rental_error(exc: RentalError):
        return jsonify({"success": False, "message": exc.message}), exc.status_code

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        message = "Route not found" if exc.code == 404 else exc.description
        return jsonify({"success": False, "message": message, "path": request.path}), exc.code

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        logger.exception("Unhandled error on {} {}", request.method, request.path)
        body = {"success": False, "message": "Internal server error"}
        if app.config.get("DEBUG"):
            body["error"] = str(exc)
        return jsonify(body), 500


def _bootstrap_admin(app: Flask, store: Store) -> None:
    email = app.config.get("ADMIN_EMAIL")
    password = app.config.get("ADMIN_PASSWORD")
    if not email or not password:
        return
    store.ensure_admin(
        name=app.config["ADMIN_NAME"],
        email=email,
        password_hash=generate_hash(password),
        phone=app.config["ADMIN_PHONE"],
    )


def create_app(config=None, store: Store | None = None):
    """
    Build the Flask app. `config` may be a mapping or a config object applied
    over `Config`; `store` may be passed in (tests use an in-memory store),
    otherwise one is built from DATABASE_URL.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if isinstance(config, dict):
        app.config.update(config)
    elif config is not None:
        app.config.from_object(config)

    configure_logging(app.config["LOG_LEVEL"])
    JWTManager(app)

    store = store or Store(app.config["DATABASE_URL"])
    store.init_schema()
    app.extensions[STORE_KEY] = store
    _bootstrap_admin(app, store)

    app.register_blueprint(views_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(vehicles_bp)
    app.register_blueprint(bookings_bp)
    register_error_handlers(app)

    @app.after_request
    def _log_request(response):
        logger.debug("{} {} -> {}", request.method, request.path, response.status_code)
        return response

    logger.info("Vehicle Rental API {} ready", APP_VERSION)
    return app
