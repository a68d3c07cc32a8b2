from __future__ import annotations

from typing import Optional

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from rental_api.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from rental_api.models.store import bookings, fetch_one, partial_update, users
from rental_api.models.user import Caller, User, UserPatch
from rental_api.services.common import _lc, require_fields, result
from rental_api.utils.constants import MIN_PASSWORD_LENGTH, MIN_PHONE_LENGTH, BookingStatus, Role
from rental_api.utils.security import check_hash, generate_hash, issue_token


def _check_password(password) -> str:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def _check_email(email) -> str:
    if not isinstance(email, str) or "@" not in email:
        raise ValidationError("Valid email is required")
    return _lc(email)


def _check_phone(phone) -> str:
    phone = str(phone or "").strip()
    if len(phone) < MIN_PHONE_LENGTH:
        raise ValidationError("Valid phone number is required")
    return phone


def _email_taken(conn, email: str, exclude_id: Optional[int] = None) -> bool:
    stmt = select(users.c.id).where(func.lower(users.c.email) == email)
    if exclude_id is not None:
        stmt = stmt.where(users.c.id != exclude_id)
    return conn.execute(stmt).first() is not None


class UserService:
    """Signup/signin, user CRUD and the self-service restrictions on it."""

    @staticmethod
    def create_user(store, payload: Optional[dict]):
        """
        Signup. Role falls back to customer when it is absent or not a known role.
        """
        payload = require_fields(
            payload,
            ("name", "email", "password", "phone"),
            "All fields (name, email, password, phone) are required",
        )
        password = _check_password(payload["password"])
        email = _check_email(payload["email"])
        phone = _check_phone(payload["phone"])
        name = str(payload["name"]).strip()
        try:
            role = Role(payload.get("role"))
        except ValueError:
            role = Role.CUSTOMER

        try:
            with store.transaction() as conn:
                if _email_taken(conn, email):
                    raise ConflictError("Email already registered")
                inserted = conn.execute(
                    users.insert().values(
                        name=name,
                        email=email,
                        password_hash=generate_hash(password),
                        phone=phone,
                        role=role.value,
                    )
                )
                user = User.from_row(fetch_one(conn, users, inserted.inserted_primary_key[0]))
        except IntegrityError:
            raise ConflictError("Email already exists") from None

        logger.info("User {} registered as {}", user.id, user.role.value)
        return result("User created successfully", user.to_dict())

    @staticmethod
    def signin(store, payload: Optional[dict]):
        """Check credentials and issue a signed token. Needs a Flask app context."""
        payload = require_fields(payload, ("email", "password"), "Email and password are required")
        email = _lc(payload["email"])
        with store.connect() as conn:
            row = conn.execute(select(users).where(users.c.email == email)).mappings().first()

        if not row or not check_hash(str(payload["password"]), row["password_hash"]):
            logger.warning("Failed signin for {}", email)
            raise AuthenticationError("Invalid email or password")

        user = User.from_row(row)
        token = issue_token(user.id, user.role)
        logger.info("User {} signed in", user.id)
        return result("Login successful", {"token": token, "user": user.to_dict()})

    @staticmethod
    def all_users(store):
        with store.connect() as conn:
            rows = conn.execute(select(users).order_by(users.c.id)).mappings().all()
        return result("Users retrieved successfully", [User.from_row(r).to_dict() for r in rows])

    @staticmethod
    def get_user(store, user_id: int):
        with store.connect() as conn:
            user = User.from_row(fetch_one(conn, users, user_id))
        if user is None:
            raise NotFoundError("User not found")
        return result("User retrieved successfully", user.to_dict())

    @staticmethod
    def build_patch(payload: Optional[dict], caller: Caller) -> UserPatch:
        """
        Validate the provided fields. Customers may not touch `role`; admins may
        set it to any known role.
        """
        payload = payload or {}

        def given(key):
            value = payload.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                return None
            return value

        patch = UserPatch()
        if given("role") is not None:
            if not caller.is_admin:
                raise AuthorizationError("You cannot change your role")
            try:
                patch.role = Role(payload["role"])
            except ValueError:
                raise ValidationError("Role must be either 'admin' or 'customer'") from None
        if given("name") is not None:
            patch.name = str(payload["name"]).strip()
        if given("email") is not None:
            patch.email = _check_email(payload["email"])
        if given("phone") is not None:
            patch.phone = _check_phone(payload["phone"])
        if given("password") is not None:
            patch.password_hash = generate_hash(_check_password(payload["password"]))
        return patch

    @staticmethod
    def update_user(store, user_id: int, payload: Optional[dict], caller: Caller):
        if not caller.is_admin and caller.id != user_id:
            raise AuthorizationError("You can only update your own profile")
        patch = UserService.build_patch(payload, caller)

        try:
            with store.transaction() as conn:
                if fetch_one(conn, users, user_id) is None:
                    raise NotFoundError("User not found")
                if patch.is_empty():
                    raise ValidationError("No update data provided")
                if patch.email and _email_taken(conn, patch.email, user_id):
                    raise ConflictError("Email already in use")
                partial_update(conn, users, user_id, patch.changes())
                user = User.from_row(fetch_one(conn, users, user_id))
        except IntegrityError:
            raise ConflictError("Email already exists") from None

        # never log the hash itself
        fields = sorted(k for k in patch.changes() if k != "password_hash")
        logger.info("User {} updated by {} {}: {}", user_id, caller.role.value, caller.id, fields)
        return result("User updated successfully", user.to_dict())

    @staticmethod
    def delete_user(store, user_id: int, caller: Caller):
        if not caller.is_admin:
            raise AuthorizationError("Only admin can delete users")
        if caller.id == user_id:
            raise AuthorizationError("Admin cannot delete their own account")

        with store.transaction() as conn:
            if fetch_one(conn, users, user_id, lock=True) is None:
                raise NotFoundError("User not found")
            active = conn.execute(
                select(bookings.c.id).where(
                    bookings.c.customer_id == user_id,
                    bookings.c.status == BookingStatus.ACTIVE.value,
                )
            ).first()
            if active is not None:
                raise ConflictError("Cannot delete user with active bookings")
            conn.execute(delete(users).where(users.c.id == user_id))

        logger.info("User {} deleted by admin {}", user_id, caller.id)
        return result("User deleted successfully")
