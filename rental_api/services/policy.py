"""
Authorization policy.

Given a caller (id, role), a reference to the target resource and the
operation, `Policy.decide` returns a Decision (ALLOW or DENY plus a reason).
Admins bypass every check; customers are allowed only when ownership of the
target can be established, and anything the rules do not recognise is denied.

Booking status changes go through the stricter `check_status_change`, which
also looks at the booking's business state.
"""

import enum
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from loguru import logger
from sqlalchemy import select

from rental_api.exceptions import AuthenticationError, AuthorizationError, ConflictError
from rental_api.models.store import bookings
from rental_api.models.user import Caller
from rental_api.utils.constants import BookingStatus, Role


class Operation(str, enum.Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ResourceKind(str, enum.Enum):
    USER = "user"
    BOOKING = "booking"
    VEHICLE = "vehicle"


@dataclass(frozen=True)
class ResourceRef:
    kind: ResourceKind
    id: Optional[int] = None
    # customer_id submitted in a create-booking body
    body_customer_id: Any = None


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""
    authentication_required: bool = False

    @classmethod
    def allow(cls, reason: str = "") -> "Decision":
        return cls(True, reason)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(False, reason)

    @classmethod
    def unauthenticated(cls, reason: str = "Authentication required") -> "Decision":
        return cls(False, reason, authentication_required=True)

    def enforce(self) -> None:
        """Raise the matching error for a DENY; no-op for ALLOW."""
        if self.allowed:
            return
        if self.authentication_required:
            raise AuthenticationError(self.reason)
        raise AuthorizationError(self.reason)


OWN_DATA_ONLY = "You can only access your own data"


def _same_id(value: Any, caller_id: int) -> bool:
    # bool is an int subclass; True must not match user 1
    return isinstance(value, int) and not isinstance(value, bool) and value == caller_id


class Policy:
    """Ownership policy; needs the store only to resolve booking owners."""

    def __init__(self, store):
        self.store = store

    def decide(self, caller: Optional[Caller], ref: ResourceRef, op: Operation) -> Decision:
        if caller is None:
            return Decision.unauthenticated()
        if caller.role is Role.ADMIN:
            return Decision.allow("admin")
        if caller.role is Role.CUSTOMER:
            decision = self._decide_customer(caller, ref, op)
            if not decision.allowed:
                logger.warning(
                    "Denied {} {} id={} for customer {}: {}",
                    op.value, ref.kind.value, ref.id, caller.id, decision.reason,
                )
            return decision
        raise ValueError(f"Unhandled role: {caller.role!r}")

    def _decide_customer(self, caller: Caller, ref: ResourceRef, op: Operation) -> Decision:
        if ref.kind is ResourceKind.USER and ref.id is not None:
            if ref.id == caller.id:
                return Decision.allow("own record")
            return Decision.deny(OWN_DATA_ONLY)

        if ref.kind is ResourceKind.BOOKING:
            if ref.id is not None:
                owner_id = self._booking_owner(ref.id)
                # an absent booking is reported as a denial, not as "not found"
                if owner_id is not None and owner_id == caller.id:
                    return Decision.allow("own booking")
                return Decision.deny(OWN_DATA_ONLY)
            if op is Operation.READ:
                return Decision.allow("listing is scoped to the caller")
            if op is Operation.CREATE:
                if _same_id(ref.body_customer_id, caller.id):
                    return Decision.allow("booking for self")
                return Decision.deny("You can only create bookings for yourself")

        if ref.kind is ResourceKind.VEHICLE and op is Operation.READ:
            return Decision.allow("public catalog")

        return Decision.deny(OWN_DATA_ONLY)

    def _booking_owner(self, booking_id: int) -> Optional[int]:
        with self.store.connect() as conn:
            row = conn.execute(
                select(bookings.c.customer_id).where(bookings.c.id == booking_id)
            ).first()
        return row[0] if row else None

    @staticmethod
    def check_status_change(caller: Caller, booking, target: BookingStatus, today: date) -> None:
        """
        Rules for changing a booking's status, layered on top of the state machine:
        - admin: any target, any booking, any date;
        - customer: own booking only, never `returned`, and `cancelled` only
          before the rent start date.
        """
        if caller.role is Role.ADMIN:
            return
        if caller.role is not Role.CUSTOMER:
            raise ValueError(f"Unhandled role: {caller.role!r}")

        if booking.customer_id != caller.id:
            raise AuthorizationError("You can only update your own bookings")
        if target is BookingStatus.RETURNED:
            raise AuthorizationError("Only admin can mark booking as returned")
        if target is BookingStatus.CANCELLED and booking.started_by(today):
            raise ConflictError("Cannot cancel booking after start date")
