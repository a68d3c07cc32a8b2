"""Booking record and its status state machine."""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from rental_api.exceptions import InvalidTransitionError
from rental_api.utils.constants import BOOKING_TRANSITIONS, BookingStatus


def assert_transition(current: BookingStatus, target: BookingStatus) -> None:
    """Raise InvalidTransitionError unless `current -> target` is a legal move."""
    allowed = BOOKING_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidTransitionError(current.value, target.value)


@dataclass
class Booking:
    id: int
    customer_id: int
    vehicle_id: int
    rent_start_date: date
    rent_end_date: date
    total_price: float
    status: BookingStatus

    @classmethod
    def from_row(cls, row: Optional[dict]) -> Optional["Booking"]:
        if not row:
            return None
        return cls(
            id=row["id"],
            customer_id=row["customer_id"],
            vehicle_id=row["vehicle_id"],
            rent_start_date=row["rent_start_date"],
            rent_end_date=row["rent_end_date"],
            total_price=float(row["total_price"]),
            status=BookingStatus(row["status"]),
        )

    def started_by(self, today: date) -> bool:
        return today >= self.rent_start_date

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "vehicle_id": self.vehicle_id,
            "rent_start_date": self.rent_start_date.isoformat(),
            "rent_end_date": self.rent_end_date.isoformat(),
            "total_price": self.total_price,
            "status": self.status.value,
        }
