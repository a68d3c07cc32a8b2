from dataclasses import dataclass
from typing import Optional

from rental_api.models.store import Patch
from rental_api.utils.constants import AvailabilityStatus, VehicleType


@dataclass
class Vehicle:
    """
    Vehicle record. Per-day price is the listed rate; pricing is linear in the
    number of rental days.
    """
    id: int
    vehicle_name: str
    type: VehicleType
    registration_number: str
    daily_rent_price: float
    availability_status: AvailabilityStatus

    @classmethod
    def from_row(cls, row: Optional[dict]) -> Optional["Vehicle"]:
        if not row:
            return None
        return cls(
            id=row["id"],
            vehicle_name=row["vehicle_name"],
            type=VehicleType(row["type"]),
            registration_number=row["registration_number"],
            daily_rent_price=float(row["daily_rent_price"]),
            availability_status=AvailabilityStatus(row["availability_status"]),
        )

    @property
    def is_available(self) -> bool:
        return self.availability_status is AvailabilityStatus.AVAILABLE

    def price_for_days(self, days: int) -> float:
        return round(self.daily_rent_price * days, 2)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vehicle_name": self.vehicle_name,
            "type": self.type.value,
            "registration_number": self.registration_number,
            "daily_rent_price": self.daily_rent_price,
            "availability_status": self.availability_status.value,
        }


@dataclass
class VehiclePatch(Patch):
    vehicle_name: Optional[str] = None
    type: Optional[VehicleType] = None
    registration_number: Optional[str] = None
    daily_rent_price: Optional[float] = None
    availability_status: Optional[AvailabilityStatus] = None
