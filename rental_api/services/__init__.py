from .booking_service import BookingService
from .policy import Caller, Decision, Operation, Policy, ResourceKind, ResourceRef
from .user_service import UserService
from .vehicle_service import VehicleService

__all__ = [
    "BookingService",
    "VehicleService",
    "UserService",
    "Policy",
    "Caller",
    "Decision",
    "Operation",
    "ResourceKind",
    "ResourceRef",
]
