"""
Global constants for roles, statuses, and allowed types.
These constants are imported by models, services and controllers.
"""

import enum

APP_VERSION = "1.0.0"

# Date format (used for rent start/end)
DATE_FMT = "%Y-%m-%d"


class Role(str, enum.Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"


class VehicleType(str, enum.Enum):
    CAR = "car"
    BIKE = "bike"
    VAN = "van"
    SUV = "SUV"


class AvailabilityStatus(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"


class BookingStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    RETURNED = "returned"


# active is the only initial state; cancelled/returned are terminal
BOOKING_TRANSITIONS = {
    BookingStatus.ACTIVE: {BookingStatus.CANCELLED, BookingStatus.RETURNED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.RETURNED: set(),
}

# --- Validation limits ---
MIN_PASSWORD_LENGTH = 6
MIN_PHONE_LENGTH = 10
