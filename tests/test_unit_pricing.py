from datetime import date, datetime

import pytest

from rental_api.exceptions import ValidationError
from rental_api.models.vehicle import Vehicle
from rental_api.services.common import parse_date, rental_days, to_int, to_positive_float
from rental_api.utils.constants import AvailabilityStatus, VehicleType


def _vehicle(rate):
    return Vehicle(
        id=1, vehicle_name="Civic", type=VehicleType.CAR, registration_number="X-1",
        daily_rent_price=rate, availability_status=AvailabilityStatus.AVAILABLE,
    )


def test_price_is_rate_times_days():
    assert _vehicle(100).price_for_days(3) == 300


def test_price_is_rounded_to_cents():
    assert _vehicle(33.335).price_for_days(3) == pytest.approx(100.0, abs=0.01)
    assert _vehicle(19.99).price_for_days(7) == 139.93


def test_rental_days_end_exclusive():
    assert rental_days(date(2024, 1, 1), date(2024, 1, 4)) == 3
    assert rental_days(date(2024, 2, 28), date(2024, 3, 1)) == 2


def test_parse_date_accepts_calendar_dates():
    assert parse_date("2024-01-05") == date(2024, 1, 5)
    assert parse_date(" 2024-01-05 ") == date(2024, 1, 5)
    assert parse_date(date(2024, 1, 5)) == date(2024, 1, 5)


@pytest.mark.parametrize("value", [
    "2024-01-05T18:30:00Z",
    "2024-01-05 09:00",
    datetime(2024, 1, 5, 23, 59),
])
def test_parse_date_rejects_a_time_of_day(value):
    with pytest.raises(ValidationError, match="expected YYYY-MM-DD"):
        parse_date(value, "rent_end_date")


@pytest.mark.parametrize("value", ["05/01/2024", "", None, 20240105, "2024-13-01"])
def test_parse_date_rejects_garbage(value):
    with pytest.raises(ValidationError):
        parse_date(value, "rent_start_date")


def test_to_int_and_positive_float():
    assert to_int("12", "user ID") == 12
    assert to_int(10.0, "vehicle_id") == 10
    with pytest.raises(ValidationError, match="Invalid user ID"):
        to_int("abc", "user ID")
    with pytest.raises(ValidationError):
        to_int(True, "user ID")
    with pytest.raises(ValidationError, match="Invalid vehicle_id"):
        to_int(10.9, "vehicle_id")
    assert to_positive_float("45.5", "daily_rent_price") == 45.5
    for bad in (0, -1, "free", None):
        with pytest.raises(ValidationError):
            to_positive_float(bad, "daily_rent_price")
