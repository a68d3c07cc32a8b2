"""
Booking status transitions: active is the only initial state, cancelled and
returned are terminal.
"""

from datetime import date

import pytest

from rental_api.exceptions import ConflictError, InvalidTransitionError
from rental_api.models.booking import Booking, assert_transition
from rental_api.utils.constants import BookingStatus

@pytest.mark.parametrize("target", [BookingStatus.CANCELLED, BookingStatus.RETURNED])
def test_active_can_move_to_terminal_states(target):
    assert_transition(BookingStatus.ACTIVE, target)

@pytest.mark.parametrize("current", [BookingStatus.CANCELLED, BookingStatus.RETURNED])
@pytest.mark.parametrize("target", list(BookingStatus))
def test_terminal_states_have_no_way_out(current, target):
    with pytest.raises(InvalidTransitionError) as exc:
        assert_transition(current, target)
    assert exc.value.current == current.value
    assert exc.value.requested == target.value

def test_active_to_active_is_not_a_transition():
    with pytest.raises(InvalidTransitionError):
        assert_transition(BookingStatus.ACTIVE, BookingStatus.ACTIVE)

def test_invalid_transition_is_a_conflict():
    assert issubclass(InvalidTransitionError, ConflictError)
    assert InvalidTransitionError("returned", "cancelled").status_code == 409

def _booking(status=BookingStatus.ACTIVE, start=date(2024, 1, 10)):
    return Booking(
        id=1, customer_id=2, vehicle_id=3,
        rent_start_date=start, rent_end_date=date(2024, 1, 12),
        total_price=100.0, status=status,
    )

def test_started_by_includes_the_start_date_itself():
    b = _booking()
    assert not b.started_by(date(2024, 1, 9))
    assert b.started_by(date(2024, 1, 10))
    assert b.started_by(date(2024, 1, 11))

def test_to_dict_serialises_dates_as_iso_strings():
    out = _booking().to_dict()
    assert out["rent_start_date"] == "2024-01-10"
    assert out["rent_end_date"] == "2024-01-12"
    assert out["status"] == "active"
