from datetime import datetime, timezone
from unittest.mock import MagicMock

from court_scheduler import conflicts
from court_scheduler.conflicts import PreferredInterval
from court_scheduler.models import Booking, BookingStatus, Court

UTC = timezone.utc


def at(hour, minute=0):
    return datetime(2024, 6, 10, hour, minute, tzinfo=UTC)


def booking(booking_id, resource_id, start, end, status=BookingStatus.CONFIRMED):
    return Booking(id=booking_id, resource_id=resource_id, start=start, end=end, status=status)


PREFERRED = PreferredInterval(start=at(10), duration_minutes=30)


def test_preferred_interval_end():
    assert PreferredInterval(start=at(10), duration_minutes=90).end == at(11, 30)


def test_switches_to_free_court():
    courts = [Court(id=1, name="R"), Court(id=2, name="S")]
    bookings = {1: [booking(1, 1, at(10), at(11))], 2: []}

    result = conflicts.find_alternative(PREFERRED, 1, courts, bookings)

    assert result.resource_id == 2
    assert result.start == at(10)
    assert result.resource_name == "S"


def test_first_fit_in_input_order():
    bookings = {2: [], 3: []}
    assert conflicts.find_alternative(PREFERRED, 1, [3, 2], bookings).resource_id == 3
    assert conflicts.find_alternative(PREFERRED, 1, [2, 3], bookings).resource_id == 2


def test_never_returns_excluded_court():
    bookings = {1: []}
    assert conflicts.find_alternative(PREFERRED, 1, [1], bookings) is None


def test_none_when_every_candidate_overlaps():
    bookings = {
        2: [booking(1, 2, at(9, 30), at(10, 30))],
        3: [booking(2, 3, at(10), at(12))],
    }
    assert conflicts.find_alternative(PREFERRED, 1, [1, 2, 3], bookings) is None


def test_adjacent_and_cancelled_bookings_do_not_block():
    bookings = {
        2: [booking(1, 2, at(9), at(10)), booking(2, 2, at(10, 30), at(11))],
        3: [booking(3, 3, at(10), at(11), status=BookingStatus.CANCELLED)],
    }
    assert conflicts.find_alternative(PREFERRED, 1, [2], bookings).resource_id == 2
    assert conflicts.find_alternative(PREFERRED, 1, [3], bookings).resource_id == 3


def test_lookup_is_lazy():
    lookup = MagicMock(side_effect=lambda resource_id: [])

    result = conflicts.find_alternative(PREFERRED, 1, [1, 2, 3, 4], lookup)

    assert result.resource_id == 2
    lookup.assert_called_once_with(2)


def test_missing_resource_in_mapping_counts_as_free():
    assert conflicts.find_alternative(PREFERRED, 1, [5], {}).resource_id == 5
