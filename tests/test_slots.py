from datetime import date, datetime, timedelta, timezone

import pytest

from court_scheduler import config, slots
from court_scheduler.models import Booking, BookingKind, BookingStatus, SlotStatus, TimeSlot

UTC = timezone.utc
DAY = date(2024, 6, 10)
EARLY = datetime(2024, 6, 10, 7, 0, tzinfo=UTC)


def at(hour, minute=0):
    return datetime(2024, 6, 10, hour, minute, tzinfo=UTC)


def make_booking(booking_id, start, end, resource_id=1, kind=BookingKind.REGULAR, status=BookingStatus.CONFIRMED, **kw):
    return Booking(id=booking_id, resource_id=resource_id, start=start, end=end, kind=kind, status=status, **kw)


def slot(hour, minute=0):
    start = at(hour, minute)
    return TimeSlot(start=start, end=start + timedelta(minutes=30))


def test_generate_default_grid():
    grid = slots.generate(DAY, tz=UTC)

    assert len(grid) == 28
    assert grid[0].start == at(8, 0)
    assert grid[0].end == at(8, 30)
    assert grid[-1].start == at(21, 30)
    assert grid[-1].end == at(22, 0)
    for s in grid:
        assert s.end - s.start == timedelta(minutes=30)
        assert s.start.minute in (0, 30)
    for a, b in zip(grid, grid[1:]):
        assert a.start < b.start


def test_generate_uses_configured_timezone():
    grid = slots.generate(DAY)
    assert str(grid[0].start.tzinfo) == config.TIMEZONE
    assert grid[0].start.hour == 8


def test_generate_custom_range():
    grid = slots.generate(DAY, start_hour=10, end_hour=12, step_minutes=60, tz=UTC)
    assert [s.start.hour for s in grid] == [10, 11, 12]


def test_generate_rejects_inverted_range():
    with pytest.raises(ValueError):
        slots.generate(DAY, start_hour=12, end_hour=10, tz=UTC)


def test_time_slot_is_immutable():
    s = slot(9)
    with pytest.raises(Exception):
        s.start = at(10)


def test_classify_around_regular_booking():
    bookings = [make_booking(1, at(10), at(11), booked_by_id=42)]

    assert slots.classify(slot(9, 30), EARLY, bookings).status == SlotStatus.AVAILABLE
    first = slots.classify(slot(10, 0), EARLY, bookings)
    assert first.status == SlotStatus.BOOKED_REGULAR
    assert first.booked_by == 42
    assert slots.classify(slot(10, 30), EARLY, bookings).status == SlotStatus.BOOKED_REGULAR
    assert slots.classify(slot(11, 0), EARLY, bookings).status == SlotStatus.AVAILABLE


def test_classify_event_booking_exposes_description():
    bookings = [make_booking(1, at(18), at(20), kind=BookingKind.EVENT, description="Junior training")]

    result = slots.classify(slot(19), EARLY, bookings)

    assert result.status == SlotStatus.BOOKED_EVENT
    assert result.description == "Junior training"
    assert result.booked_by is None
    assert not result.actionable


def test_classify_past_wins_over_booking():
    bookings = [make_booking(1, at(10), at(11))]
    now = at(10, 0)

    assert slots.classify(slot(10, 0), now, bookings).status == SlotStatus.PAST
    assert slots.classify(slot(9, 30), now, bookings).status == SlotStatus.PAST
    assert slots.classify(slot(10, 30), now, bookings).status == SlotStatus.BOOKED_REGULAR


def test_classify_ignores_cancelled_bookings():
    bookings = [make_booking(1, at(10), at(11), status=BookingStatus.CANCELLED)]
    assert slots.classify(slot(10), EARLY, bookings).status == SlotStatus.AVAILABLE


def test_classify_day_is_total_and_idempotent():
    grid = slots.generate(DAY, tz=UTC)
    bookings = [
        make_booking(1, at(10), at(11)),
        make_booking(2, at(18), at(19), kind=BookingKind.EVENT, description="League"),
    ]
    now = at(9, 0)

    first = slots.classify_day(grid, now, bookings)
    second = slots.classify_day(grid, now, bookings)

    assert first == second
    assert len(first) == len(grid)
    counts = {status: sum(1 for c in first if c.status == status) for status in SlotStatus}
    assert counts[SlotStatus.PAST] == 3
    assert counts[SlotStatus.BOOKED_REGULAR] == 2
    assert counts[SlotStatus.BOOKED_EVENT] == 2
    assert counts[SlotStatus.AVAILABLE] == 21


def test_first_actionable_index():
    grid = slots.generate(DAY, tz=UTC)
    assert slots.first_actionable_index(grid, EARLY) == 0
    assert slots.first_actionable_index(grid, at(9, 10)) == 3
    assert slots.first_actionable_index(grid, at(23, 0)) == 0


def test_available_start_times_for_one_hour():
    bookings = [make_booking(7, at(10), at(11))]

    starts = slots.available_start_times(DAY, 60, bookings, EARLY, tz=UTC)

    assert at(9, 0) in starts
    assert at(9, 30) not in starts
    assert at(10, 0) not in starts
    assert at(10, 30) not in starts
    assert at(11, 0) in starts
    # A one hour booking has to end by 22:00.
    assert starts[-1] == at(21, 0)


def test_available_start_times_ignores_booking_being_edited():
    bookings = [make_booking(7, at(10), at(11))]

    starts = slots.available_start_times(DAY, 90, bookings, EARLY, ignore_booking_id=7, tz=UTC)

    assert at(10, 0) in starts
    assert at(10, 30) in starts


def test_available_start_times_skips_past():
    starts = slots.available_start_times(DAY, 30, [], at(12, 0), tz=UTC)
    assert starts[0] == at(12, 30)


def test_find_overlapping_pairs():
    bookings = [
        make_booking(1, at(10), at(11)),
        make_booking(2, at(10, 30), at(11, 30)),
        make_booking(3, at(11, 30), at(12)),  # touches 2, no overlap
        make_booking(4, at(10), at(12), status=BookingStatus.CANCELLED),
        make_booking(5, at(10), at(11), resource_id=2),
    ]

    pairs = slots.find_overlapping_pairs(bookings)

    assert [(a.id, b.id) for a, b in pairs] == [(1, 2)]


def test_find_overlapping_pairs_empty_for_valid_snapshot():
    bookings = [make_booking(1, at(10), at(11)), make_booking(2, at(11), at(12))]
    assert slots.find_overlapping_pairs(bookings) == []
