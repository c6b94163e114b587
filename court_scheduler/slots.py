import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta, tzinfo
from itertools import combinations
from typing import Dict, Iterable, List, Tuple
from zoneinfo import ZoneInfo

from court_scheduler import config
from court_scheduler.models import Booking, BookingKind, SlotClassification, SlotStatus, TimeSlot

logger = logging.getLogger(__name__)


def get_zone(tz: tzinfo | str | None = None) -> tzinfo:
    """Resolves a timezone argument, falling back to the configured club timezone."""
    if tz is None:
        return ZoneInfo(config.TIMEZONE)
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def generate(
    day: date,
    start_hour: float = config.GRID_START_HOUR,
    end_hour: float = config.GRID_END_HOUR,
    step_minutes: int = config.SLOT_MINUTES,
    tz: tzinfo | str | None = None,
) -> List[TimeSlot]:
    """Generates the fixed booking grid for a calendar day.

    ``end_hour`` is the start of the last slot, so the default 8 to 21.5 grid
    holds 28 half-hour slots from 08:00-08:30 to 21:30-22:00.
    """
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")
    if end_hour < start_hour:
        raise ValueError("end_hour must not be before start_hour")

    zone = get_zone(tz)
    midnight = datetime.combine(day, time(0, 0), tzinfo=zone)
    first_offset = round(start_hour * 60)
    count = round((end_hour - start_hour) * 60 / step_minutes) + 1
    step = timedelta(minutes=step_minutes)

    slots = []
    for i in range(count):
        start = midnight + timedelta(minutes=first_offset + i * step_minutes)
        slots.append(TimeSlot(start=start, end=start + step))

    logger.debug(f"Generated {len(slots)} slots for {day.isoformat()}")
    return slots


def find_booking(start: datetime, end: datetime, bookings: Iterable[Booking]) -> Booking | None:
    """Returns the confirmed booking overlapping [start, end), if any."""
    for booking in bookings:
        if booking.is_confirmed and booking.overlaps(start, end):
            return booking
    return None


def classify(slot: TimeSlot, now: datetime, bookings: Iterable[Booking]) -> SlotClassification:
    """Classifies one grid slot against a bookings snapshot."""
    if slot.start <= now:
        return SlotClassification(slot=slot, status=SlotStatus.PAST)

    booking = find_booking(slot.start, slot.end, bookings)
    if booking is None:
        return SlotClassification(slot=slot, status=SlotStatus.AVAILABLE)
    if booking.kind == BookingKind.EVENT:
        return SlotClassification(slot=slot, status=SlotStatus.BOOKED_EVENT, booking=booking)
    return SlotClassification(slot=slot, status=SlotStatus.BOOKED_REGULAR, booking=booking)


def classify_day(slots: List[TimeSlot], now: datetime, bookings: List[Booking]) -> List[SlotClassification]:
    return [classify(slot, now, bookings) for slot in slots]


def first_actionable_index(slots: List[TimeSlot], now: datetime) -> int:
    """Index of the first slot still in the future, 0 when none is."""
    for i, slot in enumerate(slots):
        if slot.start > now:
            return i
    return 0


def available_start_times(
    day: date,
    duration_minutes: int,
    bookings: List[Booking],
    now: datetime,
    ignore_booking_id: int | None = None,
    tz: tzinfo | str | None = None,
) -> List[datetime]:
    """Lists grid start times where a booking of the given duration fits.

    The booking being edited is ignored so it can be moved within its own span.
    A booking may not run past the end of the last grid slot.
    """
    grid = generate(day, tz=tz)
    if not grid:
        return []
    closing = grid[-1].end
    length = timedelta(minutes=duration_minutes)
    others = [b for b in bookings if b.id != ignore_booking_id]

    starts = []
    for slot in grid:
        end = slot.start + length
        if slot.start <= now or end > closing:
            continue
        if find_booking(slot.start, end, others) is None:
            starts.append(slot.start)
    return starts


def find_overlapping_pairs(bookings: Iterable[Booking]) -> List[Tuple[Booking, Booking]]:
    """Reports pairs of confirmed bookings on the same resource that overlap.

    An empty result means the snapshot satisfies the no-double-booking invariant.
    """
    by_resource: Dict[int, List[Booking]] = defaultdict(list)
    for booking in bookings:
        if booking.is_confirmed:
            by_resource[booking.resource_id].append(booking)

    pairs = []
    for resource_bookings in by_resource.values():
        for a, b in combinations(sorted(resource_bookings, key=lambda b: b.start), 2):
            if a.overlaps(b.start, b.end):
                pairs.append((a, b))

    if pairs:
        logger.warning(f"Found {len(pairs)} overlapping confirmed booking pairs.")
    return pairs
