"""Recurring event templates: validation and the wire payload.

Weekdays are numbered the way Python's ``date.weekday()`` numbers them
(Monday=0 ... Sunday=6). That is also the numbering the booking API decodes,
and ``Weekday`` is the only table that maps labels to numbers.
"""
import json
import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import IntEnum
from typing import Callable, Dict, Iterable, List

from court_scheduler import config
from court_scheduler.errors import FieldError, RecurrenceValidationError
from court_scheduler.models import RecurringEventTemplate
from court_scheduler.slots import get_zone

logger = logging.getLogger(__name__)


class Weekday(IntEnum):
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def short_label(self) -> str:
        return self.label[:3]

    @classmethod
    def from_label(cls, label: str) -> "Weekday":
        """Parses "Monday", "mon", "MONDAY" and the like."""
        key = label.strip().lower()
        for day in cls:
            if key in (day.name.lower(), day.name.lower()[:3]):
                return day
        raise ValueError(f"Unknown weekday label: {label!r}")

    @classmethod
    def coerce(cls, value: "int | str | Weekday") -> "Weekday":
        if isinstance(value, str):
            return cls.from_label(value)
        return cls(value)


def check_resource(spec: RecurringEventTemplate) -> FieldError | None:
    if spec.resource_id is None:
        return FieldError("resource_id", "Select a court.")
    return None


def check_date_range(spec: RecurringEventTemplate) -> FieldError | None:
    if spec.date_range_start is None or spec.date_range_end is None:
        return FieldError("date_range", "Select a start and an end date.")
    if spec.date_range_start >= spec.date_range_end:
        return FieldError("date_range", "The end date must be after the start date.")
    return None


def check_daily_window(spec: RecurringEventTemplate) -> FieldError | None:
    if spec.daily_start is None or spec.daily_end is None:
        return FieldError("daily_window", "Select a start and an end time.")
    if spec.daily_start >= spec.daily_end:
        return FieldError("daily_window", "The end time must be after the start time.")
    return None


def check_weekdays(spec: RecurringEventTemplate) -> FieldError | None:
    if not spec.weekdays:
        return FieldError("weekdays", "Select at least one weekday.")
    for value in spec.weekdays:
        try:
            Weekday.coerce(value)
        except ValueError:
            return FieldError("weekdays", f"{value!r} is not a weekday.")
    return None


def check_description(spec: RecurringEventTemplate) -> FieldError | None:
    text = (spec.description or "").strip()
    if not text:
        return FieldError("description", "Enter a description.")
    if len(text) > config.DESCRIPTION_MAX_LENGTH:
        return FieldError("description", f"Keep the description under {config.DESCRIPTION_MAX_LENGTH} characters.")
    return None


FIELD_CHECKS: Dict[str, Callable[[RecurringEventTemplate], FieldError | None]] = {
    "resource_id": check_resource,
    "date_range": check_date_range,
    "daily_window": check_daily_window,
    "weekdays": check_weekdays,
    "description": check_description,
}


def validate(spec: RecurringEventTemplate) -> List[FieldError]:
    """Runs every field check; the result lists all problems, not just the first."""
    errors = []
    for check in FIELD_CHECKS.values():
        error = check(spec)
        if error:
            errors.append(error)
    return errors


def is_valid(spec: RecurringEventTemplate) -> bool:
    return not validate(spec)


def weekdays_from_labels(labels: Iterable[str]) -> set:
    return {Weekday.from_label(label) for label in labels}


def _format_daily_time(value: time, on: date, zone: tzinfo | None) -> str:
    if zone is None:
        return value.strftime("%H:%M")
    local = datetime.combine(on, value, tzinfo=zone)
    return local.astimezone(timezone.utc).strftime("%H:%M")


def to_request(spec: RecurringEventTemplate, tz: tzinfo | str | None = None) -> dict:
    """Builds the API payload for a valid template.

    With ``tz`` the daily window is converted from wall-clock time in that zone
    to UTC, using the first day of the range as the reference date.
    """
    errors = validate(spec)
    if errors:
        raise RecurrenceValidationError(errors)

    zone = get_zone(tz) if tz is not None else None
    days = sorted(int(Weekday.coerce(d)) for d in spec.weekdays)
    return {
        "court_id": spec.resource_id,
        "start_time_daily": _format_daily_time(spec.daily_start, spec.date_range_start, zone),
        "end_time_daily": _format_daily_time(spec.daily_end, spec.date_range_start, zone),
        "recurrence": {"days": days},
        "description": spec.description.strip(),
        "start_date": spec.date_range_start.strftime("%Y-%m-%d"),
        "end_date": spec.date_range_end.strftime("%Y-%m-%d"),
    }


def _parse_days(raw) -> set:
    days = set()
    for value in raw or []:
        try:
            days.add(Weekday.coerce(value))
        except ValueError:
            logger.warning(f"Ignoring invalid recurrence day: {value!r}")
    return days


def _parse_time(value: str | None, on: date, zone: tzinfo | None) -> time | None:
    if not value:
        return None
    parsed = datetime.strptime(value[:5], "%H:%M").time()
    if zone is None:
        return parsed
    utc = datetime.combine(on, parsed, tzinfo=timezone.utc)
    return utc.astimezone(zone).time().replace(tzinfo=None)


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return datetime.strptime(value[:10], "%Y-%m-%d").date()


def from_payload(data: dict, tz: tzinfo | str | None = None) -> RecurringEventTemplate:
    """Reads a stored recurring event back into a template for editing.

    Older events keep their recurrence as a JSON string under ``recurrence_json``
    and may store the date range inside it.
    """
    rec = data.get("recurrence_json") or data.get("recurrence") or {"days": []}
    if isinstance(rec, str):
        try:
            rec = json.loads(rec)
        except json.JSONDecodeError:
            logger.error(f"Failed to parse recurrence for event {data.get('id')}: {rec!r}")
            rec = {"days": []}

    range_start = _parse_date(rec.get("start_date") or data.get("start_date"))
    range_end = _parse_date(rec.get("end_date") or data.get("end_date"))
    zone = get_zone(tz) if tz is not None else None
    reference = range_start or date.today()

    return RecurringEventTemplate(
        resource_id=data.get("court_id"),
        daily_start=_parse_time(data.get("start_time_daily"), reference, zone),
        daily_end=_parse_time(data.get("end_time_daily"), reference, zone),
        weekdays=_parse_days(rec.get("days")),
        date_range_start=range_start,
        date_range_end=range_end,
        description=data.get("description") or "",
    )


def occurrence_dates(spec: RecurringEventTemplate) -> List[date]:
    """Calendar dates the template covers, range ends inclusive. Used for previews."""
    if check_date_range(spec) or check_weekdays(spec):
        return []
    days = {int(d) for d in spec.weekdays}
    dates = []
    current = spec.date_range_start
    while current <= spec.date_range_end:
        if current.weekday() in days:
            dates.append(current)
        current += timedelta(days=1)
    return dates
