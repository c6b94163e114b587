import logging
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from typing import List, Sequence, Tuple

from court_scheduler import config, conflicts, recurrence, slots, validation
from court_scheduler.client import BookingApiClient
from court_scheduler.errors import ApiError, ConflictError, FieldError
from court_scheduler.models import (
    Actor,
    Alternative,
    Booking,
    BookingIntent,
    Court,
    RecurringEventTemplate,
    SlotClassification,
)
from court_scheduler.snapshots import BookingSnapshots, make_key
from court_scheduler.validation import ValidationResult

logger = logging.getLogger(__name__)


@dataclass
class SubmitResult:
    booking: Booking | None = None
    errors: List[FieldError] = field(default_factory=list)
    conflict: ConflictError | None = None
    alternative: Alternative | None = None

    @property
    def ok(self) -> bool:
        return self.booking is not None


class BookingService:
    """Ties the pure scheduling rules to the remote booking API.

    Transport and session failures propagate to the caller unchanged; only a
    conflict is turned into a result, because it comes with a suggestion.
    """

    def __init__(
        self,
        client: BookingApiClient,
        snapshots: BookingSnapshots | None = None,
        tz: tzinfo | str | None = None,
    ):
        self.client = client
        self.snapshots = snapshots or BookingSnapshots()
        self.zone = slots.get_zone(tz)

    def local_day(self, moment: datetime) -> date:
        return moment.astimezone(self.zone).date()

    def bookings_for(self, resource_id: int, day: date) -> List[Booking]:
        key = make_key(resource_id, day)
        cached = self.snapshots.get(key)
        if cached is not None:
            return cached
        token = self.snapshots.begin_fetch(key)
        bookings = self.client.list_bookings(resource_id, day)
        self.snapshots.commit(key, token, bookings)
        return bookings

    def refresh(self, resource_id: int, day: date) -> List[Booking]:
        self.snapshots.invalidate(make_key(resource_id, day))
        return self.bookings_for(resource_id, day)

    def day_slots(self, resource_id: int, day: date, now: datetime) -> List[SlotClassification]:
        grid = slots.generate(day, tz=self.zone)
        return slots.classify_day(grid, now, self.bookings_for(resource_id, day))

    def start_times(
        self, resource_id: int, day: date, duration_minutes: int, now: datetime, ignore_booking_id: int | None = None
    ) -> List[datetime]:
        bookings = self.bookings_for(resource_id, day)
        return slots.available_start_times(day, duration_minutes, bookings, now, ignore_booking_id, tz=self.zone)

    def find_alternative(self, intent: BookingIntent, candidates: Sequence[Court]) -> Alternative | None:
        day = self.local_day(intent.start)
        preferred = conflicts.PreferredInterval(start=intent.start, duration_minutes=intent.duration_minutes)
        return conflicts.find_alternative(
            preferred,
            intent.resource_id,
            candidates,
            lambda resource_id: self.bookings_for(resource_id, day),
        )

    def submit(
        self,
        intent: BookingIntent,
        actor: Actor,
        now: datetime,
        candidates: Sequence[Court] = (),
    ) -> SubmitResult:
        """Validates and sends a new booking, or an update when the intent edits one."""
        result = validation.can_submit(intent, now, booker_id=actor.user_id)
        if not result.ok:
            return SubmitResult(errors=result.errors)

        key = make_key(intent.resource_id, self.local_day(intent.start))
        payload = intent.to_request()
        try:
            if intent.editing_booking_id is not None:
                booking = self.client.update_booking(intent.editing_booking_id, payload)
            else:
                booking = self.client.create_booking(payload)
        except ConflictError as e:
            logger.warning(f"Booking on court {intent.resource_id} at {intent.start.isoformat()} rejected: {e.detail}")
            self.snapshots.invalidate(key)
            alternative = None
            if candidates:
                try:
                    alternative = self.find_alternative(intent, candidates)
                except ApiError as lookup_error:
                    logger.error(f"Alternative search for court {intent.resource_id} failed: {lookup_error}")
            return SubmitResult(errors=[FieldError("start", e.detail)], conflict=e, alternative=alternative)

        self.snapshots.invalidate(key)
        return SubmitResult(booking=booking)

    def edit(
        self,
        booking: Booking,
        intent: BookingIntent,
        actor: Actor,
        club_id: int | None,
        now: datetime,
        candidates: Sequence[Court] = (),
    ) -> SubmitResult:
        if not validation.can_edit(booking, actor, club_id):
            return SubmitResult(errors=[FieldError("booking", "You cannot change this booking.")])
        edited = intent.model_copy(update={"editing_booking_id": booking.id})
        result = self.submit(edited, actor, now, candidates)
        old_key = make_key(booking.resource_id, self.local_day(booking.start))
        if result.ok and old_key != make_key(edited.resource_id, self.local_day(edited.start)):
            self.snapshots.invalidate(old_key)
        return result

    def cancel(self, booking: Booking, actor: Actor, club_id: int | None) -> ValidationResult:
        if not validation.can_edit(booking, actor, club_id):
            return ValidationResult([FieldError("booking", "You cannot cancel this booking.")])
        self.client.cancel_booking(booking.id)
        self.snapshots.invalidate(make_key(booking.resource_id, self.local_day(booking.start)))
        return ValidationResult()

    def submit_recurring(self, spec: RecurringEventTemplate, event_id: int | None = None) -> ValidationResult:
        """Validates a recurring event template and sends it to the API."""
        errors = recurrence.validate(spec)
        if errors:
            return ValidationResult(errors)

        payload = recurrence.to_request(spec, tz=self.zone if config.RECURRING_TIMES_UTC else None)
        if event_id is None:
            self.client.create_recurring_event(payload)
        else:
            self.client.update_recurring_event(event_id, payload)
        # Event bookings can land on any day of the range.
        self.snapshots.clear()
        return ValidationResult()

    def load_recurring_events(self, club_id: int) -> List[Tuple[int, RecurringEventTemplate]]:
        """Stored recurring events of a club as (event id, template) pairs."""
        tz = self.zone if config.RECURRING_TIMES_UTC else None
        events = self.client.list_recurring_events(club_id)
        return [(event.get("id"), recurrence.from_payload(event, tz=tz)) for event in events]
