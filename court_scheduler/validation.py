import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from court_scheduler import config
from court_scheduler.errors import CapacityError, FieldError
from court_scheduler.models import Actor, Booking, BookingIntent

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.ok


def is_aligned(start: datetime, step_minutes: int = config.SLOT_MINUTES) -> bool:
    """True when the start sits on a grid boundary (:00 or :30 by default)."""
    return start.minute % step_minutes == 0 and start.second == 0 and start.microsecond == 0


def can_submit(intent: BookingIntent, now: datetime, booker_id: int | None = None) -> ValidationResult:
    """Checks a booking intent before it is sent to the API.

    Every field with a violated rule is reported, one error per field. Within
    a field only the first failing rule shows up, so a duplicate participant
    is not mentioned while the list is also over the limit.
    """
    errors = []

    if intent.start is None:
        errors.append(FieldError("start", "Select a start time."))
    elif intent.start <= now:
        errors.append(FieldError("start", "The start time must be in the future."))
    elif not is_aligned(intent.start):
        errors.append(FieldError("start", f"Bookings start on {config.SLOT_MINUTES}-minute boundaries."))

    if intent.duration_minutes <= 0 or intent.duration_minutes % config.SLOT_MINUTES != 0:
        errors.append(
            FieldError("duration_minutes", f"Duration must be a positive multiple of {config.SLOT_MINUTES} minutes.")
        )

    participants = intent.participant_ids
    if not participants:
        errors.append(FieldError("participant_ids", "Select at least one participant."))
    elif len(participants) > config.MAX_PARTICIPANTS:
        errors.append(
            FieldError("participant_ids", f"At most {config.MAX_PARTICIPANTS} participants can join the booker.")
        )
    elif len(set(participants)) != len(participants):
        errors.append(FieldError("participant_ids", "A participant is listed twice."))
    elif booker_id is not None and booker_id in participants:
        errors.append(FieldError("participant_ids", "The booker is included automatically."))

    if errors:
        logger.debug(f"Booking intent for court {intent.resource_id} rejected: {errors}")
    return ValidationResult(errors)


def add_participant(participant_ids: List[int], participant_id: int) -> List[int]:
    """Returns the participant list with one more member.

    Raises CapacityError instead of truncating when the party is full.
    """
    if participant_id in participant_ids:
        return list(participant_ids)
    if len(participant_ids) >= config.MAX_PARTICIPANTS:
        raise CapacityError(config.MAX_PARTICIPANTS)
    return [*participant_ids, participant_id]


def remove_participant(participant_ids: List[int], participant_id: int) -> List[int]:
    return [p for p in participant_ids if p != participant_id]


def toggle_participant(participant_ids: List[int], participant_id: int) -> List[int]:
    if participant_id in participant_ids:
        return remove_participant(participant_ids, participant_id)
    return add_participant(participant_ids, participant_id)


def can_edit(booking: Booking | None, actor: Actor, club_id: int | None) -> bool:
    """Owners, superadmins and admins of the owning club may change a booking."""
    if booking is None:
        return False
    if booking.booked_by_id == actor.user_id or actor.is_superadmin:
        return True
    return club_id is not None and club_id in actor.admin_club_ids
