import logging
from dataclasses import dataclass
from typing import List

logger = logging.getLogger(__name__)

# Substrings the backend uses in conflict messages. Only consulted when the
# error body carries no structured code.
CONFLICT_MARKERS = ("overlap", "conflict", "already booked")
CONFLICT_CODES = {"booking_conflict", "overlap", "conflict"}
SESSION_CODES = {"session_expired", "invalid_token", "not_authenticated"}


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class BookingError(Exception):
    """Base class for everything the scheduling core raises."""


class ValidationError(BookingError):
    """Local validation failure. Never sent over the wire."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message

    def as_field_error(self) -> FieldError:
        return FieldError(self.field, self.message)


class CapacityError(ValidationError):
    def __init__(self, limit: int):
        super().__init__("participant_ids", f"At most {limit} participants can join the booker.")
        self.limit = limit


class RecurrenceValidationError(BookingError):
    def __init__(self, errors: List[FieldError]):
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))
        self.errors = errors


class ApiError(BookingError):
    """Failure reported by (or while talking to) the remote booking API."""

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class ConflictError(ApiError):
    """The interval was taken after the availability snapshot was fetched."""


class TransportError(ApiError):
    """Network failure, timeout or 5xx. Retryable by the user."""


class SessionError(ApiError):
    """Authentication invalid or expired. Fatal to the current flow."""


class RejectedError(ApiError):
    """Any other server-side rejection of a request."""


def classify_api_error(status_code: int | None, detail: str, code: str | None = None) -> ApiError:
    """Maps a failed API response to the error taxonomy.

    This is the single place that interprets server error text. A structured
    ``code`` wins; substring matching is the fallback for the current backend.
    """
    detail = detail or ""
    if code:
        normalized = code.lower()
        if normalized in CONFLICT_CODES:
            return ConflictError(detail, status_code)
        if normalized in SESSION_CODES:
            return SessionError(detail, status_code)

    if status_code in (401, 403):
        return SessionError(detail, status_code)
    if status_code is None or status_code >= 500:
        return TransportError(detail, status_code)
    if status_code == 409:
        return ConflictError(detail, status_code)

    lowered = detail.lower()
    if any(marker in lowered for marker in CONFLICT_MARKERS):
        logger.debug(f"Classified error as conflict from message text: {detail}")
        return ConflictError(detail, status_code)

    return RejectedError(detail, status_code)
