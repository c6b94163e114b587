import pytest

from court_scheduler.errors import (
    ConflictError,
    RejectedError,
    SessionError,
    TransportError,
    classify_api_error,
)


@pytest.mark.parametrize(
    "status, detail, expected",
    [
        (401, "Not authenticated", SessionError),
        (403, "Token expired", SessionError),
        (None, "Connection refused", TransportError),
        (502, "Bad gateway", TransportError),
        (409, "Slot taken", ConflictError),
        (400, "Booking overlaps with an existing booking", ConflictError),
        (400, "Court CONFLICT detected", ConflictError),
        (400, "Court already booked", ConflictError),
        (400, "Maximum number of bookings reached", RejectedError),
    ],
)
def test_classify_api_error(status, detail, expected):
    error = classify_api_error(status, detail)
    assert type(error) is expected
    assert error.status_code == status
    assert error.detail == detail


def test_session_failure_never_looks_like_conflict():
    # An auth failure mentioning a conflict must not trigger an alternative search.
    assert isinstance(classify_api_error(401, "conflict in session"), SessionError)


def test_structured_code_wins_over_text():
    assert isinstance(classify_api_error(400, "Request failed", code="booking_conflict"), ConflictError)
    assert isinstance(classify_api_error(400, "overlap", code="session_expired"), SessionError)


def test_unknown_code_falls_back_to_text():
    assert isinstance(classify_api_error(400, "overlap", code="something_else"), ConflictError)
