import logging
from datetime import date, datetime, timezone
from typing import Dict, List

import requests

from court_scheduler import config
from court_scheduler.errors import TransportError, classify_api_error
from court_scheduler.models import Booking, BookingKind, BookingStatus, Court

logger = logging.getLogger(__name__)


def parse_timestamp(value: str) -> datetime:
    """Parses an API timestamp. The backend omits the offset on UTC values."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_booking(data: Dict) -> Booking:
    """Maps one booking from the API shape onto the Booking model."""
    participant_ids = data.get("participant_ids")
    if participant_ids is None:
        participant_ids = [p["id"] for p in data.get("participants") or [] if isinstance(p, dict) and "id" in p]

    status = str(data.get("status") or "confirmed").lower()
    kind = str(data.get("type") or data.get("kind") or "regular").lower()

    return Booking(
        id=data["id"],
        resource_id=data.get("court_id", data.get("resource_id")),
        start=parse_timestamp(data["start_time"]),
        end=parse_timestamp(data["end_time"]),
        participant_ids=participant_ids,
        booked_by_id=data.get("user_id"),
        status=BookingStatus.CANCELLED if status in ("cancelled", "canceled") else BookingStatus.CONFIRMED,
        kind=BookingKind.EVENT if kind == "event" else BookingKind.REGULAR,
        description=data.get("description"),
    )


def parse_court(data: Dict) -> Court:
    return Court(id=data["id"], name=data.get("name") or f"Court {data['id']}", club_id=data.get("club_id"))


def _error_details(response: requests.Response) -> tuple:
    try:
        body = response.json()
    except ValueError:
        return response.text, None
    if not isinstance(body, dict):
        return response.text, None
    detail = body.get("error") or body.get("detail") or body.get("message") or response.text
    return str(detail), body.get("code")


class BookingApiClient:
    """Thin adapter over the remote booking API.

    The session token is passed in explicitly; nothing here reads ambient
    login state. Failures surface as the errors from ``court_scheduler.errors``.
    """

    def __init__(self, base_url: str | None = None, token: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.API_TIMEOUT
        self.session = requests.Session()
        self.session.headers.update(config.COMMON_HEADERS)
        token = token if token is not None else config.API_TOKEN
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise TransportError(str(e)) from e

        if response.status_code >= 400:
            detail, code = _error_details(response)
            error = classify_api_error(response.status_code, detail, code)
            logger.error(f"{method} {url} returned {response.status_code}: {detail}")
            raise error

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def list_courts(self, club_id: int, show_all: bool = False) -> List[Court]:
        params = {"show_all": "true"} if show_all else None
        data = self._request("GET", f"/bookings/clubs/{club_id}/courts", params=params)
        courts = [parse_court(c) for c in data or []]
        logger.info(f"Loaded {len(courts)} courts for club {club_id}")
        return courts

    def list_bookings(self, resource_id: int, day: date | str) -> List[Booking]:
        day_str = day if isinstance(day, str) else day.strftime("%Y-%m-%d")
        logger.info(f"Fetching bookings for court {resource_id} on {day_str}")
        data = self._request("GET", f"/bookings/courts/{resource_id}/bookings", params={"date": day_str})
        return [parse_booking({"court_id": resource_id, **b}) for b in data or []]

    def list_user_bookings(self) -> List[Booking]:
        data = self._request("GET", "/bookings/users/me/bookings")
        return [parse_booking(b) for b in data or []]

    def create_booking(self, payload: Dict) -> Booking:
        data = self._request("POST", "/bookings/", json=payload)
        logger.info(f"Created booking {data.get('id')} on court {payload.get('court_id')}")
        return parse_booking({"court_id": payload.get("court_id"), **data})

    def update_booking(self, booking_id: int, payload: Dict) -> Booking:
        data = self._request("PUT", f"/bookings/bookings/{booking_id}", json=payload)
        logger.info(f"Updated booking {booking_id}")
        return parse_booking({"court_id": payload.get("court_id"), **data})

    def cancel_booking(self, booking_id: int):
        self._request("DELETE", f"/bookings/bookings/{booking_id}")
        logger.info(f"Cancelled booking {booking_id}")

    def create_recurring_event(self, payload: Dict) -> Dict | None:
        data = self._request("POST", "/bookings/bookings/recurring", json=payload)
        logger.info(f"Created recurring event on court {payload.get('court_id')}")
        return data

    def update_recurring_event(self, event_id: int, payload: Dict) -> Dict | None:
        data = self._request("PUT", f"/bookings/recurring/{event_id}", json=payload)
        logger.info(f"Updated recurring event {event_id}")
        return data

    def delete_recurring_event(self, event_id: int):
        self._request("DELETE", f"/bookings/recurring/{event_id}")
        logger.info(f"Deleted recurring event {event_id}")

    def list_recurring_events(self, club_id: int) -> List[Dict]:
        return self._request("GET", f"/bookings/clubs/{club_id}/recurring") or []
