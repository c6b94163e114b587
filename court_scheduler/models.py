from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import List, Set

from pydantic import BaseModel, ConfigDict, Field


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class BookingKind(str, Enum):
    REGULAR = "regular"
    EVENT = "event"


class SlotStatus(str, Enum):
    PAST = "past"
    AVAILABLE = "available"
    BOOKED_REGULAR = "booked_regular"
    BOOKED_EVENT = "booked_event"


class TimeSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @property
    def label(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


class Court(BaseModel):
    id: int
    name: str
    club_id: int | None = None


class Booking(BaseModel):
    id: int
    resource_id: int
    start: datetime
    end: datetime
    participant_ids: List[int] = Field(default_factory=list)
    booked_by_id: int | None = None
    status: BookingStatus = BookingStatus.CONFIRMED
    kind: BookingKind = BookingKind.REGULAR
    description: str | None = None

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Open-interval test: touching intervals do not overlap."""
        return self.start < end and start < self.end


class BookingIntent(BaseModel):
    resource_id: int
    start: datetime | None = None
    duration_minutes: int = 60
    participant_ids: List[int] = Field(default_factory=list)
    editing_booking_id: int | None = None

    @property
    def end(self) -> datetime | None:
        if self.start is None:
            return None
        return self.start + timedelta(minutes=self.duration_minutes)

    def to_request(self) -> dict:
        return {
            "court_id": self.resource_id,
            "start_time": self.start.astimezone(timezone.utc).isoformat() if self.start else None,
            "duration_minutes": self.duration_minutes,
            "participant_ids": list(self.participant_ids),
        }


class RecurringEventTemplate(BaseModel):
    # Permissive on purpose: recurrence.validate reports every problem at once.
    resource_id: int | None = None
    daily_start: time | None = None
    daily_end: time | None = None
    weekdays: Set[int] = Field(default_factory=set)
    date_range_start: date | None = None
    date_range_end: date | None = None
    description: str = ""


class Actor(BaseModel):
    user_id: int
    role: str = "user"  # "user", "admin", "superadmin"
    admin_club_ids: List[int] = Field(default_factory=list)

    @property
    def is_superadmin(self) -> bool:
        return self.role == "superadmin"


class SlotClassification(BaseModel):
    slot: TimeSlot
    status: SlotStatus
    booking: Booking | None = None

    @property
    def actionable(self) -> bool:
        return self.status == SlotStatus.AVAILABLE

    @property
    def booked_by(self) -> int | None:
        if self.status == SlotStatus.BOOKED_REGULAR and self.booking:
            return self.booking.booked_by_id
        return None

    @property
    def description(self) -> str | None:
        if self.status == SlotStatus.BOOKED_EVENT and self.booking:
            return self.booking.description
        return None


class Alternative(BaseModel):
    resource_id: int
    start: datetime
    resource_name: str | None = None
