import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Mapping, Union

from court_scheduler.models import Alternative, Booking, Court
from court_scheduler.slots import find_booking

logger = logging.getLogger(__name__)

BookingsLookup = Union[Callable[[int], List[Booking]], Mapping[int, List[Booking]]]


@dataclass(frozen=True)
class PreferredInterval:
    start: datetime
    duration_minutes: int

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)


def _resource_id(resource: Union[Court, int]) -> int:
    return resource.id if isinstance(resource, Court) else resource


def _lookup(bookings_by_resource: BookingsLookup, resource_id: int) -> List[Booking]:
    if isinstance(bookings_by_resource, Mapping):
        return bookings_by_resource.get(resource_id, [])
    return bookings_by_resource(resource_id)


def find_alternative(
    preferred: PreferredInterval,
    excluded_resource_id: int,
    candidate_resources: Iterable[Union[Court, int]],
    bookings_by_resource: BookingsLookup,
) -> Alternative | None:
    """Finds the first other court where the preferred interval is still free.

    Candidates are tried in the order given and bookings are looked up lazily,
    so courts after the first free one are never fetched. The result is only a
    suggestion: nothing is held until the follow-up submission.
    """
    for resource in candidate_resources:
        resource_id = _resource_id(resource)
        if resource_id == excluded_resource_id:
            continue

        blocking = find_booking(preferred.start, preferred.end, _lookup(bookings_by_resource, resource_id))
        if blocking is None:
            name = resource.name if isinstance(resource, Court) else None
            logger.info(f"Alternative found on court {resource_id} at {preferred.start.isoformat()}")
            return Alternative(resource_id=resource_id, start=preferred.start, resource_name=name)

        logger.debug(f"Court {resource_id} blocked by booking {blocking.id}")

    logger.info(f"No alternative court free at {preferred.start.isoformat()}")
    return None
