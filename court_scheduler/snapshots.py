import logging
from datetime import date
from typing import Dict, List, Tuple

from court_scheduler.models import Booking

logger = logging.getLogger(__name__)

SnapshotKey = Tuple[int, str]


def make_key(resource_id: int, day: date | str) -> SnapshotKey:
    day_str = day if isinstance(day, str) else day.strftime("%Y-%m-%d")
    return (resource_id, day_str)


class BookingSnapshots:
    """Point-in-time booking lists per (court, day).

    Each fetch takes a generation token; a response is only stored if no
    newer fetch for the same key started in the meantime, so a slow stale
    response cannot overwrite fresher data.
    """

    def __init__(self):
        self._bookings: Dict[SnapshotKey, List[Booking]] = {}
        self._generations: Dict[SnapshotKey, int] = {}

    def begin_fetch(self, key: SnapshotKey) -> int:
        token = self._generations.get(key, 0) + 1
        self._generations[key] = token
        return token

    def commit(self, key: SnapshotKey, token: int, bookings: List[Booking]) -> bool:
        if token != self._generations.get(key):
            logger.info(f"Discarding stale bookings for court {key[0]} on {key[1]} (token {token}).")
            return False
        self._bookings[key] = list(bookings)
        return True

    def get(self, key: SnapshotKey) -> List[Booking] | None:
        return self._bookings.get(key)

    def invalidate(self, key: SnapshotKey):
        """Drops a snapshot and supersedes any fetch still in flight for it."""
        self._bookings.pop(key, None)
        self.begin_fetch(key)
        logger.debug(f"Invalidated bookings for court {key[0]} on {key[1]}")

    def clear(self):
        for key in list(self._generations):
            self.begin_fetch(key)
        self._bookings.clear()
        logger.debug("Cleared all booking snapshots")
