import argparse
import logging
import sys
from datetime import datetime, timedelta
from typing import List

from court_scheduler import config
from court_scheduler.client import BookingApiClient
from court_scheduler.errors import ApiError
from court_scheduler.models import BookingIntent, SlotClassification, SlotStatus
from court_scheduler.service import BookingService

# --- Logging Setup ---

logger = logging.getLogger(__name__)

STATUS_PREFIX = {
    SlotStatus.PAST: "[PAST]     ",
    SlotStatus.AVAILABLE: "[AVAILABLE]",
    SlotStatus.BOOKED_REGULAR: "[BOOKED]   ",
    SlotStatus.BOOKED_EVENT: "[EVENT]    ",
}


def setup_logging(verbose: bool):
    """Configures logging to stderr with local time."""
    import time

    level = logging.DEBUG if verbose else logging.INFO
    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s]: %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    # Use local time instead of UTC for logging
    formatter.converter = time.localtime
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
    )


def parse_arguments(argv=None):
    """Parses command line arguments."""
    parser = argparse.ArgumentParser(description="Inspect court availability and find alternative courts.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    slots_parser = subparsers.add_parser("slots", help="Print the slot grid of a court for one day.")
    slots_parser.add_argument("--court", type=int, required=True, help="Court id.")
    slots_parser.add_argument("--date", type=str, help="Date in YYYY-MM-DD format. Defaults to today.")

    alt_parser = subparsers.add_parser("alternative", help="Find another free court for an interval.")
    alt_parser.add_argument("--club", type=int, required=True, help="Club id.")
    alt_parser.add_argument("--court", type=int, required=True, help="Court that is taken.")
    alt_parser.add_argument("--start", type=str, required=True, help="Start as YYYY-MM-DDTHH:MM (club time).")
    alt_parser.add_argument(
        "--duration", type=int, default=config.DEFAULT_DURATION_MINUTES, help="Duration in minutes. Defaults to 60."
    )
    return parser.parse_args(argv)


def print_slot_report(court_id: int, date_str: str, classified: List[SlotClassification]):
    """Prints the classified slot grid to stdout."""
    print(f"\n--- Court {court_id} on {date_str} ---")

    for item in classified:
        detail = ""
        if item.status == SlotStatus.BOOKED_EVENT and item.description:
            detail = f" {item.description}"
        elif item.status == SlotStatus.BOOKED_REGULAR and item.booked_by is not None:
            detail = f" by user {item.booked_by}"
        print(f"{STATUS_PREFIX[item.status]} {item.slot.label}{detail}")

    free = sum(1 for item in classified if item.actionable)
    print(f"Summary: {free} of {len(classified)} slots free on {date_str}.")


def show_slots(service: BookingService, court_id: int, date_str: str | None) -> int:
    now = datetime.now(service.zone)
    if date_str:
        try:
            day = datetime.strptime(date_str, "%Y-%m-%d").date()
        except ValueError:
            logger.error("Error: Date must be in YYYY-MM-DD format.")
            return 1
    else:
        day = now.date()

    classified = service.day_slots(court_id, day, now)
    print_slot_report(court_id, day.isoformat(), classified)
    return 0


def show_alternative(service: BookingService, club_id: int, court_id: int, start_str: str, duration: int) -> int:
    try:
        start = datetime.strptime(start_str, "%Y-%m-%dT%H:%M").replace(tzinfo=service.zone)
    except ValueError:
        logger.error("Error: Start must be in YYYY-MM-DDTHH:MM format.")
        return 1

    courts = service.client.list_courts(club_id)
    intent = BookingIntent(resource_id=court_id, start=start, duration_minutes=duration)
    alternative = service.find_alternative(intent, courts)
    end = start + timedelta(minutes=duration)
    if alternative is None:
        print(f"No other court is free {start:%Y-%m-%d %H:%M}-{end:%H:%M}.")
        return 0

    name = alternative.resource_name or f"Court {alternative.resource_id}"
    print(f"{name} (id {alternative.resource_id}) is free {start:%Y-%m-%d %H:%M}-{end:%H:%M}.")
    return 0


def main(argv=None):
    args = parse_arguments(argv)
    setup_logging(args.verbose)
    service = BookingService(BookingApiClient())

    try:
        if args.command == "slots":
            code = show_slots(service, args.court, args.date)
        else:
            code = show_alternative(service, args.club, args.court, args.start, args.duration)
    except ApiError as e:
        logger.error(f"Booking API request failed: {e}")
        code = 1
    sys.exit(code)
