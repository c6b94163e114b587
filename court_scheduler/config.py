import logging
import os

logger = logging.getLogger(__name__)

# --- Remote booking API ---
API_BASE_URL = os.environ.get("COURT_API_BASE_URL", "https://api.courtbooka.rondras.com")
API_TOKEN = os.environ.get("COURT_API_TOKEN")
API_TIMEOUT = float(os.environ.get("COURT_API_TIMEOUT", "10"))

COMMON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}

# --- Slot grid ---
# Wall-clock timezone of the clubs; the API speaks UTC.
TIMEZONE = os.environ.get("COURT_TIMEZONE", "Europe/Berlin")
GRID_START_HOUR = float(os.environ.get("GRID_START_HOUR", "8"))
GRID_END_HOUR = float(os.environ.get("GRID_END_HOUR", "21.5"))
SLOT_MINUTES = int(os.environ.get("SLOT_MINUTES", "30"))

# --- Booking rules ---
# Participants besides the booker; the booker makes the fourth player.
MAX_PARTICIPANTS = int(os.environ.get("MAX_PARTICIPANTS", "3"))
DEFAULT_DURATION_MINUTES = 60

# --- Recurring events ---
DESCRIPTION_MAX_LENGTH = int(os.environ.get("DESCRIPTION_MAX_LENGTH", "200"))
RECURRING_TIMES_UTC = os.environ.get("RECURRING_TIMES_UTC", "true").lower() == "true"

if not API_TOKEN:
    logger.warning("COURT_API_TOKEN not set. Requests will be sent without authentication.")
