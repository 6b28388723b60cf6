import os
import re
from datetime import date, datetime
from typing import List, Union

from dotenv import load_dotenv

from .exceptions import InvalidDate

load_dotenv()


# --- Weekdays (Sunday-first, 0=Sunday ... 6=Saturday) ---
WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
SUNDAY = 0
SATURDAY = 6

DEFAULT_PRIMARY_DAY = SATURDAY

# --- Date formats ---
DATE_FORMAT_DB = "%Y-%m-%d"
DATE_FORMAT_DISPLAY = "%A, %B {day}, %Y"  # day filled in without zero padding

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Highest year the API accepts; navigation from a late-December date may step into year + 1
MAX_YEAR = 9998

# --- Default roles for new schedules ---
DEFAULT_ROLES = [
    {"id": "preacher", "name": "Preacher", "description": "Delivers the main sermon"},
    {"id": "elder-on-duty", "name": "Elder on Duty", "description": "Oversees the service"},
    {"id": "sabbath-school-host", "name": "Sabbath School Host", "description": "Leads Sabbath School"},
    {"id": "pianist", "name": "Pianist", "description": "Provides musical accompaniment"},
    {"id": "song-leader", "name": "Song Leader", "description": "Leads congregational singing"},
    {"id": "deacon", "name": "Deacon", "description": "Assists with service logistics"},
    {"id": "greeter", "name": "Greeter", "description": "Welcomes congregation members"},
]

# --- Environment settings ---
CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in os.getenv("ROSTER_CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
LOG_LEVEL = os.getenv("ROSTER_LOG_LEVEL", "INFO").upper()
UPCOMING_HOLIDAYS_COUNT = int(os.getenv("ROSTER_UPCOMING_HOLIDAYS", "5"))


# --- Date helpers ---

def sunday_first_weekday(d: date) -> int:
    """Returns the weekday of a date with 0=Sunday ... 6=Saturday."""
    return (d.weekday() + 1) % 7  # date.weekday() is Monday=0


def to_local_date(value: Union[date, datetime]) -> date:
    """Drops the time-of-day component, keeping the local calendar date."""
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_db_date(value: str) -> date:
    """
    Parses a stored YYYY-MM-DD string as a plain local calendar date.
    Raises InvalidDate for anything else; never falls back to today.
    """
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value.strip()):
        raise InvalidDate(f"Invalid date {value!r}, expected YYYY-MM-DD", {"value": value})
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT_DB).date()
    except ValueError as e:
        raise InvalidDate(f"Invalid date {value!r}: {e}", {"value": value}) from e


def format_db_date(d: Union[date, datetime]) -> str:
    return to_local_date(d).strftime(DATE_FORMAT_DB)


def format_display_date(d: Union[date, str]) -> str:
    if isinstance(d, str):
        d = parse_db_date(d)
    return d.strftime(DATE_FORMAT_DISPLAY).format(day=d.day)
