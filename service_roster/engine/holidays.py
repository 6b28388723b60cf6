"""
Christian holiday catalog.

Holidays are recomputed for every year, never stored. Fixed feasts keep their
month/day; moveable feasts are a fixed day offset from that year's Easter
Sunday. The catalog is closed: it is not extended per schedule.
"""
from __future__ import annotations

from datetime import date, timedelta
from functools import lru_cache
from typing import List, Optional

from ..core.config import UPCOMING_HOLIDAYS_COUNT, sunday_first_weekday
from ..core.exceptions import HolidayNotFound
from ..models.schemas import Holiday


# (id, name, description, month, day)
FIXED_HOLIDAYS = [
    ("epiphany", "Epiphany", "Celebration of the visit of the Magi", 1, 6),
    ("all-saints", "All Saints Day", "Celebration of all Christian saints", 11, 1),
    ("christmas-eve", "Christmas Eve", "Evening before Christmas", 12, 24),
    ("christmas", "Christmas Day", "Celebration of the birth of Jesus Christ", 12, 25),
]

# (id, name, description, days from Easter Sunday)
EASTER_RELATIVE_HOLIDAYS = [
    ("ash-wednesday", "Ash Wednesday", "Beginning of Lent", -46),
    ("palm-sunday", "Palm Sunday", "Sunday before Easter", -7),
    ("maundy-thursday", "Maundy Thursday", "Thursday before Easter", -3),
    ("good-friday", "Good Friday", "Friday before Easter", -2),
    ("easter-sunday", "Easter Sunday", "Celebration of the resurrection of Jesus Christ", 0),
    ("easter-monday", "Easter Monday", "Monday after Easter", 1),
    ("ascension-day", "Ascension Day", "39 days after Easter", 39),
    ("pentecost", "Pentecost", "49 days after Easter", 49),
    ("trinity-sunday", "Trinity Sunday", "First Sunday after Pentecost", 56),
    ("corpus-christi", "Corpus Christi", "Feast of the Body and Blood of Christ", 60),
]


def compute_easter(year: int) -> date:
    """Easter Sunday for a year (anonymous Gregorian / Meeus-Jones-Butcher)."""
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = (h + l - 7 * m + 114) % 31 + 1
    return date(year, month, day)


def first_sunday_of_advent(year: int) -> date:
    """The Sunday on or before Christmas Day, minus three weeks."""
    christmas = date(year, 12, 25)
    return christmas - timedelta(days=sunday_first_weekday(christmas) + 21)


@lru_cache(maxsize=64)
def _catalog(year: int) -> tuple:
    easter = compute_easter(year)
    holidays = [
        Holiday(id=h_id, name=name, description=desc, date=date(year, month, day), is_moveable=False)
        for h_id, name, desc, month, day in FIXED_HOLIDAYS
    ]
    holidays.extend(
        Holiday(id=h_id, name=name, description=desc, date=easter + timedelta(days=offset), is_moveable=True)
        for h_id, name, desc, offset in EASTER_RELATIVE_HOLIDAYS
    )
    holidays.append(Holiday(
        id="advent-first",
        name="First Sunday of Advent",
        description="Beginning of the Advent season",
        date=first_sunday_of_advent(year),
        is_moveable=True,
    ))
    return tuple(sorted(holidays, key=lambda h: h.date))


def holidays_for_year(year: int) -> List[Holiday]:
    """Returns the holiday catalog for a year, sorted by date."""
    return [h.model_copy() for h in _catalog(year)]


def holiday_by_id(year: int, holiday_id: str) -> Holiday:
    for holiday in _catalog(year):
        if holiday.id == holiday_id:
            return holiday.model_copy()
    raise HolidayNotFound(f"Unknown holiday '{holiday_id}'", {"holiday_id": holiday_id, "year": year})


def upcoming_holidays(count: int = UPCOMING_HOLIDAYS_COUNT, today: Optional[date] = None) -> List[Holiday]:
    """
    Returns the next `count` holidays on or after today, spilling into
    next year's catalog when the current year runs out.
    """
    today = today or date.today()
    this_year = [h for h in holidays_for_year(today.year) if h.date >= today]
    next_year = holidays_for_year(today.year + 1)
    return (this_year + next_year)[:max(count, 0)]
