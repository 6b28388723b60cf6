from datetime import date, datetime, timedelta
from typing import Union

from ..core.config import WEEKDAY_NAMES, format_db_date, to_local_date
from ..core.exceptions import NoLegalServiceDay
from ..models.schemas import ServiceDayPolicy
from .service_days import is_service_day

DAYS_PER_WEEK = 7


def weekday_name(day: int) -> str:
    """Display name of a Sunday-first weekday number."""
    if not 0 <= day <= 6:
        raise ValueError(f"weekday must be in 0..6, got {day}")
    return WEEKDAY_NAMES[day]


def _scan(start: date, step: int, policy: ServiceDayPolicy) -> date:
    """
    Walks one day at a time from `start` (inclusive) until a legal date.
    Any policy with a legal weekday hits one within a week.
    """
    current = start
    for _ in range(DAYS_PER_WEEK):
        if is_service_day(current, policy):
            return current
        current += timedelta(days=step)
    raise NoLegalServiceDay(
        "Service-day policy allows no weekday",
        {"start": format_db_date(start), "policy": policy.model_dump()},
    )


def nearest_service_date(d: Union[date, datetime], policy: ServiceDayPolicy) -> date:
    """
    Returns the date itself when it is legal, otherwise the next legal date.
    Never scans backward.
    """
    return _scan(to_local_date(d), 1, policy)


def next_service_date(current: Union[date, datetime], policy: ServiceDayPolicy) -> date:
    """
    Returns a legal date strictly after `current`: one week later when
    `current` is legal, else the first legal date from `current + 7`.
    """
    current = to_local_date(current)
    next_week = current + timedelta(days=DAYS_PER_WEEK)
    if is_service_day(current, policy):
        return next_week
    return _scan(next_week, 1, policy)


def previous_service_date(current: Union[date, datetime], policy: ServiceDayPolicy) -> date:
    """Mirror of next_service_date, walking backward."""
    current = to_local_date(current)
    previous_week = current - timedelta(days=DAYS_PER_WEEK)
    if is_service_day(current, policy):
        return previous_week
    return _scan(previous_week, -1, policy)
