import calendar
from datetime import date
from typing import Dict, List

from ..core.config import SATURDAY, SUNDAY, WEEKDAY_NAMES, sunday_first_weekday, to_local_date
from ..core.exceptions import PresetNotFound
from ..models.schemas import ChurchPreset, ServiceDayPolicy, Weekday


def default_policy() -> ServiceDayPolicy:
    """Saturday only, no custom dates."""
    return ServiceDayPolicy()


def is_service_day(d: date, policy: ServiceDayPolicy) -> bool:
    """
    Checks if a date is a legal assignment date under the policy.
    This is the only implementation of the rule; the navigator and the
    date-picker calendar both call it.
    """
    if policy.allow_custom_dates:
        return True
    weekday = sunday_first_weekday(to_local_date(d))
    return weekday == policy.primary_day or weekday in policy.additional_days


def set_primary_day(policy: ServiceDayPolicy, day: Weekday) -> ServiceDayPolicy:
    """Sets the primary day and removes it from the additional days."""
    return ServiceDayPolicy(
        primary_day=day,
        additional_days=[d for d in policy.additional_days if d != day],
        allow_custom_dates=policy.allow_custom_dates,
    )


def toggle_additional_day(policy: ServiceDayPolicy, day: Weekday, enabled: bool) -> ServiceDayPolicy:
    """
    Adds or removes an additional service day.
    Adding the primary day is a no-op.
    """
    days = set(policy.additional_days)
    if enabled:
        if day != policy.primary_day:
            days.add(day)
    else:
        days.discard(day)
    return ServiceDayPolicy(
        primary_day=policy.primary_day,
        additional_days=sorted(days),
        allow_custom_dates=policy.allow_custom_dates,
    )


def set_allow_custom_dates(policy: ServiceDayPolicy, allowed: bool) -> ServiceDayPolicy:
    return policy.model_copy(update={"allow_custom_dates": allowed})


def service_days_in_month(year: int, month: int, policy: ServiceDayPolicy) -> List[date]:
    """Lists every legal date of a month, for date-picker views."""
    num_days = calendar.monthrange(year, month)[1]
    return [
        date(year, month, day)
        for day in range(1, num_days + 1)
        if is_service_day(date(year, month, day), policy)
    ]


def describe_policy(policy: ServiceDayPolicy) -> str:
    """Human readable summary, e.g. 'Saturday + Wednesday'."""
    parts = []
    if policy.primary_day is not None:
        parts.append(WEEKDAY_NAMES[policy.primary_day])
    summary = " + ".join(parts + [WEEKDAY_NAMES[d] for d in policy.additional_days])
    if policy.allow_custom_dates:
        summary = f"{summary} (custom dates allowed)" if summary else "custom dates allowed"
    return summary


# --- Church-type presets ---

CHURCH_PRESETS: Dict[str, ChurchPreset] = {
    p.id: p
    for p in (
        ChurchPreset(
            id="sunday-traditional",
            name="Traditional Sunday Church",
            description="Most Protestant churches, Catholic churches",
            service_day_config=ServiceDayPolicy(primary_day=SUNDAY),
        ),
        ChurchPreset(
            id="sabbath-adventist",
            name="Sabbath-Keeping Church",
            description="Seventh-day Adventist, Seventh Day Baptist",
            service_day_config=ServiceDayPolicy(primary_day=SATURDAY),
        ),
        ChurchPreset(
            id="multi-service",
            name="Multi-Service Church",
            description="Sunday worship + midweek services",
            service_day_config=ServiceDayPolicy(primary_day=SUNDAY, additional_days=[3], allow_custom_dates=True),
        ),
        ChurchPreset(
            id="orthodox-church",
            name="Orthodox Church",
            description="Eastern Orthodox, Russian Orthodox churches",
            service_day_config=ServiceDayPolicy(primary_day=SUNDAY, allow_custom_dates=True),
        ),
        ChurchPreset(
            id="flexible-christian",
            name="Flexible Christian Community",
            description="Non-denominational with flexible scheduling",
            service_day_config=ServiceDayPolicy(primary_day=SUNDAY, allow_custom_dates=True),
        ),
        ChurchPreset(
            id="custom",
            name="Custom Configuration",
            description="Set up your own service day pattern",
            service_day_config=ServiceDayPolicy(primary_day=SUNDAY),
        ),
    )
}


def list_presets() -> List[ChurchPreset]:
    return [p.model_copy(deep=True) for p in CHURCH_PRESETS.values()]


def apply_preset(preset_id: str) -> ServiceDayPolicy:
    """
    Returns a fresh copy of a preset's policy. The table is closed; unknown
    ids raise PresetNotFound.
    """
    preset = CHURCH_PRESETS.get(preset_id)
    if preset is None:
        raise PresetNotFound(f"Unknown church-type preset: {preset_id}", {"preset_id": preset_id})
    return preset.service_day_config.model_copy(deep=True)


def matching_presets(policy: ServiceDayPolicy) -> List[str]:
    """Ids of the presets whose policy equals this one. Several presets can share a policy."""
    return [p.id for p in CHURCH_PRESETS.values() if p.service_day_config == policy]
