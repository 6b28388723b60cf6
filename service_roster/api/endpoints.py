from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from ..core.config import (
    MAX_YEAR,
    UPCOMING_HOLIDAYS_COUNT,
    WEEKDAY_NAMES,
    format_db_date,
    format_display_date,
    parse_db_date,
    sunday_first_weekday,
)
from ..engine.holidays import holiday_by_id, holidays_for_year, upcoming_holidays
from ..engine.navigator import (
    nearest_service_date,
    next_service_date,
    previous_service_date,
    weekday_name,
)
from ..engine.service_days import (
    apply_preset,
    describe_policy,
    is_service_day,
    list_presets,
    matching_presets,
    service_days_in_month,
    set_allow_custom_dates,
    set_primary_day,
    toggle_additional_day,
)
from ..models.schemas import (
    AdditionalDayUpdate,
    AssignmentUpdate,
    ChurchPreset,
    CustomDatesUpdate,
    GridResponse,
    Holiday,
    MigrationResult,
    NavigationResponse,
    Person,
    PersonCreate,
    PrimaryDayUpdate,
    Role,
    Schedule,
    ScheduleCreate,
    ServiceDayCheck,
    ServiceDayPolicy,
    ServiceDayPolicyUpdate,
    SuggestionApply,
    SuggestionRequest,
    SuggestionResult,
)
from ..repository.memory import InMemoryRepository
from ..services.roster_service import RosterService

router = APIRouter()

_repository = InMemoryRepository()


def get_service() -> RosterService:
    """Request dependency; tests override it with their own repository."""
    return RosterService(_repository)


def _navigation(d) -> NavigationResponse:
    return NavigationResponse(
        date=format_db_date(d), weekday=weekday_name(sunday_first_weekday(d)), display=format_display_date(d)
    )


# --- Holidays ---

@router.get("/holidays/upcoming", response_model=List[Holiday])
async def get_upcoming_holidays(count: int = Query(UPCOMING_HOLIDAYS_COUNT, ge=0, le=50)):
    """Next holidays from today, crossing into next year when needed."""
    return upcoming_holidays(count)


@router.get("/holidays/{year}", response_model=List[Holiday])
async def get_holidays(year: int = Path(ge=1, le=MAX_YEAR)):
    return holidays_for_year(year)


@router.get("/weekdays")
async def get_weekdays():
    return [{"day": day, "name": name} for day, name in enumerate(WEEKDAY_NAMES)]


@router.get("/service-day-presets", response_model=List[ChurchPreset])
async def get_service_day_presets():
    """Church-type presets offered when setting up a schedule."""
    return list_presets()


# --- Schedules ---

@router.post("/schedules", response_model=Schedule, status_code=201)
async def create_schedule(payload: ScheduleCreate, service: RosterService = Depends(get_service)):
    return await service.create_schedule(payload)


@router.get("/schedules/{schedule_id}", response_model=Schedule)
async def get_schedule(schedule_id: str, service: RosterService = Depends(get_service)):
    return await service.repo.get_schedule(schedule_id)


@router.post("/migrations/service-day-config", response_model=MigrationResult)
async def migrate_service_day_config(service: RosterService = Depends(get_service)):
    """Backfills the Saturday default on schedules created before service-day settings existed."""
    return await service.backfill_service_day_config()


# --- Service-day policy ---

@router.get("/schedules/{schedule_id}/service-days", response_model=ServiceDayPolicy)
async def get_service_days(schedule_id: str, service: RosterService = Depends(get_service)):
    return await service.get_policy(schedule_id)


@router.put("/schedules/{schedule_id}/service-days", response_model=ServiceDayPolicy)
async def replace_service_days(
    schedule_id: str, body: ServiceDayPolicyUpdate, service: RosterService = Depends(get_service)
):
    return await service.update_policy(schedule_id, body.to_policy())


@router.put("/schedules/{schedule_id}/service-days/preset/{preset_id}", response_model=ServiceDayPolicy)
async def apply_service_day_preset(
    schedule_id: str, preset_id: str, service: RosterService = Depends(get_service)
):
    """Replaces the schedule's policy with a church-type preset."""
    return await service.update_policy(schedule_id, apply_preset(preset_id))


@router.put("/schedules/{schedule_id}/service-days/primary-day", response_model=ServiceDayPolicy)
async def update_primary_day(
    schedule_id: str, body: PrimaryDayUpdate, service: RosterService = Depends(get_service)
):
    policy = await service.get_policy(schedule_id)
    return await service.update_policy(schedule_id, set_primary_day(policy, body.day))


@router.put("/schedules/{schedule_id}/service-days/additional-days/{day}", response_model=ServiceDayPolicy)
async def update_additional_day(
    schedule_id: str,
    body: AdditionalDayUpdate,
    day: int = Path(ge=0, le=6),
    service: RosterService = Depends(get_service),
):
    policy = await service.get_policy(schedule_id)
    return await service.update_policy(schedule_id, toggle_additional_day(policy, day, body.enabled))


@router.put("/schedules/{schedule_id}/service-days/custom-dates", response_model=ServiceDayPolicy)
async def update_custom_dates(
    schedule_id: str, body: CustomDatesUpdate, service: RosterService = Depends(get_service)
):
    policy = await service.get_policy(schedule_id)
    return await service.update_policy(schedule_id, set_allow_custom_dates(policy, body.allowed))


@router.get("/schedules/{schedule_id}/service-days/summary")
async def get_service_day_summary(schedule_id: str, service: RosterService = Depends(get_service)):
    policy = await service.get_policy(schedule_id)
    return {"summary": describe_policy(policy), "presets": matching_presets(policy)}


# --- Navigation ---

@router.get("/schedules/{schedule_id}/service-days/check", response_model=ServiceDayCheck)
async def check_service_day(schedule_id: str, date: str, service: RosterService = Depends(get_service)):
    d = parse_db_date(date)
    policy = await service.get_policy(schedule_id)
    return ServiceDayCheck(date=format_db_date(d), is_service_day=is_service_day(d, policy))


@router.get("/schedules/{schedule_id}/service-days/calendar", response_model=List[str])
async def get_service_day_calendar(
    schedule_id: str,
    year: int = Query(ge=1, le=MAX_YEAR),
    month: int = Query(ge=1, le=12),
    service: RosterService = Depends(get_service),
):
    """Legal dates of one month, for greying out a date-picker."""
    policy = await service.get_policy(schedule_id)
    return [format_db_date(d) for d in service_days_in_month(year, month, policy)]


@router.get("/schedules/{schedule_id}/service-days/nearest", response_model=NavigationResponse)
async def get_nearest_service_date(schedule_id: str, date: str, service: RosterService = Depends(get_service)):
    policy = await service.get_policy(schedule_id)
    return _navigation(nearest_service_date(parse_db_date(date), policy))


@router.get("/schedules/{schedule_id}/service-days/next", response_model=NavigationResponse)
async def get_next_service_date(schedule_id: str, date: str, service: RosterService = Depends(get_service)):
    policy = await service.get_policy(schedule_id)
    return _navigation(next_service_date(parse_db_date(date), policy))


@router.get("/schedules/{schedule_id}/service-days/previous", response_model=NavigationResponse)
async def get_previous_service_date(schedule_id: str, date: str, service: RosterService = Depends(get_service)):
    policy = await service.get_policy(schedule_id)
    return _navigation(previous_service_date(parse_db_date(date), policy))


@router.get("/schedules/{schedule_id}/holidays/{year}/{holiday_id}/service-date", response_model=NavigationResponse)
async def get_holiday_service_date(
    schedule_id: str,
    holiday_id: str,
    year: int = Path(ge=1, le=MAX_YEAR),
    service: RosterService = Depends(get_service),
):
    """Snaps a holiday to the schedule's nearest legal service date."""
    holiday = holiday_by_id(year, holiday_id)
    policy = await service.get_policy(schedule_id)
    return _navigation(nearest_service_date(holiday.date, policy))


# --- Roles & people ---

@router.post("/schedules/{schedule_id}/roles", response_model=Role, status_code=201)
async def create_role(schedule_id: str, role: Role, service: RosterService = Depends(get_service)):
    return await service.repo.create_role(schedule_id, role)


@router.post("/schedules/{schedule_id}/people", response_model=Person, status_code=201)
async def create_person(schedule_id: str, payload: PersonCreate, service: RosterService = Depends(get_service)):
    for unavailable in payload.unavailable_dates:
        parse_db_date(unavailable)
    return await service.repo.create_person(schedule_id, Person(id="", **payload.model_dump()))


@router.delete("/schedules/{schedule_id}/people/{person_id}", status_code=204)
async def delete_person(schedule_id: str, person_id: str, service: RosterService = Depends(get_service)):
    await service.repo.delete_person(schedule_id, person_id)


@router.get("/schedules/{schedule_id}/roles/{role_id}/eligible", response_model=List[Person])
async def get_eligible_people(
    schedule_id: str, role_id: str, date: Optional[str] = None, service: RosterService = Depends(get_service)
):
    """With a date, people marked unavailable on it are left out."""
    d = parse_db_date(date) if date is not None else None
    return await service.eligible_people(schedule_id, role_id, d)


# --- Assignments ---

@router.get("/schedules/{schedule_id}/grid", response_model=GridResponse)
async def get_assignment_grid(schedule_id: str, date: str, service: RosterService = Depends(get_service)):
    d = parse_db_date(date)
    rows = await service.get_grid(schedule_id, d)
    return GridResponse(schedule_id=schedule_id, date=format_db_date(d), rows=rows)


@router.put("/schedules/{schedule_id}/assignments", response_model=GridResponse)
async def set_assignment(schedule_id: str, body: AssignmentUpdate, service: RosterService = Depends(get_service)):
    """
    Assigns or clears one role on one date and returns the updated grid.
    A null person_id removes the assignment.
    """
    d = parse_db_date(body.date)
    await service.set_assignment(schedule_id, d, body.role_id, body.person_id)
    rows = await service.get_grid(schedule_id, d)
    return GridResponse(schedule_id=schedule_id, date=format_db_date(d), rows=rows)


# --- Suggestions ---

@router.post("/schedules/{schedule_id}/suggestions/request", response_model=SuggestionRequest)
async def get_suggestion_request(schedule_id: str, date: str, service: RosterService = Depends(get_service)):
    """Builds the input for the external suggestion service."""
    return await service.suggestion_request(schedule_id, parse_db_date(date))


@router.post("/schedules/{schedule_id}/suggestions/apply", response_model=SuggestionResult)
async def apply_suggestions(schedule_id: str, body: SuggestionApply, service: RosterService = Depends(get_service)):
    return await service.apply_suggestions(schedule_id, parse_db_date(body.date), body.suggestions)
