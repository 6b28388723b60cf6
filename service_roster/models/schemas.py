import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..core.config import DEFAULT_PRIMARY_DAY

Weekday = int  # 0=Sunday ... 6=Saturday


def _check_weekday(day: int) -> int:
    if not 0 <= day <= 6:
        raise ValueError(f"weekday must be in 0..6, got {day}")
    return day


class ServiceDayPolicy(BaseModel):
    # None only appears in corrupted stored data; see NoLegalServiceDay
    primary_day: Optional[Weekday] = DEFAULT_PRIMARY_DAY
    additional_days: List[Weekday] = []
    allow_custom_dates: bool = False

    @field_validator("primary_day")
    @classmethod
    def _primary_in_range(cls, v):
        return v if v is None else _check_weekday(v)

    @field_validator("additional_days")
    @classmethod
    def _additional_in_range(cls, v):
        return sorted({_check_weekday(day) for day in v})

    @model_validator(mode="after")
    def _primary_not_additional(self):
        if self.primary_day in self.additional_days:
            self.additional_days = [d for d in self.additional_days if d != self.primary_day]
        return self


class ServiceDayPolicyUpdate(BaseModel):
    """Write body for a full policy replacement; the primary day is mandatory."""
    primary_day: Weekday = Field(ge=0, le=6)
    additional_days: List[Weekday] = []
    allow_custom_dates: bool = False

    @field_validator("additional_days")
    @classmethod
    def _additional_in_range(cls, v):
        return sorted({_check_weekday(day) for day in v})

    def to_policy(self) -> ServiceDayPolicy:
        return ServiceDayPolicy(**self.model_dump())


class ChurchPreset(BaseModel):
    id: str
    name: str
    description: str
    service_day_config: ServiceDayPolicy


class Holiday(BaseModel):
    id: str
    name: str
    date: datetime.date
    type: str = "christian"
    description: Optional[str] = None
    is_moveable: bool


class Role(BaseModel):
    id: str
    name: str
    description: Optional[str] = None


class Person(BaseModel):
    id: str
    name: str
    contact_info: Optional[str] = None
    fillable_role_ids: List[str] = []
    unavailable_dates: List[str] = []  # YYYY-MM-DD


class Assignment(BaseModel):
    id: str  # "{date}_{role_id}"
    schedule_id: str
    date: str  # YYYY-MM-DD
    role_id: str
    person_id: str


class Schedule(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    owner_id: Optional[str] = None
    admin_user_ids: List[str] = []
    service_day_config: Optional[ServiceDayPolicy] = None


class GridRow(BaseModel):
    role: Role
    person: Optional[Person] = None


# --- Request / response bodies ---

class ScheduleCreate(BaseModel):
    name: str
    description: Optional[str] = None
    owner_id: Optional[str] = None
    service_day_config: Optional[ServiceDayPolicy] = None


class PersonCreate(BaseModel):
    name: str
    contact_info: Optional[str] = None
    fillable_role_ids: List[str] = []
    unavailable_dates: List[str] = []


class PrimaryDayUpdate(BaseModel):
    day: Weekday = Field(ge=0, le=6)


class AdditionalDayUpdate(BaseModel):
    enabled: bool


class CustomDatesUpdate(BaseModel):
    allowed: bool


class AssignmentUpdate(BaseModel):
    date: str
    role_id: str
    person_id: Optional[str] = None


class ServiceDayCheck(BaseModel):
    date: str
    is_service_day: bool


class NavigationResponse(BaseModel):
    date: str
    weekday: str
    display: str  # e.g. "Saturday, March 9, 2024"


class GridResponse(BaseModel):
    schedule_id: str
    date: str
    rows: List[GridRow]


class MigrationResult(BaseModel):
    migrated: List[str] = []
    failed: List[str] = []


class SuggestedPerson(BaseModel):
    name: str
    roles: Optional[List[str]] = None
    availability: Optional[List[str]] = None  # dates the person is unavailable


class SuggestionRequest(BaseModel):
    date: str
    roles: List[str]
    available_people: List[SuggestedPerson]
    historical_data: str


class SuggestionApply(BaseModel):
    date: str
    suggestions: Dict[str, Optional[str]]  # role name -> person name


class SuggestionResult(BaseModel):
    applied: List[str] = []
    skipped: List[str] = []
