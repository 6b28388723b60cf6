import logging
import uuid
from datetime import date
from typing import Dict, List, Optional

from ..core.config import format_db_date
from ..core.exceptions import InvalidPolicy, NotAServiceDay, RepositoryError
from ..engine.grid import (
    available_people_for_date,
    build_assignment_grid,
    build_suggestion_request,
    eligible_people_for_role,
)
from ..engine.navigator import nearest_service_date
from ..engine.service_days import default_policy, is_service_day
from ..models.schemas import (
    Assignment,
    GridRow,
    MigrationResult,
    Person,
    Role,
    Schedule,
    ScheduleCreate,
    ServiceDayPolicy,
    SuggestionRequest,
    SuggestionResult,
)
from ..repository.memory import RosterRepository, assignment_key

logger = logging.getLogger(__name__)


class RosterService:
    """
    Roster operations for explicitly named schedules.

    Every method takes the schedule id as an argument; nothing here keeps a
    "current schedule". Repository errors propagate unchanged.
    """

    def __init__(self, repo: RosterRepository):
        self.repo = repo

    # --- Schedules & policy ---

    async def create_schedule(self, payload: ScheduleCreate) -> Schedule:
        schedule = Schedule(
            id=uuid.uuid4().hex,
            name=payload.name,
            description=payload.description,
            owner_id=payload.owner_id,
            service_day_config=payload.service_day_config or default_policy(),
        )
        return await self.repo.create_schedule(schedule)

    async def get_policy(self, schedule_id: str) -> ServiceDayPolicy:
        """Returns the schedule's policy, or the Saturday default when it has none yet."""
        policy = await self.repo.get_schedule_config(schedule_id)
        if policy is None:
            logger.warning("Schedule %s has no service-day config, using default", schedule_id)
            return default_policy()
        return policy

    async def update_policy(self, schedule_id: str, policy: ServiceDayPolicy) -> ServiceDayPolicy:
        if policy.primary_day is None:
            raise InvalidPolicy(
                "A service-day policy needs a primary day", {"schedule_id": schedule_id, "policy": policy.model_dump()}
            )
        await self.repo.update_schedule_config(schedule_id, policy)
        logger.info("Updated service-day config of schedule %s: %s", schedule_id, policy.model_dump())
        return policy

    async def backfill_service_day_config(self) -> MigrationResult:
        """
        Gives every schedule without a service-day config the Saturday default.
        Schedules that already have one are left alone, so reruns are no-ops.
        """
        result = MigrationResult()
        for schedule in await self.repo.list_schedules():
            if schedule.service_day_config is not None:
                continue
            try:
                await self.repo.update_schedule_config(schedule.id, default_policy())
            except RepositoryError as e:
                logger.error("Failed to migrate schedule %s: %s", schedule.name, e)
                result.failed.append(schedule.name)
                continue
            result.migrated.append(schedule.name)
        logger.info("Service-day migration: %d migrated, %d failed", len(result.migrated), len(result.failed))
        return result

    # --- Grid ---

    async def get_grid(self, schedule_id: str, d: date) -> List[GridRow]:
        roles = await self.repo.get_roles(schedule_id)
        people = await self.repo.get_people(schedule_id)
        assignments = await self.repo.get_assignments_for_date(schedule_id, format_db_date(d))
        return build_assignment_grid(schedule_id, d, roles, assignments, people)

    async def eligible_people(self, schedule_id: str, role_id: str, d: Optional[date] = None) -> List[Person]:
        """People who may fill the role, narrowed to those available on d when given."""
        roles = {r.id: r for r in await self.repo.get_roles(schedule_id)}
        role = roles.get(role_id) or Role(id=role_id, name=role_id)
        people = await self.repo.get_people(schedule_id)
        if d is not None:
            people = available_people_for_date(people, d)
        return eligible_people_for_role(role, people)

    async def set_assignment(
        self, schedule_id: str, d: date, role_id: str, person_id: Optional[str]
    ) -> Optional[Assignment]:
        """
        Assigns a person to a role on a date, or clears it when person_id is None.

        Clearing deletes the document on any date, so assignments left on
        dates the current policy no longer allows can still be removed.
        Eligibility is not checked. The write is one keyed upsert, so
        concurrent writers end with the last one.
        """
        date_str = format_db_date(d)
        if person_id is None:
            removed = await self.repo.delete_assignment(schedule_id, assignment_key(date_str, role_id))
            if removed:
                logger.info("Unassigned %s on %s in schedule %s", role_id, date_str, schedule_id)
            return None

        policy = await self.get_policy(schedule_id)
        if not is_service_day(d, policy):
            # a policy with no legal weekday raises NoLegalServiceDay here
            raise NotAServiceDay(
                f"{date_str} is not a service day for schedule {schedule_id}",
                {"date": date_str, "nearest": format_db_date(nearest_service_date(d, policy))},
            )

        assignment = await self.repo.upsert_assignment(schedule_id, date_str, role_id, person_id)
        logger.info("Assigned %s to %s on %s in schedule %s", person_id, role_id, date_str, schedule_id)
        return assignment

    # --- Suggestions ---

    async def suggestion_request(self, schedule_id: str, d: date) -> SuggestionRequest:
        roles = await self.repo.get_roles(schedule_id)
        people = await self.repo.get_people(schedule_id)
        history = await self.repo.get_assignments_in_range(schedule_id, "0000-01-01", format_db_date(d))
        history.reverse()  # most recent first
        return build_suggestion_request(d, roles, people, history)

    async def apply_suggestions(
        self, schedule_id: str, d: date, suggestions: Dict[str, Optional[str]]
    ) -> SuggestionResult:
        """
        Applies a {role name: person name} map from the suggester.
        Unknown role names are ignored; unknown person names are skipped.
        """
        roles_by_name = {r.name: r for r in await self.repo.get_roles(schedule_id)}
        people_by_name = {p.name: p for p in await self.repo.get_people(schedule_id)}
        result = SuggestionResult()

        for role_name, person_name in suggestions.items():
            role = roles_by_name.get(role_name)
            if role is None:
                logger.warning("Suggested role %r does not exist in schedule %s", role_name, schedule_id)
                continue
            person_id = None
            if person_name:
                person = people_by_name.get(person_name)
                if person is None:
                    logger.warning("Person %r not found for role %r", person_name, role_name)
                    result.skipped.append(role_name)
                    continue
                person_id = person.id
            await self.set_assignment(schedule_id, d, role.id, person_id)
            result.applied.append(role_name)

        logger.info("Applied %d suggestions for %s", len(result.applied), format_db_date(d))
        return result
