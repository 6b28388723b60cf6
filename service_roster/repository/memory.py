"""
Schedule document store.

`RosterRepository` is the async contract the core consumes. `InMemoryRepository`
keeps one document collection per schedule (people, roles, assignments), the
same shape as the hosted document store, and keys assignments by
"{date}_{role_id}" so a date/role pair can only ever hold one document.
"""
from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional, Protocol

from ..core.config import DEFAULT_ROLES
from ..core.exceptions import RepositoryError, ScheduleNotFound
from ..models.schemas import Assignment, Person, Role, Schedule, ServiceDayPolicy

logger = logging.getLogger(__name__)


def assignment_key(date_str: str, role_id: str) -> str:
    return f"{date_str}_{role_id}"


class RosterRepository(Protocol):
    async def create_schedule(self, schedule: Schedule) -> Schedule: ...
    async def get_schedule(self, schedule_id: str) -> Schedule: ...
    async def list_schedules(self) -> List[Schedule]: ...
    async def update_schedule(self, schedule: Schedule) -> None: ...
    async def get_schedule_config(self, schedule_id: str) -> Optional[ServiceDayPolicy]: ...
    async def update_schedule_config(self, schedule_id: str, policy: ServiceDayPolicy) -> None: ...
    async def get_roles(self, schedule_id: str) -> List[Role]: ...
    async def create_role(self, schedule_id: str, role: Role) -> Role: ...
    async def delete_role(self, schedule_id: str, role_id: str) -> None: ...
    async def get_people(self, schedule_id: str) -> List[Person]: ...
    async def get_person(self, schedule_id: str, person_id: str) -> Optional[Person]: ...
    async def create_person(self, schedule_id: str, person: Person) -> Person: ...
    async def update_person(self, schedule_id: str, person: Person) -> None: ...
    async def delete_person(self, schedule_id: str, person_id: str) -> None: ...
    async def get_assignments_for_date(self, schedule_id: str, date_str: str) -> List[Assignment]: ...
    async def get_assignments_in_range(self, schedule_id: str, start: str, end: str) -> List[Assignment]: ...
    async def upsert_assignment(self, schedule_id: str, date_str: str, role_id: str, person_id: str) -> Assignment: ...
    async def delete_assignment(self, schedule_id: str, assignment_id: str) -> bool: ...
    async def delete_assignments_for_date(self, schedule_id: str, date_str: str) -> int: ...


class _ScheduleDocs:
    def __init__(self, schedule: Schedule):
        self.schedule = schedule
        self.roles: Dict[str, Role] = {}
        self.people: Dict[str, Person] = {}
        self.assignments: Dict[str, Assignment] = {}


class InMemoryRepository:
    """Dict-backed document store. Writes are single dict operations."""

    def __init__(self, seed_default_roles: bool = True):
        self._schedules: Dict[str, _ScheduleDocs] = {}
        self.seed_default_roles = seed_default_roles

    def _docs(self, schedule_id: str) -> _ScheduleDocs:
        docs = self._schedules.get(schedule_id)
        if docs is None:
            raise ScheduleNotFound(f"Schedule '{schedule_id}' not found", {"schedule_id": schedule_id})
        return docs

    # --- Schedules ---
    async def create_schedule(self, schedule: Schedule) -> Schedule:
        if not schedule.id:
            schedule = schedule.model_copy(update={"id": uuid.uuid4().hex})
        if schedule.id in self._schedules:
            raise RepositoryError(f"Schedule '{schedule.id}' already exists", {"schedule_id": schedule.id})
        docs = _ScheduleDocs(schedule.model_copy(deep=True))
        if self.seed_default_roles:
            docs.roles = {r["id"]: Role(**r) for r in DEFAULT_ROLES}
        self._schedules[schedule.id] = docs
        logger.info("Created schedule %s (%s)", schedule.id, schedule.name)
        return schedule

    async def get_schedule(self, schedule_id: str) -> Schedule:
        return self._docs(schedule_id).schedule.model_copy(deep=True)

    async def list_schedules(self) -> List[Schedule]:
        return [docs.schedule.model_copy(deep=True) for docs in self._schedules.values()]

    async def update_schedule(self, schedule: Schedule) -> None:
        self._docs(schedule.id).schedule = schedule.model_copy(deep=True)

    async def get_schedule_config(self, schedule_id: str) -> Optional[ServiceDayPolicy]:
        config = self._docs(schedule_id).schedule.service_day_config
        return config.model_copy(deep=True) if config is not None else None

    async def update_schedule_config(self, schedule_id: str, policy: ServiceDayPolicy) -> None:
        docs = self._docs(schedule_id)
        docs.schedule = docs.schedule.model_copy(update={"service_day_config": policy.model_copy(deep=True)})

    # --- Roles ---
    async def get_roles(self, schedule_id: str) -> List[Role]:
        return [r.model_copy(deep=True) for r in self._docs(schedule_id).roles.values()]

    async def create_role(self, schedule_id: str, role: Role) -> Role:
        self._docs(schedule_id).roles[role.id] = role.model_copy(deep=True)
        return role

    async def delete_role(self, schedule_id: str, role_id: str) -> None:
        self._docs(schedule_id).roles.pop(role_id, None)

    # --- People ---
    async def get_people(self, schedule_id: str) -> List[Person]:
        return [p.model_copy(deep=True) for p in self._docs(schedule_id).people.values()]

    async def get_person(self, schedule_id: str, person_id: str) -> Optional[Person]:
        person = self._docs(schedule_id).people.get(person_id)
        return person.model_copy(deep=True) if person is not None else None

    async def create_person(self, schedule_id: str, person: Person) -> Person:
        if not person.id:
            person = person.model_copy(update={"id": uuid.uuid4().hex})
        self._docs(schedule_id).people[person.id] = person.model_copy(deep=True)
        return person

    async def update_person(self, schedule_id: str, person: Person) -> None:
        self._docs(schedule_id).people[person.id] = person.model_copy(deep=True)

    async def delete_person(self, schedule_id: str, person_id: str) -> None:
        # assignments are left in place; the grid shows them as unassigned
        self._docs(schedule_id).people.pop(person_id, None)

    # --- Assignments ---
    async def get_assignments_for_date(self, schedule_id: str, date_str: str) -> List[Assignment]:
        return [a.model_copy() for a in self._docs(schedule_id).assignments.values() if a.date == date_str]

    async def get_assignments_in_range(self, schedule_id: str, start: str, end: str) -> List[Assignment]:
        found = [a.model_copy() for a in self._docs(schedule_id).assignments.values() if start <= a.date <= end]
        return sorted(found, key=lambda a: a.date)

    async def upsert_assignment(self, schedule_id: str, date_str: str, role_id: str, person_id: str) -> Assignment:
        assignment = Assignment(
            id=assignment_key(date_str, role_id),
            schedule_id=schedule_id,
            date=date_str,
            role_id=role_id,
            person_id=person_id,
        )
        self._docs(schedule_id).assignments[assignment.id] = assignment
        return assignment.model_copy()

    async def delete_assignment(self, schedule_id: str, assignment_id: str) -> bool:
        return self._docs(schedule_id).assignments.pop(assignment_id, None) is not None

    async def delete_assignments_for_date(self, schedule_id: str, date_str: str) -> int:
        assignments = self._docs(schedule_id).assignments
        doomed = [key for key, a in assignments.items() if a.date == date_str]
        for key in doomed:
            del assignments[key]
        return len(doomed)
