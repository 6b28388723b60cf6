from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional

from ..core.config import format_db_date
from ..models.schemas import Assignment, GridRow, Person, Role, SuggestedPerson, SuggestionRequest


def build_assignment_grid(
    schedule_id: str,
    d: date,
    roles: Iterable[Role],
    assignments_for_date: Iterable[Assignment],
    people: Iterable[Person],
) -> List[GridRow]:
    """
    Joins one date's assignments with the role and person records.

    Every role gets a row, in role list order. An assignment pointing to a
    deleted person resolves to an empty row; one pointing to a deleted role
    is dropped.
    """
    date_str = format_db_date(d)
    people_by_id = {p.id: p for p in people}
    person_by_role: Dict[str, str] = {}
    for a in assignments_for_date:
        if a.schedule_id != schedule_id or a.date != date_str:
            continue
        person_by_role.setdefault(a.role_id, a.person_id)

    return [
        GridRow(role=role, person=people_by_id.get(person_by_role.get(role.id)))
        for role in roles
    ]


def eligible_people_for_role(role: Role, people: Iterable[Person]) -> List[Person]:
    """
    People allowed to fill a role. An empty restriction list means any role.
    Advisory only: assignment writes never check it.
    """
    return [p for p in people if not p.fillable_role_ids or role.id in p.fillable_role_ids]


def available_people_for_date(people: Iterable[Person], d: date) -> List[Person]:
    date_str = format_db_date(d)
    return [p for p in people if date_str not in p.unavailable_dates]


def build_suggestion_request(
    d: date,
    roles: List[Role],
    people: List[Person],
    history: List[Assignment],
    history_limit: int = 50,
) -> SuggestionRequest:
    """
    Builds the structured input for the external assignment suggester.
    Roles and people are referred to by name; history is a plain text list.
    """
    date_str = format_db_date(d)
    role_names = {r.id: r.name for r in roles}
    people_by_id = {p.id: p for p in people}

    candidates = [
        SuggestedPerson(
            name=p.name,
            roles=[role_names.get(r, r) for r in p.fillable_role_ids] or None,
            availability=[u for u in p.unavailable_dates if u == date_str],
        )
        for p in people
    ]

    lines = []
    for a in history[:history_limit]:
        person: Optional[Person] = people_by_id.get(a.person_id)
        lines.append(f"{a.date} - {role_names.get(a.role_id, a.role_id)}: {person.name if person else 'Unassigned'}")

    return SuggestionRequest(
        date=date_str,
        roles=[r.name for r in roles],
        available_people=candidates,
        historical_data="\n".join(lines) or "No historical data available.",
    )
