import asyncio
import pytest
from datetime import date

from service_roster.core.exceptions import (
    InvalidPolicy,
    NoLegalServiceDay,
    NotAServiceDay,
    RepositoryError,
    ScheduleNotFound,
)
from service_roster.engine.grid import (
    available_people_for_date,
    build_assignment_grid,
    build_suggestion_request,
    eligible_people_for_role,
)
from service_roster.models.schemas import Assignment, Person, Role, Schedule, ScheduleCreate, ServiceDayPolicy
from service_roster.repository.memory import InMemoryRepository
from service_roster.services.roster_service import RosterService

SABBATH = date(2024, 3, 30)
SABBATH_STR = "2024-03-30"


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def roles():
    return [
        Role(id="preacher", name="Preacher"),
        Role(id="elder-on-duty", name="Elder on Duty"),
        Role(id="pianist", name="Pianist"),
    ]


@pytest.fixture
def people():
    return [
        Person(id="p1", name="Andi", fillable_role_ids=["preacher", "elder-on-duty"]),
        Person(id="p2", name="Budi"),
        Person(id="p3", name="Citra", fillable_role_ids=["pianist"], unavailable_dates=[SABBATH_STR]),
    ]


@pytest.fixture
def service(roles, people):
    repo = InMemoryRepository(seed_default_roles=False)
    svc = RosterService(repo)
    run(repo.create_schedule(Schedule(id="s1", name="Central", service_day_config=ServiceDayPolicy())))
    for role in roles:
        run(repo.create_role("s1", role))
    for person in people:
        run(repo.create_person("s1", person))
    return svc


def _assignment(role_id, person_id, date_str=SABBATH_STR, schedule_id="s1"):
    return Assignment(
        id=f"{date_str}_{role_id}", schedule_id=schedule_id, date=date_str, role_id=role_id, person_id=person_id
    )


# --- Grid ---

def test_grid_has_one_row_per_role_in_role_order(roles, people):
    grid = build_assignment_grid("s1", SABBATH, roles, [_assignment("pianist", "p3")], people)
    assert [row.role.id for row in grid] == ["preacher", "elder-on-duty", "pianist"]
    assert [row.person.id if row.person else None for row in grid] == [None, None, "p3"]


def test_grid_resolves_dangling_person_as_unassigned(roles, people):
    grid = build_assignment_grid("s1", SABBATH, roles, [_assignment("preacher", "deleted")], people)
    assert grid[0].person is None


def test_grid_ignores_other_dates_and_schedules(roles, people):
    assignments = [
        _assignment("preacher", "p1", date_str="2024-03-23"),
        _assignment("preacher", "p2", schedule_id="s2"),
        _assignment("elder-on-duty", "gone-role-person"),
        _assignment("deleted-role", "p1"),
    ]
    grid = build_assignment_grid("s1", SABBATH, roles, assignments, people)
    assert len(grid) == 3
    assert all(row.person is None for row in grid)


def test_eligible_people_for_role(people):
    pianist = Role(id="pianist", name="Pianist")
    preacher = Role(id="preacher", name="Preacher")
    assert [p.id for p in eligible_people_for_role(pianist, people)] == ["p2", "p3"]
    assert [p.id for p in eligible_people_for_role(preacher, people)] == ["p1", "p2"]


def test_available_people_for_date(people):
    assert [p.id for p in available_people_for_date(people, SABBATH)] == ["p1", "p2"]


def test_build_suggestion_request(roles, people):
    history = [_assignment("preacher", "p1", date_str="2024-03-23"), _assignment("pianist", "ghost", "2024-03-16")]
    request = build_suggestion_request(SABBATH, roles, people, history)
    assert request.date == SABBATH_STR
    assert request.roles == ["Preacher", "Elder on Duty", "Pianist"]
    assert request.available_people[0].roles == ["Preacher", "Elder on Duty"]
    assert request.available_people[1].roles is None
    assert request.available_people[2].availability == [SABBATH_STR]
    assert request.historical_data.splitlines() == ["2024-03-23 - Preacher: Andi", "2024-03-16 - Pianist: Unassigned"]
    assert build_suggestion_request(SABBATH, roles, people, []).historical_data == "No historical data available."


# --- set_assignment ---

def _assignments(service):
    return run(service.repo.get_assignments_for_date("s1", SABBATH_STR))


def test_set_assignment_keeps_one_record_per_role_and_date(service):
    run(service.set_assignment("s1", SABBATH, "preacher", "p1"))
    run(service.set_assignment("s1", SABBATH, "preacher", "p2"))
    assignments = _assignments(service)
    assert len(assignments) == 1
    assert assignments[0].person_id == "p2"


def test_unassign_removes_the_record(service):
    run(service.set_assignment("s1", SABBATH, "preacher", "p1"))
    assert run(service.set_assignment("s1", SABBATH, "preacher", None)) is None
    assert _assignments(service) == []
    # clearing an empty slot is a no-op
    run(service.set_assignment("s1", SABBATH, "preacher", None))
    assert _assignments(service) == []


def test_set_assignment_does_not_check_eligibility(service):
    run(service.set_assignment("s1", SABBATH, "preacher", "p3"))
    grid = run(service.get_grid("s1", SABBATH))
    assert grid[0].person.id == "p3"


def test_set_assignment_rejects_non_service_day(service):
    with pytest.raises(NotAServiceDay) as exc_info:
        run(service.set_assignment("s1", date(2024, 3, 27), "preacher", "p1"))
    assert exc_info.value.details["nearest"] == SABBATH_STR


def test_set_assignment_allows_any_date_with_custom_dates(service):
    run(service.update_policy("s1", ServiceDayPolicy(allow_custom_dates=True)))
    run(service.set_assignment("s1", date(2024, 3, 27), "preacher", "p1"))
    assert len(run(service.repo.get_assignments_for_date("s1", "2024-03-27"))) == 1


def test_unassign_after_policy_no_longer_allows_the_date(service):
    wednesday = date(2024, 3, 27)
    run(service.update_policy("s1", ServiceDayPolicy(allow_custom_dates=True)))
    run(service.set_assignment("s1", wednesday, "preacher", "p1"))
    run(service.update_policy("s1", ServiceDayPolicy()))

    assert run(service.set_assignment("s1", wednesday, "preacher", None)) is None
    assert run(service.repo.get_assignments_for_date("s1", "2024-03-27")) == []
    # assigning on that date is still rejected
    with pytest.raises(NotAServiceDay):
        run(service.set_assignment("s1", wednesday, "preacher", "p1"))


def test_assignment_under_policy_without_legal_day(service):
    run(service.repo.update_schedule_config("s1", ServiceDayPolicy(primary_day=None)))
    with pytest.raises(NoLegalServiceDay):
        run(service.set_assignment("s1", SABBATH, "preacher", "p1"))
    run(service.set_assignment("s1", SABBATH, "preacher", None))


def test_eligible_people_on_a_date_skips_unavailable(service):
    assert [p.id for p in run(service.eligible_people("s1", "pianist"))] == ["p2", "p3"]
    assert [p.id for p in run(service.eligible_people("s1", "pianist", SABBATH))] == ["p2"]


def test_concurrent_writes_last_one_wins(service):
    async def both():
        await asyncio.gather(
            service.set_assignment("s1", SABBATH, "preacher", "p1"),
            service.set_assignment("s1", SABBATH, "preacher", "p2"),
        )

    run(both())
    assignments = _assignments(service)
    assert len(assignments) == 1
    assert assignments[0].person_id == "p2"


def test_deleted_person_leaves_orphan_assignment(service):
    run(service.set_assignment("s1", SABBATH, "pianist", "p3"))
    run(service.repo.delete_person("s1", "p3"))
    assert len(_assignments(service)) == 1
    grid = run(service.get_grid("s1", SABBATH))
    assert grid[2].person is None


def test_unknown_schedule(service):
    with pytest.raises(ScheduleNotFound):
        run(service.get_grid("missing", SABBATH))


def test_repository_returns_copies(service):
    repo = service.repo
    person = run(repo.get_person("s1", "p1"))
    person.name = "Changed"
    run(repo.get_people("s1"))[0].fillable_role_ids.append("pianist")
    run(repo.get_roles("s1"))[0].name = "Changed"
    run(repo.get_schedule_config("s1")).additional_days.append(3)

    stored = run(repo.get_person("s1", "p1"))
    assert stored.name == "Andi"
    assert stored.fillable_role_ids == ["preacher", "elder-on-duty"]
    assert run(repo.get_roles("s1"))[0].name == "Preacher"
    assert run(repo.get_schedule_config("s1")).additional_days == []


# --- Policy & migration ---

def test_schedule_without_config_reads_as_default():
    repo = InMemoryRepository()
    service = RosterService(repo)
    run(repo.create_schedule(Schedule(id="legacy", name="Legacy")))
    policy = run(service.get_policy("legacy"))
    assert policy.primary_day == 6
    # reading does not write the default back
    assert run(repo.get_schedule_config("legacy")) is None


def test_create_schedule_defaults_to_saturday():
    service = RosterService(InMemoryRepository())
    schedule = run(service.create_schedule(ScheduleCreate(name="New")))
    assert schedule.service_day_config == ServiceDayPolicy()
    assert len(run(service.repo.get_roles(schedule.id))) == 7


def test_update_policy_requires_primary_day(service):
    with pytest.raises(InvalidPolicy):
        run(service.update_policy("s1", ServiceDayPolicy(primary_day=None)))
    assert run(service.get_policy("s1")) == ServiceDayPolicy()


def test_backfill_is_idempotent():
    repo = InMemoryRepository()
    service = RosterService(repo)
    run(repo.create_schedule(Schedule(id="a", name="Old A")))
    run(repo.create_schedule(Schedule(id="b", name="Configured", service_day_config=ServiceDayPolicy(primary_day=0))))

    first = run(service.backfill_service_day_config())
    assert first.migrated == ["Old A"]
    assert first.failed == []
    assert run(repo.get_schedule_config("a")) == ServiceDayPolicy()
    assert run(repo.get_schedule_config("b")).primary_day == 0

    second = run(service.backfill_service_day_config())
    assert second.migrated == []


class FlakyConfigRepository(InMemoryRepository):
    async def update_schedule_config(self, schedule_id, policy):
        if schedule_id == "broken":
            raise RepositoryError("store unavailable", {"schedule_id": schedule_id})
        await super().update_schedule_config(schedule_id, policy)


def test_backfill_reports_failures():
    repo = FlakyConfigRepository()
    service = RosterService(repo)
    run(repo.create_schedule(Schedule(id="broken", name="Broken")))
    run(repo.create_schedule(Schedule(id="ok", name="Fine")))
    result = run(service.backfill_service_day_config())
    assert result.migrated == ["Fine"]
    assert result.failed == ["Broken"]


# --- Suggestions ---

def test_apply_suggestions(service):
    run(service.set_assignment("s1", SABBATH, "pianist", "p3"))
    result = run(service.apply_suggestions("s1", SABBATH, {
        "Preacher": "Andi",
        "Elder on Duty": "Nobody Known",
        "Pianist": None,
        "Janitor": "Budi",
    }))
    assert result.applied == ["Preacher", "Pianist"]
    assert result.skipped == ["Elder on Duty"]
    grid = {row.role.id: row.person for row in run(service.get_grid("s1", SABBATH))}
    assert grid["preacher"].id == "p1"
    assert grid["elder-on-duty"] is None
    assert grid["pianist"] is None


def test_suggestion_request_uses_recent_history_first(service):
    run(service.set_assignment("s1", date(2024, 3, 16), "preacher", "p1"))
    run(service.set_assignment("s1", date(2024, 3, 23), "preacher", "p2"))
    request = run(service.suggestion_request("s1", SABBATH))
    assert request.historical_data.splitlines()[0] == "2024-03-23 - Preacher: Budi"
