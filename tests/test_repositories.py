import os
from datetime import UTC, datetime
from uuid import UUID

import pytest
from psycopg import connect
from psycopg.errors import CheckViolation, UniqueViolation
from psycopg.rows import dict_row

from tests.helpers.db_env import isolated_database
from workdesk.models.entities import Principal, VisibilityScope
from workdesk.models.schemas.assignment import AssignmentRequest
from workdesk.repositories.activity_log_repository import ActivityLogRepository
from workdesk.repositories.notification_repository import NotificationRepository
from workdesk.repositories.reference_repository import ReferenceRepository
from workdesk.repositories.user_repository import UserRepository
from workdesk.repositories.time_log_repository import TimeLogRepository
from workdesk.repositories.work_item_assignee_repository import WorkItemAssigneeRepository
from workdesk.repositories.work_item_repository import WorkItemRepository
from workdesk.services.activity_recorder import ActivityRecorder
from workdesk.services.assignment_service import AssignmentService
from workdesk.services.work_item_assembler import WorkItemAssembler


@pytest.fixture(scope="module")
def repository_database_url() -> str:
    base_url = os.getenv("TEST_DATABASE_URL")
    if not base_url:
        pytest.skip("Set TEST_DATABASE_URL to run repository tests.")

    with isolated_database(base_url, schema_prefix="workdesk_repo_test") as scoped_url:
        yield scoped_url


@pytest.fixture(autouse=True)
def clean_database(repository_database_url: str) -> None:
    with connect(repository_database_url, autocommit=True) as connection:
        with connection.cursor() as cursor:
            cursor.execute(
                "TRUNCATE TABLE comments, time_logs, notifications, activity_logs, "
                "work_item_assignees, work_items, work_item_counters, users, teams, categories, "
                "projects CASCADE"
            )


def _insert_team(database_url: str, name: str) -> UUID:
    with connect(database_url, autocommit=True, row_factory=dict_row) as connection:
        row = connection.execute(
            "INSERT INTO teams (name) VALUES (%s) RETURNING id",
            (name,),
        ).fetchone()
    return row["id"]


def _insert_user(database_url: str, name: str, role: str, team_id: UUID | None = None) -> UUID:
    with connect(database_url, autocommit=True, row_factory=dict_row) as connection:
        row = connection.execute(
            "INSERT INTO users (name, email, role, team_id) VALUES (%s, %s, %s, %s) RETURNING id",
            (name, f"{name.lower()}@example.com", role, team_id),
        ).fetchone()
    return row["id"]


def _create_ticket(repository: WorkItemRepository, creator_id: UUID, **kwargs):
    number = repository.next_number(item_type="TICKET")
    return repository.create(
        item_type="TICKET",
        number=f"T-{number:04d}",
        title="Printer is on fire",
        description="Smoke is coming out of the second floor printer.",
        priority="HIGH",
        creator_id=creator_id,
        **kwargs,
    )


def test_numbers_are_allocated_per_type(repository_database_url: str) -> None:
    repository = WorkItemRepository(database_url=repository_database_url)

    tickets = [repository.next_number(item_type="TICKET") for _ in range(3)]
    tasks = [repository.next_number(item_type="TASK") for _ in range(2)]

    assert tickets == [1, 2, 3]
    assert tasks == [1, 2]


def test_work_item_create_and_update(repository_database_url: str) -> None:
    repository = WorkItemRepository(database_url=repository_database_url)
    creator_id = _insert_user(repository_database_url, "Uma", "USER")

    created = _create_ticket(repository, creator_id)
    assert created.ticket_number == "T-0001"
    assert created.task_number is None
    assert created.status == "OPEN"
    assert created.assignment_mode is None

    completed_at = datetime.now(UTC)
    updated = repository.update_fields(
        work_item_id=created.id,
        fields={"status": "RESOLVED", "completed_at": completed_at},
    )
    assert updated is not None
    assert updated.status == "RESOLVED"
    assert updated.completed_at is not None

    with pytest.raises(ValueError):
        repository.update_fields(work_item_id=created.id, fields={"creator_id": creator_id})


def test_assignment_mode_is_exclusive(repository_database_url: str) -> None:
    repository = WorkItemRepository(database_url=repository_database_url)
    team_id = _insert_team(repository_database_url, "Support")
    agent_id = _insert_user(repository_database_url, "Ana", "AGENT", team_id)
    created = _create_ticket(repository, agent_id)

    with pytest.raises(CheckViolation):
        repository.update_assignment(
            work_item_id=created.id,
            assignment_mode="team",
            team_id=team_id,
            assignee_id=agent_id,
            status="OPEN",
        )

    with pytest.raises(CheckViolation):
        repository.update_assignment(
            work_item_id=created.id,
            assignment_mode="individuals",
            team_id=team_id,
            assignee_id=agent_id,
            status="OPEN",
        )

    updated = repository.update_assignment(
        work_item_id=created.id,
        assignment_mode="team",
        team_id=team_id,
        assignee_id=None,
        status="OPEN",
    )
    assert updated is not None
    assert updated.team_id == team_id


def test_assignees_keep_insertion_order(repository_database_url: str) -> None:
    work_items = WorkItemRepository(database_url=repository_database_url)
    assignees = WorkItemAssigneeRepository(database_url=repository_database_url)
    manager_id = _insert_user(repository_database_url, "Mia", "MANAGER")
    first_id = _insert_user(repository_database_url, "Ana", "AGENT")
    second_id = _insert_user(repository_database_url, "Bo", "AGENT")
    created = _create_ticket(work_items, manager_id)

    assignees.add_many(
        work_item_id=created.id,
        user_ids=[second_id, first_id],
        assigned_by=manager_id,
    )
    assert [row.user_id for row in assignees.list_for_work_item(created.id)] == [
        second_id,
        first_id,
    ]

    with pytest.raises(UniqueViolation):
        assignees.add_many(
            work_item_id=created.id,
            user_ids=[first_id],
            assigned_by=manager_id,
        )

    assert assignees.remove_users(work_item_id=created.id, user_ids=[second_id]) == 1
    assert [row.user_id for row in assignees.list_for_work_item(created.id)] == [first_id]


def test_visibility_scope_filters(repository_database_url: str) -> None:
    work_items = WorkItemRepository(database_url=repository_database_url)
    assignees = WorkItemAssigneeRepository(database_url=repository_database_url)
    team_id = _insert_team(repository_database_url, "Support")
    user_id = _insert_user(repository_database_url, "Uma", "USER")
    agent_id = _insert_user(repository_database_url, "Ana", "AGENT", team_id)
    other_id = _insert_user(repository_database_url, "Oli", "AGENT")

    own = _create_ticket(work_items, user_id)
    team_item = _create_ticket(work_items, user_id, assignment_mode="team", team_id=team_id)
    assigned = _create_ticket(work_items, user_id, assignment_mode="individuals")
    assignees.add_many(work_item_id=assigned.id, user_ids=[agent_id], assigned_by=user_id)
    _create_ticket(work_items, other_id)

    def visible(scope: VisibilityScope) -> set[UUID]:
        items, total = work_items.list_visible(
            item_type="TICKET",
            scope=scope,
            status=None,
            priority=None,
            limit=50,
            offset=0,
        )
        assert total == len(items)
        return {item.id for item in items}

    assert visible(VisibilityScope(user_id=user_id, include_created=True)) == {
        own.id,
        team_item.id,
        assigned.id,
    }
    assert visible(
        VisibilityScope(
            user_id=agent_id,
            include_created=True,
            team_id=team_id,
            team_mode_only=True,
        )
    ) == {team_item.id, assigned.id}
    assert visible(VisibilityScope()) == set()
    assert len(visible(VisibilityScope(unrestricted=True))) == 4


def test_one_running_timer_per_user(repository_database_url: str) -> None:
    work_items = WorkItemRepository(database_url=repository_database_url)
    time_logs = TimeLogRepository(database_url=repository_database_url)
    agent_id = _insert_user(repository_database_url, "Ana", "AGENT")
    created = _create_ticket(work_items, agent_id)
    started_at = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

    running = time_logs.start(work_item_id=created.id, user_id=agent_id, started_at=started_at)
    with pytest.raises(UniqueViolation):
        time_logs.start(work_item_id=created.id, user_id=agent_id, started_at=started_at)

    stopped = time_logs.stop(
        time_log_id=running.id,
        ended_at=datetime(2026, 3, 2, 9, 45, tzinfo=UTC),
        duration_mins=45,
        notes="Replaced toner",
    )
    assert stopped is not None
    assert stopped.is_running is False
    assert time_logs.get_running_for_user(agent_id) is None

    again = time_logs.start(work_item_id=created.id, user_id=agent_id, started_at=started_at)
    assert again.is_running is True


def test_categories_are_listed_by_name(repository_database_url: str) -> None:
    with connect(repository_database_url, autocommit=True) as connection:
        connection.execute("INSERT INTO categories (name) VALUES ('Network'), ('Hardware')")

    categories = ReferenceRepository(database_url=repository_database_url).list_all_categories()

    assert [category.name for category in categories] == ["Hardware", "Network"]


def _assignment_state(database_url: str, work_item_id: UUID) -> dict:
    with connect(database_url, row_factory=dict_row) as connection:
        item = connection.execute(
            "SELECT assignment_mode, team_id, assignee_id, status FROM work_items WHERE id = %s",
            (work_item_id,),
        ).fetchone()
        assignees = connection.execute(
            "SELECT user_id FROM work_item_assignees WHERE work_item_id = %s ORDER BY user_id",
            (work_item_id,),
        ).fetchall()
        logs = connection.execute(
            "SELECT COUNT(1) AS total FROM activity_logs WHERE work_item_id = %s",
            (work_item_id,),
        ).fetchone()
        notifications = connection.execute("SELECT COUNT(1) AS total FROM notifications").fetchone()
    return {
        "item": item,
        "assignees": [row["user_id"] for row in assignees],
        "logs": logs["total"],
        "notifications": notifications["total"],
    }


def test_failed_assignment_leaves_no_partial_writes(
    repository_database_url: str,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    team_id = _insert_team(repository_database_url, "Support")
    manager_id = _insert_user(repository_database_url, "Mia", "MANAGER")
    agent_id = _insert_user(repository_database_url, "Ana", "AGENT")
    work_items = WorkItemRepository(database_url=repository_database_url)
    created = _create_ticket(work_items, manager_id, assignment_mode="team", team_id=team_id)
    before = _assignment_state(repository_database_url, created.id)

    def failing_create(self, **kwargs):
        raise RuntimeError("notification store unavailable")

    monkeypatch.setattr(NotificationRepository, "create", failing_create)
    service = AssignmentService(
        work_item_repository=work_items,
        assignee_repository=WorkItemAssigneeRepository(),
        user_repository=UserRepository(),
        reference_repository=ReferenceRepository(),
        recorder=ActivityRecorder(
            activity_log_repository=ActivityLogRepository(),
            notification_repository=NotificationRepository(),
        ),
        assembler=WorkItemAssembler(
            user_repository=UserRepository(),
            reference_repository=ReferenceRepository(),
            assignee_repository=WorkItemAssigneeRepository(),
        ),
        database_url=repository_database_url,
    )

    with pytest.raises(RuntimeError):
        service.update_assignment(
            item_type="TICKET",
            work_item_id=created.id,
            principal=Principal(id=manager_id, role="MANAGER"),
            payload=AssignmentRequest(assignment_mode="individuals", assignee_ids=[agent_id]),
        )

    after = _assignment_state(repository_database_url, created.id)
    assert after == before
    assert after["item"]["assignment_mode"] == "team"
    assert after["assignees"] == []
