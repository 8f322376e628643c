from dataclasses import dataclass
from uuid import uuid4

import pytest
from fastapi import status

from tests.helpers.auth import principal_of
from tests.helpers.fakes import InMemoryStore, make_assignment_service
from workdesk.core.errors import AppError
from workdesk.models.entities import Principal, TeamEntity, UserEntity
from workdesk.models.schemas.assignment import AssignmentRequest
from workdesk.services.assignment_service import AssignmentService


@dataclass
class People:
    support: TeamEntity
    escalations: TeamEntity
    admin: UserEntity
    manager: UserEntity
    agent_a: UserEntity
    agent_b: UserEntity
    agent_c: UserEntity
    user: UserEntity


@pytest.fixture
def people(store: InMemoryStore) -> People:
    support = store.add_team("Support")
    escalations = store.add_team("Escalations")
    return People(
        support=support,
        escalations=escalations,
        admin=store.add_user("Ada Admin", "ADMIN"),
        manager=store.add_user("Morgan Manager", "MANAGER", support.id),
        agent_a=store.add_user("Alex Agent", "AGENT", support.id),
        agent_b=store.add_user("Blair Agent", "AGENT", support.id),
        agent_c=store.add_user("Cam Agent", "AGENT", escalations.id),
        user=store.add_user("Casey User", "USER"),
    )


@pytest.fixture
def service(store: InMemoryStore) -> AssignmentService:
    return make_assignment_service(store)


def _assign(
    service: AssignmentService,
    actor: UserEntity,
    work_item_id,
    payload: dict,
    item_type: str = "TICKET",
):
    return service.update_assignment(
        item_type=item_type,
        work_item_id=work_item_id,
        principal=principal_of(actor),
        payload=AssignmentRequest.model_validate(payload),
    )


def test_team_ticket_reassigned_to_individuals_then_back_to_team(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(creator=people.user, team_id=people.support.id)

    result = _assign(
        service,
        people.manager,
        ticket.id,
        {"assigneeIds": [str(people.agent_a.id), str(people.agent_b.id)]},
    )

    assert result.assignment_mode == "individuals"
    assert result.team_id is None
    assert result.assignee_id == people.agent_a.id
    assert result.status == "IN_PROGRESS"
    assert [row.user.id for row in result.assignees] == [people.agent_a.id, people.agent_b.id]
    assert len(store.logs(ticket.id, "ASSIGNEE_ADDED")) == 2
    assert store.notified_user_ids() == [people.agent_a.id, people.agent_b.id]
    assert store.notifications[0].title == "New Ticket Assigned"
    assert store.notifications[0].message == (
        "You have been assigned to ticket T-0001: Printer is on fire"
    )
    assert store.notifications[0].link == f"/tickets/{ticket.id}"

    log_count = len(store.activity_logs)
    with pytest.raises(AppError) as exc:
        _assign(service, people.agent_a, ticket.id, {"claimTicket": True})
    assert exc.value.status_code == status.HTTP_400_BAD_REQUEST
    assert exc.value.code == "ALREADY_ASSIGNED"
    assert exc.value.message == "You are already assigned to this ticket."
    assert len(store.activity_logs) == log_count

    result = _assign(service, people.manager, ticket.id, {"teamId": str(people.escalations.id)})

    assert result.assignment_mode == "team"
    assert result.team_id == people.escalations.id
    assert result.team is not None and result.team.name == "Escalations"
    assert result.assignee_id is None
    assert result.assignees == []
    assert result.status == "IN_PROGRESS"
    team_logs = store.logs(ticket.id, "TICKET_ASSIGNED")
    assert len(team_logs) == 1
    assert team_logs[0].changes["teamId"] == {"from": None, "to": "Escalations"}
    assert team_logs[0].changes["assigneesRemoved"] == ["Alex Agent", "Blair Agent"]


def test_claim_requires_staff_role(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(creator=people.user)

    with pytest.raises(AppError) as exc:
        _assign(service, people.user, ticket.id, {"claimTicket": True})

    assert exc.value.status_code == status.HTTP_403_FORBIDDEN
    assert exc.value.message == "Only agents can claim tickets."
    assert store.assignee_ids(ticket.id) == []
    assert store.activity_logs == []


def test_claim_task_message_names_tasks(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    task = store.add_work_item(creator=people.manager, item_type="TASK")

    with pytest.raises(AppError) as exc:
        _assign(service, people.user, task.id, {"claimTask": True}, item_type="TASK")

    assert exc.value.message == "Only agents can claim tasks."


def test_claim_adds_caller_next_to_existing_assignees(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(
        creator=people.user,
        status="IN_PROGRESS",
        assignee_ids=[people.agent_a.id],
    )

    result = _assign(service, people.agent_b, ticket.id, {"claimTicket": True})

    assert store.assignee_ids(ticket.id) == [people.agent_a.id, people.agent_b.id]
    assert result.assignee_id == people.agent_a.id
    assert result.status == "IN_PROGRESS"
    assert store.actions(ticket.id) == ["TICKET_CLAIMED"]
    assert store.notifications == []


def test_claim_moves_team_ticket_to_individuals(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(creator=people.user, team_id=people.support.id)

    result = _assign(service, people.agent_a, ticket.id, {"claimTicket": True})

    assert result.assignment_mode == "individuals"
    assert result.team_id is None
    assert result.assignee_id == people.agent_a.id
    assert result.status == "IN_PROGRESS"
    claim_log = store.logs(ticket.id, "TICKET_CLAIMED")[0]
    assert claim_log.changes["status"] == {"from": "OPEN", "to": "IN_PROGRESS"}


def test_agent_cannot_assign_others(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(creator=people.user)

    with pytest.raises(AppError) as exc:
        _assign(service, people.agent_a, ticket.id, {"assigneeIds": [str(people.agent_b.id)]})

    assert exc.value.status_code == status.HTTP_403_FORBIDDEN
    assert exc.value.message == "Only managers and admins can assign tickets."
    assert store.assignee_ids(ticket.id) == []


def test_null_team_id_unassigns(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(
        creator=people.user,
        status="IN_PROGRESS",
        assignee_ids=[people.agent_a.id],
    )

    result = _assign(service, people.admin, ticket.id, {"teamId": None})

    assert result.assignment_mode is None
    assert result.team_id is None
    assert result.assignee_id is None
    assert store.assignee_ids(ticket.id) == []
    assert result.status == "IN_PROGRESS"
    log = store.logs(ticket.id, "TICKET_ASSIGNED")[0]
    assert log.changes["teamId"] == {"from": None, "to": None}
    assert log.changes["assigneesRemoved"] == ["Alex Agent"]


def test_blank_team_id_in_team_mode_unassigns(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(creator=people.user, team_id=people.support.id)

    result = _assign(service, people.admin, ticket.id, {"assignmentMode": "team", "teamId": ""})

    assert result.assignment_mode is None
    assert result.team_id is None


def test_unknown_team_is_rejected_without_writes(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(creator=people.user, assignee_ids=[people.agent_a.id])

    with pytest.raises(AppError) as exc:
        _assign(service, people.manager, ticket.id, {"teamId": str(uuid4())})

    assert exc.value.status_code == status.HTTP_404_NOT_FOUND
    assert exc.value.code == "TEAM_NOT_FOUND"
    assert store.assignee_ids(ticket.id) == [people.agent_a.id]
    assert store.activity_logs == []


def test_unknown_user_ids_are_reported(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(creator=people.user)
    missing_id = uuid4()

    with pytest.raises(AppError) as exc:
        _assign(
            service,
            people.manager,
            ticket.id,
            {"assigneeIds": [str(people.agent_a.id), str(missing_id)]},
        )

    assert exc.value.status_code == status.HTTP_400_BAD_REQUEST
    assert exc.value.code == "INVALID_USER_IDS"
    assert exc.value.details["missing_user_ids"] == [str(missing_id)]
    assert store.assignee_ids(ticket.id) == []


def test_individual_assignment_applies_a_diff(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(
        creator=people.user,
        status="IN_PROGRESS",
        assignee_ids=[people.agent_a.id, people.agent_b.id],
    )

    result = _assign(
        service,
        people.manager,
        ticket.id,
        {
            "assignmentMode": "individuals",
            "assigneeIds": [str(people.agent_b.id), str(people.agent_c.id), str(people.agent_b.id)],
        },
    )

    assert store.assignee_ids(ticket.id) == [people.agent_b.id, people.agent_c.id]
    assert result.assignee_id == people.agent_b.id
    assert store.actions(ticket.id) == ["ASSIGNEE_REMOVED", "ASSIGNEE_ADDED"]
    assert store.logs(ticket.id, "ASSIGNEE_REMOVED")[0].changes["assigneeRemoved"] == "Alex Agent"
    assert store.notified_user_ids() == [people.agent_c.id]


def test_actor_is_not_notified_about_own_assignment(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(creator=people.user)

    _assign(
        service,
        people.manager,
        ticket.id,
        {"assigneeIds": [str(people.manager.id), str(people.agent_a.id)]},
    )

    assert len(store.logs(ticket.id, "ASSIGNEE_ADDED")) == 2
    assert store.notified_user_ids() == [people.agent_a.id]


def test_empty_assignee_list_unassigns_and_keeps_status(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(creator=people.user, assignee_ids=[people.agent_a.id])

    result = _assign(service, people.manager, ticket.id, {"assigneeIds": []})

    assert result.assignment_mode is None
    assert result.assignee_id is None
    assert result.status == "OPEN"
    assert store.actions(ticket.id) == ["ASSIGNEE_REMOVED"]


def test_same_assignees_still_leave_an_audit_entry(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(creator=people.user, assignee_ids=[people.agent_a.id])

    _assign(service, people.manager, ticket.id, {"assigneeIds": [str(people.agent_a.id)]})

    assert store.actions(ticket.id) == ["TICKET_ASSIGNED"]
    assert store.notifications == []


def test_resolved_ticket_keeps_status_when_assigned(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(creator=people.user, status="RESOLVED")

    result = _assign(service, people.manager, ticket.id, {"assigneeIds": [str(people.agent_a.id)]})

    assert result.status == "RESOLVED"


def test_legacy_single_assignee(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    task = store.add_work_item(creator=people.manager, item_type="TASK", title="Rack new servers")

    result = _assign(
        service,
        people.admin,
        task.id,
        {"assigneeId": str(people.agent_a.id)},
        item_type="TASK",
    )

    assert result.assignment_mode == "individuals"
    assert result.assignee_id == people.agent_a.id
    assert result.status == "IN_PROGRESS"
    log = store.logs(task.id, "TASK_ASSIGNED")[0]
    assert log.changes["assigneeId"] == {"from": None, "to": "Alex Agent"}
    assert store.notifications[0].type == "TASK_ASSIGNED"
    assert store.notifications[0].title == "New Task Assigned"
    assert store.notifications[0].message == (
        "You have been assigned to task TASK-0001: Rack new servers"
    )
    assert store.notifications[0].link == f"/tasks/{task.id}"


def test_request_without_action_is_rejected(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(creator=people.user)

    with pytest.raises(AppError) as exc:
        _assign(service, people.manager, ticket.id, {})

    assert exc.value.status_code == status.HTTP_400_BAD_REQUEST
    assert exc.value.code == "NO_ASSIGNMENT_ACTION"


def test_work_item_of_other_type_is_not_found(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    task = store.add_work_item(creator=people.manager, item_type="TASK")

    with pytest.raises(AppError) as exc:
        _assign(service, people.manager, task.id, {"teamId": str(people.support.id)})

    assert exc.value.status_code == status.HTTP_404_NOT_FOUND
    assert exc.value.code == "TICKET_NOT_FOUND"


def test_unknown_caller_gets_session_error(
    service: AssignmentService,
    store: InMemoryStore,
    people: People,
) -> None:
    ticket = store.add_work_item(creator=people.user)

    with pytest.raises(AppError) as exc:
        service.update_assignment(
            item_type="TICKET",
            work_item_id=ticket.id,
            principal=Principal(id=uuid4(), role="MANAGER"),
            payload=AssignmentRequest.model_validate({"teamId": str(people.support.id)}),
        )

    assert exc.value.status_code == status.HTTP_401_UNAUTHORIZED
    assert exc.value.code == "SESSION_INVALID"
