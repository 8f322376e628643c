import os
from collections.abc import Iterator
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from psycopg import connect
from psycopg.rows import dict_row

from tests.helpers.auth import auth_headers
from tests.helpers.db_env import isolated_database
from workdesk.main import app
from workdesk.models.entities import Principal


@pytest.fixture(scope="module")
def database_url() -> Iterator[str]:
    base_url = os.getenv("TEST_DATABASE_URL")
    if not base_url:
        pytest.skip("Set TEST_DATABASE_URL to run integration tests.")

    with isolated_database(base_url, schema_prefix="workdesk_api_test") as scoped_url:
        yield scoped_url


@pytest.fixture(scope="module")
def integration_client(database_url: str) -> Iterator[TestClient]:
    with TestClient(app) as client:
        yield client


def _seed(database_url: str) -> dict[str, Principal]:
    with connect(database_url, autocommit=True, row_factory=dict_row) as connection:
        team_id = connection.execute(
            "INSERT INTO teams (name) VALUES ('Support') RETURNING id",
        ).fetchone()["id"]
        principals: dict[str, Principal] = {}
        for name, role, member_of in (
            ("manager", "MANAGER", None),
            ("agent", "AGENT", team_id),
            ("helper", "AGENT", None),
            ("user", "USER", None),
        ):
            user_id = connection.execute(
                "INSERT INTO users (name, email, role, team_id) "
                "VALUES (%s, %s, %s, %s) RETURNING id",
                (name.title(), f"{name}@example.com", role, member_of),
            ).fetchone()["id"]
            principals[name] = Principal(id=user_id, role=role, team_id=member_of)
    return principals


def _notified(database_url: str, user_id: UUID) -> list[str]:
    with connect(database_url, row_factory=dict_row) as connection:
        rows = connection.execute(
            "SELECT type FROM notifications WHERE user_id = %s ORDER BY created_at",
            (user_id,),
        ).fetchall()
    return [row["type"] for row in rows]


def test_ticket_assignment_end_to_end_flow(
    integration_client: TestClient,
    database_url: str,
) -> None:
    people = _seed(database_url)
    manager = auth_headers(people["manager"])
    agent = auth_headers(people["agent"])

    created = integration_client.post(
        "/api/tickets",
        json={
            "title": "VPN drops every hour",
            "description": "The office VPN disconnects every hour on the hour.",
            "priority": "HIGH",
            "assignmentMode": "team",
            "teamId": str(people["agent"].team_id),
        },
        headers=manager,
    )
    assert created.status_code == 201
    ticket = created.json()["data"]
    assert ticket["ticketNumber"] == "T-0001"
    assert ticket["assignmentMode"] == "team"
    ticket_id = ticket["id"]

    team_view = integration_client.get("/api/tickets", headers=agent)
    assert [item["id"] for item in team_view.json()["data"]] == [ticket_id]

    claimed = integration_client.patch(
        f"/api/tickets/{ticket_id}/assignment",
        json={"claimTicket": True},
        headers=agent,
    )
    assert claimed.status_code == 200
    claimed_ticket = claimed.json()["data"]
    assert claimed_ticket["assignmentMode"] == "individuals"
    assert claimed_ticket["teamId"] is None
    assert claimed_ticket["status"] == "IN_PROGRESS"
    assert claimed_ticket["assigneeId"] == str(people["agent"].id)

    reassigned = integration_client.patch(
        f"/api/tickets/{ticket_id}/assignment",
        json={
            "assignmentMode": "individuals",
            "assigneeIds": [str(people["agent"].id), str(people["helper"].id)],
        },
        headers=manager,
    )
    assert reassigned.status_code == 200
    assert [row["user"]["id"] for row in reassigned.json()["data"]["assignees"]] == [
        str(people["agent"].id),
        str(people["helper"].id),
    ]
    assert _notified(database_url, people["helper"].id) == ["TICKET_ASSIGNED"]

    detail = integration_client.get(f"/api/tickets/{ticket_id}", headers=manager)
    actions = [row["action"] for row in detail.json()["data"]["activityLogs"]]
    assert "TICKET_CREATED" in actions
    assert "TICKET_CLAIMED" in actions
    assert "ASSIGNEE_ADDED" in actions

    hidden = integration_client.get(
        f"/api/tickets/{ticket_id}",
        headers=auth_headers(people["user"]),
    )
    assert hidden.status_code == 404

    started = integration_client.post(
        "/api/time-logs/start",
        json={"workItemId": ticket_id},
        headers=agent,
    )
    assert started.status_code == 201
    active = integration_client.get("/api/time-logs/active", headers=agent)
    assert active.json()["data"]["id"] == started.json()["data"]["id"]

    stopped = integration_client.post(
        "/api/time-logs/stop",
        json={"timeLogId": started.json()["data"]["id"], "notes": "Reset the tunnel"},
        headers=agent,
    )
    assert stopped.status_code == 200
    assert stopped.json()["data"]["isRunning"] is False
    assert stopped.json()["data"]["notes"] == "Reset the tunnel"

    health = integration_client.get("/api/health")
    assert health.json()["status"] == "ok"
    assert health.json()["database"]["schema_revision"] == "20261019_0001"
