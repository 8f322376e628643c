"""Load reference data (teams, users, categories, projects) for local use.

Run after ``alembic upgrade head``. Rows use fixed ids, so running the script
again leaves existing data untouched. Prints a bearer token for every seeded
user.
"""

from uuid import UUID

import psycopg

from workdesk.core.config import get_settings
from workdesk.core.security import create_access_token

SUPPORT_TEAM_ID = UUID("6f1c2a8e-0000-4000-8000-000000000001")
ESCALATION_TEAM_ID = UUID("6f1c2a8e-0000-4000-8000-000000000002")
ENGINEERING_TEAM_ID = UUID("6f1c2a8e-0000-4000-8000-000000000003")

TEAMS = [
    (SUPPORT_TEAM_ID, "Support", "#2563eb"),
    (ESCALATION_TEAM_ID, "Escalations", "#dc2626"),
    (ENGINEERING_TEAM_ID, "Engineering", "#16a34a"),
]

USERS = [
    (UUID("0c4d7f10-0000-4000-8000-000000000001"), "Ada Admin", "admin@workdesk.local", "ADMIN", None),
    (
        UUID("0c4d7f10-0000-4000-8000-000000000002"),
        "Morgan Manager",
        "manager@workdesk.local",
        "MANAGER",
        SUPPORT_TEAM_ID,
    ),
    (
        UUID("0c4d7f10-0000-4000-8000-000000000003"),
        "Alex Agent",
        "alex@workdesk.local",
        "AGENT",
        SUPPORT_TEAM_ID,
    ),
    (
        UUID("0c4d7f10-0000-4000-8000-000000000004"),
        "Blair Agent",
        "blair@workdesk.local",
        "AGENT",
        ESCALATION_TEAM_ID,
    ),
    (UUID("0c4d7f10-0000-4000-8000-000000000005"), "Casey User", "casey@workdesk.local", "USER", None),
]

CATEGORIES = [
    (UUID("a1b2c3d4-0000-4000-8000-000000000001"), "Hardware", "#f59e0b"),
    (UUID("a1b2c3d4-0000-4000-8000-000000000002"), "Software", "#8b5cf6"),
    (UUID("a1b2c3d4-0000-4000-8000-000000000003"), "Access", "#0ea5e9"),
]

PROJECTS = [
    (UUID("b7e8f9a0-0000-4000-8000-000000000001"), "Office Move"),
    (UUID("b7e8f9a0-0000-4000-8000-000000000002"), "Laptop Refresh"),
]


def execute_seed(database_url: str) -> None:
    with psycopg.connect(database_url) as connection:
        with connection.cursor() as cursor:
            cursor.executemany(
                "INSERT INTO teams (id, name, color) VALUES (%s, %s, %s) "
                "ON CONFLICT (id) DO NOTHING",
                TEAMS,
            )
            cursor.executemany(
                "INSERT INTO users (id, name, email, role, team_id) VALUES (%s, %s, %s, %s, %s) "
                "ON CONFLICT (id) DO NOTHING",
                USERS,
            )
            cursor.executemany(
                "INSERT INTO categories (id, name, color) VALUES (%s, %s, %s) "
                "ON CONFLICT (id) DO NOTHING",
                CATEGORIES,
            )
            cursor.executemany(
                "INSERT INTO projects (id, name) VALUES (%s, %s) ON CONFLICT (id) DO NOTHING",
                PROJECTS,
            )
        connection.commit()


def main() -> None:
    settings = get_settings()
    execute_seed(settings.database_url)
    print("Seed completed successfully.")
    print(f"Suggested routing: USER_TICKET_TEAM_ID={SUPPORT_TEAM_ID}")
    print(f"                   AGENT_TICKET_TEAM_ID={ESCALATION_TEAM_ID}")
    for user_id, name, _, role, team_id in USERS:
        token = create_access_token(user_id=user_id, role=role, team_id=team_id)
        print(f"{role:<8} {name:<16} {token}")


if __name__ == "__main__":
    main()
