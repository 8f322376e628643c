"""Role rules for work items.

Roles, from least to most privileged: USER, AGENT, MANAGER, ADMIN.
"""

from uuid import UUID

from workdesk.models.entities import Principal, VisibilityScope, WorkItemEntity, WorkItemType

ASSIGNER_ROLES = frozenset({"MANAGER", "ADMIN"})
STAFF_ROLES = frozenset({"AGENT", "MANAGER", "ADMIN"})


def can_assign(principal: Principal) -> bool:
    return principal.role in ASSIGNER_ROLES


def can_claim(principal: Principal) -> bool:
    return principal.role in STAFF_ROLES


def can_create(principal: Principal, item_type: WorkItemType) -> bool:
    if item_type == "TICKET":
        return True
    return principal.role in STAFF_ROLES


def can_view_internal(principal: Principal) -> bool:
    return principal.role in STAFF_ROLES


def list_scope(
    principal: Principal,
    item_type: WorkItemType,
    *,
    assigned_to_me: bool = False,
    include_all: bool = False,
    team_only: bool = False,
) -> VisibilityScope:
    if principal.role in ASSIGNER_ROLES:
        if assigned_to_me:
            return VisibilityScope(user_id=principal.id, team_id=principal.team_id)
        # Task boards default to the manager's team; ticket queues show everything.
        narrow = team_only or (item_type == "TASK" and not include_all)
        if principal.team_id is not None and narrow:
            return VisibilityScope(
                user_id=principal.id,
                include_created=True,
                team_id=principal.team_id,
            )
        return VisibilityScope(unrestricted=True)

    if principal.role == "AGENT":
        return VisibilityScope(
            user_id=principal.id,
            include_created=True,
            team_id=principal.team_id,
            team_mode_only=True,
        )

    # USER accounts see exactly their own workload, never their team's.
    return VisibilityScope(user_id=principal.id, include_created=True)


def is_related(principal: Principal, item: WorkItemEntity, assignee_ids: list[UUID]) -> bool:
    return (
        item.creator_id == principal.id
        or item.assignee_id == principal.id
        or principal.id in assignee_ids
    )


def can_view(principal: Principal, item: WorkItemEntity, assignee_ids: list[UUID]) -> bool:
    if principal.role in ASSIGNER_ROLES:
        return True
    if is_related(principal, item, assignee_ids):
        return True
    return (
        principal.role == "AGENT"
        and principal.team_id is not None
        and item.assignment_mode == "team"
        and item.team_id == principal.team_id
    )


def can_modify(principal: Principal, item: WorkItemEntity, assignee_ids: list[UUID]) -> bool:
    if principal.role in STAFF_ROLES:
        return True
    return is_related(principal, item, assignee_ids)
