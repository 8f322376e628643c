"""Bearer-token handling.

Tokens are issued by the identity provider in front of this service and carry
the caller's id (``sub``), ``role`` and optional ``team_id``. They are HS256
JWTs signed with the shared ``JWT_SECRET``.
"""

from datetime import UTC, datetime, timedelta
from typing import Any, get_args
from uuid import UUID

import jwt

from workdesk.core.config import get_settings
from workdesk.models.entities import Principal, UserRole

ACCESS_TOKEN_EXPIRE_HOURS = 8
VALID_ROLES: frozenset[str] = frozenset(get_args(UserRole))


class InvalidTokenError(Exception):
    pass


def create_access_token(
    *,
    user_id: UUID,
    role: UserRole,
    team_id: UUID | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    settings = get_settings()
    issued_at = datetime.now(UTC)
    expires_at = issued_at + (expires_delta or timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS))
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "iat": issued_at,
        "exp": expires_at,
    }
    if team_id is not None:
        payload["team_id"] = str(team_id)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Principal:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError(str(exc)) from exc

    role = payload.get("role")
    if role not in VALID_ROLES:
        raise InvalidTokenError("Token carries an unknown role.")

    try:
        user_id = UUID(str(payload["sub"]))
        raw_team_id = payload.get("team_id")
        team_id = UUID(str(raw_team_id)) if raw_team_id else None
    except (KeyError, ValueError) as exc:
        raise InvalidTokenError("Token carries a malformed identifier.") from exc

    return Principal(id=user_id, role=role, team_id=team_id)
