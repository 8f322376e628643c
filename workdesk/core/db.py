import logging
from dataclasses import dataclass

from psycopg import Error as PsycopgError
from psycopg import connect

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PingResult:
    connected: bool
    error: str | None = None
    schema_revision: str | None = None


def ping_database(database_url: str, timeout_seconds: int = 3) -> PingResult:
    """Connect and read the applied migration revision."""
    try:
        with connect(database_url, connect_timeout=timeout_seconds) as connection:
            with connection.cursor() as cursor:
                cursor.execute("SELECT version_num FROM alembic_version LIMIT 1")
                row = cursor.fetchone()
    except PsycopgError as exc:
        logger.warning("Database ping failed: %s", exc)
        return PingResult(connected=False, error=str(exc))
    if row is None:
        return PingResult(connected=True, error="No migration has been applied.")
    return PingResult(connected=True, schema_revision=row[0])
