from workdesk.core.db import ping_database
from workdesk.models.schemas.health import DatabaseHealth


class HealthRepository:
    def check_connection(self, database_url: str) -> DatabaseHealth:
        result = ping_database(database_url)
        return DatabaseHealth(
            connected=result.connected,
            schema_revision=result.schema_revision,
            message=result.error,
        )
