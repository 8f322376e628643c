from workdesk.core.config import Settings
from workdesk.models.schemas.health import HealthResponse
from workdesk.repositories.health_repository import HealthRepository


class HealthService:
    def __init__(self, repository: HealthRepository, settings: Settings) -> None:
        self.repository = repository
        self.settings = settings

    def get_health(self) -> HealthResponse:
        database = self.repository.check_connection(self.settings.database_url)
        # A reachable but unmigrated database cannot serve requests either.
        healthy = database.connected and database.schema_revision is not None
        return HealthResponse(
            status="ok" if healthy else "degraded",
            service=self.settings.app_name,
            environment=self.settings.app_env,
            database=database,
        )
