"""FastAPI application factory for the query runner trigger surface."""

from fastapi import FastAPI

from td_query.adapters import TdQueryServicePort
from td_query.config import AppSettings
from td_query.jobs import QueryJobOrchestratorPort

from .routers import api_create_health_router, api_create_query_router


def create_api_application(
    settings: AppSettings,
    query_service: TdQueryServicePort,
    query_orchestrator: QueryJobOrchestratorPort,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        query_service: Remote query service adapter reported by health checks.
        query_orchestrator: Job orchestrator for query trigger execution.

    Returns:
        FastAPI: Framework application instance.

    Raises:
        RuntimeError: Raised if application initialization fails.
    """
    application = FastAPI(title="TD Query Runner")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return service identification for bootstrap verification."""

        return {
            "service": "td-query-runner",
            "status": "ready",
            "environment": settings.environment_name,
        }

    application.include_router(api_create_health_router(query_service=query_service))
    application.include_router(api_create_query_router(query_orchestrator=query_orchestrator))

    return application
