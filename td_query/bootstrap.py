"""Application bootstrap wiring for startup validation and dependency assembly."""

from fastapi import FastAPI

from td_query.adapters import TdApiClientAdapter
from td_query.api import create_api_application
from td_query.config import AppSettings, config_load_settings
from td_query.jobs import JobPollStrategy, QueryOrchestratorConfig, TdJobSupervisor, TdQueryOrchestrator


def bootstrap_create_query_service(settings: AppSettings) -> TdApiClientAdapter:
    """Build the REST adapter from validated settings.

    Args:
        settings: Validated runtime settings.

    Returns:
        TdApiClientAdapter: Remote query service adapter.
    """

    return TdApiClientAdapter(
        apikey=settings.td_apikey,
        endpoint=settings.td_endpoint,
        request_timeout_seconds=settings.td_request_timeout_seconds,
    )


def bootstrap_create_query_orchestrator(
    settings: AppSettings,
    query_service: TdApiClientAdapter | None = None,
) -> TdQueryOrchestrator:
    """Build query orchestrator for CLI and HTTP trigger surfaces.

    Args:
        settings: Validated runtime settings.
        query_service: Optional prebuilt adapter to share with other components.

    Returns:
        TdQueryOrchestrator: Fully wired query orchestrator instance.
    """

    resolved_query_service = query_service or bootstrap_create_query_service(settings)
    supervisor = TdJobSupervisor(
        query_service=resolved_query_service,
        poll_strategy=JobPollStrategy(
            initial_wait_seconds=settings.td_poll_initial_wait_seconds,
            backoff_base_seconds=settings.td_poll_backoff_base_seconds,
            max_backoff_seconds=settings.td_poll_backoff_max_seconds,
            jitter_min_multiplier=settings.td_poll_jitter_min_multiplier,
            jitter_max_multiplier=settings.td_poll_jitter_max_multiplier,
        ),
    )
    return TdQueryOrchestrator(
        query_service=resolved_query_service,
        config=QueryOrchestratorConfig(
            database=settings.td_database,
            working_directory=settings.working_directory,
        ),
        supervisor=supervisor,
    )


def bootstrap_create_application() -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    settings = config_load_settings()
    query_service = bootstrap_create_query_service(settings)
    query_orchestrator = bootstrap_create_query_orchestrator(settings=settings, query_service=query_service)
    return create_api_application(
        settings=settings,
        query_service=query_service,
        query_orchestrator=query_orchestrator,
    )
