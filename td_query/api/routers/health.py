"""Health endpoint router composition."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from td_query.adapters import TdQueryServicePort


def api_create_health_router(query_service: TdQueryServicePort) -> APIRouter:
    """Create health-check router reporting the configured query service target.

    Args:
        query_service: Remote query service adapter.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when query_service is invalid.
    """

    if query_service is None:
        raise ValueError("query_service must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return application health state.

        Returns:
            JSONResponse: Deterministic health payload for operational checks.
        """

        payload = {
            "status": "ok",
            "app": "up",
            "target": query_service.adapter_source_name(),
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router
