"""Query run router composition for the trigger endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, status
from fastapi.responses import JSONResponse

from td_query.adapters import TdAdapterError
from td_query.config import ConfigurationError
from td_query.jobs import JobInterruptedError, MissingResultRowError, QueryJobOrchestratorPort, TdJobError, TdJobFailedError


def api_create_query_router(query_orchestrator: QueryJobOrchestratorPort) -> APIRouter:
    """Create query router with the synchronous run trigger.

    Args:
        query_orchestrator: Job orchestrator executing one query task.

    Returns:
        APIRouter: Router exposing query APIs.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if query_orchestrator is None:
        raise ValueError("query_orchestrator must not be None")

    router = APIRouter(prefix="/query", tags=["query"])

    @router.post("/run")
    def api_query_run_trigger(task_params: dict[str, Any] = Body(...)) -> JSONResponse:
        """Run one query task and return its output state.

        Args:
            task_params: Raw task options.

        Returns:
            JSONResponse: Output state and stage timeline, or an error payload.
        """

        try:
            execution_result = query_orchestrator.job_execute(task_params=task_params)
        except ConfigurationError as error:
            payload = {"status": "error", "message": str(error)}
            return JSONResponse(content=payload, status_code=status.HTTP_400_BAD_REQUEST)
        except TdJobFailedError as error:
            payload = {
                "status": "failed",
                "job_id": error.job_id,
                "job_status": error.status,
                "message": str(error),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_502_BAD_GATEWAY)
        except MissingResultRowError as error:
            payload = {"status": "error", "job_id": error.job_id, "message": str(error)}
            return JSONResponse(content=payload, status_code=status.HTTP_409_CONFLICT)
        except JobInterruptedError as error:
            payload = {"status": "interrupted", "job_id": error.job_id, "message": str(error)}
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
        except TdJobError as error:
            payload = {"status": "error", "job_id": error.job_id, "message": str(error)}
            return JSONResponse(content=payload, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        except TdAdapterError as error:
            payload = {"status": "error", "message": str(error)}
            return JSONResponse(content=payload, status_code=status.HTTP_502_BAD_GATEWAY)
        except OSError as error:
            payload = {"status": "error", "message": str(error)}
            return JSONResponse(content=payload, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

        payload = {
            "status": execution_result.summary.status,
            "job_id": execution_result.summary.job_id,
            "store_params": execution_result.store_params,
            "stage_timeline": execution_result.stage_timeline,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router
