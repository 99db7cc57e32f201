"""Job-layer query orchestrator: options to statement, job, summary and output state."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from td_query.adapters import JobSubmitRequest, TdQueryServicePort
from td_query.config import config_load_query_params
from td_query.logging import get_logger

from .interfaces import ExecutionSummary, JobHandle, JobOutcome, QueryExecutionResult, QueryJobOrchestratorPort
from .job_errors import MissingResultRowError
from .job_supervisor import TdJobSupervisor
from .statement_builder import job_statement_build, job_statement_validate_engine

logger = get_logger(__name__)


@dataclass(frozen=True)
class QueryOrchestratorConfig:
    """Configuration values for query orchestration.

    Attributes:
        database: Default database when task options do not name one.
        working_directory: Base directory for relative `download_file` paths.
    """

    database: str
    working_directory: str = "."


def job_build_store_params(summary: ExecutionSummary) -> dict[str, object]:
    """Build the output state persisted after a query run.

    Args:
        summary: Execution summary of the finished job.

    Returns:
        dict[str, object]: `{"td": {"last_job_id": ..., "last_results": ...}}`;
        `last_results` is present only when it was requested.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    td_state: dict[str, object] = {"last_job_id": summary.job_id}
    if summary.last_results is not None:
        td_state["last_results"] = dict(summary.last_results)
    return {"td": td_state}


class TdQueryOrchestrator(QueryJobOrchestratorPort):
    """Concrete orchestrator for one query task."""

    def __init__(
        self,
        query_service: TdQueryServicePort,
        config: QueryOrchestratorConfig,
        supervisor: TdJobSupervisor | None = None,
    ):
        """Initialize query orchestrator dependencies.

        Args:
            query_service: Remote query service adapter.
            config: Orchestration configuration.
            supervisor: Optional job supervisor; built from `query_service` when omitted.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if query_service is None:
            raise ValueError("query_service must not be None")
        if not config.database.strip():
            raise ValueError("config.database must not be blank")

        self._query_service = query_service
        self._config = config
        self._supervisor = supervisor or TdJobSupervisor(query_service=query_service)

    def job_execute(
        self,
        task_params: Mapping[str, Any],
        cancel_event: threading.Event | None = None,
    ) -> QueryExecutionResult:
        """Execute one query task end to end.

        Args:
            task_params: Raw task options, optionally with nested `td` defaults.
            cancel_event: Optional signal that interrupts the completion wait.

        Returns:
            QueryExecutionResult: Summary, output state and stage timeline.

        Raises:
            ConfigurationError: Raised when options are invalid, before any remote call.
            TdJobFailedError: Raised when the remote job fails.
            JobInterruptedError: Raised when the wait is interrupted.
            MissingResultRowError: Raised when `store_last_results` is set and no rows came back.
            ResultExportError: Raised when the CSV output cannot be written; it is an `OSError`.
        """

        query_params = config_load_query_params(task_params)
        destination = query_params.query_params_destination()
        engine = job_statement_validate_engine(query_params.engine)
        database = query_params.database or self._config.database
        download_path = self._job_resolve_download_path(query_params.download_file)

        statement = job_statement_build(
            engine=engine,
            raw_query=query_params.query,
            destination=destination,
            query_service=self._query_service,
            database=database,
        )
        handle = self._supervisor.job_submit(
            JobSubmitRequest(
                statement=statement,
                engine=engine,
                database=database,
                priority=query_params.priority,
                retry_limit=query_params.job_retry,
                result_url=query_params.result_url,
            )
        )
        logger.info("Started %s job id=%s:\n%s", engine, handle.job_id, statement)

        outcome = self._supervisor.job_join(handle=handle, download_path=download_path, cancel_event=cancel_event)
        summary = self._job_build_summary(
            handle=handle,
            outcome=outcome,
            store_last_results=query_params.store_last_results,
        )
        return QueryExecutionResult(
            summary=summary,
            store_params=job_build_store_params(summary),
            stage_timeline=list(handle.stage_timeline),
        )

    def _job_build_summary(self, handle: JobHandle, outcome: JobOutcome, store_last_results: bool) -> ExecutionSummary:
        """Build the execution summary, sampling the first row when requested.

        Args:
            handle: Finalized job handle.
            outcome: Success outcome.
            store_last_results: Whether to include the first result row.

        Returns:
            ExecutionSummary: Immutable summary.

        Raises:
            MissingResultRowError: Raised when the first row is requested but the result is empty.
        """

        if not store_last_results:
            return ExecutionSummary(job_id=outcome.job_id, status=outcome.status)

        first_rows = self._supervisor.job_download_first_rows(handle=handle, max_rows=1)
        if not first_rows:
            raise MissingResultRowError(
                f"Job {outcome.job_id} returned no rows; store_last_results needs at least one",
                job_id=outcome.job_id,
            )
        last_results = dict(zip(outcome.result_column_names, first_rows[0]))
        return ExecutionSummary(job_id=outcome.job_id, status=outcome.status, last_results=last_results)

    def _job_resolve_download_path(self, download_file: str | None) -> Path | None:
        """Resolve `download_file` against the working directory.

        Args:
            download_file: Optional configured output path.

        Returns:
            Path | None: Absolute or working-directory-relative path, `None` when unset.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        if download_file is None:
            return None
        download_path = Path(download_file)
        if download_path.is_absolute():
            return download_path
        return Path(self._config.working_directory) / download_path
