"""Typed interfaces for job-layer orchestration responsibilities."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol


@dataclass
class JobHandle:
    """Mutable handle for one supervised remote job.

    Attributes:
        job_id: Remote job identifier.
        engine: Query engine the job runs on.
        status: Last observed remote status.
        finalized: Whether the finalize step already ran.
        stage_timeline: Structured stage events recorded during supervision.
    """

    job_id: str
    engine: str
    status: str = "queued"
    finalized: bool = False
    stage_timeline: list[dict[str, object]] = field(default_factory=list)


@dataclass(frozen=True)
class JobOutcome:
    """Successful completion of a supervised job.

    Attributes:
        job_id: Remote job identifier.
        status: Terminal remote status.
        result_column_names: Result schema column names in order.
    """

    job_id: str
    status: str
    result_column_names: tuple[str, ...]


@dataclass(frozen=True)
class ExecutionSummary:
    """Durable record of one completed job.

    Attributes:
        job_id: Remote job identifier.
        status: Terminal remote status.
        last_results: Read-only first result row keyed by column name, when requested.
    """

    job_id: str
    status: str
    last_results: Mapping[str, object] | None = None

    def __post_init__(self) -> None:
        if self.last_results is not None:
            object.__setattr__(self, "last_results", MappingProxyType(dict(self.last_results)))


@dataclass(frozen=True)
class QueryExecutionResult:
    """Result contract for one query task execution.

    Attributes:
        summary: Execution summary.
        store_params: Output state to persist as workflow state.
        stage_timeline: Stage events recorded while supervising the job.
    """

    summary: ExecutionSummary
    store_params: dict[str, object]
    stage_timeline: list[dict[str, object]]


class QueryJobOrchestratorPort(Protocol):
    """Port definition for executing one query task."""

    def job_execute(
        self,
        task_params: Mapping[str, Any],
        cancel_event: threading.Event | None = None,
    ) -> QueryExecutionResult:
        """Execute one query task end to end.

        Args:
            task_params: Raw task options.
            cancel_event: Optional signal that interrupts the completion wait.

        Returns:
            QueryExecutionResult: Summary and output state.

        Raises:
            ConfigurationError: Raised when task options are invalid.
            TdJobFailedError: Raised when the remote job fails.
            JobInterruptedError: Raised when the wait is interrupted.
        """
