"""Typed interfaces for the remote query service boundary."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Final, Protocol

JOB_STATUS_QUEUED: Final[str] = "queued"
JOB_STATUS_BOOTING: Final[str] = "booting"
JOB_STATUS_RUNNING: Final[str] = "running"
JOB_STATUS_SUCCESS: Final[str] = "success"
JOB_STATUS_ERROR: Final[str] = "error"
JOB_STATUS_KILLED: Final[str] = "killed"
JOB_FINISHED_STATUSES: Final[frozenset[str]] = frozenset({JOB_STATUS_SUCCESS, JOB_STATUS_ERROR, JOB_STATUS_KILLED})


@dataclass(frozen=True)
class JobSubmitRequest:
    """Request contract for one job submission.

    Attributes:
        statement: Final statement text.
        engine: Query engine (`presto` or `hive`).
        database: Target database.
        priority: Job priority in -2..2.
        retry_limit: Remote-side retry limit.
        result_url: Optional result output target, passed through unmodified.
    """

    statement: str
    engine: str
    database: str
    priority: int = 0
    retry_limit: int = 0
    result_url: str | None = None


@dataclass(frozen=True)
class JobInfo:
    """Snapshot of one remote job's details.

    Attributes:
        job_id: Remote job identifier.
        status: Remote lifecycle status.
        cmd_out: Captured command output.
        std_err: Captured error output.
    """

    job_id: str
    status: str
    cmd_out: str
    std_err: str


class TdQueryServicePort(Protocol):
    """Port definition for submitting and tracking query jobs."""

    def adapter_source_name(self) -> str:
        """Return adapter source identifier for diagnostics."""

    def adapter_submit_job(self, request: JobSubmitRequest) -> str:
        """Submit one job and return its id without waiting.

        Args:
            request: Job submission contract.

        Returns:
            str: Remote job identifier.

        Raises:
            ConnectionError: Raised when the remote service is unreachable.
        """

    def adapter_job_status(self, job_id: str) -> str:
        """Return the current lifecycle status of a job.

        Args:
            job_id: Remote job identifier.

        Returns:
            str: One of the `JOB_STATUS_*` values.
        """

    def adapter_job_info(self, job_id: str) -> JobInfo:
        """Return job details including captured output.

        Args:
            job_id: Remote job identifier.

        Returns:
            JobInfo: Job detail snapshot.
        """

    def adapter_finalize_job(self, job_id: str) -> None:
        """Leave the job finished, killing it when still running.

        Safe to call on finished jobs and safe to repeat.

        Args:
            job_id: Remote job identifier.
        """

    def adapter_result_column_names(self, job_id: str) -> tuple[str, ...]:
        """Return result column names in schema order.

        Args:
            job_id: Remote job identifier.

        Returns:
            tuple[str, ...]: Ordered column names.
        """

    def adapter_open_result_rows(self, job_id: str) -> AbstractContextManager[Iterator[list[object]]]:
        """Open a forward-only cursor over the job's result rows.

        Args:
            job_id: Remote job identifier.

        Returns:
            AbstractContextManager[Iterator[list[object]]]: Scoped single-pass row iterator.
        """

    def adapter_ensure_table_created(self, database: str, table_name: str) -> None:
        """Create a table unless it already exists.

        Args:
            database: Database name.
            table_name: Table name.
        """

    def adapter_ensure_table_deleted(self, database: str, table_name: str) -> None:
        """Drop a table unless it is already absent.

        Args:
            database: Database name.
            table_name: Table name.
        """
