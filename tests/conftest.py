"""Shared test doubles for the remote query service port."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Callable

import pytest

from td_query.adapters import JobInfo, JobSubmitRequest
from td_query.jobs import JobPollStrategy


class QueryServiceStub:
    """In-memory query service stub recording every call in order."""

    def __init__(
        self,
        status_sequence: Sequence[str] = ("success",),
        column_names: Sequence[str] = (),
        rows: Sequence[list[object]] = (),
        job_id: str = "12345",
        job_info_error: Exception | None = None,
        finalize_error: Exception | None = None,
    ):
        """Initialize stub state.

        Args:
            status_sequence: Statuses returned by successive status polls; the last one repeats.
            column_names: Result column names.
            rows: Result rows.
            job_id: Job id returned on submit.
            job_info_error: Optional error raised by diagnostics fetch.
            finalize_error: Optional error raised by finalize.

        Returns:
            None: Initializer does not return values.
        """

        self._status_sequence = list(status_sequence)
        self._column_names = tuple(column_names)
        self._rows = [list(row) for row in rows]
        self._job_id = job_id
        self._job_info_error = job_info_error
        self._finalize_error = finalize_error
        self.calls: list[tuple[object, ...]] = []
        self.submitted_requests: list[JobSubmitRequest] = []
        self.finalize_calls = 0
        self.result_open_count = 0
        self.rows_pulled = 0
        self.last_status = ""

    def adapter_source_name(self) -> str:
        """Return deterministic adapter source label."""

        return "stub"

    def adapter_submit_job(self, request: JobSubmitRequest) -> str:
        """Record the request and return the configured job id."""

        self.calls.append(("submit", request.engine, request.database))
        self.submitted_requests.append(request)
        return self._job_id

    def adapter_job_status(self, job_id: str) -> str:
        """Return the next configured status."""

        self.calls.append(("status", job_id))
        if len(self._status_sequence) > 1:
            self.last_status = self._status_sequence.pop(0)
        else:
            self.last_status = self._status_sequence[0]
        return self.last_status

    def adapter_job_info(self, job_id: str) -> JobInfo:
        """Return captured output or raise the configured diagnostics error."""

        self.calls.append(("job_info", job_id))
        if self._job_info_error is not None:
            raise self._job_info_error
        return JobInfo(job_id=job_id, status=self.last_status, cmd_out="stdout text", std_err="stderr text")

    def adapter_finalize_job(self, job_id: str) -> None:
        """Count finalize calls and optionally fail."""

        self.calls.append(("finalize", job_id))
        self.finalize_calls += 1
        if self._finalize_error is not None:
            raise self._finalize_error

    def adapter_result_column_names(self, job_id: str) -> tuple[str, ...]:
        """Return configured column names."""

        self.calls.append(("columns", job_id))
        return self._column_names

    @contextmanager
    def adapter_open_result_rows(self, job_id: str) -> Iterator[Iterator[list[object]]]:
        """Yield a counting single-pass iterator over configured rows."""

        self.calls.append(("open_rows", job_id))
        self.result_open_count += 1
        yield self._iter_rows()

    def adapter_ensure_table_created(self, database: str, table_name: str) -> None:
        """Record table creation."""

        self.calls.append(("ensure_table_created", database, table_name))

    def adapter_ensure_table_deleted(self, database: str, table_name: str) -> None:
        """Record table deletion."""

        self.calls.append(("ensure_table_deleted", database, table_name))

    def call_names(self) -> list[object]:
        """Return call names in order."""

        return [call[0] for call in self.calls]

    def _iter_rows(self) -> Iterator[list[object]]:
        for row in self._rows:
            self.rows_pulled += 1
            yield row


@pytest.fixture
def query_service_stub_factory() -> Callable[..., QueryServiceStub]:
    """Return the stub constructor so tests pick statuses and rows."""

    return QueryServiceStub


@pytest.fixture
def immediate_poll_strategy() -> JobPollStrategy:
    """Poll strategy with zero waits."""

    return JobPollStrategy(
        initial_wait_seconds=0,
        backoff_base_seconds=0,
        max_backoff_seconds=1,
        jitter_min_multiplier=1.0,
        jitter_max_multiplier=1.0,
        random_unit_interval_provider=lambda: 0.0,
    )

