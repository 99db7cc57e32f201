"""Job lifecycle supervision: submit, wait, classify, always finalize."""

from __future__ import annotations

import random
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Final

from td_query.adapters import (
    JOB_FINISHED_STATUSES,
    JOB_STATUS_SUCCESS,
    JobSubmitRequest,
    TdAdapterError,
    TdQueryServicePort,
)
from td_query.domain import JobStage, JobStageStatus, domain_build_stage_event
from td_query.logging import get_logger

from .interfaces import JobHandle, JobOutcome
from .job_errors import JobInterruptedError, ResultExportError, TdJobFailedError
from .result_streaming import job_result_first_rows, job_result_open_csv_sink, job_result_write_csv

logger = get_logger(__name__)

_MAX_BACKOFF_EXPONENT: Final[int] = 30


@dataclass(frozen=True)
class JobPollStrategy:
    """Immutable status-poll wait config and calculation helpers.

    Attributes:
        initial_wait_seconds: Delay floor before each poll.
        backoff_base_seconds: Base delay for exponential backoff.
        max_backoff_seconds: Exponential delay cap before jitter.
        jitter_min_multiplier: Minimum jitter multiplier.
        jitter_max_multiplier: Maximum jitter multiplier.
        random_unit_interval_provider: Provider returning value in [0.0, 1.0].
    """

    initial_wait_seconds: float = 1.0
    backoff_base_seconds: float = 2.0
    max_backoff_seconds: float = 30.0
    jitter_min_multiplier: float = 0.8
    jitter_max_multiplier: float = 1.2
    random_unit_interval_provider: Callable[[], float] = field(default=random.random)

    def __post_init__(self) -> None:
        if self.initial_wait_seconds < 0:
            raise ValueError("initial_wait_seconds must be >= 0")
        if self.backoff_base_seconds < 0:
            raise ValueError("backoff_base_seconds must be >= 0")
        if self.max_backoff_seconds <= 0:
            raise ValueError("max_backoff_seconds must be > 0")
        if self.jitter_min_multiplier <= 0:
            raise ValueError("jitter_min_multiplier must be > 0")
        if self.jitter_max_multiplier < self.jitter_min_multiplier:
            raise ValueError("jitter_max_multiplier must be >= jitter_min_multiplier")

    def strategy_calculate_poll_wait_seconds(self, poll_index: int) -> float:
        """Calculate exponential poll wait with cap and jitter.

        Args:
            poll_index: Zero-based poll attempt index.

        Returns:
            float: Computed wait seconds before the next poll.

        Raises:
            ValueError: Raised when poll index is negative.
            RuntimeError: Raised when jitter provider returns out-of-range value.
        """

        if poll_index < 0:
            raise ValueError("poll_index must be >= 0")

        backoff_seconds = self.backoff_base_seconds * (2 ** min(poll_index, _MAX_BACKOFF_EXPONENT))
        capped_backoff_seconds = min(backoff_seconds, self.max_backoff_seconds)
        jittered_backoff_seconds = capped_backoff_seconds * self.strategy_calculate_jitter_multiplier()
        return max(float(self.initial_wait_seconds), float(jittered_backoff_seconds))

    def strategy_calculate_jitter_multiplier(self) -> float:
        """Return jitter multiplier using configured min/max bounds.

        Returns:
            float: Jitter multiplier value.

        Raises:
            RuntimeError: Raised when jitter source returns value outside [0.0, 1.0].
        """

        random_ratio = float(self.random_unit_interval_provider())
        if random_ratio < 0.0 or random_ratio > 1.0:
            raise RuntimeError("random_unit_interval_provider must return a value in [0.0, 1.0]")

        jitter_span = self.jitter_max_multiplier - self.jitter_min_multiplier
        return self.jitter_min_multiplier + (random_ratio * jitter_span)


class TdJobSupervisor:
    """Owns one remote job from submission until it is finalized."""

    def __init__(self, query_service: TdQueryServicePort, poll_strategy: JobPollStrategy | None = None):
        """Initialize supervisor dependencies.

        Args:
            query_service: Remote query service adapter.
            poll_strategy: Optional status-poll wait strategy.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies are invalid.
        """

        if query_service is None:
            raise ValueError("query_service must not be None")

        self._query_service = query_service
        self._poll_strategy = poll_strategy or JobPollStrategy()

    def job_submit(self, request: JobSubmitRequest) -> JobHandle:
        """Submit a job and return its handle without waiting.

        Args:
            request: Job submission contract.

        Returns:
            JobHandle: Handle owned by the caller until finalized.

        Raises:
            ConnectionError: Raised when submission fails.
        """

        job_id = self._query_service.adapter_submit_job(request=request)
        handle = JobHandle(job_id=job_id, engine=request.engine)
        handle.stage_timeline.append(
            domain_build_stage_event(
                stage=JobStage.SUBMIT,
                status=JobStageStatus.COMPLETED,
                details={"job_id": job_id},
            )
        )
        return handle

    def job_await_completion(self, handle: JobHandle, cancel_event: threading.Event | None = None) -> JobOutcome:
        """Block until the job is terminal and classify the outcome.

        Args:
            handle: Supervised job handle.
            cancel_event: Optional signal that interrupts the wait.

        Returns:
            JobOutcome: Success outcome with result column names.

        Raises:
            TdJobFailedError: Raised when the job ends in a non-success state.
            JobInterruptedError: Raised when the wait is interrupted.
        """

        handle.stage_timeline.append(
            domain_build_stage_event(stage=JobStage.WAIT, status=JobStageStatus.STARTED)
        )
        poll_index = 0
        try:
            while True:
                if cancel_event is not None and cancel_event.is_set():
                    raise JobInterruptedError(f"Waiting for job {handle.job_id} was interrupted", job_id=handle.job_id)
                handle.status = self._query_service.adapter_job_status(job_id=handle.job_id)
                if handle.status in JOB_FINISHED_STATUSES:
                    break
                wait_seconds = self._poll_strategy.strategy_calculate_poll_wait_seconds(poll_index=poll_index)
                self._job_sleep(handle=handle, wait_seconds=wait_seconds, cancel_event=cancel_event)
                poll_index += 1
        except KeyboardInterrupt as error:
            handle.stage_timeline.append(
                domain_build_stage_event(stage=JobStage.WAIT, status=JobStageStatus.INTERRUPTED)
            )
            raise JobInterruptedError(
                f"Waiting for job {handle.job_id} was interrupted", job_id=handle.job_id
            ) from error
        except JobInterruptedError:
            handle.stage_timeline.append(
                domain_build_stage_event(stage=JobStage.WAIT, status=JobStageStatus.INTERRUPTED)
            )
            raise

        handle.stage_timeline.append(
            domain_build_stage_event(
                stage=JobStage.WAIT,
                status=JobStageStatus.COMPLETED,
                details={"job_status": handle.status, "poll_count": poll_index + 1},
            )
        )
        if handle.status != JOB_STATUS_SUCCESS:
            raise TdJobFailedError(
                f"Job {handle.job_id} finished with status={handle.status}",
                job_id=handle.job_id,
                status=handle.status,
            )

        return JobOutcome(
            job_id=handle.job_id,
            status=handle.status,
            result_column_names=self._query_service.adapter_result_column_names(job_id=handle.job_id),
        )

    def job_finalize(self, handle: JobHandle) -> None:
        """Leave the remote job finished or killed; repeated calls no-op.

        Args:
            handle: Supervised job handle.

        Returns:
            None: Remote job state is changed as side effect.

        Raises:
            ConnectionError: Raised when the remote finalize call fails.
        """

        if handle.finalized:
            logger.debug("Job %s already finalized", handle.job_id)
            return
        handle.finalized = True
        self._query_service.adapter_finalize_job(job_id=handle.job_id)
        handle.stage_timeline.append(
            domain_build_stage_event(stage=JobStage.FINALIZE, status=JobStageStatus.COMPLETED)
        )

    def job_join(
        self,
        handle: JobHandle,
        download_path: Path | None = None,
        cancel_event: threading.Event | None = None,
    ) -> JobOutcome:
        """Wait for the job, finalize it, then export results on success.

        Args:
            handle: Supervised job handle.
            download_path: Optional CSV output path; rows are not read when `None`.
            cancel_event: Optional signal that interrupts the wait.

        Returns:
            JobOutcome: Success outcome.

        Raises:
            TdJobFailedError: Raised when the job fails, after diagnostics capture.
            JobInterruptedError: Raised when the wait is interrupted.
            ResultExportError: Raised when the CSV output cannot be written; it is an `OSError`.
        """

        primary_error: BaseException | None = None
        try:
            outcome = self.job_await_completion(handle=handle, cancel_event=cancel_event)
        except TdJobFailedError as error:
            primary_error = error
            self._job_capture_diagnostics(handle=handle, error=error)
            raise
        except BaseException as error:
            primary_error = error
            raise
        finally:
            self._job_finalize_guarded(handle=handle, primary_error=primary_error)

        if download_path is not None:
            self.job_download_csv(handle=handle, column_names=outcome.result_column_names, path=download_path)
        return outcome

    def job_download_csv(self, handle: JobHandle, column_names: Sequence[str], path: Path) -> int:
        """Stream the job's result set into a CSV file.

        Args:
            handle: Supervised job handle of a succeeded job.
            column_names: Result column names in schema order.
            path: Output file path.

        Returns:
            int: Number of data rows written.

        Raises:
            ResultExportError: Raised when the output file cannot be written; it is an `OSError`.
            ConnectionError: Raised when the result download fails.
        """

        handle.stage_timeline.append(
            domain_build_stage_event(stage=JobStage.DOWNLOAD, status=JobStageStatus.STARTED)
        )
        try:
            with self._query_service.adapter_open_result_rows(job_id=handle.job_id) as rows:
                with job_result_open_csv_sink(path) as sink:
                    row_count = job_result_write_csv(rows=rows, column_names=column_names, sink=sink)
        except TdAdapterError:
            raise
        except OSError as error:
            raise ResultExportError(
                f"Writing results of job {handle.job_id} to {path} failed: {error}",
                job_id=handle.job_id,
            ) from error
        logger.info("Wrote %d rows of job %s to %s", row_count, handle.job_id, path)
        handle.stage_timeline.append(
            domain_build_stage_event(
                stage=JobStage.DOWNLOAD,
                status=JobStageStatus.COMPLETED,
                details={"path": str(path), "row_count": row_count},
            )
        )
        return row_count

    def job_download_first_rows(self, handle: JobHandle, max_rows: int) -> list[Sequence[object]]:
        """Read at most `max_rows` result rows.

        Args:
            handle: Supervised job handle of a succeeded job.
            max_rows: Maximum number of rows to read.

        Returns:
            list[Sequence[object]]: Rows in result order.

        Raises:
            ConnectionError: Raised when the result download fails.
        """

        with self._query_service.adapter_open_result_rows(job_id=handle.job_id) as rows:
            return job_result_first_rows(rows=rows, max_rows=max_rows)

    def _job_sleep(self, handle: JobHandle, wait_seconds: float, cancel_event: threading.Event | None) -> None:
        """Wait between polls, honoring the cancellation signal.

        Raises:
            JobInterruptedError: Raised when the cancellation signal fires.
        """

        if cancel_event is None:
            time.sleep(wait_seconds)
            return
        if cancel_event.wait(timeout=wait_seconds):
            raise JobInterruptedError(f"Waiting for job {handle.job_id} was interrupted", job_id=handle.job_id)

    def _job_capture_diagnostics(self, handle: JobHandle, error: TdJobFailedError) -> None:
        """Log captured job output; a fetch failure is attached to `error`."""

        try:
            job_info = self._query_service.adapter_job_info(job_id=handle.job_id)
            message = f"{job_info.cmd_out}\n{job_info.std_err}"
            logger.warning("Job %s:\n===\n%s\n===", handle.job_id, message)
            handle.stage_timeline.append(
                domain_build_stage_event(stage=JobStage.DIAGNOSTICS, status=JobStageStatus.COMPLETED)
            )
        except Exception as diagnostic_error:  # pylint: disable=broad-exception-caught
            error.add_suppressed(diagnostic_error)
            handle.stage_timeline.append(
                domain_build_stage_event(
                    stage=JobStage.DIAGNOSTICS,
                    status=JobStageStatus.FAILED,
                    details={"error_type": type(diagnostic_error).__name__, "error_message": str(diagnostic_error)},
                )
            )

    def _job_finalize_guarded(self, handle: JobHandle, primary_error: BaseException | None) -> None:
        """Finalize without letting a finalize failure mask `primary_error`."""

        try:
            self.job_finalize(handle=handle)
        except Exception as finalize_error:  # pylint: disable=broad-exception-caught
            if primary_error is None:
                raise
            logger.warning("Finalizing job %s failed: %s", handle.job_id, finalize_error)
            if isinstance(primary_error, TdJobFailedError):
                primary_error.add_suppressed(finalize_error)
            else:
                primary_error.add_note(f"suppressed: {type(finalize_error).__name__}: {finalize_error}")
