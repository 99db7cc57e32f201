"""Typed exceptions raised by job supervision and summary building."""

from __future__ import annotations


class TdJobError(Exception):
    """Base exception for supervised job failures.

    Attributes:
        job_id: Remote job identifier, when one was assigned.
    """

    def __init__(self, message: str, job_id: str | None = None):
        super().__init__(message)
        self.job_id = job_id


class TdJobFailedError(TdJobError, RuntimeError):
    """The remote job reached a failed or killed terminal state.

    Attributes:
        status: Terminal remote status.
        suppressed_errors: Secondary failures raised while handling this one.
    """

    def __init__(self, message: str, job_id: str | None = None, status: str | None = None):
        super().__init__(message, job_id=job_id)
        self.status = status
        self.suppressed_errors: list[BaseException] = []

    def add_suppressed(self, error: BaseException) -> None:
        """Attach a secondary failure without replacing this error.

        Args:
            error: Secondary failure, e.g. from diagnostic capture.

        Returns:
            None: Error is recorded as side effect.
        """

        self.suppressed_errors.append(error)
        self.add_note(f"suppressed: {type(error).__name__}: {error}")


class JobInterruptedError(TdJobError):
    """Waiting for job completion was interrupted by the caller."""


class MissingResultRowError(TdJobError, IndexError):
    """A result row was requested from a job whose result set is empty."""


class ResultExportError(TdJobError, OSError):
    """Writing a finished job's result set to the local CSV file failed."""
