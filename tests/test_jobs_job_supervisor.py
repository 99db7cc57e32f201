"""Regression tests for job supervision, diagnostics capture and finalize guarantees."""

from __future__ import annotations

import threading

import pytest

from td_query.adapters import JobSubmitRequest
from td_query.jobs import JobInterruptedError, JobPollStrategy, ResultExportError, TdJobFailedError, TdJobSupervisor
from td_query.jobs import job_supervisor as job_supervisor_module


def _submit(supervisor: TdJobSupervisor):
    return supervisor.job_submit(JobSubmitRequest(statement="SELECT 1", engine="presto", database="db"))


def test_jobs_supervisor_success_waits_until_terminal_then_finalizes(
    query_service_stub_factory, immediate_poll_strategy
) -> None:
    """Poll until success, finalize once and return column names.

    Args:
        query_service_stub_factory: Stub constructor fixture.
        immediate_poll_strategy: Zero-wait poll strategy fixture.

    Returns:
        None: Assertions validate call order and outcome.

    Raises:
        AssertionError: Raised when supervision flow is incorrect.
    """

    query_service = query_service_stub_factory(
        status_sequence=("queued", "running", "success"),
        column_names=("cnt",),
    )
    supervisor = TdJobSupervisor(query_service=query_service, poll_strategy=immediate_poll_strategy)

    handle = _submit(supervisor)
    outcome = supervisor.job_join(handle=handle)

    assert outcome.job_id == "12345"
    assert outcome.status == "success"
    assert outcome.result_column_names == ("cnt",)
    assert query_service.call_names() == ["submit", "status", "status", "status", "columns", "finalize"]
    assert query_service.finalize_calls == 1
    assert query_service.result_open_count == 0
    assert handle.finalized is True
    assert [event["stage"] for event in handle.stage_timeline] == ["submit", "wait", "wait", "finalize"]


def test_jobs_supervisor_failed_job_captures_diagnostics_before_finalize(
    query_service_stub_factory, immediate_poll_strategy
) -> None:
    """Raise TdJobFailedError after fetching diagnostics and finalizing once.

    Args:
        query_service_stub_factory: Stub constructor fixture.
        immediate_poll_strategy: Zero-wait poll strategy fixture.

    Returns:
        None: Assertions validate failure classification and ordering.

    Raises:
        AssertionError: Raised when failure flow is incorrect.
    """

    for terminal_status in ("error", "killed"):
        query_service = query_service_stub_factory(status_sequence=("running", terminal_status))
        supervisor = TdJobSupervisor(query_service=query_service, poll_strategy=immediate_poll_strategy)
        handle = _submit(supervisor)

        with pytest.raises(TdJobFailedError) as error_info:
            supervisor.job_join(handle=handle, download_path=None)

        assert error_info.value.job_id == "12345"
        assert error_info.value.status == terminal_status
        assert error_info.value.suppressed_errors == []
        assert query_service.call_names() == ["submit", "status", "status", "job_info", "finalize"]
        assert query_service.result_open_count == 0


def test_jobs_supervisor_diagnostics_failure_is_attached_not_raised(
    query_service_stub_factory, immediate_poll_strategy
) -> None:
    """Keep TdJobFailedError primary when diagnostic capture itself fails.

    Args:
        query_service_stub_factory: Stub constructor fixture.
        immediate_poll_strategy: Zero-wait poll strategy fixture.

    Returns:
        None: Assertions validate suppressed secondary error.

    Raises:
        AssertionError: Raised when the diagnostic error replaces the primary one.
    """

    diagnostic_error = ConnectionError("show endpoint down")
    query_service = query_service_stub_factory(status_sequence=("error",), job_info_error=diagnostic_error)
    supervisor = TdJobSupervisor(query_service=query_service, poll_strategy=immediate_poll_strategy)
    handle = _submit(supervisor)

    with pytest.raises(TdJobFailedError) as error_info:
        supervisor.job_join(handle=handle)

    assert error_info.value.suppressed_errors == [diagnostic_error]
    assert query_service.finalize_calls == 1
    assert any(
        event["stage"] == "diagnostics" and event["status"] == "failed" for event in handle.stage_timeline
    )


def test_jobs_supervisor_finalize_failure_does_not_mask_primary_error(
    query_service_stub_factory, immediate_poll_strategy
) -> None:
    """Attach a finalize failure to the job failure instead of replacing it.

    Args:
        query_service_stub_factory: Stub constructor fixture.
        immediate_poll_strategy: Zero-wait poll strategy fixture.

    Returns:
        None: Assertions validate primary error precedence.

    Raises:
        AssertionError: Raised when finalize failure masks the job failure.
    """

    finalize_error = ConnectionError("kill failed")
    query_service = query_service_stub_factory(status_sequence=("error",), finalize_error=finalize_error)
    supervisor = TdJobSupervisor(query_service=query_service, poll_strategy=immediate_poll_strategy)

    with pytest.raises(TdJobFailedError) as error_info:
        supervisor.job_join(handle=_submit(supervisor))

    assert error_info.value.suppressed_errors == [finalize_error]


def test_jobs_supervisor_finalize_failure_after_success_is_raised(
    query_service_stub_factory, immediate_poll_strategy
) -> None:
    """Raise finalize failures when there is no primary error.

    Args:
        query_service_stub_factory: Stub constructor fixture.
        immediate_poll_strategy: Zero-wait poll strategy fixture.

    Returns:
        None: Assertions validate finalize error propagation.

    Raises:
        AssertionError: Raised when finalize failure is swallowed.
    """

    query_service = query_service_stub_factory(finalize_error=ConnectionError("kill failed"))
    supervisor = TdJobSupervisor(query_service=query_service, poll_strategy=immediate_poll_strategy)

    with pytest.raises(ConnectionError, match="kill failed"):
        supervisor.job_join(handle=_submit(supervisor))


def test_jobs_supervisor_cancel_event_interrupts_wait_and_still_finalizes(
    query_service_stub_factory, immediate_poll_strategy
) -> None:
    """Raise JobInterruptedError on cancellation and finalize the job.

    Args:
        query_service_stub_factory: Stub constructor fixture.
        immediate_poll_strategy: Zero-wait poll strategy fixture.

    Returns:
        None: Assertions validate interruption handling.

    Raises:
        AssertionError: Raised when interruption skips finalize.
    """

    query_service = query_service_stub_factory(status_sequence=("running",))
    supervisor = TdJobSupervisor(query_service=query_service, poll_strategy=immediate_poll_strategy)
    handle = _submit(supervisor)
    cancel_event = threading.Event()
    cancel_event.set()

    with pytest.raises(JobInterruptedError) as error_info:
        supervisor.job_join(handle=handle, cancel_event=cancel_event)

    assert error_info.value.job_id == "12345"
    assert query_service.call_names() == ["submit", "finalize"]
    assert query_service.finalize_calls == 1


def test_jobs_supervisor_keyboard_interrupt_during_sleep_is_converted(
    monkeypatch: pytest.MonkeyPatch, query_service_stub_factory, immediate_poll_strategy
) -> None:
    """Convert KeyboardInterrupt raised while sleeping and still finalize.

    Args:
        monkeypatch: Pytest monkeypatch fixture.
        query_service_stub_factory: Stub constructor fixture.
        immediate_poll_strategy: Zero-wait poll strategy fixture.

    Returns:
        None: Assertions validate interrupt conversion.

    Raises:
        AssertionError: Raised when interruption leaks or skips finalize.
    """

    def _interrupting_sleep(_: float) -> None:
        raise KeyboardInterrupt

    monkeypatch.setattr(job_supervisor_module.time, "sleep", _interrupting_sleep)
    query_service = query_service_stub_factory(status_sequence=("running",))
    supervisor = TdJobSupervisor(query_service=query_service, poll_strategy=immediate_poll_strategy)

    with pytest.raises(JobInterruptedError) as error_info:
        supervisor.job_join(handle=_submit(supervisor))

    assert isinstance(error_info.value.__cause__, KeyboardInterrupt)
    assert query_service.call_names() == ["submit", "status", "finalize"]


def test_jobs_supervisor_finalize_is_idempotent(query_service_stub_factory) -> None:
    """Call the remote finalize only once per handle.

    Args:
        query_service_stub_factory: Stub constructor fixture.

    Returns:
        None: Assertions validate single remote finalize.

    Raises:
        AssertionError: Raised when finalize repeats remotely.
    """

    query_service = query_service_stub_factory()
    supervisor = TdJobSupervisor(query_service=query_service)
    handle = _submit(supervisor)

    supervisor.job_finalize(handle=handle)
    supervisor.job_finalize(handle=handle)

    assert query_service.finalize_calls == 1


def test_jobs_supervisor_download_csv_writes_after_finalize(
    tmp_path, query_service_stub_factory, immediate_poll_strategy
) -> None:
    """Open results once after finalize and write the CSV file.

    Args:
        tmp_path: Pytest temporary directory fixture.
        query_service_stub_factory: Stub constructor fixture.
        immediate_poll_strategy: Zero-wait poll strategy fixture.

    Returns:
        None: Assertions validate download ordering and content.

    Raises:
        AssertionError: Raised when download flow is incorrect.
    """

    query_service = query_service_stub_factory(column_names=("a", "b"), rows=([1, "x"], [2, None]))
    supervisor = TdJobSupervisor(query_service=query_service, poll_strategy=immediate_poll_strategy)
    output_path = tmp_path / "result.csv"

    supervisor.job_join(handle=_submit(supervisor), download_path=output_path)

    assert query_service.call_names()[-2:] == ["finalize", "open_rows"]
    assert query_service.result_open_count == 1
    with output_path.open("r", encoding="utf-8", newline="") as output_file:
        assert output_file.read() == "a,b\r\n1,x\r\n2,\r\n"


def test_jobs_poll_strategy_exponential_backoff_is_capped() -> None:
    """Calculate capped exponential waits with jitter and floor.

    Returns:
        None: Assertions validate wait computation.

    Raises:
        AssertionError: Raised when wait calculation is incorrect.
    """

    poll_strategy = JobPollStrategy(
        initial_wait_seconds=1.0,
        backoff_base_seconds=2.0,
        max_backoff_seconds=10.0,
        jitter_min_multiplier=0.5,
        jitter_max_multiplier=1.5,
        random_unit_interval_provider=lambda: 0.5,
    )

    assert poll_strategy.strategy_calculate_poll_wait_seconds(poll_index=0) == 2.0
    assert poll_strategy.strategy_calculate_poll_wait_seconds(poll_index=2) == 8.0
    assert poll_strategy.strategy_calculate_poll_wait_seconds(poll_index=50) == 10.0

    with pytest.raises(ValueError, match="poll_index must be >= 0"):
        poll_strategy.strategy_calculate_poll_wait_seconds(poll_index=-1)
    with pytest.raises(ValueError, match="jitter_max_multiplier"):
        JobPollStrategy(jitter_min_multiplier=1.2, jitter_max_multiplier=1.0)
    with pytest.raises(RuntimeError, match="random_unit_interval_provider"):
        JobPollStrategy(random_unit_interval_provider=lambda: 2.0).strategy_calculate_jitter_multiplier()


def test_jobs_supervisor_download_to_unwritable_path_raises_after_finalize(
    tmp_path, query_service_stub_factory, immediate_poll_strategy
) -> None:
    """Raise OSError from `job_join` when the CSV path cannot be created.

    Args:
        tmp_path: Pytest temporary directory fixture.
        query_service_stub_factory: Stub constructor fixture.
        immediate_poll_strategy: Zero-wait poll strategy fixture.

    Returns:
        None: Assertions validate error propagation and finalize state.

    Raises:
        AssertionError: Raised when sink failures are swallowed.
    """

    blocking_file = tmp_path / "blocker"
    blocking_file.write_text("", encoding="utf-8")
    query_service = query_service_stub_factory(column_names=("cnt",), rows=([1],))
    supervisor = TdJobSupervisor(query_service=query_service, poll_strategy=immediate_poll_strategy)
    handle = _submit(supervisor)

    with pytest.raises(OSError) as error_info:
        supervisor.job_join(handle=handle, download_path=blocking_file / "out.csv")

    assert isinstance(error_info.value, ResultExportError)
    assert error_info.value.job_id == "12345"

    assert handle.finalized is True
    assert query_service.finalize_calls == 1
    assert query_service.call_names()[-2:] == ["finalize", "open_rows"]
