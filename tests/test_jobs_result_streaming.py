"""Regression tests for CSV result export and bounded row sampling."""

from __future__ import annotations

import io

import pytest

from td_query.jobs import job_result_first_rows, job_result_open_csv_sink, job_result_write_csv


class _FailingSink(io.StringIO):
    """Text sink failing on the second write."""

    def __init__(self):
        super().__init__()
        self.write_count = 0

    def write(self, text: str) -> int:
        self.write_count += 1
        if self.write_count > 1:
            raise OSError("disk full")
        return super().write(text)


def test_jobs_result_write_csv_emits_header_then_rows_with_crlf() -> None:
    """Write the header line followed by one escaped line per row.

    Returns:
        None: Assertions validate CSV text and row count.

    Raises:
        AssertionError: Raised when CSV framing is incorrect.
    """

    sink = io.StringIO()

    row_count = job_result_write_csv(
        rows=iter([[1, "a,b"], [None, 'q"']]),
        column_names=("id", "label"),
        sink=sink,
    )

    assert row_count == 2
    assert sink.getvalue() == 'id,label\r\n1,"a,b"\r\n,"q"""\r\n'


def test_jobs_result_write_csv_writes_header_for_empty_result() -> None:
    """Write only the header when the result has no rows.

    Returns:
        None: Assertions validate header-only output.

    Raises:
        AssertionError: Raised when empty results are written incorrectly.
    """

    sink = io.StringIO()

    assert job_result_write_csv(rows=iter([]), column_names=("cnt",), sink=sink) == 0
    assert sink.getvalue() == "cnt\r\n"


def test_jobs_result_write_csv_propagates_sink_errors() -> None:
    """Propagate sink write failures to the caller.

    Returns:
        None: Assertions validate error propagation.

    Raises:
        AssertionError: Raised when a write failure is swallowed.
    """

    with pytest.raises(OSError, match="disk full"):
        job_result_write_csv(rows=iter([[1]]), column_names=("cnt",), sink=_FailingSink())


def test_jobs_result_first_rows_stops_pulling_after_limit() -> None:
    """Return at most `max_rows` rows without consuming further input.

    Returns:
        None: Assertions validate bounded consumption.

    Raises:
        AssertionError: Raised when extra rows are pulled.
    """

    pulled_rows: list[int] = []

    def _row_source():
        for index in range(10):
            pulled_rows.append(index)
            yield [index]

    assert job_result_first_rows(rows=_row_source(), max_rows=1) == [[0]]
    assert pulled_rows == [0]

    pulled_rows.clear()
    assert job_result_first_rows(rows=_row_source(), max_rows=0) == []
    assert pulled_rows == []

    assert job_result_first_rows(rows=iter([[1], [2]]), max_rows=5) == [[1], [2]]
    with pytest.raises(ValueError, match="max_rows must be >= 0"):
        job_result_first_rows(rows=iter([]), max_rows=-1)


def test_jobs_result_open_csv_sink_creates_parents_and_keeps_crlf(tmp_path) -> None:
    """Create missing parent directories and write CRLF without translation.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate sink behavior on disk.

    Raises:
        AssertionError: Raised when bytes on disk differ.
    """

    output_path = tmp_path / "nested" / "dir" / "out.csv"

    with job_result_open_csv_sink(output_path) as sink:
        job_result_write_csv(rows=iter([["ü"]]), column_names=("name",), sink=sink)

    assert output_path.read_bytes() == "name\r\nü\r\n".encode("utf-8")
