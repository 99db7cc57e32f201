"""Single-pass result streaming into CSV sinks and bounded row sampling."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path
from typing import TextIO

from td_query.domain import domain_csv_encode_line


def job_result_write_csv(
    rows: Iterator[Sequence[object]],
    column_names: Sequence[str],
    sink: TextIO,
) -> int:
    """Write a header line and one line per row to the sink.

    Args:
        rows: Single-pass row iterator, consumed once in order.
        column_names: Result column names in schema order.
        sink: Text sink opened without newline translation.

    Returns:
        int: Number of data rows written.

    Raises:
        OSError: Raised when the sink cannot be written.
    """

    sink.write(domain_csv_encode_line(column_names))
    row_count = 0
    for row in rows:
        sink.write(domain_csv_encode_line(row))
        row_count += 1
    return row_count


def job_result_first_rows(rows: Iterable[Sequence[object]], max_rows: int) -> list[Sequence[object]]:
    """Collect at most `max_rows` rows without reading past them.

    Args:
        rows: Row iterator.
        max_rows: Maximum number of rows to collect.

    Returns:
        list[Sequence[object]]: Collected rows in order.

    Raises:
        ValueError: Raised when `max_rows` is negative.
    """

    if max_rows < 0:
        raise ValueError("max_rows must be >= 0")

    collected_rows: list[Sequence[object]] = []
    if max_rows == 0:
        return collected_rows
    for row in rows:
        collected_rows.append(row)
        if len(collected_rows) >= max_rows:
            break
    return collected_rows


def job_result_open_csv_sink(path: Path) -> TextIO:
    """Open a UTF-8 CSV sink, creating parent directories.

    Args:
        path: Output file path.

    Returns:
        TextIO: Writable text stream; `newline=""` keeps CRLF verbatim.

    Raises:
        OSError: Raised when the file or its directories cannot be created.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    return path.open("w", encoding="utf-8", newline="")
