"""CSV field encoding for result export.

Only the write direction is implemented. The quoting rules are fixed: any
field containing a quote, a delimiter or a line break is quoted, carriage
returns are normalized to `\\n`, and an empty string is written as `""` so it
stays distinguishable from a null value (which encodes to nothing).
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Final

CSV_DELIMITER_CHAR: Final[str] = ","
CSV_ESCAPE_CHAR: Final[str] = '"'
CSV_QUOTE_CHAR: Final[str] = '"'
CSV_LINE_TERMINATOR: Final[str] = "\r\n"


def domain_csv_escape_and_quote(value: str) -> str:
    """Escape one text field and quote it when required.

    Args:
        value: Raw field text.

    Returns:
        str: Encoded field text.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if not value:
        return CSV_QUOTE_CHAR + CSV_QUOTE_CHAR

    escaped_chars: list[str] = []
    previous_char = " "
    require_quote = False

    for char in value:
        if char == CSV_QUOTE_CHAR:
            escaped_chars.append(CSV_ESCAPE_CHAR)
            escaped_chars.append(char)
            require_quote = True
        elif char == "\r":
            escaped_chars.append("\n")
            require_quote = True
        elif char == "\n":
            # the \r of a \r\n pair already produced the \n
            if previous_char != "\r":
                escaped_chars.append("\n")
                require_quote = True
        elif char == CSV_DELIMITER_CHAR:
            escaped_chars.append(char)
            require_quote = True
        else:
            escaped_chars.append(char)
        previous_char = char

    escaped_value = "".join(escaped_chars)
    if require_quote:
        return CSV_QUOTE_CHAR + escaped_value + CSV_QUOTE_CHAR
    return escaped_value


def domain_csv_encode_value(value: object) -> str:
    """Encode one result scalar as a CSV field.

    Args:
        value: `None`, text, or any other JSON-representable value.

    Returns:
        str: Empty string for `None`, escaped text for `str`, escaped compact
        JSON text for everything else.

    Raises:
        ValueError: Raised for NaN or infinite floats, which have no JSON form.
        TypeError: Raised for values JSON cannot represent, e.g. bytes.
    """

    if value is None:
        return ""
    if isinstance(value, str):
        return domain_csv_escape_and_quote(value)
    return domain_csv_escape_and_quote(
        json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    )


def domain_csv_encode_line(values: Iterable[object]) -> str:
    """Encode one row as a CRLF-terminated CSV line.

    Args:
        values: Row scalars in column order.

    Returns:
        str: Encoded line including the trailing CRLF.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return CSV_DELIMITER_CHAR.join(domain_csv_encode_value(value) for value in values) + CSV_LINE_TERMINATOR
