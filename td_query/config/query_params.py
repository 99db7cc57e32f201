"""Task parameter model for one query run, with destination validation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

QUERY_PRIORITY_NAMES: Final[dict[str, int]] = {
    "VERY_LOW": -2,
    "LOW": -1,
    "NORMAL": 0,
    "HIGH": 1,
    "VERY_HIGH": 2,
}


class ConfigurationError(ValueError):
    """Raised when task parameters are invalid; never retried, never sent upstream."""


class DestinationMode(str, Enum):
    """How query output is materialized."""

    NONE = "none"
    INSERT_INTO = "insert_into"
    CREATE_TABLE = "create_table"


@dataclass(frozen=True)
class QueryDestination:
    """Destination table directive for one statement.

    Attributes:
        mode: Destination mode.
        table_name: Target table name, `None` when mode is `NONE`.
    """

    mode: DestinationMode
    table_name: str | None = None

    @classmethod
    def from_options(cls, insert_into: str | None, create_table: str | None) -> "QueryDestination":
        """Build a destination from the two mutually exclusive options.

        Args:
            insert_into: Optional INSERT target table.
            create_table: Optional CREATE target table.

        Returns:
            QueryDestination: Resolved destination directive.

        Raises:
            ConfigurationError: Raised when both options are set.
        """

        if insert_into is not None and create_table is not None:
            raise ConfigurationError("Setting both insert_into and create_table is invalid")
        if insert_into is not None:
            return cls(mode=DestinationMode.INSERT_INTO, table_name=insert_into)
        if create_table is not None:
            return cls(mode=DestinationMode.CREATE_TABLE, table_name=create_table)
        return cls(mode=DestinationMode.NONE)


class QueryParams(BaseModel):
    """Validated options of one query task.

    Attributes:
        query: Rendered SQL text.
        insert_into: Optional table to append results into.
        create_table: Optional table to (re)create from results.
        priority: Job priority passed through unchanged; names map to -2..2.
        job_retry: Retry limit passed through to the remote service.
        engine: Query engine name.
        download_file: Optional CSV output path.
        store_last_results: Whether to keep the first result row in output state.
        result_url: Optional result output target passed through unmodified.
        database: Optional database override for this task.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    query: str = Field(min_length=1)
    insert_into: str | None = None
    create_table: str | None = None
    priority: int = 0
    job_retry: int = Field(default=0, ge=0)
    engine: str = "presto"
    download_file: str | None = None
    store_last_results: bool = False
    result_url: str | None = None
    database: str | None = None

    @field_validator("query")
    @classmethod
    def _validate_query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query must not be blank")
        return value

    @field_validator("insert_into", "create_table", "download_file", "database")
    @classmethod
    def _validate_optional_name(cls, value: str | None) -> str | None:
        # table names reach statement text verbatim
        if value is None:
            return None
        if not value.strip():
            raise ValueError("value must not be blank when set")
        if value != value.strip():
            raise ValueError("value must not have leading or trailing whitespace")
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _validate_priority_name(cls, value: Any) -> Any:
        # TD priority names are accepted alongside the numeric form.
        if isinstance(value, str) and value.strip().upper() in QUERY_PRIORITY_NAMES:
            return QUERY_PRIORITY_NAMES[value.strip().upper()]
        return value

    def query_params_destination(self) -> QueryDestination:
        """Return the destination directive for these options.

        Returns:
            QueryDestination: Resolved destination.

        Raises:
            ConfigurationError: Raised when both destination options are set.
        """

        return QueryDestination.from_options(insert_into=self.insert_into, create_table=self.create_table)


def config_merge_task_params(task_params: Mapping[str, Any]) -> dict[str, Any]:
    """Merge nested `td:` defaults beneath top-level task options.

    Args:
        task_params: Raw task option mapping.

    Returns:
        dict[str, Any]: Flat option mapping, top-level keys taking precedence.

    Raises:
        ConfigurationError: Raised when the `td` entry is not a mapping.
    """

    nested_defaults = task_params.get("td") or {}
    if not isinstance(nested_defaults, Mapping):
        raise ConfigurationError("'td' option must be a mapping")
    merged_params = dict(nested_defaults)
    merged_params.update({key: value for key, value in task_params.items() if key != "td"})
    return merged_params


def config_load_query_params(task_params: Mapping[str, Any]) -> QueryParams:
    """Validate raw task options into a `QueryParams` instance.

    Args:
        task_params: Raw task option mapping, optionally with nested `td` defaults.

    Returns:
        QueryParams: Validated options.

    Raises:
        ConfigurationError: Raised when options are missing, malformed or conflicting.
    """

    try:
        query_params = QueryParams.model_validate(config_merge_task_params(task_params))
    except ValidationError as error:
        raise ConfigurationError(f"Invalid query task options: {error}") from error

    destination = query_params.query_params_destination()
    if query_params.download_file is not None and destination.mode is not DestinationMode.NONE:
        # no rows come back once data is materialized into a table
        raise ConfigurationError("download_file is invalid if insert_into or create_table is set")
    return query_params
