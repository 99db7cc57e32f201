"""Engine-specific statement construction with destination table provisioning."""

from __future__ import annotations

from typing import Final

from td_query.adapters import TdQueryServicePort
from td_query.config import ConfigurationError, DestinationMode, QueryDestination

ENGINE_PRESTO: Final[str] = "presto"
ENGINE_HIVE: Final[str] = "hive"
SUPPORTED_ENGINES: Final[tuple[str, ...]] = (ENGINE_HIVE, ENGINE_PRESTO)


def job_statement_escape_presto_ident(identifier: str) -> str:
    """Quote an identifier for presto, doubling embedded double quotes."""

    return '"' + identifier.replace('"', '""') + '"'


def job_statement_escape_hive_ident(identifier: str) -> str:
    """Quote an identifier for hive, doubling embedded backquotes."""

    return "`" + identifier.replace("`", "``") + "`"


def job_statement_validate_engine(engine: str) -> str:
    """Return the engine when supported.

    Args:
        engine: Requested engine name.

    Returns:
        str: The same engine name.

    Raises:
        ConfigurationError: Raised for engines outside `SUPPORTED_ENGINES`.
    """

    if engine not in SUPPORTED_ENGINES:
        raise ConfigurationError(
            f"Unknown 'engine:' option (available options are: {' and '.join(SUPPORTED_ENGINES)}): {engine}"
        )
    return engine


def job_statement_build(
    engine: str,
    raw_query: str,
    destination: QueryDestination,
    query_service: TdQueryServicePort,
    database: str,
) -> str:
    """Build the final statement, provisioning the destination table first.

    Args:
        engine: Query engine (`presto` or `hive`).
        raw_query: Rendered query body; never rewritten or escaped.
        destination: Destination directive.
        query_service: Service used for table provisioning side effects.
        database: Database holding the destination table.

    Returns:
        str: Statement text ready for submission.

    Raises:
        ConfigurationError: Raised for unsupported engines, before any remote call.
        ConnectionError: Raised when table provisioning fails.
    """

    job_statement_validate_engine(engine)
    if destination.mode is DestinationMode.NONE:
        return raw_query

    table_name = destination.table_name or ""

    if engine == ENGINE_PRESTO:
        escaped_table = job_statement_escape_presto_ident(table_name)
        if destination.mode is DestinationMode.INSERT_INTO:
            query_service.adapter_ensure_table_created(database=database, table_name=table_name)
            return f"INSERT INTO {escaped_table}\n{raw_query}"
        query_service.adapter_ensure_table_deleted(database=database, table_name=table_name)
        return f"CREATE TABLE {escaped_table} AS\n{raw_query}"

    # hive overwrites in place, so the target must exist in both modes
    escaped_table = job_statement_escape_hive_ident(table_name)
    query_service.adapter_ensure_table_created(database=database, table_name=table_name)
    if destination.mode is DestinationMode.INSERT_INTO:
        return f"INSERT INTO TABLE {escaped_table}\n{raw_query}"
    return f"INSERT INTO OVERWRITE {escaped_table} AS\n{raw_query}"
