"""Main module entrypoint for local runtime execution.

`query-run` executes one query task described by a YAML file and writes the
resulting output state as JSON; `api` starts the FastAPI trigger service.
"""

import argparse
import json
from pathlib import Path
from typing import Any

import uvicorn
import yaml

from td_query.adapters import TdAdapterError
from td_query.bootstrap import (
    bootstrap_create_application,
    bootstrap_create_query_orchestrator,
    bootstrap_create_query_service,
)
from td_query.config import AppSettings, ConfigurationError, config_load_settings
from td_query.jobs import TdJobError
from td_query.logging import configure_logging, get_logger

logger = get_logger(__name__)


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Raised with status 1 when the query run fails.
    """

    argument_parser = argparse.ArgumentParser(description="TD query runner entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "query-run"),
        help="Runtime command: `api` starts server, `query-run` executes one query task",
        type=str,
    )
    argument_parser.add_argument(
        "--config",
        dest="config_path",
        type=str,
        help="YAML task file with query options for `query-run`",
    )
    argument_parser.add_argument(
        "--state-file",
        dest="state_file",
        type=str,
        help="Optional JSON file receiving the output state; stdout when omitted",
    )
    parsed_arguments = argument_parser.parse_args()

    settings = config_load_settings()
    configure_logging(settings.log_level)

    if parsed_arguments.command == "query-run":
        if not parsed_arguments.config_path:
            argument_parser.error("--config is required for `query-run`")
        main_run_query_task(
            settings=settings,
            config_path=Path(parsed_arguments.config_path),
            state_file=Path(parsed_arguments.state_file) if parsed_arguments.state_file else None,
        )
        return

    application = bootstrap_create_application()
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
    )


def main_load_task_params(config_path: Path) -> dict[str, Any]:
    """Load task options from a YAML file.

    Args:
        config_path: YAML file path.

    Returns:
        dict[str, Any]: Raw task options.

    Raises:
        ConfigurationError: Raised when the file is not a YAML mapping.
        OSError: Raised when the file cannot be read.
    """

    with config_path.open("r", encoding="utf-8") as config_file:
        try:
            task_params = yaml.safe_load(config_file)
        except yaml.YAMLError as error:
            raise ConfigurationError(f"Task file {config_path} is not valid YAML: {error}") from error
    if not isinstance(task_params, dict):
        raise ConfigurationError(f"Task file {config_path} must contain a mapping of options")
    return task_params


def main_run_query_task(settings: AppSettings, config_path: Path, state_file: Path | None) -> None:
    """Execute one query task and emit its output state.

    Args:
        settings: Validated runtime settings.
        config_path: YAML task file.
        state_file: Optional JSON output state path.

    Returns:
        None: Output state is written as side effect.

    Raises:
        SystemExit: Raised with status 1 when the run fails.
    """

    query_service = bootstrap_create_query_service(settings)
    try:
        task_params = main_load_task_params(config_path)
        orchestrator = bootstrap_create_query_orchestrator(settings=settings, query_service=query_service)
        execution_result = orchestrator.job_execute(task_params=task_params)
    except (ConfigurationError, TdJobError, TdAdapterError, OSError) as error:
        logger.error("Query task failed: %s", error)
        raise SystemExit(1) from error
    finally:
        query_service.adapter_close()

    state_payload = json.dumps(execution_result.store_params, ensure_ascii=False, indent=2)
    if state_file is None:
        print(state_payload)
        return
    state_file.parent.mkdir(parents=True, exist_ok=True)
    state_file.write_text(state_payload + "\n", encoding="utf-8")


if __name__ == "__main__":
    main()
