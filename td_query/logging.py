"""Logger factory and root logging configuration for runtime entrypoints."""

import logging
import sys

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Map string log levels to logging constants
LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

# Transport chatter is only useful when debugging the adapter
TECHNICAL_MODULES = [
    "httpx",
    "httpcore",
]


def get_logger(name: str) -> logging.Logger:
    """Return a logger with the specified name.

    Handlers are configured once on the root logger by `configure_logging`,
    so library modules only ask for a named logger.

    Args:
        name: The name for the logger, typically __name__

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger for CLI and API entrypoints.

    Args:
        level: Level name (`DEBUG`, `INFO`, `WARNING`, `ERROR`, `CRITICAL`).
    """
    root_level = LOG_LEVELS.get(level.strip().lower(), DEFAULT_LOG_LEVEL)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Clear existing handlers to avoid duplicate logs
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    root_logger.addHandler(handler)

    technical_level = logging.DEBUG if root_level <= logging.DEBUG else logging.WARNING
    for module_name in TECHNICAL_MODULES:
        logging.getLogger(module_name).setLevel(technical_level)
