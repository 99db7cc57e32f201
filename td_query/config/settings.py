"""Typed runtime settings with dotenv support and startup validation."""

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings cannot be loaded or validated."""


class AppSettings(BaseSettings):
    """Application settings for the query runner and its trigger surfaces.

    Environment variable names map directly to field names in uppercase.
    Example: `td_apikey` reads from `TD_APIKEY`.

    Attributes:
        environment_name: Runtime environment label.
        application_host: Host interface for web server binding.
        application_port: Web server port.
        log_level: Root logging level name.
        working_directory: Base directory for relative `download_file` paths.
        td_apikey: Remote query service API key.
        td_endpoint: Remote query service base URL.
        td_database: Default database used when task params do not name one.
        td_request_timeout_seconds: HTTP request timeout.
        td_poll_initial_wait_seconds: Delay floor before each status poll.
        td_poll_backoff_base_seconds: Base delay for exponential poll backoff.
        td_poll_backoff_max_seconds: Maximum poll delay cap.
        td_poll_jitter_min_multiplier: Minimum poll jitter multiplier.
        td_poll_jitter_max_multiplier: Maximum poll jitter multiplier.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment_name: str = Field(default="development")
    application_host: str = Field(default="0.0.0.0")
    application_port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(default="INFO")
    working_directory: str = Field(default=".")
    td_apikey: str = Field(min_length=1)
    td_endpoint: str = Field(default="https://api.treasuredata.com")
    td_database: str = Field(min_length=1)
    td_request_timeout_seconds: float = Field(default=60.0, gt=0)
    td_poll_initial_wait_seconds: float = Field(default=1.0, ge=0)
    td_poll_backoff_base_seconds: float = Field(default=2.0, ge=0)
    td_poll_backoff_max_seconds: float = Field(default=30.0, gt=0)
    td_poll_jitter_min_multiplier: float = Field(default=0.8, gt=0)
    td_poll_jitter_max_multiplier: float = Field(default=1.2, gt=0)

    @field_validator("td_apikey", "td_endpoint", "td_database")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized_value = value.strip().upper()
        if normalized_value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unsupported log level: {value}")
        return normalized_value

    @field_validator("td_poll_backoff_max_seconds")
    @classmethod
    def _validate_backoff_cap_bounds(cls, value: float, info) -> float:
        backoff_base_seconds = float(info.data.get("td_poll_backoff_base_seconds", 2.0))
        if value < backoff_base_seconds:
            raise ValueError("td_poll_backoff_max_seconds must be greater than or equal to td_poll_backoff_base_seconds")
        return value

    @field_validator("td_poll_jitter_max_multiplier")
    @classmethod
    def _validate_jitter_bounds(cls, value: float, info) -> float:
        jitter_min_multiplier = float(info.data.get("td_poll_jitter_min_multiplier", 0.8))
        if value < jitter_min_multiplier:
            raise ValueError(
                "td_poll_jitter_max_multiplier must be greater than or equal to td_poll_jitter_min_multiplier"
            )
        return value


def config_load_settings() -> AppSettings:
    """Load and validate runtime settings from environment and dotenv.

    Returns:
        AppSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when required settings are missing or invalid.
    """

    try:
        return AppSettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error
