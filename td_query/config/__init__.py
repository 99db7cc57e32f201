"""Configuration package for runtime settings and task option validation."""

from .query_params import (
	QUERY_PRIORITY_NAMES,
	ConfigurationError,
	DestinationMode,
	QueryDestination,
	QueryParams,
	config_load_query_params,
	config_merge_task_params,
)
from .settings import AppSettings, SettingsLoadError, config_load_settings

__all__ = [
	"AppSettings",
	"ConfigurationError",
	"DestinationMode",
	"QUERY_PRIORITY_NAMES",
	"QueryDestination",
	"QueryParams",
	"SettingsLoadError",
	"config_load_query_params",
	"config_load_settings",
	"config_merge_task_params",
]
