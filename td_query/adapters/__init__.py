"""Adapter layer package for the remote query service boundary."""

from .interfaces import (
	JOB_FINISHED_STATUSES,
	JOB_STATUS_ERROR,
	JOB_STATUS_KILLED,
	JOB_STATUS_QUEUED,
	JOB_STATUS_RUNNING,
	JOB_STATUS_SUCCESS,
	JobInfo,
	JobSubmitRequest,
	TdQueryServicePort,
)
from .td_api_client import TdApiClientAdapter
from .td_errors import TdAdapterConnectionError, TdAdapterError, TdAdapterTimeoutError, TdApiResponseError

__all__ = [
	"JOB_FINISHED_STATUSES",
	"JOB_STATUS_ERROR",
	"JOB_STATUS_KILLED",
	"JOB_STATUS_QUEUED",
	"JOB_STATUS_RUNNING",
	"JOB_STATUS_SUCCESS",
	"JobInfo",
	"JobSubmitRequest",
	"TdAdapterConnectionError",
	"TdAdapterError",
	"TdAdapterTimeoutError",
	"TdApiClientAdapter",
	"TdApiResponseError",
	"TdQueryServicePort",
]
