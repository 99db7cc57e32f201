"""Job layer package for statement building, supervision and result export."""

from .interfaces import ExecutionSummary, JobHandle, JobOutcome, QueryExecutionResult, QueryJobOrchestratorPort
from .job_errors import JobInterruptedError, MissingResultRowError, ResultExportError, TdJobError, TdJobFailedError
from .job_supervisor import JobPollStrategy, TdJobSupervisor
from .query_orchestrator import QueryOrchestratorConfig, TdQueryOrchestrator, job_build_store_params
from .result_streaming import job_result_first_rows, job_result_open_csv_sink, job_result_write_csv
from .statement_builder import (
	ENGINE_HIVE,
	ENGINE_PRESTO,
	SUPPORTED_ENGINES,
	job_statement_build,
	job_statement_escape_hive_ident,
	job_statement_escape_presto_ident,
	job_statement_validate_engine,
)

__all__ = [
	"ENGINE_HIVE",
	"ENGINE_PRESTO",
	"ExecutionSummary",
	"JobHandle",
	"JobInterruptedError",
	"JobOutcome",
	"JobPollStrategy",
	"MissingResultRowError",
	"QueryExecutionResult",
	"QueryJobOrchestratorPort",
	"QueryOrchestratorConfig",
	"ResultExportError",
	"SUPPORTED_ENGINES",
	"TdJobError",
	"TdJobFailedError",
	"TdJobSupervisor",
	"TdQueryOrchestrator",
	"job_build_store_params",
	"job_result_first_rows",
	"job_result_open_csv_sink",
	"job_result_write_csv",
	"job_statement_build",
	"job_statement_escape_hive_ident",
	"job_statement_escape_presto_ident",
	"job_statement_validate_engine",
]
