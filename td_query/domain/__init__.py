"""Domain helpers shared across adapter and job layers."""

from .csv_encoding import (
	CSV_DELIMITER_CHAR,
	CSV_LINE_TERMINATOR,
	CSV_QUOTE_CHAR,
	domain_csv_encode_line,
	domain_csv_encode_value,
	domain_csv_escape_and_quote,
)
from .timeline import JobStage, JobStageStatus, domain_build_stage_event

__all__ = [
	"CSV_DELIMITER_CHAR",
	"CSV_LINE_TERMINATOR",
	"CSV_QUOTE_CHAR",
	"JobStage",
	"JobStageStatus",
	"domain_build_stage_event",
	"domain_csv_encode_line",
	"domain_csv_encode_value",
	"domain_csv_escape_and_quote",
]
