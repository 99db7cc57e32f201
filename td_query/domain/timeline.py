"""Job stage timeline events recorded while a remote job is supervised."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any


class JobStage(str, Enum):
    """Supervised job lifecycle stages, in the order they can occur."""

    SUBMIT = "submit"
    WAIT = "wait"
    DIAGNOSTICS = "diagnostics"
    FINALIZE = "finalize"
    DOWNLOAD = "download"


class JobStageStatus(str, Enum):
    """Progress marker of one stage event."""

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    INTERRUPTED = "interrupted"


def domain_build_stage_event(
    stage: JobStage | str,
    status: JobStageStatus | str,
    details: dict[str, Any] | None = None,
) -> dict[str, object]:
    """Build one timeline event for a supervised job stage.

    Args:
        stage: Lifecycle stage, as enum member or its value.
        status: Stage progress marker, as enum member or its value.
        details: Optional structured details, e.g. job id or row count.

    Returns:
        dict[str, object]: JSON-ready event with plain string `stage` and `status`.

    Raises:
        ValueError: Raised when `stage` or `status` is not a known value.
    """

    event_payload: dict[str, object] = {
        "stage": JobStage(stage).value,
        "status": JobStageStatus(status).value,
        "recorded_at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        event_payload["details"] = dict(details)
    return event_payload
