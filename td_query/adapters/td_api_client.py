"""Treasure Data REST API adapter implementation for job submission and results."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Final
from urllib.parse import quote

import httpx

from td_query.logging import get_logger

from .interfaces import JOB_FINISHED_STATUSES, JobInfo, JobSubmitRequest, TdQueryServicePort
from .td_errors import TdAdapterConnectionError, TdAdapterTimeoutError, TdApiResponseError

logger = get_logger(__name__)


def _adapter_reject_json_constant(constant: str) -> object:
    """Reject `NaN` and `Infinity`, which are not valid JSON."""

    raise ValueError(f"non-standard JSON constant: {constant}")


class TdApiClientAdapter(TdQueryServicePort):
    """Adapter implementation for the `/v3` job and table endpoints."""

    _USER_AGENT: Final[str] = "td-query-runner/0.1 (Python/httpx)"
    _HTTP_CONFLICT: Final[int] = 409
    _HTTP_NOT_FOUND: Final[int] = 404

    def __init__(
        self,
        apikey: str,
        endpoint: str = "https://api.treasuredata.com",
        request_timeout_seconds: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the REST adapter with one pooled HTTP client.

        Args:
            apikey: Remote service API key.
            endpoint: Base endpoint URL.
            request_timeout_seconds: HTTP request timeout in seconds.
            transport: Optional httpx transport override.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when required config values are invalid.
        """

        normalized_apikey = apikey.strip()
        normalized_endpoint = endpoint.strip()

        if not normalized_apikey:
            raise ValueError("apikey must not be blank")
        if not normalized_endpoint:
            raise ValueError("endpoint must not be blank")
        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be > 0")

        self._endpoint = normalized_endpoint.rstrip("/")
        self._client = httpx.Client(
            base_url=self._endpoint,
            headers={"Authorization": f"TD1 {normalized_apikey}", "User-Agent": self._USER_AGENT},
            timeout=request_timeout_seconds,
            transport=transport,
        )

    def adapter_source_name(self) -> str:
        """Return stable adapter source label.

        Returns:
            str: Source identifier including the endpoint host.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return f"td_api:{self._endpoint}"

    def adapter_close(self) -> None:
        """Close the pooled HTTP client."""

        self._client.close()

    def adapter_submit_job(self, request: JobSubmitRequest) -> str:
        """Issue one job and return its identifier.

        Args:
            request: Job submission contract.

        Returns:
            str: Remote job identifier.

        Raises:
            ConnectionError: Raised for network/HTTP transport failures.
            TimeoutError: Raised when the request times out.
            RuntimeError: Raised when the response carries no job id.
        """

        form_data = {
            "query": request.statement,
            "priority": str(request.priority),
            "retry_limit": str(request.retry_limit),
        }
        if request.result_url is not None:
            form_data["result"] = request.result_url

        response = self._adapter_request(
            "POST",
            f"/v3/job/issue/{quote(request.engine, safe='')}/{quote(request.database, safe='')}",
            data=form_data,
        )
        payload = self._adapter_parse_json(response=response, context_label="job_issue")
        job_id = str(payload.get("job_id") or payload.get("job") or "").strip()
        if not job_id:
            raise TdApiResponseError("job issue response missing job_id")
        return job_id

    def adapter_job_status(self, job_id: str) -> str:
        """Return the current remote status of a job.

        Args:
            job_id: Remote job identifier.

        Returns:
            str: Lower-case status value.

        Raises:
            ConnectionError: Raised for network/HTTP transport failures.
            RuntimeError: Raised when the response carries no status.
        """

        response = self._adapter_request("GET", f"/v3/job/status/{quote(job_id, safe='')}")
        payload = self._adapter_parse_json(response=response, context_label="job_status")
        status_value = str(payload.get("status") or "").strip().lower()
        if not status_value:
            raise TdApiResponseError(f"job status response missing status for job_id={job_id}")
        return status_value

    def adapter_job_info(self, job_id: str) -> JobInfo:
        """Return job details including captured output.

        Args:
            job_id: Remote job identifier.

        Returns:
            JobInfo: Job detail snapshot.

        Raises:
            ConnectionError: Raised for network/HTTP transport failures.
        """

        payload = self._adapter_show_job(job_id=job_id)
        return JobInfo(
            job_id=job_id,
            status=str(payload.get("status") or "").strip().lower(),
            cmd_out=str(payload.get("cmdout") or ""),
            std_err=str(payload.get("stderr") or ""),
        )

    def adapter_finalize_job(self, job_id: str) -> None:
        """Kill the job unless it already finished.

        Args:
            job_id: Remote job identifier.

        Returns:
            None: Remote state is changed as side effect.

        Raises:
            ConnectionError: Raised for network/HTTP transport failures.
        """

        status_value = self.adapter_job_status(job_id=job_id)
        if status_value in JOB_FINISHED_STATUSES:
            return
        logger.info("Killing job id=%s in status=%s", job_id, status_value)
        self._adapter_request(
            "POST",
            f"/v3/job/kill/{quote(job_id, safe='')}",
            allowed_statuses=(self._HTTP_CONFLICT,),
        )

    def adapter_result_column_names(self, job_id: str) -> tuple[str, ...]:
        """Return result column names from the job's result schema.

        Args:
            job_id: Remote job identifier.

        Returns:
            tuple[str, ...]: Ordered column names, empty when the job has no schema.

        Raises:
            RuntimeError: Raised when the schema payload is malformed.
        """

        payload = self._adapter_show_job(job_id=job_id)
        raw_schema = payload.get("hive_result_schema")
        if raw_schema in (None, ""):
            return ()
        if isinstance(raw_schema, str):
            try:
                raw_schema = json.loads(raw_schema)
            except ValueError as error:
                raise TdApiResponseError(f"result schema is not valid JSON for job_id={job_id}") from error
        if not isinstance(raw_schema, list):
            raise TdApiResponseError(f"result schema must be a list for job_id={job_id}")
        column_names: list[str] = []
        for column in raw_schema:
            if not isinstance(column, list) or not column:
                raise TdApiResponseError(f"result schema entry is malformed for job_id={job_id}")
            column_names.append(str(column[0]))
        return tuple(column_names)

    @contextmanager
    def adapter_open_result_rows(self, job_id: str) -> Iterator[Iterator[list[object]]]:
        """Stream result rows as one JSON array per line.

        Args:
            job_id: Remote job identifier.

        Returns:
            Iterator[Iterator[list[object]]]: Context yielding a lazy row iterator.

        Raises:
            ConnectionError: Raised for network/HTTP transport failures.
            TimeoutError: Raised when the download times out.
        """

        try:
            with self._client.stream(
                "GET",
                f"/v3/job/result/{quote(job_id, safe='')}",
                params={"format": "json"},
            ) as response:
                if response.status_code >= 400:
                    raise TdAdapterConnectionError(
                        f"result download returned HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                yield self._adapter_iter_result_lines(response=response, job_id=job_id)
        except httpx.TimeoutException as error:
            raise TdAdapterTimeoutError("result download timed out") from error
        except httpx.TransportError as error:
            raise TdAdapterConnectionError("result download failed") from error

    def adapter_ensure_table_created(self, database: str, table_name: str) -> None:
        """Create a log table, treating an existing table as success.

        Args:
            database: Database name.
            table_name: Table name.

        Returns:
            None: Remote schema is changed as side effect.

        Raises:
            ConnectionError: Raised for network/HTTP transport failures.
        """

        response = self._adapter_request(
            "POST",
            f"/v3/table/create/{quote(database, safe='')}/{quote(table_name, safe='')}/log",
            allowed_statuses=(self._HTTP_CONFLICT,),
        )
        if response.status_code == self._HTTP_CONFLICT:
            logger.debug("Table %s.%s already exists", database, table_name)

    def adapter_ensure_table_deleted(self, database: str, table_name: str) -> None:
        """Delete a table, treating a missing table as success.

        Args:
            database: Database name.
            table_name: Table name.

        Returns:
            None: Remote schema is changed as side effect.

        Raises:
            ConnectionError: Raised for network/HTTP transport failures.
        """

        response = self._adapter_request(
            "POST",
            f"/v3/table/delete/{quote(database, safe='')}/{quote(table_name, safe='')}",
            allowed_statuses=(self._HTTP_NOT_FOUND,),
        )
        if response.status_code == self._HTTP_NOT_FOUND:
            logger.debug("Table %s.%s does not exist", database, table_name)

    def _adapter_show_job(self, job_id: str) -> dict[str, Any]:
        """Fetch the job detail payload.

        Args:
            job_id: Remote job identifier.

        Returns:
            dict[str, Any]: Decoded job detail payload.

        Raises:
            ConnectionError: Raised for network/HTTP transport failures.
        """

        response = self._adapter_request("GET", f"/v3/job/show/{quote(job_id, safe='')}")
        return self._adapter_parse_json(response=response, context_label="job_show")

    def _adapter_iter_result_lines(self, response: httpx.Response, job_id: str) -> Iterator[list[object]]:
        """Decode streamed result lines into rows.

        Args:
            response: Open streaming response.
            job_id: Remote job identifier for error messages.

        Returns:
            Iterator[list[object]]: Lazy row iterator.

        Raises:
            ConnectionError: Raised when the stream breaks mid-download.
            RuntimeError: Raised when a line is not a JSON array.
        """

        try:
            for line in response.iter_lines():
                if not line.strip():
                    continue
                try:
                    row = json.loads(line, parse_constant=_adapter_reject_json_constant)
                except ValueError as error:
                    raise TdApiResponseError(f"result line is not valid JSON for job_id={job_id}") from error
                if not isinstance(row, list):
                    raise TdApiResponseError(f"result line is not a JSON array for job_id={job_id}")
                yield row
        except httpx.TimeoutException as error:
            raise TdAdapterTimeoutError("result download timed out") from error
        except httpx.TransportError as error:
            raise TdAdapterConnectionError("result download interrupted") from error

    def _adapter_request(
        self,
        method: str,
        path: str,
        data: dict[str, str] | None = None,
        allowed_statuses: tuple[int, ...] = (),
    ) -> httpx.Response:
        """Execute one HTTP request and map transport failures.

        Args:
            method: HTTP method.
            path: Endpoint path relative to the base URL.
            data: Optional form payload.
            allowed_statuses: Error statuses returned to the caller instead of raised.

        Returns:
            httpx.Response: Response with success or allowed status.

        Raises:
            ConnectionError: Raised for network and non-success HTTP status.
            TimeoutError: Raised when the request times out.
        """

        try:
            response = self._client.request(method, path, data=data)
        except httpx.TimeoutException as error:
            raise TdAdapterTimeoutError(f"{method} {path} timed out") from error
        except httpx.TransportError as error:
            raise TdAdapterConnectionError(f"{method} {path} failed") from error

        if response.status_code in allowed_statuses:
            return response
        if response.status_code >= 400:
            raise TdAdapterConnectionError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def _adapter_parse_json(self, response: httpx.Response, context_label: str) -> dict[str, Any]:
        """Decode a JSON object response body.

        Args:
            response: HTTP response.
            context_label: Context label for error messages.

        Returns:
            dict[str, Any]: Decoded payload.

        Raises:
            RuntimeError: Raised when the body is not a JSON object.
        """

        try:
            payload = response.json()
        except ValueError as error:
            raise TdApiResponseError(f"response is not valid JSON for context={context_label}") from error
        if not isinstance(payload, dict):
            raise TdApiResponseError(f"response is not a JSON object for context={context_label}")
        return payload
