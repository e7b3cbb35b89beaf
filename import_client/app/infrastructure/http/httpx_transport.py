"""Concrete ImportTransport using httpx (injected where ImportTransport is needed)."""
from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Iterator

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from import_client.app.constants import JOB_STATUS
from import_client.app.core import SERVICE_NAME
from import_client.app.core.backoff import exponential_backoff
from import_client.app.domain.models import ImportFile, JobStatusResult
from import_client.app.ports.transport import (
    ProgressCallback,
    TransportError,
    TransportTimeoutError,
)


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class PendingJobPayload(BaseModel):
    """Body of the pending-job check. Either shape of the shared progress endpoint is accepted."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    has_active_job: bool | None = Field(None, alias="hasActiveJob")
    status: int | None = None

    @property
    def is_pending(self) -> bool:
        if self.has_active_job is not None:
            return self.has_active_job
        return self.status == JOB_STATUS.IN_PROGRESS


class JobStatusPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: int = Field(..., ge=JOB_STATUS.IN_PROGRESS, le=JOB_STATUS.FAILED)
    reason: str | None = None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return f"http status {response.status_code} for {response.request.url}"


class HttpxImportTransport:
    """ImportTransport implementation using httpx.AsyncClient."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        upload_path: str,
        status_path: str,
        pending_path: str,
        connect_timeout_seconds: float = 5.0,
        upload_timeout_seconds: float = 300.0,
        status_timeout_seconds: float = 15.0,
        initial_backoff_seconds: float = 0.5,
        max_backoff_seconds: float = 8.0,
        backoff_multiplier: float = 2.0,
        max_connection_attempts: int = 3,
    ) -> None:
        self._client = client
        self._upload_path = upload_path
        self._status_path = status_path
        self._pending_path = pending_path
        self._upload_timeout = httpx.Timeout(
            connect=connect_timeout_seconds,
            read=upload_timeout_seconds,
            write=upload_timeout_seconds,
            pool=connect_timeout_seconds,
        )
        self._status_timeout = httpx.Timeout(
            connect=connect_timeout_seconds,
            read=status_timeout_seconds,
            write=status_timeout_seconds,
            pool=connect_timeout_seconds,
        )
        self._initial_backoff_seconds = initial_backoff_seconds
        self._max_backoff_seconds = max_backoff_seconds
        self._backoff_multiplier = backoff_multiplier
        self._max_connection_attempts = max_connection_attempts

    async def connect(self) -> None:
        """Check the backend answers at all. Any HTTP response counts as reachable."""
        attempt = 0
        async for delay in exponential_backoff(
            self._initial_backoff_seconds,
            self._max_backoff_seconds,
            self._backoff_multiplier,
            self._max_connection_attempts,
        ):
            attempt += 1
            _log("backend_probe_attempt", attempt=attempt, delay=delay)
            try:
                await self._client.get(self._status_path, timeout=self._status_timeout)
                _log("backend_reachable")
                return
            except httpx.HTTPError as exc:
                logger.warning("backend probe failed: {}", exc)
                if attempt >= self._max_connection_attempts:
                    raise TransportError(f"backend unreachable: {exc}") from exc
        raise TransportError("backend unreachable")

    async def upload(self, file: ImportFile, on_progress: ProgressCallback) -> None:
        with file.open() as fh:
            request = self._client.build_request(
                "POST",
                self._upload_path,
                files={"file": (file.name, fh, file.content_type)},
                timeout=self._upload_timeout,
            )
            content_length = request.headers.get("Content-Length")
            total = int(content_length) if content_length else None

            async def counted_body() -> AsyncIterator[bytes]:
                # The multipart encoder reads the file with blocking calls; run them in a worker thread.
                chunks: Iterator[bytes] = iter(request.stream)  # type: ignore[arg-type]
                loaded = 0
                while True:
                    chunk = await asyncio.to_thread(next, chunks, None)
                    if chunk is None:
                        break
                    loaded += len(chunk)
                    on_progress(loaded, total)
                    yield chunk

            # Content-Length is carried over, so httpx does not switch to chunked encoding.
            counted = httpx.Request(
                request.method,
                request.url,
                headers=request.headers,
                content=counted_body(),
                extensions=request.extensions,
            )
            response = await self._send(counted, what=f"upload of {file.name}")

        if response.is_error:
            raise TransportError(_error_message(response), status_code=response.status_code)
        _log("upload_accepted", file_name=file.name, status_code=response.status_code)

    async def check_pending(self) -> bool:
        body = await self._get_json(self._pending_path)
        try:
            return PendingJobPayload.model_validate(body).is_pending
        except PydanticValidationError as exc:
            raise TransportError(f"malformed pending-job response: {exc}") from exc

    async def poll(self) -> JobStatusResult:
        body = await self._get_json(self._status_path)
        try:
            payload = JobStatusPayload.model_validate(body)
        except PydanticValidationError as exc:
            raise TransportError(f"malformed status response: {exc}") from exc
        return JobStatusResult(status=payload.status, reason=payload.reason)

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str) -> Any:
        request = self._client.build_request("GET", path, timeout=self._status_timeout)
        response = await self._send(request, what=f"GET {path}")
        if response.is_error:
            raise TransportError(_error_message(response), status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"invalid JSON from {path}") from exc

    async def _send(self, request: httpx.Request, *, what: str) -> httpx.Response:
        try:
            return await self._client.send(request)
        except httpx.TimeoutException as exc:
            raise TransportTimeoutError(f"timeout during {what}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{what} failed: {exc}") from exc
