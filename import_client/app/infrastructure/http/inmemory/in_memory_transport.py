"""In-memory import backend for local mode and demonstrations.

Accepts any upload, then reports the job as in progress for a fixed number of polls
before finishing. No network is involved; the transport backend can be switched in
settings without touching the tracker.
"""
from __future__ import annotations

from import_client.app.constants import JOB_STATUS
from import_client.app.domain.models import ImportFile, JobStatusResult
from import_client.app.ports.transport import ProgressCallback, TransportError

DEFAULT_CHUNK_SIZE = 64 * 1024


class InMemoryImportTransport:
    def __init__(
        self,
        *,
        processing_polls: int = 3,
        failure_reason: str | None = None,
        has_active_job: bool = False,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.uploads: list[str] = []
        self.poll_count = 0
        self._processing_polls = processing_polls
        self._failure_reason = failure_reason
        self._chunk_size = max(1, chunk_size)
        self._remaining_polls: int | None = processing_polls if has_active_job else None
        self._last_result: JobStatusResult | None = None

    async def connect(self) -> None:
        return

    @property
    def has_active_job(self) -> bool:
        return self._remaining_polls is not None

    async def upload(self, file: ImportFile, on_progress: ProgressCallback) -> None:
        if self.has_active_job:
            raise TransportError("an import is already being processed", status_code=409)
        size = file.path.stat().st_size if file.path.exists() else 0
        loaded = 0
        while loaded < size:
            loaded = min(size, loaded + self._chunk_size)
            on_progress(loaded, size)
        self.uploads.append(file.name)
        self._remaining_polls = self._processing_polls
        self._last_result = None

    async def check_pending(self) -> bool:
        return self.has_active_job

    async def poll(self) -> JobStatusResult:
        self.poll_count += 1
        if self._remaining_polls is None:
            if self._last_result is None:
                raise TransportError("no import job found", status_code=404)
            return self._last_result
        if self._remaining_polls > 0:
            self._remaining_polls -= 1
            return JobStatusResult(status=JOB_STATUS.IN_PROGRESS)

        self._remaining_polls = None
        if self._failure_reason is not None:
            self._last_result = JobStatusResult(status=JOB_STATUS.FAILED, reason=self._failure_reason)
        else:
            self._last_result = JobStatusResult(status=JOB_STATUS.SUCCEEDED)
        return self._last_result

    async def close(self) -> None:
        return
