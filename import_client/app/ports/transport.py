"""Transport port: contract for talking to the import backend.

The tracker depends on this port; infrastructure (httpx, in-memory) implements it.
The backend exposes one progress endpoint that answers two different questions, so
the port splits it into `check_pending` (is anything running?) and `poll` (how is the
job I am tracking doing?).
"""
from __future__ import annotations

from typing import Callable, Optional, Protocol, runtime_checkable

from import_client.app.domain.models import ImportFile, JobStatusResult

# Called with (loaded, total); total is None when the body length is unknown.
ProgressCallback = Callable[[int, Optional[int]], None]


class TransportError(Exception):
    """Base for transport failures (network, status, malformed body)."""

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransportTimeoutError(TransportError):
    """Raised when a request times out."""


@runtime_checkable
class ImportTransport(Protocol):
    """Port: upload files and query job status. Implementations live in infrastructure."""

    async def connect(self) -> None:
        """Probe the backend. No-op allowed when there is nothing to probe."""
        ...

    async def upload(self, file: ImportFile, on_progress: ProgressCallback) -> None:
        """Send the file; raise TransportError on failure."""
        ...

    async def check_pending(self) -> bool:
        """True when the backend has an active or queued job."""
        ...

    async def poll(self) -> JobStatusResult: ...

    async def close(self) -> None:
        """Release resources (e.g. connection pool). No-op allowed if nothing to close."""
        ...
