"""Transport factory: builds ImportTransport from settings. Only place that imports concrete transports."""
from __future__ import annotations

import httpx

from import_client.app.config.settings import Settings
from import_client.app.infrastructure.http.httpx_transport import HttpxImportTransport
from import_client.app.infrastructure.http.inmemory.in_memory_transport import InMemoryImportTransport
from import_client.app.ports.transport import ImportTransport


def _default_headers(settings: Settings) -> dict[str, str]:
    headers = {"Accept": "application/json"}
    if settings.api_token:
        headers["Authorization"] = f"Bearer {settings.api_token}"
    return headers


def create_transport(settings: Settings) -> ImportTransport:
    backend = settings.transport_backend.strip().lower()

    if backend == "httpx":
        async_client = httpx.AsyncClient(
            base_url=settings.api_base_url,
            headers=_default_headers(settings),
        )
        return HttpxImportTransport(
            async_client,
            upload_path=settings.upload_path,
            status_path=settings.status_path,
            pending_path=settings.pending_path,
            connect_timeout_seconds=settings.connect_timeout_seconds,
            upload_timeout_seconds=settings.upload_timeout_seconds,
            status_timeout_seconds=settings.status_timeout_seconds,
            initial_backoff_seconds=settings.initial_backoff_seconds,
            max_backoff_seconds=settings.max_backoff_seconds,
            backoff_multiplier=settings.backoff_multiplier,
            max_connection_attempts=settings.max_connection_attempts,
        )

    if backend == "inmemory":
        return InMemoryImportTransport()

    raise ValueError(f"Unsupported transport backend: {backend}")
