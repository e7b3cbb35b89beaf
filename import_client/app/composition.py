"""Client composition root: build and lifecycle-manage concrete dependencies.

Composition may: import concrete classes, call factories, store interface types,
manage high-level lifecycle. The tracker itself only ever sees ports.
"""
from __future__ import annotations

from typing import Any

from loguru import logger

from import_client.app.application.job_tracker import JobTracker
from import_client.app.config.settings import Settings
from import_client.app.core import SERVICE_NAME
from import_client.app.infrastructure.clock.asyncio_clock import AsyncioClock
from import_client.app.infrastructure.http.factory import create_transport
from import_client.app.infrastructure.notifications.factory import create_notifier
from import_client.app.ports.notifier import Notifier
from import_client.app.ports.transport import ImportTransport


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class TrackerDependencies:
    """Holds wired client dependencies and their lifecycle."""

    def __init__(self, *, settings: Settings) -> None:
        self._settings = settings
        self._transport: ImportTransport | None = None
        self._notifier: Notifier | None = None
        self._tracker: JobTracker | None = None
        self._connected = False

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def transport(self) -> ImportTransport:
        if self._transport is None:
            raise RuntimeError("transport is not initialized")
        return self._transport

    @property
    def notifier(self) -> Notifier:
        if self._notifier is None:
            raise RuntimeError("notifier is not initialized")
        return self._notifier

    @property
    def tracker(self) -> JobTracker:
        if self._tracker is None:
            raise RuntimeError("tracker is not initialized")
        return self._tracker

    async def connect(self) -> None:
        self._transport = create_transport(self._settings)
        try:
            await self._transport.connect()
        except Exception:
            await self._transport.close()
            self._transport = None
            raise

        self._notifier = create_notifier(self._settings)
        self._tracker = JobTracker(self._transport, self._notifier, AsyncioClock())
        self._connected = True
        _log("client_connected", transport_backend=self._settings.transport_backend)

    async def close(self) -> None:
        if self._tracker is not None:
            try:
                await self._tracker.close()
            except Exception as exc:
                logger.warning("tracker close failed: {}", exc)
            self._tracker = None

        if self._transport is not None:
            try:
                await self._transport.close()
            except Exception as exc:
                logger.warning("transport close failed: {}", exc)
            self._transport = None

        self._notifier = None
        self._connected = False


def create_tracker_dependencies(settings: Settings | None = None) -> TrackerDependencies:
    return TrackerDependencies(settings=settings or Settings())
