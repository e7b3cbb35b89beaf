"""Notifier that renders user-facing messages as log records."""
from __future__ import annotations

from loguru import logger

from import_client.app.core import SERVICE_NAME


class LoguruNotifier:
    """Notifier implementation for terminal use; severity maps onto log levels."""

    def _emit(self, level: str, kind: str, message: str) -> None:
        logger.bind(service_name=SERVICE_NAME, event="notification", kind=kind).log(level, "{}", message)

    def notify_success(self, message: str) -> None:
        self._emit("SUCCESS", "success", message)

    def notify_warning(self, message: str) -> None:
        self._emit("WARNING", "warning", message)

    def notify_error(self, message: str) -> None:
        self._emit("ERROR", "error", message)
