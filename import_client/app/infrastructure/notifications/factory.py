"""Notifier factory: selects implementation from config."""
from __future__ import annotations

from import_client.app.config.settings import Settings
from import_client.app.infrastructure.notifications.inmemory.in_memory_notifier import InMemoryNotifier
from import_client.app.infrastructure.notifications.loguru_notifier import LoguruNotifier
from import_client.app.ports.notifier import Notifier


def create_notifier(settings: Settings) -> Notifier:
    backend = settings.notifier_backend.strip().lower()

    if backend == "loguru":
        return LoguruNotifier()

    if backend == "inmemory":
        return InMemoryNotifier()

    raise ValueError(f"Unsupported notifier backend: {backend}")
