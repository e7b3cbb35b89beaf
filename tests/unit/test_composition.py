from __future__ import annotations

import pytest

from import_client.app.application.job_tracker import JobTracker
from import_client.app.composition import create_tracker_dependencies
from import_client.app.config.settings import Settings
from import_client.app.infrastructure.http.factory import create_transport
from import_client.app.infrastructure.http.httpx_transport import HttpxImportTransport
from import_client.app.infrastructure.http.inmemory.in_memory_transport import InMemoryImportTransport
from import_client.app.infrastructure.notifications.factory import create_notifier
from import_client.app.infrastructure.notifications.inmemory.in_memory_notifier import InMemoryNotifier
from import_client.app.infrastructure.notifications.loguru_notifier import LoguruNotifier


def _settings(**overrides) -> Settings:
    values = {
        "IMPORT_API_BASE_URL": "https://imports.example.test",
        "TRANSPORT_BACKEND": "inmemory",
        "NOTIFIER_BACKEND": "inmemory",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_settings_defaults():
    settings = _settings()

    assert settings.upload_path == "/import"
    assert settings.status_path == "/import/progress"
    assert settings.pending_path == "/import/progress"
    assert settings.api_token == ""


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("IMPORT_API_BASE_URL", "https://env.example.test")
    monkeypatch.setenv("IMPORT_STATUS_PATH", "/jobs/current")
    monkeypatch.setenv("UPLOAD_TIMEOUT_SECONDS", "42")

    settings = Settings(_env_file=None)

    assert settings.api_base_url == "https://env.example.test"
    assert settings.status_path == "/jobs/current"
    assert settings.upload_timeout_seconds == 42.0


@pytest.mark.asyncio
async def test_httpx_backend_attaches_bearer_token():
    transport = create_transport(_settings(TRANSPORT_BACKEND="httpx", IMPORT_API_TOKEN="s3cret"))
    try:
        assert isinstance(transport, HttpxImportTransport)
        assert transport._client.headers["Authorization"] == "Bearer s3cret"
        assert str(transport._client.base_url).startswith("https://imports.example.test")
    finally:
        await transport.close()


def test_factories_select_backends():
    assert isinstance(create_transport(_settings()), InMemoryImportTransport)
    assert isinstance(create_notifier(_settings()), InMemoryNotifier)
    assert isinstance(create_notifier(_settings(NOTIFIER_BACKEND="loguru")), LoguruNotifier)


@pytest.mark.parametrize("key", ["TRANSPORT_BACKEND", "NOTIFIER_BACKEND"])
def test_unsupported_backend_raises(key):
    settings = _settings(**{key: "carrier-pigeon"})
    with pytest.raises(ValueError, match="Unsupported"):
        create_transport(settings) if key == "TRANSPORT_BACKEND" else create_notifier(settings)


@pytest.mark.asyncio
async def test_dependencies_lifecycle():
    deps = create_tracker_dependencies(_settings())
    with pytest.raises(RuntimeError, match="tracker is not initialized"):
        _ = deps.tracker

    await deps.connect()
    assert isinstance(deps.tracker, JobTracker)
    assert isinstance(deps.notifier, InMemoryNotifier)

    await deps.close()
    with pytest.raises(RuntimeError):
        _ = deps.transport
