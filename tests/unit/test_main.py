"""Command-line flows against the in-memory backend."""
from __future__ import annotations

import asyncio

import pytest

from import_client.app import main as cli
from import_client.app.config.settings import Settings
from import_client.app.constants import Phase
from import_client.app.domain.models import ProgressState
from import_client.app.infrastructure.clock.asyncio_clock import AsyncioClock


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        IMPORT_API_BASE_URL="https://imports.example.test",
        TRANSPORT_BACKEND="inmemory",
        NOTIFIER_BACKEND="inmemory",
    )


@pytest.fixture()
def instant_clock(monkeypatch):
    async def no_wait(self, seconds: float) -> None:
        await asyncio.sleep(0)

    monkeypatch.setattr(AsyncioClock, "sleep", no_wait)


@pytest.mark.asyncio
async def test_status_reports_nothing_pending(settings):
    assert await cli.run_client("status", settings=settings) == cli.EXIT_NOTHING_PENDING


@pytest.mark.asyncio
async def test_resume_without_job_exits_with_nothing_pending(settings):
    assert await cli.run_client("resume", settings=settings) == cli.EXIT_NOTHING_PENDING


@pytest.mark.asyncio
async def test_upload_rejects_unsupported_file(settings, tmp_path):
    path = tmp_path / "report.pdf"
    path.write_bytes(b"%PDF")

    assert await cli.run_client("upload", str(path), settings=settings) == cli.EXIT_FAILED


@pytest.mark.asyncio
async def test_upload_follows_job_to_success(settings, tmp_path, instant_clock):
    path = tmp_path / "rows.json"
    path.write_text('[{"id": 1}]')

    assert await cli.run_client("upload", str(path), settings=settings) == cli.EXIT_OK


def test_exit_codes_follow_terminal_phase():
    assert cli._exit_code(ProgressState(phase=Phase.SUCCEEDED)) == cli.EXIT_OK
    assert cli._exit_code(ProgressState(phase=Phase.FAILED, failure_reason="bad")) == cli.EXIT_FAILED
    assert cli._exit_code(ProgressState(phase=Phase.POLLING)) == cli.EXIT_INTERRUPTED


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        cli._build_parser().parse_args([])
    args = cli._build_parser().parse_args(["upload", "data.zip"])
    assert args.command == "upload"
    assert args.file == "data.zip"
