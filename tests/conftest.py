from __future__ import annotations

import asyncio
from typing import Callable

import pytest

from import_client.app.application.job_tracker import JobTracker
from import_client.app.domain.models import ImportFile, JobStatusResult
from import_client.app.infrastructure.notifications.inmemory.in_memory_notifier import InMemoryNotifier
from import_client.app.ports.transport import ProgressCallback, TransportError


def in_progress() -> JobStatusResult:
    return JobStatusResult(status=0)


def succeeded() -> JobStatusResult:
    return JobStatusResult(status=1)


def failed(reason: str | None = None) -> JobStatusResult:
    return JobStatusResult(status=2, reason=reason)


class FakeClock:
    """Implements Clock with simulated time; every sleep still yields to the event loop."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []
        self.on_sleep: Callable[[float], None] | None = None

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        if self.on_sleep is not None:
            self.on_sleep(self.now)
        await asyncio.sleep(0)


class FakeTransport:
    """Implements ImportTransport for tests; records every call.

    poll_results are consumed in order; the last one repeats once the list runs out.
    Exceptions in the list are raised instead of returned.
    """

    def __init__(
        self,
        *,
        poll_results: list[JobStatusResult | Exception] | None = None,
        pending: bool | Exception = False,
        upload_progress: list[tuple[int, int | None]] | None = None,
        upload_error: Exception | None = None,
    ) -> None:
        self.poll_results = list(poll_results or [])
        self.pending = pending
        self.upload_progress = list(upload_progress or [])
        self.upload_error = upload_error
        self.uploaded: list[str] = []
        self.check_calls = 0
        self.poll_calls = 0
        self.on_poll: Callable[[int], None] | None = None
        self.closed = False

    @property
    def network_calls(self) -> int:
        return len(self.uploaded) + self.check_calls + self.poll_calls

    async def connect(self) -> None:
        return

    async def upload(self, file: ImportFile, on_progress: ProgressCallback) -> None:
        self.uploaded.append(file.name)
        for loaded, total in self.upload_progress:
            on_progress(loaded, total)
        if self.upload_error is not None:
            raise self.upload_error

    async def check_pending(self) -> bool:
        self.check_calls += 1
        if isinstance(self.pending, Exception):
            raise self.pending
        return self.pending

    async def poll(self) -> JobStatusResult:
        self.poll_calls += 1
        if self.on_poll is not None:
            self.on_poll(self.poll_calls)
        if not self.poll_results:
            raise TransportError("no scripted status")
        item = self.poll_results.pop(0) if len(self.poll_results) > 1 else self.poll_results[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


class StateRecorder:
    """Subscriber that keeps every published state."""

    def __init__(self) -> None:
        self.states = []

    def __call__(self, state) -> None:
        self.states.append(state)

    @property
    def phases(self):
        return [s.phase for s in self.states]


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def notifier() -> InMemoryNotifier:
    return InMemoryNotifier()


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def tracker(transport: FakeTransport, notifier: InMemoryNotifier, clock: FakeClock) -> JobTracker:
    return JobTracker(transport, notifier, clock)


@pytest.fixture()
def recorder(tracker: JobTracker) -> StateRecorder:
    rec = StateRecorder()
    tracker.subscribe(rec)
    return rec
