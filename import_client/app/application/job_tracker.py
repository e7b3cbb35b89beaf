"""
Import job tracker: drives the upload, then follows the backend job to a terminal state.

Lifecycle:
  IDLE -> UPLOADING -> AWAITING_PROCESSING -> POLLING -> SUCCEEDED | FAILED.
  A job detected at startup is only flagged (has_resumable_job); polling for it starts
  on an explicit resume_polling().

Concurrency:
  - Everything runs on one event loop. The tracker suspends only while awaiting the
    transport or the clock.
  - Each polling loop owns a session number. cancel(), reset() and a newer session make
    the number stale; a loop holding a stale number stops at its next check point and
    drops any status it received meanwhile.
  - resume_polling() checks and claims the session without awaiting in between, so a
    double invocation starts a single loop.
"""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from import_client.app.constants import JOB_STATUS, MESSAGES, POLL_INTERVAL_SECONDS
from import_client.app.core import SERVICE_NAME
from import_client.app.domain.errors import (
    PollTransientError,
    TrackerBusyError,
    UploadError,
    ValidationError,
)
from import_client.app.domain.models import ImportFile, JobStatusResult, ProgressState, upload_percent
from import_client.app.domain.validation import validate_file_name
from import_client.app.ports.clock import Clock
from import_client.app.ports.notifier import Notifier
from import_client.app.ports.transport import ImportTransport

StateListener = Callable[[ProgressState], None]


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def _error_text(exc: BaseException) -> str:
    return str(getattr(exc, "message", "") or exc).strip()


class JobTracker:
    """Owns the ProgressState for one import screen and is the only thing that changes it."""

    def __init__(self, transport: ImportTransport, notifier: Notifier, clock: Clock) -> None:
        self._transport = transport
        self._notifier = notifier
        self._clock = clock
        self._state = ProgressState()
        self._listeners: list[StateListener] = []

        # Bumped by submit() and reset(); an upload finishing under an older value is dropped.
        self._generation = 0
        self._uploading = False
        self._cancel_requested = False
        # A backend job exists and has not finished. Survives cancel() so the job can be resumed.
        self._known_job = False

        self._session_counter = 0
        self._active_session: int | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> ProgressState:
        return self._state

    @property
    def is_polling(self) -> bool:
        return self._active_session is not None

    @property
    def is_busy(self) -> bool:
        return self._uploading or self.is_polling

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call listener with every new state. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: ProgressState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as exc:
                logger.exception("state listener failed: {}", exc)

    def _notify(self, level: str, message: str) -> None:
        try:
            getattr(self._notifier, f"notify_{level}")(message)
        except Exception as exc:
            logger.warning("notifier failed ({}): {}", level, exc)

    async def check_for_pending_job(self) -> bool:
        """
        Ask the backend whether a job is already running. Fails open to False.

        While an upload or polling loop is active no query is made and the current
        has_resumable_job flag is returned as is.
        """
        if self.is_busy:
            return self._state.has_resumable_job
        try:
            pending = bool(await self._transport.check_pending())
        except Exception as exc:
            logger.warning("pending job check failed, assuming none: {}", exc)
            pending = False
        if self.is_busy:
            # A submission or resume started while the check was in flight; it wins.
            return self._state.has_resumable_job
        self._known_job = pending
        self._set_state(self._state.with_resumable_job(pending))
        _log("pending_job_checked", pending=pending)
        return pending

    async def submit(self, file: ImportFile | str | Path) -> None:
        """Upload a file and start following the job it creates."""
        if not isinstance(file, ImportFile):
            file = ImportFile.from_path(file)

        try:
            validate_file_name(file.name)
        except ValidationError as exc:
            _log("upload_rejected", file_name=file.name, reason="invalid_extension")
            self._notify("warning", str(exc))
            raise

        if self.is_busy:
            _log("upload_rejected", file_name=file.name, reason="busy")
            self._notify("warning", MESSAGES.TRACKER_BUSY)
            raise TrackerBusyError(MESSAGES.TRACKER_BUSY)

        self._generation += 1
        generation = self._generation
        self._uploading = True
        self._cancel_requested = False
        self._set_state(self._state.start_upload())
        _log("upload_started", file_name=file.name)

        def on_progress(loaded: int, total: int | None) -> None:
            if generation != self._generation:
                return
            percent = upload_percent(loaded, total)
            if percent is not None:
                self._set_state(self._state.with_upload_progress(percent))

        try:
            await self._transport.upload(file, on_progress)
        except Exception as exc:
            reason = _error_text(exc) or MESSAGES.UPLOAD_FAILED
            if generation == self._generation:
                self._set_state(self._state.failed(reason))
                self._notify("error", reason)
            logger.warning("upload failed for {}: {}", file.name, reason)
            raise UploadError(reason) from exc
        finally:
            self._uploading = False

        if generation != self._generation:
            _log("upload_result_discarded", file_name=file.name)
            return

        self._known_job = True
        self._set_state(self._state.upload_delivered())
        _log("upload_completed", file_name=file.name)

        if self._cancel_requested:
            _log("polling_not_started", reason="cancelled")
            return
        self._start_polling_session()

    def resume_polling(self) -> bool:
        """Start following a job detected earlier. Returns False when nothing was started."""
        if self._active_session is not None:
            _log("resume_ignored", reason="already_polling")
            return False
        if self._uploading or not (self._known_job or self._state.has_resumable_job):
            _log("resume_ignored", reason="no_resumable_job")
            return False
        self._cancel_requested = False
        self._start_polling_session()
        return True

    def cancel(self) -> None:
        """Stop polling at the next check point. Reported state is left as it is."""
        if self._uploading:
            self._cancel_requested = True
        if self._active_session is None:
            return
        _log("polling_cancelled", session=self._active_session)
        self._active_session = None

    def reset(self) -> None:
        """Forget everything and go back to IDLE."""
        self.cancel()
        self._generation += 1
        self._known_job = False
        self._set_state(ProgressState())
        _log("tracker_reset")

    def dismiss_resumable_job(self) -> None:
        """The user chose not to resume the job detected at startup."""
        if self.is_busy:
            return
        self._known_job = False
        self._set_state(self._state.with_resumable_job(False))

    async def wait(self) -> None:
        """Wait until no polling loop is running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self.cancel()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _start_polling_session(self) -> None:
        self._session_counter += 1
        session = self._session_counter
        self._active_session = session
        self._set_state(self._state.start_polling())
        _log("polling_started", session=session)

        task = asyncio.create_task(self._poll_until_terminal(session))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("polling loop crashed: {}", exc)

    def _is_current(self, session: int) -> bool:
        return self._active_session == session

    async def _query_status(self) -> JobStatusResult:
        try:
            return await self._transport.poll()
        except Exception as exc:
            raise PollTransientError(_error_text(exc) or type(exc).__name__) from exc

    async def _wait_interval(self, session: int) -> bool:
        """Sleep one interval and count it. False when the session went stale meanwhile."""
        await self._clock.sleep(POLL_INTERVAL_SECONDS)
        if not self._is_current(session):
            return False
        self._set_state(self._state.tick())
        return True

    async def _poll_until_terminal(self, session: int) -> None:
        try:
            while self._is_current(session):
                try:
                    result = await self._query_status()
                except PollTransientError as exc:
                    if not self._is_current(session):
                        break
                    logger.warning("status query failed, retrying: {}", exc)
                    if not await self._wait_interval(session):
                        break
                    continue

                if not self._is_current(session):
                    _log("poll_result_discarded", session=session, status=result.status)
                    break

                if not result.is_terminal:
                    if not await self._wait_interval(session):
                        break
                    continue

                self._active_session = None
                self._finish(result)
        finally:
            if self._active_session == session:
                self._active_session = None
            _log("polling_stopped", session=session)

    def _finish(self, result: JobStatusResult) -> None:
        self._known_job = False
        if result.status == JOB_STATUS.SUCCEEDED:
            self._set_state(self._state.succeeded())
            _log("job_succeeded", elapsed_seconds=self._state.elapsed_seconds)
            self._notify("success", MESSAGES.JOB_SUCCEEDED)
            return

        reason = (result.reason or "").strip() or MESSAGES.JOB_FAILED
        self._set_state(self._state.failed(reason))
        _log("job_failed", elapsed_seconds=self._state.elapsed_seconds, reason=reason)
        self._notify("error", reason)
