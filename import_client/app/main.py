import argparse
import asyncio
import signal
import sys
from typing import Any, Sequence

from loguru import logger

from import_client.app.composition import create_tracker_dependencies
from import_client.app.config.settings import Settings
from import_client.app.constants import MESSAGES, Phase
from import_client.app.core import SERVICE_NAME
from import_client.app.domain.errors import ImportClientError, JobFailed
from import_client.app.domain.models import ProgressState

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NOTHING_PENDING = 2
EXIT_INTERRUPTED = 130


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class ProgressRenderer:
    """Subscriber that turns state changes into log lines."""

    def __init__(self) -> None:
        self._last: ProgressState | None = None

    def __call__(self, state: ProgressState) -> None:
        last, self._last = self._last, state
        if last is None or last.phase is not state.phase:
            _log("phase_changed", phase=state.phase.value)
        if state.phase is Phase.UPLOADING and (last is None or last.upload_percent != state.upload_percent):
            _log("upload_progress", percent=state.upload_percent)
        if state.phase is Phase.POLLING and last is not None and last.elapsed_seconds != state.elapsed_seconds:
            logger.bind(service_name=SERVICE_NAME, event="processing", elapsed_seconds=state.elapsed_seconds).debug("")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="import-client", description="Upload an import file and follow its processing.")
    sub = parser.add_subparsers(dest="command", required=True)
    upload = sub.add_parser("upload", help="upload a .zip or .json file and wait for processing")
    upload.add_argument("file")
    sub.add_parser("resume", help="follow an import that is already running on the backend")
    sub.add_parser("status", help="report whether an import is running on the backend")
    return parser


def _exit_code(state: ProgressState) -> int:
    if state.phase is Phase.SUCCEEDED:
        return EXIT_OK
    try:
        state.raise_for_failure()
    except JobFailed as exc:
        _log("import_failed", reason=exc.reason)
        return EXIT_FAILED
    return EXIT_INTERRUPTED


async def run_client(command: str, file: str | None = None, *, settings: Settings | None = None) -> int:
    deps = create_tracker_dependencies(settings)
    await deps.connect()
    tracker = deps.tracker
    unsubscribe = tracker.subscribe(ProgressRenderer())

    interrupted = False

    def request_shutdown() -> None:
        nonlocal interrupted
        if not interrupted:
            interrupted = True
            _log("shutdown_signal")
            tracker.cancel()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_shutdown)
        except (NotImplementedError, RuntimeError):
            pass

    try:
        pending = await tracker.check_for_pending_job()

        if command == "status":
            _log("pending_job", pending=pending)
            return EXIT_OK if pending else EXIT_NOTHING_PENDING

        if command == "resume":
            if not tracker.resume_polling():
                _log("nothing_to_resume")
                return EXIT_NOTHING_PENDING
        else:
            if pending:
                deps.notifier.notify_warning(MESSAGES.JOB_ALREADY_RUNNING)
                return EXIT_FAILED
            try:
                await tracker.submit(file or "")
            except ImportClientError:
                return EXIT_FAILED

        await tracker.wait()
        return _exit_code(tracker.state)
    finally:
        unsubscribe()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass
        await deps.close()


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    try:
        code = asyncio.run(run_client(args.command, getattr(args, "file", None)))
    except KeyboardInterrupt:
        _log("client_interrupted")
        code = EXIT_INTERRUPTED
    except Exception as e:
        logger.exception("client failed: {}", e)
        raise
    sys.exit(code)


if __name__ == "__main__":
    main()
