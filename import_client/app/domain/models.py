"""Domain models."""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import BinaryIO

from import_client.app.constants import CONTENT_TYPES, JOB_STATUS, Phase
from import_client.app.domain.errors import JobFailed
from import_client.app.domain.validation import file_extension


@dataclass(frozen=True)
class ImportFile:
    """A file selected for import."""

    name: str
    path: Path

    @staticmethod
    def from_path(path: str | Path) -> "ImportFile":
        p = Path(path)
        return ImportFile(name=p.name, path=p)

    @property
    def extension(self) -> str:
        return file_extension(self.name)

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES.get(self.extension, "application/octet-stream")

    def open(self) -> BinaryIO:
        return self.path.open("rb")


@dataclass(frozen=True)
class JobStatusResult:
    """One answer from the status endpoint while a job is being tracked."""

    status: int
    reason: str | None = None

    def __post_init__(self) -> None:
        if self.status not in (JOB_STATUS.IN_PROGRESS, JOB_STATUS.SUCCEEDED, JOB_STATUS.FAILED):
            raise ValueError(f"unknown job status: {self.status}")

    @property
    def is_terminal(self) -> bool:
        return self.status != JOB_STATUS.IN_PROGRESS


def upload_percent(loaded: int, total: int | None) -> int | None:
    """Whole percent of bytes sent, rounded half up and clamped; None when total is unknown."""
    if not total or total <= 0:
        return None
    percent = int(math.floor(loaded / total * 100 + 0.5))
    return max(0, min(100, percent))


@dataclass(frozen=True)
class ProgressState:
    """
    What the tracker reports to presentation.

    Values are immutable; every transition returns a new state so readers never observe
    fields from two different transitions mixed together.
    """

    phase: Phase = Phase.IDLE
    upload_percent: int = 0
    elapsed_seconds: int = 0
    failure_reason: str | None = None
    has_resumable_job: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal

    def start_upload(self) -> "ProgressState":
        return replace(
            self,
            phase=Phase.UPLOADING,
            upload_percent=0,
            elapsed_seconds=0,
            failure_reason=None,
        )

    def with_upload_progress(self, percent: int) -> "ProgressState":
        """Apply a progress report. Ignored outside the upload phase and when it would go backwards."""
        if self.phase is not Phase.UPLOADING or percent <= self.upload_percent:
            return self
        if percent >= 100:
            return replace(self, phase=Phase.AWAITING_PROCESSING, upload_percent=100)
        return replace(self, upload_percent=percent)

    def upload_delivered(self) -> "ProgressState":
        return replace(
            self,
            phase=Phase.AWAITING_PROCESSING,
            upload_percent=100,
            has_resumable_job=True,
        )

    def start_polling(self) -> "ProgressState":
        return replace(
            self,
            phase=Phase.POLLING,
            elapsed_seconds=0,
            failure_reason=None,
            has_resumable_job=False,
        )

    def tick(self) -> "ProgressState":
        return replace(self, elapsed_seconds=self.elapsed_seconds + 1)

    def succeeded(self) -> "ProgressState":
        return replace(self, phase=Phase.SUCCEEDED, failure_reason=None, has_resumable_job=False)

    def failed(self, reason: str) -> "ProgressState":
        return replace(self, phase=Phase.FAILED, failure_reason=reason, has_resumable_job=False)

    def with_resumable_job(self, has_resumable_job: bool) -> "ProgressState":
        if has_resumable_job == self.has_resumable_job:
            return self
        return replace(self, has_resumable_job=has_resumable_job)

    def raise_for_failure(self) -> None:
        if self.phase is Phase.FAILED:
            raise JobFailed(self.failure_reason or "")
