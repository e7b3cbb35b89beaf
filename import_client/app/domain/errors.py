"""Error taxonomy surfaced by the job tracker."""
from __future__ import annotations


class ImportClientError(Exception):
    """Base for import client failures."""


class ValidationError(ImportClientError):
    """Raised before any network call when the selected file is not importable."""

    def __init__(self, message: str, *, file_name: str = "") -> None:
        super().__init__(message)
        self.file_name = file_name


class TrackerBusyError(ImportClientError):
    """Raised when a submission arrives while a transfer or polling loop is active."""


class UploadError(ImportClientError):
    """Raised when the transport fails to deliver the file. No job exists on the backend."""


class PollTransientError(ImportClientError):
    """A single failed status query; recovered by retrying after the fixed interval."""


class JobFailed(ImportClientError):
    """The backend reported that processing of the uploaded file failed."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
