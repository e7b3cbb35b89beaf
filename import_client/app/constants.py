"""Client-level constants shared across modules."""
from __future__ import annotations

from enum import Enum


class Phase(str, Enum):
    """Lifecycle stage of the client-side tracker. Exactly one at any time."""

    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    AWAITING_PROCESSING = "AWAITING_PROCESSING"
    POLLING = "POLLING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (Phase.SUCCEEDED, Phase.FAILED)


class JOB_STATUS:
    """Status codes reported by the backend's progress endpoint."""

    IN_PROGRESS = 0
    SUCCEEDED = 1
    FAILED = 2


ALLOWED_EXTENSIONS = frozenset({"zip", "json"})

CONTENT_TYPES = {
    "zip": "application/zip",
    "json": "application/json",
}

# Fixed pacing between status queries.
POLL_INTERVAL_SECONDS = 1.0


class MESSAGES:
    INVALID_FILE_TYPE = "Only .zip and .json files can be imported."
    TRACKER_BUSY = "An import is already in progress. Wait for it to finish before starting another."
    UPLOAD_FAILED = "The file could not be uploaded. Please try again."
    JOB_ALREADY_RUNNING = "An import is already running. Use `import-client resume` to follow it."
    JOB_SUCCEEDED = "Import completed successfully."
    JOB_FAILED = "Import failed. Please check the file and try again."
