"""Port: user-facing notification sink. Fire-and-forget."""
from __future__ import annotations

from typing import Protocol


class Notifier(Protocol):
    def notify_success(self, message: str) -> None: ...

    def notify_warning(self, message: str) -> None: ...

    def notify_error(self, message: str) -> None: ...
