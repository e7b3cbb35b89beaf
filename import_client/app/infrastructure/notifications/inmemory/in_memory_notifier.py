"""In-memory notifier: keeps every message for later inspection (tests, embedding UIs)."""
from __future__ import annotations


class InMemoryNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def notify_success(self, message: str) -> None:
        self.messages.append(("success", message))

    def notify_warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def notify_error(self, message: str) -> None:
        self.messages.append(("error", message))

    def of_kind(self, kind: str) -> list[str]:
        return [message for k, message in self.messages if k == kind]
