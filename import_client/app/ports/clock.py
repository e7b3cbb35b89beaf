"""Port: delayed execution used to pace polling."""
from __future__ import annotations

from typing import Protocol


class Clock(Protocol):
    async def sleep(self, seconds: float) -> None: ...
