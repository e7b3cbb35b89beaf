"""Clock backed by the running event loop."""
from __future__ import annotations

import asyncio


class AsyncioClock:
    """Implements import_client.app.ports.clock.Clock with asyncio.sleep."""

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
