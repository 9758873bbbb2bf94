from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Optional

from relay.adapters.base import AdapterError, ChatAdapter

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = 60.0
DEFAULT_PRESENCE_URL = "https://octoprint.org"


class PresenceResult(Enum):
    UPDATED = "updated"
    SKIPPED = "skipped"


class PresenceThrottle:
    """Rate-limits the global "connected instances" status.

    The account status is one shared resource, so every session funnels its
    connect/disconnect through the same guard. The lock is held across the
    update so callers arriving meanwhile see the new timestamp and skip.
    """

    def __init__(
        self,
        adapter: ChatAdapter,
        cooldown: float = DEFAULT_COOLDOWN,
        url: Optional[str] = DEFAULT_PRESENCE_URL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.adapter = adapter
        self.cooldown = cooldown
        self.url = url
        self._clock = clock
        self._last_update: Optional[float] = None
        self._lock = asyncio.Lock()

    async def maybe_update(self, session_count: int) -> PresenceResult:
        async with self._lock:
            now = self._clock()
            if self._last_update is not None and now - self._last_update < self.cooldown:
                return PresenceResult.SKIPPED
            try:
                await self.adapter.set_presence(f"to {session_count} instances", url=self.url)
            except AdapterError as exc:
                logger.error("Presence update failed: %s", exc)
            self._last_update = now
            logger.debug("Presence updated for %s instances", session_count)
            return PresenceResult.UPDATED
