from __future__ import annotations

import asyncio
import logging
from typing import List

from wire import (
    UNSET_CHANNEL,
    FramingError,
    Request,
    SessionClosedError,
    command_request,
    encode_request,
    file_request,
)

from .session import Session, SessionStats

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Tracks live device sessions and routes requests to them by channel."""

    def __init__(self) -> None:
        self._sessions: List[Session] = []
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    async def register(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> Session:
        session = Session(reader=reader, writer=writer, peername=_peername(writer))
        async with self._lock:
            self._sessions.insert(0, session)
        return session

    async def deregister(self, session: Session) -> bool:
        """Remove ``session`` by identity. Returns False if it was already gone."""
        async with self._lock:
            before = len(self._sessions)
            self._sessions = [s for s in self._sessions if s is not session]
            removed = len(self._sessions) != before
        await session.mark_closed()
        return removed

    async def snapshot(self) -> List[Session]:
        async with self._lock:
            return list(self._sessions)

    async def count(self) -> int:
        async with self._lock:
            return len(self._sessions)

    async def route(self, channel_id: int, payload: bytes) -> int:
        """Write ``payload`` to every session bound to ``channel_id``.

        Failures are logged and skipped. Returns the number of sessions reached.
        """
        if channel_id == UNSET_CHANNEL:
            return 0
        found = 0
        for session in await self.snapshot():
            if await session.channel() != channel_id:
                continue
            try:
                await session.send(payload)
            except SessionClosedError:
                logger.debug("Skipping closed session %s", session.peername)
                continue
            except FramingError as exc:
                logger.error("Failed to send message to %s: %s", session.peername, exc)
                continue
            found += 1
        logger.info("Sent message to %s clients", found)
        return found

    async def send_request(self, channel_id: int, request: Request) -> int:
        return await self.route(channel_id, encode_request(request))

    async def send_command(self, channel_id: int, user: int, command: str) -> int:
        return await self.send_request(channel_id, command_request(user, command))

    async def send_file(self, channel_id: int, user: int, filename: str, data: bytes) -> int:
        return await self.send_request(channel_id, file_request(user, filename, data))

    async def collect_stats(self) -> List[SessionStats]:
        return [await session.stats() for session in await self.snapshot()]


def _peername(writer: asyncio.StreamWriter) -> str:
    peer = writer.get_extra_info("peername")
    if isinstance(peer, tuple) and len(peer) >= 2:
        return f"{peer[0]}:{peer[1]}"
    return str(peer)
