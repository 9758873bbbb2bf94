from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import NamedTuple

from wire import UNSET_CHANNEL, SessionClosedError, SettingsResponse, write_frame


class SessionStats(NamedTuple):
    ip: str
    num_messages: int
    total_data: int


@dataclass(eq=False)
class Session:
    """Relay-side state for one connected device.

    Settings and counters are only written by the session's own connection
    loop; ``_state_lock`` keeps readers (router, stats) from seeing a
    half-applied settings update. ``_write_lock`` keeps frames from
    concurrent broadcasts from interleaving on the stream.
    """

    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter
    peername: str
    channel_id: int = UNSET_CHANNEL
    command_prefix: str = ""
    cycle_time: int = 0
    presence_enabled: bool = False
    num_messages: int = 0
    total_data: int = 0
    connected_at: float = field(default_factory=time.time)
    closed: bool = False
    _state_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    _write_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    async def apply_settings(self, settings: SettingsResponse) -> None:
        async with self._state_lock:
            self.channel_id = settings.channel_id
            self.command_prefix = settings.command_prefix
            self.cycle_time = settings.cycle_time
            self.presence_enabled = settings.presence_enabled

    async def record_frame(self, size: int) -> None:
        async with self._state_lock:
            self.num_messages += 1
            self.total_data += size

    async def channel(self) -> int:
        async with self._state_lock:
            return self.channel_id

    async def stats(self) -> SessionStats:
        async with self._state_lock:
            return SessionStats(self.peername, self.num_messages, self.total_data)

    async def send(self, payload: bytes) -> None:
        async with self._write_lock:
            if self.closed:
                raise SessionClosedError(f"Session {self.peername} is closed")
            await write_frame(self.writer, payload)

    async def mark_closed(self) -> None:
        async with self._write_lock:
            self.closed = True
