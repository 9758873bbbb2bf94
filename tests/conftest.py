from __future__ import annotations

import asyncio
from typing import List, Optional, Tuple

import pytest

from relay.adapters import AdapterError, ChatAdapter
from relay.core import SessionRegistry
from relay.models import ContentUnit
from wire import decode_frame, decode_request


class FakeWriter:
    """Collects written bytes in place of an asyncio.StreamWriter."""

    def __init__(self, peername=("10.0.0.1", 5000), fail: bool = False) -> None:
        self.buffer = bytearray()
        self.peername = peername
        self.fail = fail
        self.closed = False

    def write(self, data: bytes) -> None:
        if self.fail:
            raise ConnectionResetError("peer went away")
        self.buffer.extend(data)

    async def drain(self) -> None:
        await asyncio.sleep(0)

    def get_extra_info(self, name: str, default=None):
        return self.peername if name == "peername" else default

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        return None

    def is_closing(self) -> bool:
        return self.closed

    def requests(self):
        data = bytes(self.buffer)
        result = []
        while data:
            payload, data = decode_frame(data)
            result.append(decode_request(payload))
        return result


class FakeAdapter(ChatAdapter):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.texts: List[Tuple[int, str]] = []
        self.units: List[Tuple[int, ContentUnit]] = []
        self.files: List[Tuple[int, str, bytes, str]] = []
        self.presences: List[Tuple[str, Optional[str]]] = []

    async def run(self, on_message) -> None:
        await asyncio.Event().wait()

    async def send_text(self, channel_id: int, body: str) -> None:
        self._check()
        self.texts.append((channel_id, body))

    async def send_unit(self, channel_id: int, unit: ContentUnit) -> None:
        self._check()
        self.units.append((channel_id, unit))

    async def send_file(self, channel_id: int, filename: str, data: bytes, content: str = "") -> None:
        self._check()
        self.files.append((channel_id, filename, data, content))

    async def set_presence(self, text: str, url: Optional[str] = None) -> None:
        self._check()
        self.presences.append((text, url))

    def _check(self) -> None:
        if self.fail:
            raise AdapterError("platform unavailable")


@pytest.fixture
def adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


def make_adapter(config) -> FakeAdapter:
    return FakeAdapter()
