from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Optional

from relay.models import ContentUnit

if TYPE_CHECKING:
    from relay.services.inbound_service import InboundMessage

MessageHandler = Callable[["InboundMessage"], Awaitable[None]]


class AdapterError(Exception):
    """Raised by adapters when the chat platform rejects or fails a call."""


class ChatAdapter(ABC):
    """Capabilities the relay needs from a chat platform.

    Concrete adapters own authentication and the platform connection. ``run``
    streams inbound messages into ``on_message`` until cancelled.
    """

    @abstractmethod
    async def run(self, on_message: MessageHandler) -> None: ...

    @abstractmethod
    async def send_text(self, channel_id: int, body: str) -> None: ...

    @abstractmethod
    async def send_unit(self, channel_id: int, unit: ContentUnit) -> None: ...

    @abstractmethod
    async def send_file(self, channel_id: int, filename: str, data: bytes, content: str = "") -> None: ...

    @abstractmethod
    async def set_presence(self, text: str, url: Optional[str] = None) -> None:
        """Set the account status. A ``url`` marks it as a streaming status."""
