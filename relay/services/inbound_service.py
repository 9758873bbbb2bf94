from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import List, Optional

from relay.core.registry import SessionRegistry

from .healthcheck import HealthCheckLoopback
from .stats_service import StatsService

logger = logging.getLogger(__name__)

STATS_COMMAND = "/stats"


@dataclass
class InboundAttachment:
    filename: str
    fetch: Callable[[], Awaitable[bytes]]


@dataclass
class InboundMessage:
    """A chat message as reported by the platform adapter."""

    channel_id: int
    author_id: int
    content: str = ""
    is_own: bool = False
    is_private: bool = False
    embed_titles: List[Optional[str]] = field(default_factory=list)
    attachments: List[InboundAttachment] = field(default_factory=list)


class InboundService:
    """Routes chat messages to the devices bound to their channel."""

    def __init__(
        self,
        registry: SessionRegistry,
        stats: StatsService,
        loopback: HealthCheckLoopback,
    ) -> None:
        self.registry = registry
        self.stats = stats
        self.loopback = loopback

    async def handle_message(self, message: InboundMessage) -> None:
        if message.channel_id == self.loopback.channel_id and message.content == STATS_COMMAND:
            await self.stats.send(message.channel_id)

        if message.is_own:
            marker = self.loopback.extract_marker(message)
            if marker is not None:
                await self.registry.send_command(message.channel_id, message.author_id, marker)
            return

        if message.is_private:
            return

        await self.registry.send_command(message.channel_id, message.author_id, message.content)
        for attachment in message.attachments:
            try:
                data = await attachment.fetch()
            except Exception as exc:
                logger.error("Failed to download attachment %s: %s", attachment.filename, exc)
                continue
            await self.registry.send_file(message.channel_id, message.author_id, attachment.filename, data)
