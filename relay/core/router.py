from __future__ import annotations

import logging
from typing import List, assert_never

from relay.adapters.base import AdapterError, ChatAdapter
from relay.models import ContentUnit
from relay.services.formatter import MAX_ATTACHMENT_SIZE, build_units, file_units
from wire import DeliveryError, EmbedResponse, FileResponse, PresenceResponse, Response, SettingsResponse

from .session import Session

logger = logging.getLogger(__name__)


class ResponseDispatcher:
    """Delivers decoded device responses to the chat platform."""

    def __init__(
        self,
        adapter: ChatAdapter,
        cloud_mode: bool = False,
        max_attachment_size: int = MAX_ATTACHMENT_SIZE,
    ) -> None:
        self.adapter = adapter
        self.cloud_mode = cloud_mode
        self.max_attachment_size = max_attachment_size

    async def dispatch(self, session: Session, response: Response, size: int) -> None:
        """Handle one response frame of ``size`` bytes from ``session``.

        Raises ``DeliveryError`` when the platform rejects a send.
        """
        await session.record_frame(size)
        match response:
            case FileResponse(filename=filename, data=data):
                await self._deliver(session, file_units(filename, data, self.max_attachment_size))
            case EmbedResponse():
                await self._deliver(session, build_units(response, self.max_attachment_size))
            case PresenceResponse(presence=presence):
                await self._set_presence(presence)
            case SettingsResponse():
                await session.apply_settings(response)
                logger.info("Session %s bound to channel %s", session.peername, response.channel_id)
            case _:
                assert_never(response)

    async def _deliver(self, session: Session, units: List[ContentUnit]) -> None:
        channel_id = await session.channel()
        for unit in units:
            try:
                if unit.text_only():
                    await self.adapter.send_text(channel_id, unit.text)
                else:
                    await self.adapter.send_unit(channel_id, unit)
            except AdapterError as exc:
                logger.error("Delivery to channel %s failed: %s", channel_id, exc)
                raise DeliveryError(str(exc)) from exc

    async def _set_presence(self, presence: str) -> None:
        # Cloud relays own the status themselves; devices only set it when self-hosted.
        if self.cloud_mode:
            return
        try:
            await self.adapter.set_presence(presence)
        except AdapterError as exc:
            logger.error("Presence update failed: %s", exc)
