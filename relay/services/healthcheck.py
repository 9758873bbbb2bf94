from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .inbound_service import InboundMessage


class HealthCheckLoopback:
    """Detects status frames the relay account posted to the health-check channel.

    The external probe connects as a device bound to the health-check
    channel and posts an embed whose title is a marker. When the platform
    echoes that embed back to us, the marker is forwarded to the probe as a
    command, proving the whole chat round trip works.
    """

    def __init__(self, channel_id: int) -> None:
        self.channel_id = channel_id

    def extract_marker(self, message: "InboundMessage") -> Optional[str]:
        if not message.is_own or message.channel_id != self.channel_id:
            return None
        if len(message.embed_titles) != 1:
            return None
        # None when the single embed has no title
        return message.embed_titles[0]
