from __future__ import annotations

import csv
import io
import logging
from typing import Iterable

from relay.adapters.base import AdapterError, ChatAdapter
from relay.core.registry import SessionRegistry
from relay.core.session import SessionStats

logger = logging.getLogger(__name__)

STATS_FILENAME = "stats.csv"
STATS_HEADER = ("ip", "num_messages", "total_data")


def format_stats(rows: Iterable[SessionStats]) -> bytes:
    """Render session stats as CSV: header plus one row per session."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(STATS_HEADER)
    for row in rows:
        writer.writerow((row.ip, row.num_messages, row.total_data))
    return buffer.getvalue().encode("utf-8")


class StatsService:
    def __init__(self, registry: SessionRegistry, adapter: ChatAdapter) -> None:
        self.registry = registry
        self.adapter = adapter

    async def send(self, channel_id: int) -> bool:
        report = format_stats(await self.registry.collect_stats())
        try:
            await self.adapter.send_file(channel_id, STATS_FILENAME, report)
        except AdapterError as exc:
            logger.error("Failed to send stats to %s: %s", channel_id, exc)
            return False
        return True
