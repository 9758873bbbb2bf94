from .healthcheck import HealthCheckLoopback
from .inbound_service import InboundAttachment, InboundMessage, InboundService
from .presence_service import PresenceResult, PresenceThrottle
from .stats_service import StatsService, format_stats

__all__ = [
    "HealthCheckLoopback",
    "InboundAttachment",
    "InboundMessage",
    "InboundService",
    "PresenceResult",
    "PresenceThrottle",
    "StatsService",
    "format_stats",
]
