from __future__ import annotations

import asyncio
import importlib
import logging
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional

from relay.adapters import ChatAdapter
from relay.config import RELAY_CONFIG, load_relay_config
from relay.core import RelayServer, ResponseDispatcher, SessionRegistry
from relay.services import HealthCheckLoopback, InboundService, PresenceThrottle, StatsService
from wire import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class Relay:
    registry: SessionRegistry
    server: RelayServer
    inbound: InboundService
    presence: Optional[PresenceThrottle] = None


def build_relay(adapter: ChatAdapter, config: Dict[str, Any]) -> Relay:
    registry = SessionRegistry()
    presence = None
    # Only the shared cloud relay advertises its instance count.
    if config["cloud_server"]:
        presence = PresenceThrottle(adapter, cooldown=config["presence_cooldown"], url=config["presence_url"])
    dispatcher = ResponseDispatcher(
        adapter,
        cloud_mode=config["cloud_server"],
        max_attachment_size=config["max_attachment_size"],
    )
    server = RelayServer(
        config["host"],
        config["port"],
        registry,
        dispatcher,
        presence=presence,
        max_frame_size=config["max_frame_size"] or None,
        read_timeout=config["read_timeout"] or None,
    )
    inbound = InboundService(
        registry,
        StatsService(registry, adapter),
        HealthCheckLoopback(config["health_check_channel_id"]),
    )
    return Relay(registry=registry, server=server, inbound=inbound, presence=presence)


async def run_relay(adapter: ChatAdapter, config: Dict[str, Any]) -> None:
    relay = build_relay(adapter, config)
    await relay.server.start()
    try:
        await asyncio.gather(relay.server.serve_forever(), adapter.run(relay.inbound.handle_message))
    finally:
        await relay.server.stop()


def load_adapter(path: str, config: Dict[str, Any]) -> ChatAdapter:
    """Instantiate the adapter factory named by ``module:callable``."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ConfigError(f"RELAY_ADAPTER must look like 'module:factory', got {path!r}")
    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as exc:
        raise ConfigError(f"Cannot load adapter {path!r}: {exc}") from exc
    return factory(config)


def main() -> int:
    try:
        load_relay_config()
    except ConfigError as exc:
        logging.basicConfig(level=logging.ERROR)
        logger.error("%s", exc)
        return 1
    logging.basicConfig(
        level=RELAY_CONFIG["log_level"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not RELAY_CONFIG["adapter"]:
        logger.error("RELAY_ADAPTER is not set")
        return 1
    try:
        adapter = load_adapter(RELAY_CONFIG["adapter"], RELAY_CONFIG)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1
    try:
        asyncio.run(run_relay(adapter, RELAY_CONFIG))
    except KeyboardInterrupt:
        logger.info("Relay stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
