from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Optional

from wire import ConnectionClosed, RelayError, decode_response, read_frame

from .registry import SessionRegistry
from .router import ResponseDispatcher
from .session import Session

if TYPE_CHECKING:
    from relay.services.presence_service import PresenceThrottle

logger = logging.getLogger(__name__)


class RelayServer:
    """Accepts device connections and runs one frame loop per connection."""

    def __init__(
        self,
        host: str,
        port: int,
        registry: SessionRegistry,
        dispatcher: ResponseDispatcher,
        presence: Optional["PresenceThrottle"] = None,
        max_frame_size: Optional[int] = None,
        read_timeout: Optional[float] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.registry = registry
        self.dispatcher = dispatcher
        self.presence = presence
        self.max_frame_size = max_frame_size
        self.read_timeout = read_timeout
        self._server: Optional[asyncio.AbstractServer] = None

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle_client, self.host, self.port)
        sockets = self._server.sockets or ()
        if sockets:
            self.port = sockets[0].getsockname()[1]
        logger.info("Relay listening on %s:%s", self.host, self.port)

    async def serve_forever(self) -> None:
        if self._server is None:
            await self.start()
        async with self._server:
            await self._server.serve_forever()

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            for session in await self.registry.snapshot():
                session.writer.close()
            await self._server.wait_closed()
            self._server = None

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        session = await self.registry.register(reader, writer)
        logger.info("Received connection from: %s", session.peername)
        await self._update_presence()
        try:
            await self._connection_loop(session)
        except ConnectionClosed:
            logger.info("Client %s closed the connection", session.peername)
        except RelayError as exc:
            logger.warning("Client %s dropped on %s error: %s", session.peername, exc.kind, exc.message)
        except asyncio.TimeoutError:
            logger.info("Client %s timed out after %ss without a frame", session.peername, self.read_timeout)
        except Exception as exc:
            logger.exception("Unhandled error for %s: %s", session.peername, exc)
        finally:
            # A broadcast stuck in drain() holds the write lock until the transport goes away.
            writer.transport.abort()
            await self.registry.deregister(session)
            try:
                writer.close()
                await writer.wait_closed()
            except (ConnectionError, OSError) as e:
                logger.debug("Error during writer cleanup: %s", e)
            await self._update_presence()
            logger.info(
                "Dropped connection from: %s after %.1fs", session.peername, time.time() - session.connected_at
            )

    async def _connection_loop(self, session: Session) -> None:
        while True:
            read = read_frame(session.reader, self.max_frame_size)
            if self.read_timeout:
                data = await asyncio.wait_for(read, self.read_timeout)
            else:
                data = await read
            logger.debug("Incoming response from %s, %s bytes long.", session.peername, len(data))
            response = decode_response(data)
            await self.dispatcher.dispatch(session, response, len(data))

    async def _update_presence(self) -> None:
        if self.presence is not None:
            await self.presence.maybe_update(await self.registry.count())
