from __future__ import annotations

import asyncio
import logging

import pytest
import pytest_asyncio

from relay.core import RelayServer, ResponseDispatcher, SessionRegistry
from relay.services import PresenceThrottle
from wire import (
    CommandMessage,
    EmbedResponse,
    SettingsResponse,
    decode_request,
    encode_frame,
    encode_response,
    read_frame,
)

from .conftest import FakeAdapter


async def _wait_for(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


async def _wait_bound(registry, channel_id, count=1):
    async def bound():
        return sum([await s.channel() == channel_id for s in await registry.snapshot()])

    for _ in range(200):
        if await bound() >= count:
            return
        await asyncio.sleep(0.01)
    raise AssertionError(f"no session bound to {channel_id}")


@pytest_asyncio.fixture
async def relay():
    adapter = FakeAdapter()
    registry = SessionRegistry()
    server = RelayServer(
        "127.0.0.1",
        0,
        registry,
        ResponseDispatcher(adapter),
        presence=PresenceThrottle(adapter),
    )
    await server.start()
    yield server, registry, adapter
    await server.stop()


async def _connect(server):
    return await asyncio.open_connection("127.0.0.1", server.port)


@pytest.mark.asyncio
async def test_device_binds_channel_and_receives_commands(relay):
    server, registry, adapter = relay
    reader, writer = await _connect(server)
    writer.write(encode_frame(encode_response(SettingsResponse(channel_id=31))))
    writer.write(encode_frame(encode_response(EmbedResponse(title="Online <@8>"))))
    await writer.drain()

    await _wait_for(lambda: len(adapter.units) == 1)
    channel, unit = adapter.units[0]
    assert channel == 31
    assert unit.text == "<@8> "

    assert await registry.send_command(31, 4, "/status") == 1
    request = decode_request(await asyncio.wait_for(read_frame(reader), 2))
    assert request.user == 4
    assert request.message == CommandMessage(text="/status")

    (stats,) = await registry.collect_stats()
    assert stats.num_messages == 2

    writer.close()
    await writer.wait_closed()
    await _wait_for(lambda: len(registry) == 0)


@pytest.mark.asyncio
async def test_malformed_payload_drops_only_that_connection(relay, caplog):
    caplog.set_level(logging.INFO, logger="relay.core.server")
    server, registry, _ = relay
    good_reader, good_writer = await _connect(server)
    good_writer.write(encode_frame(encode_response(SettingsResponse(channel_id=1))))
    await good_writer.drain()
    await _wait_bound(registry, 1)

    bad_reader, bad_writer = await _connect(server)
    await _wait_for(lambda: len(registry) == 2)
    bad_writer.write(encode_frame(b"\xc1 not msgpack"))
    await bad_writer.drain()

    assert await asyncio.wait_for(bad_reader.read(), 2) == b""
    await _wait_for(lambda: len(registry) == 1)
    assert await registry.send_command(1, 1, "ping") == 1
    assert decode_request(await asyncio.wait_for(read_frame(good_reader), 2)).message.text == "ping"
    assert any("dropped on decode error" in record.getMessage() for record in caplog.records)
    await _wait_for(lambda: any(r.getMessage().startswith("Dropped connection from") for r in caplog.records))
    dropped = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Dropped connection from")]
    assert dropped[0].endswith("s") and " after " in dropped[0]

    good_writer.close()
    bad_writer.close()


@pytest.mark.asyncio
async def test_truncated_frame_closes_connection(relay):
    server, registry, _ = relay
    _, writer = await _connect(server)
    await _wait_for(lambda: len(registry) == 1)
    writer.write(encode_frame(b"abcdef")[:-2])
    writer.write_eof()
    await writer.drain()
    await _wait_for(lambda: len(registry) == 0)
    writer.close()


@pytest.mark.asyncio
async def test_delivery_failure_closes_connection(relay):
    server, registry, adapter = relay
    reader, writer = await _connect(server)
    writer.write(encode_frame(encode_response(SettingsResponse(channel_id=3))))
    await writer.drain()
    await _wait_bound(registry, 3)

    adapter.fail = True
    writer.write(encode_frame(encode_response(EmbedResponse(title="x"))))
    await writer.drain()
    assert await asyncio.wait_for(reader.read(), 2) == b""
    await _wait_for(lambda: len(registry) == 0)
    writer.close()


@pytest.mark.asyncio
async def test_presence_is_throttled_across_connections(relay):
    server, registry, adapter = relay
    connections = [await _connect(server) for _ in range(3)]
    await _wait_for(lambda: len(registry) == 3)
    assert len(adapter.presences) == 1
    for _, writer in connections:
        writer.close()
    await _wait_for(lambda: len(registry) == 0)
    assert len(adapter.presences) == 1


@pytest.mark.asyncio
async def test_stalled_peer_is_dropped_while_broadcast_is_blocked(relay):
    server, registry, _ = relay
    reader, writer = await _connect(server)
    writer.write(encode_frame(encode_response(SettingsResponse(channel_id=9))))
    await writer.drain()
    await _wait_bound(registry, 9)
    (session,) = await registry.snapshot()

    # The device never reads, so a large enough request fills the socket buffers.
    broadcast = asyncio.create_task(registry.send_file(9, 1, "big.bin", b"x" * (32 * 1024 * 1024)))
    await _wait_for(lambda: session._write_lock.locked())
    await asyncio.sleep(0.1)
    assert not broadcast.done()

    writer.write(encode_frame(b"\xc1 not msgpack"))
    await writer.drain()
    await _wait_for(lambda: len(registry) == 0)
    await asyncio.wait_for(broadcast, 2)
    assert session.closed
    writer.close()
