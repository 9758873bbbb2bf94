from __future__ import annotations

import asyncio

import pytest

from relay.core import ResponseDispatcher
from wire import DeliveryError, EmbedResponse, FileResponse, PresenceResponse, SettingsResponse

from .conftest import FakeAdapter, FakeWriter


async def _session(registry, channel_id=0):
    session = await registry.register(asyncio.StreamReader(), FakeWriter())
    if channel_id:
        await session.apply_settings(SettingsResponse(channel_id=channel_id))
    return session


@pytest.mark.asyncio
async def test_settings_update_session(registry, adapter):
    session = await _session(registry)
    settings = SettingsResponse(channel_id=42, command_prefix="!", cycle_time=15, presence_enabled=True)
    await ResponseDispatcher(adapter).dispatch(session, settings, 20)

    assert await session.channel() == 42
    assert (session.command_prefix, session.cycle_time, session.presence_enabled) == ("!", 15, True)
    assert (session.num_messages, session.total_data) == (1, 20)


@pytest.mark.asyncio
async def test_file_response_is_split_into_units(registry, adapter):
    session = await _session(registry, channel_id=7)
    dispatcher = ResponseDispatcher(adapter, max_attachment_size=4)
    await dispatcher.dispatch(session, FileResponse(filename="a.bin", data=b"0123456789"), 30)

    assert [channel for channel, _ in adapter.units] == [7, 7, 7]
    assert [unit.text for _, unit in adapter.units] == ["a.bin (part 1/3)", "a.bin (part 2/3)", "a.bin (part 3/3)"]
    assert b"".join(unit.file.data for _, unit in adapter.units) == b"0123456789"


@pytest.mark.asyncio
async def test_embed_response_is_delivered_with_mentions(registry, adapter):
    session = await _session(registry, channel_id=7)
    await ResponseDispatcher(adapter).dispatch(session, EmbedResponse(title="Hi <@5>", color=1), 10)

    ((channel, unit),) = adapter.units
    assert channel == 7
    assert unit.text == "<@5> "
    assert unit.embed.title == "Hi <@5>"


@pytest.mark.asyncio
async def test_presence_applies_only_when_self_hosted(registry, adapter):
    session = await _session(registry)
    await ResponseDispatcher(adapter).dispatch(session, PresenceResponse(presence="Printing"), 5)
    await ResponseDispatcher(adapter, cloud_mode=True).dispatch(session, PresenceResponse(presence="Idle"), 5)
    assert adapter.presences == [("Printing", None)]
    assert session.num_messages == 2


@pytest.mark.asyncio
async def test_delivery_failure_raises(registry):
    session = await _session(registry, channel_id=7)
    with pytest.raises(DeliveryError):
        await ResponseDispatcher(FakeAdapter(fail=True)).dispatch(session, EmbedResponse(title="x"), 5)


@pytest.mark.asyncio
async def test_overflowing_mentions_are_sent_as_text(registry, adapter):
    session = await _session(registry, channel_id=7)
    description = "<@123456789012345678> " * 180
    await ResponseDispatcher(adapter).dispatch(session, EmbedResponse(title="Done", description=description), 10)

    ((_, unit),) = adapter.units
    ((channel, body),) = adapter.texts
    assert channel == 7
    assert len(unit.text) + len(body) == len(description)
    assert len(body) <= 2000
