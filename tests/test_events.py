import asyncio
import json

import pytest

from prompt_gateway.routes.mcp_remote import handshake_stream
from prompt_gateway.services.events import SubscriberRegistry, event_stream, format_sse


def _decode(frame: str):
    assert frame.startswith("data: ") and frame.endswith("\n\n")
    return json.loads(frame[len("data: "):-2])


def test_format_sse():
    assert format_sse({"type": "connected", "clientId": "abc"}) == 'data: {"type": "connected", "clientId": "abc"}\n\n'


@pytest.mark.asyncio
async def test_broadcast_reaches_every_subscriber():
    registry = SubscriberRegistry()
    first_id, first = registry.subscribe()
    second_id, second = registry.subscribe()

    assert first_id != second_id
    assert len(registry) == 2
    assert registry.broadcast("enhancement_started", prompt="p") == 2
    assert first.get_nowait() == {"type": "enhancement_started", "prompt": "p"}
    assert second.get_nowait() == {"type": "enhancement_started", "prompt": "p"}


@pytest.mark.asyncio
async def test_unsubscribe_stops_delivery():
    registry = SubscriberRegistry()
    client_id, queue = registry.subscribe()
    registry.unsubscribe(client_id)
    registry.unsubscribe(client_id)

    assert client_id not in registry
    assert registry.broadcast("error", error="x") == 0
    assert queue.empty()


@pytest.mark.asyncio
async def test_full_queue_drops_events_for_that_subscriber_only():
    registry = SubscriberRegistry(queue_size=1)
    _, slow = registry.subscribe()
    _, fast = registry.subscribe()

    registry.broadcast("enhancement_started", prompt="1")
    fast.get_nowait()

    assert registry.broadcast("enhancement_started", prompt="2") == 1
    assert slow.get_nowait()["prompt"] == "1"
    assert fast.get_nowait()["prompt"] == "2"


@pytest.mark.asyncio
async def test_event_stream_sends_connected_then_events_and_unsubscribes():
    registry = SubscriberRegistry()
    client_id, queue = registry.subscribe()
    stream = event_stream(registry, client_id, queue, keepalive=0.01)

    assert _decode(await stream.__anext__()) == {"type": "connected", "clientId": client_id}
    assert await stream.__anext__() == ": keepalive\n\n"

    registry.broadcast("enhancement_completed", original="a", enhanced="b", model="m", timestamp="t")
    assert _decode(await stream.__anext__())["type"] == "enhancement_completed"

    await stream.aclose()
    assert client_id not in registry


@pytest.mark.asyncio
async def test_remote_handshake_stream_sends_initialized_then_pings():
    stream = handshake_stream(keepalive=0.01)

    assert _decode(await stream.__anext__()) == {"jsonrpc": "2.0", "method": "notifications/initialized"}
    assert _decode(await asyncio.wait_for(stream.__anext__(), 1)) == {"jsonrpc": "2.0", "method": "notifications/ping"}

    await stream.aclose()
