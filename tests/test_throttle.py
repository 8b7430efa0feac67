import asyncio

import pytest

from prompt_gateway.utils import throttle
from prompt_gateway.utils.errors import ServerBusyError
from prompt_gateway.utils.throttle import RequestSlots


@pytest.mark.asyncio
async def test_slot_tracks_in_flight():
    slots = RequestSlots(2, queue_timeout=0.1)
    async with slots.slot():
        assert slots.in_flight == 1
    assert slots.in_flight == 0


@pytest.mark.asyncio
async def test_full_slots_raise_server_busy():
    slots = RequestSlots(1, queue_timeout=0.01)
    async with slots.slot():
        with pytest.raises(ServerBusyError, match="Server is busy"):
            async with slots.slot():
                pass
    async with slots.slot():
        assert slots.in_flight == 1


@pytest.mark.asyncio
async def test_slot_released_on_error():
    slots = RequestSlots(1, queue_timeout=0.01)
    with pytest.raises(RuntimeError):
        async with slots.slot():
            raise RuntimeError("boom")
    async with slots.slot():
        pass


def test_limit_is_at_least_one():
    assert RequestSlots(0, queue_timeout=1).limit == 1


@pytest.mark.asyncio
async def test_request_slot_uses_configured_limit(monkeypatch):
    monkeypatch.setenv("MAX_CONCURRENT_REQUESTS", "3")
    async with throttle.request_slot():
        assert throttle.get_request_slots().limit == 3
        assert throttle.get_request_slots().in_flight == 1
    await asyncio.sleep(0)
    assert throttle.get_request_slots().in_flight == 0
