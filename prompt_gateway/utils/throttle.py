"""Bound the number of enhancements in flight across all transports."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from ..config import get_settings
from .errors import ServerBusyError

logger = logging.getLogger("prompt_gateway.system")


class RequestSlots:
    def __init__(self, limit: int, queue_timeout: float) -> None:
        self.limit = max(1, limit)
        self.queue_timeout = queue_timeout
        self._semaphore = asyncio.Semaphore(self.limit)
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        try:
            await asyncio.wait_for(self._semaphore.acquire(), timeout=self.queue_timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("No request slot free after %.1fs (%d in flight)", self.queue_timeout, self._in_flight)
            raise ServerBusyError("Server is busy, please try again in a moment") from exc
        self._in_flight += 1
        try:
            yield
        finally:
            self._in_flight -= 1
            self._semaphore.release()


_slots: RequestSlots | None = None


def get_request_slots() -> RequestSlots:
    global _slots
    if _slots is None:
        settings = get_settings()
        _slots = RequestSlots(settings.max_concurrent_requests, settings.request_queue_timeout)
    return _slots


def request_slot():
    """Process-wide slot, sized from MAX_CONCURRENT_REQUESTS."""
    return get_request_slots().slot()
