"""
Enhancement lifecycle events for SSE subscribers.

Every event is a JSON object with a ``type`` field (``connected``,
``enhancement_started``, ``enhancement_completed``, ``error``) sent as an
unnamed SSE ``data:`` frame. The registry is owned by the app instance, one
bounded queue per subscriber.
"""
from __future__ import annotations

import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional, Tuple

logger = logging.getLogger("prompt_gateway.sse")

SUBSCRIBER_QUEUE_SIZE = 100


def format_sse(payload: Dict[str, Any]) -> str:
    return f"data: {json.dumps(payload)}\n\n"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class SubscriberRegistry:
    def __init__(self, queue_size: int = SUBSCRIBER_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._subscribers: Dict[str, "asyncio.Queue[Dict[str, Any]]"] = {}

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._subscribers

    def subscribe(self) -> Tuple[str, "asyncio.Queue[Dict[str, Any]]"]:
        client_id = uuid.uuid4().hex[:9]
        queue: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers[client_id] = queue
        logger.info("SSE client connected id=%s total=%d", client_id, len(self._subscribers))
        return client_id, queue

    def unsubscribe(self, client_id: str) -> None:
        if self._subscribers.pop(client_id, None) is not None:
            logger.info("SSE client disconnected id=%s total=%d", client_id, len(self._subscribers))

    def broadcast(self, event_type: str, **data: Any) -> int:
        """Queue an event for every subscriber; returns how many received it."""
        event = {"type": event_type, **data}
        delivered = 0
        for client_id, queue in list(self._subscribers.items()):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("SSE client %s is not draining events, dropping %s", client_id, event_type)
                continue
            delivered += 1
        return delivered


async def event_stream(
    registry: SubscriberRegistry,
    client_id: str,
    queue: "asyncio.Queue[Dict[str, Any]]",
    keepalive: Optional[float] = 30.0,
) -> AsyncIterator[str]:
    """Yield SSE frames for one subscriber until the client goes away."""
    try:
        yield format_sse({"type": "connected", "clientId": client_id})
        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield format_sse(event)
    except asyncio.CancelledError:
        logger.debug("SSE stream cancelled id=%s", client_id)
        raise
    finally:
        registry.unsubscribe(client_id)
