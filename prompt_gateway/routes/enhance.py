from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from ..schemas.enhance import EnhanceRequest, EnhanceResponse
from ..services import enhancer
from ..services.events import event_stream, utc_timestamp
from ..utils.errors import GatewayError, to_http_exception
from ..utils.throttle import request_slot

router = APIRouter(tags=["Enhance"])

logger = logging.getLogger("prompt_gateway.api")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post("/enhance", response_model=EnhanceResponse, summary="Enhance a prompt")
async def enhance(payload: EnhanceRequest, request: Request) -> EnhanceResponse:
    """Run one enhancement and broadcast its lifecycle to SSE subscribers."""
    subscribers = request.app.state.subscribers
    settings = request.app.state.settings

    subscribers.broadcast("enhancement_started", prompt=payload.prompt)
    try:
        async with request_slot():
            result = await enhancer.enhance_prompt(payload, settings)
    except GatewayError as exc:
        logger.warning("Enhancement failed [%s]: %s", exc.code, exc.message)
        subscribers.broadcast("error", error=exc.message)
        raise to_http_exception(exc) from exc

    subscribers.broadcast(
        "enhancement_completed",
        original=result.original,
        enhanced=result.enhanced,
        model=result.model,
        timestamp=utc_timestamp(),
    )
    return EnhanceResponse(enhanced=result.enhanced, original=result.original, model=result.model)


@router.get("/sse", summary="Subscribe to enhancement events")
async def subscribe(request: Request) -> StreamingResponse:
    subscribers = request.app.state.subscribers
    client_id, queue = subscribers.subscribe()
    return StreamingResponse(
        event_stream(subscribers, client_id, queue, keepalive=request.app.state.settings.sse_keepalive_interval),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
