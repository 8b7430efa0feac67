"""
Remote MCP over HTTP+SSE

Endpoints:
- GET /sse - handshake stream, sends ``notifications/initialized`` then a
  ``notifications/ping`` on every keepalive interval
- POST /messages - JSON-RPC 2.0 requests, answered in the HTTP response
"""
from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from ..mcp.dispatcher import JSONRPC_VERSION

router = APIRouter(tags=["MCP Remote Server"])

logger = logging.getLogger("prompt_gateway.mcp")

INITIALIZED_NOTIFICATION = {"jsonrpc": JSONRPC_VERSION, "method": "notifications/initialized"}
PING_NOTIFICATION = {"jsonrpc": JSONRPC_VERSION, "method": "notifications/ping"}


async def handshake_stream(keepalive: float):
    yield f"data: {json.dumps(INITIALIZED_NOTIFICATION)}\n\n"
    try:
        while True:
            await asyncio.sleep(keepalive)
            yield f"data: {json.dumps(PING_NOTIFICATION)}\n\n"
    except asyncio.CancelledError:
        logger.info("SSE_DISCONNECT | remote MCP handshake stream closed")
        raise


@router.get("/sse", summary="SSE endpoint for remote MCP clients")
async def mcp_sse_connect(request: Request) -> StreamingResponse:
    client_ip = request.client.host if request.client else "unknown"
    logger.info("SSE_CONNECT | IP: %s", client_ip)
    return StreamingResponse(
        handshake_stream(request.app.state.settings.sse_keepalive_interval),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/messages", summary="MCP messages endpoint for JSON-RPC")
async def mcp_messages_handler(request: Request) -> Response:
    body = await request.body()
    response = await request.app.state.dispatcher.handle_raw(body)
    if response is None:
        return Response(status_code=202)
    return JSONResponse(content=response)
