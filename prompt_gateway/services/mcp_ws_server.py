"""
MCP WebSocket Server
====================

JSON-RPC 2.0 over WebSocket text frames on a dedicated port, one message per
frame. Shares the dispatcher with the stdio and HTTP transports.

Started and stopped with the HTTP app via its lifespan.
"""
from __future__ import annotations

import json
import logging
from typing import Dict, Optional

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from ..config import Settings, get_settings
from ..mcp.dispatcher import MCPDispatcher
from ..utils.throttle import request_slot

logger = logging.getLogger("prompt_gateway.ws")


class MCPWebSocketServer:
    def __init__(self, settings: Optional[Settings] = None, dispatcher: Optional[MCPDispatcher] = None) -> None:
        self.settings = settings or get_settings()
        self.dispatcher = dispatcher or MCPDispatcher(self.settings, slot=request_slot)
        self.connected_clients: Dict[str, ServerConnection] = {}
        self.server: Optional[Server] = None

    @property
    def running(self) -> bool:
        return self.server is not None

    async def _handle_client(self, websocket: ServerConnection) -> None:
        host, port = websocket.remote_address[:2]
        client_id = f"{host}:{port}"
        logger.info("MCP WebSocket client connected: %s", client_id)
        self.connected_clients[client_id] = websocket

        try:
            async for message in websocket:
                response = await self.dispatcher.handle_raw(message)
                if response is not None:
                    await websocket.send(json.dumps(response))
        except ConnectionClosed:
            logger.info("MCP WebSocket client disconnected: %s", client_id)
        finally:
            self.connected_clients.pop(client_id, None)

    async def start(self) -> None:
        if self.server is not None:
            return
        host, port = self.settings.ws_host, self.settings.ws_port
        self.server = await serve(self._handle_client, host, port)
        logger.info("MCP WebSocket server started on ws://%s:%s", host, port)

    async def stop(self) -> None:
        if self.server is None:
            return
        self.server.close()
        await self.server.wait_closed()
        self.server = None
        logger.info("MCP WebSocket server stopped")
