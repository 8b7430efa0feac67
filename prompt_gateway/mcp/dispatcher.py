"""
JSON-RPC 2.0 dispatch for the MCP tool surface.

Shared by the stdio, remote HTTP and WebSocket transports; each transport only
frames messages and hands the decoded object to :meth:`MCPDispatcher.handle`.
A ``None`` return means the message was a notification and nothing is sent.
"""
from __future__ import annotations

import json
import logging
from contextlib import AbstractAsyncContextManager
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..config import Settings, get_settings
from ..schemas.enhance import EnhanceRequest
from ..services.enhancer import EnhancementResult, enhance_prompt
from ..utils.errors import EnhancementError, GatewayError, ValidationError
from .tools import ENHANCE_TOOL_NAME, PROTOCOL_VERSION, SERVER_CAPABILITIES, SERVER_INFO, get_tools

logger = logging.getLogger("prompt_gateway.mcp")

JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

EnhanceFn = Callable[[EnhanceRequest, Settings], Awaitable[EnhancementResult]]
SlotFactory = Callable[[], AbstractAsyncContextManager]


class MCPError(Exception):
    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


def jsonrpc_result(req_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "result": result}


def jsonrpc_error(req_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "error": {"code": code, "message": message}}


def _format_validation_errors(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return ", ".join(parts)


class MCPDispatcher:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        enhance: Optional[EnhanceFn] = None,
        slot: Optional[SlotFactory] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._enhance = enhance
        self._slot = slot
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "prompts/list": self._prompts_list,
            "resources/list": self._resources_list,
        }

    async def handle_raw(self, raw: Union[str, bytes]) -> Optional[Dict[str, Any]]:
        """Decode one framed message and dispatch it."""
        try:
            message = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            logger.warning("Unparseable JSON-RPC message: %s", exc)
            return jsonrpc_error(None, PARSE_ERROR, f"Parse error: {exc}")
        return await self.handle(message)

    async def handle(self, message: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(message, dict):
            return jsonrpc_error(None, INVALID_REQUEST, "Invalid Request")

        req_id = message.get("id")
        is_notification = "id" not in message
        method = message.get("method")

        if message.get("jsonrpc") != JSONRPC_VERSION or not isinstance(method, str) or not method:
            return jsonrpc_error(req_id, INVALID_REQUEST, "Invalid Request")

        if method.startswith("notifications/"):
            logger.debug("MCP notification %s", method)
            return None if is_notification else jsonrpc_result(req_id, {})

        handler = self._handlers.get(method)
        if handler is None:
            logger.info("MCP unknown method %s", method)
            if is_notification:
                return None
            return jsonrpc_error(req_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        params = message.get("params") or {}
        if not isinstance(params, dict):
            return jsonrpc_error(req_id, INVALID_PARAMS, "Invalid parameters: params must be an object")

        try:
            result = await handler(params)
        except MCPError as exc:
            logger.info("MCP %s failed code=%s: %s", method, exc.code, exc.message)
            response = jsonrpc_error(req_id, exc.code, exc.message)
        except Exception as exc:
            logger.exception("MCP %s crashed", method)
            response = jsonrpc_error(req_id, INTERNAL_ERROR, f"Internal error: {exc}")
        else:
            response = jsonrpc_result(req_id, result)

        return None if is_notification else response

    async def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        client_info = params.get("clientInfo") or {}
        logger.info("MCP initialize client=%s", client_info.get("name", "unknown"))
        return {
            "protocolVersion": params.get("protocolVersion") or PROTOCOL_VERSION,
            "serverInfo": SERVER_INFO,
            "capabilities": SERVER_CAPABILITIES,
        }

    async def _ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _tools_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"tools": get_tools(self.settings)}

    async def _prompts_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"prompts": []}

    async def _resources_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"resources": []}

    async def _tools_call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if name != ENHANCE_TOOL_NAME:
            raise MCPError(METHOD_NOT_FOUND, f"Unknown tool: {name}")

        try:
            request = EnhanceRequest.model_validate(params.get("arguments") or {})
        except PydanticValidationError as exc:
            raise MCPError(INVALID_PARAMS, f"Invalid parameters: {_format_validation_errors(exc)}") from exc

        enhance = self._enhance or enhance_prompt
        try:
            if self._slot is not None:
                async with self._slot():
                    result = await enhance(request, self.settings)
            else:
                result = await enhance(request, self.settings)
        except ValidationError as exc:
            raise MCPError(INVALID_PARAMS, f"Invalid parameters: {exc.message}") from exc
        except EnhancementError as exc:
            raise MCPError(INTERNAL_ERROR, f"Enhancement failed: {exc.message}") from exc
        except GatewayError as exc:
            raise MCPError(INTERNAL_ERROR, exc.message) from exc

        return {"content": [{"type": "text", "text": result.enhanced}]}
