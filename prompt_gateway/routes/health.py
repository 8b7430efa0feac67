import logging
import time

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from ..mcp.tools import SERVER_INFO, tool_names

router = APIRouter()

logger = logging.getLogger("prompt_gateway.health")

REMOTE_MCP_MODE = "remote-mcp"


@router.get(
    "/health",
    tags=["Monitoring"],
    summary="Health check endpoint",
)
@router.get(
    "/healthz",
    tags=["Monitoring"],
    summary="Kubernetes style health check endpoint",
    include_in_schema=False,
)
async def health_check(request: Request):
    state = request.app.state
    content = {
        "status": "ok",
        "ok": True,
        "mode": state.mode,
        "uptime": round(time.monotonic() - state.started_at, 3),
    }
    if state.mode == REMOTE_MCP_MODE:
        content["endpoint"] = "/sse"
    else:
        content["clients"] = len(state.subscribers)
    logger.debug("Health probe received")
    return JSONResponse(content=content, status_code=status.HTTP_200_OK)


@router.get("/", tags=["Monitoring"], summary="Service information")
async def service_info(request: Request):
    state = request.app.state
    if state.mode == REMOTE_MCP_MODE:
        return {
            **SERVER_INFO,
            "transport": "sse",
            "endpoint": "/sse",
            "messages": "/messages",
            "tools": tool_names(state.settings),
        }
    return {
        "name": SERVER_INFO["name"],
        "version": SERVER_INFO["version"],
        "description": SERVER_INFO["description"],
        "endpoints": {
            "sse": "/sse",
            "enhance": "/enhance",
            "models": "/models",
            "health": "/health",
        },
        "mcp": "Run with --mcp for stdio MCP or --remote-mcp for remote MCP over HTTP+SSE",
    }


@router.get("/models", tags=["Models"], summary="List advertised models")
async def list_models(request: Request):
    settings = request.app.state.settings
    return {"default": settings.openrouter_default_model, "models": settings.known_model_list}
