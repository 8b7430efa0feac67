import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import Settings, get_settings
from .mcp.dispatcher import MCPDispatcher
from .routes.enhance import router as enhance_router
from .routes.health import REMOTE_MCP_MODE, router as health_router
from .routes.mcp_remote import router as mcp_remote_router
from .services.events import SubscriberRegistry
from .services.mcp_ws_server import MCPWebSocketServer
from .utils.central_logging import setup_logging
from .utils.errors import GatewayError, ValidationError, _sanitize_error_message, to_http_exception
from .utils.logging_middleware import LoggingMiddleware
from .utils.throttle import request_slot

logger = logging.getLogger("prompt_gateway.api")

WEB_MODE = "web"
MODES = (WEB_MODE, REMOTE_MCP_MODE)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if not settings.openrouter_api_key:
        logger.warning("OPENROUTER_API_KEY not set. Enhancement requests will fail.")

    ws_server: Optional[MCPWebSocketServer] = None
    if settings.ws_enabled:
        ws_server = MCPWebSocketServer(settings, app.state.dispatcher)
        try:
            await ws_server.start()
        except OSError as e:
            logger.warning(f"Failed to start MCP WebSocket server on port {settings.ws_port}: {e}")
            ws_server = None
    app.state.ws_server = ws_server

    logger.info(f"Prompt Gateway {__version__} ready in {app.state.mode} mode")
    yield

    if ws_server is not None:
        await ws_server.stop()


def create_app(mode: str = WEB_MODE, settings: Optional[Settings] = None) -> FastAPI:
    if mode not in MODES:
        raise ValueError(f"Unknown mode {mode!r}, expected one of {', '.join(MODES)}")

    settings = settings or get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)

    app = FastAPI(
        title="Prompt Gateway",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.mode = mode
    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.subscribers = SubscriberRegistry()
    app.state.dispatcher = MCPDispatcher(settings, slot=request_slot)
    app.state.ws_server = None

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.info("Request validation error on %s: %s", request.url.path, errors)
        message = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body') or 'body'}: {err.get('msg')}"
            for err in errors
        )
        http_exc = to_http_exception(ValidationError(message or "Invalid request"))
        return JSONResponse(status_code=http_exc.status_code, content=http_exc.detail)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        if isinstance(exc.detail, dict) and "error" in exc.detail:
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.detail,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"message": _sanitize_error_message(str(exc.detail)), "code": "http_error"}},
        )

    @app.exception_handler(GatewayError)
    async def gateway_exception_handler(request: Request, exc: GatewayError):
        http_exc = to_http_exception(exc)
        return JSONResponse(status_code=http_exc.status_code, content=http_exc.detail)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Global Unhandled Exception on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "internal_error",
                    "message": "An unexpected error occurred."
                }
            }
        )

    allowed_origins = [origin.strip() for origin in settings.cors_allowed_origins.split(",") if origin.strip()]
    if allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
        )
    app.add_middleware(LoggingMiddleware)

    app.include_router(health_router, tags=["Monitoring"])
    if mode == REMOTE_MCP_MODE:
        app.include_router(mcp_remote_router, tags=["MCP Remote Server"])
    else:
        app.include_router(enhance_router, tags=["Enhance"])

    return app

# Uvicorn Entry
app = create_app()
