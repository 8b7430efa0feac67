"""
Prompt Gateway command line entry point.

Usage:
    prompt-gateway                 # web mode: POST /enhance, /sse events, WebSocket RPC
    prompt-gateway --remote-mcp    # remote MCP over HTTP+SSE
    prompt-gateway --mcp           # stdio MCP server
    prompt-gateway --check-key     # validate OPENROUTER_API_KEY and exit
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from . import __version__
from .config import Settings, get_settings
from .utils.central_logging import setup_logging

logger = logging.getLogger("prompt_gateway.system")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="prompt-gateway", description="Prompt Gateway")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--mcp", action="store_true", help="Run the stdio MCP server")
    mode.add_argument("--remote-mcp", action="store_true", help="Run the remote MCP server over HTTP+SSE")
    mode.add_argument("--check-key", action="store_true", help="Validate the OpenRouter API key and exit")
    parser.add_argument("--host", default=None, help="Bind address (default: HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="HTTP port (default: PORT or 3000)")
    parser.add_argument("--log-level", default=None, help="Log level (default: LOG_LEVEL or INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def check_key(settings: Settings) -> bool:
    from .services.openrouter import OpenRouterClient

    if not settings.openrouter_api_key:
        logger.error("OPENROUTER_API_KEY not set")
        return False
    client = OpenRouterClient(settings.openrouter_api_key, settings=settings)
    valid = await client.validate_api_key()
    if valid:
        logger.info("OpenRouter API key is valid")
    else:
        logger.error("OpenRouter API key was rejected or the API is unreachable")
    return valid


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    setup_logging(args.log_level or settings.log_level, stream=sys.stderr, log_dir=settings.log_dir)

    if args.check_key:
        return 0 if asyncio.run(check_key(settings)) else 1

    if not settings.openrouter_api_key:
        logger.warning("OPENROUTER_API_KEY not set. Enhancement will fail.")

    if args.mcp:
        from .mcp.stdio_server import run_stdio_server

        run_stdio_server(settings)
        return 0

    import uvicorn

    from .main import REMOTE_MCP_MODE, WEB_MODE, create_app

    mode = REMOTE_MCP_MODE if args.remote_mcp else WEB_MODE
    host = args.host or settings.host
    port = args.port or settings.port
    app = create_app(mode, settings)
    logger.info(f"Prompt Gateway ({mode}) listening on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
