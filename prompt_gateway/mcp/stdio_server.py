"""
Prompt Gateway MCP stdio server

Speaks newline-delimited JSON-RPC 2.0 on stdin/stdout. stdout carries protocol
frames only; all logging goes to stderr.
Usage: python -m prompt_gateway --mcp
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional, TextIO

from ..config import Settings, get_settings
from .dispatcher import MCPDispatcher

logger = logging.getLogger("prompt_gateway.mcp")


class StdioMCPServer:
    def __init__(
        self,
        dispatcher: Optional[MCPDispatcher] = None,
        *,
        settings: Optional[Settings] = None,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.dispatcher = dispatcher or MCPDispatcher(self.settings)
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def _write(self, response: Dict[str, Any]) -> None:
        self.stdout.write(json.dumps(response) + "\n")
        self.stdout.flush()

    async def handle_line(self, line: str) -> Optional[Dict[str, Any]]:
        line = line.strip()
        if not line:
            return None
        return await self.dispatcher.handle_raw(line)

    async def run(self) -> None:
        """Main loop - read from stdin, write to stdout until EOF."""
        loop = asyncio.get_running_loop()
        logger.info("Prompt Gateway MCP server running on stdio")
        if not self.settings.openrouter_api_key:
            logger.warning("OPENROUTER_API_KEY not set. Enhancement will fail.")

        while True:
            line = await loop.run_in_executor(None, self.stdin.readline)
            if not line:
                break
            response = await self.handle_line(line)
            if response is not None:
                self._write(response)

        logger.info("stdin closed, MCP stdio server exiting")


def run_stdio_server(settings: Optional[Settings] = None) -> None:
    asyncio.run(StdioMCPServer(settings=settings).run())
