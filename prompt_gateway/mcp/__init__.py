"""
MCP (Model Context Protocol) support for Prompt Gateway

This module provides:
- The ``enhance_prompt`` tool definition and server info
- A JSON-RPC dispatcher shared by every MCP transport
- The stdio transport
"""

from .dispatcher import MCPDispatcher

__all__ = ["MCPDispatcher"]
