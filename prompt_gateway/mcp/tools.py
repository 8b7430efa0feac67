from __future__ import annotations

from typing import Any, Dict, List, Optional

from .. import __version__
from ..config import Settings, get_settings

PROTOCOL_VERSION = "2024-11-05"

SERVER_INFO = {
    "name": "prompt-gateway",
    "vendor": "PromptGateway",
    "version": __version__,
    "description": "AI-powered prompt enhancement via MCP",
}

SERVER_CAPABILITIES = {
    "tools": {"listChanged": False},
}

ENHANCE_TOOL_NAME = "enhance_prompt"


def get_tools(settings: Optional[Settings] = None) -> List[Dict[str, Any]]:
    """Return the MCP tool catalogue."""
    settings = settings or get_settings()
    return [
        {
            "name": ENHANCE_TOOL_NAME,
            "description": "Enhance a prompt to be clearer, more specific, and more effective using AI",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "prompt": {
                        "type": "string",
                        "description": "The prompt text to enhance",
                    },
                    "context": {
                        "type": "string",
                        "description": "Optional conversation or code context",
                    },
                    "messages": {
                        "type": "array",
                        "description": "Recent conversation messages, most recent last",
                        "items": {
                            "type": "object",
                            "properties": {
                                "role": {"type": "string", "enum": ["user", "assistant"]},
                                "content": {"type": "string"},
                            },
                            "required": ["role", "content"],
                        },
                    },
                    "model": {
                        "type": "string",
                        "description": f"AI model to use (default: {settings.openrouter_default_model})",
                        "enum": settings.known_model_list,
                    },
                },
                "required": ["prompt"],
            },
        }
    ]


def tool_names(settings: Optional[Settings] = None) -> List[str]:
    return [tool["name"] for tool in get_tools(settings)]
