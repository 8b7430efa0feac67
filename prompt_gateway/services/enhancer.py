"""
The enhancement pipeline: sanitize, detect, compose, call, normalize.

Every transport funnels into :func:`enhance_prompt`; failures always surface
as an :class:`~prompt_gateway.utils.errors.EnhancementError` subclass.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from ..config import Settings, get_settings
from ..schemas.enhance import EnhanceRequest
from ..utils.errors import (
    ConfigurationError,
    EnhancementError,
    ProviderError,
    SanitizationError,
    ValidationError,
)
from .normalizer import normalize_response
from .openrouter import OpenRouterClient
from .structure import detect_structure, sanitize_input
from .templates import build_conversation_context, compose_system_prompt

logger = logging.getLogger("prompt_gateway.llm")


@dataclass(frozen=True)
class EnhancementResult:
    enhanced: str
    original: str
    model: str


class PromptEnhancer:
    def __init__(self, client: OpenRouterClient, *, sanitize_fail_open: bool = False) -> None:
        self.client = client
        self.sanitize_fail_open = sanitize_fail_open

    def _sanitize(self, prompt: str) -> str:
        try:
            return sanitize_input(prompt)
        except SanitizationError:
            if not self.sanitize_fail_open:
                raise
            logger.warning("Sanitization failed, continuing with unsanitized input", exc_info=True)
            return prompt

    async def enhance(self, prompt: str, context: Optional[str] = None) -> str:
        """Return the enhanced prompt text for ``prompt``."""
        try:
            cleaned = self._sanitize(prompt)
            structure = detect_structure(cleaned)
            system_prompt = compose_system_prompt(structure.preserve_format, context)
            logger.debug(
                "Enhancing prompt kind=%s preserve_format=%s contextual=%s",
                structure.kind.value,
                structure.preserve_format,
                bool(context),
            )
            raw = await self.client.complete(system_prompt, cleaned)
            return normalize_response(raw)
        except EnhancementError:
            raise
        except Exception as exc:
            logger.exception("Unexpected failure during enhancement")
            raise ProviderError(f"Unexpected enhancement failure: {exc}") from exc


async def enhance_prompt(
    request: EnhanceRequest,
    settings: Optional[Settings] = None,
    *,
    client: Optional[OpenRouterClient] = None,
) -> EnhancementResult:
    """Run one enhancement request end to end."""
    settings = settings or get_settings()

    if not request.prompt:
        raise ValidationError("Prompt is required")

    if client is None:
        if not settings.openrouter_api_key:
            raise ConfigurationError("OpenRouter API key not configured")
        client = OpenRouterClient(settings.openrouter_api_key, request.model, settings=settings)

    context = build_conversation_context(request.messages, request.context)
    enhancer = PromptEnhancer(client, sanitize_fail_open=settings.sanitize_fail_open)

    started = time.perf_counter()
    enhanced = await enhancer.enhance(request.prompt, context or None)
    logger.info(
        "Enhancement complete model=%s chars_in=%d chars_out=%d duration=%.2fs",
        client.model,
        len(request.prompt),
        len(enhanced),
        time.perf_counter() - started,
    )
    return EnhancementResult(enhanced=enhanced, original=request.prompt, model=client.model)
