from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from ..config import Settings, get_settings
from ..utils.errors import (
    ConfigurationError,
    EmptyResponseError,
    ProviderError,
    RateLimitError,
)
from ..utils.http import extract_http_error
from ..utils.http_client import RATE_LIMIT_STATUS, HttpClient

logger = logging.getLogger("prompt_gateway.llm")

# Sampling tuned for faithful rewriting rather than creative divergence
TEMPERATURE = 0.1
TOP_P = 0.9
FREQUENCY_PENALTY = 0.1
PRESENCE_PENALTY = 0.1

MIN_OUTPUT_TOKENS = 500
MAX_OUTPUT_TOKENS = 4000
OUTPUT_TO_INPUT_RATIO = 3
CHARS_PER_TOKEN = 4


def calculate_max_tokens(prompt: str) -> int:
    """Output budget: three times the estimated input tokens, clamped to [500, 4000]."""
    prompt_tokens = math.ceil(len(prompt) / CHARS_PER_TOKEN)
    return min(max(MIN_OUTPUT_TOKENS, prompt_tokens * OUTPUT_TO_INPUT_RATIO), MAX_OUTPUT_TOKENS)


class OpenRouterClient:
    """Chat-completion client for OpenRouter (or any OpenAI-compatible endpoint)."""

    def __init__(
        self,
        api_key: Optional[str],
        model: Optional[str] = None,
        *,
        settings: Optional[Settings] = None,
        http_client: Optional[HttpClient] = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("OpenRouter API key not configured")
        settings = settings or get_settings()
        self.api_key = api_key
        self.model = model or settings.openrouter_default_model
        self.base_url = settings.openrouter_base_url.rstrip("/")
        self.timeout = settings.openrouter_timeout
        self.extra_headers = {
            "HTTP-Referer": settings.openrouter_referer,
            "X-Title": settings.openrouter_title,
        }
        self._http_client = http_client

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[HttpClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with HttpClient(timeout=self.timeout) as client:
            yield client

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            **self.extra_headers,
        }

    def build_payload(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": TEMPERATURE,
            "max_tokens": calculate_max_tokens(user_prompt),
            "top_p": TOP_P,
            "frequency_penalty": FREQUENCY_PENALTY,
            "presence_penalty": PRESENCE_PENALTY,
        }

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Send one system+user exchange and return the raw text of the first choice."""
        url = f"{self.base_url}/chat/completions"
        payload = self.build_payload(system_prompt, user_prompt)
        logger.debug("OpenRouter request model=%s max_tokens=%s", self.model, payload["max_tokens"])

        try:
            async with self._session() as client:
                response = await client.post(url, headers=self._headers(), json=payload, name="openrouter.chat")
        except httpx.HTTPError as exc:
            logger.warning("OpenRouter unreachable: %s", exc)
            raise ProviderError(f"Failed to reach OpenRouter API: {exc}") from exc

        return self._extract_content(response)

    def _extract_content(self, response: httpx.Response) -> str:
        status_line = f"{response.status_code} {response.reason_phrase}".strip()

        if response.status_code == RATE_LIMIT_STATUS:
            raise RateLimitError(f"API request failed: {status_line}", status_code=response.status_code)

        if not response.is_success:
            detail = extract_http_error(response)
            message = f"API request failed: {status_line}"
            if detail:
                message = f"{message} ({detail})"
            raise ProviderError(message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError("Malformed response from API: body is not JSON") from exc

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise EmptyResponseError()

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if content is None:
            raise ProviderError("Malformed response from API: choice has no message content")
        if not isinstance(content, str) or not content.strip():
            raise EmptyResponseError()

        usage = data.get("usage") or {}
        logger.info(
            "OpenRouter completion model=%s prompt_tokens=%s completion_tokens=%s",
            data.get("model", self.model),
            usage.get("prompt_tokens", "?"),
            usage.get("completion_tokens", "?"),
        )
        return content

    async def validate_api_key(self) -> bool:
        """Check the credential against the models listing endpoint."""
        try:
            async with self._session() as client:
                response = await client.get(
                    f"{self.base_url}/models",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    name="openrouter.models",
                )
        except httpx.HTTPError as exc:
            logger.warning("API key validation failed: %s", exc)
            return False
        return response.is_success
