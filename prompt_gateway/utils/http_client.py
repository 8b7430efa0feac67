from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

import httpx

logger = logging.getLogger("prompt_gateway.http")

DEFAULT_TIMEOUT = httpx.Timeout(120.0, connect=10.0)
RATE_LIMIT_STATUS = 429
# Longer announced delays are not waited out; the 429 goes back to the caller
MAX_RETRY_DELAY = 60.0


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Return the delay in seconds announced by a ``Retry-After`` header.

    Accepts delta-seconds or an HTTP-date. Returns ``None`` when the header is
    absent or unusable, which callers treat as "do not retry".
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None

    try:
        seconds = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if when is None:
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        seconds = (when - datetime.now(timezone.utc)).total_seconds()

    if not math.isfinite(seconds):
        return None
    return max(0.0, seconds)


class HttpClient:
    """
    Async HTTP client for the model provider.

    Retries exactly once on 429 when the provider announces a ``Retry-After``
    of at most ``MAX_RETRY_DELAY`` seconds; every other status is returned
    to the caller untouched. There is no backoff loop: callers are
    interactive tool calls that expect bounded latency.
    """

    def __init__(
        self,
        timeout: httpx.Timeout | float = DEFAULT_TIMEOUT,
        retry_on_rate_limit: bool = True,
    ) -> None:
        if not isinstance(timeout, httpx.Timeout):
            timeout = httpx.Timeout(timeout)
        self.timeout = timeout
        self.retry_on_rate_limit = retry_on_rate_limit
        self._client = httpx.AsyncClient(timeout=self.timeout)

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, *, name: Optional[str] = None, **kwargs) -> httpx.Response:
        name = name or method.upper()
        if "timeout" not in kwargs:
            kwargs["timeout"] = self.timeout

        response = await self._client.request(method, url, **kwargs)
        if response.status_code != RATE_LIMIT_STATUS or not self.retry_on_rate_limit:
            return response

        delay = parse_retry_after(response.headers.get("Retry-After"))
        if delay is None:
            logger.warning("Rate limited without Retry-After, giving up %s url=%s", name, url)
            return response
        if delay > MAX_RETRY_DELAY:
            logger.warning("Rate limited for %ss, over the %ss retry cap, giving up %s url=%s", delay, MAX_RETRY_DELAY, name, url)
            return response

        logger.warning("Rate limited, retrying %s once delay=%ss url=%s", name, delay, url)
        await asyncio.sleep(delay)
        return await self._client.request(method, url, **kwargs)

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self._request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        return await self._request("POST", url, **kwargs)


__all__ = ["HttpClient", "DEFAULT_TIMEOUT", "MAX_RETRY_DELAY", "RATE_LIMIT_STATUS", "parse_retry_after"]
