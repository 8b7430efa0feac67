from __future__ import annotations

from typing import Optional

from httpx import Response


def extract_http_error(response: Response | None) -> Optional[str]:
    """Return the provider's own error message from a failed response, if any.

    OpenRouter answers ``{"error": {"message": ..., "code": ...}}``; other
    OpenAI-compatible backends sometimes use ``{"detail": ...}`` or plain text.
    """
    if response is None:
        return None

    try:
        data = response.json()
    except ValueError:
        text = (response.text or "").strip()
        return text[:300] or None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error

        detail = data.get("detail")
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
        if isinstance(detail, str) and detail:
            return detail

    return None
