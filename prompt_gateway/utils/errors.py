from __future__ import annotations

import logging
import re
from typing import Optional

from fastapi import HTTPException, status

logger = logging.getLogger("prompt_gateway.errors")

# Patterns that might leak sensitive information
SENSITIVE_PATTERNS = [
    r"api[_-]?key\s*[=:]\s*\S+",
    r"password\s*[=:]\s*\S+",
    r"token\s*[=:]\s*\S+",
    r"secret\s*[=:]\s*\S+",
    r"bearer\s+\S+",
    r"sk-or-[\w-]+",  # OpenRouter keys
    r"\b(?:\d{1,3}\.){3}\d{1,3}\b",  # IP addresses
    r"/home/\S+",  # File paths
    r"/var/\S+",
    r"/etc/\S+",
    r"traceback",
    r"stack trace",
]


class GatewayError(Exception):
    """Base class for every error raised by the gateway."""

    code = "gateway_error"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class EnhancementError(GatewayError):
    """Any failure of the enhancement pipeline."""

    code = "enhancement_failed"


class ConfigurationError(EnhancementError):
    """The provider credential is missing."""

    code = "configuration_error"


class ValidationError(EnhancementError):
    """The request does not have the expected shape."""

    code = "invalid_request"
    http_status = status.HTTP_400_BAD_REQUEST


class SanitizationError(EnhancementError):
    """The regex engine could not sanitize the input."""

    code = "sanitization_failed"


class ProviderError(EnhancementError):
    """The model provider answered with an error or an unusable body."""

    code = "provider_error"
    http_status = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RateLimitError(ProviderError):
    """The provider kept answering 429 after the single permitted retry."""

    code = "rate_limited"
    http_status = status.HTTP_429_TOO_MANY_REQUESTS


class EmptyResponseError(ProviderError):
    """The provider returned no choices."""

    code = "empty_response"

    def __init__(self, message: str = "No response from API") -> None:
        super().__init__(message)


class ServerBusyError(GatewayError):
    code = "server_busy"
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE


def _sanitize_error_message(message: str) -> str:
    """Remove potentially sensitive information from error messages.

    This prevents leaking internal details like file paths, IP addresses,
    API keys, or stack traces to end users.
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, "[REDACTED]", sanitized, flags=re.IGNORECASE)

    # Truncate very long messages that might contain stack traces
    if len(sanitized) > 500:
        sanitized = sanitized[:500] + "... [truncated]"

    return sanitized


def api_error(
    message: str,
    *,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    code: str = "bad_request",
    internal_message: Optional[str] = None,
    sanitize: bool = True,
) -> HTTPException:
    """Create an API error with optional message sanitization.

    Args:
        message: The error message to show to users
        status_code: HTTP status code
        code: Error code for programmatic handling
        internal_message: Optional detailed message for logging only
        sanitize: Whether to sanitize the message (default True)

    Returns:
        HTTPException with sanitized error details
    """
    if internal_message:
        logger.error(f"[{code}] Internal: {internal_message}")

    user_message = _sanitize_error_message(message) if sanitize else message

    return HTTPException(
        status_code=status_code,
        detail={"error": {"message": user_message, "code": code}}
    )


def to_http_exception(exc: GatewayError) -> HTTPException:
    """Map a gateway error onto the HTTP error envelope."""
    return api_error(exc.message, status_code=exc.http_status, code=exc.code)
