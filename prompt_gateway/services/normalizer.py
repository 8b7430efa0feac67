"""
Cleanup of raw model output.

Models do not always follow the "output only the prompt" instruction: some
emit ``<thinking>`` scratch space, some stack an "Enhanced prompt:" label or a
code fence around the answer. Scrubbing is best effort and never empties a
non-empty answer; an answer that was nothing but thinking segments is an
empty response.
"""
from __future__ import annotations

import re

from ..utils.errors import EmptyResponseError

THINKING_PATTERN = re.compile(r"<thinking>[\s\S]*?</thinking>")
EXCESS_NEWLINES_PATTERN = re.compile(r"\n{3,}")

UNWANTED_PREFIXES = [
    re.compile(r"^Here\s+is\s+an?\s+enhanced\s+prompt:?\s*", re.IGNORECASE),
    re.compile(r"^Here\s+is\s+the\s+enhanced\s+prompt:?\s*", re.IGNORECASE),
    re.compile(r"^Here's\s+the\s+enhanced\s+prompt:?\s*", re.IGNORECASE),
    re.compile(r"^Enhanced\s+version:?\s*", re.IGNORECASE),
    re.compile(r"^Enhanced\s+prompt:?\s*", re.IGNORECASE),
    re.compile(r"^Improved\s+prompt:?\s*", re.IGNORECASE),
    re.compile(r"^```\w*\s*"),
    re.compile(r"^\*\*Enhanced\s+Prompt:?\*\*\s*", re.IGNORECASE),
]

UNWANTED_SUFFIXES = [
    re.compile(r"\s*```\s*$"),
    re.compile(r"\s*This\s+enhanced\s+prompt\s+is\s+more\s+specific\s+and\s+detailed\.?\s*$", re.IGNORECASE),
    re.compile(r"\s*Hope\s+this\s+helps!?\s*$", re.IGNORECASE),
]

# Models occasionally stack two labels ("**Enhanced Prompt:** ```text ...")
PREFIX_PASSES = 3


def strip_thinking_segments(content: str) -> str:
    if not THINKING_PATTERN.search(content):
        return content
    processed = THINKING_PATTERN.sub("", content).strip()
    return EXCESS_NEWLINES_PATTERN.sub("\n\n", processed)


def scrub_response(content: str) -> str:
    cleaned = content.strip()

    for _ in range(PREFIX_PASSES):
        for prefix in UNWANTED_PREFIXES:
            cleaned = prefix.sub("", cleaned, count=1)
        cleaned = cleaned.strip()

    for suffix in UNWANTED_SUFFIXES:
        cleaned = suffix.sub("", cleaned, count=1)

    return cleaned.strip() or content


def normalize_response(raw: str) -> str:
    """Run both cleanup passes. Thinking segments never reach the caller."""
    without_thinking = strip_thinking_segments(raw)
    if not without_thinking.strip():
        raise EmptyResponseError("Model response contained only thinking segments")
    return scrub_response(without_thinking)
