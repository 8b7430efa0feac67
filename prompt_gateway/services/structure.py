"""
Prompt structure detection and input sanitizing.

Detection is a heuristic shape test, not a validator. The precedence order
(XML, JSON, Markdown, role-based, plain) decides which instruction template is
used, so changing it is an observable behavior change.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum

from ..utils.errors import SanitizationError

logger = logging.getLogger("prompt_gateway.structure")

XML_OPEN_TAG_PATTERN = re.compile(r"<\w+>", re.ASCII)
XML_CLOSE_TAG_PATTERN = re.compile(r"</\w+>", re.ASCII)
MARKDOWN_HEADING_PATTERN = re.compile(r"^#+ .+$", re.MULTILINE)
MARKDOWN_LIST_PATTERN = re.compile(r"^[-*] .+$", re.MULTILINE)
ROLE_PATTERN = re.compile(r"^(You are|System:|User:|Assistant:)", re.IGNORECASE)

SCRIPT_PATTERN = re.compile(r"<script[^>]*>[\s\S]*?</script>", re.IGNORECASE)
TAG_PATTERN = re.compile(r"<[^>]*>")


class StructureKind(str, Enum):
    XML = "xml"
    JSON = "json"
    MARKDOWN = "markdown"
    ROLE_BASED = "role-based"
    PLAIN = "plain"


@dataclass(frozen=True)
class StructureClassification:
    kind: StructureKind
    preserve_format: bool

    @classmethod
    def of(cls, kind: StructureKind) -> "StructureClassification":
        return cls(kind=kind, preserve_format=kind is not StructureKind.PLAIN)


def _looks_like_xml(text: str) -> bool:
    # An opening tag with any closing tag after it. The earliest opening tag
    # ends first, so one linear scan per pattern decides it.
    opening = XML_OPEN_TAG_PATTERN.search(text)
    return opening is not None and XML_CLOSE_TAG_PATTERN.search(text, opening.end()) is not None


def _strip_tags(text: str) -> str:
    # Nothing after the last ">" can be part of a tag
    end = text.rfind(">") + 1
    return TAG_PATTERN.sub("", text[:end]) + text[end:]


def _reject_constant(value: str):
    # NaN/Infinity are not JSON
    raise ValueError(f"invalid JSON constant {value}")


def _is_json_document(text: str) -> bool:
    try:
        json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return False
    return True


def detect_structure(text: str) -> StructureClassification:
    """Classify the syntactic shape of a prompt. Total and side-effect free."""
    if _looks_like_xml(text):
        return StructureClassification.of(StructureKind.XML)

    if _is_json_document(text):
        return StructureClassification.of(StructureKind.JSON)

    if MARKDOWN_HEADING_PATTERN.search(text) or MARKDOWN_LIST_PATTERN.search(text):
        return StructureClassification.of(StructureKind.MARKDOWN)

    if ROLE_PATTERN.match(text):
        return StructureClassification.of(StructureKind.ROLE_BASED)

    return StructureClassification.of(StructureKind.PLAIN)


def sanitize_input(raw: str) -> str:
    """
    Strip markup that should never reach the model.

    XML-shaped prompts keep their tags and only lose ``<script>`` blocks; any
    other prompt loses every tag-like ``<...>`` token. This is a guard against
    script re-rendering, not an HTML sanitizer.
    """
    try:
        if detect_structure(raw).kind is StructureKind.XML:
            return SCRIPT_PATTERN.sub("", raw)
        return _strip_tags(raw)
    except (re.error, RecursionError) as exc:
        raise SanitizationError(f"Input sanitization failed: {exc}") from exc
